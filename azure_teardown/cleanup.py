"""Cascading teardown of an Azure node and the resources created with it.

Deleting a VM leaves its NICs, public IPs, managed disks and availability set
behind. ``CleanupResources`` deletes the VM and then reclaims each of those
dependents, skipping anything that was supplied by the caller (see
``policy``). Only the VM deletion decides the result of ``cleanup_node``;
failures while reclaiming dependents are logged and the cascade carries on.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import structlog

from .api import ResourceApis
from .errors import ResourceInUseError
from .models import NetworkInterfaceView, OperationHandle, VirtualMachineView
from .naming import GroupNamingConvention
from .policy import (
    is_managed_virtual_network,
    is_orphaned_availability_set,
    is_orphaned_security_group,
    should_delete_public_ip,
)
from .references import NodeId, ResourceReference


class CleanupResources:
    """Deletes nodes and reclaims the resources they leave behind.

    Args:
        apis: Resource APIs for the subscription
        resource_deleted: Tracker returning True once a delete handle completes
        not_in_resource_group: Tracker returning True once a resource is no
            longer listed in its resource group
        naming: Convention deriving shared resource names from a group
        ownership_tag_key: Tag marking availability sets and virtual
            networks we created
        autogenerated_ip_key: Tag marking public IPs created for a node
        disk_deleted_retry: Wraps the disk "not found" check into a
            bounded retrying predicate (see ``pollers.retry``)
        logger: Bound structlog logger
    """

    def __init__(
        self,
        apis: ResourceApis,
        resource_deleted: Callable[[OperationHandle | None], bool],
        not_in_resource_group: Callable[[ResourceReference], bool],
        naming: GroupNamingConvention,
        ownership_tag_key: str = "jclouds",
        autogenerated_ip_key: str = "autogenerated",
        disk_deleted_retry: Callable[[Callable[[Any], bool]], Callable[[Any], bool]] | None = None,
        logger: Any = None,
    ) -> None:
        self.api = apis
        self.resource_deleted = resource_deleted
        self.not_in_resource_group = not_in_resource_group
        self.naming = naming
        self.ownership_tag_key = ownership_tag_key
        self.autogenerated_ip_key = autogenerated_ip_key
        self.disk_deleted_retry = disk_deleted_retry or (lambda predicate: predicate)
        self.log = logger or structlog.get_logger(__name__)

    def cleanup_node(self, node_id: str) -> bool:
        """Delete a node and everything it implicitly created.

        Args:
            node_id: Node handle of the form ``<resource-group>/<name>``

        Returns:
            True if the VM was deleted or did not exist

        Raises:
            MalformedNodeIdError: If ``node_id`` cannot be parsed
            CloudApiError: If the VM delete request fails
        """
        node = NodeId.parse(node_id)
        vm = self.api.virtual_machines.get(node.resource_group, node.name)
        if vm is None:
            self.log.debug("node_already_deleted", node_id=node_id)
            return True

        self.log.info("destroying_node", resource_group=node.resource_group, name=node.name)
        vm_deleted = self._delete_virtual_machine(node.resource_group, vm)

        # The VM snapshot taken above holds every reference the cascade needs
        stages: list[tuple[str, Callable[[], bool]]] = [
            ("nics", lambda: self.cleanup_virtual_machine_nics(vm)),
            ("managed_disks", lambda: self.cleanup_managed_disks(vm)),
            ("availability_set", lambda: self.cleanup_availability_set_if_orphaned(vm)),
            ("virtual_networks", lambda: self.cleanup_virtual_networks(node.resource_group)),
        ]
        for stage, run in stages:
            try:
                ok = run()
            except Exception:
                self.log.exception(
                    "cleanup_stage_error",
                    stage=stage,
                    resource_group=node.resource_group,
                    name=node.name,
                )
                ok = False
            if not ok:
                self.log.warning(
                    "cleanup_stage_incomplete",
                    stage=stage,
                    resource_group=node.resource_group,
                    name=node.name,
                )

        if vm_deleted:
            self.log.info("node_destroyed", resource_group=node.resource_group, name=node.name)
        else:
            self.log.warning("node_not_deleted", resource_group=node.resource_group, name=node.name)
        return vm_deleted

    def _delete_virtual_machine(self, resource_group: str, vm: VirtualMachineView) -> bool:
        handle = self.api.virtual_machines.delete(resource_group, vm.name)
        deleted = self.resource_deleted(handle)
        # Observational only: the VM may linger in the group listing briefly
        if not self._left_resource_group(vm.reference):
            self.log.warning("vm_still_listed", resource_group=resource_group, name=vm.name)
        return deleted

    def _left_resource_group(self, ref: ResourceReference) -> bool:
        """Membership check that reports a listing failure as still listed."""
        return self._checked(self.not_in_resource_group, ref)

    def _checked(self, check: Callable[[ResourceReference], bool], ref: ResourceReference) -> bool:
        try:
            return check(ref)
        except Exception as e:
            self.log.error(
                "resource_check_error",
                resource_group=ref.resource_group,
                name=ref.name,
                error=str(e),
            )
            return False

    def _disk_not_found(self, ref: ResourceReference) -> bool:
        return self.api.disks.get(ref.resource_group, ref.name) is None

    def cleanup_virtual_machine_nics(self, vm: VirtualMachineView) -> bool:
        """Delete the VM's NICs and the public IPs auto-generated for them."""
        deleted = True
        for nic_id in vm.network_interface_ids:
            nic_ref = ResourceReference.parse(nic_id)
            nic = self.api.network_interfaces.get(nic_ref.resource_group, nic_ref.name)
            if nic is None:
                self.log.debug("nic_already_deleted", resource_group=nic_ref.resource_group, name=nic_ref.name)
                continue

            # Read before deleting; the NIC is the only record of its IPs
            public_ips = self._public_ips(nic)

            self.log.debug("destroying_nic", resource_group=nic_ref.resource_group, name=nic_ref.name)
            nic_deleted = self.resource_deleted(
                self.api.network_interfaces.delete(nic_ref.resource_group, nic_ref.name)
            )
            if not nic_deleted:
                self.log.warning("nic_not_deleted", resource_group=nic_ref.resource_group, name=nic_ref.name)
            deleted &= nic_deleted

            for ip_ref in public_ips:
                deleted &= self._delete_public_ip_if_autogenerated(ip_ref)

        return deleted

    @staticmethod
    def _public_ips(nic: NetworkInterfaceView) -> list[ResourceReference]:
        return [ResourceReference.parse(ip_id) for ip_id in nic.public_ip_ids if ip_id]

    def _delete_public_ip_if_autogenerated(self, ip_ref: ResourceReference) -> bool:
        try:
            ip = self.api.public_ips.get(ip_ref.resource_group, ip_ref.name)
            if ip is None:
                self.log.debug("public_ip_already_deleted", resource_group=ip_ref.resource_group, name=ip_ref.name)
                return True

            if not should_delete_public_ip(ip, self.autogenerated_ip_key):
                self.log.debug(
                    "public_ip_not_autogenerated",
                    resource_group=ip_ref.resource_group,
                    name=ip_ref.name,
                    tag=self.autogenerated_ip_key,
                )
                return True

            self.log.debug("deleting_public_ip", resource_group=ip_ref.resource_group, name=ip_ref.name)
            ip_deleted = self.resource_deleted(
                self.api.public_ips.delete(ip_ref.resource_group, ip_ref.name)
            )
            if not ip_deleted:
                self.log.warning("public_ip_not_deleted", resource_group=ip_ref.resource_group, name=ip_ref.name)
            return ip_deleted

        except Exception as e:
            self.log.warning(
                "public_ip_delete_error",
                resource_group=ip_ref.resource_group,
                name=ip_ref.name,
                error=str(e),
            )
            return False

    def cleanup_managed_disks(self, vm: VirtualMachineView) -> bool:
        """Delete the VM's managed OS and data disks.

        Completion is checked three ways, because Azure reports each signal
        independently: the delete operation handle, a "not found" on the
        disk itself, and the disk's absence from the resource group listing.
        Only the first decides the result; the others log warnings.

        Returns:
            True if every pending disk delete operation completed
        """
        disks: list[ResourceReference] = []
        for disk_id in [vm.os_disk_id, *vm.data_disk_ids]:
            if disk_id:
                ref = ResourceReference.parse(disk_id)
                if ref not in disks:
                    disks.append(ref)

        jobs: dict[ResourceReference, OperationHandle] = {}
        for ref in disks:
            self.log.debug("deleting_managed_disk", resource_group=ref.resource_group, name=ref.name)
            handle = self.api.disks.delete(ref.resource_group, ref.name)
            if handle is not None:
                jobs[ref] = handle

        not_deleted = [ref for ref, handle in jobs.items() if not self.resource_deleted(handle)]
        if not_deleted:
            self.log.warning("disks_not_deleted", disks=[str(ref) for ref in not_deleted])

        disk_gone = self.disk_deleted_retry(self._disk_not_found)
        still_present = [ref for ref in disks if not self._checked(disk_gone, ref)]
        if still_present:
            self.log.warning("disks_still_present", disks=[str(ref) for ref in still_present])

        still_listed = [ref for ref in disks if not self._left_resource_group(ref)]
        if still_listed:
            self.log.warning("disks_still_in_resource_group", disks=[str(ref) for ref in still_listed])

        return not not_deleted

    def cleanup_availability_set_if_orphaned(self, vm: VirtualMachineView) -> bool:
        """Delete the VM's availability set once we own it and it is empty."""
        if not vm.availability_set_id:
            return True

        ref = ResourceReference.parse(vm.availability_set_id)
        availability_set = self.api.availability_sets.get(ref.resource_group, ref.name)
        if not is_orphaned_availability_set(availability_set, self.ownership_tag_key):
            self.log.debug("availability_set_kept", resource_group=ref.resource_group, name=ref.name)
            return True

        self.log.debug("deleting_orphaned_availability_set", resource_group=ref.resource_group, name=ref.name)
        deleted = self.resource_deleted(
            self.api.availability_sets.delete(ref.resource_group, ref.name)
        )
        if not deleted:
            self.log.warning("availability_set_not_deleted", resource_group=ref.resource_group, name=ref.name)
        return deleted

    def cleanup_virtual_networks(self, resource_group: str) -> bool:
        """Delete the tagged virtual networks of a resource group.

        A network still used by other nodes is skipped with a warning and
        makes the result False; the scan carries on with the next network.

        Returns:
            True if every tagged network was deleted

        Raises:
            CloudApiError: On API errors other than "in use"
        """
        deleted = True
        for vnet in self.api.virtual_networks.list(resource_group):
            if not is_managed_virtual_network(vnet, self.ownership_tag_key):
                continue
            try:
                self.log.debug("deleting_virtual_network", resource_group=resource_group, name=vnet.name)
                vnet_deleted = self.resource_deleted(
                    self.api.virtual_networks.delete(resource_group, vnet.name)
                )
                if not self._left_resource_group(vnet.reference):
                    self.log.warning("virtual_network_still_listed", resource_group=resource_group, name=vnet.name)
                if not vnet_deleted:
                    self.log.warning("virtual_network_not_deleted", resource_group=resource_group, name=vnet.name)
                deleted &= vnet_deleted
            except ResourceInUseError as e:
                self.log.warning(
                    "virtual_network_in_use",
                    resource_group=resource_group,
                    name=vnet.name,
                    code=e.code,
                )
                deleted = False
        return deleted

    def cleanup_security_group_if_orphaned(self, resource_group: str, group: str) -> bool:
        """Delete a group's shared security group once no NIC uses it.

        Never raises; errors are logged and reported as False.
        """
        try:
            name = self.naming.shared_name_for_group(group)
            security_group = self.api.security_groups.get(resource_group, name)
            if security_group is None:
                return True

            if not is_orphaned_security_group(security_group):
                self.log.debug(
                    "security_group_in_use",
                    resource_group=resource_group,
                    name=name,
                    nics=security_group.network_interface_ids,
                )
                return True

            self.log.debug("deleting_orphaned_security_group", resource_group=resource_group, name=name)
            deleted = self.resource_deleted(self.api.security_groups.delete(resource_group, name))
            if deleted and not self._left_resource_group(security_group.reference):
                self.log.warning("security_group_still_listed", resource_group=resource_group, name=name)
            return deleted

        except Exception:
            self.log.exception("security_group_cleanup_error", resource_group=resource_group, group=group)
            return False

    def delete_resource_group_if_empty(self, resource_group: str) -> bool:
        """Delete a resource group only when nothing is left in it."""
        attached = self.api.resource_groups.resources(resource_group)
        if attached is None:
            self.log.debug("resource_group_already_deleted", resource_group=resource_group)
            return True

        if attached:
            self.log.warning(
                "resource_group_not_empty",
                resource_group=resource_group,
                resources=[r.id for r in attached],
            )
            return False

        self.log.debug("deleting_empty_resource_group", resource_group=resource_group)
        return self.resource_deleted(self.api.resource_groups.delete(resource_group))

    def cleanup_group(self, resource_group: str, group: str) -> bool:
        """Reclaim what a node group shares once its last node is gone."""
        security_group_deleted = self.cleanup_security_group_if_orphaned(resource_group, group)
        resource_group_deleted = self.delete_resource_group_if_empty(resource_group)
        return security_group_deleted and resource_group_deleted
