"""Azure Resource Manager implementation of the teardown resource APIs.

Wraps the compute, network and resource management clients. Deletes return
the SDK's ``LROPoller`` as the operation handle; provider errors are
translated into ``CloudApiError`` with the Azure error code preserved.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.mgmt.compute import ComputeManagementClient
from azure.mgmt.network import NetworkManagementClient
from azure.mgmt.resource import ResourceManagementClient

from .api import ListableResourceApi, ResourceApis, ResourceGroupApi
from .config import TeardownConfig
from .errors import CloudApiError, ResourceInUseError, TeardownError
from .models import (
    AvailabilitySetView,
    DiskView,
    NetworkInterfaceView,
    OperationHandle,
    PublicIpView,
    ResourceView,
    SecurityGroupView,
    VirtualMachineView,
    VirtualNetworkView,
)
from .references import ResourceReference

log = logging.getLogger(__name__)

# Azure error codes meaning "still referenced by another resource"
IN_USE_ERROR_CODES = frozenset({
    "InUseSubnetCannotBeDeleted",
    "InUseNetworkSecurityGroupCannotBeDeleted",
    "InUseNetworkInterfaceCannotBeDeleted",
    "PublicIPAddressCannotBeDeleted",
    "PublicIPAddressInUse",
})


def _error_code(error: HttpResponseError) -> str | None:
    odata = getattr(error, "error", None)
    return getattr(odata, "code", None) if odata is not None else None


def translate_error(
    error: HttpResponseError,
    action: str,
    kind: str,
    resource_group: str,
    name: str,
) -> CloudApiError:
    """Map an SDK error onto the teardown error taxonomy."""
    code = _error_code(error)
    message = f"Failed to {action} Azure {kind} {resource_group}/{name}: {error}"
    if code in IN_USE_ERROR_CODES:
        return ResourceInUseError(message, code=code, resource_group=resource_group, name=name)
    return CloudApiError(message, code=code, resource_group=resource_group, name=name)


def _sub_id(sub_resource: Any) -> str | None:
    return getattr(sub_resource, "id", None) if sub_resource is not None else None


def _resource_group_of(resource_id: str | None) -> str:
    if not resource_id:
        return ""
    try:
        return ResourceReference.parse(resource_id).resource_group
    except TeardownError:
        return ""


def vm_to_view(vm: Any) -> VirtualMachineView:
    """Convert an Azure VirtualMachine into a teardown view."""
    nic_ids: list[str] = []
    if vm.network_profile and vm.network_profile.network_interfaces:
        nic_ids = [nic.id for nic in vm.network_profile.network_interfaces if nic.id]

    os_disk_id = None
    data_disk_ids: list[str] = []
    storage = vm.storage_profile
    if storage:
        if storage.os_disk and storage.os_disk.managed_disk:
            os_disk_id = storage.os_disk.managed_disk.id
        for data_disk in storage.data_disks or []:
            disk_id = _sub_id(data_disk.managed_disk)
            if disk_id:
                data_disk_ids.append(disk_id)

    return VirtualMachineView(
        id=vm.id,
        name=vm.name,
        resource_group=_resource_group_of(vm.id),
        network_interface_ids=nic_ids,
        os_disk_id=os_disk_id,
        data_disk_ids=data_disk_ids,
        availability_set_id=_sub_id(vm.availability_set),
    )


def nic_to_view(nic: Any) -> NetworkInterfaceView:
    public_ip_ids = []
    for ip_config in nic.ip_configurations or []:
        pip_id = _sub_id(ip_config.public_ip_address)
        if pip_id:
            public_ip_ids.append(pip_id)
    return NetworkInterfaceView(id=nic.id, name=nic.name, public_ip_ids=public_ip_ids)


def public_ip_to_view(pip: Any) -> PublicIpView:
    return PublicIpView(id=pip.id, name=pip.name, tags=dict(pip.tags) if pip.tags else None)


def disk_to_view(disk: Any) -> DiskView:
    return DiskView(id=disk.id, name=disk.name)


def availability_set_to_view(aset: Any) -> AvailabilitySetView:
    vm_ids = None
    if aset.virtual_machines is not None:
        vm_ids = [vm.id for vm in aset.virtual_machines if vm.id]
    return AvailabilitySetView(
        id=aset.id,
        name=aset.name,
        tags=dict(aset.tags) if aset.tags else None,
        virtual_machine_ids=vm_ids,
    )


def security_group_to_view(nsg: Any) -> SecurityGroupView:
    nic_ids = None
    if nsg.network_interfaces is not None:
        nic_ids = [nic.id for nic in nsg.network_interfaces if nic.id]
    return SecurityGroupView(id=nsg.id, name=nsg.name, network_interface_ids=nic_ids)


def virtual_network_to_view(vnet: Any) -> VirtualNetworkView:
    return VirtualNetworkView(id=vnet.id, name=vnet.name, tags=dict(vnet.tags) if vnet.tags else None)


def resource_to_view(resource: Any) -> ResourceView:
    return ResourceView(id=resource.id, name=resource.name, type=resource.type or "")


class AzureResourceApi(ListableResourceApi[Any]):
    """One SDK operation group (``virtual_machines``, ``disks``, ...).

    Args:
        operations: SDK operations object exposing ``get``, ``begin_delete``
            (or ``delete`` when ``synchronous_delete``) and ``list``
        to_view: Converts an SDK model into a teardown view
        kind: Human-readable resource kind for messages
        synchronous_delete: The SDK delete blocks and returns nothing
    """

    def __init__(
        self,
        operations: Any,
        to_view: Callable[[Any], Any],
        kind: str,
        synchronous_delete: bool = False,
    ) -> None:
        self._operations = operations
        self._to_view = to_view
        self.kind = kind
        self.synchronous_delete = synchronous_delete

    def get(self, resource_group: str, name: str) -> Any | None:
        try:
            return self._to_view(self._operations.get(resource_group, name))
        except ResourceNotFoundError:
            return None
        except HttpResponseError as e:
            raise translate_error(e, "get", self.kind, resource_group, name)

    def delete(self, resource_group: str, name: str) -> OperationHandle | None:
        try:
            if self.synchronous_delete:
                self._operations.delete(resource_group, name)
                return None
            return self._operations.begin_delete(resource_group, name)
        except ResourceNotFoundError:
            log.debug(f"Azure {self.kind} {resource_group}/{name} already deleted")
            return None
        except HttpResponseError as e:
            raise translate_error(e, "delete", self.kind, resource_group, name)

    def list(self, resource_group: str) -> list[Any]:
        try:
            return [self._to_view(item) for item in self._operations.list(resource_group)]
        except ResourceNotFoundError:
            return []
        except HttpResponseError as e:
            raise translate_error(e, "list", self.kind, resource_group, "*")


class AzureResourceGroupApi(ResourceGroupApi):
    """Resource groups and their members via the resource management client."""

    def __init__(self, resource_client: ResourceManagementClient) -> None:
        self._client = resource_client

    def resources(self, resource_group: str) -> list[ResourceView] | None:
        try:
            return [
                resource_to_view(r)
                for r in self._client.resources.list_by_resource_group(resource_group)
            ]
        except ResourceNotFoundError:
            return None
        except HttpResponseError as e:
            raise translate_error(e, "list", "resource group", resource_group, "*")

    def delete(self, resource_group: str) -> OperationHandle | None:
        try:
            return self._client.resource_groups.begin_delete(resource_group)
        except ResourceNotFoundError:
            log.debug(f"Azure resource group {resource_group} already deleted")
            return None
        except HttpResponseError as e:
            raise translate_error(e, "delete", "resource group", resource_group, resource_group)


class AzureResourceApis:
    """Builds ``ResourceApis`` backed by the Azure management SDK."""

    @staticmethod
    def from_clients(
        compute_client: ComputeManagementClient,
        network_client: NetworkManagementClient,
        resource_client: ResourceManagementClient,
    ) -> ResourceApis:
        return ResourceApis(
            virtual_machines=AzureResourceApi(
                compute_client.virtual_machines, vm_to_view, "virtual machine"
            ),
            network_interfaces=AzureResourceApi(
                network_client.network_interfaces, nic_to_view, "network interface"
            ),
            public_ips=AzureResourceApi(
                network_client.public_ip_addresses, public_ip_to_view, "public IP"
            ),
            disks=AzureResourceApi(compute_client.disks, disk_to_view, "managed disk"),
            availability_sets=AzureResourceApi(
                compute_client.availability_sets,
                availability_set_to_view,
                "availability set",
                synchronous_delete=True,
            ),
            security_groups=AzureResourceApi(
                network_client.network_security_groups,
                security_group_to_view,
                "network security group",
            ),
            virtual_networks=AzureResourceApi(
                network_client.virtual_networks, virtual_network_to_view, "virtual network"
            ),
            resource_groups=AzureResourceGroupApi(resource_client),
        )

    @classmethod
    def from_config(cls, config: TeardownConfig, credential: Any = None) -> ResourceApis:
        """Create the management clients for the configured subscription.

        Args:
            config: Teardown configuration (AZURE_SUBSCRIPTION_ID is required)
            credential: Azure credential; DefaultAzureCredential when omitted

        Raises:
            TeardownError: If no subscription is configured
        """
        if not config.subscription_id:
            raise TeardownError("Missing required Azure configuration: AZURE_SUBSCRIPTION_ID")

        credential = credential or DefaultAzureCredential()
        log.info(f"Creating Azure management clients for subscription {config.subscription_id}")
        return cls.from_clients(
            ComputeManagementClient(credential=credential, subscription_id=config.subscription_id),
            NetworkManagementClient(credential=credential, subscription_id=config.subscription_id),
            ResourceManagementClient(credential=credential, subscription_id=config.subscription_id),
        )
