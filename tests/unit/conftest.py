"""Pytest fixtures for azure-teardown unit tests.

Provides shared fixtures for testing:
- Resource API mocks with "not found" / "nothing pending" defaults
- Completion tracker mocks
- A sample node (VM, NIC, public IP, disks, availability set)
- A CleanupResources instance wired to the mocks
"""

from unittest.mock import MagicMock

import pytest

from azure_teardown.api import ResourceApis
from azure_teardown.cleanup import CleanupResources
from azure_teardown.models import (
    AvailabilitySetView,
    NetworkInterfaceView,
    PublicIpView,
    VirtualMachineView,
)
from azure_teardown.naming import GroupNamingConvention

SUBSCRIPTION = "/subscriptions/00000000-0000-0000-0000-000000000000"


def resource_id(resource_group, provider, resource_type, name):
    """Build an Azure resource id."""
    return f"{SUBSCRIPTION}/resourceGroups/{resource_group}/providers/{provider}/{resource_type}/{name}"


@pytest.fixture
def make_id():
    """Provide the resource id builder."""
    return resource_id


@pytest.fixture
def apis():
    """Resource APIs where nothing exists and every delete completes at once."""
    bundle = ResourceApis(
        virtual_machines=MagicMock(),
        network_interfaces=MagicMock(),
        public_ips=MagicMock(),
        disks=MagicMock(),
        availability_sets=MagicMock(),
        security_groups=MagicMock(),
        virtual_networks=MagicMock(),
        resource_groups=MagicMock(),
    )
    for api in (
        bundle.virtual_machines,
        bundle.network_interfaces,
        bundle.public_ips,
        bundle.disks,
        bundle.availability_sets,
        bundle.security_groups,
        bundle.virtual_networks,
    ):
        api.get.return_value = None
        api.delete.return_value = None
    bundle.virtual_networks.list.return_value = []
    bundle.resource_groups.resources.return_value = []
    bundle.resource_groups.delete.return_value = None
    return bundle


@pytest.fixture
def resource_deleted():
    """Delete handle tracker that confirms every deletion."""
    return MagicMock(return_value=True)


@pytest.fixture
def not_in_resource_group():
    """Resource group membership tracker that reports every resource gone."""
    return MagicMock(return_value=True)


@pytest.fixture
def logger():
    """Logger mock capturing structured events."""
    return MagicMock()


@pytest.fixture
def cleanup(apis, resource_deleted, not_in_resource_group, logger):
    """CleanupResources wired to the mocks."""
    return CleanupResources(
        apis,
        resource_deleted=resource_deleted,
        not_in_resource_group=not_in_resource_group,
        naming=GroupNamingConvention(),
        ownership_tag_key="jclouds",
        autogenerated_ip_key="autogenerated",
        logger=logger,
    )


@pytest.fixture
def node(apis):
    """VM rg1/vm1 with one NIC, an auto-generated public IP, an OS disk,
    a data disk and an orphaned jclouds availability set."""
    ids = {
        "vm": resource_id("rg1", "Microsoft.Compute", "virtualMachines", "vm1"),
        "nic": resource_id("rg1", "Microsoft.Network", "networkInterfaces", "nic1"),
        "ip": resource_id("rg1", "Microsoft.Network", "publicIPAddresses", "ip1"),
        "os_disk": resource_id("rg1", "Microsoft.Compute", "disks", "osdisk1"),
        "data_disk": resource_id("rg1", "Microsoft.Compute", "disks", "datadisk1"),
        "avset": resource_id("rg1", "Microsoft.Compute", "availabilitySets", "avset1"),
    }
    vm = VirtualMachineView(
        id=ids["vm"],
        name="vm1",
        resource_group="rg1",
        network_interface_ids=[ids["nic"]],
        os_disk_id=ids["os_disk"],
        data_disk_ids=[ids["data_disk"]],
        availability_set_id=ids["avset"],
    )
    nic = NetworkInterfaceView(id=ids["nic"], name="nic1", public_ip_ids=[ids["ip"]])
    ip = PublicIpView(id=ids["ip"], name="ip1", tags={"autogenerated": "true"})
    avset = AvailabilitySetView(
        id=ids["avset"], name="avset1", tags={"jclouds": "web"}, virtual_machine_ids=[]
    )

    apis.virtual_machines.get.side_effect = lambda rg, name: vm if (rg, name) == ("rg1", "vm1") else None
    apis.network_interfaces.get.side_effect = lambda rg, name: nic if name == "nic1" else None
    apis.public_ips.get.side_effect = lambda rg, name: ip if name == "ip1" else None
    apis.availability_sets.get.side_effect = lambda rg, name: avset if name == "avset1" else None

    return {"vm": vm, "nic": nic, "ip": ip, "avset": avset, "ids": ids}
