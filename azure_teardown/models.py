"""Read-only views of the Azure resources touched during teardown.

Views are rebuilt from live provider state on every call and never cached.
Related resources are kept as raw resource ids; callers resolve them with
``ResourceReference.parse`` when they need the group and name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .references import ResourceReference


class OperationHandle(Protocol):
    """Tracking handle of an in-flight provider operation.

    Satisfied by ``azure.core.polling.LROPoller``.
    """

    def done(self) -> bool: ...

    def status(self) -> str: ...


@dataclass(slots=True)
class _ResourceView:
    id: str
    name: str

    @property
    def reference(self) -> ResourceReference:
        return ResourceReference.parse(self.id)


@dataclass(slots=True)
class VirtualMachineView(_ResourceView):
    """Snapshot of a VM's dependencies."""

    resource_group: str = ""
    network_interface_ids: list[str] = field(default_factory=list)  # ordered
    os_disk_id: str | None = None        # managed OS disk, None if unmanaged
    data_disk_ids: list[str] = field(default_factory=list)
    availability_set_id: str | None = None


@dataclass(slots=True)
class DiskView(_ResourceView):
    pass


@dataclass(slots=True)
class NetworkInterfaceView(_ResourceView):
    public_ip_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PublicIpView(_ResourceView):
    tags: dict[str, str] | None = None


@dataclass(slots=True)
class AvailabilitySetView(_ResourceView):
    tags: dict[str, str] | None = None
    virtual_machine_ids: list[str] | None = None


@dataclass(slots=True)
class SecurityGroupView(_ResourceView):
    network_interface_ids: list[str] | None = None


@dataclass(slots=True)
class VirtualNetworkView(_ResourceView):
    tags: dict[str, str] | None = None


@dataclass(slots=True)
class ResourceView(_ResourceView):
    """A member of a resource group listing."""

    type: str = ""
