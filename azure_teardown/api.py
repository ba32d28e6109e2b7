"""Resource API contracts consumed by the teardown orchestrator.

Every API follows the same conventions:

- ``get`` returns ``None`` when the resource does not exist.
- ``delete`` returns an ``OperationHandle`` for an in-flight deletion, or
  ``None`` when the provider completed the request synchronously or the
  resource was already gone.
- Unexpected provider failures raise ``CloudApiError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

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

T = TypeVar("T")


class ResourceApi(ABC, Generic[T]):
    """Access to one kind of resource scoped by resource group."""

    kind: str = "resource"

    @abstractmethod
    def get(self, resource_group: str, name: str) -> T | None:
        """Get a resource.

        Args:
            resource_group: Resource group holding the resource
            name: Resource name

        Returns:
            The resource view, or None if it does not exist

        Raises:
            CloudApiError: On API errors
        """
        pass

    @abstractmethod
    def delete(self, resource_group: str, name: str) -> OperationHandle | None:
        """Request deletion of a resource.

        Returns:
            Handle tracking the deletion, or None if nothing is pending

        Raises:
            ResourceInUseError: If the resource is still in use
            CloudApiError: On API errors
        """
        pass


class ListableResourceApi(ResourceApi[T]):
    """Resource API that can also enumerate a resource group."""

    @abstractmethod
    def list(self, resource_group: str) -> list[T]:
        """List every resource of this kind in a resource group."""
        pass


class ResourceGroupApi(ABC):
    """Access to resource groups and their members."""

    @abstractmethod
    def resources(self, resource_group: str) -> list[ResourceView] | None:
        """List the resources attached to a group.

        Returns:
            Members of the group, or None if the group does not exist
        """
        pass

    @abstractmethod
    def delete(self, resource_group: str) -> OperationHandle | None:
        """Request deletion of a resource group."""
        pass


@dataclass(slots=True)
class ResourceApis:
    """The resource APIs a teardown needs."""

    virtual_machines: ResourceApi[VirtualMachineView]
    network_interfaces: ResourceApi[NetworkInterfaceView]
    public_ips: ResourceApi[PublicIpView]
    disks: ResourceApi[DiskView]
    availability_sets: ResourceApi[AvailabilitySetView]
    security_groups: ResourceApi[SecurityGroupView]
    virtual_networks: ListableResourceApi[VirtualNetworkView]
    resource_groups: ResourceGroupApi
