"""Cascading teardown of Azure compute nodes.

Deletes a VM together with the NICs, public IPs, managed disks and
availability set created for it, without touching resources the caller
supplied.
"""

from __future__ import annotations

import functools
from typing import Any

import structlog

from .api import ListableResourceApi, ResourceApi, ResourceApis, ResourceGroupApi
from .cleanup import CleanupResources
from .config import TeardownConfig
from .errors import (
    CloudApiError,
    MalformedIdentifierError,
    MalformedNodeIdError,
    ResourceInUseError,
    TeardownError,
)
from .logs import configure_logging
from .naming import GroupNamingConvention
from .pollers import NotInResourceGroup, ResourceDeleted, retry
from .references import NodeId, ResourceReference


def create_cleanup(
    config: TeardownConfig | None = None,
    apis: ResourceApis | None = None,
    credential: Any = None,
    logger: Any = None,
) -> CleanupResources:
    """Factory wiring configuration, trackers and resource APIs together.

    Args:
        config: Teardown configuration; read from the environment if omitted
        apis: Resource APIs; Azure SDK backed ones are created if omitted
        credential: Azure credential used when creating the SDK clients
        logger: Bound structlog logger shared by every component; if omitted,
            structlog is configured at ``config.log_level``

    Returns:
        Configured CleanupResources instance
    """
    config = config or TeardownConfig.from_env()
    if logger is None:
        # A supplied logger keeps the caller's structlog configuration
        configure_logging(config.log_level)
        logger = structlog.get_logger("azure_teardown")

    if apis is None:
        from .azure import AzureResourceApis

        apis = AzureResourceApis.from_config(config, credential=credential)

    resource_deleted = ResourceDeleted(
        timeout=config.resource_deleted_timeout,
        period=config.resource_deleted_period,
        logger=logger,
    )
    not_in_resource_group = NotInResourceGroup(
        apis.resource_groups.resources,
        timeout=config.not_in_group_timeout,
        period=config.not_in_group_period,
        logger=logger,
    )
    disk_deleted_retry = functools.partial(
        retry,
        timeout=config.disk_deleted_timeout,
        period=config.disk_deleted_period,
        max_period=config.disk_deleted_max_period,
    )

    return CleanupResources(
        apis,
        resource_deleted=resource_deleted,
        not_in_resource_group=not_in_resource_group,
        naming=GroupNamingConvention(prefix=config.group_name_prefix),
        ownership_tag_key=config.ownership_tag_key,
        autogenerated_ip_key=config.autogenerated_ip_key,
        disk_deleted_retry=disk_deleted_retry,
        logger=logger,
    )


__all__ = [
    "CleanupResources",
    "CloudApiError",
    "GroupNamingConvention",
    "ListableResourceApi",
    "MalformedIdentifierError",
    "MalformedNodeIdError",
    "NodeId",
    "NotInResourceGroup",
    "ResourceApi",
    "ResourceApis",
    "ResourceDeleted",
    "ResourceGroupApi",
    "ResourceInUseError",
    "ResourceReference",
    "TeardownConfig",
    "TeardownError",
    "configure_logging",
    "create_cleanup",
    "retry",
]
