"""Ownership rules deciding which resources teardown may reclaim.

Only resources carrying our tags are ever deleted. Anything without them was
supplied by the caller and must survive node teardown.
"""

from __future__ import annotations

from .models import (
    AvailabilitySetView,
    PublicIpView,
    SecurityGroupView,
    VirtualNetworkView,
)


def parse_bool(value: object) -> bool:
    """Lenient boolean parse: only the string "true" (any case) is True."""
    return value is not None and str(value).strip().lower() == "true"


def should_delete_public_ip(ip: PublicIpView | None, autogenerated_key: str) -> bool:
    """Public IPs are deleted only when they were auto-generated for the node."""
    if ip is None or not ip.tags:
        return False
    return parse_bool(ip.tags.get(autogenerated_key))


def is_orphaned_availability_set(
    availability_set: AvailabilitySetView | None,
    ownership_key: str,
) -> bool:
    """Tagged availability sets are deleted once no VM is attached to them."""
    return (
        availability_set is not None
        and bool(availability_set.tags)
        and ownership_key in availability_set.tags
        and not availability_set.virtual_machine_ids
    )


def is_orphaned_security_group(security_group: SecurityGroupView | None) -> bool:
    # Ownership comes from the shared group name the caller looked it up by
    return security_group is not None and not security_group.network_interface_ids


def is_managed_virtual_network(
    virtual_network: VirtualNetworkView | None,
    ownership_key: str,
) -> bool:
    """Virtual networks we created carry the ownership tag.

    Attachments are not checked: Azure refuses to delete a network that is
    still in use.
    """
    return (
        virtual_network is not None
        and bool(virtual_network.tags)
        and ownership_key in virtual_network.tags
    )
