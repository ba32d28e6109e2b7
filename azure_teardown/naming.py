"""Shared resource names derived from a logical node group."""

from __future__ import annotations

import re

GROUP_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")


class GroupNamingConvention:
    """Derives names of resources shared by every node of a group.

    Example: with the default prefix, group ``web`` shares the security group
    ``jclouds-web``.
    """

    def __init__(self, prefix: str = "jclouds", delimiter: str = "-") -> None:
        if not prefix:
            raise ValueError("Naming prefix must not be empty")
        self.prefix = prefix
        self.delimiter = delimiter

    def shared_name_for_group(self, group: str) -> str:
        if not group or not GROUP_PATTERN.match(group):
            raise ValueError(
                f"Invalid group name {group!r}: use lowercase letters, digits and '-'"
            )
        return f"{self.prefix}{self.delimiter}{group}"

