"""Parsing of Azure resource ids and node handles."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import MalformedIdentifierError, MalformedNodeIdError

# /subscriptions/<sub>/resourceGroups/<rg>[/providers/<ns>/<type>/<name>...]
RESOURCE_ID_PATTERN = re.compile(
    r"^/subscriptions/[^/]+/resourcegroups/(?P<group>[^/]+)"
    r"(?:/providers/[^/]+(?:/[^/]+/[^/]+)+)?/?$",
    re.IGNORECASE,
)

NODE_ID_DELIMITER = "/"


@dataclass(frozen=True, slots=True)
class ResourceReference:
    """Resource group and name extracted from a provider resource id."""

    resource_group: str
    name: str
    id: str

    @classmethod
    def parse(cls, resource_id: str) -> ResourceReference:
        """Parse an Azure resource id.

        Args:
            resource_id: Full resource id, e.g.
                ``/subscriptions/x/resourceGroups/rg1/providers/Microsoft.Compute/disks/d1``

        Returns:
            ResourceReference for the id. A bare resource group id yields a
            reference whose name is the group itself.

        Raises:
            MalformedIdentifierError: If the id does not match the grammar
        """
        if not isinstance(resource_id, str):
            raise MalformedIdentifierError(f"Resource id must be a string: {resource_id!r}")

        match = RESOURCE_ID_PATTERN.match(resource_id.strip())
        if not match:
            raise MalformedIdentifierError(f"Malformed resource id: {resource_id!r}")

        group = match.group("group")
        name = resource_id.strip().rstrip("/").split("/")[-1]
        return cls(resource_group=group, name=name, id=resource_id)

    def __str__(self) -> str:
        return f"{self.resource_group}/{self.name}"


@dataclass(frozen=True, slots=True)
class NodeId:
    """Caller-facing node handle encoded as ``<resource-group>/<name>``."""

    resource_group: str
    name: str

    @classmethod
    def parse(cls, token: str) -> NodeId:
        if not isinstance(token, str):
            raise MalformedNodeIdError(f"Node id must be a string: {token!r}")

        parts = token.split(NODE_ID_DELIMITER)
        if len(parts) != 2 or not all(parts):
            raise MalformedNodeIdError(
                f"Malformed node id {token!r}: expected <resource-group>/<name>"
            )
        return cls(resource_group=parts[0], name=parts[1])

    def encode(self) -> str:
        return f"{self.resource_group}{NODE_ID_DELIMITER}{self.name}"

    def __str__(self) -> str:
        return self.encode()
