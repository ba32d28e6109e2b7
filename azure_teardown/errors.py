"""Teardown error hierarchy.

Malformed identifiers are fatal and surface to the caller. Provider failures
carry the provider error code so callers can branch on a kind instead of
matching message text.
"""

from __future__ import annotations


class TeardownError(Exception):
    """Base exception for teardown errors."""

    pass


class MalformedIdentifierError(TeardownError, ValueError):
    """Resource id does not follow the Azure resource id grammar."""

    pass


class MalformedNodeIdError(TeardownError, ValueError):
    """Node handle is not of the form ``<resource-group>/<name>``."""

    pass


class CloudApiError(TeardownError):
    """Unexpected error reported by the provider API."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        resource_group: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.resource_group = resource_group
        self.name = name


class ResourceInUseError(CloudApiError):
    """Resource cannot be deleted while other resources still use it."""

    pass
