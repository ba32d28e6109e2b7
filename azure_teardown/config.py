"""
Configuration management for azure-teardown.

Loads configuration from environment variables with validation.
"""

from dataclasses import dataclass
from typing import Optional

from decouple import config

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class TeardownConfig:
    """Teardown configuration."""

    # Azure
    subscription_id: Optional[str] = None

    # Delete operation handles
    resource_deleted_timeout: float = 600  # seconds
    resource_deleted_period: float = 5  # seconds

    # Resource group membership after delete
    not_in_group_timeout: float = 300  # seconds
    not_in_group_period: float = 5  # seconds

    # Managed disk "not found" polling
    disk_deleted_timeout: float = 1200  # seconds
    disk_deleted_period: float = 1  # seconds
    disk_deleted_max_period: float = 15  # seconds

    # Ownership tags
    ownership_tag_key: str = "jclouds"
    autogenerated_ip_key: str = "autogenerated"
    group_name_prefix: str = "jclouds"

    # Logging
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in (
            "resource_deleted_timeout",
            "resource_deleted_period",
            "not_in_group_timeout",
            "not_in_group_period",
            "disk_deleted_timeout",
            "disk_deleted_period",
            "disk_deleted_max_period",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.disk_deleted_max_period < self.disk_deleted_period:
            raise ValueError(
                "DISK_DELETED_MAX_POLL_PERIOD must not be smaller than DISK_DELETED_POLL_PERIOD"
            )

        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL: {self.log_level}. Must be one of {LOG_LEVELS}.")

    @classmethod
    def from_env(cls) -> "TeardownConfig":
        """Load configuration from environment variables."""

        subscription_id = config("AZURE_SUBSCRIPTION_ID", default=None)

        # Polling
        resource_deleted_timeout = config("TIMEOUT_RESOURCE_DELETED", default=600, cast=float)
        resource_deleted_period = config("RESOURCE_DELETED_POLL_PERIOD", default=5, cast=float)
        not_in_group_timeout = config("TIMEOUT_NOT_IN_RESOURCE_GROUP", default=300, cast=float)
        not_in_group_period = config("NOT_IN_RESOURCE_GROUP_POLL_PERIOD", default=5, cast=float)
        disk_deleted_timeout = config("TIMEOUT_DISK_DELETED", default=1200, cast=float)
        disk_deleted_period = config("DISK_DELETED_POLL_PERIOD", default=1, cast=float)
        disk_deleted_max_period = config("DISK_DELETED_MAX_POLL_PERIOD", default=15, cast=float)

        # Ownership
        ownership_tag_key = config("OWNERSHIP_TAG_KEY", default="jclouds")
        autogenerated_ip_key = config("AUTOGENERATED_IP_KEY", default="autogenerated")
        group_name_prefix = config("GROUP_NAME_PREFIX", default="jclouds")

        # Logging
        log_level = config("LOG_LEVEL", default="INFO")

        return cls(
            subscription_id=subscription_id,
            resource_deleted_timeout=resource_deleted_timeout,
            resource_deleted_period=resource_deleted_period,
            not_in_group_timeout=not_in_group_timeout,
            not_in_group_period=not_in_group_period,
            disk_deleted_timeout=disk_deleted_timeout,
            disk_deleted_period=disk_deleted_period,
            disk_deleted_max_period=disk_deleted_max_period,
            ownership_tag_key=ownership_tag_key,
            autogenerated_ip_key=autogenerated_ip_key,
            group_name_prefix=group_name_prefix,
            log_level=log_level,
        )
