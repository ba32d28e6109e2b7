"""Unit tests for configuration, naming, logging setup and the factory."""

from unittest.mock import MagicMock, patch

import pytest
import structlog

from azure_teardown import create_cleanup
from azure_teardown.config import TeardownConfig
from azure_teardown.logs import configure_logging
from azure_teardown.naming import GroupNamingConvention
from azure_teardown.pollers import NotInResourceGroup, ResourceDeleted

ENV_VARS = (
    "AZURE_SUBSCRIPTION_ID",
    "TIMEOUT_RESOURCE_DELETED",
    "RESOURCE_DELETED_POLL_PERIOD",
    "TIMEOUT_NOT_IN_RESOURCE_GROUP",
    "NOT_IN_RESOURCE_GROUP_POLL_PERIOD",
    "TIMEOUT_DISK_DELETED",
    "DISK_DELETED_POLL_PERIOD",
    "DISK_DELETED_MAX_POLL_PERIOD",
    "OWNERSHIP_TAG_KEY",
    "AUTOGENERATED_IP_KEY",
    "GROUP_NAME_PREFIX",
    "LOG_LEVEL",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove teardown settings from the environment."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestTeardownConfig:
    """Tests for TeardownConfig."""

    def test_defaults(self, clean_env):
        """Test the defaults when nothing is set."""
        config = TeardownConfig.from_env()

        assert config.subscription_id is None
        assert config.resource_deleted_timeout == 600
        assert config.not_in_group_timeout == 300
        assert config.disk_deleted_timeout == 1200
        assert config.disk_deleted_period == 1
        assert config.disk_deleted_max_period == 15
        assert config.ownership_tag_key == "jclouds"
        assert config.autogenerated_ip_key == "autogenerated"
        assert config.log_level == "INFO"

    def test_from_env(self, clean_env):
        """Test loading overrides from environment variables."""
        clean_env.setenv("AZURE_SUBSCRIPTION_ID", "sub-1")
        clean_env.setenv("TIMEOUT_RESOURCE_DELETED", "120")
        clean_env.setenv("DISK_DELETED_MAX_POLL_PERIOD", "30")
        clean_env.setenv("OWNERSHIP_TAG_KEY", "managed-by")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = TeardownConfig.from_env()

        assert config.subscription_id == "sub-1"
        assert config.resource_deleted_timeout == 120.0
        assert config.disk_deleted_max_period == 30.0
        assert config.ownership_tag_key == "managed-by"
        assert config.log_level == "DEBUG"

    def test_invalid_timeout(self, clean_env):
        """Test that non-positive timeouts are rejected."""
        clean_env.setenv("TIMEOUT_NOT_IN_RESOURCE_GROUP", "0")

        with pytest.raises(ValueError):
            TeardownConfig.from_env()

    def test_invalid_max_period(self):
        """Test that the backoff cap cannot be below the first interval."""
        with pytest.raises(ValueError):
            TeardownConfig(disk_deleted_period=10, disk_deleted_max_period=5)

    def test_invalid_log_level(self):
        """Test that unknown log levels are rejected."""
        with pytest.raises(ValueError):
            TeardownConfig(log_level="LOUD")


class TestGroupNamingConvention:
    """Tests for GroupNamingConvention."""

    def test_shared_name(self):
        """Test the derived shared name."""
        assert GroupNamingConvention().shared_name_for_group("web") == "jclouds-web"
        assert GroupNamingConvention(prefix="acme").shared_name_for_group("db-1") == "acme-db-1"

    @pytest.mark.parametrize("group", ["", "Web", "web server", "web_1", "-web"])
    def test_invalid_group(self, group):
        """Test that names Azure would not accept are rejected."""
        with pytest.raises(ValueError):
            GroupNamingConvention().shared_name_for_group(group)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self):
        structlog.reset_defaults()

    def test_json_output(self, capsys):
        """Test that events are rendered as JSON lines with context."""
        configure_logging("INFO")

        structlog.get_logger().warning("nic_not_deleted", resource_group="rg1", name="nic1")

        out = capsys.readouterr().out
        assert '"event": "nic_not_deleted"' in out
        assert '"resource_group": "rg1"' in out
        assert '"level": "warning"' in out

    def test_level_filtering(self, capsys):
        """Test that events below the level are dropped."""
        configure_logging("WARNING")

        structlog.get_logger().debug("destroying_nic", name="nic1")

        assert capsys.readouterr().out == ""


class TestCreateCleanup:
    """Tests for the create_cleanup factory."""

    @pytest.fixture
    def apis(self):
        return MagicMock()

    def test_wires_configuration(self, apis):
        """Test that configuration reaches every component."""
        config = TeardownConfig(
            resource_deleted_timeout=30,
            not_in_group_timeout=20,
            ownership_tag_key="owner",
            autogenerated_ip_key="auto",
            group_name_prefix="acme",
        )
        logger = MagicMock()

        cleanup = create_cleanup(config, apis=apis, logger=logger)

        assert cleanup.api is apis
        assert isinstance(cleanup.resource_deleted, ResourceDeleted)
        assert cleanup.resource_deleted.timeout == 30
        assert isinstance(cleanup.not_in_resource_group, NotInResourceGroup)
        assert cleanup.not_in_resource_group.timeout == 20
        assert cleanup.ownership_tag_key == "owner"
        assert cleanup.autogenerated_ip_key == "auto"
        assert cleanup.naming.shared_name_for_group("web") == "acme-web"
        assert cleanup.log is logger

    def test_group_listing_source(self, apis):
        """Test that the membership tracker polls the resource group API."""
        apis.resource_groups.resources.return_value = []
        cleanup = create_cleanup(TeardownConfig(), apis=apis, logger=MagicMock())

        ref = MagicMock(resource_group="rg1", id="x")
        assert cleanup.not_in_resource_group(ref) is True
        apis.resource_groups.resources.assert_called_once_with("rg1")

    def test_builds_azure_apis(self):
        """Test that Azure APIs are built when none are supplied."""
        config = TeardownConfig(subscription_id="sub-1")
        credential = MagicMock()

        with patch("azure_teardown.azure.AzureResourceApis.from_config") as from_config:
            cleanup = create_cleanup(config, credential=credential, logger=MagicMock())

        from_config.assert_called_once_with(config, credential=credential)
        assert cleanup.api is from_config.return_value

    @patch("azure_teardown.configure_logging")
    def test_applies_log_level(self, mock_configure, apis):
        """Test that the configured level is applied when no logger is given."""
        create_cleanup(TeardownConfig(log_level="WARNING"), apis=apis)

        mock_configure.assert_called_once_with("WARNING")

    @patch("azure_teardown.configure_logging")
    def test_supplied_logger_keeps_configuration(self, mock_configure, apis):
        """Test that a caller's logger is used as is."""
        create_cleanup(TeardownConfig(log_level="WARNING"), apis=apis, logger=MagicMock())

        mock_configure.assert_not_called()

    def test_debug_events_filtered_at_warning(self, apis, capsys):
        """Test that debug cascade events are dropped at level WARNING."""
        apis.virtual_machines.get.return_value = None
        try:
            cleanup = create_cleanup(TeardownConfig(log_level="WARNING"), apis=apis)

            assert cleanup.cleanup_node("rg1/vm1") is True
            assert "node_already_deleted" not in capsys.readouterr().out
        finally:
            structlog.reset_defaults()
