"""Tests for configuration resolution"""

import json
import logging
from unittest.mock import patch

import pytest

from shipout.api.exceptions import (
    ConfigurationError,
    MissingRequiredFieldError,
    UnknownEnvironmentError,
)
from shipout.constants import ConfigMode, ErrorCode
from shipout.core.config_resolver import ConfigurationResolver


class TestMultiEnvironment:
    """Environment sections under "shipout" in package.json"""

    def test_resolves_declared_environment(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert config.host == "server.example.net"
        assert config.port == 3791
        assert config.username == "someuser"
        assert config.base_directory == "/some/path"
        assert config.keep_releases == 5
        assert config.mode == ConfigMode.MULTI_ENVIRONMENT

    def test_release_root_appends_environment(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert config.release_root == "/some/path/staging"

    def test_environment_taken_from_app_environment(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={"APP_ENVIRONMENT": "production"}).resolve()

        assert config.environment == "production"
        assert config.keep_releases == 2

    def test_argument_wins_over_app_environment(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        resolver = ConfigurationResolver(root, environ={"APP_ENVIRONMENT": "production"})

        assert resolver.resolve("staging").environment == "staging"

    def test_unknown_environment(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        with pytest.raises(UnknownEnvironmentError) as exc_info:
            ConfigurationResolver(root, environ={}).resolve("qa")

        assert exc_info.value.environment == "qa"
        assert set(exc_info.value.declared) == {"staging", "production"}
        assert exc_info.value.error_code == ErrorCode.UNKNOWN_ENVIRONMENT

    def test_no_environment_selected(self, make_project, staging_manifest):
        root = make_project(staging_manifest)

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            ConfigurationResolver(root, environ={}).resolve()

        assert exc_info.value.field_name == "environment"

    def test_missing_required_field_names_field_and_environment(self, make_project, staging_manifest):
        del staging_manifest["shipout"]["staging"]["host"]
        root = make_project(staging_manifest)

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            ConfigurationResolver(root, environ={}).resolve("staging")

        assert exc_info.value.field_name == "host"
        assert exc_info.value.environment == "staging"
        assert 'environment "staging"' in str(exc_info.value)

    def test_environment_variables_do_not_override_environment_sections(self, make_project,
                                                                        staging_manifest):
        root = make_project(staging_manifest)
        environ = {"DEPLOY_SERVER": "other.example.net", "DEPLOY_BASE_DIR": "/elsewhere"}

        config = ConfigurationResolver(root, environ=environ).resolve("staging")

        assert config.host == "server.example.net"
        assert config.base_directory == "/some/path"

    def test_explicit_zero_keep_releases_is_honoured(self, make_project, staging_manifest):
        staging_manifest["shipout"]["staging"]["keep_releases"] = 0
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert config.keep_releases == 0
        assert config.cleanup_enabled

    def test_negative_keep_releases_disables_cleanup(self, make_project, staging_manifest):
        staging_manifest["shipout"]["staging"]["keep_releases"] = -1
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert not config.cleanup_enabled

    def test_default_port_logs_warning(self, make_project, staging_manifest, caplog):
        root = make_project(staging_manifest)

        with caplog.at_level(logging.WARNING, logger="shipout"):
            config = ConfigurationResolver(root, environ={}).resolve("production")

        assert config.port == 22
        assert "port not set in package.json" in caplog.text

    def test_username_defaults_to_invoking_user(self, make_project, staging_manifest):
        del staging_manifest["shipout"]["staging"]["username"]
        root = make_project(staging_manifest)

        with patch("shipout.core.config_resolver.getpass.getuser", return_value="alice"):
            config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert config.username == "alice"

    def test_required_tools_and_verbose(self, make_project, staging_manifest):
        staging_manifest["shipout"]["staging"]["required_tools"] = {"node": "18.0.0"}
        staging_manifest["shipout"]["staging"]["verbose"] = True
        root = make_project(staging_manifest)

        config = ConfigurationResolver(root, environ={}).resolve("staging")

        assert config.required_tools == {"node": "18.0.0"}
        assert config.verbose is True

    def test_forcing_multi_environment_without_environments_fails(self, make_project):
        root = make_project({"name": "app", "version": "1.0.0", "shipout": {}})

        with pytest.raises(ConfigurationError, match="No environments declared"):
            ConfigurationResolver(root, environ={}, multi_environment=True)

    def test_environment_must_be_an_object(self, make_project):
        root = make_project({"name": "app", "version": "1.0.0", "shipout": {"staging": "x"}})

        with pytest.raises(ConfigurationError, match="must be an object"):
            ConfigurationResolver(root, environ={})

    def test_invalid_setting_type(self, make_project, staging_manifest):
        staging_manifest["shipout"]["staging"]["keep_releases"] = "many"
        root = make_project(staging_manifest)

        with pytest.raises(ConfigurationError, match="Invalid settings"):
            ConfigurationResolver(root, environ={}).resolve("staging")

    def test_relative_base_directory_rejected(self, make_project, staging_manifest):
        staging_manifest["shipout"]["staging"]["base_directory"] = "some/path"
        root = make_project(staging_manifest)

        with pytest.raises(ConfigurationError, match="absolute"):
            ConfigurationResolver(root, environ={}).resolve("staging")

    @pytest.mark.parametrize("min_version", ["latest", ">=6"])
    def test_unparseable_minimum_tool_version_rejected(self, make_project, staging_manifest, min_version):
        staging_manifest["shipout"]["staging"]["required_tools"] = {"node": min_version}
        root = make_project(staging_manifest)

        with pytest.raises(ConfigurationError, match="Invalid minimum version for node") as exc_info:
            ConfigurationResolver(root, environ={}).resolve("staging")

        assert exc_info.value.error_code == ErrorCode.CONFIG_FORMAT_ERROR


class TestLegacy:
    """Flat settings with environment variable fallbacks"""

    @pytest.fixture
    def legacy_manifest(self):
        return {
            "name": "legacy-app",
            "version": "0.1.0",
            "shipout": {
                "deploy_server": "legacy.example.net",
                "deploy_user": "ops",
                "deploy_base_dir": "/opt/legacy",
                "app_environment": "production",
            },
        }

    def test_flat_section_selects_legacy_mode(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)

        resolver = ConfigurationResolver(root, environ={})

        assert resolver.mode == ConfigMode.LEGACY
        assert resolver.environments == []

    def test_aliases_are_normalized(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)

        config = ConfigurationResolver(root, environ={}).resolve()

        assert config.host == "legacy.example.net"
        assert config.username == "ops"
        assert config.base_directory == "/opt/legacy"
        assert config.environment == "production"

    def test_release_root_is_base_directory(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)

        config = ConfigurationResolver(root, environ={}).resolve()

        assert config.release_root == "/opt/legacy"

    def test_environment_variables_fill_missing_values(self, make_project):
        root = make_project({"name": "app", "version": "1.0.0"})
        environ = {
            "APP_ENVIRONMENT": "staging",
            "DEPLOY_SERVER": "env.example.net",
            "DEPLOY_USER": "envuser",
            "DEPLOY_BASE_DIR": "/from/env",
            "DEPLOY_PORT": "2222",
        }

        config = ConfigurationResolver(root, environ=environ).resolve()

        assert config.environment == "staging"
        assert config.host == "env.example.net"
        assert config.username == "envuser"
        assert config.base_directory == "/from/env"
        assert config.port == 2222

    def test_manifest_values_win_over_environment_variables(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)
        environ = {"DEPLOY_SERVER": "env.example.net", "DEPLOY_BASE_DIR": "/from/env"}

        config = ConfigurationResolver(root, environ=environ).resolve()

        assert config.host == "legacy.example.net"
        assert config.base_directory == "/opt/legacy"

    def test_app_environment_wins_over_manifest_environment(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)

        config = ConfigurationResolver(root, environ={"APP_ENVIRONMENT": "qa"}).resolve()

        assert config.environment == "qa"

    def test_missing_host(self, make_project):
        root = make_project({"name": "app", "version": "1.0.0"})

        with pytest.raises(MissingRequiredFieldError) as exc_info:
            ConfigurationResolver(root, environ={"APP_ENVIRONMENT": "qa"}).resolve()

        assert exc_info.value.field_name == "host"

    def test_invalid_port_from_environment(self, make_project, legacy_manifest):
        root = make_project(legacy_manifest)

        with pytest.raises(ConfigurationError, match="Invalid port"):
            ConfigurationResolver(root, environ={"DEPLOY_PORT": "ssh"}).resolve()


class TestManifestLoading:

    def test_missing_manifest(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationResolver(tmp_path, environ={})

        assert exc_info.value.error_code == ErrorCode.MANIFEST_NOT_FOUND

    def test_invalid_json(self, tmp_path):
        (tmp_path / "package.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid JSON"):
            ConfigurationResolver(tmp_path, environ={})

    def test_manifest_requires_name_and_version(self, make_project):
        root = make_project({"name": "app"})

        with pytest.raises(ConfigurationError, match="version"):
            ConfigurationResolver(root, environ={})

    def test_manifest_read_once(self, make_project, staging_manifest):
        root = make_project(staging_manifest)
        resolver = ConfigurationResolver(root, environ={})

        changed = dict(staging_manifest, shipout={})
        (root / "package.json").write_text(json.dumps(changed), encoding="utf-8")

        assert resolver.resolve("staging").host == "server.example.net"
        assert resolver.manifest.name == "my-app"

    def test_resolver_does_not_read_process_environment_when_given_mapping(
            self, make_project, staging_manifest, monkeypatch):
        monkeypatch.setenv("APP_ENVIRONMENT", "production")
        root = make_project(staging_manifest)

        with pytest.raises(MissingRequiredFieldError):
            ConfigurationResolver(root, environ={}).resolve()
