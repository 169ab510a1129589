"""Tests for StorageConfig."""

from __future__ import annotations

import logging
from pathlib import Path

from smello_project_storage.storage import CosmosAuthMethod, StorageConfig

_ENV_VARS = (
    "SMELLO_COSMOS_ENDPOINT",
    "SMELLO_COSMOS_KEY",
    "SMELLO_COSMOS_DATABASE",
    "SMELLO_COSMOS_CONTAINER",
    "SMELLO_COSMOS_AUTH_METHOD",
    "SMELLO_LOCAL_STORAGE_PATH",
)


class TestDefaults:
    def test_minimal_config_is_local_only(self) -> None:
        config = StorageConfig()

        assert config.cloud_enabled is False
        assert config.cosmos_database == "smello-db"
        assert config.cosmos_container == "projects"
        assert config.cosmos_auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL
        assert config.resolved_local_path() == Path.home() / ".smello" / "projects.json"

    def test_endpoint_enables_cloud(self) -> None:
        assert StorageConfig(cosmos_endpoint="https://x.documents.azure.com").cloud_enabled


class TestFromEnvironment:
    def test_reads_smello_variables(self, monkeypatch, tmp_path: Path) -> None:
        for name in _ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("SMELLO_COSMOS_ENDPOINT", "https://x.documents.azure.com")
        monkeypatch.setenv("SMELLO_COSMOS_AUTH_METHOD", "KEY")
        monkeypatch.setenv("SMELLO_COSMOS_KEY", "secret")
        monkeypatch.setenv("SMELLO_COSMOS_DATABASE", "other-db")
        monkeypatch.setenv("SMELLO_LOCAL_STORAGE_PATH", str(tmp_path / "p.json"))

        config = StorageConfig.from_environment()

        assert config.cosmos_endpoint == "https://x.documents.azure.com"
        assert config.cosmos_auth_method == CosmosAuthMethod.KEY
        assert config.cosmos_key == "secret"
        assert config.cosmos_database == "other-db"
        assert config.cosmos_container == "projects"
        assert config.resolved_local_path() == tmp_path / "p.json"

    def test_unknown_auth_method_falls_back_to_default(self, monkeypatch) -> None:
        monkeypatch.setenv("SMELLO_COSMOS_AUTH_METHOD", "carrier-pigeon")
        config = StorageConfig.from_environment()
        assert config.cosmos_auth_method == CosmosAuthMethod.DEFAULT_CREDENTIAL

    def test_no_endpoint_means_local_only(self, monkeypatch) -> None:
        for name in _ENV_VARS:
            monkeypatch.delenv(name, raising=False)
        assert StorageConfig.from_environment().cloud_enabled is False


class TestFromFile:
    def test_reads_storage_section(self, tmp_path: Path, caplog) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text(
            "storage:\n"
            "  cosmos_endpoint: https://x.documents.azure.com\n"
            "  cosmos_auth_method: managed_identity\n"
            "  cosmos_container: smello-projects\n"
            "  local_path: ~/somewhere/projects.json\n"
            "  request_timeout: 30\n"
            "other:\n"
            "  ignored: true\n"
        )

        with caplog.at_level(logging.WARNING):
            config = StorageConfig.from_file(settings)

        assert config.cosmos_endpoint == "https://x.documents.azure.com"
        assert config.cosmos_auth_method == CosmosAuthMethod.MANAGED_IDENTITY
        assert config.cosmos_container == "smello-projects"
        assert config.local_path == "~/somewhere/projects.json"
        assert not hasattr(config, "request_timeout")
        assert "Ignoring unknown storage settings" in caplog.text
        assert "request_timeout" in caplog.text

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        assert StorageConfig.from_file(tmp_path / "nope.yaml") == StorageConfig()

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("")
        assert StorageConfig.from_file(settings) == StorageConfig()

    def test_known_settings_do_not_warn(self, tmp_path: Path, caplog) -> None:
        settings = tmp_path / "settings.yaml"
        settings.write_text("storage:\n  cosmos_database: other-db\n")

        with caplog.at_level(logging.WARNING):
            config = StorageConfig.from_file(settings)

        assert config.cosmos_database == "other-db"
        assert "Ignoring unknown storage settings" not in caplog.text
