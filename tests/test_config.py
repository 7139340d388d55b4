"""Tests for configuration loading."""

from pathlib import Path

import yaml

from bookpub.config import AppConfig, ChapterConvention, InvalidNamePolicy, load_config


class TestAppConfigDefaults:
    """Test that AppConfig provides sensible defaults."""

    def test_default_config_creates_successfully(self) -> None:
        config = AppConfig()
        assert config.app.name == "BookPub"
        assert config.app.version == "1.0.0"

    def test_default_ingestion_config(self) -> None:
        config = AppConfig()
        assert config.ingestion.archive_extension == "zip"
        assert config.ingestion.incoming_folder_path == "/BestPub/Incoming/Content"
        assert config.ingestion.chapter_convention is ChapterConvention.A
        assert config.ingestion.invalid_name_policy is InvalidNamePolicy.CONTINUE

    def test_default_publishing_config(self) -> None:
        config = AppConfig()
        assert config.publishing.artifact_extension == "epub"
        assert config.publishing.artifact_mimetype == "application/epub+zip"
        assert config.publishing.temp_dir is None

    def test_default_logging_config(self) -> None:
        config = AppConfig()
        assert config.logging.level == "INFO"
        assert "%(message)s" in config.logging.format


class TestLoadConfig:
    """Test loading config from YAML files."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        yaml_data = {
            "app": {"name": "Test App", "version": "0.1.0"},
            "ingestion": {"chapter_convention": "B", "invalid_name_policy": "abort"},
        }
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump(yaml_data))

        config = load_config(config_file)
        assert config.app.name == "Test App"
        assert config.app.version == "0.1.0"
        assert config.ingestion.chapter_convention is ChapterConvention.B
        assert config.ingestion.invalid_name_policy is InvalidNamePolicy.ABORT
        # Other fields keep defaults
        assert config.ingestion.archive_extension == "zip"
        assert config.publishing.pickup_dir == "./data/epubs"

    def test_load_missing_yaml_uses_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nonexistent.yaml")
        assert config.app.name == "BookPub"

    def test_empty_yaml_uses_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        config = load_config(config_file)
        assert config.storage.sqlite_path == "./db/content.db"

    def test_env_vars_override_yaml(self, tmp_path: Path, monkeypatch: object) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"publishing": {"pickup_dir": "/from/yaml"}}))

        monkeypatch.setenv("BOOKPUB_PICKUP_DIR", "/from/env")  # type: ignore[attr-defined]
        monkeypatch.setenv("BOOKPUB_CONTENT_DROP_DIR", "/drop")  # type: ignore[attr-defined]
        monkeypatch.setenv("BOOKPUB_SQLITE_PATH", "/db/test.db")  # type: ignore[attr-defined]
        monkeypatch.setenv("BOOKPUB_LOG_LEVEL", "DEBUG")  # type: ignore[attr-defined]

        config = load_config(config_file)
        assert config.publishing.pickup_dir == "/from/env"
        assert config.ingestion.content_drop_dir == "/drop"
        assert config.storage.sqlite_path == "/db/test.db"
        assert config.logging.level == "DEBUG"

    def test_load_project_config_yaml(self) -> None:
        """Test loading the actual project config.yaml."""
        config = load_config("config.yaml")
        assert config.app.name == "BookPub"
        assert config.storage.sqlite_path == "./db/content.db"
        assert config.ingestion.content_drop_dir == "./data/incoming/content"
