"""Configuration loader for the BookPub ingestion and publishing service."""

import os
from enum import Enum
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ChapterConvention(str, Enum):
    """Filename convention used to map chapter files to chapter folders.

    ``A``: ``{ISBN}-Chapter-{NNN}.{ext}`` (three digit chapter number).
    ``B``: ``{ISBN}-chapter{N}.{ext}`` (legacy).
    """

    A = "A"
    B = "B"


class InvalidNamePolicy(str, Enum):
    """What a scan cycle does after quarantining an archive with no ISBN name."""

    CONTINUE = "continue"
    ABORT = "abort"


class AppInfo(BaseModel):
    """Application metadata."""

    name: str = "BookPub"
    version: str = "1.0.0"


class IngestionConfig(BaseModel):
    """Drop folder ingestion configuration."""

    content_drop_dir: str = "./data/incoming/content"
    archive_extension: str = "zip"
    incoming_folder_path: str = "/BestPub/Incoming/Content"
    chapter_convention: ChapterConvention = ChapterConvention.A
    invalid_name_policy: InvalidNamePolicy = InvalidNamePolicy.CONTINUE


class PublishingConfig(BaseModel):
    """Artifact assembly and delivery configuration."""

    pickup_dir: str = "./data/epubs"
    artifact_extension: str = "epub"
    artifact_mimetype: str = "application/epub+zip"
    temp_dir: str | None = None  # system temp directory when unset


class StorageConfig(BaseModel):
    """Storage paths configuration."""

    sqlite_path: str = "./db/content.db"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


class AppConfig(BaseModel):
    """Root application configuration."""

    app: AppInfo = Field(default_factory=AppInfo)
    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    publishing: PublishingConfig = Field(default_factory=PublishingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# Environment variable -> (section, field)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "BOOKPUB_CONTENT_DROP_DIR": ("ingestion", "content_drop_dir"),
    "BOOKPUB_PICKUP_DIR": ("publishing", "pickup_dir"),
    "BOOKPUB_SQLITE_PATH": ("storage", "sqlite_path"),
    "BOOKPUB_LOG_LEVEL": ("logging", "level"),
}


def load_config(config_path: str | Path = "config.yaml") -> AppConfig:
    """Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Fully populated AppConfig instance.
    """
    load_dotenv()

    yaml_data: dict = {}
    config_file = Path(config_path)
    if config_file.exists():
        with open(config_file) as f:
            yaml_data = yaml.safe_load(f) or {}

    config = AppConfig(**yaml_data)

    # Environment wins over the YAML file
    for env_name, (section, field) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(getattr(config, section), field, value)

    return config
