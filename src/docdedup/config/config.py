"""
Configuration management for docdedup using Pydantic.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docdedup.protocols import DocumentSource

# --- Setup Logging ---
log = logging.getLogger(__name__)

MAX_BATCH_SIZE = 1000


class ConfigurationError(ValueError):
    """Raised when a configuration value is out of range or unsupported."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []

    @classmethod
    def from_validation_error(cls, error: ValidationError) -> ConfigurationError:
        fields: List[str] = []
        details: List[str] = []
        for item in error.errors():
            name = ".".join(str(part) for part in item["loc"]) or "<root>"
            fields.append(name)
            details.append(f"{name}: {item['msg']}")
        return cls("Invalid deduplication configuration: " + "; ".join(details), fields)


# --- Nested Configuration Models ---


class DeduplicationConfig(BaseModel):
    """Deduplication policy, fixed for the lifetime of a pipeline instance."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    hash_algorithm: Literal["sha256", "md5"] = Field(
        default="sha256", description="Digest used for content, URL and fingerprint hashes."
    )
    content_threshold: int = Field(
        default=100,
        gt=0,
        description="Documents whose trimmed content length is at or below this value are skipped.",
    )
    similarity_threshold: float = Field(
        default=0.95,
        ge=0.0,
        le=1.0,
        description="Minimum combined similarity for two documents to be near-duplicates.",
    )
    source_winners: List[DocumentSource] = Field(
        default_factory=lambda: [DocumentSource.REPOSITORY, DocumentSource.WEB, DocumentSource.LOCAL],
        description="Source priority order; earlier entries win canonical selection.",
    )
    preserve_metadata: bool = Field(
        default=True, description="Carry stored metadata onto documents matched in the document store."
    )
    batch_size: int = Field(
        default=100,
        gt=0,
        le=MAX_BATCH_SIZE,
        description="Upper bound on documents grouped together in one pass.",
    )

    @field_validator("source_winners")
    @classmethod
    def validate_source_winners(cls, v: List[DocumentSource]) -> List[DocumentSource]:
        if len(set(v)) != len(v):
            raise ValueError("source_winners must not contain repeated sources")
        return v

    @classmethod
    def build(cls, overrides: Optional[Dict[str, Any]] = None) -> DeduplicationConfig:
        """Validate ``overrides`` on top of the defaults, raising ConfigurationError."""
        try:
            return cls.model_validate(overrides or {})
        except ValidationError as e:
            raise ConfigurationError.from_validation_error(e) from e


class StoreConfig(BaseModel):
    """Configuration for the SQLite reference document store."""

    db_path: Path = Field(default=Path("data/documents.db"), description="SQLite database file path")
    wal_mode: bool = Field(default=True, description="Enable Write-Ahead Logging for higher concurrency.")

    @field_validator("db_path", mode="before")
    @classmethod
    def ensure_db_directory(cls, v: Any) -> Path:
        """Ensure database directory exists."""
        path = Path(v) if not isinstance(v, Path) else v
        path.parent.mkdir(parents=True, exist_ok=True)
        return path


class MonitoringConfig(BaseModel):
    """Configuration for structured logging."""

    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING).")
    log_file: str | None = Field(default=None, description="Path to log file. If None, logs to console.")

    @field_validator("log_file", mode="before")
    @classmethod
    def create_parent_dir(cls, v: str | Path | None) -> str | None:
        if v is None:
            return None
        path = Path(v)
        path.parent.mkdir(parents=True, exist_ok=True)
        return str(path)


# --- Main Configuration Class ---


class Config(BaseSettings):
    project_name: str = "docdedup"
    deduplication: DeduplicationConfig = Field(default_factory=DeduplicationConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    model_config = SettingsConfigDict(env_prefix="DOCDEDUP_", env_nested_delimiter="__", case_sensitive=False)

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        log.debug("Loading configuration from YAML file: %s", path)
        if not path.is_file():
            raise FileNotFoundError(f"Configuration file not found or is not a file: {path}")
        with open(path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f)
        if not yaml_data:
            log.warning("Configuration file is empty: %s. Using default settings.", path)
            return cls.model_validate({})
        try:
            return cls.model_validate(yaml_data)
        except ValidationError as e:
            raise ConfigurationError.from_validation_error(e) from e


def find_config_file() -> Path | None:
    current_dir = Path.cwd()
    paths_to_check = [
        current_dir / "docdedup.yaml",
        current_dir / "docdedup.yml",
    ]
    for path in paths_to_check:
        if path.exists():
            return path
    return None


def load_config(path: Path | None = None) -> Config:
    """
    Build a Config from an explicit file, a discovered file, or defaults.

    Environment variables prefixed with ``DOCDEDUP_`` apply when no file
    is used. Invalid values raise ConfigurationError immediately.
    """
    config_path = path or find_config_file()
    if config_path:
        log.info("Loading configuration from: %s", config_path)
        return Config.from_yaml(config_path)

    log.info("No config file found. Using default settings.")
    try:
        return Config()
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(e) from e
