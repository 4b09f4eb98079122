"""
Configuration management for the indexer and search services.

Uses pydantic-settings to load configuration from environment variables
and an optional .env file. Settings are loaded once at startup and passed
explicitly to the components that need them.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EMBEDDING_MODEL = "ts/all-MiniLM-L12-v2"
DEFAULT_EMBEDDING_FIELDS = ["title", "tags", "content"]


@dataclass(frozen=True)
class EngineConfig:
    """Search engine client configuration."""

    base_url: str
    api_key: str
    collection_name: str = "ads"
    timeout: float = 100.0


@dataclass(frozen=True)
class ImportConfig:
    """Bulk import behaviour."""

    batch_size: int = 40
    max_attempts: int = 3
    base_delay: float = 2.0
    settle_seconds: float = 1.0


class Settings(BaseSettings):
    """
    Process settings. Field names map to the upper-case environment
    variables (e.g. ``search_engine_api_url`` -> ``SEARCH_ENGINE_API_URL``).
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore")

    # HTTP
    port: int = Field(8080, ge=1, le=65535)

    # Search engine
    search_engine_api_url: str = Field("http://localhost:8108", description="Engine base URL")
    search_engine_api_key: str = Field("xyz", min_length=1)
    search_engine_collection_name: str = Field("ads", min_length=1)
    search_engine_timeout_seconds: float = Field(100.0, gt=0)

    # Ingestion
    data_file: str = Field("data.txt", description="Newline-delimited JSON source")
    import_batch_size: int = Field(40, ge=1)
    import_max_attempts: int = Field(3, ge=1, le=10)
    import_settle_seconds: float = Field(1.0, ge=0)
    strict_ids: bool = Field(True, description="Abort the load when a record has no id")
    strict_parse: bool = Field(False, description="Abort the load on a malformed line")
    provision_on_startup: bool = True

    # Schema
    embedding_model: str = DEFAULT_EMBEDDING_MODEL
    embedding_source_fields: str = Field(
        ",".join(DEFAULT_EMBEDDING_FIELDS), description="Comma separated list or JSON array of field names"
    )

    # Synonyms
    synonyms_file: Optional[str] = None

    # Front-end
    static_dir: str = Field("static", description="Directory served at / when it exists")

    # Query shaping
    vector_alpha: float = Field(0.8, ge=0.0, le=1.0)
    distance_threshold: float = Field(1.0, gt=0.0)
    drop_tokens_threshold: int = Field(0, ge=0)
    default_per_page: int = Field(9, ge=1, le=250)

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    json_logs: bool = Field(False, description="Whether to output JSON format logs")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("search_engine_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("embedding_source_fields")
    @classmethod
    def validate_embedding_fields(cls, v: str) -> str:
        fields = parse_field_list(v)
        if not fields:
            raise ValueError("embedding_source_fields must name at least one field")
        return ",".join(fields)

    @property
    def embedding_fields(self) -> List[str]:
        return parse_field_list(self.embedding_source_fields)

    def to_engine_config(self) -> EngineConfig:
        """Convert to the immutable client configuration."""
        return EngineConfig(
            base_url=self.search_engine_api_url,
            api_key=self.search_engine_api_key,
            collection_name=self.search_engine_collection_name,
            timeout=self.search_engine_timeout_seconds,
        )

    def to_import_config(self) -> ImportConfig:
        return ImportConfig(
            batch_size=self.import_batch_size,
            max_attempts=self.import_max_attempts,
            settle_seconds=self.import_settle_seconds,
        )


def parse_field_list(value: Union[str, List[str], None]) -> List[str]:
    """Parse a JSON array or comma separated string of field names."""
    if value is None:
        return []
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    if value.lstrip().startswith("["):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON string for field list: {e}")
        if not isinstance(parsed, list):
            raise ValueError("field list JSON must be an array")
        return [str(item).strip() for item in parsed if str(item).strip()]
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings(**overrides) -> Settings:
    """Load settings from the environment, applying explicit overrides."""
    return Settings(**overrides)
