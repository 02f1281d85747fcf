"""Runtime settings loaded from `.env` and environment variables."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from layoutguard.exceptions import SettingsError
from layoutguard.typing.enums import TrailingPolicy

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Package settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_name: str = "layoutguard"
    app_env: str = Field(
        default="dev",
        validation_alias="APP_ENV",
        description="Application environment, e.g. 'dev', 'prod'.",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level, e.g. 'INFO', 'DEBUG'.",
    )
    log_json: bool = Field(
        default=True,
        validation_alias="LOG_JSON",
        description="Enable JSON formatted logs.",
    )
    log_file: str | None = Field(
        default=None,
        validation_alias="LOG_FILE",
        description="File path for log output.",
    )
    file_encoding: str = Field(
        default="latin-1",
        validation_alias="FILE_ENCODING",
        description="Text encoding of regulatory files read from disk.",
    )
    trailing_policy: TrailingPolicy = Field(
        default=TrailingPolicy.IGNORE,
        validation_alias="TRAILING_POLICY",
        description="How characters beyond a record's declared length are treated.",
    )
    max_violations: int | None = Field(
        default=None,
        ge=1,
        validation_alias="MAX_VIOLATIONS",
        description="Maximum number of violation entries kept per file; counters stay exact.",
    )
    shard_size: int = Field(
        default=5000,
        ge=1,
        validation_alias="SHARD_SIZE",
        description="Number of lines per shard for concurrent validation.",
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        validation_alias="MAX_WORKERS",
        description="Maximum number of shards validated concurrently.",
    )
    rules_path: str | None = Field(
        default=None,
        validation_alias="RULES_PATH",
        description="Extra layout bundle file or directory loaded on top of the bundled layouts.",
    )
    results_dir: str = Field(
        default="results",
        validation_alias="RESULTS_DIR",
        description="Directory to store validation results.",
    )

    @field_validator("trailing_policy", mode="before")
    @classmethod
    def _parse_trailing_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return TrailingPolicy.from_str(value)
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance.

    Raises:
        SettingsError: If settings cannot be loaded or validated.

    Returns:
        Settings: The loaded settings instance.
    """
    try:
        return Settings()
    except Exception as exc:
        if _is_missing_settings_error(exc):
            ensure_env_file_exists()
            try:
                return Settings()
            except Exception as retry_exc:
                raise SettingsError(exc=retry_exc) from retry_exc
        raise SettingsError(exc=exc) from exc


def ensure_env_file_exists(
    *,
    env_path: Path = Path(".env"),
    template_path: Path = Path(".env.template"),
) -> None:
    """Create `.env` from template when missing.

    Args:
        env_path (Path): Target environment file path.
        template_path (Path): Template file path.
    """
    if env_path.exists() or not template_path.exists():
        return
    env_path.write_text(template_path.read_text(encoding="utf-8"), encoding="utf-8")
    logger.info(
        "Created environment file from template",
        extra={"env_path": str(env_path), "template_path": str(template_path)},
    )


def _is_missing_settings_error(exc: Exception) -> bool:
    """Return whether the settings failure is due to missing values.

    Args:
        exc (Exception): Caught settings initialization error.

    Returns:
        bool: True when the error represents missing settings values.
    """
    if not isinstance(exc, ValidationError):
        return False
    return any(error.get("type") == "missing" for error in exc.errors())
