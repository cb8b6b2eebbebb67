import logging
import os
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "CERTWATCH_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
DEFAULT_WARNING_THRESHOLD = timedelta(days=20)
DEFAULT_CRITICAL_THRESHOLD = timedelta(days=3)


def is_valid_date_format(fmt: Any) -> bool:
    """Check that fmt is a strftime pattern that actually formats something."""
    if not isinstance(fmt, str) or "%" not in fmt:
        return False
    try:
        datetime.now(timezone.utc).strftime(fmt)
    except ValueError:
        return False
    return True


def seconds_to_timedelta(v: Any) -> Any:
    """Plain numbers, including numeric strings from the environment, are seconds."""
    if isinstance(v, str) and v.strip():
        try:
            return timedelta(seconds=float(v))
        except (ValueError, OverflowError):
            return v  # ISO-8601 duration, left to pydantic
    return v


class CertificateEntry(BaseModel):
    """One configured certificate source."""

    name: str = Field(min_length=1)  # logical name, first half of the identity
    path: str = Field(min_length=1)
    type: str = Field(min_length=1)  # pem, crt, jks, jceks, dks, p12, pkcs12, pkcs11
    password: str | None = None  # literal or env:/file:/json:/yaml:/ini:/properties:/toml: reference


class DashboardSettings(BaseModel):
    # Rows turn warn/crit when the certificate expires within these windows
    warning_threshold: timedelta = DEFAULT_WARNING_THRESHOLD
    critical_threshold: timedelta = DEFAULT_CRITICAL_THRESHOLD
    date_format: str = DEFAULT_DATE_FORMAT

    @field_validator("warning_threshold", mode="before")
    @classmethod
    def default_warning_threshold(cls, v: Any) -> Any:
        return DEFAULT_WARNING_THRESHOLD if v is None else seconds_to_timedelta(v)

    @field_validator("critical_threshold", mode="before")
    @classmethod
    def default_critical_threshold(cls, v: Any) -> Any:
        return DEFAULT_CRITICAL_THRESHOLD if v is None else seconds_to_timedelta(v)

    @field_validator("date_format", mode="before")
    @classmethod
    def fallback_date_format(cls, v: Any) -> Any:
        if not is_valid_date_format(v):
            if v is not None:
                logger.warning("Invalid date_format '%s', using default.", v)
            return DEFAULT_DATE_FORMAT
        return v


class Settings(BaseSettings):
    # Service
    service_name: str = "certwatch"
    server_port: int = 8080
    version: str = "1.0.0"
    log_level: str = "INFO"

    # Polling
    check_interval: timedelta = timedelta(minutes=10)
    scheduler_enabled: bool = True

    # Sources, in processing order
    certificates: list[CertificateEntry] = []

    dashboard: DashboardSettings = DashboardSettings()

    @field_validator("server_port", mode="before")
    @classmethod
    def empty_str_to_default(cls, v: Any) -> Any:
        if isinstance(v, str) and v.strip() == "":
            return 8080
        return v

    @field_validator("check_interval", mode="before")
    @classmethod
    def interval_seconds(cls, v: Any) -> Any:
        return seconds_to_timedelta(v)

    @field_validator("certificates", "dashboard", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any, info: Any) -> Any:
        if v is None:
            return [] if info.field_name == "certificates" else {}
        return v

    class Config:
        env_prefix = "CERTWATCH_"
        env_file = ".env"
        env_nested_delimiter = "__"
        case_sensitive = False
        extra = "ignore"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Environment wins over the YAML config file; a missing file is skipped."""
        yaml_file = os.environ.get(CONFIG_FILE_ENV, DEFAULT_CONFIG_FILE)
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=yaml_file),
            file_secret_settings,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
