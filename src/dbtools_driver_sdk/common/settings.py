from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

from dbtools_driver_sdk.capabilities import HostCapability

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Driver layer configuration backed by environment variables."""

    host: Optional[HostCapability] = Field(
        default=None,
        validation_alias="DBTOOLS_HOST_CAPABILITY",
        description="Host capability: 'native' or 'sandboxed'.",
    )
    native_runtime: bool = Field(
        default=False,
        validation_alias="DBTOOLS_NATIVE_RUNTIME",
        description="Legacy flag; '1' marks the host as a native runtime.",
    )

    log_level: str = Field(default="INFO", validation_alias="DBTOOLS_LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="DBTOOLS_LOG_JSON")
    auto_configure_logging: bool = Field(
        default=False,
        validation_alias="DBTOOLS_CONFIGURE_LOGGING",
        description="Opt in to installing the package log handler on the root logger at import.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def host_capability(self) -> HostCapability:
        """Resolves the explicit capability first, then the legacy flag."""
        if self.host is not None:
            return self.host
        return HostCapability.NATIVE if self.native_runtime else HostCapability.SANDBOXED


settings = Settings()

# Hosts own the root logger; only configure it here when asked to
from dbtools_driver_sdk.common.logger import configure_logging

if settings.auto_configure_logging:
    configure_logging(level=settings.log_level, json_format=settings.log_json)
