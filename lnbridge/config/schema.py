"""Configuration schema using Pydantic.

Each backend declares its options as a model: fields without a default are
required, everything else carries the backend's default value.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

DEFAULT_MAX_BUFFER_BYTES = 10 * 1024 * 1024  # 10 MiB


class CredentialData(BaseModel):
    """In-memory certificate or macaroon material."""
    data: str | bytes

    @field_validator("data")
    @classmethod
    def _not_empty(cls, value: str | bytes) -> str | bytes:
        if not value:
            raise ValueError("Expected { data: Buffer/String }")
        return value


# A path on disk, or the material itself.
Credential = str | CredentialData


class CommandConfig(BaseModel):
    """Command queue settings for the stream JSON-RPC backend."""
    concurrency: int = Field(default=7, ge=1)  # Simultaneous in-flight writes
    prefix: str = "clightning"  # Request id prefix


class CLightningOptions(BaseModel):
    """c-lightning backend options (JSON-RPC over the lightning-rpc socket)."""
    model_config = ConfigDict(extra="ignore")

    node_uri: str  # Advertised "pubkey@host:port"
    socket: str  # Unix socket path, or tcp://host:port
    cmd: CommandConfig = Field(default_factory=CommandConfig)
    delimiter: str = "\n"
    max_buffer_bytes: int = Field(default=DEFAULT_MAX_BUFFER_BYTES, ge=1024)
    max_pending: int | None = Field(default=None, ge=1)  # None = unbounded registry

    @field_validator("node_uri", "socket")
    @classmethod
    def _required_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("delimiter")
    @classmethod
    def _delimiter_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("delimiter must not be empty")
        return value


class LndOptions(BaseModel):
    """lnd backend options (REST over TLS, macaroon authenticated)."""
    model_config = ConfigDict(extra="ignore")

    hostname: str = "127.0.0.1:8080"
    cert: Credential
    macaroon: Credential
    protocol: Literal["https", "http"] = "https"
    timeout: float = Field(default=30.0, gt=0)  # Seconds per HTTP request

    @field_validator("hostname")
    @classmethod
    def _hostname_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()


class Config(BaseSettings):
    """Root configuration: which backend to run and its raw options."""
    backend: str = "lnd"
    options: dict[str, Any] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        env_prefix="LNBRIDGE_",
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # LNBRIDGE_* variables override values read from the config file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings
