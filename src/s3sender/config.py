"""S3 sender configuration.

Declarative per-sender configuration plus environment-level settings
(endpoint, timeouts, credentials) loaded with pydantic-settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from s3sender.models import Parameter


class S3SenderConfig(BaseModel):
    """Sender configuration.

    Immutable once built. Values are checked by ``ConfigurationValidator``
    when the sender is configured, not by the model itself, so that every
    problem surfaces as a ``ConfigurationError``.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(
        default="S3Sender",
        description="Sender name used in logs and error messages",
    )
    client_region: str = Field(
        default="eu-central-1",
        description="Region the client is created for",
    )
    actions: str = Field(
        default="",
        description="Actions separated by whitespace or commas",
    )
    bucket_name: str = Field(
        default="",
        description="Bucket all actions operate on",
    )
    bucket_region: str | None = Field(
        default=None,
        description="Region for new buckets when global bucket access is enabled",
    )
    chunked_encoding_disabled: bool = Field(
        default=False,
        description="Disable aws-chunked request encoding",
    )
    accelerate_mode_enabled: bool = Field(
        default=False,
        description="Use the S3 transfer acceleration endpoint (extra costs)",
    )
    force_global_bucket_access_enabled: bool = Field(
        default=False,
        description="Allow creating buckets in regions other than the client region",
    )
    bucket_creation_enabled: bool = Field(
        default=False,
        description="Create missing buckets when uploading or copying",
    )
    download_directory: Path | None = Field(
        default=None,
        description="Directory downloaded objects are written to",
    )
    parameters: tuple[Parameter, ...] = Field(
        default=(),
        description="Parameters resolved per invocation",
    )

    def find_parameter(self, name: str) -> Parameter | None:
        """Find a declared parameter by name.

        Args:
            name: Parameter name

        Returns:
            The declaration, or None when not declared
        """
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None


class S3SenderSettings(BaseSettings):
    """Environment-level client settings."""

    model_config = SettingsConfigDict(
        env_prefix="S3_SENDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    endpoint_url: str | None = Field(
        default=None,
        description="Custom endpoint URL (for S3-compatible services)",
    )
    use_ssl: bool = True
    connect_timeout: float = Field(default=60.0, gt=0, le=3600)
    read_timeout: float = Field(default=60.0, gt=0, le=3600)
    max_pool_connections: int = Field(default=10, ge=1, le=1000)
    download_chunk_size: int = Field(default=1024 * 1024, ge=1024)


class EnvironmentCredentials(BaseSettings):
    """AWS credentials taken from the standard environment variables."""

    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    aws_access_key_id: str | None = None
    aws_secret_access_key: SecretStr | None = None
    aws_session_token: SecretStr | None = None

    def is_complete(self) -> bool:
        """Check that both the key ID and the secret are present."""
        return bool(self.aws_access_key_id) and self.aws_secret_access_key is not None


@lru_cache
def get_settings() -> S3SenderSettings:
    """Get cached sender settings."""
    return S3SenderSettings()
