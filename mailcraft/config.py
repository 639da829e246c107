"""Settings loaded from environment variables.

Uses pydantic-settings so every field can be overridden via env vars.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class MessageConfig(BaseSettings):
    """Message composition settings."""

    model_config = {"env_prefix": "MAILCRAFT_"}

    message_id_suffix: str = Field(
        default="lettre@localhost",
        description="Suffix of generated Message-IDs: <uuid.SUFFIX>",
    )
    boundary_length: int = Field(
        default=30,
        ge=16,
        le=70,
        description="Length of generated multipart boundaries",
    )


class FileTransportConfig(BaseSettings):
    """Directory the file transport writes messages into."""

    model_config = {"env_prefix": "MAILCRAFT_FILE_"}

    directory: str = Field(default=".", description="Target directory for <message_id>.json files")


class SendmailConfig(BaseSettings):
    """Local sendmail executable settings."""

    model_config = {"env_prefix": "MAILCRAFT_SENDMAIL_"}

    command: str = Field(default="/usr/sbin/sendmail", description="Path to the sendmail binary")
    timeout_seconds: float = Field(default=60.0, description="Seconds to wait for sendmail to exit")


class LoggingConfig(BaseSettings):
    """Log output settings, consumed by :func:`mailcraft.logging.setup_logging`."""

    model_config = {"env_prefix": "MAILCRAFT_LOG_"}

    json_output: bool = Field(default=True, description="JSON lines instead of console rendering")
    level: str = Field(default="INFO", description="Root log level name")
    library_level: str | None = Field(
        default=None,
        description="Level for the mailcraft logger; inherits the root level when unset",
    )
    mask_addresses: bool = Field(
        default=False,
        description="Hide local parts of envelope addresses in log events",
    )
