"""The finished, transport-ready message."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .envelope import Envelope


class Email(BaseModel):
    """Product of :meth:`EmailBuilder.build`.

    Self-contained and immutable: transports consume the envelope, the
    message id and the formatted bytes, never the builder that made them.
    """

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    envelope: Envelope = Field(description="SMTP envelope derived at build time")
    message_id: str = Field(description="Caller-supplied id, or the generated UUID")
    message: bytes = Field(description="Formatted RFC 5322 message, CRLF terminated")

    def formatted(self) -> bytes:
        return self.message

    def message_to_string(self) -> str:
        return self.message.decode("utf-8")
