"""File transport: writes each message as ``<message_id>.json`` into a directory.

Handy for debugging, or for keeping a record of everything that was sent.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from .config import FileTransportConfig
from .envelope import Envelope
from .errors import TransportError
from .models import Email
from .transport import Transport

logger = structlog.get_logger()


class FileTransport(Transport):
    """Dump the envelope, message id and message to a JSON file."""

    def __init__(self, config: FileTransportConfig | None = None) -> None:
        self._config = config or FileTransportConfig()

    @property
    def directory(self) -> Path:
        return Path(self._config.directory)

    def send_raw(self, envelope: Envelope, message_id: str, message: bytes) -> Path:
        """Write the message and return the path of the file created."""
        target = self.directory / f"{_sanitize_filename(message_id)}.json"
        payload = Email(envelope=envelope, message_id=message_id, message=message)
        try:
            target.write_text(payload.model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            raise TransportError(f"Cannot write {target}: {exc}") from exc
        logger.info("message_written", message_id=message_id, path=str(target))
        return target


def _sanitize_filename(name: str) -> str:
    """Remove characters unsafe for file names."""
    return re.sub(r"[^\w.\-]", "_", name)
