"""Sendmail transport: pipes each message into the local ``sendmail`` binary."""

from __future__ import annotations

import subprocess

import structlog

from .config import SendmailConfig
from .envelope import Envelope
from .errors import TransportError
from .transport import Transport

logger = structlog.get_logger()


class SendmailTransport(Transport):
    """Run ``<command> -i -f <from> -- <to…>`` with the message on stdin."""

    def __init__(self, config: SendmailConfig | None = None) -> None:
        self._config = config or SendmailConfig()

    def command_line(self, envelope: Envelope) -> list[str]:
        reverse_path = envelope.from_address or "<>"
        return [self._config.command, "-i", "-f", reverse_path, "--", *envelope.to]

    def send_raw(self, envelope: Envelope, message_id: str, message: bytes) -> None:
        args = self.command_line(envelope)
        try:
            result = subprocess.run(
                args,
                input=message,
                capture_output=True,
                timeout=self._config.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise TransportError(f"sendmail timed out after {exc.timeout}s") from exc
        except OSError as exc:
            raise TransportError(f"Cannot run {self._config.command}: {exc}") from exc

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            raise TransportError(
                f"sendmail exited with status {result.returncode}: {stderr}"
            )
        logger.info("message_piped_to_sendmail", message_id=message_id, recipients=len(envelope.to))
