"""Transport interface and the stub transport.

Transports consume the finished :class:`Email` (envelope, message id and
bytes).  They never see builder state.
"""

from __future__ import annotations

import abc
from typing import Any

import structlog

from .envelope import Envelope
from .errors import TransportError
from .models import Email

logger = structlog.get_logger()


class Transport(abc.ABC):
    """Abstract interface for a mail transport."""

    def send(self, email: Email) -> Any:
        """Send a built message; delegates to :meth:`send_raw`."""
        return self.send_raw(email.envelope, email.message_id, email.formatted())

    @abc.abstractmethod
    def send_raw(self, envelope: Envelope, message_id: str, message: bytes) -> Any:
        """Deliver *message* to the recipients of *envelope*."""
        ...


class StubTransport(Transport):
    """Logs the envelope, drops the content, and returns a canned outcome.

    Useful in tests and dry runs.  With ``ok=False`` every send raises
    :class:`TransportError`.
    """

    def __init__(self, *, ok: bool = True) -> None:
        self._ok = ok
        self.sent: list[tuple[Envelope, str]] = []

    def send_raw(self, envelope: Envelope, message_id: str, message: bytes) -> None:
        logger.info(
            "stub_send",
            message_id=message_id,
            mail_from=envelope.mail_from_command(),
            rcpt_to=envelope.rcpt_to_commands(),
            size=len(message),
        )
        self.sent.append((envelope, message_id))
        if not self._ok:
            raise TransportError(f"Stub transport configured to fail ({message_id})")
