"""SMTP envelope model and its derivation from builder state.

The envelope is what an SMTP session sees (``MAIL FROM`` / ``RCPT TO``).
It is distinct from the visible ``From``/``To``/``Cc`` headers: Bcc
recipients appear only here, and a ``Sender`` takes precedence over the
first ``From`` mailbox as the bounce address.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .address import EmailAddress, Mailbox
from .errors import EnvelopeInvalidError, MissingFromError


class Envelope(BaseModel):
    """SMTP-level sender and ordered recipient list.

    ``to`` keeps insertion order and duplicates; deduplication is the
    transport's business.  ``from_address`` is ``None`` only for
    null-sender bounces.
    """

    model_config = ConfigDict(frozen=True)

    from_address: EmailAddress | None = Field(
        default=None,
        description="Reverse path; None means the null sender <>",
    )
    to: list[EmailAddress] = Field(
        min_length=1,
        description="Forward paths, in insertion order",
    )

    def __init__(self, **data: Any) -> None:
        # before field validation, which would wrap it in a ValidationError
        if not data.get("to"):
            raise EnvelopeInvalidError("Envelope has no recipients")
        super().__init__(**data)

    @classmethod
    def new(cls, from_address: str | None, to: Iterable[str]) -> Envelope:
        """Build an envelope, raising ``EnvelopeInvalidError`` when *to* is empty."""
        recipients = [EmailAddress(addr) for addr in to]
        sender = EmailAddress(from_address) if from_address is not None else None
        return cls(from_address=sender, to=recipients)

    def mail_from_command(self) -> str:
        return f"MAIL FROM:<{self.from_address or ''}>"

    def rcpt_to_commands(self) -> list[str]:
        return [f"RCPT TO:<{address}>" for address in self.to]


def resolve_sender(from_: Sequence[Mailbox], sender: Mailbox | None) -> Mailbox | None:
    """RFC 5322 3.6.2: with several From mailboxes a Sender is mandatory.

    An explicit *sender* always wins; otherwise the first From mailbox is
    promoted when there are two or more.
    """
    if sender is None and len(from_) >= 2:
        return from_[0]
    return sender


def derive_envelope(
    *,
    sender: Mailbox | None,
    from_: Sequence[Mailbox],
    to: Sequence[Mailbox],
    cc: Sequence[Mailbox],
    bcc: Sequence[Mailbox],
) -> Envelope:
    """Envelope recipients are ``to ++ cc ++ bcc``; the sender is Sender or From[0]."""
    recipients = [mailbox.address for mailbox in (*to, *cc, *bcc)]
    if sender is not None:
        reverse_path = sender.address
    elif from_:
        reverse_path = from_[0].address
    else:
        raise MissingFromError()
    return Envelope.new(reverse_path, recipients)
