"""Builder façade: :class:`PartBuilder` for raw MIME parts, :class:`EmailBuilder` for messages.

Typical use::

    email = (
        EmailBuilder()
        .from_(("alice@example.org", "Alice"))
        .to("bob@example.org")
        .subject("Quarterly report")
        .text("See attached.")
        .attachment_from_file("report.pdf")
        .build()
    )

Every builder call returns the builder so calls chain.  A call that raises
leaves the builder as it was.  ``build()`` works on a copy, so the builder
stays usable afterwards.
"""

from __future__ import annotations

import base64
import copy
import mimetypes
import quopri
import random
import re
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from email.utils import format_datetime
from os import PathLike
from pathlib import Path
from urllib.parse import quote

import structlog

from .address import Mailbox, MailboxLike, MailboxList
from .config import MessageConfig
from .envelope import Envelope, derive_envelope, resolve_sender
from .errors import AttachmentIOError, CannotParseFilenameError, MissingFromError
from .header import MAX_LINE_LENGTH, Header
from .mime import (
    BOUNDARY_LENGTH,
    TEXT_HTML_UTF_8,
    TEXT_PLAIN_UTF_8,
    ContentType,
    MimePart,
    MultipartKind,
    new_blank_part,
)
from .models import Email

logger = structlog.get_logger()

BASE64_LINE_LENGTH = 76
DEFAULT_ATTACHMENT_TYPE = "application/octet-stream"

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")
# RFC 2231 attribute-char, minus the ALPHA / DIGIT / "_.-~" quote() keeps anyway
_RFC2231_SAFE = "!#$&+^`|"


def format_date(value: datetime) -> str:
    """RFC 5322 3.3 date-time (``%a, %d %b %Y %T %z``); naive values are taken as UTC."""
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=UTC)
    return format_datetime(value)


def canonical_body(body: str | bytes) -> bytes:
    """UTF-8 encode text and rewrite every line break as CRLF."""
    data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
    return _LINE_BREAK.sub(b"\r\n", data)


def encode_base64_body(data: bytes) -> bytes:
    """Base64 with CRLF line wrapping at 76 columns (RFC 2045 6.8)."""
    encoded = base64.b64encode(data)
    return b"\r\n".join(
        encoded[i : i + BASE64_LINE_LENGTH] for i in range(0, len(encoded), BASE64_LINE_LENGTH)
    )


def encode_quoted_printable(body: bytes) -> bytes:
    """Quoted-printable with CRLF line endings and soft breaks at 76 columns."""
    encoded = quopri.encodestring(body.replace(b"\r\n", b"\n"))
    return encoded.replace(b"\n", b"\r\n")


def has_long_line(body: bytes) -> bool:
    return any(len(line) > MAX_LINE_LENGTH for line in body.split(b"\r\n"))


def attachment_disposition(filename: str) -> str:
    if filename.isascii():
        escaped = filename.replace("\\", "\\\\").replace('"', '\\"')
        return f'attachment; filename="{escaped}"'
    return f"attachment; filename*=utf-8''{quote(filename.encode('utf-8'), safe=_RFC2231_SAFE)}"


class PartBuilder:
    """Builds a single :class:`MimePart`."""

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        boundary_length: int = BOUNDARY_LENGTH,
    ) -> None:
        self._rng = rng
        self._part = new_blank_part(rng, boundary_length)

    def header(self, header: Header | tuple[str, object]) -> PartBuilder:
        self._part.headers.insert(Header.coerce(header))
        return self

    def body(self, body: str | bytes) -> PartBuilder:
        self._part.body = canonical_body(body)
        return self

    def message_type(self, kind: MultipartKind) -> PartBuilder:
        self._part.message_type = MultipartKind(kind)
        return self

    def content_type(self, content_type: str | ContentType) -> PartBuilder:
        return self.header(("Content-Type", content_type))

    def child(self, part: MimePart) -> PartBuilder:
        self._part.children.append(part)
        return self

    def copy(self) -> PartBuilder:
        clone = PartBuilder.__new__(PartBuilder)
        clone._rng = self._rng
        clone._part = copy.deepcopy(self._part)
        return clone

    def build(self) -> MimePart:
        """Finalise a copy of the accumulated part and return it."""
        part = copy.deepcopy(self._part)
        part.finalize(self._rng)
        return part


class EmailBuilder:
    """Accumulates mailboxes, headers and parts, then derives a sendable :class:`Email`.

    ``clock``, ``rng`` and ``id_factory`` are the only impure inputs (the
    auto-inserted ``Date``, multipart boundaries, and the generated
    Message-ID).  Tests inject fixed versions of them.
    """

    def __init__(
        self,
        config: MessageConfig | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
    ) -> None:
        self._config = config or MessageConfig()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._rng = rng
        self._id_factory = id_factory

        self._message = self._new_part()
        self._to: list[Mailbox] = []
        self._from: list[Mailbox] = []
        self._cc: list[Mailbox] = []
        self._bcc: list[Mailbox] = []
        self._reply_to: list[Mailbox] = []
        self._in_reply_to: list[str] = []
        self._references: list[str] = []
        self._sender: Mailbox | None = None
        self._envelope: Envelope | None = None
        self._date_issued = False
        self._message_id: str | None = None

    def _new_part(self) -> PartBuilder:
        return PartBuilder(rng=self._rng, boundary_length=self._config.boundary_length)

    # ------------------------------------------------------------------
    # Mailboxes
    # ------------------------------------------------------------------

    def to(self, address: MailboxLike) -> EmailBuilder:
        self._to.append(Mailbox.coerce(address))
        return self

    def from_(self, address: MailboxLike) -> EmailBuilder:
        self._from.append(Mailbox.coerce(address))
        return self

    def cc(self, address: MailboxLike) -> EmailBuilder:
        self._cc.append(Mailbox.coerce(address))
        return self

    def bcc(self, address: MailboxLike) -> EmailBuilder:
        """Add a blind recipient: envelope only, never a header."""
        self._bcc.append(Mailbox.coerce(address))
        return self

    def reply_to(self, address: MailboxLike) -> EmailBuilder:
        self._reply_to.append(Mailbox.coerce(address))
        return self

    def sender(self, address: MailboxLike) -> EmailBuilder:
        self._sender = Mailbox.coerce(address)
        return self

    # ------------------------------------------------------------------
    # Headers
    # ------------------------------------------------------------------

    def header(self, header: Header | tuple[str, object]) -> EmailBuilder:
        self._message.header(header)
        return self

    def subject(self, subject: str) -> EmailBuilder:
        return self.header(("Subject", subject))

    def date(self, date: datetime) -> EmailBuilder:
        self.header(("Date", format_date(date)))
        self._date_issued = True
        return self

    def message_id(self, message_id: str) -> EmailBuilder:
        self.header(("Message-ID", message_id))
        self._message_id = message_id
        return self

    def in_reply_to(self, message_id: str) -> EmailBuilder:
        self._in_reply_to.append(message_id)
        return self

    def references(self, message_id: str) -> EmailBuilder:
        self._references.append(message_id)
        return self

    def envelope(self, envelope: Envelope) -> EmailBuilder:
        """Override the envelope that would otherwise be derived from the mailboxes."""
        self._envelope = envelope
        return self

    # ------------------------------------------------------------------
    # Body and parts
    # ------------------------------------------------------------------

    def body(self, body: str | bytes) -> EmailBuilder:
        self._message.body(body)
        return self

    def message_type(self, kind: MultipartKind) -> EmailBuilder:
        self._message.message_type(kind)
        return self

    def child(self, part: MimePart) -> EmailBuilder:
        self._message.child(part)
        return self

    def _text_part(self, body: str, content_type: str) -> MimePart:
        part = self._new_part().content_type(content_type)
        data = canonical_body(body)
        if has_long_line(data):
            part.header(("Content-Transfer-Encoding", "quoted-printable"))
            part.body(encode_quoted_printable(data))
        else:
            if not body.isascii():
                part.header(("Content-Transfer-Encoding", "8bit"))
            part.body(data)
        return part.build()

    def text(self, body: str) -> EmailBuilder:
        return self.child(self._text_part(body, TEXT_PLAIN_UTF_8))

    def html(self, body: str) -> EmailBuilder:
        return self.child(self._text_part(body, TEXT_HTML_UTF_8))

    def alternative(self, body_html: str, body_text: str) -> EmailBuilder:
        """Add a multipart/alternative child holding the text then the HTML version."""
        alternative = (
            self._new_part()
            .message_type(MultipartKind.ALTERNATIVE)
            .child(self._text_part(body_text, TEXT_PLAIN_UTF_8))
            .child(self._text_part(body_html, TEXT_HTML_UTF_8))
        )
        return self.message_type(MultipartKind.MIXED).child(alternative.build())

    def attachment(
        self,
        data: bytes,
        filename: str,
        content_type: str | ContentType,
    ) -> EmailBuilder:
        """Attach *data* base64-encoded under *filename*."""
        part = (
            self._new_part()
            .header(Header("Content-Disposition", attachment_disposition(filename)))
            .header(("Content-Type", content_type))
            .header(("Content-Transfer-Encoding", "base64"))
            .body(encode_base64_body(bytes(data)))
        )
        return self.message_type(MultipartKind.MIXED).child(part.build())

    def attachment_from_file(
        self,
        path: str | PathLike[str],
        filename: str | None = None,
        content_type: str | ContentType | None = None,
    ) -> EmailBuilder:
        """Attach a file from disk.

        *filename* defaults to the last path component; *content_type* is
        guessed from the filename, falling back to application/octet-stream.
        """
        path = Path(path)
        if filename is None:
            filename = path.name
            if filename in ("", ".", ".."):
                raise CannotParseFilenameError(str(path))
        if content_type is None:
            content_type = mimetypes.guess_type(filename)[0] or DEFAULT_ATTACHMENT_TYPE

        try:
            with path.open("rb") as fh:
                data = fh.read()
        except OSError as exc:
            raise AttachmentIOError(f"Cannot read attachment {path}: {exc}") from exc

        return self.attachment(data, filename, content_type)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build_body(self) -> bytes:
        """Serialise only the accumulated part tree, e.g. to sign or encrypt it.

        No derived headers are added and no envelope is computed.
        """
        return self._message.build().formatted()

    def build(self) -> Email:
        """Derive the envelope and the remaining headers, and serialise the message.

        Headers are appended in a fixed order: Sender, To, From, Cc,
        Reply-To, In-Reply-To, References, Date (unless set), MIME-Version,
        Message-ID (unless set).  Bcc is never written.
        """
        message = self._message.copy()

        sender = resolve_sender(self._from, self._sender)
        if sender is not None:
            message.header(Header.with_value("Sender", sender))

        envelope = self._envelope or derive_envelope(
            sender=sender,
            from_=self._from,
            to=self._to,
            cc=self._cc,
            bcc=self._bcc,
        )

        if self._to:
            message.header(Header.with_value("To", MailboxList(tuple(self._to))))
        if self._from:
            message.header(Header.with_value("From", MailboxList(tuple(self._from))))
        elif envelope.from_address is not None:
            from_ = (Mailbox(address=envelope.from_address),)
            message.header(Header.with_value("From", MailboxList(from_)))
        else:
            raise MissingFromError()
        if self._cc:
            message.header(Header.with_value("Cc", MailboxList(tuple(self._cc))))
        if self._reply_to:
            message.header(Header.with_value("Reply-To", MailboxList(tuple(self._reply_to))))
        if self._in_reply_to:
            message.header(("In-Reply-To", " ".join(self._in_reply_to)))
        if self._references:
            message.header(("References", " ".join(self._references)))

        if not self._date_issued:
            message.header(("Date", format_date(self._clock())))

        message.header(("MIME-Version", "1.0"))

        message_id = self._message_id
        if message_id is None:
            generated = self._id_factory()
            message.header(("Message-ID", f"<{generated}.{self._config.message_id_suffix}>"))
            message_id = str(generated)

        email = Email(
            envelope=envelope,
            message_id=message_id,
            message=message.build().formatted(),
        )
        logger.debug(
            "email_built",
            message_id=message_id,
            recipients=len(envelope.to),
            size=len(email.message),
        )
        return email
