"""mailcraft: RFC 5322 message composition with SMTP envelope derivation.

Public API re-exported here for convenience::

    from mailcraft import EmailBuilder, StubTransport
"""

from .address import EmailAddress, Mailbox, MailboxList, mailbox_from, render_address_list, render_mailbox
from .builder import EmailBuilder, PartBuilder
from .config import FileTransportConfig, LoggingConfig, MessageConfig, SendmailConfig
from .envelope import Envelope
from .errors import (
    AttachmentIOError,
    CannotParseFilenameError,
    EnvelopeInvalidError,
    InvalidAddressError,
    InvalidHeaderError,
    MailError,
    MissingFromError,
    TransportError,
    UnsupportedHeaderValueError,
)
from .file_transport import FileTransport
from .header import Header, HeaderMap, encode_rfc2047, fold_text, header_to_line
from .logging import setup_logging
from .mime import ContentType, MimePart, MultipartKind, new_blank_part
from .models import Email
from .sendmail import SendmailTransport
from .serializer import serialize
from .transport import StubTransport, Transport

__all__ = [
    "AttachmentIOError",
    "CannotParseFilenameError",
    "ContentType",
    "Email",
    "EmailAddress",
    "EmailBuilder",
    "Envelope",
    "EnvelopeInvalidError",
    "FileTransport",
    "FileTransportConfig",
    "Header",
    "HeaderMap",
    "InvalidAddressError",
    "InvalidHeaderError",
    "LoggingConfig",
    "MailError",
    "Mailbox",
    "MailboxList",
    "MessageConfig",
    "MimePart",
    "MissingFromError",
    "MultipartKind",
    "PartBuilder",
    "SendmailConfig",
    "SendmailTransport",
    "StubTransport",
    "Transport",
    "TransportError",
    "UnsupportedHeaderValueError",
    "encode_rfc2047",
    "fold_text",
    "header_to_line",
    "mailbox_from",
    "new_blank_part",
    "render_address_list",
    "render_mailbox",
    "serialize",
    "setup_logging",
]
