"""Exceptions raised while composing and sending messages."""

from __future__ import annotations


class MailError(Exception):
    """Base class for every error raised by mailcraft."""


class InvalidAddressError(MailError, ValueError):
    """An addr-spec failed syntactic validation."""

    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid email address: {address!r}")
        self.address = address


class MissingFromError(MailError):
    """Neither a From mailbox, a Sender, nor an envelope sender was given."""

    def __init__(self) -> None:
        super().__init__("Missing From address")


class CannotParseFilenameError(MailError, ValueError):
    """No filename could be extracted from an attachment path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Cannot extract a filename from path: {path!r}")
        self.path = path


class AttachmentIOError(MailError):
    """Reading an attachment from disk failed."""


class EnvelopeInvalidError(MailError, ValueError):
    """The envelope has no recipients."""


class UnsupportedHeaderValueError(MailError, TypeError):
    """A header value has no known conversion to a header string."""


class InvalidHeaderError(MailError, ValueError):
    """A header name or value would corrupt the message structure."""


class TransportError(MailError):
    """A transport failed to deliver a message."""
