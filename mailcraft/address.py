"""Address model: addr-specs, mailboxes and folded address lists."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from pydantic import GetCoreSchemaHandler
from pydantic_core import core_schema

from .errors import InvalidAddressError, InvalidHeaderError
from .header import MIME_LINE_LENGTH, encode_rfc2047

_ATEXT = r"[A-Za-z0-9!#$%&'*+/=?^_`{|}~-]"
_DOT_ATOM = rf"{_ATEXT}+(?:\.{_ATEXT}+)*"
_QUOTED_STRING = r'"(?:[^"\\\r\n]|\\[^\r\n])*"'
_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"
_HOSTNAME = rf"{_LABEL}(?:\.{_LABEL})*"
_DOMAIN_LITERAL = r"\[[!-Z^-~]*\]"

_ADDR_SPEC = re.compile(
    rf"^(?:{_DOT_ATOM}|{_QUOTED_STRING})@(?:{_HOSTNAME}|{_DOMAIN_LITERAL})$"
)

MAX_LOCAL_PART_LENGTH = 64
MAX_ADDRESS_LENGTH = 254


class EmailAddress(str):
    """An immutable, syntactically valid RFC 5322 addr-spec (``local@domain``)."""

    def __new__(cls, address: str) -> EmailAddress:
        if isinstance(address, EmailAddress):
            return address
        if not isinstance(address, str):
            raise InvalidAddressError(repr(address))
        local, _, _ = address.rpartition("@")
        if (
            len(address) > MAX_ADDRESS_LENGTH
            or len(local) > MAX_LOCAL_PART_LENGTH
            or not _ADDR_SPEC.match(address)
        ):
            raise InvalidAddressError(address)
        return super().__new__(cls, address)

    def __repr__(self) -> str:
        return f"EmailAddress({str.__repr__(self)})"

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_after_validator_function(
            cls,
            core_schema.str_schema(),
            serialization=core_schema.to_string_ser_schema(),
        )


@dataclass(frozen=True)
class Mailbox:
    """An optional display name plus an address."""

    address: EmailAddress
    name: str | None = None

    def __post_init__(self) -> None:
        if self.name is not None and ("\r" in self.name or "\n" in self.name):
            raise InvalidHeaderError(f"Display name for {self.address} contains a line break")

    def __str__(self) -> str:
        return render_mailbox(self)

    def to_header(self) -> str:
        return render_mailbox(self)

    @classmethod
    def coerce(cls, value: MailboxLike) -> Mailbox:
        """Turn any accepted mailbox spelling into a :class:`Mailbox`.

        Accepts a ``Mailbox``, an ``EmailAddress``, a plain address string
        or an ``(address, name)`` tuple.
        """
        if isinstance(value, Mailbox):
            return value
        if isinstance(value, tuple):
            address, name = value
            return mailbox_from(address, name)
        return mailbox_from(value)


MailboxLike = Union[Mailbox, str, tuple[str, str]]


def mailbox_from(address: str, name: str | None = None) -> Mailbox:
    """Build a :class:`Mailbox`; raises ``InvalidAddressError`` on a bad addr-spec."""
    return Mailbox(address=EmailAddress(address), name=name)


def _quote_display_name(name: str) -> str:
    # FIXME: names are always quoted, even when no special characters appear
    if name.isascii():
        escaped = name.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return f'"{encode_rfc2047(name, separator=" ")}"'


def render_mailbox(mailbox: Mailbox) -> str:
    """``"Name" <addr>``, ``"=?utf-8?B?…?=" <addr>`` or ``<addr>``."""
    if mailbox.name is None:
        return f"<{mailbox.address}>"
    return f"{_quote_display_name(mailbox.name)} <{mailbox.address}>"


def render_address_list(mailboxes: Iterable[Mailbox], start_column: int) -> str:
    """Join *mailboxes* with ``", "``, folding with CRLF+TAB past 78 columns.

    A fold only ever happens between two mailboxes.  A mailbox that is on
    its own longer than the limit is emitted unfolded.
    """
    pieces: list[str] = []
    line_len = start_column
    for mailbox in mailboxes:
        piece = f"{render_mailbox(mailbox)}, "
        if pieces and line_len + len(piece) > MIME_LINE_LENGTH:
            pieces.append("\r\n\t")
            line_len = 1
        line_len += len(piece)
        pieces.append(piece)
    return "".join(pieces)[:-2] if pieces else ""


@dataclass(frozen=True)
class MailboxList:
    """An address-list header value that folds itself."""

    mailboxes: tuple[Mailbox, ...]

    def to_folded_header(self, start_pos: int) -> str:
        return render_address_list(self.mailboxes, start_pos)

    def __len__(self) -> int:
        return len(self.mailboxes)
