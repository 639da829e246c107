"""Header model: RFC 2047 encoding, value conversion, and the ordered header map.

Header values are stored fully serialised, i.e. already RFC 2047 encoded and
already folded.  Structured values (address lists, content types) produce
their canonical string through one of two small protocols:

* :class:`ToHeader` for values that render without knowing where the line
  starts;
* :class:`ToFoldedHeader` for values that fold themselves and therefore need
  the column at which the value begins (``len(name) + 2``).
"""

from __future__ import annotations

import base64
import re
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .errors import InvalidHeaderError, UnsupportedHeaderValueError

# RFC 5322 2.1.1 SHOULD limit, excluding CRLF
MIME_LINE_LENGTH = 78
# RFC 5322 2.1.1 MUST limit, excluding CRLF
MAX_LINE_LENGTH = 998

# RFC 2047 2: an encoded-word may not be more than 75 characters long
ENCODED_WORD_MAX_LENGTH = 75
_ENCODED_WORD_PREFIX = "=?utf-8?B?"
_ENCODED_WORD_SUFFIX = "?="
_CHUNK_BUDGET = ENCODED_WORD_MAX_LENGTH - len(_ENCODED_WORD_PREFIX) - len(_ENCODED_WORD_SUFFIX)

_HEADER_NAME = re.compile(r"^[!-9;-~]+$")
# CR or LF that is not part of a CRLF followed by folding whitespace
_BAD_LINE_BREAK = re.compile(r"\r\n(?![ \t])|\r(?!\n)|(?<!\r)\n")
_ANY_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def encode_rfc2047(text: str, *, separator: str = "\r\n ") -> str:
    """Encode *text* as RFC 2047 ``B`` encoded-words if it is not pure ASCII.

    The base64 form of the UTF-8 bytes is cut into chunks of at most 63
    characters so every ``=?utf-8?B?…?=`` word stays within 75 characters.
    Words are joined by *separator*, a CRLF SPACE continuation by default.
    """
    if text.isascii():
        return text
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    words = [
        f"{_ENCODED_WORD_PREFIX}{encoded[i : i + _CHUNK_BUDGET]}{_ENCODED_WORD_SUFFIX}"
        for i in range(0, len(encoded), _CHUNK_BUDGET)
    ]
    return separator.join(words)


def fold_text(text: str, start_pos: int) -> str:
    """Fold an unstructured ASCII value at spaces with CRLF SPACE.

    Lines are kept within 78 columns where a space allows it.  Existing
    folds are preserved, and unfolding the result gives *text* back.
    """
    segments = text.split("\r\n")
    folded = [_fold_segment(segments[0], start_pos)]
    folded.extend(_fold_segment(segment, 0) for segment in segments[1:])
    return "\r\n".join(folded)


def _fold_segment(segment: str, column: int) -> str:
    words = segment.split(" ")
    out = words[0]
    column += len(words[0])
    for word in words[1:]:
        if word and out.strip() and column + 1 + len(word) > MIME_LINE_LENGTH:
            out += "\r\n " + word
            column = 1 + len(word)
        else:
            out += " " + word
            column += 1 + len(word)
    return out


@runtime_checkable
class ToHeader(Protocol):
    """A value that renders itself as a raw header string."""

    def to_header(self) -> str: ...


@runtime_checkable
class ToFoldedHeader(Protocol):
    """A value that renders itself folded, given the column it starts at."""

    def to_folded_header(self, start_pos: int) -> str: ...


@dataclass(frozen=True)
class Header:
    """A single RFC 5322 header field.

    ``value`` is the serialised right-hand side and must be 7-bit clean.
    Use :meth:`with_value` to build a header from a plain string or a
    structured value.
    """

    name: str
    value: str

    def __post_init__(self) -> None:
        if not _HEADER_NAME.match(self.name):
            raise InvalidHeaderError(f"Invalid header name: {self.name!r}")
        if not self.value.isascii():
            raise InvalidHeaderError(f"Header {self.name} has a non-ASCII value")
        if _BAD_LINE_BREAK.search(self.value):
            raise InvalidHeaderError(f"Header {self.name} contains an unfolded line break")
        if any(len(line) > MAX_LINE_LENGTH for line in self.to_line().split("\r\n")):
            raise InvalidHeaderError(
                f"Header {self.name} has a line longer than {MAX_LINE_LENGTH} characters"
            )

    @classmethod
    def with_value(cls, name: str, value: object) -> Header:
        """Build a header, converting *value* through its header protocol.

        Strings are RFC 2047 encoded, or folded at spaces when they are
        plain ASCII.  Values implementing
        :class:`ToFoldedHeader` fold relative to ``len(name) + 2``.
        """
        if isinstance(value, str):
            value = _ANY_LINE_BREAK.sub("\r\n", value)
            if value.isascii():
                rendered = fold_text(value, len(name) + 2)
            else:
                rendered = encode_rfc2047(value)
        elif isinstance(value, ToFoldedHeader):
            rendered = value.to_folded_header(len(name) + 2)
        elif isinstance(value, ToHeader):
            rendered = value.to_header()
        else:
            raise UnsupportedHeaderValueError(
                f"Cannot convert {type(value).__name__} to a value for header {name}"
            )
        return cls(name, rendered)

    @classmethod
    def coerce(cls, header: Header | tuple[str, object]) -> Header:
        """Accept either a ready :class:`Header` or a ``(name, value)`` pair."""
        if isinstance(header, Header):
            return header
        name, value = header
        return cls.with_value(name, value)

    def to_line(self) -> str:
        return f"{self.name}: {self.value}"

    def __str__(self) -> str:
        return self.to_line()


def header_to_line(header: Header) -> str:
    """Render *header* as ``"<name>: <value>"`` without a line terminator."""
    return header.to_line()


class HeaderMap:
    """Ordered header multimap.

    Insertion appends and never deduplicates.  Lookups are linear, which is
    fine for the few dozen headers a message carries.
    """

    def __init__(self, headers: list[Header] | None = None) -> None:
        self._headers: list[Header] = list(headers or [])

    def insert(self, header: Header) -> None:
        self._headers.append(header)

    def replace(self, header: Header) -> None:
        """Overwrite the first header named like *header*, dropping any later ones.

        Appends when no header with that name exists yet.
        """
        key = header.name.lower()
        kept: list[Header] = []
        placed = False
        for existing in self._headers:
            if existing.name.lower() == key:
                if not placed:
                    kept.append(header)
                    placed = True
                continue
            kept.append(existing)
        if not placed:
            kept.append(header)
        self._headers = kept

    def find_last(self, name: str) -> Header | None:
        """Most recent header called *name* (case-insensitive), or ``None``."""
        key = name.lower()
        for header in reversed(self._headers):
            if header.name.lower() == key:
                return header
        return None

    def find(self, name: str) -> list[Header]:
        key = name.lower()
        return [h for h in self._headers if h.name.lower() == key]

    def __iter__(self) -> Iterator[Header]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.find_last(name) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderMap):
            return NotImplemented
        return self._headers == other._headers

    def __repr__(self) -> str:
        return f"HeaderMap({self._headers!r})"

    def copy(self) -> HeaderMap:
        return HeaderMap(self._headers)
