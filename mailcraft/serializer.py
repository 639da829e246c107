"""Canonical CRLF serialisation of a MIME part tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .mime import MimePart

CRLF = b"\r\n"


def serialize(part: MimePart) -> bytes:
    """Render *part* and its descendants; the tree is left untouched.

    Layout: folded header lines, an empty line, the body, then for each
    child a ``--boundary`` delimiter followed by the child, and finally the
    ``--boundary--`` close delimiter.
    """
    out = bytearray()
    for header in part.headers:
        out += header.to_line().encode("ascii")
        out += CRLF
    out += CRLF
    out += part.body
    out += CRLF

    if part.children:
        delimiter = f"--{part.boundary}".encode("ascii")
        for child in part.children:
            out += delimiter + CRLF
            out += serialize(child)
            out += CRLF
        out += delimiter + b"--" + CRLF

    return bytes(out)
