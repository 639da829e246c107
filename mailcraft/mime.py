"""MIME part tree: multipart kinds, content types, boundaries and finalisation."""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, field
from enum import Enum

from .header import Header, HeaderMap
from .serializer import serialize

BOUNDARY_LENGTH = 30
_BOUNDARY_ALPHABET = string.ascii_letters + string.digits

TEXT_PLAIN_UTF_8 = "text/plain; charset=utf-8"
TEXT_HTML_UTF_8 = "text/html; charset=utf-8"


class MultipartKind(str, Enum):
    """Multipart subtypes from RFC 2046 5.1."""

    MIXED = "mixed"
    ALTERNATIVE = "alternative"
    DIGEST = "digest"
    PARALLEL = "parallel"

    def to_content_type(self, **params: str) -> ContentType:
        return ContentType("multipart", self.value, params)


@dataclass(frozen=True)
class ContentType:
    """A ``Content-Type`` value; parameter values are always quoted."""

    maintype: str
    subtype: str
    params: dict[str, str] = field(default_factory=dict)

    def to_header(self) -> str:
        rendered = f"{self.maintype}/{self.subtype}"
        for key, value in self.params.items():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            rendered += f'; {key}="{escaped}"'
        return rendered

    def __str__(self) -> str:
        return self.to_header()


def generate_boundary(rng: random.Random | None = None, length: int = BOUNDARY_LENGTH) -> str:
    """Draw an alphanumeric boundary of *length* characters."""
    source = rng or random
    return "".join(source.choices(_BOUNDARY_ALPHABET, k=length))


@dataclass
class MimePart:
    """A node of the MIME tree.

    ``body`` holds bytes already encoded per the part's declared
    ``Content-Transfer-Encoding``.  ``boundary`` is always present but only
    used when the part is multipart.
    """

    headers: HeaderMap = field(default_factory=HeaderMap)
    body: bytes = b""
    message_type: MultipartKind | None = None
    children: list[MimePart] = field(default_factory=list)
    boundary: str = field(default_factory=generate_boundary)

    def finalize(self, rng: random.Random | None = None) -> None:
        """Settle the multipart type, its Content-Type header and the boundary.

        Idempotent: a second call leaves the part byte-for-byte unchanged.
        """
        for child in self.children:
            child.finalize(rng)

        if self.children and self.message_type is None:
            self.message_type = MultipartKind.MIXED

        if self.message_type is None:
            return

        while self._boundary_collides():
            self.boundary = generate_boundary(rng, len(self.boundary))

        self.headers.replace(
            Header.with_value(
                "Content-Type",
                self.message_type.to_content_type(boundary=self.boundary),
            )
        )

    def _boundary_collides(self) -> bool:
        marker = self.boundary.encode("ascii")
        if marker in self.body:
            return True
        return any(marker in serialize(child) for child in self.children)

    def formatted(self) -> bytes:
        return serialize(self)

    def as_string(self) -> str:
        return self.formatted().decode("utf-8", errors="replace")


def new_blank_part(rng: random.Random | None = None, boundary_length: int = BOUNDARY_LENGTH) -> MimePart:
    """An empty part with a freshly drawn boundary."""
    return MimePart(boundary=generate_boundary(rng, boundary_length))
