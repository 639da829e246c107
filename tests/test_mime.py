"""Tests for mailcraft.mime and mailcraft.serializer."""

from __future__ import annotations

import random

import pytest

from mailcraft.header import Header, HeaderMap
from mailcraft.mime import (
    BOUNDARY_LENGTH,
    ContentType,
    MimePart,
    MultipartKind,
    generate_boundary,
    new_blank_part,
)
from mailcraft.serializer import serialize


def _leaf(body: bytes, *headers: tuple[str, str]) -> MimePart:
    part = new_blank_part(random.Random(7))
    for name, value in headers:
        part.headers.insert(Header(name, value))
    part.body = body
    return part


class TestMultipartKind:
    @pytest.mark.parametrize(
        "kind, subtype",
        [
            (MultipartKind.MIXED, "mixed"),
            (MultipartKind.ALTERNATIVE, "alternative"),
            (MultipartKind.DIGEST, "digest"),
            (MultipartKind.PARALLEL, "parallel"),
        ],
    )
    def test_to_content_type(self, kind: MultipartKind, subtype: str):
        content_type = kind.to_content_type(boundary="abc")
        assert content_type.to_header() == f'multipart/{subtype}; boundary="abc"'


class TestContentType:
    def test_without_params(self):
        assert ContentType("application", "pdf").to_header() == "application/pdf"

    def test_params_are_quoted_in_order(self):
        content_type = ContentType("text", "plain", {"charset": "utf-8", "format": "flowed"})
        assert str(content_type) == 'text/plain; charset="utf-8"; format="flowed"'


class TestBoundary:
    def test_length_and_alphabet(self):
        boundary = new_blank_part().boundary
        assert len(boundary) == BOUNDARY_LENGTH
        assert boundary.isalnum() and boundary.isascii()

    def test_seeded_rng_is_reproducible(self):
        assert generate_boundary(random.Random(3)) == generate_boundary(random.Random(3))

    def test_custom_length(self):
        assert len(generate_boundary(length=40)) == 40


class TestFinalize:
    def test_leaf_untouched(self):
        part = _leaf(b"hello", ("Content-Type", "text/plain"))
        part.finalize()
        assert part.message_type is None
        assert [h.to_line() for h in part.headers] == ["Content-Type: text/plain"]

    def test_children_promote_to_mixed(self):
        part = new_blank_part(random.Random(1))
        part.children.append(_leaf(b"child"))
        part.finalize()
        assert part.message_type is MultipartKind.MIXED
        content_type = part.headers.find_last("Content-Type")
        assert content_type is not None
        assert content_type.value == f'multipart/mixed; boundary="{part.boundary}"'

    def test_explicit_type_is_kept(self):
        part = new_blank_part(random.Random(1))
        part.message_type = MultipartKind.ALTERNATIVE
        part.children.append(_leaf(b"a"))
        part.finalize()
        assert part.headers.find_last("Content-Type").value.startswith("multipart/alternative;")

    def test_overwrites_existing_content_type(self):
        part = new_blank_part(random.Random(1))
        part.headers.insert(Header("Content-Type", "text/plain"))
        part.children.append(_leaf(b"a"))
        part.finalize()
        assert len(part.headers.find("Content-Type")) == 1
        assert part.headers.find_last("Content-Type").value.startswith("multipart/mixed;")

    def test_idempotent(self):
        part = new_blank_part(random.Random(1))
        part.children.append(_leaf(b"a"))
        part.children.append(_leaf(b"b"))
        part.finalize()
        first = serialize(part)
        part.finalize()
        assert serialize(part) == first

    def test_recurses_into_children(self):
        inner = new_blank_part(random.Random(2))
        inner.children.append(_leaf(b"deep"))
        outer = new_blank_part(random.Random(3))
        outer.children.append(inner)
        outer.finalize()
        assert inner.message_type is MultipartKind.MIXED
        assert "Content-Type" in inner.headers

    def test_colliding_boundary_is_rerolled(self):
        boundary = "A" * BOUNDARY_LENGTH
        part = MimePart(headers=HeaderMap(), boundary=boundary)
        part.children.append(_leaf(f"text containing --{boundary} inside".encode()))
        part.finalize(random.Random(5))
        assert part.boundary != boundary
        assert len(part.boundary) == BOUNDARY_LENGTH
        assert part.boundary.encode() not in part.children[0].body


class TestSerialize:
    def test_leaf(self):
        part = _leaf(b"hello", ("Subject", "Hi"), ("X-Test", "1"))
        assert serialize(part) == b"Subject: Hi\r\nX-Test: 1\r\n\r\nhello\r\n"

    def test_headers_in_insertion_order(self):
        names = ["Received", "X-B", "Received", "X-A"]
        part = _leaf(b"", *[(name, str(i)) for i, name in enumerate(names)])
        lines = serialize(part).split(b"\r\n")
        assert [line.split(b":")[0].decode() for line in lines[: len(names)]] == names

    def test_multipart_layout(self):
        part = new_blank_part(random.Random(1))
        part.children.append(_leaf(b"one", ("Content-Type", "text/plain")))
        part.children.append(_leaf(b"two"))
        part.finalize()
        b = part.boundary
        assert serialize(part) == (
            f'Content-Type: multipart/mixed; boundary="{b}"\r\n'
            "\r\n"
            "\r\n"
            f"--{b}\r\n"
            "Content-Type: text/plain\r\n"
            "\r\n"
            "one\r\n"
            "\r\n"
            f"--{b}\r\n"
            "\r\n"
            "two\r\n"
            "\r\n"
            f"--{b}--\r\n"
        ).encode()

    def test_serialize_does_not_mutate(self):
        part = _leaf(b"x")
        part.children.append(_leaf(b"y"))
        before = (list(part.headers), part.message_type, part.boundary)
        serialize(part)
        assert (list(part.headers), part.message_type, part.boundary) == before

    def test_formatted_matches_serialize(self):
        part = _leaf(b"body")
        assert part.formatted() == serialize(part)
        assert part.as_string() == "\r\nbody\r\n"
