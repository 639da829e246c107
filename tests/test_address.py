"""Tests for mailcraft.address."""

from __future__ import annotations

import pytest

from mailcraft.address import (
    EmailAddress,
    Mailbox,
    MailboxList,
    mailbox_from,
    render_address_list,
    render_mailbox,
)
from mailcraft.errors import InvalidAddressError, InvalidHeaderError
from mailcraft.header import Header


class TestEmailAddress:
    @pytest.mark.parametrize(
        "address",
        [
            "foo@example.org",
            "user@localhost",
            "first.last+tag@sub.example.co.uk",
            '"john doe"@example.org',
            "postmaster@[192.0.2.1]",
        ],
    )
    def test_valid(self, address: str):
        assert EmailAddress(address) == address

    @pytest.mark.parametrize(
        "address",
        [
            "",
            "foo",
            "foo@",
            "@example.org",
            "a b@example.org",
            "a..b@example.org",
            "a@example..org",
            "a@-example.org",
            "jöhn@example.org",
            "a@b@c",
            "x" * 65 + "@example.org",
        ],
    )
    def test_invalid(self, address: str):
        with pytest.raises(InvalidAddressError):
            EmailAddress(address)

    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            EmailAddress("nope")

    def test_idempotent_construction(self):
        address = EmailAddress("foo@example.org")
        assert EmailAddress(address) is address


class TestMailbox:
    def test_address_only(self):
        assert render_mailbox(mailbox_from("foo@example.org")) == "<foo@example.org>"

    def test_ascii_name_is_quoted(self):
        mailbox = mailbox_from("foo@example.org", "Joe Blogs")
        assert str(mailbox) == '"Joe Blogs" <foo@example.org>'

    def test_quotes_in_name_are_escaped(self):
        mailbox = mailbox_from("foo@example.org", 'Joe "JB" Blogs')
        assert str(mailbox) == '"Joe \\"JB\\" Blogs" <foo@example.org>'

    def test_non_ascii_name_is_encoded(self):
        mailbox = mailbox_from("cc2@localhost", "Aliäs")
        assert str(mailbox) == '"=?utf-8?B?QWxpw6Rz?=" <cc2@localhost>'

    def test_long_non_ascii_name_never_folds(self):
        mailbox = mailbox_from("x@example.org", "ü" * 80)
        assert "\r\n" not in str(mailbox)

    @pytest.mark.parametrize("name", ["Evil\r\nBcc: c@z", "Line\nbreak", "Carriage\rreturn"])
    def test_line_break_in_name_rejected(self, name: str):
        with pytest.raises(InvalidHeaderError):
            mailbox_from("b@y", name)

    def test_invalid_address(self):
        with pytest.raises(InvalidAddressError):
            mailbox_from("not an address", "Name")

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("a@example.org", Mailbox(address=EmailAddress("a@example.org"))),
            (("a@example.org", "A"), Mailbox(address=EmailAddress("a@example.org"), name="A")),
            (EmailAddress("a@example.org"), Mailbox(address=EmailAddress("a@example.org"))),
        ],
    )
    def test_coerce(self, value, expected: Mailbox):
        assert Mailbox.coerce(value) == expected

    def test_coerce_mailbox_passthrough(self):
        mailbox = mailbox_from("a@example.org")
        assert Mailbox.coerce(mailbox) is mailbox

    def test_sender_header_value(self):
        header = Header.with_value("Sender", mailbox_from("sender@localhost"))
        assert header.to_line() == "Sender: <sender@localhost>"


class TestRenderAddressList:
    def test_single(self):
        assert render_address_list([mailbox_from("a@x")], 4) == "<a@x>"

    def test_empty(self):
        assert render_address_list([], 4) == ""

    def test_joined_with_comma_space(self):
        mailboxes = [mailbox_from("d@x"), mailbox_from("j@x")]
        assert render_address_list(mailboxes, 6) == "<d@x>, <j@x>"

    def test_line_wrap(self):
        addresses = [
            mailbox_from("joe@example.org", "Joe Blogs"),
            mailbox_from("john@example.org", "John Doe"),
            mailbox_from("mafia_black@example.org", "Mr Black"),
        ]
        header = Header.with_value("To", MailboxList(tuple(addresses)))
        assert header.to_line() == (
            'To: "Joe Blogs" <joe@example.org>, "John Doe" <john@example.org>, \r\n'
            '\t"Mr Black" <mafia_black@example.org>'
        )

    def test_lines_stay_within_limit(self):
        mailboxes = [mailbox_from(f"user{i}@example.org") for i in range(30)]
        header = Header.with_value("Cc", MailboxList(tuple(mailboxes)))
        lines = header.to_line().split("\r\n")
        assert len(lines) > 1
        assert all(len(line) <= 78 for line in lines)
        assert all(line.startswith("\t") for line in lines[1:])

    def test_oversized_mailbox_emitted_unfolded(self):
        long_one = mailbox_from("someone@example.org", "N" * 100)
        rendered = render_address_list([long_one], 4)
        assert rendered == render_mailbox(long_one)

    def test_fold_never_inside_mailbox(self):
        mailboxes = [mailbox_from("a@example.org", "A" * 40), mailbox_from("b@example.org", "B" * 90)]
        rendered = render_address_list(mailboxes, 4)
        first, second = rendered.split("\r\n\t")
        assert first == f'{render_mailbox(mailboxes[0])}, '
        assert second == render_mailbox(mailboxes[1])
