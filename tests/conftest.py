"""Shared test fixtures for the mailcraft test suite."""

from __future__ import annotations

import random
import re
import uuid
from datetime import UTC, datetime

import pytest

from mailcraft.builder import EmailBuilder
from mailcraft.config import FileTransportConfig, MessageConfig, SendmailConfig

FIXED_DATE = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
FIXED_DATE_HEADER = "Tue, 02 Jan 2024 03:04:05 +0000"
FIXED_UUID = uuid.UUID("12345678-1234-5678-1234-567812345678")


@pytest.fixture
def fixed_date() -> datetime:
    return FIXED_DATE


@pytest.fixture
def message_config() -> MessageConfig:
    return MessageConfig(message_id_suffix="lettre@localhost", boundary_length=30)


@pytest.fixture
def file_config(tmp_path) -> FileTransportConfig:
    return FileTransportConfig(directory=str(tmp_path))


@pytest.fixture
def sendmail_config() -> SendmailConfig:
    return SendmailConfig(command="/usr/sbin/sendmail", timeout_seconds=5.0)


@pytest.fixture
def make_builder(message_config: MessageConfig):
    """Factory for builders with a fixed clock, seeded RNG and fixed Message-ID."""

    def _make(seed: int = 1234) -> EmailBuilder:
        return EmailBuilder(
            message_config,
            clock=lambda: FIXED_DATE,
            rng=random.Random(seed),
            id_factory=lambda: FIXED_UUID,
        )

    return _make


def find_boundaries(message: bytes) -> list[str]:
    """All boundary parameters declared in *message*, outermost first."""
    return re.findall(r'boundary="([A-Za-z0-9]+)"', message.decode("ascii"))
