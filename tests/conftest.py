"""
Pytest configuration and fixtures for podtrim tests.

This module runs before any test imports, setting up the test environment.
Environment variables that the configuration classes read are cleared so
test behavior does not depend on the shell running pytest.

Audio fixtures are synthetic MPEG-1 Layer III streams at 48 kHz and 128 kbps:
every frame is exactly 384 bytes and plays for exactly 24 ms, which keeps the
trim arithmetic exact.
"""

import os

import pytest

from podtrim.db.factory import create_repository

for _name in list(os.environ):
    if _name.startswith("PODTRIM_") or _name.startswith("PODCAST_") or _name in (
        "DATABASE_URL",
        "LOG_LEVEL",
    ):
        del os.environ[_name]


# MPEG-1 Layer III, no CRC, 128 kbps, 48 kHz, no padding, joint stereo
FRAME_HEADER = bytes([0xFF, 0xFB, 0x94, 0x64])
FRAME_SIZE = 384
FRAME_MICROS = 24_000


def make_frame(fill: int = 0x00) -> bytes:
    """One complete frame whose body bytes are all `fill`."""
    return FRAME_HEADER + bytes([fill]) * (FRAME_SIZE - len(FRAME_HEADER))


def make_mp3(frame_count: int) -> bytes:
    """A stream of `frame_count` frames, each with a distinct body byte.

    Body bytes cycle through 0x00-0xFE so individual frames can be told apart
    in the output and never contain a sync byte.
    """
    return b"".join(make_frame(i % 0xFF) for i in range(frame_count))


def make_id3v2(title: str = "Test", padding: int = 64, footer: bool = False) -> bytes:
    """A minimal ID3v2 tag holding a TIT2 frame followed by padding.

    With `footer` the tag is ID3v2.4 with the footer flag set and a trailing
    10-byte "3DI" footer; otherwise it is ID3v2.3.
    """
    text = b"\x00" + title.encode("latin-1")
    frame = b"TIT2" + len(text).to_bytes(4, "big") + b"\x00\x00" + text
    body = frame + b"\x00" * padding
    size = len(body)
    syncsafe = bytes(
        [(size >> 21) & 0x7F, (size >> 14) & 0x7F, (size >> 7) & 0x7F, size & 0x7F]
    )
    if footer:
        return b"ID3\x04\x00\x10" + syncsafe + body + b"3DI\x04\x00\x10" + syncsafe
    return b"ID3\x03\x00\x00" + syncsafe + body


def make_id3v1(title: str = "Test") -> bytes:
    """A 128-byte ID3v1 block."""
    return (b"TAG" + title.encode("latin-1")).ljust(128, b"\x00")


def seconds_of_audio(seconds: int) -> bytes:
    """A stream playing for exactly `seconds`."""
    return make_mp3(seconds * 1_000_000 // FRAME_MICROS)


@pytest.fixture
def repository(tmp_path):
    """
    Create a temporary SQLite-backed repository for tests.

    Yields a repository configured to use a SQLite file under the provided temporary path and closes it when the fixture is torn down.
    """
    db_path = tmp_path / "test.db"
    repo = create_repository(f"sqlite:///{db_path}", create_tables=True)
    yield repo
    repo.close()


@pytest.fixture
def sample_show(repository, tmp_path):
    """Persist a show used by store-backed tests."""
    show, _ = repository.upsert_show(
        "Test Show",
        author="Test Author",
        local_directory=str(tmp_path / "Test Show"),
    )
    os.makedirs(show.local_directory, exist_ok=True)
    return show
