"""MPEG audio frame scanner.

Walks an in-memory MP3 buffer one frame at a time using the MPEG audio frame
header (MPEG-1, MPEG-2 and MPEG-2.5, Layers I-III). A leading ID3v2 tag is
measured with mutagen and stepped over, a trailing ID3v1 block ends the stream,
and anything else that is not a frame header is skipped byte by byte until the
next sync word.

Example:
    scanner = scan(data)
    total = sum(frame.duration_micros for frame in scanner)
    for frame in scanner:  # a fresh pass over the same buffer
        out.write(frame.payload)
"""

import io
import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from mutagen import MutagenError
from mutagen.id3 import ID3, ID3NoHeaderError

from ..errors import DecodeError

logger = logging.getLogger(__name__)

BytesLike = Union[bytes, bytearray, memoryview]

HEADER_SIZE = 4
ID3V1_SIZE = 128
ID3V2_FOOTER_SIZE = 10
MICROS_PER_SECOND = 1_000_000

# Version ids as encoded in header bits 19-20 (1 is reserved)
MPEG_25 = 0
MPEG_2 = 2
MPEG_1 = 3

# Layer ids as encoded in header bits 17-18 (0 is reserved)
LAYER_III = 1
LAYER_II = 2
LAYER_I = 3

# Bitrates in kbit/s indexed by the 4-bit bitrate index; 0 (free format)
# and 15 (bad) are rejected before lookup.
_BITRATES = {
    (MPEG_1, LAYER_I): (0, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448),
    (MPEG_1, LAYER_II): (0, 32, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 384),
    (MPEG_1, LAYER_III): (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320),
    (MPEG_2, LAYER_I): (0, 32, 48, 56, 64, 80, 96, 112, 128, 144, 160, 176, 192, 224, 256),
    (MPEG_2, LAYER_II): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
    (MPEG_2, LAYER_III): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
}

_SAMPLE_RATES = {
    MPEG_1: (44100, 48000, 32000),
    MPEG_2: (22050, 24000, 16000),
    MPEG_25: (11025, 12000, 8000),
}


@dataclass(frozen=True)
class FrameHeader:
    """Decoded 4-byte MPEG audio frame header."""

    version: int
    layer: int
    bitrate: int  # bits per second
    sample_rate: int
    padding: bool
    channel_mode: int

    @property
    def samples_per_frame(self) -> int:
        if self.layer == LAYER_I:
            return 384
        if self.layer == LAYER_III and self.version != MPEG_1:
            return 576
        return 1152

    @property
    def frame_length(self) -> int:
        """Length of the whole frame in bytes, header included."""
        pad = 1 if self.padding else 0
        if self.layer == LAYER_I:
            return (12 * self.bitrate // self.sample_rate + pad) * 4
        if self.layer == LAYER_III and self.version != MPEG_1:
            return 72 * self.bitrate // self.sample_rate + pad
        return 144 * self.bitrate // self.sample_rate + pad

    @property
    def duration_micros(self) -> int:
        return self.samples_per_frame * MICROS_PER_SECOND // self.sample_rate


@dataclass(frozen=True)
class Frame:
    """One complete frame: its position, raw bytes and play time."""

    offset: int
    payload: memoryview
    duration_micros: int
    header: FrameHeader

    def __len__(self) -> int:
        return len(self.payload)


def parse_header(data: BytesLike, offset: int = 0) -> Optional[FrameHeader]:
    """Decode the frame header starting at `offset`.

    Args:
        data: Buffer holding at least four bytes from `offset`
        offset: Position of the candidate sync word

    Returns:
        FrameHeader, or None if the bytes are not a usable frame header
        (no sync, reserved fields, free-format or bad bitrate)
    """
    if len(data) - offset < HEADER_SIZE:
        return None

    b0, b1, b2, b3 = data[offset], data[offset + 1], data[offset + 2], data[offset + 3]
    if b0 != 0xFF or (b1 & 0xE0) != 0xE0:
        return None

    version = (b1 >> 3) & 0x03
    layer = (b1 >> 1) & 0x03
    bitrate_index = (b2 >> 4) & 0x0F
    sample_rate_index = (b2 >> 2) & 0x03
    if version == 1 or layer == 0:
        return None
    if bitrate_index in (0, 15) or sample_rate_index == 3:
        return None
    if b3 & 0x03 == 2:
        # reserved emphasis
        return None

    table_version = MPEG_1 if version == MPEG_1 else MPEG_2
    return FrameHeader(
        version=version,
        layer=layer,
        bitrate=_BITRATES[(table_version, layer)][bitrate_index] * 1000,
        sample_rate=_SAMPLE_RATES[version][sample_rate_index],
        padding=bool((b2 >> 1) & 0x01),
        channel_mode=(b3 >> 6) & 0x03,
    )


def id3v2_size(data: BytesLike) -> int:
    """Return the size of an ID3v2 tag at the start of `data`, or 0.

    Raises:
        DecodeError: If a tag header is present but mutagen cannot read it
    """
    if bytes(data[:3]) != b"ID3":
        return 0
    try:
        size = ID3(io.BytesIO(data)).size
    except ID3NoHeaderError:
        return 0
    except MutagenError as e:
        raise DecodeError(f"Unreadable ID3v2 tag: {e}") from e

    # mutagen's size excludes the 10-byte footer an ID3v2.4 tag may carry
    if data[3] == 4 and data[5] & 0x10:
        size += ID3V2_FOOTER_SIZE
    return size


class FrameScanner:
    """Lazy, restartable sequence of frames over one buffer.

    Every `iter()` starts a fresh pass from the beginning of the buffer, so
    measuring and copying can walk the same data independently. Frames
    already yielded stay valid if a later frame turns out to be truncated.

    Attributes:
        skipped: Bytes stepped over while resynchronising in the most recently
            completed pass
    """

    def __init__(self, buffer: BytesLike):
        self._raw = buffer
        self._view = memoryview(buffer)
        self.skipped = 0

    def __iter__(self) -> Iterator[Frame]:
        return self._scan()

    def _scan(self) -> Iterator[Frame]:
        view = self._view
        end = len(view)
        pos = id3v2_size(self._raw)
        skipped = 0

        while pos < end:
            remaining = end - pos

            if remaining == ID3V1_SIZE and view[pos:pos + 3] == b"TAG":
                break
            if remaining < HEADER_SIZE:
                skipped += remaining
                break

            header = parse_header(view, pos)
            if header is None:
                if view[pos:pos + 3] == b"ID3":
                    tag_size = id3v2_size(bytes(view[pos:]))
                    if tag_size:
                        logger.debug(f"Skipping embedded ID3v2 tag at byte {pos} ({tag_size} bytes)")
                        pos += tag_size
                        continue
                pos += 1
                skipped += 1
                continue

            length = header.frame_length
            if length > remaining:
                raise DecodeError(
                    f"Truncated frame at byte {pos}: "
                    f"header declares {length} bytes, {remaining} left"
                )

            yield Frame(
                offset=pos,
                payload=view[pos:pos + length],
                duration_micros=header.duration_micros,
                header=header,
            )
            pos += length

        self.skipped = skipped
        if skipped:
            logger.warning(f"Skipped {skipped} non-frame bytes while scanning audio")


def scan(buffer: BytesLike) -> FrameScanner:
    """Return a restartable frame sequence over `buffer`."""
    return FrameScanner(buffer)


def total_duration(buffer: BytesLike) -> int:
    """Sum the durations of every frame in `buffer`, in microseconds.

    Raises:
        DecodeError: If the buffer holds a truncated frame or unreadable tag
    """
    return sum(frame.duration_micros for frame in scan(buffer))
