"""Frame-accurate head/tail trimming of MP3 audio.

The output is always a byte-exact selection of whole frames from the input, in
their original order; nothing is re-encoded. A frame is kept when the running
play time measured *after* that frame lies strictly between the head cutoff and
the tail cutoff.
"""

import logging
from typing import BinaryIO, Iterator

from ..errors import DecodeError
from .frames import MICROS_PER_SECOND, BytesLike, scan

logger = logging.getLogger(__name__)


def seconds_to_micros(seconds: int) -> int:
    """Convert a whole-second skip value to microseconds.

    Raises:
        ValueError: If `seconds` is negative
    """
    if seconds < 0:
        raise ValueError(f"Skip duration must not be negative, got {seconds}")
    return int(seconds) * MICROS_PER_SECOND


def iter_trimmed(
    buffer: BytesLike, head_skip_us: int, tail_skip_us: int
) -> Iterator[memoryview]:
    """Yield the chunks of the trimmed stream.

    With both skips at zero the whole buffer is yielded untouched and nothing
    is decoded. Otherwise one pass measures the total play time, and a second
    pass yields the payload of every frame inside the window.

    Args:
        buffer: Complete MP3 file contents
        head_skip_us: Play time to drop from the start, in microseconds
        tail_skip_us: Play time to drop from the end, in microseconds

    Raises:
        DecodeError: If the audio is truncated, or holds no frames but is not
            empty apart from ID3 tags
    """
    if head_skip_us < 0 or tail_skip_us < 0:
        raise ValueError("Skip durations must not be negative")

    if head_skip_us == 0 and tail_skip_us == 0:
        yield memoryview(buffer)
        return

    scanner = scan(buffer)
    total = sum(frame.duration_micros for frame in scanner)
    if total == 0 and scanner.skipped:
        # bytes that are neither tags nor frames: not an MP3 at all
        raise DecodeError(f"No MPEG audio frames found in {len(buffer)} bytes")

    tail_cutoff = total - tail_skip_us
    if head_skip_us >= tail_cutoff:
        logger.info(
            f"Skip window is empty: head {head_skip_us}us, "
            f"tail cutoff {tail_cutoff}us of {total}us"
        )
        return

    elapsed = 0
    for frame in scan(buffer):
        elapsed += frame.duration_micros
        if elapsed >= tail_cutoff:
            break
        if elapsed > head_skip_us:
            yield frame.payload


def trim(
    buffer: BytesLike, head_skip_us: int, tail_skip_us: int, dest: BinaryIO
) -> int:
    """Write the trimmed stream to `dest` as it is produced.

    Bytes already written stay in `dest` if decoding fails part way.

    Returns:
        Number of bytes written
    """
    written = 0
    for chunk in iter_trimmed(buffer, head_skip_us, tail_skip_us):
        dest.write(chunk)
        written += len(chunk)
    return written
