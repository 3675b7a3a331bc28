"""Tests for head/tail trimming."""

import io

import pytest

from conftest import (
    FRAME_MICROS,
    FRAME_SIZE,
    make_id3v1,
    make_id3v2,
    make_mp3,
    seconds_of_audio,
)
from podtrim.audio.frames import total_duration
from podtrim.audio.trim import iter_trimmed, seconds_to_micros, trim
from podtrim.errors import DecodeError

SECOND = 1_000_000


def trimmed(data, head_us, tail_us) -> bytes:
    """Run trim into an in-memory buffer and return what was written."""
    out = io.BytesIO()
    written = trim(data, head_us, tail_us, out)
    assert written == len(out.getvalue())
    return out.getvalue()


class TestSecondsToMicros:
    """Tests for the seconds boundary conversion."""

    def test_converts_whole_seconds(self):
        """Test seconds become microseconds."""
        assert seconds_to_micros(0) == 0
        assert seconds_to_micros(5) == 5 * SECOND

    def test_rejects_negative(self):
        """Test negative skips are refused."""
        with pytest.raises(ValueError):
            seconds_to_micros(-1)


class TestPassThrough:
    """Tests for zero head and tail skips."""

    def test_returns_input_verbatim(self):
        """Test the output is the input byte for byte, tags included."""
        data = make_id3v2() + make_mp3(20) + make_id3v1()
        assert trimmed(data, 0, 0) == data

    def test_does_not_decode(self):
        """Test bytes that are not audio pass through untouched."""
        data = b"definitely not an mp3"
        assert trimmed(data, 0, 0) == data

    def test_yields_single_chunk(self):
        """Test the pass-through produces one chunk."""
        data = make_mp3(3)
        chunks = list(iter_trimmed(data, 0, 0))
        assert len(chunks) == 1
        assert bytes(chunks[0]) == data


class TestTrimWindow:
    """Tests for frame selection."""

    def test_thirty_seconds_minus_five_each_side(self):
        """Test 30s of audio trimmed by 5s at each end keeps about 20s."""
        data = seconds_of_audio(30)
        assert total_duration(data) == 30 * SECOND

        out = trimmed(data, 5 * SECOND, 5 * SECOND)

        assert len(out) % FRAME_SIZE == 0
        frames_kept = len(out) // FRAME_SIZE
        kept_us = frames_kept * FRAME_MICROS
        assert abs(kept_us - 20 * SECOND) <= FRAME_MICROS

        # first kept frame ends after 5s, last kept frame ends before 25s
        first_index = 208
        last_index = first_index + frames_kept - 1
        assert (first_index + 1) * FRAME_MICROS > 5 * SECOND
        assert first_index * FRAME_MICROS <= 5 * SECOND
        assert (last_index + 1) * FRAME_MICROS < 25 * SECOND
        assert (last_index + 2) * FRAME_MICROS >= 25 * SECOND
        assert out == data[first_index * FRAME_SIZE:(last_index + 1) * FRAME_SIZE]

    def test_head_only(self):
        """Test a head skip keeps frames ending strictly inside the window."""
        data = make_mp3(10)
        out = trimmed(data, 2 * FRAME_MICROS, 0)
        # the 2nd frame ends on the head cutoff; with no tail skip the cutoff
        # is the full duration, which the last frame ends on
        assert out == data[2 * FRAME_SIZE:9 * FRAME_SIZE]

    def test_tail_only(self):
        """Test a tail skip drops the frame ending exactly at the cutoff."""
        data = make_mp3(10)
        out = trimmed(data, 0, 3 * FRAME_MICROS)
        # cutoff at 7 frames; the 7th frame ends on it and is dropped
        assert out == data[:6 * FRAME_SIZE]

    def test_output_is_whole_frames_in_order(self):
        """Test the output is a contiguous run of complete original frames."""
        data = make_mp3(50)
        out = trimmed(data, 7 * FRAME_MICROS + 1, 11 * FRAME_MICROS + 5)

        start = data.find(out)
        assert start >= 0
        assert start % FRAME_SIZE == 0
        assert len(out) % FRAME_SIZE == 0
        assert total_duration(out) == (len(out) // FRAME_SIZE) * FRAME_MICROS

    def test_tags_are_not_copied(self):
        """Test ID3 tags are left out once trimming is requested."""
        audio = make_mp3(10)
        data = make_id3v2() + audio + make_id3v1()
        out = trimmed(data, 1, 1)
        assert out == audio[:9 * FRAME_SIZE]

    @pytest.mark.parametrize("skip_s", [0, 1, 2, 5, 10, 14])
    def test_head_skip_monotonic(self, skip_s):
        """Test a larger head skip never produces more output."""
        data = seconds_of_audio(15)
        shorter = trimmed(data, skip_s * SECOND, 1)
        longer = trimmed(data, (skip_s + 1) * SECOND, 1)
        assert len(longer) <= len(shorter)

    @pytest.mark.parametrize("skip_s", [0, 1, 2, 5, 10, 14])
    def test_tail_skip_monotonic(self, skip_s):
        """Test a larger tail skip never produces more output."""
        data = seconds_of_audio(15)
        shorter = trimmed(data, 1, skip_s * SECOND)
        longer = trimmed(data, 1, (skip_s + 1) * SECOND)
        assert len(longer) <= len(shorter)


class TestDegenerateTrim:
    """Tests for windows that select nothing."""

    def test_overlapping_skips_give_empty_output(self):
        """Test head skip past the tail cutoff writes nothing and does not fail."""
        data = seconds_of_audio(10)
        assert trimmed(data, 6 * SECOND, 5 * SECOND) == b""

    def test_head_beyond_duration(self):
        """Test a head skip longer than the audio writes nothing."""
        data = seconds_of_audio(3)
        assert trimmed(data, 60 * SECOND, 0) == b""

    def test_head_equal_to_cutoff(self):
        """Test a head skip exactly at the tail cutoff writes nothing."""
        data = seconds_of_audio(10)
        assert trimmed(data, 5 * SECOND, 5 * SECOND) == b""

    @pytest.mark.parametrize("head_us,tail_us", [(5 * SECOND, 0), (0, SECOND), (1, 1)])
    def test_empty_buffer(self, head_us, tail_us):
        """Test an empty buffer has zero duration and gives empty output."""
        assert trimmed(b"", head_us, tail_us) == b""

    def test_tags_without_frames(self):
        """Test a buffer holding only ID3 tags gives empty output."""
        data = make_id3v2() + make_id3v1()
        assert trimmed(data, SECOND, 0) == b""


class TestTrimErrors:
    """Tests for decode failures."""

    def test_no_frames(self):
        """Test a non-empty buffer with nothing but junk is a decode error."""
        with pytest.raises(DecodeError, match="No MPEG audio frames"):
            trimmed(b"\x00" * 1000, SECOND, 0)

    def test_html_body(self):
        """Test an error page served in place of audio is rejected."""
        with pytest.raises(DecodeError):
            trimmed(b"<html><body>Not Found</body></html>", SECOND, SECOND)

    def test_truncated_audio(self):
        """Test a truncated final frame fails before anything is written."""
        data = make_mp3(10)[:-1]
        out = io.BytesIO()

        with pytest.raises(DecodeError):
            trim(data, FRAME_MICROS, FRAME_MICROS, out)

        assert out.getvalue() == b""

    def test_negative_skip(self):
        """Test negative skips are rejected."""
        with pytest.raises(ValueError):
            trimmed(make_mp3(3), -1, 0)
