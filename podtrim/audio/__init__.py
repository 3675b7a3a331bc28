"""Audio handling.

Provides:
- MPEG frame scanning and duration measurement
- Frame-accurate head/tail trimming
"""

from .frames import Frame, FrameHeader, FrameScanner, parse_header, scan, total_duration
from .trim import iter_trimmed, seconds_to_micros, trim

__all__ = [
    "Frame",
    "FrameHeader",
    "FrameScanner",
    "parse_header",
    "scan",
    "total_duration",
    "iter_trimmed",
    "seconds_to_micros",
    "trim",
]
