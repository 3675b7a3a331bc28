"""
Filesystem naming for show directories and trimmed episode files.

A show's directory and an episode's file name are derived from their titles,
so the same title always maps to the same path.
"""
import os
import re

_ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')


def sanitize_filename(name: str, fallback: str = "untitled") -> str:
    """
    Make a title usable as a single path component.

    Removes characters that are illegal in file names on common filesystems
    and control characters, then strips surrounding spaces and dots. Inner
    spaces are kept.

    Args:
        name: Show or episode title
        fallback: Returned if nothing usable is left

    Examples:
        >>> sanitize_filename('Ep. 12: "Q&A" / Live')
        'Ep. 12 Q&A  Live'
        >>> sanitize_filename('...')
        'untitled'
    """
    safe = _ILLEGAL_CHARS.sub("", name)
    safe = safe.strip(" .")
    return safe or fallback


def show_directory(base_dir: str, show_title: str) -> str:
    """Directory holding a show's trimmed episodes."""
    return os.path.join(base_dir, sanitize_filename(show_title, fallback="podcast"))


def episode_output_path(show_dir: str, episode_title: str) -> str:
    """Destination of an episode's trimmed audio inside its show directory."""
    return os.path.join(show_dir, f"{sanitize_filename(episode_title)}.mp3")
