"""Utility modules for podtrim."""

from .paths import episode_output_path, sanitize_filename, show_directory

__all__ = [
    'episode_output_path',
    'sanitize_filename',
    'show_directory',
]
