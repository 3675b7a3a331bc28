"""Podcast feed sync with frame-accurate head/tail trimming of episode audio."""

__version__ = "0.1.0"
