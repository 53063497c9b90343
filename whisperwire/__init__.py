"""Whisperwire - streaming and batch speech-to-text transcription."""

__version__ = "0.1.0"
