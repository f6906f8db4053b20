"""Chunked video upload merger and MPEG-DASH conversion worker."""

__version__ = "0.1.0"
