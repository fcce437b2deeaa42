"""VideoMind - personal knowledge library ingestion for video, media and web content."""

__version__ = "0.1.0"
