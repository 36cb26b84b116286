"""FastLZ-format block compression, the 6pack archive format, and its pack and unpack tools."""

__version__ = "0.1.0"
__all__ = ["fastlz", "archive", "pack", "unpack"]