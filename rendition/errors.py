"""
Errors raised by the rendition pipeline.

Job-scoped errors (SourceUnreadable, DecodeFailure, EncodeFailure) fail only
the jobs of the offending image. ConfigOutOfRange and DuplicateOutputError are
precondition violations and abort the build.
"""

from typing import Optional


class RenditionError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path

    def __str__(self) -> str:
        message = super().__str__()
        if self.path:
            return f"{message}: {self.path}"
        return message


class SourceUnreadable(RenditionError):
    """Source file is missing or cannot be read."""


class DecodeFailure(RenditionError):
    """Source bytes are not a decodable image."""


class EncodeFailure(RenditionError):
    """Transform or encode step failed for a decoded image."""


class CacheCorruption(RenditionError):
    """Cache index file exists but cannot be used."""


class ConfigOutOfRange(RenditionError):
    """Resolved configuration violates its contract (e.g. quality > 100)."""


class DuplicateOutputError(RenditionError):
    """Two jobs in one build target the same output path."""
