from __future__ import annotations

from pathlib import Path
from typing import Optional


class PostpressError(Exception):
    """Base error for the build pipeline."""


class MalformedMetadataError(PostpressError):
    """Front matter is missing, unterminated, or fails validation."""

    def __init__(self, message: str, source: Optional[Path] = None, slug: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.source = source
        self.slug = slug

    @property
    def label(self) -> str:
        if self.slug:
            return self.slug
        if self.source is not None:
            return self.source.as_posix()
        return "<unknown>"

    def __str__(self) -> str:
        return f"{self.label}: {self.message}"


class WriteError(PostpressError):
    """An output path collides with another artifact, or the filesystem refused a write."""

    def __init__(self, message: str, path: str = "", slug: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.path = path
        self.slug = slug

    def __str__(self) -> str:
        if self.slug:
            return f"{self.slug}: {self.message}"
        return self.message
