from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import MalformedMetadataError


class Layout(str, Enum):
    POST = "post"
    PAGE = "page"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: object) -> "Layout":
        name = str(value).strip().lower() if value is not None else ""
        for layout in cls:
            if layout.value == name:
                return layout
        choices = ", ".join(layout.value for layout in cls)
        raise MalformedMetadataError(f"unknown layout {value!r} (expected one of: {choices})")

    @property
    def template(self) -> str:
        return f"{self.value}.html"


@dataclass(frozen=True)
class CodeBlock:
    language: Optional[str]
    text: str


@dataclass(frozen=True)
class ContentItem:
    slug: str
    title: str
    date: dt.date
    layout: Layout
    body: str
    categories: tuple[str, ...] = ()
    published: bool = True
    description: Optional[str] = None
    code_blocks: tuple[CodeBlock, ...] = ()
    source: Optional[Path] = None
    extra: dict = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class CollectionIndex:
    chronological: tuple[ContentItem, ...]
    categories: dict[str, tuple[ContentItem, ...]] = field(hash=False)
    years: dict[int, tuple[ContentItem, ...]] = field(hash=False)
    category_paths: dict[str, str] = field(default_factory=dict, hash=False)


@dataclass
class SiteConfig:
    site_name: str = "Posts"
    site_description: str = ""
    site_url: str = ""
    feed_limit: int = 20
    toc_depth: str = "2-4"
    enable_rss: bool = True
    enable_atom: bool = True
    enable_sitemap: bool = True
    strict: bool = False


@dataclass(frozen=True)
class Artifact:
    path: str
    owner: str
    text: str = ""
    source: Optional[Path] = None
    slug: str = ""


@dataclass
class BuildContext:
    """State of one build, handed from stage to stage.

    Created once per run. Parsing fills ``items`` and ``failures``, indexing
    fills ``index``; later stages only read it.
    """

    config: SiteConfig
    templates: dict[str, str]
    items: list[ContentItem] = field(default_factory=list)
    failures: list[MalformedMetadataError] = field(default_factory=list)
    index: Optional[CollectionIndex] = None
