from __future__ import annotations

import datetime as dt
import html as html_lib
import logging
import re
from pathlib import Path
from typing import Optional, Union

import yaml

from .errors import MalformedMetadataError
from .models import CodeBlock, ContentItem, Layout
from .utils import FALSE_VALUES, TRUE_VALUES

logger = logging.getLogger(__name__)

SOURCE_SUFFIXES = {".md", ".markdown"}
REQUIRED_KEYS = ("layout", "title", "date")
RECOGNIZED_KEYS = {"layout", "title", "date", "categories", "category", "published", "description", "slug"}
HEADER_OPEN = "---"
HEADER_CLOSE = {"---", "..."}

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")
DATE_RE = re.compile(r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})(?:[ T].*)?$")
LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
FENCE_OPEN_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*(?P<lang>[^\s`{}]*)[^`]*$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})[ \t]*$")
WORD_RE = re.compile(r"[A-Za-z0-9]+(?:'[A-Za-z0-9]+)?")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")


def slugify(text: str) -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or "post"


def post_path(slug: str) -> str:
    return f"posts/{slug}.html"


def category_path(slug: str) -> str:
    return f"categories/{slug}.html"


def discover_sources(source_dir: Path) -> list[Path]:
    files = []
    for path in source_dir.rglob("*"):
        if not path.is_file() or path.suffix.lower() not in SOURCE_SUFFIXES:
            continue
        if path.name.startswith(("_", ".")):
            continue
        files.append(path)
    return sorted(files, key=lambda p: p.as_posix())


def split_front_matter(text: str) -> tuple[str, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != HEADER_OPEN:
        raise MalformedMetadataError("missing front matter header")

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() in HEADER_CLOSE:
            end = i
            break
    if end is None:
        raise MalformedMetadataError("unterminated front matter header")

    header = "\n".join(lines[1:end])
    body = "\n".join(lines[end + 1 :])
    return header, body


def parse_front_matter(text: str) -> tuple[dict, str]:
    header, body = split_front_matter(text)
    try:
        meta = yaml.safe_load(header) if header.strip() else {}
    except (yaml.YAMLError, ValueError) as exc:
        raise MalformedMetadataError(f"invalid front matter: {exc}") from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise MalformedMetadataError("front matter must be a mapping")
    meta_folded: dict = {}
    for key, value in meta.items():
        folded = str(key).strip().lower()
        if folded in meta_folded:
            raise MalformedMetadataError(f"duplicate front matter key {folded!r}")
        meta_folded[folded] = value
    return meta_folded, body


def _scalar_text(key: str, value: object) -> str:
    if isinstance(value, bool) or value is None:
        raise MalformedMetadataError(f"{key!r} must be text, got {value!r}")
    if isinstance(value, (str, int, float)):
        return str(value).strip()
    raise MalformedMetadataError(f"{key!r} must be text, got {type(value).__name__}")


def parse_date(value: object) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        match = DATE_RE.match(value.strip())
        if match:
            try:
                return dt.date(int(match.group("year")), int(match.group("month")), int(match.group("day")))
            except ValueError as exc:
                raise MalformedMetadataError(f"invalid date {value!r}: {exc}") from exc
    raise MalformedMetadataError(f"invalid date {value!r} (expected YYYY-MM-DD)")


def parse_categories(meta: dict) -> tuple[str, ...]:
    if "categories" in meta:
        key = "categories"
    elif "category" in meta:
        key = "category"
    else:
        return ()
    value = meta[key]
    if value is None:
        return ()
    if isinstance(value, str):
        values = [value]
    elif isinstance(value, list):
        values = [_scalar_text(key, item) for item in value]
    else:
        raise MalformedMetadataError(f"{key!r} must be a string or a list of strings")

    categories: list[str] = []
    for name in values:
        name = name.strip()
        if name and name not in categories:
            categories.append(name)
    return tuple(categories)


def parse_published(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    raise MalformedMetadataError(f"'published' must be a boolean, got {value!r}")


def derive_slug(meta: dict, title: object, source: Optional[Path]) -> str:
    explicit = meta.get("slug")
    if explicit is not None and _scalar_text("slug", explicit):
        return slugify(_scalar_text("slug", explicit))
    if source is not None:
        stem = DATE_PREFIX_RE.sub("", source.stem)
        if stem:
            return slugify(stem)
    if isinstance(title, (str, int, float)) and not isinstance(title, bool) and str(title).strip():
        return slugify(str(title))
    return ""


def split_fenced_blocks(lines: list[str]) -> list[Union[str, CodeBlock]]:
    """Split Markdown lines into plain lines and whole fenced code blocks.

    An unterminated fence runs to the end of the document.
    """
    out: list[Union[str, CodeBlock]] = []
    fence = ""
    language: Optional[str] = None
    block: list[str] = []
    for line in lines:
        if not fence:
            match = FENCE_OPEN_RE.match(line)
            if match:
                fence = match.group("fence")
                language = match.group("lang") or None
                block = []
            else:
                out.append(line)
            continue
        close = FENCE_CLOSE_RE.match(line)
        if close and close.group("fence")[0] == fence[0] and len(close.group("fence")) >= len(fence):
            out.append(CodeBlock(language=language, text="\n".join(block)))
            fence = ""
            continue
        block.append(line)
    if fence:
        out.append(CodeBlock(language=language, text="\n".join(block)))
    return out


def extract_code_blocks(body: str) -> tuple[CodeBlock, ...]:
    return tuple(part for part in split_fenced_blocks(body.splitlines()) if isinstance(part, CodeBlock))


def parse_item(text: str, source: Optional[Path] = None) -> ContentItem:
    slug = ""
    try:
        meta, body = parse_front_matter(text)
        slug = derive_slug(meta, meta.get("title"), source)
        for key in REQUIRED_KEYS:
            if meta.get(key) is None or meta.get(key) == "":
                raise MalformedMetadataError(f"missing required key {key!r}")
        title = _scalar_text("title", meta["title"])
        if not title:
            raise MalformedMetadataError("missing required key 'title'")
        layout = Layout.parse(meta["layout"])
        date = parse_date(meta["date"])
        categories = parse_categories(meta)
        published = parse_published(meta.get("published"))
        description = meta.get("description")
        if description is not None:
            description = _scalar_text("description", description)
    except MalformedMetadataError as exc:
        exc.source = source
        exc.slug = exc.slug or slug or derive_slug({}, None, source)
        raise

    extra = {key: value for key, value in meta.items() if key not in RECOGNIZED_KEYS}
    return ContentItem(
        slug=slug,
        title=title,
        date=date,
        layout=layout,
        body=body,
        categories=categories,
        published=published,
        description=description or None,
        code_blocks=extract_code_blocks(body),
        source=source,
        extra=extra,
    )


def load_item(path: Path) -> ContentItem:
    try:
        with path.open("r", encoding="utf-8") as handle:
            text = handle.read()
    except (UnicodeDecodeError, OSError) as exc:
        slug = derive_slug({}, None, path)
        raise MalformedMetadataError(f"cannot read source: {exc}", source=path, slug=slug) from exc
    item = parse_item(text, source=path)
    logger.debug("Parsed %s as %s (published=%s)", path, item.slug, item.published)
    return item


def serialize_front_matter(item: ContentItem) -> str:
    meta = {
        "layout": item.layout.value,
        "title": item.title,
        "date": item.date,
        "slug": item.slug,
        "categories": list(item.categories),
        "published": item.published,
    }
    if item.description:
        meta["description"] = item.description
    meta.update(item.extra)
    header = yaml.safe_dump(meta, allow_unicode=True, sort_keys=False, default_flow_style=False, width=1000)
    return f"{HEADER_OPEN}\n{header}{HEADER_OPEN}\n"


def normalize_list_spacing(text: str) -> str:
    out: list[str] = []
    fence_marker = ""
    for line in text.splitlines():
        if fence_marker:
            close = FENCE_CLOSE_RE.match(line)
            if close and close.group("fence")[0] == fence_marker[0] and len(close.group("fence")) >= len(fence_marker):
                fence_marker = ""
            out.append(line)
            continue
        fence_match = FENCE_OPEN_RE.match(line)
        if fence_match:
            fence_marker = fence_match.group("fence")
            out.append(line)
            continue
        list_match = LIST_MARKER_RE.match(line)
        if list_match and not list_match.group("indent"):
            if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                out.append("")
        out.append(line)
    return "\n".join(out)


def count_words(text: str) -> int:
    text = html_lib.unescape(text)
    cjk_count = len(CJK_RE.findall(text))
    text = CJK_RE.sub(" ", text)
    word_count = len(WORD_RE.findall(text))
    return cjk_count + word_count
