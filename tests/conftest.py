from __future__ import annotations

import datetime as dt
from pathlib import Path

import pytest

from postpress.models import BuildContext, ContentItem, Layout, SiteConfig
from postpress.render import load_templates


def make_post_text(
    title: str = "Mixins in Elixir",
    date: str = "2013-09-11",
    layout: str = "post",
    categories: str = "",
    published: str = "",
    body: str = "Some prose about macros.",
) -> str:
    lines = ["---", f"layout: {layout}", f'title: "{title}"']
    if date:
        lines.append(f"date: {date}")
    if categories:
        lines.append(f"categories: {categories}")
    if published:
        lines.append(f"published: {published}")
    lines.append("---")
    lines.append(body)
    return "\n".join(lines) + "\n"


def make_item(
    slug: str = "post",
    date: dt.date = dt.date(2013, 9, 11),
    categories: tuple[str, ...] = (),
    published: bool = True,
    layout: Layout = Layout.POST,
    body: str = "Body text.",
    title: str = "",
) -> ContentItem:
    return ContentItem(
        slug=slug,
        title=title or slug.replace("-", " ").title(),
        date=date,
        layout=layout,
        body=body,
        categories=categories,
        published=published,
    )


@pytest.fixture
def write_post(tmp_path: Path):
    source_dir = tmp_path / "_posts"
    source_dir.mkdir()

    def _write(filename: str, **kwargs: str) -> Path:
        path = source_dir / filename
        path.write_text(make_post_text(**kwargs), encoding="utf-8")
        return path

    _write.source_dir = source_dir
    return _write


@pytest.fixture
def context() -> BuildContext:
    return BuildContext(config=SiteConfig(site_name="Test Site"), templates=load_templates())
