from __future__ import annotations

import logging
from typing import Iterable

from .content import category_path, slugify
from .models import CollectionIndex, ContentItem

logger = logging.getLogger(__name__)


def chronological(items: Iterable[ContentItem]) -> tuple[ContentItem, ...]:
    # Two stable sorts: slug ascending, then date descending.
    ordered = sorted(items, key=lambda item: item.slug)
    ordered.sort(key=lambda item: item.date, reverse=True)
    return tuple(ordered)


def assign_category_paths(names: Iterable[str]) -> dict[str, str]:
    """Give every category name its own output path.

    Names are taken in the order given. The first name to claim a slug keeps it,
    later names with the same slug (``Elixir`` and ``elixir``, ``C++`` and ``c``)
    get ``-2``, ``-3`` and so on.
    """
    paths: dict[str, str] = {}
    used: set[str] = set()
    for name in names:
        base = slugify(name)
        slug = base
        n = 2
        while slug in used:
            slug = f"{base}-{n}"
            n += 1
        used.add(slug)
        paths[name] = category_path(slug)
    return paths


def build_index(items: Iterable[ContentItem]) -> CollectionIndex:
    published = [item for item in items if item.published]
    posts = chronological(published)

    category_map: dict[str, list[ContentItem]] = {}
    year_map: dict[int, list[ContentItem]] = {}
    for item in posts:
        for category in item.categories:
            category_map.setdefault(category, []).append(item)
        year_map.setdefault(item.date.year, []).append(item)

    categories = {
        name: tuple(members)
        for name, members in sorted(category_map.items(), key=lambda x: (x[0].lower(), x[0]))
    }
    years = {year: tuple(members) for year, members in sorted(year_map.items(), reverse=True)}
    logger.info("Indexed %d published items in %d categories", len(posts), len(categories))
    return CollectionIndex(
        chronological=posts,
        categories=categories,
        years=years,
        category_paths=assign_category_paths(categories),
    )
