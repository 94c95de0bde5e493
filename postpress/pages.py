from __future__ import annotations

import html
from typing import Optional

from .content import post_path
from .models import Artifact, BuildContext, ContentItem
from .render import RenderedDocument, category_chips, render_page
from .utils import iso_date, join_url, rfc822_date

INDEX_PATH = "index.html"
ARCHIVE_PATH = "archive.html"
RSS_PATH = "rss.xml"
ATOM_PATH = "atom.xml"
SITEMAP_PATH = "sitemap.xml"


def build_category_list(context: BuildContext, root: str) -> str:
    items = []
    for name, members in sorted(context.index.categories.items(), key=lambda x: (-len(x[1]), x[0].lower())):
        items.append(
            f'<li><a href="{root}/{context.index.category_paths[name]}">{html.escape(name)}</a>'
            f'<span class="count">{len(members)}</span></li>'
        )
    return "\n".join(items) if items else "<li>No categories yet.</li>"


def build_post_cards(
    items: tuple[ContentItem, ...],
    documents: dict[ContentItem, RenderedDocument],
    root: str,
    paths: dict[str, str],
) -> str:
    cards = []
    for item in items:
        document = documents.get(item)
        summary = html.escape(document.summary) if document else ""
        words = document.words if document else 0
        url = f"{root}/{post_path(item.slug)}"
        cards.append(
            '<article class="post-card">'
            '<div class="post-meta">'
            f'<span class="post-date">{item.date.isoformat()}</span>'
            f'<span class="post-words">{words} words</span>'
            f'<div class="post-tags">{category_chips(item.categories, root, paths)}</div></div>'
            f'<h2 class="post-title"><a href="{url}">{html.escape(item.title)}</a></h2>'
            f'<p class="post-summary">{summary}</p>'
            f'<a class="post-more" href="{url}">Read more</a>'
            "</article>"
        )
    return "\n".join(cards)


def build_index(context: BuildContext, documents: dict[ContentItem, RenderedDocument]) -> Artifact:
    root = "."
    cards = build_post_cards(context.index.chronological, documents, root, context.index.category_paths)
    content = (
        '<div class="section-head">'
        "<h2>Latest posts</h2>"
        "</div>"
        f'<div class="post-grid">{cards}</div>'
        '<aside class="categories"><h3>Categories</h3>'
        f'<ul class="category-list">{build_category_list(context, root)}</ul></aside>'
    )
    text = render_page(context, title=f"{context.config.site_name} | Home", root=root, content=content)
    return Artifact(path=INDEX_PATH, owner="index", text=text)


def build_categories(context: BuildContext, documents: dict[ContentItem, RenderedDocument]) -> list[Artifact]:
    root = ".."
    artifacts = []
    for name, members in context.index.categories.items():
        cards = build_post_cards(members, documents, root, context.index.category_paths)
        content = (
            '<div class="section-head">'
            f"<h2>{html.escape(name)}</h2>"
            "<p>Posts grouped in this category.</p>"
            "</div>"
            f'<div class="post-grid">{cards}</div>'
        )
        text = render_page(context, title=f"{name} | {context.config.site_name}", root=root, content=content)
        artifacts.append(Artifact(path=context.index.category_paths[name], owner=f"category {name!r}", text=text))
    return artifacts


def build_archive(context: BuildContext) -> Artifact:
    root = "."
    sections = []
    for year, members in context.index.years.items():
        rows = []
        for item in members:
            rows.append(
                f'<li><span class="archive-date">{item.date.isoformat()}</span>'
                f'<a href="{root}/{post_path(item.slug)}">{html.escape(item.title)}</a></li>'
            )
        sections.append(
            f'<section class="archive-group"><h3>{year}</h3>'
            f'<ul class="archive-list">{"".join(rows)}</ul></section>'
        )
    if not sections:
        sections.append('<p class="archive-empty">No posts yet.</p>')
    content = (
        '<div class="section-head">'
        "<h2>Archive</h2>"
        f"<p>{len(context.index.chronological)} posts by year.</p>"
        "</div>"
        f'{"".join(sections)}'
    )
    text = render_page(context, title=f"Archive | {context.config.site_name}", root=root, content=content)
    return Artifact(path=ARCHIVE_PATH, owner="archive", text=text)


def build_rss(context: BuildContext, documents: dict[ContentItem, RenderedDocument]) -> Optional[Artifact]:
    config = context.config
    if not config.site_url:
        return None
    site_url = config.site_url.rstrip("/")
    posts = context.index.chronological
    items = []
    for item in posts[: config.feed_limit]:
        link = join_url(site_url, post_path(item.slug))
        document = documents.get(item)
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(item.title)}</title>",
                    f"<link>{link}</link>",
                    f"<guid>{link}</guid>",
                    f"<pubDate>{rfc822_date(item.date)}</pubDate>",
                    f"<description>{html.escape(document.summary if document else '')}</description>",
                    "</item>",
                ]
            )
        )
    channel = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0">',
        "<channel>",
        f"<title>{html.escape(config.site_name)}</title>",
        f"<link>{site_url}/</link>",
        f"<description>{html.escape(config.site_description)}</description>",
    ]
    if posts:
        channel.append(f"<lastBuildDate>{rfc822_date(posts[0].date)}</lastBuildDate>")
    rss = "\n".join(channel + ["\n".join(items), "</channel>", "</rss>"])
    return Artifact(path=RSS_PATH, owner="rss feed", text=rss)


def build_atom(context: BuildContext, documents: dict[ContentItem, RenderedDocument]) -> Optional[Artifact]:
    config = context.config
    if not config.site_url:
        return None
    site_url = config.site_url.rstrip("/")
    posts = context.index.chronological
    entries = []
    for item in posts[: config.feed_limit]:
        link = join_url(site_url, post_path(item.slug))
        document = documents.get(item)
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(item.title)}</title>",
                    f'<link href="{link}" />',
                    f"<id>{link}</id>",
                    f"<updated>{iso_date(item.date)}</updated>",
                    f"<summary>{html.escape(document.summary if document else '')}</summary>",
                    "</entry>",
                ]
            )
        )
    feed = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<feed xmlns="http://www.w3.org/2005/Atom">',
        f"<title>{html.escape(config.site_name)}</title>",
        f"<id>{site_url}/</id>",
    ]
    if posts:
        feed.append(f"<updated>{iso_date(posts[0].date)}</updated>")
    feed.extend(
        [
            f'<link href="{site_url}/{ATOM_PATH}" rel="self" />',
            f'<link href="{site_url}/" />',
            "\n".join(entries),
            "</feed>",
        ]
    )
    return Artifact(path=ATOM_PATH, owner="atom feed", text="\n".join(feed))


def build_sitemap(context: BuildContext) -> Optional[Artifact]:
    if not context.config.site_url:
        return None
    site_url = context.config.site_url.rstrip("/")
    urls = [(site_url + "/", None), (join_url(site_url, ARCHIVE_PATH), None)]
    for item in context.index.chronological:
        urls.append((join_url(site_url, post_path(item.slug)), item.date.isoformat()))
    for name in context.index.categories:
        urls.append((join_url(site_url, context.index.category_paths[name]), None))
    entries = []
    for url, lastmod in urls:
        lines = ["<url>", f"<loc>{html.escape(url)}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{lastmod}</lastmod>")
        lines.append("</url>")
        entries.append("\n".join(lines))
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(entries),
            "</urlset>",
        ]
    )
    return Artifact(path=SITEMAP_PATH, owner="sitemap", text=sitemap)
