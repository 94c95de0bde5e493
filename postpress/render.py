from __future__ import annotations

import html
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Optional

import markdown
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.lexers.special import TextLexer
from pygments.util import ClassNotFound

from .content import category_path, count_words, normalize_list_spacing, slugify, split_fenced_blocks
from .models import BuildContext, CodeBlock, ContentItem, Layout

IMG_SRC_RE = re.compile(r'<img([^>]*?)src="([^"]+)"', re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")
HIGHLIGHT_CLASS = "codehilite"
PLAIN_LANGUAGES = {"", "plain", "text", "txt"}
TEMPLATE_NAMES = ("base.html",) + tuple(layout.template for layout in Layout)
SUMMARY_LENGTH = 200


@dataclass(frozen=True)
class RenderedDocument:
    item: ContentItem
    html: str
    summary: str
    words: int
    toc: str = ""


def highlight_code(code: str, language: Optional[str]) -> str:
    lang = (language or "plain").strip().lower()
    formatter = HtmlFormatter(cssclass=HIGHLIGHT_CLASS, wrapcode=True)
    if lang in PLAIN_LANGUAGES:
        return highlight(code, TextLexer(), formatter)
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        # Unknown tag: keep the code, skip the colours.
        return (
            f'<div class="{HIGHLIGHT_CLASS}"><pre><code class="language-{html.escape(lang)}">'
            f"{html.escape(code)}\n</code></pre></div>\n"
        )
    return highlight(code, lexer, formatter)


def highlight_css() -> str:
    return HtmlFormatter(cssclass=HIGHLIGHT_CLASS).get_style_defs(f".{HIGHLIGHT_CLASS}")


class FencedCodePreprocessor(Preprocessor):
    def run(self, lines: list[str]) -> list[str]:
        out: list[str] = []
        for part in split_fenced_blocks(lines):
            if isinstance(part, CodeBlock):
                placeholder = self.md.htmlStash.store(highlight_code(part.text, part.language))
                out.extend(["", placeholder, ""])
            else:
                out.append(part)
        return out


class HighlightExtension(Extension):
    def extendMarkdown(self, md):
        md.preprocessors.register(FencedCodePreprocessor(md), "fenced_code_highlight", 25)


def render_markdown(body: str, toc_depth: str = "2-4") -> tuple[str, str]:
    md = markdown.Markdown(
        extensions=[HighlightExtension(), "tables", "toc"],
        extension_configs={"toc": {"toc_depth": toc_depth}},
    )
    html_content = md.convert(normalize_list_spacing(body))
    toc_html = md.toc
    md.reset()
    return html_content, toc_html


def fix_relative_img_src(html_text: str, root: str) -> str:
    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        src = match.group(2)
        if src.startswith(("http://", "https://", "data:", "#", "/", "./", "../")):
            return match.group(0)
        return f'<img{attrs}src="{root}/{src}"'

    return IMG_SRC_RE.sub(repl, html_text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def summarize(text: str) -> str:
    summary = " ".join(html.unescape(text).split())
    if len(summary) > SUMMARY_LENGTH:
        return summary[:SUMMARY_LENGTH] + "..."
    return summary


def render_template(template: str, **context: str) -> str:
    # One pass: substituted values are never scanned for placeholders again.
    return PLACEHOLDER_RE.sub(lambda match: context.get(match.group(1), match.group(0)), template)


def read_template(path: Path) -> str:
    with path.open("r", encoding="utf-8") as handle:
        return handle.read()


def load_templates(override_dir: Optional[Path] = None) -> dict[str, str]:
    packaged = resources.files("postpress") / "templates"
    templates = {}
    for name in TEMPLATE_NAMES:
        if override_dir is not None and (override_dir / name).is_file():
            templates[name] = read_template(override_dir / name)
        else:
            templates[name] = packaged.joinpath(name).read_text(encoding="utf-8")
    return templates


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        handle.write(text)


def render_page(
    context: BuildContext, title: str, root: str, content: str, description: str = "", extra_head: str = ""
) -> str:
    config = context.config
    return render_template(
        context.templates["base.html"],
        title=html.escape(title),
        description=html.escape(description or config.site_description),
        root=root,
        site_name=html.escape(config.site_name),
        site_description=html.escape(config.site_description),
        extra_head=extra_head,
        content=content,
    )


def category_chips(categories: tuple[str, ...], root: str, paths: Optional[dict[str, str]] = None) -> str:
    paths = paths or {}
    return " ".join(
        f'<a class="chip" href="{root}/{paths.get(name) or category_path(slugify(name))}">{html.escape(name)}</a>'
        for name in categories
    )


def render_item(item: ContentItem, context: BuildContext) -> RenderedDocument:
    root = ".."
    body_html, toc_html = render_markdown(item.body, context.config.toc_depth)
    body_html = fix_relative_img_src(body_html, root)
    text = strip_tags(body_html)
    summary = item.description or summarize(text)
    words = count_words(text)
    layout_html = render_template(
        context.templates[item.layout.template],
        title=html.escape(item.title),
        date=item.date.isoformat(),
        words=str(words),
        categories=category_chips(item.categories, root, context.index.category_paths if context.index else None),
        toc=toc_html if "<li" in toc_html else "",
        root=root,
        content=body_html,
    )
    document = render_page(
        context,
        title=f"{item.title} | {context.config.site_name}",
        root=root,
        content=layout_html,
        description=summary,
    )
    return RenderedDocument(item=item, html=document, summary=summary, words=words, toc=toc_html)


def render_items(context: BuildContext) -> list[RenderedDocument]:
    if context.index is None:
        return []
    return [render_item(item, context) for item in context.index.chronological]
