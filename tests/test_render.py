"""Tests for Markdown rendering, highlighting and layout templates."""

from dataclasses import replace
from pathlib import Path

from conftest import make_item
from postpress.index import build_index
from postpress.models import BuildContext, Layout
from postpress.render import (
    fix_relative_img_src,
    highlight_code,
    highlight_css,
    load_templates,
    render_item,
    render_markdown,
    render_template,
)

ELIXIR_BODY = """Intro paragraph.

## Usage

```elixir
defmodule Greeter do
  def hello, do: :world
end
```
"""


class TestHighlight:
    def test_known_language(self):
        out = highlight_code("defmodule Foo do\nend", "elixir")
        assert 'class="codehilite"' in out
        assert "<span" in out
        assert "defmodule" in out

    def test_missing_language_is_plain(self):
        out = highlight_code("a < b", None)
        assert 'class="codehilite"' in out
        assert "a &lt; b" in out

    def test_unknown_language_falls_back(self):
        out = highlight_code("x <- y", "definitely-not-a-language")
        assert 'class="language-definitely-not-a-language"' in out
        assert "x &lt;- y" in out

    def test_stylesheet(self):
        assert ".codehilite" in highlight_css()


class TestRenderMarkdown:
    def test_code_block_is_highlighted(self):
        html, _ = render_markdown(ELIXIR_BODY)
        assert "<p>Intro paragraph.</p>" in html
        assert 'class="codehilite"' in html
        assert "```" not in html

    def test_toc_collects_headings(self):
        _, toc = render_markdown(ELIXIR_BODY)
        assert "Usage" in toc

    def test_tables(self):
        html, _ = render_markdown("| a | b |\n|---|---|\n| 1 | 2 |\n")
        assert "<table>" in html

    def test_list_after_paragraph(self):
        html, _ = render_markdown("Items:\n- one\n- two\n")
        assert "<li>one</li>" in html


class TestTemplates:
    def test_render_template_fills_placeholders(self):
        assert render_template("<h1>{{title}}</h1>{{content}}", title="T", content="C") == "<h1>T</h1>C"

    def test_values_are_not_substituted_again(self):
        out = render_template("{{content}}|{{title}}", content="{{title}}", title="T")
        assert out == "{{title}}|T"

    def test_placeholder_inside_value_stays_literal(self):
        out = render_template("<h1>{{title}}</h1><time>{{date}}</time>", title="{{date}}", date="2013-09-11")
        assert out == "<h1>{{date}}</h1><time>2013-09-11</time>"

    def test_unknown_placeholder_is_kept(self):
        assert render_template("{{title}} {{missing}}", title="T") == "T {{missing}}"

    def test_packaged_templates_exist(self):
        templates = load_templates()
        assert set(templates) == {"base.html", "post.html", "page.html", "default.html"}

    def test_override_directory(self, tmp_path: Path):
        (tmp_path / "post.html").write_text("<section>{{title}}|{{content}}</section>", encoding="utf-8")
        templates = load_templates(tmp_path)
        assert templates["post.html"].startswith("<section>")
        assert "{{content}}" in templates["base.html"]


class TestRenderItem:
    def test_same_item_renders_identically(self, context: BuildContext):
        item = make_item(body=ELIXIR_BODY, categories=("elixir",))
        assert render_item(item, context).html == render_item(item, context).html

    def test_post_layout_wraps_body(self, context: BuildContext):
        item = make_item(slug="mixins", title="Mixins", categories=("elixir",), body="Hello **there**.")
        document = render_item(item, context)
        assert '<article class="post">' in document.html
        assert "<strong>there</strong>" in document.html
        assert "<title>Mixins | Test Site</title>" in document.html
        assert 'href="../categories/elixir.html"' in document.html

    def test_page_layout(self, context: BuildContext):
        document = render_item(make_item(layout=Layout.PAGE, body="About me."), context)
        assert '<article class="page">' in document.html

    def test_summary_from_body_text(self, context: BuildContext):
        item = make_item(body="Long body text.")
        assert render_item(item, context).summary == "Long body text."

    def test_summary_prefers_description(self, context: BuildContext):
        item = replace(make_item(body="Long body text."), description="Short.")
        assert render_item(item, context).summary == "Short."

    def test_title_is_escaped(self, context: BuildContext):
        document = render_item(make_item(title="<script>"), context)
        assert "<script>" not in document.html
        assert "&lt;script&gt;" in document.html

    def test_placeholder_text_in_title_and_body_is_kept(self, context: BuildContext):
        item = make_item(title="{{date}}", body="Write {{site_name}} in templates.")
        document = render_item(item, context)
        assert '<h1 class="post-title">{{date}}</h1>' in document.html
        assert "Write {{site_name}} in templates." in document.html

    def test_chips_use_index_paths(self, context: BuildContext):
        first = make_item(slug="first", categories=("Elixir",))
        second = make_item(slug="second", categories=("elixir",))
        context.index = build_index([first, second])
        assert 'href="../categories/elixir-2.html"' in render_item(second, context).html
        assert 'href="../categories/elixir.html"' in render_item(first, context).html


def test_relative_images_point_at_root():
    html = '<img alt="x" src="img/a.png"><img src="https://e.com/b.png">'
    out = fix_relative_img_src(html, "..")
    assert 'src="../img/a.png"' in out
    assert 'src="https://e.com/b.png"' in out
