from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import load_config, site_config_from_args
from .content import discover_sources, load_item
from .errors import MalformedMetadataError, WriteError
from .index import build_index
from .models import BuildContext
from .publish import publish
from .render import load_templates, render_items
from .utils import parse_bool, parse_int

logger = logging.getLogger(__name__)

FEED_LIMIT = 20


def build_site(args: argparse.Namespace) -> int:
    source_dir = Path(args.source)
    output_dir = Path(args.output)
    templates_dir = Path(args.templates) if args.templates else None
    static_dir = Path(args.static) if args.static else None

    if not source_dir.is_dir():
        print(f"Source directory not found: {source_dir}", file=sys.stderr)
        return 1
    if templates_dir is not None and not templates_dir.is_dir():
        print(f"Templates directory not found: {templates_dir}", file=sys.stderr)
        return 1

    context = BuildContext(config=site_config_from_args(args), templates=load_templates(templates_dir))

    for path in discover_sources(source_dir):
        try:
            context.items.append(load_item(path))
        except MalformedMetadataError as exc:
            if context.config.strict:
                print(f"error: {exc}", file=sys.stderr)
                return 1
            logger.warning("Skipping %s", exc)
            context.failures.append(exc)

    context.index = build_index(context.items)
    documents = render_items(context)

    protected = [Path.cwd(), source_dir]
    protected.extend(path for path in (templates_dir, static_dir) if path is not None and path.exists())
    try:
        publish(
            context,
            documents,
            output_dir,
            static_dir=static_dir,
            clean=parse_bool(args.clean),
            protected=protected,
        )
    except WriteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if context.failures:
        print(f"{len(context.failures)} item(s) failed to parse:", file=sys.stderr)
        for exc in context.failures:
            print(f"  {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="postpress.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = load_config(Path(pre_args.config))

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(prog="postpress", description="Build a static site from dated Markdown posts.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    build = subparsers.add_parser("build", help="Parse, index, render and publish the posts.")
    build.add_argument("source", nargs="?", default=cfg_str("source", "_posts"), help="Directory of Markdown posts.")
    build.add_argument("output", nargs="?", default=cfg_str("output", "_site"), help="Output directory for the site.")
    build.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    build.add_argument(
        "--templates",
        default=cfg_str("templates", ""),
        help="Directory whose templates override the packaged ones.",
    )
    build.add_argument("--static", default=cfg_str("static", ""), help="Directory of static files to copy.")
    build.add_argument("--site-name", default=cfg_str("site_name", "Posts"), help="Site title.")
    build.add_argument("--site-description", default=cfg_str("site_description", ""), help="Site description.")
    build.add_argument(
        "--site-url",
        default=cfg_str("site_url", ""),
        help="Public site URL used for feeds and sitemap.",
    )
    build.add_argument(
        "--feed-limit",
        default=cfg_int("feed_limit", FEED_LIMIT),
        type=int,
        help="Maximum number of posts in RSS/Atom feeds.",
    )
    build.add_argument(
        "--toc-depth",
        default=cfg_str("toc_depth", "2-4"),
        help="Heading depth range for the table of contents (e.g. 2-4).",
    )
    build.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("strict", False),
        help="Abort the whole build on the first malformed post.",
    )
    build.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before writing.",
    )
    build.add_argument(
        "--enable-rss",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_rss", True),
        help="Generate rss.xml (needs --site-url).",
    )
    build.add_argument(
        "--enable-atom",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_atom", True),
        help="Generate atom.xml (needs --site-url).",
    )
    build.add_argument(
        "--enable-sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_sitemap", True),
        help="Generate sitemap.xml (needs --site-url).",
    )
    build.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    start = time.perf_counter()
    status = build_site(args)
    elapsed = time.perf_counter() - start
    if status == 0:
        print(f"Build completed in {elapsed:.2f}s.")
        print(f"Site generated in: {args.output}")
    return status
