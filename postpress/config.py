from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

import yaml

from .models import SiteConfig
from .utils import parse_bool, parse_int

try:
    import tomllib as toml
except ImportError:
    import tomli as toml


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    with path.open("r", encoding="utf-8") as handle:
        text = handle.read()
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            print(f"Invalid TOML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        return data
    if suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            print(f"Invalid YAML in config file {path}: {exc}", file=sys.stderr)
            sys.exit(1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            print(f"YAML config must be a mapping: {path}", file=sys.stderr)
            sys.exit(1)
        return data
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        print(f"Invalid JSON in config file {path}: {exc}", file=sys.stderr)
        sys.exit(1)
    if not isinstance(data, dict):
        print(f"JSON config must be an object: {path}", file=sys.stderr)
        sys.exit(1)
    return data


def site_config_from_args(args: argparse.Namespace) -> SiteConfig:
    return SiteConfig(
        site_name=args.site_name,
        site_description=args.site_description,
        site_url=(args.site_url or "").strip(),
        feed_limit=max(0, parse_int(args.feed_limit, 20)),
        toc_depth=str(args.toc_depth),
        enable_rss=parse_bool(args.enable_rss),
        enable_atom=parse_bool(args.enable_atom),
        enable_sitemap=parse_bool(args.enable_sitemap),
        strict=parse_bool(args.strict),
    )
