from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional

from .content import post_path
from .errors import WriteError
from .models import Artifact, BuildContext
from .pages import build_archive, build_atom, build_categories, build_index, build_rss, build_sitemap
from .render import RenderedDocument, highlight_css, write_text
from .utils import clean_output_dir

logger = logging.getLogger(__name__)

HIGHLIGHT_CSS_PATH = "assets/highlight.css"


def static_artifacts(static_dir: Optional[Path]) -> list[Artifact]:
    if static_dir is None or not static_dir.is_dir():
        return []
    artifacts = []
    for path in sorted(static_dir.rglob("*"), key=lambda p: p.as_posix()):
        if not path.is_file():
            continue
        rel = path.relative_to(static_dir).as_posix()
        artifacts.append(Artifact(path=rel, owner=f"static file {rel}", source=path))
    return artifacts


def item_artifact(document: RenderedDocument) -> Artifact:
    item = document.item
    owner = f"item {item.slug!r}"
    if item.source is not None:
        owner = f"{owner} ({item.source.as_posix()})"
    return Artifact(path=post_path(item.slug), owner=owner, text=document.html, slug=item.slug)


def plan_outputs(
    context: BuildContext, documents: Iterable[RenderedDocument], static_dir: Optional[Path] = None
) -> list[Artifact]:
    documents = [document for document in documents if document.item.published]
    by_item = {document.item: document for document in documents}
    config = context.config

    artifacts = static_artifacts(static_dir)
    artifacts.append(Artifact(path=HIGHLIGHT_CSS_PATH, owner="highlight stylesheet", text=highlight_css()))
    artifacts.extend(item_artifact(document) for document in documents)
    artifacts.append(build_index(context, by_item))
    artifacts.append(build_archive(context))
    artifacts.extend(build_categories(context, by_item))
    optional = [
        build_rss(context, by_item) if config.enable_rss else None,
        build_atom(context, by_item) if config.enable_atom else None,
        build_sitemap(context) if config.enable_sitemap else None,
    ]
    artifacts.extend(artifact for artifact in optional if artifact is not None)
    return artifacts


def check_collisions(artifacts: Iterable[Artifact]) -> None:
    owners: dict[str, Artifact] = {}
    for artifact in artifacts:
        previous = owners.get(artifact.path)
        if previous is not None:
            raise WriteError(
                f"output path {artifact.path} is claimed by both {previous.owner} and {artifact.owner}",
                path=artifact.path,
                slug=artifact.slug or previous.slug,
            )
        owners[artifact.path] = artifact


def remove_unpublished(context: BuildContext, output_dir: Path, planned: set[str]) -> None:
    for item in context.items:
        if item.published:
            continue
        rel = post_path(item.slug)
        if rel in planned:
            continue
        path = output_dir / rel
        if path.exists():
            logger.info("Removing unpublished output %s", path)
            path.unlink()


def write_artifact(artifact: Artifact, output_dir: Path) -> None:
    dest = output_dir / artifact.path
    try:
        if artifact.source is not None:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(artifact.source, dest)
        else:
            write_text(dest, artifact.text)
    except OSError as exc:
        raise WriteError(f"failed to write {dest}: {exc}", path=artifact.path, slug=artifact.slug) from exc


def publish(
    context: BuildContext,
    documents: Iterable[RenderedDocument],
    output_dir: Path,
    static_dir: Optional[Path] = None,
    clean: bool = True,
    protected: Iterable[Path] = (),
) -> list[Artifact]:
    artifacts = plan_outputs(context, documents, static_dir)
    check_collisions(artifacts)

    try:
        if clean:
            clean_output_dir(output_dir, list(protected))
        else:
            remove_unpublished(context, output_dir, {artifact.path for artifact in artifacts})
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(f"failed to prepare {output_dir}: {exc}", path=str(output_dir)) from exc

    for artifact in artifacts:
        write_artifact(artifact, output_dir)
    logger.info("Wrote %d artifacts to %s", len(artifacts), output_dir)
    return artifacts
