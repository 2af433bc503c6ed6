"""Import legacy slug-addressed markdown files into the object store.

Why:
    Recipes and blog posts used to live as local `{slug}.mdx` files. Their
    ids are derived from the slug (md5 reshaped as UUID) so re-running the
    import overwrites the same documents instead of creating duplicates.

Usage example:

    python -m backend.tools.import_legacy ./content/recipes \
        --kind recipes --images-dir ./content/recipe-images --dry-run

Behaviour:
    - Reads `*.md`/`*.mdx` files from SOURCE_DIR (README files are skipped).
    - Uses the front-matter `uuid` when present, else `derive_id(stem)`.
    - Uploads `{uuid}_cover.jpg` from `--images-dir` as the cover when found.
    - `--dry-run` prints the plan and writes nothing.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import click

from backend.content import frontmatter
from backend.content.domain import BlogPost, MarkdownDocument, Recipe
from backend.content.identity import derive_id
from backend.content.repository import MarkdownRepository
from backend.storage.bootstrap import build_object_store
from backend.storage.config import load_store_config
from backend.storage.keys import is_valid_id

logger = logging.getLogger("kitchen.tools.import_legacy")

_DOC_TYPES = {"recipes": Recipe, "blogs": BlogPost}
_SUFFIXES = (".md", ".mdx")


@dataclass(frozen=True)
class ImportItem:
    source: Path
    doc: MarkdownDocument
    cover: Optional[Path] = None


def plan_import(
    source_dir: Path,
    doc_type: type[MarkdownDocument],
    images_dir: Path | None = None,
    *,
    publish_missing: bool = False,
) -> List[ImportItem]:
    """Parse every legacy file into a document; the order follows file names."""
    items: List[ImportItem] = []
    for path in sorted(source_dir.iterdir()):
        if not path.is_file() or path.suffix.lower() not in _SUFFIXES:
            continue
        if path.stem.lower() == "readme":
            continue
        data, body = frontmatter.parse(path.read_text(encoding="utf-8"))
        doc_id = str(data.get("uuid") or "").strip() or derive_id(path.stem)
        if not is_valid_id(doc_id):
            raise click.ClickException(f"{path.name}: unusable id {doc_id!r}")
        if publish_missing and "published" not in data:
            data = {**data, "published": True}
        doc = doc_type.from_front_matter(doc_id, data, body)
        cover = None
        if images_dir is not None:
            candidate = images_dir / f"{doc_id}_cover.jpg"
            if candidate.is_file():
                cover = candidate
        items.append(ImportItem(source=path, doc=doc, cover=cover))
    return items


def apply_import(repo: MarkdownRepository, items: List[ImportItem]) -> int:
    """Write documents (and covers); returns the number of documents written."""
    written = 0
    for item in items:
        repo.upsert(item.doc)
        if item.cover is not None:
            repo.upload_cover(item.doc.id, item.cover.read_bytes(), "image/jpeg")
        written += 1
        logger.info("imported %s -> %s", item.source.name, item.doc.id)
    return written


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("source_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    "--kind",
    type=click.Choice(sorted(_DOC_TYPES)),
    default="recipes",
    show_default=True,
    help="Content kind the files are imported as.",
)
@click.option(
    "--images-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    required=False,
    help="Directory holding `{uuid}_cover.jpg` files.",
)
@click.option(
    "--publish-missing",
    is_flag=True,
    default=False,
    help="Treat files without a `published` field as published.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Print the plan without writing to the store.",
)
def cli(source_dir: Path, kind: str, images_dir: Path | None, publish_missing: bool, dry_run: bool) -> None:
    """Import legacy markdown files as documents of KIND."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    doc_type = _DOC_TYPES[kind]
    items = plan_import(source_dir, doc_type, images_dir, publish_missing=publish_missing)
    mode_text = "DRY-RUN" if dry_run else "LIVE"
    click.echo(f"Starting legacy import ({mode_text}): {len(items)} files as {kind}")
    for item in items:
        state = "published" if item.doc.published else "draft"
        cover = " +cover" if item.cover else ""
        click.echo(f"  {item.source.name} -> {doc_type.root}/{item.doc.id}/post.mdx ({state}){cover}")
    if dry_run:
        return
    cfg = load_store_config()
    store = build_object_store(cfg)
    if store is None:
        raise click.ClickException("Object store is not configured (R2_* environment variables).")
    repo = MarkdownRepository(store, doc_type, public_host=cfg.public_host if cfg else None)
    written = apply_import(repo, items)
    click.echo(f"Imported {written}/{len(items)} documents")


if __name__ == "__main__":  # pragma: no cover
    cli()
