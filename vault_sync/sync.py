"""High-level orchestration for converting vault notes into site posts."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Tuple

import requests

from .config import SyncConfig
from .frontmatter import parse_document
from .images import (
    DownloadCache,
    copy_local_image,
    download_images,
    extract_images,
    is_remote,
)
from .markdown import compose_document, transform_content
from .metadata import build_output_document, resolve_slug, resolve_title
from .models import (
    DocumentResult,
    ImageReferences,
    SlugCollisionError,
    SourceDocument,
    SyncSummary,
)

logger = logging.getLogger("vault_sync")


def clean_output_dirs(config: SyncConfig) -> None:
    """Remove and recreate the post and asset output roots."""
    for directory in (config.output_dir, config.image_output_dir):
        if directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True, exist_ok=True)


def list_sources(config: SyncConfig) -> List[Tuple[Path, bool]]:
    """Return ``(path, from_drafts)`` for every note to convert, in a stable order."""
    sources: List[Tuple[Path, bool]] = []
    if config.published_dir.is_dir():
        sources.extend((path, False) for path in sorted(config.published_dir.glob("*.md")))
    else:
        logger.error("Published folder not found: %s", config.published_dir)

    drafts = config.drafts_dir
    if config.include_drafts and drafts is not None:
        if drafts.is_dir():
            sources.extend((path, True) for path in sorted(drafts.glob("*.md")))
        else:
            logger.debug("Drafts folder not found: %s", drafts)
    return sources


def _resolve_hero(
    explicit: str,
    references: ImageReferences,
    url_map: Dict[str, str],
    image_dir: Path,
    config: SyncConfig,
    cache: DownloadCache,
    session: Optional[requests.Session],
) -> Tuple[Optional[str], int, bool]:
    """Pick the hero image and make sure it exists in the post's asset directory.

    Returns the hero filename (or ``None``), how many extra files were placed,
    and whether the hero is a downloaded remote image.
    """
    if explicit:
        if explicit in url_map:
            return url_map[explicit], 0, True
        if is_remote(explicit):
            fetched = download_images([explicit], image_dir, cache, config, session)
            if explicit in fetched:
                return fetched[explicit], 1, True
        else:
            name = PurePosixPath(explicit).name
            if (image_dir / name).is_file():
                return name, 0, False
            if copy_local_image(explicit, config.images_dir, image_dir):
                return name, 1, False
        logger.warning("Hero image %s is unavailable; using the first body image", explicit)

    for name in references.local:
        if (image_dir / name).is_file():
            return name, 0, False
    for filename in url_map.values():
        return filename, 0, True
    return None, 0, False


def process_document(
    source: SourceDocument,
    config: SyncConfig,
    cache: DownloadCache,
    emitted: Dict[str, str],
    session: Optional[requests.Session] = None,
) -> DocumentResult:
    """Convert one note and write its post file and images.

    ``emitted`` maps slugs already written in this run to their source filename.
    """
    parsed = parse_document(source.text)
    slug = resolve_slug(source.filename, parsed.frontmatter)
    if slug in emitted:
        raise SlugCollisionError(
            f"slug '{slug}' is already used by {emitted[slug]}"
        )

    image_dir = config.image_output_dir / slug
    references = extract_images(parsed.body)
    url_map = download_images(references.external, image_dir, cache, config, session)

    images_copied = len(url_map)
    for name in references.local:
        if copy_local_image(name, config.images_dir, image_dir):
            images_copied += 1

    explicit = parsed.frontmatter.get("heroImage")
    hero, extra, hero_downloaded = _resolve_hero(
        str(explicit).strip() if explicit else "",
        references,
        url_map,
        image_dir,
        config,
        cache,
        session,
    )
    images_copied += extra
    if hero is None:
        logger.warning(
            'No hero image found for "%s"', resolve_title(parsed, source.filename)
        )

    document = build_output_document(
        parsed,
        source.filename,
        hero,
        config,
        draft_default=source.is_draft_source,
        hero_downloaded=hero_downloaded,
    )
    body = transform_content(parsed.body, slug, url_map, config.asset_alias)

    post_dir = config.output_dir / slug
    post_dir.mkdir(parents=True, exist_ok=True)
    output_path = post_dir / f"index.{config.output_extension}"
    output_path.write_text(compose_document(document, body), encoding="utf-8")
    emitted[slug] = source.filename

    logger.info("Saved %s/ (%d images)", slug, images_copied)
    return DocumentResult(
        source_path=source.path,
        output_path=output_path,
        slug=slug,
        images_copied=images_copied,
        downloaded=len(url_map),
    )


def run_sync(
    config: SyncConfig,
    session: Optional[requests.Session] = None,
) -> SyncSummary:
    """Rebuild the post and asset trees from the vault, one note at a time."""
    logger.info("Syncing content from %s", config.published_dir)
    logger.info("Output: %s", config.output_dir)
    clean_output_dirs(config)

    sources = list_sources(config)
    logger.info("Found %d notes to process", len(sources))

    summary = SyncSummary()
    cache = DownloadCache()
    emitted: Dict[str, str] = {}
    owns_session = session is None
    http = session or requests.Session()
    try:
        for path, from_drafts in sources:
            try:
                source = SourceDocument(
                    path=path,
                    text=path.read_text(encoding="utf-8"),
                    is_draft_source=from_drafts,
                )
                result = process_document(source, config, cache, emitted, session=http)
            except Exception as exc:  # pylint: disable=broad-except
                logger.error("Error processing %s: %s", path.name, exc)
                logger.debug("Traceback for %s", path.name, exc_info=True)
                summary.errors += 1
                continue
            summary.processed += 1
            summary.results.append(result)
    finally:
        if owns_session:
            http.close()

    summary.downloaded = len(cache)
    logger.info(
        "Sync complete: %d posts processed, %d errors, %d images downloaded",
        summary.processed,
        summary.errors,
        summary.downloaded,
    )
    return summary
