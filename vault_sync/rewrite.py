"""In-place normalization of vault note frontmatter.

Every note gets a complete frontmatter block in the site's schema. The first
run saves the untouched note as ``<name>.md.bak``; later runs read from that
backup, so rewriting is repeatable.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

from .config import SyncConfig
from .frontmatter import dump_front_matter, parse_document
from .metadata import (
    as_flag,
    as_text,
    format_date,
    map_category,
    normalize_tags,
    resolve_slug,
    resolve_title,
)
from .models import ParsedDocument

logger = logging.getLogger("vault_sync")

BACKUP_SUFFIX = ".bak"


@dataclass
class RewriteSummary:
    updated: int = 0
    errors: int = 0


def build_vault_front_matter(
    parsed: ParsedDocument,
    filename: str,
    config: SyncConfig,
    draft_default: bool = False,
) -> Dict[str, Any]:
    fm = parsed.frontmatter
    tags = normalize_tags(fm.get("tags"))
    data: Dict[str, Any] = {
        "title": resolve_title(parsed, filename),
        "description": as_text(fm.get("description")) or as_text(fm.get("summary")),
        "pubDate": format_date(fm.get("pubDate") or fm.get("date")),
    }
    if fm.get("updatedDate"):
        data["updatedDate"] = format_date(fm.get("updatedDate"))
    data.update(
        {
            "heroImage": as_text(fm.get("heroImage")),
            "heroAlt": as_text(fm.get("heroAlt")),
            "category": map_category(
                fm.get("category"),
                tags,
                config.category_map,
                config.valid_categories,
                config.default_category,
            ),
            "tags": tags,
            "featured": as_flag(fm.get("featured"), False),
            "draft": as_flag(fm.get("draft"), draft_default),
            "slug": resolve_slug(filename, fm),
        }
    )
    return data


def rewrite_file(path: Path, config: SyncConfig, draft_default: bool = False) -> None:
    backup = path.with_name(path.name + BACKUP_SUFFIX)
    if backup.exists():
        text = backup.read_text(encoding="utf-8")
    else:
        text = path.read_text(encoding="utf-8")
        shutil.copyfile(path, backup)

    parsed = parse_document(text)
    data = build_vault_front_matter(parsed, path.name, config, draft_default)
    path.write_text(
        dump_front_matter(data) + "\n" + parsed.body.strip() + "\n",
        encoding="utf-8",
    )


def rewrite_folder(folder: Path, config: SyncConfig, draft_default: bool) -> RewriteSummary:
    summary = RewriteSummary()
    if not folder.is_dir():
        logger.warning("Folder not found: %s", folder)
        return summary

    files = sorted(folder.glob("*.md"))
    logger.info("Processing %d files in %s", len(files), folder)
    for path in files:
        try:
            rewrite_file(path, config, draft_default)
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error rewriting %s: %s", path.name, exc)
            summary.errors += 1
            continue
        logger.info("Rewrote %s", path.name)
        summary.updated += 1
    return summary


def rewrite_vault(config: SyncConfig) -> RewriteSummary:
    """Normalize frontmatter in the published and drafts folders."""
    total = RewriteSummary()
    folders = [(config.published_dir, False)]
    if config.drafts_dir is not None:
        folders.append((config.drafts_dir, True))

    for folder, is_draft in folders:
        result = rewrite_folder(folder, config, draft_default=is_draft)
        total.updated += result.updated
        total.errors += result.errors

    logger.info(
        "Done: %d notes rewritten, %d errors; backups kept with %s extension",
        total.updated,
        total.errors,
        BACKUP_SUFFIX,
    )
    return total
