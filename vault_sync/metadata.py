"""Normalization of vault frontmatter into site post metadata."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import SyncConfig
from .images import alt_text_for_download
from .models import OutputDocument, ParsedDocument
from .utils import humanize_filename, slugify, slug_from_filename, title_from_filename

logger = logging.getLogger("vault_sync")


def map_category(
    category: Any,
    tags: Sequence[str],
    category_map: Mapping[str, str],
    valid_categories: Sequence[str],
    default: str,
) -> str:
    """Decide a post category.

    An explicit valid category wins, then the first tag found in
    ``category_map``, then ``default``. All comparisons ignore case.
    """
    if isinstance(category, str) and category.strip().lower() in valid_categories:
        return category.strip().lower()
    for tag in tags:
        mapped = category_map.get(tag.strip().lower())
        if mapped in valid_categories:
            return mapped
    return default


def normalize_tags(value: Any) -> List[str]:
    if value is None or value == "":
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value if tag is not None and str(tag).strip()]
    return [str(value)]


def format_date(value: Any, today: Optional[dt.date] = None) -> str:
    """ISO calendar date from a YAML date, datetime, or string; falls back to today."""
    fallback = today or dt.date.today()
    if value is None or value == "":
        return fallback.isoformat()
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    text = str(value).strip().split("T")[0].split(" ")[0]
    try:
        return dt.date.fromisoformat(text).isoformat()
    except ValueError:
        logger.warning("Unrecognised date %r; using %s", value, fallback.isoformat())
        return fallback.isoformat()


def as_flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)


def as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def resolve_slug(filename: str, front_matter: Mapping[str, Any]) -> str:
    override = as_text(front_matter.get("slug"))
    if override:
        return slugify(override)
    return slug_from_filename(filename)


def resolve_title(parsed: ParsedDocument, filename: str) -> str:
    return (
        as_text(parsed.frontmatter.get("title"))
        or parsed.title
        or title_from_filename(filename)
    )


def build_output_document(
    parsed: ParsedDocument,
    filename: str,
    hero_image: Optional[str],
    config: SyncConfig,
    draft_default: bool = False,
    hero_downloaded: bool = False,
    today: Optional[dt.date] = None,
) -> OutputDocument:
    """Combine parsed frontmatter and the resolved hero image into post metadata.

    ``hero_image`` is the bare filename already placed in the post's asset
    directory, or ``None``. ``hero_downloaded`` marks a remote image whose
    filename carries a URL hash suffix.
    """
    fm: Dict[str, Any] = parsed.frontmatter
    title = resolve_title(parsed, filename)
    slug = resolve_slug(filename, fm)
    tags = normalize_tags(fm.get("tags"))

    description = (
        as_text(fm.get("description"))
        or as_text(fm.get("summary"))
        or f"{title} - {config.description_suffix}"
    )
    pub_source = fm.get("pubDate") or fm.get("date")
    updated = fm.get("updatedDate")

    hero_alt = as_text(fm.get("heroAlt"))
    if not hero_alt:
        if hero_image and hero_downloaded:
            hero_alt = alt_text_for_download(hero_image)
        elif hero_image:
            hero_alt = humanize_filename(hero_image)
    hero_alt = hero_alt or title

    category = map_category(
        fm.get("category"),
        tags,
        config.category_map,
        config.valid_categories,
        config.default_category,
    )
    if not tags and config.default_tag:
        tags = [config.default_tag]

    return OutputDocument(
        title=title,
        description=description,
        pub_date=format_date(pub_source, today),
        updated_date=format_date(updated, today) if updated else None,
        hero_image=(
            f"{config.asset_alias}/blog/{slug}/{hero_image}" if hero_image else None
        ),
        hero_alt=hero_alt,
        category=category,
        tags=tags,
        featured=as_flag(fm.get("featured"), False),
        draft=as_flag(fm.get("draft"), draft_default),
        slug=slug,
    )
