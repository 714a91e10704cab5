"""Utility helpers for string normalization and path handling."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

SLUG_PATTERN = re.compile(r"[^a-z0-9]+")
SEPARATOR_PATTERN = re.compile(r"[-_]")
EXTENSION_PATTERN = re.compile(r"\.\w+$")


def slugify(value: str, fallback: str = "post") -> str:
    """Generate a filesystem-friendly slug using ASCII characters only."""
    normalized = value.encode("ascii", "ignore").decode("ascii")
    normalized = normalized.lower()
    normalized = SLUG_PATTERN.sub("-", normalized).strip("-")
    return normalized or fallback


def slug_from_filename(filename: str) -> str:
    """Slug for a vault note, e.g. ``"My First Post!.md"`` -> ``my-first-post``."""
    stem = filename[:-3] if filename.lower().endswith(".md") else filename
    return slugify(stem)


def title_from_filename(filename: str) -> str:
    stem = filename[:-3] if filename.lower().endswith(".md") else filename
    return stem.replace("-", " ").strip()


def humanize_filename(name: str) -> str:
    """Turn ``my_hero-shot.jpg`` into ``my hero shot``."""
    base = PurePosixPath(name).name
    return SEPARATOR_PATTERN.sub(" ", EXTENSION_PATTERN.sub("", base)).strip()
