"""Data models used throughout the sync pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional


class SyncError(Exception):
    """Base error for failures while converting a vault note."""


class SlugCollisionError(SyncError):
    """Raised when two notes in one run resolve to the same slug."""


@dataclass
class SourceDocument:
    """A vault note read from disk."""

    path: Path
    text: str
    is_draft_source: bool = False

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class ParsedDocument:
    """Title, frontmatter mapping, and remaining body of a vault note."""

    title: str
    frontmatter: Dict[str, Any]
    body: str


@dataclass
class ImageReferences:
    """Images referenced from a note body."""

    local: List[str] = field(default_factory=list)
    external: List[str] = field(default_factory=list)


@dataclass
class OutputDocument:
    """Normalized metadata written at the top of a site post."""

    title: str
    description: str
    pub_date: str
    hero_alt: str
    category: str
    slug: str
    tags: List[str] = field(default_factory=list)
    updated_date: Optional[str] = None
    hero_image: Optional[str] = None
    featured: bool = False
    draft: bool = False


@dataclass
class DocumentResult:
    """Outcome of converting one note."""

    source_path: Path
    output_path: Path
    slug: str
    images_copied: int
    downloaded: int


@dataclass
class SyncSummary:
    """Counters reported at the end of a sync run."""

    processed: int = 0
    errors: int = 0
    downloaded: int = 0
    results: List[DocumentResult] = field(default_factory=list)
