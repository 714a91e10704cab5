"""Configuration objects and constants for the vault synchronizer."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

DEFAULT_VAULT_DIR = Path("vault")
DEFAULT_OUTPUT_DIR = Path("src/content/blog")
DEFAULT_IMAGE_OUTPUT_DIR = Path("src/assets/blog")

ASSET_ALIAS = "@assets"
OUTPUT_EXTENSION = "mdx"

VALID_CATEGORIES: Tuple[str, ...] = ("travels", "tech", "books", "philosophy")
DEFAULT_CATEGORY = "tech"

# Ordered: the first tag found in this table decides the category.
CATEGORY_MAP: Dict[str, str] = {
    "travels": "travels",
    "travel": "travels",
    "tech": "tech",
    "technology": "tech",
    "book": "books",
    "books": "books",
    "philosophy": "philosophy",
    "ai generated": "tech",
}

DEFAULT_DESCRIPTION_SUFFIX = "a blog post"
USER_AGENT = "vault-sync/0.1 (+https://github.com/vault-sync)"
FETCH_TIMEOUT = 30.0
MAX_REDIRECTS = 5


@dataclass
class SyncConfig:
    """Top-level settings that control where notes are read and written."""

    published_dir: Path = DEFAULT_VAULT_DIR / "published"
    drafts_dir: Optional[Path] = DEFAULT_VAULT_DIR / "drafts"
    images_dir: Path = DEFAULT_VAULT_DIR / "Files"
    output_dir: Path = DEFAULT_OUTPUT_DIR
    image_output_dir: Path = DEFAULT_IMAGE_OUTPUT_DIR
    asset_alias: str = ASSET_ALIAS
    output_extension: str = OUTPUT_EXTENSION
    category_map: Dict[str, str] = field(default_factory=lambda: dict(CATEGORY_MAP))
    valid_categories: Tuple[str, ...] = VALID_CATEGORIES
    default_category: str = DEFAULT_CATEGORY
    default_tag: Optional[str] = None
    description_suffix: str = DEFAULT_DESCRIPTION_SUFFIX
    include_drafts: bool = False
    fetch_timeout: float = FETCH_TIMEOUT
    max_redirects: int = MAX_REDIRECTS
    user_agent: str = USER_AGENT

    @classmethod
    def from_vault(cls, vault: Path, **overrides) -> "SyncConfig":
        """Build a config whose source folders live under a single vault root."""
        return cls(
            published_dir=vault / "published",
            drafts_dir=vault / "drafts",
            images_dir=vault / "Files",
            **overrides,
        )
