"""Image reference discovery, naming, and materialization utilities."""

from __future__ import annotations

import hashlib
import logging
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional
from urllib.parse import unquote, urlparse

import requests

from .config import SyncConfig
from .fetcher import fetch_to_file
from .models import ImageReferences
from .utils import humanize_filename

logger = logging.getLogger("vault_sync")

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"}
DEFAULT_DOWNLOAD_EXTENSION = ".jpg"
MAX_BASENAME_CHARS = 60

LOCAL_EMBED_RE = re.compile(
    r"!\[\[([\w \-.]+\.(?:jpg|jpeg|png|gif|webp|svg))\]\]", re.IGNORECASE
)
EXTERNAL_EMBED_RE = re.compile(r"!\[\[(https?://[^\]]+)\]\]", re.IGNORECASE)
EXTERNAL_IMAGE_RE = re.compile(
    r'!\[([^\]]*)\]\((https?://[^)\s]+)(\s+"[^"]*")?\)', re.IGNORECASE
)
UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_-]+")
HASH_SUFFIX_RE = re.compile(r"-[0-9a-f]{8}$")


class DownloadCache:
    """Remote images already fetched during one sync run, keyed by URL."""

    def __init__(self) -> None:
        self._files: Dict[str, Path] = {}

    def get(self, url: str) -> Optional[Path]:
        return self._files.get(url)

    def add(self, url: str, path: Path) -> None:
        self._files[url] = path

    def __contains__(self, url: object) -> bool:
        return url in self._files

    def __len__(self) -> int:
        return len(self._files)


def extract_images(body: str) -> ImageReferences:
    """Collect local embeds (duplicates kept) and external URLs (deduplicated)."""
    local = [match.group(1) for match in LOCAL_EMBED_RE.finditer(body)]

    urls: List[str] = [match.group(1).strip() for match in EXTERNAL_EMBED_RE.finditer(body)]
    urls.extend(match.group(2) for match in EXTERNAL_IMAGE_RE.finditer(body))
    external = list(dict.fromkeys(urls))
    return ImageReferences(local=local, external=external)


def is_remote(reference: str) -> bool:
    return reference.lower().startswith(("http://", "https://"))


def filename_for_url(url: str) -> str:
    """Local filename for a remote image: sanitized basename plus an 8-char URL hash."""
    name = PurePosixPath(unquote(urlparse(url).path)).name
    stem, dot, suffix = name.rpartition(".")
    extension = f".{suffix.lower()}" if dot else ""
    if extension in IMAGE_EXTENSIONS:
        base = stem
    else:
        base = name
        extension = DEFAULT_DOWNLOAD_EXTENSION
    base = UNSAFE_FILENAME_RE.sub("-", base).strip("-")[:MAX_BASENAME_CHARS].strip("-")
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:8]
    return f"{base or 'image'}-{digest}{extension}"


def build_url_map(urls: Iterable[str]) -> Dict[str, str]:
    return {url: filename_for_url(url) for url in urls}


def alt_text_for_download(filename: str) -> str:
    """``tokyo_tower-1a2b3c4d.jpg`` -> ``tokyo tower``."""
    stem = PurePosixPath(filename).stem
    return humanize_filename(HASH_SUFFIX_RE.sub("", stem)) or "Image"


def alt_text_for_url(url: str) -> str:
    segment = PurePosixPath(unquote(urlparse(url).path)).name
    return humanize_filename(segment) or "Image"


def copy_local_image(name: str, images_dir: Path, image_dir: Path) -> bool:
    """Copy a vault image into a post's asset directory."""
    source = images_dir / name
    if not source.is_file():
        logger.warning("Image not found: %s", name)
        return False
    image_dir.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, image_dir / PurePosixPath(name).name)
    return True


def download_images(
    urls: Iterable[str],
    image_dir: Path,
    cache: DownloadCache,
    config: SyncConfig,
    session: Optional[requests.Session] = None,
) -> Dict[str, str]:
    """Fetch remote images one at a time; returns URL -> filename for the successes.

    URLs already fetched earlier in the run are copied from the cached file.
    """
    downloaded: Dict[str, str] = {}
    for url in urls:
        filename = filename_for_url(url)
        destination = image_dir / filename
        cached = cache.get(url)
        if cached is not None:
            if cached != destination:
                try:
                    image_dir.mkdir(parents=True, exist_ok=True)
                    shutil.copyfile(cached, destination)
                except OSError as exc:
                    logger.warning("Failed to reuse cached image %s: %s", url, exc)
                    continue
            downloaded[url] = filename
            continue

        logger.debug("Downloading %s", url)
        ok = fetch_to_file(
            url,
            destination,
            session=session,
            timeout=config.fetch_timeout,
            max_redirects=config.max_redirects,
            user_agent=config.user_agent,
        )
        if ok:
            cache.add(url, destination)
            downloaded[url] = filename
        else:
            logger.warning("Keeping remote reference for %s", url)
    return downloaded
