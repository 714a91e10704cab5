"""Streaming HTTP download of remote images."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional
from urllib.parse import urljoin

import requests
from filetype import guess

from .config import FETCH_TIMEOUT, MAX_REDIRECTS, USER_AGENT

logger = logging.getLogger("vault_sync")

REDIRECT_STATUSES = {301, 302, 303, 307, 308}
CHUNK_SIZE = 64 * 1024
SIGNATURE_BYTES = 8192
MAX_IMAGE_BYTES = 10 * 1024 * 1024


class DownloadAborted(Exception):
    """Raised internally to stop writing a response body."""


def detect_image_format(data: bytes) -> Optional[str]:
    """Detect image type using filetype; returns lowercase extension."""
    kind = guess(data)
    if kind and kind.mime.startswith("image/"):
        ext = kind.extension.lower()
        if ext == "jpeg":
            return "jpg"
        return ext
    return None


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("Could not remove partial download %s: %s", path, exc)


def _write_body(
    response: requests.Response,
    destination: Path,
    url: str,
    deadline: float,
) -> bool:
    destination.parent.mkdir(parents=True, exist_ok=True)
    written = 0
    head = b""
    try:
        with destination.open("wb") as handle:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                written += len(chunk)
                if written > MAX_IMAGE_BYTES:
                    raise DownloadAborted(f"image larger than {MAX_IMAGE_BYTES} bytes")
                if time.monotonic() > deadline:
                    raise DownloadAborted("download timed out")
                if len(head) < SIGNATURE_BYTES:
                    head += chunk[: SIGNATURE_BYTES - len(head)]
                handle.write(chunk)
    except (OSError, requests.RequestException, DownloadAborted) as exc:
        logger.warning("Failed to save image %s: %s", url, exc)
        _discard(destination)
        return False

    # filetype has no SVG matcher; trust the extension for those.
    if destination.suffix.lower() != ".svg" and not detect_image_format(head):
        logger.warning("Skipping %s: response is not a recognised image", url)
        _discard(destination)
        return False
    return True


def fetch_to_file(
    url: str,
    destination: Path,
    session: Optional[requests.Session] = None,
    timeout: float = FETCH_TIMEOUT,
    max_redirects: int = MAX_REDIRECTS,
    user_agent: str = USER_AGENT,
) -> bool:
    """Download ``url`` into ``destination``, following at most ``max_redirects`` hops.

    Never raises: every failure is logged as a warning and reported as ``False``.
    ``timeout`` bounds the whole transfer, not only the connection.
    """
    owns_session = session is None
    http = session or requests.Session()
    headers = {"User-Agent": user_agent}
    deadline = time.monotonic() + timeout
    current = url
    try:
        for _ in range(max_redirects + 1):
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Failed to fetch image %s: download timed out", url)
                return False
            response = http.get(
                current,
                headers=headers,
                timeout=max(0.1, remaining),
                stream=True,
                allow_redirects=False,
            )
            try:
                location = response.headers.get("Location")
                if response.status_code in REDIRECT_STATUSES and location:
                    current = urljoin(current, location)
                    logger.debug("Following redirect for %s to %s", url, current)
                    continue
                if response.status_code != 200:
                    logger.warning(
                        "Failed to fetch image %s: HTTP %s", url, response.status_code
                    )
                    return False
                return _write_body(response, destination, url, deadline)
            finally:
                response.close()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch image %s: %s", url, exc)
        return False
    finally:
        if owns_session:
            http.close()

    logger.warning("Failed to fetch image %s: more than %d redirects", url, max_redirects)
    return False
