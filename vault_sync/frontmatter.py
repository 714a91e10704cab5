"""Parsing of vault notes into a title, a frontmatter mapping, and a body.

Vault notes come in three shapes:

* ``# Title`` followed by a ``---`` YAML block and the body (Obsidian style),
* a YAML block followed by ``# Title`` and the body (standard style),
* a YAML block, a duplicated ``# Title``, and a second, older YAML block left
  behind by a previous frontmatter rewrite.

All of them are reduced to the same :class:`ParsedDocument`.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Tuple

import yaml

from .models import ParsedDocument

logger = logging.getLogger("vault_sync")

LEADING_HEADING_RE = re.compile(r"\A#[ \t]+(.+?)[ \t]*(?:\n+|\Z)")
HEADING_LINE_RE = re.compile(r"^#[ \t]+(.+?)[ \t]*$\n?", re.MULTILINE)
FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\n(?P<head>.*?)^---[ \t]*$\n?", re.MULTILINE | re.DOTALL
)


def split_front_matter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Split a ``---`` fenced YAML block at offset zero from the rest of the text.

    Returns ``(None, text)`` when no block is present. A block that cannot be
    parsed, or that is not a mapping, yields an empty mapping.
    """
    match = FRONT_MATTER_RE.match(text)
    if not match:
        return None, text
    body = text[match.end():]
    try:
        data = yaml.safe_load(match.group("head"))
    except yaml.YAMLError as exc:
        logger.warning("Ignoring malformed frontmatter block: %s", exc)
        return {}, body
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        logger.warning(
            "Ignoring frontmatter block of type %s; expected a mapping",
            type(data).__name__,
        )
        return {}, body
    return {str(key): value for key, value in data.items()}, body


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def merge_legacy(primary: Dict[str, Any], legacy: Dict[str, Any]) -> Dict[str, Any]:
    """Fill keys missing or empty in ``primary`` from an older frontmatter block."""
    merged = dict(primary)
    for key, value in legacy.items():
        if _is_empty(merged.get(key)) and not _is_empty(value):
            merged[key] = value
    return merged


def _first_heading(content: str) -> Optional["re.Match[str]"]:
    """First ``# Heading`` line that is not inside a fenced code block."""
    for match in HEADING_LINE_RE.finditer(content):
        preceding = content[: match.start()].split("\n")
        fences = sum(1 for line in preceding if line.strip().startswith("```"))
        if fences % 2 == 0:
            return match
    return None


def parse_document(text: str) -> ParsedDocument:
    """Extract title, frontmatter, and body from raw note text. Never raises."""
    content = text.replace("\r\n", "\n")
    title = ""

    match = LEADING_HEADING_RE.match(content)
    if match:
        title = match.group(1).strip()
        content = content[match.end():]

    front_matter, remainder = split_front_matter(content.lstrip())
    if front_matter is None:
        front_matter = {}
    else:
        content = remainder

    stripped_heading = False
    if not title:
        match = _first_heading(content)
        if match:
            title = match.group(1).strip()
            # only a heading that opens the body is removed
            stripped_heading = not content[: match.start()].strip()
            if stripped_heading:
                content = content[match.end():].lstrip("\n")

    match = LEADING_HEADING_RE.match(content)
    if match:
        content = content[match.end():]
        stripped_heading = True

    if stripped_heading:
        legacy, remainder = split_front_matter(content.lstrip())
        if legacy is not None:
            logger.debug("Merging legacy frontmatter block")
            front_matter = merge_legacy(front_matter, legacy)
            content = remainder

    return ParsedDocument(title=title, frontmatter=front_matter, body=content)


def dump_front_matter(data: Dict[str, Any]) -> str:
    """Serialize a mapping as a ``---`` fenced YAML block."""
    dumped = yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip()
    return f"---\n{dumped}\n---\n"
