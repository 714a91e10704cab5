"""Body rewriting and document assembly for site posts.

The body is rewritten by a fixed sequence of passes, each a plain
``str -> str`` function:

1. local ``![[photo.jpg]]`` embeds become aliased asset images,
2. remote ``![[https://...]]`` embeds become asset images when downloaded,
   otherwise standard remote images,
3. standard remote ``![alt](https://...)`` images are pointed at the
   downloaded copy when there is one,
4. curly braces in prose are escaped for MDX,
5. surrounding whitespace is trimmed.

Brace escaping runs after the image passes; the asset paths they insert
contain no braces.
"""

from __future__ import annotations

import json
import re
from typing import List, Mapping

from .images import (
    EXTERNAL_EMBED_RE,
    EXTERNAL_IMAGE_RE,
    LOCAL_EMBED_RE,
    alt_text_for_download,
    alt_text_for_url,
)
from .models import OutputDocument

BRACE_RE = re.compile(r"([{}])")


def asset_path(alias: str, slug: str, filename: str) -> str:
    path = f"{alias}/blog/{slug}/{filename}"
    # CommonMark link destinations may only contain spaces inside <...>.
    return f"<{path}>" if " " in path else path


def replace_local_embeds(markdown: str, slug: str, alias: str) -> str:
    """Swap ``![[name.ext]]`` for a standard image pointing at the post's assets."""
    return LOCAL_EMBED_RE.sub(
        lambda m: f"![{m.group(1)}]({asset_path(alias, slug, m.group(1))})",
        markdown,
    )


def replace_external_embeds(
    markdown: str, slug: str, url_map: Mapping[str, str], alias: str
) -> str:
    def _replace(match: "re.Match[str]") -> str:
        url = match.group(1).strip()
        filename = url_map.get(url)
        if filename:
            return f"![{alt_text_for_download(filename)}]({asset_path(alias, slug, filename)})"
        return f"![{alt_text_for_url(url)}]({url})"

    return EXTERNAL_EMBED_RE.sub(_replace, markdown)


def replace_image_links(
    markdown: str, slug: str, url_map: Mapping[str, str], alias: str
) -> str:
    """Swap remote image URLs with downloaded asset paths."""
    if not url_map:
        return markdown

    def _replace(match: "re.Match[str]") -> str:
        filename = url_map.get(match.group(2))
        if not filename:
            return match.group(0)
        title = match.group(3) or ""
        return f"![{match.group(1)}]({asset_path(alias, slug, filename)}{title})"

    return EXTERNAL_IMAGE_RE.sub(_replace, markdown)


def _escape_segment(text: str) -> str:
    return BRACE_RE.sub(r"\\\1", text)


def escape_braces(markdown: str) -> str:
    """Backslash-escape ``{`` and ``}`` outside fenced blocks and inline code."""
    lines: List[str] = []
    in_fence = False
    for line in markdown.split("\n"):
        if line.strip().startswith("```"):
            in_fence = not in_fence
            lines.append(line)
            continue
        if in_fence:
            lines.append(line)
            continue
        segments = line.split("`")
        for idx in range(0, len(segments), 2):
            segments[idx] = _escape_segment(segments[idx])
        lines.append("`".join(segments))
    return "\n".join(lines)


def transform_content(
    body: str,
    slug: str,
    url_map: Mapping[str, str],
    alias: str,
) -> str:
    """Run every rewrite pass over a note body, in order."""
    transformed = replace_local_embeds(body, slug, alias)
    transformed = replace_external_embeds(transformed, slug, url_map, alias)
    transformed = replace_image_links(transformed, slug, url_map, alias)
    transformed = escape_braces(transformed)
    return transformed.strip()


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _flag(value: bool) -> str:
    return "true" if value else "false"


def compose_document(document: OutputDocument, body: str) -> str:
    """Generate the final post text, frontmatter fields in a fixed order."""
    front_matter_lines = [
        "---",
        f"title: {_quote(document.title)}",
        f"description: {_quote(document.description)}",
        f"pubDate: {document.pub_date}",
    ]
    if document.updated_date:
        front_matter_lines.append(f"updatedDate: {document.updated_date}")
    if document.hero_image:
        front_matter_lines.append(f"heroImage: {_quote(document.hero_image)}")
    front_matter_lines.append(f"heroAlt: {_quote(document.hero_alt)}")
    front_matter_lines.append(f"category: {_quote(document.category)}")
    if document.tags:
        front_matter_lines.append(f"tags: {json.dumps(document.tags, ensure_ascii=False)}")
    front_matter_lines.append(f"featured: {_flag(document.featured)}")
    front_matter_lines.append(f"draft: {_flag(document.draft)}")
    front_matter_lines.append("---")

    return "\n".join(front_matter_lines) + "\n\n" + body.strip() + "\n"
