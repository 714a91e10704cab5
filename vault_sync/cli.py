"""Command-line entry point for the vault synchronizer."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterable, Sequence

from .config import (
    DEFAULT_IMAGE_OUTPUT_DIR,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_VAULT_DIR,
    SyncConfig,
)
from .rewrite import rewrite_vault
from .sync import run_sync

logger = logging.getLogger("vault_sync.cli")


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return ("sync",)
    first = argv[0]
    if first in commands or first in ("-h", "--help"):
        return argv
    return ("sync", *argv)


def _add_vault_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--vault",
        default=DEFAULT_VAULT_DIR,
        type=Path,
        help="Vault folder containing published/, drafts/ and Files/",
    )
    parser.add_argument(
        "--images",
        default=None,
        type=Path,
        help="Folder holding images referenced by filename (default: <vault>/Files)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_sync_arguments(parser: argparse.ArgumentParser) -> None:
    _add_vault_arguments(parser)
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT_DIR,
        type=Path,
        help="Directory where one folder per post is written",
    )
    parser.add_argument(
        "--image-output",
        default=DEFAULT_IMAGE_OUTPUT_DIR,
        type=Path,
        help="Directory where one image folder per post is written",
    )
    parser.add_argument(
        "--include-drafts",
        action="store_true",
        help="Also publish notes from the drafts folder, marked draft: true",
    )


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert Obsidian vault notes into blog posts with local image assets.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync_parser = subparsers.add_parser(
        "sync", help="Rebuild the blog content and asset folders from the vault"
    )
    _add_sync_arguments(sync_parser)

    rewrite_parser = subparsers.add_parser(
        "rewrite-frontmatter",
        help="Normalize frontmatter of vault notes in place (keeps .bak backups)",
    )
    _add_vault_arguments(rewrite_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SyncConfig:
    overrides: Dict[str, Any] = {
        "include_drafts": getattr(args, "include_drafts", False),
    }
    if getattr(args, "output", None) is not None:
        overrides["output_dir"] = Path(args.output).resolve()
    if getattr(args, "image_output", None) is not None:
        overrides["image_output_dir"] = Path(args.image_output).resolve()
    config = SyncConfig.from_vault(Path(args.vault).expanduser(), **overrides)
    if args.images is not None:
        config.images_dir = Path(args.images).expanduser()
    return config


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    config = build_config(args)

    overall_start = time.perf_counter()
    if args.command == "rewrite-frontmatter":
        errors = rewrite_vault(config).errors
    else:
        errors = run_sync(config).errors
    logger.debug("Finished in %.2fs", time.perf_counter() - overall_start)
    return 1 if errors else 0


if __name__ == "__main__":
    sys.exit(main())
