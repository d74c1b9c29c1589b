"""Command-line entry point for the FuzzySearch client."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from fuzzysearch.api.client import FuzzySearch
from fuzzysearch.api.models import MatchType, parse_hash
from fuzzysearch.config.settings import Settings, get_settings
from fuzzysearch.core.exceptions import FuzzySearchError
from fuzzysearch.core.logging import setup_logging
from fuzzysearch.hashing.content import sha256_file

logger = logging.getLogger(__name__)


def _hash_arg(value: str) -> int:
    """Read a hash argument as signed/unsigned decimal or 0x-prefixed hex."""
    try:
        return parse_hash(int(value, 0))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid hash {value!r}: {e}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fuzzysearch",
        description="Reverse image search against fuzzysearch.net",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("hashes", help="Look up perceptual hashes (decimal or 0x hex)")
    p.add_argument("hashes", nargs="+", type=_hash_arg)
    p.add_argument("--distance", type=int, default=None, help="Max Hamming distance")

    p = sub.add_parser("image", help="Upload an image for reverse search")
    p.add_argument("path", type=Path)
    p.add_argument(
        "--type",
        dest="match_type",
        choices=[m.value for m in MatchType],
        default=MatchType.CLOSE.value,
    )

    p = sub.add_parser("sha256", help="Look up a file by its SHA-256 digest")
    p.add_argument("path", type=Path)

    p = sub.add_parser("url", help="Look up an image by its direct URL")
    p.add_argument("url")

    p = sub.add_parser("name", help="Look up an image by its original filename")
    p.add_argument("filename")

    p = sub.add_parser("hash", help="Print the local perceptual hash of an image")
    p.add_argument("path", type=Path)

    return parser


def _dump(value: Any) -> Any:
    if isinstance(value, list):
        return [_dump(v) for v in value]
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


async def run(args: argparse.Namespace, settings: Settings) -> Any:
    """Execute a parsed command and return a JSON-serializable result."""
    if args.command == "hash":
        from fuzzysearch.hashing.local import hash_bytes

        data = args.path.read_bytes()
        image_hash = await asyncio.to_thread(hash_bytes, data)
        return {"path": str(args.path), "hash": image_hash}

    async with FuzzySearch.from_settings(settings) as api:
        if args.command == "hashes":
            return await api.lookup_by_hash(args.hashes, distance=args.distance)
        if args.command == "image":
            return await api.image_search(
                args.path.read_bytes(),
                match_type=MatchType(args.match_type),
                filename=args.path.name,
            )
        if args.command == "sha256":
            return await api.lookup_by_file_hash(sha256_file(args.path))
        if args.command == "url":
            return await api.lookup_url(args.url)
        if args.command == "name":
            return await api.lookup_filename(args.filename)

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(level=args.log_level or settings.log_level)

    if settings.sentry_dsn:
        from fuzzysearch.core.sentry import init_sentry

        init_sentry(
            dsn=settings.sentry_dsn,
            environment="production" if settings.log_level != "DEBUG" else "development",
            release=settings.app_version,
        )

    try:
        result = asyncio.run(run(args, settings))
    except FuzzySearchError as e:
        logger.debug("Command failed", exc_info=True)
        if settings.sentry_dsn:
            from fuzzysearch.core.sentry import capture_exception

            capture_exception(e, context={"command": args.command, **e.details})
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (ValueError, OSError) as e:
        # Bad input or unreadable files, nothing to report
        logger.debug("Command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    print(json.dumps(_dump(result), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
