"""CLI commands for GitHub autocomplete search."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _search(query: str, storage_dir: Path | None, skip_cache: bool, as_json: bool) -> int:
    from .errors import SearchError
    from .orchestrator import create_orchestrator, error_message

    orchestrator = create_orchestrator(storage_dir=storage_dir, skip_cache=skip_cache)
    try:
        results = await orchestrator.search(query)
    except SearchError as e:
        print(error_message(e), file=sys.stderr, flush=True)
        return 1
    finally:
        await orchestrator.client.close()

    if as_json:
        json.dump([r.to_dict() for r in results], sys.stdout, indent=2)
        sys.stdout.write("\n")
        return 0
    if not results:
        print("No results.", flush=True)
    else:
        for item in results:
            line = f"[{item.type}] {item.name}  {item.url}"
            if item.description:
                line += f"\n    {item.description}"
            print(line, flush=True)
    print(f"{len(results)} results, {orchestrator.cache.hits} cache hits", flush=True)
    _print_quota(orchestrator.tracker)
    return 0


def _print_quota(tracker) -> None:
    snapshot = tracker.snapshot
    status = "EXCEEDED" if tracker.exceeded else "ok"
    print(f"Rate limit: {snapshot.remaining}/{snapshot.limit} ({status})", flush=True)
    if tracker.exceeded and snapshot.reset:
        print(f"Auto reset in {tracker.countdown()} (at {snapshot.reset_time_string})", flush=True)


def main():
    parser = argparse.ArgumentParser(
        description="Search GitHub users and repositories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--storage-dir",
        type=Path,
        default=None,
        help="Directory for cached results and rate limit state (default: ~/.cache/github-autocomplete)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log cache, fallback and rate limit decisions",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    search_parser = subparsers.add_parser(
        "search",
        help="Search users and repositories",
    )
    search_parser.add_argument(
        "query",
        help="Search query (at least 3 characters)",
    )
    search_parser.add_argument(
        "--skip-cache",
        action="store_true",
        help="Skip reading from cache (still writes to cache)",
    )
    search_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON",
    )

    subparsers.add_parser(
        "rate-limit",
        help="Show the tracked rate limit",
    )
    subparsers.add_parser(
        "reset-rate-limit",
        help="Clear the rate limit latch manually",
    )
    subparsers.add_parser(
        "clear-cache",
        help="Remove all cached search results",
    )

    token_parser = subparsers.add_parser(
        "token",
        help="Save a GitHub token (raises the search limit from 10 to 30 requests/minute)",
    )
    token_parser.add_argument(
        "token",
        nargs="?",
        default=None,
        help="Personal access token",
    )
    token_parser.add_argument(
        "--clear",
        action="store_true",
        help="Forget the saved token",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    from .settings import get_settings

    storage_dir = args.storage_dir or get_settings().storage_dir

    if args.command == "search":
        sys.exit(asyncio.run(_search(args.query, storage_dir, args.skip_cache, args.json)))
    elif args.command == "rate-limit":
        from .rate_limit import get_tracker

        tracker = get_tracker(storage_dir)
        tracker.check_reset()
        _print_quota(tracker)
    elif args.command == "reset-rate-limit":
        from .rate_limit import get_tracker

        tracker = get_tracker(storage_dir)
        tracker.reset()
        _print_quota(tracker)
    elif args.command == "clear-cache":
        from .cache import ResultCache
        from .storage import Storage

        removed = ResultCache(Storage(storage_dir)).clear()
        print(f"Removed {removed} cached queries.", flush=True)
    elif args.command == "token":
        from .client import save_token
        from .rate_limit import get_tracker
        from .storage import Storage

        if args.clear:
            token = None
        elif args.token and args.token.strip():
            token = args.token.strip()
        else:
            token_parser.error("provide a token or --clear")

        save_token(Storage(storage_dir), token)
        tracker = get_tracker(storage_dir)
        tracker.configure_credential(token)
        print(f"GitHub token {'saved' if token else 'cleared'}.", flush=True)
        _print_quota(tracker)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
