"""Command line interface for GitHub Review Digest."""

import argparse
import sys
from datetime import date

import requests

from github_review_digest import __version__
from github_review_digest.exceptions import DigestError, format_error
from github_review_digest.services.comment_collector import RecentCommentsCollector, render_digest
from github_review_digest.services.contributors import ContributorService, default_repository, format_contributors
from github_review_digest.services.digest_cache import DigestCache
from github_review_digest.utils import get_logger, set_log_level

logger = get_logger(__name__)


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        msg = f"invalid date {value!r}, expected YYYY-MM-DD"
        raise argparse.ArgumentTypeError(msg) from e


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="github-review-digest",
        description="Condense pull request review feedback and list release contributors",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    recent = subparsers.add_parser(
        "recent-comments",
        help="Actionable review comments on the current branch's PR since a commit",
    )
    recent.add_argument("--since-commit", metavar="SHA", help="Commit to start from (default: HEAD)")
    recent.add_argument("--format", choices=("toon", "json"), default="toon", help="Output format")
    recent.add_argument("--no-cache", action="store_true", help="Bypass the digest cache")
    recent.set_defaults(handler=_recent_comments)

    contributors = subparsers.add_parser("contributors", help="Contributor section for a release post")
    contributors.add_argument("--from", dest="since", type=_iso_date, required=True, help="Start date (YYYY-MM-DD)")
    contributors.add_argument("--to", dest="until", type=_iso_date, required=True, help="End date (YYYY-MM-DD)")
    contributors.add_argument("--package", required=True, help="Package name, e.g. dplyr")
    contributors.add_argument("--repo", help="Repository as owner/name (default: tidyverse/<package>)")
    contributors.add_argument(
        "--style",
        choices=("bullet", "paragraph"),
        default="bullet",
        help="List style for the section or the --list-only output",
    )
    contributors.add_argument("--list-only", action="store_true", help="Print only the formatted contributor list")
    contributors.add_argument("--no-first-time", action="store_true", help="Skip the first-time contributor lookup")
    contributors.set_defaults(handler=_contributors)

    cache_clear = subparsers.add_parser("cache-clear", help="Remove every cached digest")
    cache_clear.set_defaults(handler=_cache_clear)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, help="Port (default: PORT setting)")
    serve.set_defaults(handler=_serve)

    return parser


def _recent_comments(args: argparse.Namespace) -> int:
    collector = RecentCommentsCollector()
    result = collector.collect(since_commit=args.since_commit, use_cache=not args.no_cache)
    print(render_digest(result, args.format))
    return 0


def _contributors(args: argparse.Namespace) -> int:
    if args.since > args.until:
        print(format_error(DigestError("--from must not be after --to")))
        return 2

    repo = args.repo or default_repository(args.package)
    service = ContributorService()

    if args.list_only:
        contributors = service.get_contributors(repo, args.since, args.until)
        print(format_contributors(contributors, style=args.style))
        return 0

    section = service.generate_section(
        repo,
        args.since,
        args.until,
        include_first_time=not args.no_first_time,
        style=args.style,
    )
    print(section)
    return 0


def _cache_clear(_args: argparse.Namespace) -> int:
    removed = DigestCache().clear()
    print(f"Removed {removed} cached digests")
    return 0


def _serve(args: argparse.Namespace) -> int:
    # Imports the web stack
    from github_review_digest.main import run

    run(host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the command line interface and return the exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        set_log_level(args.log_level)

    try:
        return args.handler(args)
    except DigestError as e:
        print(format_error(e))
        return e.exit_code
    except requests.RequestException as e:
        logger.error("GitHub request failed: %s", e)
        print(format_error(DigestError(f"GitHub request failed: {e}")))
        return 1


if __name__ == "__main__":
    sys.exit(main())
