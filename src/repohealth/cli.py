"""Command-line argument parsing for the repository health scorer."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence, Tuple

SECTIONS = ("issues", "prs", "ci")


def _repository(value: str) -> Tuple[str, str]:
    """Parse and validate an ``owner/name`` repository argument.

    Raises:
        argparse.ArgumentTypeError: If value is not of the form ``owner/name``.
    """
    owner, separator, name = value.strip().partition("/")
    if not separator or not owner or not name or "/" in name:
        raise argparse.ArgumentTypeError("must be of the form OWNER/NAME")
    return owner, name


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments for health scoring.

    Returns:
        Parsed CLI arguments containing the repository (as an ``(owner, name)``
        tuple) or user, the raw week count, sections and output format.
    """
    parser = argparse.ArgumentParser(
        prog="repo-health",
        description=(
            "Generate weekly GitHub health metrics for a repository "
            "(issues, pull requests, CI) or a user (pull requests)."
        ),
    )

    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument(
        "--repo",
        type=_repository,
        help="GitHub repository to analyze, as OWNER/NAME.",
    )
    target.add_argument(
        "--user",
        help="GitHub login whose pull requests should be analyzed.",
    )

    parser.add_argument(
        "--weeks",
        default=None,
        help="Number of weeks of history to analyze (default: 6; invalid values fall back to 6).",
    )
    parser.add_argument(
        "--section",
        action="append",
        choices=SECTIONS,
        default=None,
        help="Repository section to score; repeatable (default: all sections). Not valid with --user.",
    )
    parser.add_argument(
        "--format",
        choices=("json", "text"),
        default="json",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr.",
    )

    args = parser.parse_args(argv)
    if args.user is not None and args.section:
        parser.error("--section can only be used with --repo")

    return args
