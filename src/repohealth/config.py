"""Configuration parsing and validation for the repository health scorer."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .errors import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_NUM_WEEKS = 6
PAGE_SIZE = 100  # GitHub's default is 30
DATE_FORMAT = "%Y-%m-%d"
SECONDS_IN_WEEK = 60 * 60 * 24 * 7
# Twenty years of weekly buckets.
MAX_NUM_WEEKS = 52 * 20

_SUNDAY = 6


@dataclass(frozen=True)
class Config:
    """Validated runtime settings used by the scorer."""

    num_weeks: int
    token: str
    owner: Optional[str] = None
    name: Optional[str] = None
    user: Optional[str] = None
    page_size: int = PAGE_SIZE
    date_format: str = DATE_FORMAT
    timeout_seconds: int = 30

    @property
    def is_repository(self) -> bool:
        return self.owner is not None and self.name is not None


def load_config(
    num_weeks: int,
    owner: Optional[str] = None,
    name: Optional[str] = None,
    user: Optional[str] = None,
) -> Config:
    """Build and validate application configuration.

    Args:
        num_weeks: Positive number of weekly buckets to report.
        owner: Repository owner, used together with ``name``.
        name: Repository name, used together with ``owner``.
        user: GitHub login to score instead of a repository.

    Returns:
        A validated ``Config`` instance.

    Raises:
        ConfigurationError: If ``num_weeks`` is outside ``[1, MAX_NUM_WEEKS]`` or the target is
            missing or ambiguous.
        AuthenticationError: If ``GITHUB_TOKEN`` is not configured.
    """
    if not 0 < num_weeks <= MAX_NUM_WEEKS:
        raise ConfigurationError(
            f"Invalid value for 'weeks': expected an integer between 1 and {MAX_NUM_WEEKS}."
        )

    has_repo = bool(owner) and bool(name)
    if has_repo == bool(user):
        raise ConfigurationError("Exactly one of a repository (owner/name) or a user must be given.")

    token: str = os.getenv("GITHUB_TOKEN", "").strip()
    if not token:
        raise AuthenticationError(
            "Missing required GitHub token. "
            "Set the 'GITHUB_TOKEN' environment variable before running the scorer."
        )

    return Config(
        num_weeks=num_weeks,
        token=token,
        owner=owner if has_repo else None,
        name=name if has_repo else None,
        user=user or None,
    )


def parse_weeks(raw: Optional[str]) -> int:
    """Parse a week count, falling back to ``DEFAULT_NUM_WEEKS`` on bad input."""
    try:
        num_weeks = int(raw) if raw is not None else DEFAULT_NUM_WEEKS
    except (TypeError, ValueError):
        logger.warning(
            "Failed to parse weeks parameter, using default",
            extra={"raw_weeks": raw, "default_weeks": DEFAULT_NUM_WEEKS},
        )
        return DEFAULT_NUM_WEEKS

    if not 0 < num_weeks <= MAX_NUM_WEEKS:
        logger.warning(
            "Weeks parameter out of range, using default",
            extra={"raw_weeks": raw, "default_weeks": DEFAULT_NUM_WEEKS},
        )
        return DEFAULT_NUM_WEEKS

    return num_weeks


def get_start_date(num_weeks: int, now: Optional[datetime] = None) -> datetime:
    """Return the first Sunday on or after ``now - num_weeks`` weeks.

    The time of day of ``now`` is kept; naive values are treated as UTC.
    """
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    since = current - timedelta(days=7 * num_weeks)
    while since.weekday() != _SUNDAY:
        since += timedelta(days=1)
    return since
