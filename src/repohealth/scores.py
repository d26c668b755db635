"""Weekly bucketing of issues, pull requests and CI checks.

Every item is placed by ``floor((timestamp - since) / SECONDS_IN_WEEK)``. Only
indexes in ``[0, num_weeks)`` are recorded, and the returned list always holds
exactly ``num_weeks`` records ordered by week. Resolution and review times are
whole seconds with ``-1`` meaning "not within the window".
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .config import DATE_FORMAT, SECONDS_IN_WEEK
from .models import (
    CIDetail,
    Issue,
    IssueDetail,
    PRDetail,
    PullRequest,
    StatusContext,
    WeeklyCIMetrics,
    WeeklyIssueMetrics,
    WeeklyPRMetrics,
)

logger = logging.getLogger(__name__)

UNRESOLVED = -1


def week_index(timestamp: datetime, since: datetime) -> int:
    """Return the 0-based week bucket of ``timestamp``; negative before ``since``."""
    return math.floor((timestamp - since).total_seconds() / SECONDS_IN_WEEK)


def _in_range(week: int, num_weeks: int) -> bool:
    return 0 <= week < num_weeks


def _week_labels(since: datetime, num_weeks: int, date_format: str) -> List[str]:
    return [(since + timedelta(days=7 * week)).strftime(date_format) for week in range(num_weeks)]


def _seconds_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds())


def _resolution_time(created_at: datetime, closed_at: Optional[datetime], since: datetime) -> int:
    """Seconds from creation to closure, or ``-1`` when not closed inside the window.

    A closure before ``since`` is invisible to the window, so such an item is
    reported as still open.
    """
    if closed_at is None or closed_at < since:
        return UNRESOLVED
    return _seconds_between(created_at, closed_at)


def get_issue_score(
    issues: List[Issue],
    since: datetime,
    num_weeks: int,
    date_format: str = DATE_FORMAT,
) -> List[WeeklyIssueMetrics]:
    """Bucket issues into ``num_weeks`` weekly opened/closed counters.

    Openings count in the creation week, closures in the closure week. The
    per-issue detail record (with its resolution time) is filed under the
    creation week.
    """
    metrics = [WeeklyIssueMetrics(week=label) for label in _week_labels(since, num_weeks, date_format)]

    for issue in issues:
        created_week = week_index(issue.created_at, since)
        if not _in_range(created_week, num_weeks):
            continue

        metrics[created_week].opened += 1

        resolution = _resolution_time(issue.created_at, issue.closed_at, since)
        if resolution != UNRESOLVED:
            closed_week = week_index(issue.closed_at, since)
            if _in_range(closed_week, num_weeks):
                metrics[closed_week].closed += 1

        metrics[created_week].issues.append(
            IssueDetail(
                number=issue.number,
                title=issue.title,
                url=issue.url,
                state=issue.state,
                time_to_resolution=resolution,
            )
        )

    return metrics


def review_time(pr: PullRequest) -> int:
    """Seconds from PR creation to the first review by someone other than the author.

    Returns ``-1`` when no such review exists. Only the first 100 reviews of a
    PR are fetched, so a PR whose author left 100 or more reviews before
    anyone else also reports ``-1``.
    """
    for review in sorted(pr.reviews, key=lambda review: review.created_at):
        if review.author_login != pr.author_login:
            return _seconds_between(pr.created_at, review.created_at)
    return UNRESOLVED


def get_pr_score(
    prs: List[PullRequest],
    since: datetime,
    num_weeks: int,
    date_format: str = DATE_FORMAT,
) -> List[WeeklyPRMetrics]:
    """Bucket pull requests into weekly opened/merged/rejected counters."""
    metrics = [WeeklyPRMetrics(week=label) for label in _week_labels(since, num_weeks, date_format)]

    for pr in prs:
        created_week = week_index(pr.created_at, since)
        if not _in_range(created_week, num_weeks):
            continue

        metrics[created_week].opened += 1

        resolution = _resolution_time(pr.created_at, pr.closed_at, since)
        if resolution != UNRESOLVED:
            closed_week = week_index(pr.closed_at, since)
            if _in_range(closed_week, num_weeks):
                if pr.merged:
                    metrics[closed_week].merged += 1
                else:
                    metrics[closed_week].rejected += 1

        metrics[created_week].prs.append(
            PRDetail(
                number=pr.number,
                title=pr.title,
                url=pr.url,
                state=pr.state,
                time_to_resolution=resolution,
                time_to_review=review_time(pr),
                num_reviews=pr.review_count,
            )
        )

    return metrics


def status_start_date(pr: PullRequest) -> Optional[datetime]:
    """Return the moment CI check durations for ``pr`` are measured from.

    Fork PRs carry no pushed date, so the earlier of PR creation and the
    latest commit's committed date is used. Otherwise the pushed date is used,
    or the committed date when GitHub omits it.
    """
    commit = pr.latest_commit
    if commit is None:
        return None

    if pr.is_cross_repository:
        if pr.created_at < commit.committed_date:
            return pr.created_at
        return commit.committed_date

    return commit.pushed_date or commit.committed_date


def slowest_check(pr: PullRequest, start: datetime) -> Optional[Tuple[StatusContext, int]]:
    """Return the status context that finished last relative to ``start``."""
    if pr.latest_commit is None or not pr.latest_commit.contexts:
        return None

    context = max(pr.latest_commit.contexts, key=lambda context: context.created_at - start)
    return context, _seconds_between(start, context.created_at)


def get_ci_score(
    prs: List[PullRequest],
    since: datetime,
    num_weeks: int,
    date_format: str = DATE_FORMAT,
) -> List[WeeklyCIMetrics]:
    """Bucket each PR's slowest CI check by the week its checks started.

    A start date before ``since`` (for example a commit pushed before the PR
    was opened) files the record under the PR's creation week instead.
    """
    metrics = [WeeklyCIMetrics(week=label) for label in _week_labels(since, num_weeks, date_format)]
    skipped = 0

    for pr in prs:
        created_week = week_index(pr.created_at, since)
        if not _in_range(created_week, num_weeks):
            continue

        start = status_start_date(pr)
        slowest = slowest_check(pr, start) if start is not None else None
        if slowest is None:
            skipped += 1
            continue

        context, duration = slowest
        status_week = week_index(start, since)
        if status_week < 0:
            status_week = created_week
        if not _in_range(status_week, num_weeks):
            continue

        metrics[status_week].checks.append(
            CIDetail(
                number=pr.number,
                title=pr.title,
                url=pr.url,
                check_name=context.name,
                duration=duration,
                check_url=context.target_url,
            )
        )

    logger.debug("Scored CI checks", extra={"prs_total": len(prs), "prs_without_checks": skipped})
    return metrics
