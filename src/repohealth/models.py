"""Domain models for GitHub repository health scoring.

These dataclasses intentionally model only the subset of GraphQL payload fields
that are required for weekly metric computation. Weekly records expose
``to_dict`` to produce the JSON response body.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Issue:
    """Represents the minimal issue data required for weekly metrics."""

    number: int
    title: str
    url: str
    state: str
    created_at: datetime
    closed_at: Optional[datetime]


@dataclass(slots=True)
class Review:
    """Represents a single submitted pull request review."""

    author_login: Optional[str]
    created_at: datetime


@dataclass(slots=True)
class StatusContext:
    """Represents one CI status context reported on a commit."""

    name: str
    created_at: datetime
    target_url: Optional[str]


@dataclass(slots=True)
class Commit:
    """Represents the latest commit of a pull request and its CI statuses."""

    committed_date: datetime
    pushed_date: Optional[datetime]
    contexts: List[StatusContext] = field(default_factory=list)


@dataclass(slots=True)
class PullRequest:
    """Represents the minimal pull request data required for weekly metrics."""

    number: int
    title: str
    url: str
    state: str
    created_at: datetime
    closed_at: Optional[datetime]
    merged: bool
    is_cross_repository: bool
    author_login: Optional[str] = None
    review_count: int = 0
    reviews: List[Review] = field(default_factory=list)
    latest_commit: Optional[Commit] = None


@dataclass(slots=True)
class IssueDetail:
    """Per-issue record; durations are seconds, -1 when unresolved."""

    number: int
    title: str
    url: str
    state: str
    time_to_resolution: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "state": self.state,
            "timeToResolution": self.time_to_resolution,
        }


@dataclass(slots=True)
class PRDetail:
    """Per-pull-request record; durations are seconds, -1 when absent."""

    number: int
    title: str
    url: str
    state: str
    time_to_resolution: int
    time_to_review: int
    num_reviews: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "state": self.state,
            "timeToResolution": self.time_to_resolution,
            "timeToReview": self.time_to_review,
            "numReviews": self.num_reviews,
        }


@dataclass(slots=True)
class CIDetail:
    """Slowest CI check for one pull request."""

    number: int
    title: str
    url: str
    check_name: str
    duration: int
    check_url: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "url": self.url,
            "checkName": self.check_name,
            "duration": self.duration,
            "checkUrl": self.check_url,
        }


@dataclass(slots=True)
class WeeklyIssueMetrics:
    """Issue counters and details for one week bucket."""

    week: str
    opened: int = 0
    closed: int = 0
    issues: List[IssueDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "opened": self.opened,
            "closed": self.closed,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass(slots=True)
class WeeklyPRMetrics:
    """Pull request counters and details for one week bucket."""

    week: str
    opened: int = 0
    merged: int = 0
    rejected: int = 0
    prs: List[PRDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "opened": self.opened,
            "merged": self.merged,
            "rejected": self.rejected,
            "prs": [pr.to_dict() for pr in self.prs],
        }


@dataclass(slots=True)
class WeeklyCIMetrics:
    """Slowest CI checks for pull requests whose checks started in one week bucket."""

    week: str
    checks: List[CIDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "checks": [check.to_dict() for check in self.checks],
        }


@dataclass(slots=True)
class RepositoryScore:
    """Response envelope for a repository; unrequested sections stay ``None``."""

    issues: Optional[List[WeeklyIssueMetrics]] = None
    prs: Optional[List[WeeklyPRMetrics]] = None
    ci: Optional[List[WeeklyCIMetrics]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.issues is not None:
            payload["issues"] = [week.to_dict() for week in self.issues]
        if self.prs is not None:
            payload["prs"] = [week.to_dict() for week in self.prs]
        if self.ci is not None:
            payload["ci"] = [week.to_dict() for week in self.ci]
        return payload


@dataclass(slots=True)
class UserScore:
    """Response envelope for a user."""

    prs: List[WeeklyPRMetrics] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"prs": [week.to_dict() for week in self.prs]}
