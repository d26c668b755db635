"""Statistics and formatting helpers for weekly health reporting.

This module provides utilities for:
- Computing linear-interpolation percentiles from pre-sorted samples.
- Summarizing duration samples while ignoring ``-1`` "unresolved" sentinels.
- Formatting second-based durations as ``HH:MM:SS``.
- Building a human-readable per-week report for a repository or user score.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Union

from .models import RepositoryScore, UserScore, WeeklyCIMetrics, WeeklyIssueMetrics, WeeklyPRMetrics


def calculate_percentile(sorted_values: List[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation.

    The input sequence is expected to already be sorted in ascending order.
    Empty input returns ``None``; ``p <= 0`` and ``p >= 100`` return the first
    and last values.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    if p <= 0:
        return sorted_values[0]

    if p >= 100:
        return sorted_values[-1]

    position = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(position)
    upper_index = math.ceil(position)

    if lower_index == upper_index:
        return sorted_values[int(position)]

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + (upper_value - lower_value) * (position - lower_index)


def compute_statistics(samples: List[float]) -> Dict[str, Optional[float]]:
    """Compute P50, P90 and sample count for duration samples.

    Negative values (the ``-1`` sentinel) and ``None`` are not samples.
    """
    clean_samples = sorted(
        sample
        for sample in samples
        if sample is not None and not math.isnan(sample) and sample >= 0
    )

    return {
        "p50": calculate_percentile(clean_samples, 50),
        "p90": calculate_percentile(clean_samples, 90),
        "count": float(len(clean_samples)),
    }


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as ``HH:MM:SS``; ``None`` becomes ``"n/a"``."""
    if seconds is None:
        return "n/a"

    total_seconds = int(round(seconds))
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    remaining_seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{remaining_seconds:02d}"


def _format_summary(label: str, samples: List[float]) -> str:
    stats = compute_statistics(samples)
    return (
        f"{label} n={int(stats['count'] or 0)}"
        f" P50={format_duration(stats['p50'])}"
        f" P90={format_duration(stats['p90'])}"
    )


def _issue_lines(weeks: List[WeeklyIssueMetrics]) -> List[str]:
    lines = ["Issues"]
    for week in weeks:
        resolutions = [float(issue.time_to_resolution) for issue in week.issues]
        lines.append(
            f"   {week.week}  opened={week.opened} closed={week.closed}  "
            + _format_summary("resolution", resolutions)
        )
    return lines


def _pr_lines(weeks: List[WeeklyPRMetrics]) -> List[str]:
    lines = ["Pull Requests"]
    for week in weeks:
        resolutions = [float(pr.time_to_resolution) for pr in week.prs]
        reviews = [float(pr.time_to_review) for pr in week.prs]
        lines.append(
            f"   {week.week}  opened={week.opened} merged={week.merged} rejected={week.rejected}  "
            + _format_summary("resolution", resolutions)
            + "  "
            + _format_summary("review", reviews)
        )
    return lines


def _ci_lines(weeks: List[WeeklyCIMetrics]) -> List[str]:
    lines = ["CI (slowest check per PR)"]
    for week in weeks:
        durations = [float(check.duration) for check in week.checks]
        lines.append(f"   {week.week}  " + _format_summary("duration", durations))
    return lines


def generate_report(subject: str, score: Union[RepositoryScore, UserScore]) -> str:
    """Generate a human-readable weekly health report.

    Sections that were not scored are left out.
    """
    lines = [f"Subject: {subject}", "Weekly Health Report"]

    issues = getattr(score, "issues", None)
    if issues is not None:
        lines.append("")
        lines.extend(_issue_lines(issues))

    if score.prs is not None:
        lines.append("")
        lines.extend(_pr_lines(score.prs))

    ci = getattr(score, "ci", None)
    if ci is not None:
        lines.append("")
        lines.extend(_ci_lines(ci))

    return "\n".join(lines)
