"""Tests for application orchestration in the main module."""

import json
import sys
from argparse import Namespace
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from repohealth.config import Config
from repohealth.errors import ApiError, AuthenticationError, NotFoundError
from repohealth.main import orchestrate_score_generation, score_repository, score_user
from repohealth.models import Issue, PullRequest, RepositoryScore, UserScore, WeeklyPRMetrics
from repohealth.queries import CI_FIELDS, PR_FIELDS

# Sunday; two weeks back is Sunday 2023-01-01.
NOW = datetime(2023, 1, 15, tzinfo=timezone.utc)
SINCE = datetime(2023, 1, 1, tzinfo=timezone.utc)


def _args(**overrides) -> Namespace:
    values = dict(repo=("octo", "repo"), user=None, weeks="2", section=None, format="json", verbose=False)
    values.update(overrides)
    return Namespace(**values)


def _config(**overrides) -> Config:
    values = dict(num_weeks=2, token="secret", owner="octo", name="repo")
    values.update(overrides)
    return Config(**values)


def test_score_repository_fetches_prs_once_for_pr_and_ci_sections():
    """Verify repository scoring shares a single CI-enabled PR fetch across sections."""
    client = Mock()
    client.list_repo_issues_created_since.return_value = [
        Issue(1, "Bug", "https://x/1", "OPEN", datetime(2023, 1, 2, tzinfo=timezone.utc), None)
    ]
    client.list_repo_pull_requests_created_since.return_value = []

    score = score_repository(client, "octo", "repo", 2, now=NOW)

    client.list_repo_issues_created_since.assert_called_once_with("octo", "repo", SINCE)
    client.list_repo_pull_requests_created_since.assert_called_once_with("octo", "repo", SINCE, CI_FIELDS)
    assert [week.opened for week in score.issues] == [1, 0]
    assert len(score.prs) == 2
    assert len(score.ci) == 2


def test_score_repository_only_requested_sections():
    """Verify unrequested sections are neither fetched nor serialized."""
    client = Mock()
    client.list_repo_pull_requests_created_since.return_value = []

    score = score_repository(client, "octo", "repo", 2, sections=["prs"], now=NOW)

    client.list_repo_issues_created_since.assert_not_called()
    client.list_repo_pull_requests_created_since.assert_called_once_with("octo", "repo", SINCE, PR_FIELDS)
    assert set(score.to_dict()) == {"prs"}


def test_score_user_scores_pull_requests():
    """Verify user scoring buckets the user's PRs."""
    client = Mock()
    client.list_user_pull_requests_created_since.return_value = [
        PullRequest(
            number=3,
            title="Docs",
            url="https://github.com/other/repo/pull/3",
            state="MERGED",
            created_at=datetime(2023, 1, 9, tzinfo=timezone.utc),
            closed_at=datetime(2023, 1, 10, tzinfo=timezone.utc),
            merged=True,
            is_cross_repository=True,
        )
    ]

    score = score_user(client, "octocat", 2, now=NOW)

    client.list_user_pull_requests_created_since.assert_called_once_with("octocat", SINCE, PR_FIELDS)
    assert [week.merged for week in score.prs] == [0, 1]


def test_orchestrate_score_generation_success_prints_json(capsys):
    """Verify orchestration returns 0 and writes the JSON response body to stdout."""
    config = _config()
    github_client = Mock()
    score = RepositoryScore(prs=[WeeklyPRMetrics(week="2023-01-01", opened=2)])

    with patch("repohealth.main.parse_args", return_value=_args()) as parse_args_mock, patch(
        "repohealth.main.load_config", return_value=config
    ) as load_config_mock, patch(
        "repohealth.main.GitHubClient", return_value=github_client
    ) as client_ctor_mock, patch(
        "repohealth.main.score_repository", return_value=score
    ) as score_mock:
        exit_code = orchestrate_score_generation()

    assert exit_code == 0
    parse_args_mock.assert_called_once_with(None)
    load_config_mock.assert_called_once_with(num_weeks=2, owner="octo", name="repo", user=None)
    client_ctor_mock.assert_called_once_with(config=config)
    score_mock.assert_called_once_with(
        github_client,
        "octo",
        "repo",
        2,
        sections=("issues", "prs", "ci"),
        date_format="%Y-%m-%d",
    )
    body = json.loads(capsys.readouterr().out)
    assert body == {"prs": [{"week": "2023-01-01", "opened": 2, "merged": 0, "rejected": 0, "prs": []}]}


def test_orchestrate_score_generation_invalid_weeks_uses_default(capsys):
    """Verify an unparseable week count falls back to six weeks."""
    config = _config(owner=None, name=None, user="octocat", num_weeks=6)

    with patch("repohealth.main.parse_args", return_value=_args(repo=None, user="octocat", weeks="x")), patch(
        "repohealth.main.load_config", return_value=config
    ) as load_config_mock, patch("repohealth.main.GitHubClient"), patch(
        "repohealth.main.score_user", return_value=UserScore()
    ), patch("repohealth.main.generate_report", return_value="REPORT"):
        exit_code = orchestrate_score_generation()

    assert exit_code == 0
    load_config_mock.assert_called_once_with(num_weeks=6, owner=None, name=None, user="octocat")


def test_orchestrate_score_generation_oversized_weeks_uses_default():
    """Verify a week count too large for a window start falls back to six weeks."""
    with patch("repohealth.main.parse_args", return_value=_args(weeks="200000")), patch(
        "repohealth.main.load_config", return_value=_config(num_weeks=6)
    ) as load_config_mock, patch("repohealth.main.GitHubClient"), patch(
        "repohealth.main.score_repository", return_value=RepositoryScore()
    ):
        exit_code = orchestrate_score_generation()

    assert exit_code == 0
    load_config_mock.assert_called_once_with(num_weeks=6, owner="octo", name="repo", user=None)


def test_orchestrate_score_generation_text_format_prints_report(capsys):
    """Verify the text format prints the rendered report."""
    with patch("repohealth.main.parse_args", return_value=_args(format="text")), patch(
        "repohealth.main.load_config", return_value=_config()
    ), patch("repohealth.main.GitHubClient"), patch(
        "repohealth.main.score_repository", return_value=RepositoryScore()
    ), patch("repohealth.main.generate_report", return_value="REPORT") as report_mock:
        exit_code = orchestrate_score_generation()

    assert exit_code == 0
    report_mock.assert_called_once()
    assert report_mock.call_args.kwargs["subject"] == "octo/repo"
    assert "REPORT" in capsys.readouterr().out


def test_orchestrate_score_generation_missing_token_returns_auth_error():
    """Verify missing token failures return the authentication exit code."""
    with patch("repohealth.main.parse_args", return_value=_args()), patch(
        "repohealth.main.load_config",
        side_effect=AuthenticationError("Missing required GitHub token."),
    ):
        exit_code = orchestrate_score_generation()

    assert exit_code == 3


def test_orchestrate_score_generation_not_found_returns_not_found_exit_code():
    """Verify unresolvable repositories are distinguished from other API failures."""
    with patch("repohealth.main.parse_args", return_value=_args()), patch(
        "repohealth.main.load_config", return_value=_config()
    ), patch("repohealth.main.GitHubClient"), patch(
        "repohealth.main.score_repository", side_effect=NotFoundError("Could not resolve to a Repository")
    ):
        exit_code = orchestrate_score_generation()

    assert exit_code == 5


def test_orchestrate_score_generation_api_error_returns_api_exit_code(capsys):
    """Verify GitHub API failures return the API error exit code and print no body."""
    with patch("repohealth.main.parse_args", return_value=_args()), patch(
        "repohealth.main.load_config", return_value=_config()
    ), patch("repohealth.main.GitHubClient"), patch(
        "repohealth.main.score_repository", side_effect=ApiError("GitHub API request failed")
    ):
        exit_code = orchestrate_score_generation()

    assert exit_code == 4
    assert capsys.readouterr().out == ""


def test_orchestrate_score_generation_unexpected_error_returns_generic_exit_code():
    """Verify unexpected exceptions are mapped to the generic non-zero exit code."""
    with patch("repohealth.main.parse_args", side_effect=RuntimeError("boom")):
        exit_code = orchestrate_score_generation()

    assert exit_code == 1
