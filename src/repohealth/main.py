"""Entry point and orchestration for the repository health scorer."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import Optional, Sequence

from .cli import SECTIONS, parse_args
from .config import DATE_FORMAT, get_start_date, load_config, parse_weeks
from .errors import ApiError, AuthenticationError, ConfigurationError, NotFoundError
from .github_client import GitHubClient
from .models import RepositoryScore, UserScore
from .queries import CI_FIELDS, PR_FIELDS
from .scores import get_ci_score, get_issue_score, get_pr_score
from .stats import generate_report

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4
EXIT_NOT_FOUND = 5


def score_repository(
    client: GitHubClient,
    owner: str,
    name: str,
    num_weeks: int,
    sections: Sequence[str] = SECTIONS,
    now: Optional[datetime] = None,
    date_format: str = DATE_FORMAT,
) -> RepositoryScore:
    """Fetch and score the requested sections for a repository.

    The PR and CI sections share a single pull request fetch.
    """
    since = get_start_date(num_weeks, now)
    score = RepositoryScore()

    if "issues" in sections:
        issues = client.list_repo_issues_created_since(owner, name, since)
        score.issues = get_issue_score(issues, since, num_weeks, date_format)

    if "prs" in sections or "ci" in sections:
        field_set = CI_FIELDS if "ci" in sections else PR_FIELDS
        prs = client.list_repo_pull_requests_created_since(owner, name, since, field_set)
        if "prs" in sections:
            score.prs = get_pr_score(prs, since, num_weeks, date_format)
        if "ci" in sections:
            score.ci = get_ci_score(prs, since, num_weeks, date_format)

    logger.info(
        "Scored repository",
        extra={"repository": f"{owner}/{name}", "weeks": num_weeks, "since": since.isoformat()},
    )
    return score


def score_user(
    client: GitHubClient,
    login: str,
    num_weeks: int,
    now: Optional[datetime] = None,
    date_format: str = DATE_FORMAT,
) -> UserScore:
    """Fetch and score the pull requests authored by a user."""
    since = get_start_date(num_weeks, now)
    prs = client.list_user_pull_requests_created_since(login, since, PR_FIELDS)
    logger.info("Scored user", extra={"user": login, "weeks": num_weeks, "since": since.isoformat()})
    return UserScore(prs=get_pr_score(prs, since, num_weeks, date_format))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def orchestrate_score_generation(argv: Optional[Sequence[str]] = None) -> int:
    """Run the full fetch, score and output flow and return a process exit code."""
    try:
        args = parse_args(argv)
        _configure_logging(args.verbose)

        owner, name = args.repo if args.repo else (None, None)
        num_weeks = parse_weeks(args.weeks)
        config = load_config(num_weeks=num_weeks, owner=owner, name=name, user=args.user)
        client = GitHubClient(config=config)

        if config.is_repository:
            subject = f"{config.owner}/{config.name}"
            score = score_repository(
                client,
                config.owner,
                config.name,
                config.num_weeks,
                sections=args.section or SECTIONS,
                date_format=config.date_format,
            )
        else:
            subject = config.user
            score = score_user(client, config.user, config.num_weeks, date_format=config.date_format)

        if args.format == "text":
            print(generate_report(subject=subject, score=score))
        else:
            print(json.dumps(score.to_dict(), indent=2))
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except NotFoundError as exc:
        logger.error("Not found: %s", exc)
        return EXIT_NOT_FOUND
    except ApiError as exc:
        logger.error("GitHub API error: %s", exc)
        return EXIT_API
    except Exception:
        logger.exception("Unexpected error while generating health metrics")
        return EXIT_UNEXPECTED


def main() -> int:
    return orchestrate_score_generation()


if __name__ == "__main__":
    raise SystemExit(main())
