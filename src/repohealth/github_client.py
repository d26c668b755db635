"""GitHub GraphQL API client for weekly health data retrieval."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, TypeVar

import requests

from .config import Config
from .errors import ApiError, AuthenticationError, DataValidationError, NotFoundError
from .models import Commit, Issue, PullRequest, Review, StatusContext
from .queries import (
    CI_FIELDS,
    DEFAULT_BRANCH_QUERY,
    REPO_ISSUES_QUERY,
    FieldSet,
    repo_pull_requests_query,
    user_pull_requests_query,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", Issue, PullRequest)

_NOT_FOUND_MESSAGE = "Could not resolve to a"


class GitHubClient:
    """Small, typed client for the GitHub GraphQL API."""

    _GRAPHQL_URL = "https://api.github.com/graphql"

    def __init__(self, config: Config, timeout_seconds: Optional[int] = None) -> None:
        """Initialize an authenticated GitHub GraphQL client.

        Args:
            config: Validated runtime configuration including the token.
            timeout_seconds: Per-request timeout in seconds; defaults to the
                configured value.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds or config.timeout_seconds

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Authorization": f"bearer {config.token}",
            }
        )

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse GitHub ISO8601 timestamps into timezone-aware datetimes."""
        if not value:
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _is_rate_limited(self, response: requests.Response) -> bool:
        """Tell a primary or secondary rate limit apart from rejected credentials."""
        if response.headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in (response.text or "").lower()

    def _raise_for_graphql_errors(self, errors: List[Dict[str, Any]]) -> None:
        messages = "; ".join(str(error.get("message", error)) for error in errors)
        for error in errors:
            if error.get("type") == "NOT_FOUND" or _NOT_FOUND_MESSAGE in str(error.get("message", "")):
                raise NotFoundError(f"GitHub could not resolve the requested resource: {messages}")
        raise ApiError(f"GitHub GraphQL query failed: {messages}")

    def _run_query(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a single GraphQL request and return its ``data`` object.

        Failures are not retried; the first error aborts the whole fetch.

        Raises:
            AuthenticationError: If GitHub rejects the token (HTTP 401, or 403
                without rate-limit signals).
            NotFoundError: If the repository or user cannot be resolved.
            ApiError: For transport failures, other HTTP errors, GraphQL
                errors and malformed payloads.
        """
        try:
            response = self._session.post(
                self._GRAPHQL_URL,
                json={"query": query, "variables": variables},
                timeout=self._timeout_seconds,
            )
        except requests.RequestException as exc:
            raise ApiError(f"GitHub request failed: POST {self._GRAPHQL_URL}") from exc

        status_code = response.status_code
        if status_code == 403 and self._is_rate_limited(response):
            raise ApiError(
                f"GitHub rate limit exceeded: POST {self._GRAPHQL_URL} returned {status_code} - {response.text}"
            )
        if status_code in (401, 403):
            raise AuthenticationError(
                f"GitHub rejected the credentials: POST {self._GRAPHQL_URL} returned {status_code}"
            )
        if status_code == 404:
            raise NotFoundError(f"GitHub returned 404 for POST {self._GRAPHQL_URL}")
        if status_code >= 400:
            raise ApiError(
                "GitHub API request failed: "
                f"POST {self._GRAPHQL_URL} returned {status_code} - {response.text}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ApiError(f"GitHub API returned invalid JSON: POST {self._GRAPHQL_URL}") from exc

        if not isinstance(payload, dict):
            raise ApiError(f"GitHub API returned unexpected payload shape: POST {self._GRAPHQL_URL}")

        errors = payload.get("errors")
        if errors:
            self._raise_for_graphql_errors(errors)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ApiError(f"GitHub API response has no data: POST {self._GRAPHQL_URL}")
        return data

    def _paginate(
        self,
        query: str,
        variables: Dict[str, Any],
        owner_key: str,
        connection_key: str,
        parse_item: Callable[[Dict[str, Any]], T],
        since: datetime,
    ) -> List[T]:
        """Follow cursors over a connection ordered by descending creation time.

        Each page is trimmed from the end back to the last item created at or
        after ``since``. Fetching stops once a page is trimmed (every later page
        is older still) or GitHub reports no further page.
        """
        items: List[T] = []
        seen_urls: Set[str] = set()
        page_variables = dict(variables)
        page_variables["pageSize"] = self._config.page_size
        page_variables["after"] = None
        pages = 0

        while True:
            data = self._run_query(query, page_variables)
            owner = data.get(owner_key)
            if owner is None:
                raise NotFoundError(f"GitHub could not resolve {owner_key} for variables {variables}")

            connection = owner.get(connection_key) or {}
            page = [parse_item(node) for node in connection.get("nodes") or [] if node]
            pages += 1

            last_index = len(page)
            while last_index > 0 and page[last_index - 1].created_at < since:
                last_index -= 1

            for item in page[:last_index]:
                if item.url in seen_urls:
                    logger.debug("Skipping duplicate item", extra={"url": item.url})
                    continue
                seen_urls.add(item.url)
                items.append(item)

            page_info = connection.get("pageInfo") or {}
            logger.debug(
                "Fetched page",
                extra={
                    "connection": connection_key,
                    "page": pages,
                    "page_items": len(page),
                    "retained": last_index,
                },
            )

            if last_index < len(page) or not page_info.get("hasNextPage"):
                break

            page_variables["after"] = page_info.get("endCursor")

        logger.info(
            "Fetched items created since window start",
            extra={"connection": connection_key, "pages": pages, "items": len(items)},
        )
        return items

    def _parse_issue(self, item: Dict[str, Any]) -> Issue:
        number = item.get("number")
        url = item.get("url")
        created_at = self._parse_datetime(item.get("createdAt"))

        if number is None or not url or created_at is None:
            raise DataValidationError(f"GitHub issue payload is missing required fields: payload={item}")

        return Issue(
            number=int(number),
            title=str(item.get("title") or ""),
            url=str(url),
            state=str(item.get("state") or ""),
            created_at=created_at,
            closed_at=self._parse_datetime(item.get("closedAt")),
        )

    def _parse_commit(self, item: Dict[str, Any]) -> Optional[Commit]:
        nodes = (item.get("commits") or {}).get("nodes") or []
        if not nodes:
            return None

        commit = (nodes[-1] or {}).get("commit") or {}
        committed_date = self._parse_datetime(commit.get("committedDate"))
        if committed_date is None:
            return None

        contexts: List[StatusContext] = []
        for context in (commit.get("status") or {}).get("contexts") or []:
            created_at = self._parse_datetime(context.get("createdAt"))
            if created_at is None:
                continue
            contexts.append(
                StatusContext(
                    name=str(context.get("context") or ""),
                    created_at=created_at,
                    target_url=context.get("targetUrl"),
                )
            )

        return Commit(
            committed_date=committed_date,
            pushed_date=self._parse_datetime(commit.get("pushedDate")),
            contexts=contexts,
        )

    def _parse_pull_request(self, item: Dict[str, Any]) -> PullRequest:
        number = item.get("number")
        url = item.get("url")
        created_at = self._parse_datetime(item.get("createdAt"))

        if number is None or not url or created_at is None:
            raise DataValidationError(
                f"GitHub pull request payload is missing required fields: payload={item}"
            )

        reviews_payload = item.get("reviews") or {}
        reviews: List[Review] = []
        for review in reviews_payload.get("nodes") or []:
            review_created_at = self._parse_datetime((review or {}).get("createdAt"))
            if review_created_at is None:
                continue
            reviews.append(
                Review(
                    author_login=(review.get("author") or {}).get("login"),
                    created_at=review_created_at,
                )
            )

        return PullRequest(
            number=int(number),
            title=str(item.get("title") or ""),
            url=str(url),
            state=str(item.get("state") or ""),
            created_at=created_at,
            closed_at=self._parse_datetime(item.get("closedAt")),
            merged=bool(item.get("merged")),
            is_cross_repository=bool(item.get("isCrossRepository")),
            author_login=(item.get("author") or {}).get("login"),
            review_count=int(reviews_payload.get("totalCount") or 0),
            reviews=reviews,
            latest_commit=self._parse_commit(item),
        )

    def get_default_branch(self, owner: str, name: str) -> Optional[str]:
        """Return the repository's default branch name, if it has one.

        Raises:
            NotFoundError: If the repository does not exist or is inaccessible.
        """
        data = self._run_query(DEFAULT_BRANCH_QUERY, {"owner": owner, "name": name})
        repository = data.get("repository")
        if repository is None:
            raise NotFoundError(f"Repository '{owner}/{name}' was not found.")

        branch = (repository.get("defaultBranchRef") or {}).get("name")
        return str(branch) if branch else None

    def list_repo_issues_created_since(self, owner: str, name: str, since: datetime) -> List[Issue]:
        """List repository issues created at or after ``since``, newest first."""
        return self._paginate(
            REPO_ISSUES_QUERY,
            {"owner": owner, "name": name},
            owner_key="repository",
            connection_key="issues",
            parse_item=self._parse_issue,
            since=since,
        )

    def list_repo_pull_requests_created_since(
        self,
        owner: str,
        name: str,
        since: datetime,
        field_set: FieldSet = CI_FIELDS,
    ) -> List[PullRequest]:
        """List pull requests against the default branch created at or after ``since``.

        When the repository has no default branch, pull requests against every
        base branch are returned.
        """
        default_branch = self.get_default_branch(owner, name)
        return self._paginate(
            repo_pull_requests_query(field_set),
            {"owner": owner, "name": name, "baseRefName": default_branch},
            owner_key="repository",
            connection_key="pullRequests",
            parse_item=self._parse_pull_request,
            since=since,
        )

    def list_user_pull_requests_created_since(
        self,
        login: str,
        since: datetime,
        field_set: FieldSet = FieldSet.REVIEWS,
    ) -> List[PullRequest]:
        """List pull requests authored by ``login`` created at or after ``since``."""
        return self._paginate(
            user_pull_requests_query(field_set),
            {"user": login},
            owner_key="user",
            connection_key="pullRequests",
            parse_item=self._parse_pull_request,
            since=since,
        )
