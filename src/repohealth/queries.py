"""GraphQL query text for the GitHub API.

Pull request queries share one ``prFields`` fragment. Optional parts of that
fragment are selected with a :class:`FieldSet`, so the same query serves both
plain PR scoring and CI scoring.
"""

from __future__ import annotations

import enum


class FieldSet(enum.Flag):
    """Optional pull request fields to request."""

    REVIEWS = enum.auto()
    CI = enum.auto()


PR_FIELDS = FieldSet.REVIEWS
CI_FIELDS = FieldSet.REVIEWS | FieldSet.CI

_REVIEW_FRAGMENT = """
fragment reviewFields on PullRequest {
  author {
    login
  }
  reviews(first: 100) {
    totalCount
    nodes {
      author {
        login
      }
      createdAt
    }
  }
}
"""

_CI_FRAGMENT = """
fragment ciFields on PullRequest {
  commits(last: 1) {
    nodes {
      commit {
        committedDate
        pushedDate
        status {
          contexts {
            context
            createdAt
            targetUrl
          }
        }
      }
    }
  }
}
"""

_PR_FRAGMENT = """
fragment prFields on PullRequestConnection {
  nodes {
    number
    title
    url
    state
    createdAt
    closedAt
    merged
    isCrossRepository
%s
  }
  pageInfo {
    endCursor
    hasNextPage
  }
}
"""


def build_pull_request_fragment(field_set: FieldSet) -> str:
    """Return the ``prFields`` fragment plus the optional fragments it spreads."""
    spreads = []
    fragments = []
    if FieldSet.REVIEWS in field_set:
        spreads.append("    ...reviewFields")
        fragments.append(_REVIEW_FRAGMENT)
    if FieldSet.CI in field_set:
        spreads.append("    ...ciFields")
        fragments.append(_CI_FRAGMENT)

    return _PR_FRAGMENT % "\n".join(spreads) + "".join(fragments)


DEFAULT_BRANCH_QUERY = """
query ($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    defaultBranchRef {
      name
    }
  }
}
"""

REPO_ISSUES_QUERY = """
query ($owner: String!, $name: String!, $pageSize: Int!, $after: String) {
  repository(owner: $owner, name: $name) {
    issues(first: $pageSize, after: $after, orderBy: {field: CREATED_AT, direction: DESC}) {
      nodes {
        number
        title
        url
        state
        createdAt
        closedAt
      }
      pageInfo {
        endCursor
        hasNextPage
      }
    }
  }
}
"""

_REPO_PRS_QUERY = """
query ($owner: String!, $name: String!, $pageSize: Int!, $after: String, $baseRefName: String) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: $pageSize, after: $after, orderBy: {field: CREATED_AT, direction: DESC}, baseRefName: $baseRefName) {
      ...prFields
    }
  }
}
"""

_USER_PRS_QUERY = """
query ($user: String!, $pageSize: Int!, $after: String) {
  user(login: $user) {
    pullRequests(first: $pageSize, after: $after, orderBy: {field: CREATED_AT, direction: DESC}) {
      ...prFields
    }
  }
}
"""


def repo_pull_requests_query(field_set: FieldSet) -> str:
    return _REPO_PRS_QUERY + build_pull_request_fragment(field_set)


def user_pull_requests_query(field_set: FieldSet) -> str:
    return _USER_PRS_QUERY + build_pull_request_fragment(field_set)
