"""Custom exception types for the repository health scorer."""


class RepoHealthError(Exception):
    """Base exception for all recoverable repository health errors."""


class ConfigurationError(RepoHealthError):
    """Raised when runtime configuration values are missing or invalid."""


class AuthenticationError(RepoHealthError):
    """Raised when GitHub credentials are unavailable or rejected."""


class ApiError(RepoHealthError):
    """Raised when a GitHub GraphQL request fails or returns an unexpected response."""


class NotFoundError(ApiError):
    """Raised when GitHub cannot resolve the requested repository or user."""


class DataValidationError(ApiError):
    """Raised when a GitHub payload item is missing fields required for scoring."""
