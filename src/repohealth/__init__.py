"""Weekly issue, pull request and CI health metrics for GitHub repositories."""

__version__ = "0.1.0"
