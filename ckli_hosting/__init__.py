"""Uniform repository lifecycle client for GitHub, GitLab, Gitea and local bare repositories."""

__version__ = "0.1.0"

DEFAULT_USER_AGENT = f"ckli-hosting/{__version__}"
