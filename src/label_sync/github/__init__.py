"""GitHub REST access for label-sync."""

from label_sync.github.client import GitHubClient, RepoLabel

__all__ = ["GitHubClient", "RepoLabel"]
