from .rest import Repository
from .web import GitHubClient, list_repos

__all__ = ["GitHubClient", "Repository", "list_repos"]
