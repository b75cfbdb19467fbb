"""Version control collaborators."""

from unslop.vcs.git import CommitMessage, GitError, GitRepository
from unslop.vcs.github import PullRequestMetadataSource, PullRequestRef

__all__ = [
    "CommitMessage",
    "GitError",
    "GitRepository",
    "PullRequestMetadataSource",
    "PullRequestRef",
]
