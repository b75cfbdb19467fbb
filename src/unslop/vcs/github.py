"""GitHub pull request metadata for the metadata scan partition."""

import logging
import re
from dataclasses import dataclass

from github import Github
from github.GithubException import GithubException
from github.PullRequest import PullRequest

logger = logging.getLogger(__name__)

PR_REF_PATTERN = re.compile(r"^(?P<repo>[\w.-]+/[\w.-]+)#(?P<number>\d+)$")


@dataclass(frozen=True)
class PullRequestRef:
    """A pull request in ``owner/name#number`` form."""

    repo: str
    number: int

    @classmethod
    def parse(cls, value: str) -> "PullRequestRef":
        """Parse ``owner/name#number``.

        Raises:
            ValueError: If the value is not in that form
        """
        match = PR_REF_PATTERN.match(value.strip())
        if not match:
            raise ValueError(f"Expected OWNER/REPO#NUMBER, got {value!r}")
        return cls(repo=match.group("repo"), number=int(match.group("number")))

    @property
    def artifact_id(self) -> str:
        return f"pr:{self.repo}#{self.number}"


class PullRequestMetadataSource:
    """Reads pull request text (title, body, review comments) as scan artifacts."""

    def __init__(self, token: str, base_url: str | None = None) -> None:
        """Initialize the GitHub client.

        Args:
            token: GitHub personal access token or app token
            base_url: Optional base URL for GitHub Enterprise
        """
        if base_url:
            self._gh = Github(token, base_url=base_url)
        else:
            self._gh = Github(token)

    def get_pull_request(self, ref: PullRequestRef) -> PullRequest:
        return self._gh.get_repo(ref.repo).get_pull(ref.number)

    def fetch(self, ref: PullRequestRef) -> dict[str, str]:
        """Collect the pull request's text artifacts.

        Args:
            ref: Pull request to read

        Returns:
            Dict mapping synthetic artifact ids to their text
        """
        pr = self.get_pull_request(ref)
        artifacts: dict[str, str] = {}

        description = "\n\n".join(part for part in (pr.title, pr.body) if part)
        if description:
            artifacts[ref.artifact_id] = description

        try:
            for comment in pr.get_review_comments():
                if comment.body:
                    artifacts[f"{ref.artifact_id}/review/{comment.id}"] = comment.body
        except GithubException as e:
            logger.warning(f"Could not fetch review comments for {ref.artifact_id}: {e}")

        logger.info(f"Collected {len(artifacts)} metadata artifacts from {ref.artifact_id}")
        return artifacts
