"""Local git collaborator.

The engine only needs a handful of read operations (current revision, changed
and tracked files, commit messages, working tree status) plus restoring a
single file to its committed content during rollback.
"""

import fnmatch
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

RECORD_SEP = "\x1e"
FIELD_SEP = "\x00"


class GitError(Exception):
    """Raised when a git command fails."""

    pass


@dataclass
class CommitMessage:
    """A commit and its full message."""

    sha: str
    message: str

    @property
    def artifact_id(self) -> str:
        """Synthetic path used to locate findings in this commit."""
        return f"commit:{self.sha[:12]}"


class GitRepository:
    """Git repository rooted at a working tree."""

    def __init__(self, root: Path | None = None) -> None:
        """Initialize the repository wrapper.

        Args:
            root: Working tree root (defaults to the current directory)
        """
        self.root = Path(root) if root else Path.cwd()

    def _run_git(self, args: list[str]) -> str:
        """Run a git command and return stdout.

        Raises:
            GitError: If git is missing or the command exits non-zero
        """
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.root,
                capture_output=True,
                text=True,
                check=True,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.CalledProcessError as e:
            raise GitError(f"git {' '.join(args)} failed: {e.stderr.strip()}") from e
        return result.stdout

    @property
    def is_repo(self) -> bool:
        """Check if the root is inside a git working tree."""
        try:
            return self._run_git(["rev-parse", "--is-inside-work-tree"]).strip() == "true"
        except GitError:
            return False

    def fingerprint(self) -> str | None:
        """Current HEAD revision, or None outside a repository or before the first commit."""
        try:
            return self._run_git(["rev-parse", "HEAD"]).strip() or None
        except GitError as e:
            logger.debug(f"No revision fingerprint available: {e}")
            return None

    def tracked_files(self) -> list[str]:
        """All files tracked at HEAD or staged."""
        return _lines(self._run_git(["ls-files"]))

    def changed_files(self, base_ref: str) -> list[str]:
        """Files changed on this branch relative to a base ref, plus local changes.

        Paths are relative to the root, like ls-files, so a root below the
        repository top level sees only its own subtree.

        Falls back to local changes only when the base ref cannot be resolved.
        """
        paths: list[str] = []
        try:
            paths.extend(
                _lines(
                    self._run_git(
                        ["diff", "--name-only", "--relative", "--diff-filter=d", f"{base_ref}...HEAD"]
                    )
                )
            )
        except GitError as e:
            logger.warning(f"Could not diff against {base_ref}, using local changes only: {e}")

        local = ["diff", "--name-only", "--relative", "--diff-filter=d", "HEAD"]
        paths.extend(_lines(self._run_git(local)))
        paths.extend(_lines(self._run_git(["ls-files", "--others", "--exclude-standard"])))
        return list(dict.fromkeys(paths))

    def commit_messages(self, base_ref: str | None = None, max_count: int = 50) -> list[CommitMessage]:
        """Commit messages in base_ref..HEAD, or the latest max_count commits."""
        if max_count <= 0:
            return []

        args = ["log", f"--max-count={max_count}", f"--format=%H{FIELD_SEP}%B{RECORD_SEP}"]
        if base_ref:
            args.append(f"{base_ref}..HEAD")

        try:
            output = self._run_git(args)
        except GitError as e:
            logger.warning(f"Could not read commit messages: {e}")
            return []

        commits = []
        for record in output.split(RECORD_SEP):
            record = record.strip("\n")
            if not record:
                continue
            sha, _, message = record.partition(FIELD_SEP)
            commits.append(CommitMessage(sha=sha.strip(), message=message.strip()))
        return commits

    def dirty_paths(self, ignore_patterns: list[str] | None = None) -> list[str]:
        """Tracked files with uncommitted modifications (staged or not).

        Untracked files are not counted; they have no committed content that
        could be confused with engine edits. Paths are made relative to the
        root so ignore patterns match the same paths the report uses.
        """
        ignore_patterns = ignore_patterns or []
        prefix = self._run_git(["rev-parse", "--show-prefix"]).strip()
        dirty = []
        for line in _lines(self._run_git(["status", "--porcelain"])):
            status, path = line[:2], line[3:]
            if status == "??":
                continue
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            path = path.strip('"')
            if prefix and path.startswith(prefix):
                path = path[len(prefix):]
            if any(fnmatch.fnmatch(path, pattern) for pattern in ignore_patterns):
                continue
            dirty.append(path)
        return dirty

    def is_dirty(self, ignore_patterns: list[str] | None = None) -> bool:
        return bool(self.dirty_paths(ignore_patterns))

    def revert_file(self, path: str) -> None:
        """Restore a file to its last committed content.

        Raises:
            GitError: If the file is not tracked at HEAD
        """
        self._run_git(["checkout", "HEAD", "--", path])
        logger.info(f"Restored {path} from HEAD")


def _lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.strip()]
