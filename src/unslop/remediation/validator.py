"""Post-mutation validation and per-file rollback."""

import ast
import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

import yaml

from unslop.vcs.git import GitError, GitRepository

logger = logging.getLogger(__name__)

DELIMITER_PAIRS = (("(", ")"), ("[", "]"), ("{", "}"))
FENCE_MARKERS = ("```", "~~~")


@dataclass
class ValidationResult:
    """Whether a mutated file still parses."""

    valid: bool
    reason: str = ""


def _parse_yaml(text: str) -> None:
    list(yaml.safe_load_all(text))


PARSERS: dict[str, Callable[[str], object]] = {
    ".py": ast.parse,
    ".json": json.loads,
    ".yaml": _parse_yaml,
    ".yml": _parse_yaml,
    ".toml": tomllib.loads,
}


def delimiter_balance(text: str) -> dict[str, int]:
    """Count unclosed delimiters and code fences.

    Returns:
        Imbalance per delimiter (opens minus closes) and the number of
        unterminated fences (0 or 1)
    """
    balance = {opening: text.count(opening) - text.count(closing) for opening, closing in DELIMITER_PAIRS}
    fences = sum(1 for line in text.splitlines() if line.lstrip().startswith(FENCE_MARKERS))
    balance["fence"] = fences % 2
    return balance


class Validator:
    """Checks that a mutated file is still well formed."""

    def validate(self, path: Path, baseline: str | None = None) -> ValidationResult:
        """Validate a file after mutation.

        Structured formats are parsed; everything else gets a balanced
        delimiter check. With a baseline, problems that already existed before
        the mutation are not blamed on it.

        Args:
            path: File to check
            baseline: Content before mutation, if known

        Returns:
            Validation result with a reason when invalid
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return ValidationResult(False, f"unreadable: {e}")

        parser = PARSERS.get(Path(path).suffix.lower())
        if parser is not None:
            return self._check_parse(parser, text, baseline)
        return self._check_delimiters(text, baseline)

    def _check_parse(
        self, parser: Callable[[str], object], text: str, baseline: str | None
    ) -> ValidationResult:
        try:
            parser(text)
        except (SyntaxError, ValueError, yaml.YAMLError) as e:
            if baseline is not None and not _parses(parser, baseline):
                logger.debug("File did not parse before mutation either; accepting")
                return ValidationResult(True)
            return ValidationResult(False, f"parse error: {e}")
        return ValidationResult(True)

    def _check_delimiters(self, text: str, baseline: str | None) -> ValidationResult:
        balance = delimiter_balance(text)
        unbalanced = {name: count for name, count in balance.items() if count}
        if not unbalanced:
            return ValidationResult(True)
        if baseline is not None and delimiter_balance(baseline) == balance:
            return ValidationResult(True)
        details = ", ".join(f"{name} {count:+d}" for name, count in sorted(unbalanced.items()))
        return ValidationResult(False, f"unbalanced delimiters: {details}")


def _parses(parser: Callable[[str], object], text: str) -> bool:
    try:
        parser(text)
    except (SyntaxError, ValueError, yaml.YAMLError):
        return False
    return True


class RollbackGuard:
    """Restores files whose mutation failed validation.

    With the snapshot strategy the exact pre-mutation bytes are kept in memory
    and written back. With the vcs strategy git restores the committed content,
    which is only equivalent when the tree was clean before remediation.
    """

    def __init__(
        self,
        root: Path,
        strategy: str = "snapshot",
        repository: GitRepository | None = None,
    ) -> None:
        """Initialize the guard.

        Args:
            root: Directory report paths are relative to
            strategy: "snapshot" or "vcs"
            repository: Required for the vcs strategy
        """
        if strategy == "vcs" and repository is None:
            raise ValueError("The vcs rollback strategy requires a git repository")
        self.root = Path(root)
        self.strategy = strategy
        self.repository = repository
        self._snapshots: dict[str, bytes] = {}

    def snapshot(self, path: str) -> None:
        """Record a file's content before its first write."""
        if path not in self._snapshots:
            self._snapshots[path] = (self.root / path).read_bytes()

    def rollback(self, path: str) -> None:
        """Restore a single file to its pre-mutation state.

        With the vcs strategy, a file git cannot restore (untracked, or not
        at HEAD) is restored from its snapshot instead.

        Raises:
            KeyError: If the file was never snapshotted and git could not restore it
            OSError: If the snapshot cannot be written back
        """
        if self.strategy == "vcs":
            try:
                self.repository.revert_file(path)
            except GitError as e:
                logger.warning(f"git could not restore {path}, using snapshot: {e}")
                self._restore_snapshot(path)
        else:
            self._restore_snapshot(path)
        logger.warning(f"Rolled back {path}")

    def _restore_snapshot(self, path: str) -> None:
        (self.root / path).write_bytes(self._snapshots[path])

    def discard(self, path: str) -> None:
        """Forget a snapshot once the file has passed validation."""
        self._snapshots.pop(path, None)
