"""Pattern catalog loading."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from unslop.models.artifacts import ArtifactKind
from unslop.models.findings import Category, FindingType, FixAction, FixSafety, Risk
from unslop.safety import classify, default_action

logger = logging.getLogger(__name__)

DEFAULT_CATALOG = Path(__file__).parent / "catalog.yaml"


class CatalogError(Exception):
    """Raised when a catalog file cannot be loaded."""

    pass


@dataclass
class PatternRule:
    """A single detection rule."""

    id: str
    type: FindingType
    regex: re.Pattern[str]
    risk: Risk
    action: FixAction
    replacement: str | None = None
    suggestion: str = ""
    group: int = 0
    kinds: frozenset[ArtifactKind] | None = None  # None applies the rule everywhere

    def applies_to(self, kind: ArtifactKind) -> bool:
        return self.kinds is None or kind in self.kinds

    @property
    def category(self) -> Category:
        return self.type.category

    def suggestion_for(self, match: re.Match[str]) -> str:
        """Replacement text for a match, keeping the case of its first letter."""
        if self.action == FixAction.DELETE:
            return ""
        if self.replacement is None:
            return self.suggestion
        return _match_case(match.group(self.group), match.expand(self.replacement))


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper() and replacement:
        return replacement[0].upper() + replacement[1:]
    return replacement


def load_catalog(paths: list[Path] | None = None, include_default: bool = True) -> list[PatternRule]:
    """Load pattern rules from catalog files.

    Args:
        paths: Extra catalog files; their rules follow the default ones
        include_default: Whether to load the bundled catalog first

    Returns:
        Rules in file order

    Raises:
        CatalogError: If a file is unreadable or a rule is malformed
    """
    files = ([DEFAULT_CATALOG] if include_default else []) + list(paths or [])
    rules: list[PatternRule] = []
    seen_ids: set[str] = set()

    for path in files:
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CatalogError(f"Could not read catalog {path}: {e}") from e

        for raw_rule in raw.get("rules", []):
            rule = parse_rule(raw_rule, source=str(path))
            if rule.id in seen_ids:
                logger.warning(f"Rule {rule.id} from {path} overrides an earlier definition")
                rules = [r for r in rules if r.id != rule.id]
            seen_ids.add(rule.id)
            rules.append(rule)

    logger.debug(f"Loaded {len(rules)} rules from {len(files)} catalog files")
    return rules


def parse_rule(raw: dict[str, Any], source: str = "<catalog>") -> PatternRule:
    """Build a rule from its catalog entry.

    Raises:
        CatalogError: If the entry is malformed
    """
    try:
        rule_id = raw["id"]
        finding_type = FindingType(raw["type"])
        regex = re.compile(raw["pattern"], re.IGNORECASE)
        risk = Risk(raw.get("risk", "medium"))
        action = FixAction(raw["action"]) if "action" in raw else default_action(finding_type)
        kinds = frozenset(ArtifactKind(k) for k in raw["kinds"]) if "kinds" in raw else None
    except KeyError as e:
        raise CatalogError(f"Rule in {source} is missing field {e}") from e
    except (ValueError, re.error) as e:
        raise CatalogError(f"Invalid rule {raw.get('id', '?')} in {source}: {e}") from e

    group = int(raw.get("group", 0))
    if group > regex.groups:
        raise CatalogError(f"Rule {rule_id} in {source} selects group {group} of {regex.groups}")

    replacement = raw.get("replacement")
    if (
        classify(finding_type) == FixSafety.SAFE
        and action == FixAction.REWRITE
        and replacement is None
    ):
        raise CatalogError(f"Safe rewrite rule {rule_id} in {source} needs a replacement")

    return PatternRule(
        id=rule_id,
        type=finding_type,
        regex=regex,
        risk=risk,
        action=action,
        replacement=replacement,
        suggestion=raw.get("suggestion", ""),
        group=group,
        kinds=kinds,
    )
