"""Decision protocol for needs-review findings."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import yaml
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from unslop.models.findings import Finding, FixAction
from unslop.models.remediation import Decision, DecisionKind, ReviewState

logger = logging.getLogger(__name__)


class InvalidTransitionError(Exception):
    """Raised when a decision is applied to an item that already has one."""

    pass


class DecisionProvider(Protocol):
    """Source of decisions for needs-review findings.

    Returning None leaves the finding pending and moves on to the next one.
    """

    def decide(self, finding: Finding, position: int, total: int) -> Decision | None: ...


@dataclass
class ReviewItem:
    """A needs-review finding moving through the review state machine."""

    finding: Finding
    state: ReviewState = ReviewState.PENDING
    replacement: str | None = None

    def apply(self, decision: Decision) -> None:
        """Move out of PENDING according to a decision.

        Raises:
            InvalidTransitionError: If the item is not pending, or the decision
                accepts a rewrite that has no suggested replacement
        """
        if self.state != ReviewState.PENDING:
            raise InvalidTransitionError(
                f"Finding {self.finding.id} is already {self.state.value}"
            )

        if decision.kind == DecisionKind.ACCEPT:
            if self.finding.fix_action == FixAction.REWRITE and not self.finding.suggestion:
                raise InvalidTransitionError(
                    f"Finding {self.finding.id} has no suggested replacement; substitute text instead"
                )
            self.state = ReviewState.ACCEPTED
            self.replacement = self.finding.replacement
        elif decision.kind == DecisionKind.SUBSTITUTE:
            self.state = ReviewState.SUBSTITUTED
            self.replacement = decision.text
        elif decision.kind == DecisionKind.REJECT:
            self.state = ReviewState.REJECTED
        else:
            self.state = ReviewState.ABORTED

    @property
    def approved(self) -> bool:
        return self.state in (ReviewState.ACCEPTED, ReviewState.SUBSTITUTED)


@dataclass
class ReviewSession:
    """Ordered review of needs-review findings."""

    items: list[ReviewItem] = field(default_factory=list)
    aborted: bool = False

    @classmethod
    def for_findings(cls, findings: list[Finding]) -> "ReviewSession":
        return cls(items=[ReviewItem(finding) for finding in findings])

    def run(self, provider: DecisionProvider) -> "ReviewSession":
        """Ask the provider about each pending item in order.

        An abort decision marks the current item and every later pending item
        as aborted; nothing after it is asked.
        """
        total = len(self.items)
        for position, item in enumerate(self.items, start=1):
            if item.state != ReviewState.PENDING:
                continue

            decision = provider.decide(item.finding, position, total)
            if decision is None:
                continue

            if decision.kind == DecisionKind.ABORT_REMAINING:
                self._abort_from(position - 1)
                logger.info(f"Review aborted at finding {item.finding.id}")
                break

            try:
                item.apply(decision)
            except InvalidTransitionError as e:
                logger.warning(str(e))

        return self

    def _abort_from(self, index: int) -> None:
        self.aborted = True
        for item in self.items[index:]:
            if item.state == ReviewState.PENDING:
                item.apply(Decision.abort())


class ScriptedDecisionProvider:
    """Answers from a fixed mapping of finding id to decision."""

    def __init__(self, decisions: dict[int, Decision], default: Decision | None = None) -> None:
        """Initialize the provider.

        Args:
            decisions: Decision per finding id
            default: Decision for unmapped ids; None leaves them pending
        """
        self.decisions = decisions
        self.default = default

    def decide(self, finding: Finding, position: int, total: int) -> Decision | None:
        return self.decisions.get(finding.id, self.default)


class ConsoleDecisionProvider:
    """Prompts on the terminal for each finding."""

    CHOICES = {
        "a": DecisionKind.ACCEPT,
        "r": DecisionKind.REJECT,
        "s": DecisionKind.SUBSTITUTE,
        "q": DecisionKind.ABORT_REMAINING,
    }

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def decide(self, finding: Finding, position: int, total: int) -> Decision | None:
        self.console.print(
            f"\n[bold]\\[{position}/{total}][/bold] {finding.location} "
            f"[cyan]{finding.type.value}[/cyan] (risk: {finding.risk.value})"
        )
        self.console.print(f"  [red]- {escape(finding.original_text)}[/red]")
        choices = ["a", "r", "s", "q"]
        if finding.fix_action == FixAction.REWRITE and not finding.suggestion:
            choices.remove("a")
        else:
            self.console.print(f"  [green]+ {escape(finding.replacement)}[/green]")

        answer = Prompt.ask(
            "  accept / reject / substitute / quit",
            choices=choices,
            default="r",
            console=self.console,
        )
        kind = self.CHOICES[answer]
        if kind == DecisionKind.SUBSTITUTE:
            return Decision.substitute(Prompt.ask("  replacement", console=self.console))
        return Decision(kind)


def load_decisions(path: Path) -> ScriptedDecisionProvider:
    """Load scripted decisions from a YAML file.

    Expected format::

        default: reject          # optional; omit to leave unlisted findings pending
        decisions:
          3: accept
          7: {substitute: "shows"}
          9: abort

    Raises:
        ValueError: If the file content is not a valid decision mapping
    """
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Decisions file {path} is not valid YAML: {e}") from e

    if not isinstance(raw, dict):
        raise ValueError(f"Decisions file {path} must contain a mapping")

    default = _parse_decision(raw["default"]) if raw.get("default") is not None else None
    decisions = {
        int(finding_id): _parse_decision(value)
        for finding_id, value in (raw.get("decisions") or {}).items()
    }
    logger.info(f"Loaded {len(decisions)} scripted decisions from {path}")
    return ScriptedDecisionProvider(decisions, default=default)


def _parse_decision(value: object) -> Decision:
    if isinstance(value, str):
        kind = DecisionKind(value.lower())
        if kind == DecisionKind.SUBSTITUTE:
            raise ValueError("substitute decisions need text: {substitute: \"...\"}")
        return Decision(kind)
    if isinstance(value, dict) and set(value) == {"substitute"}:
        return Decision.substitute(str(value["substitute"]))
    raise ValueError(f"Unrecognized decision: {value!r}")
