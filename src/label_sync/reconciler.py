"""Label reconciliation.

Brings the labels on a repository in line with the desired set:
- desired labels missing from the repository are created
- labels whose color or description drifted are updated in place
- a fixed list of legacy labels is deleted

Each write is independent. A failed write is logged and the pass continues;
the next triggering event converges whatever was left behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from label_sync.errors import LabelAlreadyExists, LabelOperationError
from label_sync.github.client import GitHubClient, RepoLabel
from label_sync.labels import LabelSetBuilder
from label_sync.models import Label

logger = logging.getLogger(__name__)

# Labels we never want on a managed repository, matched by exact name.
LABELS_TO_DELETE: tuple[str, ...] = (
    "bug",
    "enhancement",
    "kokoro:force-ci",
    "kokoro: force-run",
    "kokoro: run",
    "question",
)


class ChangeKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class LabelChange:
    kind: ChangeKind
    name: str
    """Name the request is keyed by (the current name for updates and deletes)."""
    label: Label | None = None

    def __post_init__(self) -> None:
        if (self.kind is ChangeKind.DELETE) != (self.label is None):
            raise ValueError(f"{self.kind.value} change for {self.name!r} has the wrong label payload")

    def describe(self) -> str:
        if self.label is None:
            return f"{self.kind.value} {self.name!r}"
        return (
            f"{self.kind.value} {self.name!r} "
            f"(color={self.label.color}, description={self.label.description!r})"
        )


@dataclass(frozen=True, slots=True)
class LabelPlan:
    repository: str
    changes: tuple[LabelChange, ...] = ()

    def of_kind(self, kind: ChangeKind) -> list[LabelChange]:
        return [c for c in self.changes if c.kind is kind]

    @property
    def is_empty(self) -> bool:
        return not self.changes


@dataclass(slots=True)
class ReconcileReport:
    repository: str
    plan: LabelPlan
    applied: int = 0
    skipped_existing: int = 0
    failed: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> dict[str, object]:
        return {
            "repo": self.repository,
            "planned": len(self.plan.changes),
            "applied": self.applied,
            "skipped_existing": self.skipped_existing,
            "failed": len(self.failed),
        }


def _needs_update(current: RepoLabel, desired: Label) -> bool:
    return (
        current.color.lower() != desired.color
        or current.description != desired.description
    )


def plan_label_changes(
    repository: str, desired: list[Label], current: list[RepoLabel]
) -> LabelPlan:
    """Compute the writes needed to move ``current`` to ``desired``.

    Matching is by name, case-insensitive. Updates never rename a label.
    """

    by_lower_name: dict[str, RepoLabel] = {}
    for label in current:
        by_lower_name.setdefault(label.name.lower(), label)

    changes: list[LabelChange] = []
    for wanted in desired:
        match = by_lower_name.get(wanted.name.lower())
        if match is None:
            changes.append(LabelChange(kind=ChangeKind.CREATE, name=wanted.name, label=wanted))
        elif _needs_update(match, wanted):
            changes.append(LabelChange(kind=ChangeKind.UPDATE, name=match.name, label=wanted))

    deleted: set[str] = set()
    for label in current:
        if label.name in LABELS_TO_DELETE and label.name not in deleted:
            deleted.add(label.name)
            changes.append(LabelChange(kind=ChangeKind.DELETE, name=label.name))

    return LabelPlan(repository=repository, changes=tuple(changes))


class Reconciler:
    """Build the desired label set for a repository and apply it."""

    def __init__(
        self,
        *,
        github: GitHubClient,
        builder: LabelSetBuilder,
        labels_page_size: int = 100,
    ) -> None:
        self._github = github
        self._builder = builder
        self._labels_page_size = labels_page_size

    def plan(self, owner: str, repo: str) -> LabelPlan:
        """Compute, without applying, the changes for ``owner/repo``.

        Raises:
            RetrievalError: If the desired or current labels cannot be fetched.
        """

        repository = f"{owner}/{repo}"
        desired = self._builder.build(repository)
        current = self._github.list_labels(repository=repository, per_page=self._labels_page_size)
        return plan_label_changes(repository, desired, current)

    def reconcile(self, owner: str, repo: str) -> ReconcileReport:
        """Apply the label plan for ``owner/repo``.

        Individual write failures are logged and recorded on the report; they
        never abort the pass.

        Raises:
            RetrievalError: If the desired or current labels cannot be fetched.
        """

        plan = self.plan(owner, repo)
        report = ReconcileReport(repository=plan.repository, plan=plan)

        for change in plan.changes:
            self._apply(change, report)

        logger.info("Labels reconciled", extra=report.summary())
        return report

    def _apply(self, change: LabelChange, report: ReconcileReport) -> None:
        repository = report.repository
        context = {"repo": repository, "label": change.name, "operation": change.kind.value}
        try:
            if change.label is None:
                self._github.delete_label(repository=repository, name=change.name)
            elif change.kind is ChangeKind.CREATE:
                self._github.create_label(repository=repository, label=change.label)
            else:
                self._github.update_label(
                    repository=repository, current_name=change.name, label=change.label
                )
        except LabelAlreadyExists:
            # Two reconciliations of the same repository raced on the create.
            logger.debug("Label already exists", extra=context)
            report.skipped_existing += 1
            return
        except LabelOperationError:
            logger.exception("Label operation failed", extra=context)
            report.failed.append(change.name)
            return

        logger.info(f"Label {change.describe()}", extra=context)
        report.applied += 1
