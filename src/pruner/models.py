"""Branch classification and cleanup data types."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional


class MergeStatus(Enum):
    """How confident we are that a branch has been integrated."""

    MERGED = "merged"
    SQUASH_MERGED = "squash-merged"
    REMOTE_DELETED = "remote-deleted"
    UNPUSHED = "unpushed"
    UNCLASSIFIED = ""  # Never touched

    @property
    def requires_confirmation(self) -> bool:
        """Whether this tier needs its own prompt because its evidence is weak."""
        return self is MergeStatus.UNPUSHED


# Display and execution order of the tiers
TIERS = (
    MergeStatus.MERGED,
    MergeStatus.SQUASH_MERGED,
    MergeStatus.REMOTE_DELETED,
    MergeStatus.UNPUSHED,
)


@dataclass(frozen=True)
class BranchCandidate:
    """A local branch that may be cleaned up."""

    name: str


@dataclass(frozen=True)
class WorktreeLink:
    """Where a branch's worktree lives, if anywhere.

    ``path`` set with ``is_registered`` False means a directory exists at the
    conventional location but git does not know it as a worktree.
    """

    branch: BranchCandidate
    path: Optional[Path] = None
    is_registered: bool = False


@dataclass(frozen=True)
class PlanEntry:
    branch: BranchCandidate
    status: MergeStatus
    worktree: WorktreeLink

    @property
    def requires_confirmation(self) -> bool:
        return self.status.requires_confirmation


@dataclass(frozen=True)
class CleanupPlan:
    """Ordered cleanup entries, grouped by tier."""

    entries: tuple[PlanEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def tier(self, status: MergeStatus) -> list[PlanEntry]:
        return [entry for entry in self.entries if entry.status is status]

    @property
    def auto_entries(self) -> list[PlanEntry]:
        return [entry for entry in self.entries if not entry.requires_confirmation]

    @property
    def manual_entries(self) -> list[PlanEntry]:
        return [entry for entry in self.entries if entry.requires_confirmation]

    def without(self, statuses: Iterable[MergeStatus]) -> "CleanupPlan":
        """Get a copy of the plan with the given tiers dropped."""
        dropped = set(statuses)
        return CleanupPlan(tuple(entry for entry in self.entries if entry.status not in dropped))


class Stage(Enum):
    """Cleanup step at which a branch failed."""

    WORKTREE_REMOVAL = "worktree-removal"
    BRANCH_DELETION = "branch-deletion"


@dataclass(frozen=True)
class Failure:
    branch: str
    stage: Stage
    reason: str


@dataclass(frozen=True)
class CleanupReport:
    """Outcome of a cleanup run."""

    removed_branches: frozenset[str] = field(default_factory=frozenset)
    removed_worktrees: frozenset[str] = field(default_factory=frozenset)
    failures: tuple[Failure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures
