"""Worktree removal and branch deletion."""

from typing import Sequence

from pruner.git import BranchDeletionError, GitRepo, VcsUnavailableError, WorktreeRemovalError
from pruner.logging_config import get_logger
from pruner.models import CleanupPlan, CleanupReport, Failure, PlanEntry, Stage
from pruner.worktree import restore_shared_links, teardown_shared_links

logger = get_logger(__name__)


class CleanupExecutor:
    """Remove worktrees, then their branches, one plan entry at a time.

    A branch is only deleted after its worktree is gone. Failures are recorded
    per branch and never stop the remaining entries.
    """

    def __init__(self, repo: GitRepo, shared_dirs: Sequence[str] = (), force_delete: bool = False) -> None:
        self.repo = repo
        self.shared_dirs = tuple(shared_dirs)
        self.force_delete = force_delete

    def execute(self, plan: CleanupPlan) -> CleanupReport:
        removed_branches: set[str] = set()
        removed_worktrees: set[str] = set()
        failures: list[Failure] = []

        for entry in plan:
            name = entry.branch.name
            worktree = entry.worktree

            if worktree.is_registered and worktree.path is not None:
                try:
                    self._remove_worktree(entry)
                except (WorktreeRemovalError, VcsUnavailableError) as err:
                    logger.warning(f"Keeping branch {name}: worktree removal failed: {err}")
                    failures.append(Failure(name, Stage.WORKTREE_REMOVAL, str(err)))
                    continue
                removed_worktrees.add(str(worktree.path))

            try:
                self.repo.delete_branch(name, force=self.force_delete)
            except (BranchDeletionError, VcsUnavailableError) as err:
                logger.warning(f"Failed to delete branch {name}: {err}")
                failures.append(Failure(name, Stage.BRANCH_DELETION, str(err)))
                continue
            removed_branches.add(name)

        return CleanupReport(
            removed_branches=frozenset(removed_branches),
            removed_worktrees=frozenset(removed_worktrees),
            failures=tuple(failures),
        )

    def _remove_worktree(self, entry: PlanEntry) -> None:
        path = entry.worktree.path
        links = teardown_shared_links(path, self.shared_dirs) if self.shared_dirs else {}
        try:
            self.repo.remove_worktree(path, force=False)
        except (WorktreeRemovalError, VcsUnavailableError):
            # The worktree stays, so it keeps its shared directories
            restore_shared_links(links)
            raise
