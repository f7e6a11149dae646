"""Worktree resolution and shared-directory teardown."""

from pathlib import Path
from typing import Iterable, Sequence

from pruner.git import GitRepo, Worktree
from pruner.logging_config import get_logger
from pruner.models import BranchCandidate, WorktreeLink

logger = get_logger(__name__)


def _same_path(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


def resolve_worktree(
    branch: BranchCandidate,
    repo_root: Path,
    worktrees: Sequence[Worktree],
) -> WorktreeLink:
    """Find the worktree of a single branch.

    The conventional location is ``<repo_root>/<branch>``. A directory there
    that git does not know as a worktree, or a worktree there that has
    another branch checked out, is reported but never removed.
    """
    removable = [wt for wt in worktrees if not wt.is_main and not wt.is_bare]
    conventional = repo_root / branch.name
    occupied_by = None

    for wt in removable:
        if not _same_path(wt.path, conventional):
            continue
        # Detached worktrees have no branch and still follow the convention
        if wt.branch is None or wt.branch == branch.name:
            return WorktreeLink(branch, conventional, is_registered=True)
        occupied_by = wt.branch

    # Checked out somewhere other than the conventional location
    for wt in removable:
        if wt.branch == branch.name:
            logger.debug(f"{branch.name} is checked out at {wt.path}")
            return WorktreeLink(branch, wt.path, is_registered=True)

    if occupied_by is not None:
        logger.warning(f"{conventional} has {occupied_by} checked out; leaving it in place")
        return WorktreeLink(branch, conventional, is_registered=False)

    if conventional.is_dir():
        logger.warning(f"{conventional} exists but is not a registered worktree; leaving it in place")
        return WorktreeLink(branch, conventional, is_registered=False)

    return WorktreeLink(branch, None, is_registered=False)


def resolve_worktrees(
    repo: GitRepo,
    repo_root: Path,
    branches: Iterable[BranchCandidate],
) -> dict[BranchCandidate, WorktreeLink]:
    """Map each branch to its worktree link."""
    worktrees = repo.list_worktrees()
    return {branch: resolve_worktree(branch, repo_root, worktrees) for branch in branches}


def teardown_shared_links(worktree_path: Path, shared_dirs: Sequence[str]) -> dict[Path, Path]:
    """Remove shared-directory symlinks from a worktree before it is removed.

    Only symlinks are removed. A real directory with a shared name belongs to
    the worktree and is left for git to judge.

    Returns:
        The removed symlinks mapped to the targets they pointed at
    """
    removed = {}
    for name in shared_dirs:
        link = worktree_path / name
        if not link.is_symlink():
            continue
        try:
            target = link.readlink()
            link.unlink()
        except OSError as err:
            logger.warning(f"Could not remove shared link {link}: {err}")
            continue
        logger.info(f"Removed shared link {link}")
        removed[link] = target
    return removed


def restore_shared_links(links: dict[Path, Path]) -> None:
    """Put back symlinks removed by teardown_shared_links when the worktree stays."""
    for link, target in links.items():
        try:
            link.symlink_to(target)
        except OSError as err:
            logger.warning(f"Could not restore shared link {link} -> {target}: {err}")
            continue
        logger.info(f"Restored shared link {link}")
