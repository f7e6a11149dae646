"""Repository discovery and local branch inventory."""

from pathlib import Path
from typing import Optional

from pruner.git import GitRepo, NotARepositoryError, TargetBranchNotFoundError
from pruner.logging_config import get_logger
from pruner.models import BranchCandidate

logger = get_logger(__name__)

FALLBACK_TARGETS = ("main", "master")


def resolve_repo_root(repo: GitRepo) -> Path:
    """Get the directory that holds the shared git dir and the worktrees beside it."""
    common_dir = repo.common_git_dir()
    if common_dir is None:
        raise NotARepositoryError("Could not locate the repository's git directory")
    return common_dir.parent


def resolve_target_branch(repo: GitRepo, remote: str, explicit: Optional[str] = None) -> str:
    """Pick the branch to clean against.

    An explicit name wins. Otherwise ask the remote for its default branch,
    then fall back to a local ``main`` or ``master``.
    """
    if explicit:
        return explicit

    detected = repo.default_branch(remote)
    if detected and repo.ref_exists(f"refs/heads/{detected}"):
        logger.info(f"Using {remote}'s default branch {detected} as target")
        return detected

    for name in FALLBACK_TARGETS:
        if repo.ref_exists(f"refs/heads/{name}"):
            logger.info(f"Using local {name} as target")
            return name

    raise TargetBranchNotFoundError("Could not determine the target branch; please pass it explicitly")


def collect_candidates(repo: GitRepo, target: str) -> list[BranchCandidate]:
    """List local branches other than the target and the checked-out branch."""
    if not repo.ref_exists(f"refs/heads/{target}"):
        raise TargetBranchNotFoundError(f"Target branch '{target}' does not exist")

    excluded = {target}
    current = repo.current_branch()
    if current:
        excluded.add(current)

    candidates = [BranchCandidate(name) for name in repo.list_local_branches() if name not in excluded]
    logger.debug(f"Found {len(candidates)} candidate branches (excluding {', '.join(sorted(excluded))})")
    return candidates
