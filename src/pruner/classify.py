"""Merge classification of local branches.

Each detector answers one question about a branch. The classifier runs them
in priority order and the first positive answer wins, so a branch gets
exactly one status. Detectors are interchangeable: the squash heuristic can
be swapped for a stricter detector without touching the pipeline.
"""

from typing import Optional, Sequence

from pruner.config import DEFAULT_REMOTE, DEFAULT_SQUASH_KEYWORDS, DEFAULT_SQUASH_WINDOW
from pruner.git import GitRepo, RefNotFoundError, VcsUnavailableError
from pruner.logging_config import get_logger
from pruner.models import BranchCandidate, MergeStatus

logger = get_logger(__name__)


class Detector:
    """Evidence that a branch belongs to one classification tier."""

    status: MergeStatus = MergeStatus.UNCLASSIFIED

    def start(self, repo: GitRepo, target: str) -> None:
        """Called once per classification run, before any branch is checked."""

    def matches(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        raise NotImplementedError

    def check(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        """Run the detector, treating git failures as absent evidence."""
        try:
            return self.matches(repo, branch, target)
        except (VcsUnavailableError, RefNotFoundError) as err:
            logger.debug(f"{type(self).__name__} skipped {branch.name}: {err}")
            return False


class AncestryDetector(Detector):
    """Branch tip is reachable from the target."""

    status = MergeStatus.MERGED

    def __init__(self) -> None:
        self._merged: Optional[set[str]] = None

    def start(self, repo: GitRepo, target: str) -> None:
        try:
            self._merged = repo.list_merged_branches(target)
        except VcsUnavailableError as err:
            logger.warning(f"Could not check ancestry against {target}: {err}")
            self._merged = set()

    def matches(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        if self._merged is None:
            self.start(repo, target)
        return branch.name in self._merged


class SquashMessageDetector(Detector):
    """Target history mentions the branch in a merge or squash commit message.

    This is a heuristic: any recent commit mentioning the branch name next to
    one of the keywords counts, whether or not it really integrated the branch.
    """

    status = MergeStatus.SQUASH_MERGED

    def __init__(self, window: int = DEFAULT_SQUASH_WINDOW, keywords: Sequence[str] = DEFAULT_SQUASH_KEYWORDS) -> None:
        self.window = window
        self.keywords = tuple(keywords)

    def matches(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        return repo.search_log(target, branch.name, self.window, keywords=self.keywords)


class RemoteDeletedDetector(Detector):
    """Branch tracks an upstream ref that no longer exists."""

    status = MergeStatus.REMOTE_DELETED

    def matches(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        upstream = repo.upstream_of(branch.name)
        if upstream is None:
            return False
        if not upstream.startswith("refs/"):
            upstream = f"refs/remotes/{upstream}"
        return not repo.ref_exists(upstream)


class UnpushedDetector(Detector):
    """Branch has no upstream and no same-named branch on the remote."""

    status = MergeStatus.UNPUSHED

    def __init__(self, remote: str = DEFAULT_REMOTE) -> None:
        self.remote = remote

    def matches(self, repo: GitRepo, branch: BranchCandidate, target: str) -> bool:
        if repo.upstream_of(branch.name) is not None:
            return False
        return not repo.ref_exists(f"refs/remotes/{self.remote}/{branch.name}")


def default_detectors(
    remote: str = DEFAULT_REMOTE,
    squash_window: int = DEFAULT_SQUASH_WINDOW,
    squash_keywords: Sequence[str] = DEFAULT_SQUASH_KEYWORDS,
) -> list[Detector]:
    """Get the standard detectors in priority order."""
    return [
        AncestryDetector(),
        SquashMessageDetector(squash_window, squash_keywords),
        RemoteDeletedDetector(),
        UnpushedDetector(remote),
    ]


class MergeClassifier:
    """Assign each candidate branch a single merge status."""

    def __init__(self, repo: GitRepo, target: str, detectors: Optional[Sequence[Detector]] = None) -> None:
        self.repo = repo
        self.target = target
        self.detectors = list(detectors) if detectors is not None else default_detectors()

    def classify_branch(self, branch: BranchCandidate) -> MergeStatus:
        for detector in self.detectors:
            if detector.check(self.repo, branch, self.target):
                logger.debug(f"{branch.name}: {detector.status.value}")
                return detector.status
        logger.debug(f"{branch.name}: unclassified")
        return MergeStatus.UNCLASSIFIED

    def classify(self, candidates: Sequence[BranchCandidate]) -> dict[BranchCandidate, MergeStatus]:
        """Classify candidates, preserving their order."""
        for detector in self.detectors:
            detector.start(self.repo, self.target)
        return {branch: self.classify_branch(branch) for branch in candidates}
