"""Test configuration and fixtures."""

from pathlib import Path
from typing import Generator, Optional, Sequence

import pytest
from git import Actor, Repo

from pruner.git import BranchDeletionError, RefNotFoundError, Worktree, WorktreeRemovalError

AUTHOR = Actor("Test User", "test@example.com")


def _commit(repo: Repo, path: Path, name: str, content: str, message: str) -> None:
    """Write a file and commit it on the checked-out branch."""
    test_file = path / name
    test_file.write_text(content)
    repo.index.add([name])
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


@pytest.fixture
def worktree_env(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a bare-clone worktree layout with branches in every tier.

    Layout::

        remote.git/          bare remote
        project/.git/        bare clone, the shared store
        project/main/        worktree of main (target and current branch)
        project/feature-c/   worktree of feature-c
        project/feature-d/   plain directory, not a worktree

    Branches:
        feature-a  merged into main with a merge commit
        feature-s  squash merged into main, still on the remote
        feature-c  tracks origin/feature-c, which was deleted
        feature-b  never pushed (no upstream, no remote branch)
        feature-d  no commits of its own, so reachable from main
        feature-e  unmerged and still on the remote

    Returns:
        The project root
    """
    remote_path = tmp_path / "remote.git"
    seed_path = tmp_path / "seed"
    root = tmp_path / "project"
    seed_path.mkdir()
    root.mkdir()

    Repo.init(remote_path, bare=True, initial_branch="main")
    seed = Repo.init(seed_path, initial_branch="main")
    seed.config_writer().set_value("user", "name", AUTHOR.name).release()
    seed.config_writer().set_value("user", "email", AUTHOR.email).release()
    _commit(seed, seed_path, "README.md", "# Test Repository", "Initial commit")
    seed.create_remote("origin", url=str(remote_path))

    seed.git.branch("feature-d")

    def create_branch(name: str) -> None:
        seed.git.checkout("-b", name, "main")
        _commit(seed, seed_path, f"{name}.txt", f"{name} content", f"Add {name}")
        seed.git.checkout("main")

    for name in ("feature-a", "feature-s", "feature-c", "feature-b", "feature-e"):
        create_branch(name)

    seed.git.merge("--no-ff", "-m", "Merge branch 'feature-a'", "feature-a")
    seed.git.merge("--squash", "feature-s")
    seed.git.commit("-m", "Squash merge feature-s (#12)")

    seed.git.push("origin", "main", "feature-a", "feature-s", "feature-c", "feature-b", "feature-d", "feature-e")

    # Bare clone with remote-tracking refs, as a worktree root
    project = Repo.clone_from(str(remote_path), str(root / ".git"), bare=True)
    project.git.config("remote.origin.fetch", "+refs/heads/*:refs/remotes/origin/*")
    project.git.config("user.name", AUTHOR.name)
    project.git.config("user.email", AUTHOR.email)
    project.git.fetch("origin")
    project.git.worktree("add", str(root / "main"), "main")
    project.git.worktree("add", str(root / "feature-c"), "feature-c")
    project.git.branch("--set-upstream-to=origin/feature-c", "feature-c")

    # Remote branches go away, as after a merged pull request
    remote = Repo(remote_path)
    remote.git.branch("-D", "feature-c")
    remote.git.branch("-D", "feature-b")
    project.git.fetch("--prune", "origin")

    stray = root / "feature-d"
    stray.mkdir()
    (stray / "notes.txt").write_text("not a worktree")

    yield root


class FakeGitRepo:
    """In-memory stand-in for GitRepo.

    Records every mutating call in ``calls`` so tests can check ordering.
    """

    def __init__(
        self,
        branches: Sequence[str] = ("main",),
        current: Optional[str] = "main",
        merged: Sequence[str] = (),
        log: Sequence[str] = (),
        upstreams: Optional[dict[str, str]] = None,
        remote_branches: Sequence[str] = (),
        worktrees: Sequence[Worktree] = (),
        common_dir: Optional[Path] = Path("/repo/.git"),
        default_branch: Optional[str] = None,
    ) -> None:
        self.branches = list(branches)
        self.current = current
        self.merged = set(merged)
        self.log = list(log)
        self.upstreams = dict(upstreams or {})
        self.remote_refs = {f"refs/remotes/origin/{name}" for name in remote_branches}
        self.worktrees = list(worktrees)
        self.common_dir = common_dir
        self.remote_default = default_branch
        self.failing_worktrees: dict[Path, str] = {}
        self.failing_branches: dict[str, str] = {}
        self.calls: list[tuple[str, str]] = []

    def common_git_dir(self) -> Optional[Path]:
        return self.common_dir

    def current_branch(self) -> Optional[str]:
        return self.current

    def list_local_branches(self) -> list[str]:
        return list(self.branches)

    def list_merged_branches(self, target: str) -> set[str]:
        self.calls.append(("merged", target))
        return set(self.merged) | {target}

    def ref_exists(self, ref: str) -> bool:
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/") :] in self.branches
        return ref in self.remote_refs

    def search_log(self, target: str, pattern: str, max_entries: int, keywords: Sequence[str] = ()) -> bool:
        matches = [message.lower() for message in self.log if pattern.lower() in message.lower()][:max_entries]
        if not keywords:
            return bool(matches)
        return any(keyword in message for message in matches for keyword in keywords)

    def upstream_of(self, branch: str) -> Optional[str]:
        if branch not in self.branches:
            raise RefNotFoundError(f"Branch not found: {branch}")
        return self.upstreams.get(branch)

    def default_branch(self, remote: str) -> Optional[str]:
        return self.remote_default

    def list_worktrees(self) -> list[Worktree]:
        return list(self.worktrees)

    def prune_worktrees(self) -> None:
        self.calls.append(("prune", ""))

    def remove_worktree(self, path: Path, force: bool = False) -> None:
        self.calls.append(("remove_worktree", str(path)))
        if path in self.failing_worktrees:
            raise WorktreeRemovalError(self.failing_worktrees[path])
        self.worktrees = [wt for wt in self.worktrees if wt.path != path]

    def delete_branch(self, name: str, force: bool = False) -> None:
        self.calls.append(("delete_branch", name))
        if name in self.failing_branches:
            raise BranchDeletionError(self.failing_branches[name])
        self.branches.remove(name)


@pytest.fixture
def fake_repo() -> FakeGitRepo:
    """Repository with one branch in each tier, as in the worktree_env layout."""
    return FakeGitRepo(
        branches=["main", "feature-a", "feature-b", "feature-c", "feature-e", "feature-s"],
        current="main",
        merged=["feature-a"],
        log=["Squash merge feature-s (#12)", "Merge branch 'feature-a'", "Add feature-a", "Initial commit"],
        upstreams={"feature-c": "refs/remotes/origin/feature-c"},
        remote_branches=["feature-a", "feature-e", "feature-s"],
        worktrees=[
            Worktree(Path("/repo/.git"), is_main=True, is_bare=True),
            Worktree(Path("/repo/main"), branch="main"),
            Worktree(Path("/repo/feature-c"), branch="feature-c"),
        ],
    )
