"""Git repository operations."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from git import GitCommandError, GitCommandNotFound, InvalidGitRepositoryError, NoSuchPathError, Repo

from pruner.logging_config import get_logger

logger = get_logger(__name__)

# ASCII record separator, used to split multi-line commit messages in log output
_RECORD_SEP = "\x1e"


class GitError(Exception):
    """Git operation error."""


class NotARepositoryError(GitError):
    """The path is not inside a git repository."""


class TargetBranchNotFoundError(GitError):
    """The target branch does not exist locally."""


class VcsUnavailableError(GitError):
    """Git is missing or a query failed unexpectedly."""


class RefNotFoundError(GitError):
    """A ref could not be resolved."""


class WorktreeRemovalError(GitError):
    """Git refused to remove a worktree."""


class BranchDeletionError(GitError):
    """Git refused to delete a branch."""


def _reason(err: GitCommandError) -> str:
    """Extract the most useful single message from a failed git command."""
    stderr = str(err.stderr or "")
    for line in stderr.splitlines():
        line = line.strip()
        # GitPython wraps the output as: stderr: '<git output>'
        if line.startswith("stderr:"):
            line = line[len("stderr:") :].strip()
        line = line.strip("'").strip()
        if line.startswith(("error:", "fatal:")):
            return line.split(":", 1)[1].strip()
    return stderr.strip() or str(err)


@dataclass(frozen=True)
class Worktree:
    """A worktree registered with git."""

    path: Path
    branch: Optional[str] = None
    is_main: bool = False
    is_bare: bool = False


class GitRepo:
    """Git repository operations."""

    def __init__(self, path: Path) -> None:
        """Open the repository containing ``path``.

        Bare repositories are accepted, since the bare-clone layout keeps the
        shared store in ``<root>/.git`` with one worktree per branch beside it.
        """
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError) as err:
            raise NotARepositoryError(f"Not a git repository: {path}") from err
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to open repository: {err}") from err

    def common_git_dir(self) -> Optional[Path]:
        """Get the git directory shared by all worktrees."""
        common_dir = self.repo.common_dir
        if not common_dir:
            return None
        return Path(common_dir).resolve()

    def current_branch(self) -> Optional[str]:
        """Get current branch name, or None in a detached HEAD state."""
        try:
            name = self.repo.git.branch("--show-current").strip()
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to get current branch: {_reason(err)}") from err
        return name or None

    def list_local_branches(self) -> list[str]:
        """List local branch names in ref order."""
        try:
            output = self.repo.git.for_each_ref("--format=%(refname:short)", "refs/heads/")
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to list branches: {_reason(err)}") from err
        return [line.strip() for line in output.splitlines() if line.strip()]

    def list_merged_branches(self, target: str) -> set[str]:
        """Get local branches whose tips are reachable from ``target``."""
        try:
            output = self.repo.git.branch("--merged", target, "--format=%(refname:short)")
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to list branches merged into {target}: {_reason(err)}") from err
        return {line.strip() for line in output.splitlines() if line.strip()}

    def ref_exists(self, ref: str) -> bool:
        """Check whether a fully qualified ref exists."""
        try:
            self.repo.git.show_ref("--verify", "--quiet", ref)
        except GitCommandNotFound as err:
            raise VcsUnavailableError(f"git is not available: {err}") from err
        except GitCommandError:
            return False
        return True

    def search_log(
        self,
        target: str,
        pattern: str,
        max_entries: int,
        keywords: Sequence[str] = (),
    ) -> bool:
        """Search recent commit messages on ``target`` for ``pattern``.

        Looks at the last ``max_entries`` commits whose message mentions
        ``pattern`` (case-insensitive, matched literally). When ``keywords``
        is given, a commit only counts if its message also contains one of them.
        """
        try:
            output = self.repo.git.log(
                target,
                "--regexp-ignore-case",
                "--fixed-strings",
                f"--grep={pattern}",
                f"--max-count={max_entries}",
                f"--format=%B{_RECORD_SEP}",
                "--",
            )
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to search log of {target}: {_reason(err)}") from err

        messages = [message.strip().lower() for message in output.split(_RECORD_SEP) if message.strip()]
        if not keywords:
            return bool(messages)
        lowered = [keyword.lower() for keyword in keywords]
        return any(keyword in message for message in messages for keyword in lowered)

    def upstream_of(self, branch: str) -> Optional[str]:
        """Get the configured upstream ref of a branch, e.g. ``refs/remotes/origin/foo``.

        The ref is read from branch configuration, so it is returned even when
        the remote-tracking ref itself no longer exists.
        """
        try:
            output = self.repo.git.for_each_ref("--format=%(refname) %(upstream)", f"refs/heads/{branch}")
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to read upstream of {branch}: {_reason(err)}") from err

        for line in output.splitlines():
            refname, _, upstream = line.strip().partition(" ")
            if refname == f"refs/heads/{branch}":
                return upstream.strip() or None
        raise RefNotFoundError(f"Branch not found: {branch}")

    def default_branch(self, remote: str) -> Optional[str]:
        """Ask the remote which branch its HEAD points at."""
        try:
            output = self.repo.git.ls_remote("--symref", remote, "HEAD")
        except GitCommandError as err:
            logger.debug(f"Could not query default branch of {remote}: {_reason(err)}")
            return None
        for line in output.splitlines():
            if line.startswith("ref:"):
                ref = line.split()[1]
                if ref.startswith("refs/heads/"):
                    return ref[len("refs/heads/") :]
        return None

    def fetch(self, remote: str) -> None:
        """Fetch from a remote, pruning remote-tracking refs that vanished."""
        logger.info(f"Fetching {remote} with --prune")
        try:
            self.repo.git.fetch("--prune", remote)
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to fetch from {remote}: {_reason(err)}") from err

    def list_worktrees(self) -> list[Worktree]:
        """List registered worktrees from ``git worktree list --porcelain``."""
        try:
            output = self.repo.git.worktree("list", "--porcelain")
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to list worktrees: {_reason(err)}") from err

        worktrees: list[Worktree] = []
        # Entries are separated by blank lines; the first entry is the main worktree
        for block in output.strip().split("\n\n"):
            fields: dict[str, str] = {}
            for line in block.splitlines():
                key, _, value = line.strip().partition(" ")
                fields[key] = value
            if "worktree" not in fields:
                continue
            branch = fields.get("branch")
            if branch and branch.startswith("refs/heads/"):
                branch = branch[len("refs/heads/") :]
            worktrees.append(
                Worktree(
                    path=Path(fields["worktree"]),
                    branch=branch or None,
                    is_main=not worktrees,
                    is_bare="bare" in fields,
                )
            )
        return worktrees

    def prune_worktrees(self) -> None:
        """Drop registrations of worktrees whose directories are gone."""
        try:
            self.repo.git.worktree("prune")
        except GitCommandError as err:
            raise VcsUnavailableError(f"Failed to prune worktrees: {_reason(err)}") from err

    def remove_worktree(self, path: Path, force: bool = False) -> None:
        """Remove a worktree. Git refuses when it has local changes unless forced."""
        args = ["remove", str(path)]
        if force:
            args.insert(1, "--force")
        logger.info(f"Removing worktree {path}")
        try:
            self.repo.git.worktree(*args)
        except GitCommandNotFound as err:
            raise VcsUnavailableError(f"git is not available: {err}") from err
        except GitCommandError as err:
            raise WorktreeRemovalError(_reason(err)) from err

    def delete_branch(self, name: str, force: bool = False) -> None:
        """Delete a local branch. Without force git refuses unmerged branches."""
        logger.info(f"Deleting branch {name}{' (force)' if force else ''}")
        try:
            self.repo.git.branch("-D" if force else "-d", name)
        except GitCommandNotFound as err:
            raise VcsUnavailableError(f"git is not available: {err}") from err
        except GitCommandError as err:
            raise BranchDeletionError(_reason(err)) from err
