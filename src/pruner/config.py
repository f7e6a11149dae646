"""Configuration handling for pruner."""

from dataclasses import dataclass
from typing import Optional

DEFAULT_REMOTE = "origin"
DEFAULT_SQUASH_WINDOW = 20
DEFAULT_SQUASH_KEYWORDS = ("merge", "squash")


@dataclass
class CleanConfig:
    """Settings for a single clean or status run."""

    target_branch: Optional[str] = None
    remote: str = DEFAULT_REMOTE

    # Execution modes
    force: bool = False  # Skip confirmation prompts
    force_delete: bool = False  # git branch -D instead of -d
    fetch: bool = False

    # Directory names symlinked into every worktree; torn down before removal
    shared_dirs: tuple[str, ...] = ()

    # Squash merge heuristic
    squash_window: int = DEFAULT_SQUASH_WINDOW
    squash_keywords: tuple[str, ...] = DEFAULT_SQUASH_KEYWORDS

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_target_branch()
        self._validate_remote()
        self._validate_shared_dirs()
        self._validate_squash()

    def _validate_target_branch(self):
        if self.target_branch is not None:
            self.target_branch = self.target_branch.strip()
            if not self.target_branch:
                raise ValueError("target_branch cannot be empty")

    def _validate_remote(self):
        if not self.remote or not self.remote.strip():
            raise ValueError("remote cannot be empty")
        self.remote = self.remote.strip()

    def _validate_shared_dirs(self):
        """Shared dirs are plain names inside a worktree, never paths."""
        names = tuple(name.strip() for name in self.shared_dirs if name.strip())
        for name in names:
            if "/" in name or name in (".", ".."):
                raise ValueError(f"shared directory must be a plain name, got '{name}'")
        self.shared_dirs = names

    def _validate_squash(self):
        if self.squash_window <= 0:
            raise ValueError(f"squash_window must be positive, got {self.squash_window}")
        if not self.squash_keywords:
            raise ValueError("squash_keywords cannot be empty")
        self.squash_keywords = tuple(self.squash_keywords)
