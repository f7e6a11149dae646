"""Git worktree and branch pruning tool.

Features:
- Classify local branches by how confidently they have been integrated
  (merged, squash-merged, remote deleted, never pushed)
- Remove the worktree of each classified branch before deleting the branch
- Per-tier confirmation, with a force option to skip prompts
- Shared-directory symlink teardown before worktree removal
"""

__version__ = "0.1.0"
