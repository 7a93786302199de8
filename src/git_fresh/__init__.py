"""Keep a git repository fresh.

Features:
- Stash uncommitted changes and restore them afterwards
- Prune and update remote-tracking branches
- Fast-forward or hard-reset the root branch
- Report or delete branches already merged into root
- Rebase or merge the current branch onto the refreshed root
- Delete local tags that no longer exist on the remote
"""

__version__ = "1.0.0"
