"""The freshening workflow.

A run walks a fixed sequence of stages against one repository:

1. preflight: check the repository, load the ignore list, remember the branch
2. stash: stash modified tracked files under a unique label
3. remote sync: prune and update remote-tracking refs
4. root switch: check out root, optionally wipe the workspace and reset root
5. pull: fast-forward root from the remote
6. stale branches: report or delete branches merged into root
7. upstream cleanup: drop a gone upstream from the original branch
8. branch reconcile: return to the original branch, optionally rebase or merge
9. tag sync: delete local tags missing on the remote
10. stash restore: pop or report the stash from step 2
11. housekeeping: garbage collect, falling back to prune

Any GitError that a stage does not handle itself aborts the run as a
StageError naming the stage.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from git_fresh import console
from git_fresh.branches import LOCAL_PREFIX, find_stale_branches, missing_tags
from git_fresh.config import IGNORE_FILE_NAME, FreshOptions, IgnoreList, load_ignore_list
from git_fresh.git import GitError, VersionControl

logger = logging.getLogger(__name__)

STASH_LABEL_PREFIX = "git-fresh"


class FreshError(Exception):
    """Error that aborts a run."""


class PreflightError(FreshError):
    """A precondition for running does not hold."""


class StageError(FreshError):
    """A stage failed on an unexpected git error."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        self.message = message
        super().__init__(f"{stage} failed: {message}")


class Freshener:
    """Runs the freshening stages against a repository."""

    def __init__(
        self,
        repo: VersionControl,
        options: FreshOptions,
        home: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repo = repo
        self.options = options
        self.home = home
        self.clock = clock

        self.ignore = IgnoreList()
        self.original = ""
        self.detached = False
        self.remotes = False
        self.stash_label: Optional[str] = None

    def stages(self) -> list[tuple[str, Callable[[], None]]]:
        return [
            ("preflight", self.preflight),
            ("stash", self.stash_changes),
            ("remote sync", self.sync_remote),
            ("root switch", self.switch_to_root),
            ("pull", self.pull_root),
            ("stale branches", self.resolve_stale_branches),
            ("upstream cleanup", self.clean_upstream),
            ("branch reconcile", self.reconcile_branch),
            ("tag sync", self.sync_tags),
            ("stash restore", self.restore_stash),
            ("housekeeping", self.housekeeping),
        ]

    def run(self) -> None:
        """Run every stage in order.

        Raises:
            FreshError: If a precondition fails or a stage hits a git error
        """
        for name, stage in self.stages():
            logger.debug("Stage: %s", name)
            try:
                stage()
            except GitError as err:
                message = str(err)
                if self.stash_label is not None:
                    message += f"\nYour changes are stashed as '{self.stash_label}' (see git stash list)"
                raise StageError(name, message) from err

    def preflight(self) -> None:
        """Check the repository can be freshened and remember where we are."""
        if not self.repo.local_branches():
            try:
                self.repo.checkout(self.options.root)
            except GitError as err:
                raise PreflightError(
                    f"Repository has no branches and root branch '{self.options.root}' cannot be checked out"
                ) from err

        self.ignore = load_ignore_list(self.repo.working_dir, self.home)
        logger.debug("Ignoring branches: %s", list(self.ignore))

        self.original = self.repo.current_branch()
        if not self.original:
            self.detached = True
            self.original = self.repo.head_commit()
        elif self.original in self.ignore:
            raise PreflightError(f"Current branch '{self.original}' is listed in {IGNORE_FILE_NAME}, skipping")

        self.remotes = self.repo.has_remotes()

    def stash_changes(self) -> None:
        if not self.repo.has_uncommitted_changes():
            return
        self.stash_label = f"{STASH_LABEL_PREFIX} {self.clock().isoformat()}"
        self.repo.stash_push(self.stash_label)
        console.info(f"Stashed uncommitted changes as '{self.stash_label}'")

    def sync_remote(self) -> None:
        if not self.remotes:
            logger.debug("No remotes configured, skipping remote sync")
            return
        remote = self.options.remote
        self.repo.prune_remote(remote)
        self.repo.update_remotes()
        # Refs can disappear during the update
        self.repo.prune_remote(remote)

    def switch_to_root(self) -> None:
        root = self.options.root
        self.repo.checkout(root)

        if self.options.wipe_workspace:
            self.repo.clean_workspace(exclude=[IGNORE_FILE_NAME])
            console.info("Removed untracked and ignored files")

        if self.options.reset_root:
            if not self.remotes:
                console.warn(f"No remotes configured, not resetting {root}")
                return
            target = f"{self.options.remote}/{root}"
            self.repo.reset_hard(target)
            console.info(f"Reset {root} to {target}")

    def pull_root(self) -> None:
        if not self.remotes:
            return
        remote, root = self.options.remote, self.options.root
        try:
            self.repo.pull_ff_only(remote, root)
        except GitError as err:
            logger.debug("Fast-forward failed: %s", err)
            console.warn(
                f"Could not fast-forward {root} from {remote}. "
                f"Rerun with -R to reset {root} to {remote}/{root} (discards local {root} commits)"
            )

    def resolve_stale_branches(self) -> None:
        remote, root = self.options.remote, self.options.root
        stale = find_stale_branches(self.repo.merged_refs(root), root, remote, self.ignore)
        if not stale:
            return

        if not self.options.force:
            if stale.local:
                console.info(f"Local branches merged into {root}: {', '.join(stale.local)}")
                console.info("Rerun with -f to delete them")
            if stale.remote:
                console.info(f"Branches on {remote} merged into {root}: {', '.join(stale.remote)}")
                console.info("Rerun with -f to delete them (add -l to only delete local branches)")
            return

        for name in stale.local:
            try:
                self.repo.delete_local_branch(name)
            except GitError as err:
                logger.debug("Refused to delete %s: %s", name, err)
                console.warn(f"Skipped {name}: not fully merged")
                continue
            console.info(f"Deleted local branch {name}")

        if stale.remote and not self.options.local_only:
            self.repo.delete_remote_branches(remote, list(stale.remote))
            console.info(f"Deleted branches on {remote}: {', '.join(stale.remote)}")

    def clean_upstream(self) -> None:
        if self.detached or not self.repo.has_ref(f"{LOCAL_PREFIX}{self.original}"):
            return
        if self.repo.upstream_gone(self.original):
            self.repo.unset_upstream(self.original)
            console.info(f"Removed gone upstream of {self.original}")

    def reconcile_branch(self) -> None:
        root = self.options.root
        ref = self.original if self.detached else f"{LOCAL_PREFIX}{self.original}"
        if not self.repo.has_ref(ref):
            console.info(f"Branch {self.original} no longer exists, staying on {root}")
            current = root
        else:
            if self.original != root:
                self.repo.checkout(self.original)
            current = self.original

        if self.options.rebase and self.options.merge:
            console.warn("Both -r and -m given, neither rebasing nor merging")
            return
        if not self.remotes or current == root:
            return

        if self.options.rebase:
            self.repo.rebase(root)
            console.info(f"Rebased {current} onto {root}")
        elif self.options.merge:
            self.repo.merge(root)
            console.info(f"Merged {root} into {current}")

    def sync_tags(self) -> None:
        if not self.options.remove_missing_tags:
            return
        remote = self.options.remote
        if not self.remotes:
            console.warn("No remotes configured, not removing tags")
            return

        missing = missing_tags(self.repo.local_tags(), self.repo.remote_tags(remote))
        if missing:
            self.repo.delete_tags(missing)
            console.info(f"Deleted tags missing on {remote}: {', '.join(missing)}")

    def find_stash(self) -> Optional[str]:
        """Find the ref of this run's stash entry."""
        if self.stash_label is None:
            return None
        suffix = f": {self.stash_label}"
        for ref, subject in self.repo.stash_entries():
            if subject.endswith(suffix):
                return ref
        return None

    def restore_stash(self) -> None:
        if self.stash_label is None:
            return
        ref = self.find_stash()
        if ref is None:
            console.warn(f"Stash '{self.stash_label}' not found")
            return

        if self.options.apply_stash:
            self.repo.stash_pop(ref)
            console.info(f"Restored stashed changes from {ref}")
        else:
            console.info(f"Your changes are stashed as {ref}, restore them with: git stash pop {ref}")

    def housekeeping(self) -> None:
        try:
            self.repo.gc()
        except GitError as err:
            logger.debug("Falling back to prune: %s", err)
            self.repo.prune_unreachable()
            self.repo.remove_gc_log()
