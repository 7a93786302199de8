"""Git repository operations."""

from pathlib import Path
from typing import Protocol

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from git_fresh.branches import TAG_PREFIX, strip_prefix


class GitError(Exception):
    """Git operation error."""


class VersionControl(Protocol):
    """Operations a freshening run needs from the repository."""

    @property
    def working_dir(self) -> Path: ...

    def local_branches(self) -> list[str]: ...

    def current_branch(self) -> str: ...

    def head_commit(self) -> str: ...

    def has_ref(self, ref: str) -> bool: ...

    def has_remotes(self) -> bool: ...

    def has_uncommitted_changes(self) -> bool: ...

    def stash_push(self, message: str) -> None: ...

    def stash_entries(self) -> list[tuple[str, str]]: ...

    def stash_pop(self, ref: str) -> None: ...

    def prune_remote(self, remote: str) -> None: ...

    def update_remotes(self) -> None: ...

    def checkout(self, ref: str) -> None: ...

    def clean_workspace(self, exclude: list[str]) -> None: ...

    def reset_hard(self, ref: str) -> None: ...

    def pull_ff_only(self, remote: str, branch: str) -> None: ...

    def merged_refs(self, root: str) -> list[str]: ...

    def delete_local_branch(self, name: str) -> None: ...

    def delete_remote_branches(self, remote: str, names: list[str]) -> None: ...

    def upstream_gone(self, branch: str) -> bool: ...

    def unset_upstream(self, branch: str) -> None: ...

    def rebase(self, onto: str) -> None: ...

    def merge(self, branch: str) -> None: ...

    def local_tags(self) -> list[str]: ...

    def remote_tags(self, remote: str) -> list[str]: ...

    def delete_tags(self, names: list[str]) -> None: ...

    def gc(self) -> None: ...

    def prune_unreachable(self) -> None: ...

    def remove_gc_log(self) -> None: ...


class GitRepo:
    """Git repository operations backed by GitPython."""

    def __init__(self, path: Path) -> None:
        """Open the repository containing ``path``."""
        try:
            self.repo: Repo = Repo(path, search_parent_directories=True)
            if self.repo.bare:
                raise GitError("Cannot operate on bare repository")
        except (GitCommandError, ValueError, InvalidGitRepositoryError, NoSuchPathError) as err:
            raise GitError(f"Not a git repository: {path}") from err

    def _git(self, failure: str, command: str, *args: str) -> str:
        """Run a git subcommand, raising GitError with ``failure`` as context."""
        try:
            return str(getattr(self.repo.git, command)(*args))
        except GitCommandError as err:
            raise GitError(f"{failure}: {err}") from err

    @property
    def working_dir(self) -> Path:
        return Path(self.repo.working_tree_dir)

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    def local_branches(self) -> list[str]:
        """List local branch names."""
        output = self._git("Failed to list branches", "branch", "--format=%(refname:short)")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def current_branch(self) -> str:
        """Get current branch name, or an empty string on a detached HEAD."""
        try:
            return self.repo.active_branch.name
        except TypeError:
            return ""

    def head_commit(self) -> str:
        return self._git("Failed to resolve HEAD", "rev_parse", "HEAD").strip()

    def has_ref(self, ref: str) -> bool:
        """Check whether ``ref`` resolves to a commit."""
        try:
            self.repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}")
        except GitCommandError:
            return False
        return True

    def has_remotes(self) -> bool:
        return bool(self.repo.remotes)

    def has_uncommitted_changes(self) -> bool:
        """Check if tracked files differ from HEAD in the index or the worktree."""
        try:
            return bool(self.repo.index.diff(None) or self.repo.index.diff("HEAD"))
        except GitCommandError as err:
            raise GitError(f"Failed to check for uncommitted changes: {err}") from err

    def stash_push(self, message: str) -> None:
        self._git("Failed to stash changes", "stash", "push", "-m", message)

    def stash_entries(self) -> list[tuple[str, str]]:
        """List stash entries as ``(ref, subject)`` pairs, newest first."""
        output = self._git("Failed to list stashes", "stash", "list", "--format=%gd%x09%gs")
        entries = []
        for line in output.splitlines():
            ref, _, subject = line.partition("\t")
            entries.append((ref, subject))
        return entries

    def stash_pop(self, ref: str) -> None:
        self._git(f"Failed to apply stash {ref}", "stash", "pop", ref)

    def prune_remote(self, remote: str) -> None:
        self._git(f"Failed to prune remote {remote}", "remote", "prune", remote)

    def update_remotes(self) -> None:
        self._git("Failed to update remotes", "remote", "update")

    def checkout(self, ref: str) -> None:
        self._git(f"Failed to check out {ref}", "checkout", ref)

    def clean_workspace(self, exclude: list[str]) -> None:
        """Remove untracked and ignored files, keeping paths in ``exclude``."""
        args = ["-f", "-d", "-x"]
        for pattern in exclude:
            args.extend(["-e", pattern])
        self._git("Failed to clean workspace", "clean", *args)

    def reset_hard(self, ref: str) -> None:
        self._git(f"Failed to reset to {ref}", "reset", "--hard", ref)

    def pull_ff_only(self, remote: str, branch: str) -> None:
        self._git(f"Failed to fast-forward {branch} from {remote}", "pull", "--ff-only", remote, branch)

    def merged_refs(self, root: str) -> list[str]:
        """List full ref names of local and remote branches merged into ``root``."""
        output = self._git(
            f"Failed to list branches merged into {root}",
            "branch",
            "--all",
            "--merged",
            root,
            "--format=%(refname)",
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def delete_local_branch(self, name: str) -> None:
        """Delete a local branch, refusing if it is not fully merged."""
        self._git(f"Failed to delete branch {name}", "branch", "-d", name)

    def delete_remote_branches(self, remote: str, names: list[str]) -> None:
        self._git(f"Failed to delete branches on {remote}", "push", remote, "--delete", *names)

    def upstream_gone(self, branch: str) -> bool:
        """Check if the upstream of ``branch`` has been deleted."""
        track = self._git(
            f"Failed to read upstream of {branch}",
            "for_each_ref",
            "--format=%(upstream:track)",
            f"refs/heads/{branch}",
        )
        return track.strip() == "[gone]"

    def unset_upstream(self, branch: str) -> None:
        self._git(f"Failed to unset upstream of {branch}", "branch", "--unset-upstream", branch)

    def rebase(self, onto: str) -> None:
        self._git(f"Failed to rebase onto {onto}", "rebase", onto)

    def merge(self, branch: str) -> None:
        self._git(f"Failed to merge {branch}", "merge", "--no-edit", branch)

    def local_tags(self) -> list[str]:
        output = self._git("Failed to list tags", "tag", "--list")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def remote_tags(self, remote: str) -> list[str]:
        """List tag names on ``remote``, without peeled duplicates."""
        output = self._git(f"Failed to list tags on {remote}", "ls_remote", "--tags", remote)
        tags: list[str] = []
        for line in output.splitlines():
            _, _, ref = line.partition("\t")
            name = strip_prefix(ref.strip(), TAG_PREFIX)
            if name is None:
                continue
            if name.endswith("^{}"):
                name = name[: -len("^{}")]
            if name not in tags:
                tags.append(name)
        return tags

    def delete_tags(self, names: list[str]) -> None:
        self._git("Failed to delete tags", "tag", "-d", *names)

    def gc(self) -> None:
        self._git("Garbage collection failed", "gc", "--auto")

    def prune_unreachable(self) -> None:
        self._git("Failed to prune unreachable objects", "prune")

    def remove_gc_log(self) -> None:
        (self.git_dir / "gc.log").unlink(missing_ok=True)
