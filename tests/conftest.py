"""Test configuration and fixtures."""

import logging
from pathlib import Path
from typing import Generator

import pytest
from git import Actor, Repo
from rich.logging import RichHandler

from git_fresh.git import GitError

AUTHOR = Actor("Test User", "test@example.com")


def configure_user(repo: Repo) -> None:
    """Set a commit identity local to ``repo``."""
    with repo.config_writer() as writer:
        writer.set_value("user", "name", AUTHOR.name)
        writer.set_value("user", "email", AUTHOR.email)


def commit_file(repo: Repo, name: str, content: str, message: str) -> None:
    """Write a file in the working tree and commit it."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    repo.index.commit(message, author=AUTHOR, committer=AUTHOR)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at an empty directory so no real ignore file is picked up."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Undo logging setup done by the CLI."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def test_env(tmp_path: Path) -> Generator[tuple[Path, Path], None, None]:
    """Create a test environment with local and remote repositories.

    The local repository has a ``master`` root and these branches, all pushed
    with upstream tracking:

    - ``feature/merged``: merged into master
    - ``feature/wip``: not merged
    - ``feature/current``: not merged, checked out

    Returns:
        Tuple of (local_repo_path, remote_repo_path)
    """
    remote_path = tmp_path / "remote"
    local_path = tmp_path / "local"
    remote_path.mkdir()
    local_path.mkdir()

    # Pin the bare remote HEAD so it does not depend on the host init.defaultBranch
    Repo.init(remote_path, bare=True, initial_branch="main")

    local_repo = Repo.init(local_path)
    configure_user(local_repo)
    commit_file(local_repo, "README.md", "# Test Repository", "Initial commit")
    # Whatever the default branch is called, the root is master
    local_repo.git.branch("-M", "master")

    local_repo.create_remote("origin", url=str(remote_path))
    local_repo.git.push("-u", "origin", "master")

    def create_branch(name: str, content: str, merge: bool = False) -> None:
        """Create a branch off master with one commit and push it."""
        local_repo.git.checkout("master")
        local_repo.git.checkout("-b", name)
        commit_file(local_repo, f"{name}.txt", content, f"Add {name}")
        local_repo.git.push("-u", "origin", name)

        if merge:
            local_repo.git.checkout("master")
            local_repo.git.merge(name, "--no-ff", "--no-edit")
            local_repo.git.push("origin", "master")

    create_branch("feature/merged", "Merged branch content", merge=True)
    create_branch("feature/wip", "Work in progress")
    create_branch("feature/current", "Current branch content")

    yield local_path, remote_path


class FakeRepo:
    """In-memory stand-in for GitRepo that records every call."""

    def __init__(self, working_dir: Path) -> None:
        self._working_dir = working_dir
        self.branches = ["master", "feature"]
        self.current = "feature"
        self.commit = "0123abcd"
        self.remotes = True
        self.dirty = False
        self.stashes: list[str] = []  # subjects, newest first
        self.merged: list[str] = []
        self.gone: set[str] = set()
        self.unmerged: set[str] = set()
        self.tags: list[str] = []
        self.remote_tag_names: list[str] = []
        self.fail: set[str] = set()
        self.calls: list[tuple] = []

    def _call(self, name: str, *args: object) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise GitError(f"{name} failed")

    @property
    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    @property
    def working_dir(self) -> Path:
        return self._working_dir

    def local_branches(self) -> list[str]:
        self._call("local_branches")
        return list(self.branches)

    def current_branch(self) -> str:
        self._call("current_branch")
        return self.current

    def head_commit(self) -> str:
        self._call("head_commit")
        return self.commit

    def has_ref(self, ref: str) -> bool:
        self._call("has_ref", ref)
        if ref.startswith("refs/heads/"):
            return ref[len("refs/heads/") :] in self.branches
        return ref == self.commit

    def has_remotes(self) -> bool:
        self._call("has_remotes")
        return self.remotes

    def has_uncommitted_changes(self) -> bool:
        self._call("has_uncommitted_changes")
        return self.dirty

    def stash_push(self, message: str) -> None:
        self._call("stash_push", message)
        self.stashes.insert(0, f"On {self.current or '(no branch)'}: {message}")
        self.dirty = False

    def stash_entries(self) -> list[tuple[str, str]]:
        self._call("stash_entries")
        return [(f"stash@{{{index}}}", subject) for index, subject in enumerate(self.stashes)]

    def stash_pop(self, ref: str) -> None:
        self._call("stash_pop", ref)
        del self.stashes[int(ref[len("stash@{") : -1])]
        self.dirty = True

    def prune_remote(self, remote: str) -> None:
        self._call("prune_remote", remote)

    def update_remotes(self) -> None:
        self._call("update_remotes")

    def checkout(self, ref: str) -> None:
        self._call("checkout", ref)
        if ref == self.commit:
            self.current = ""
            return
        if ref not in self.branches:
            self.branches.append(ref)
        self.current = ref

    def clean_workspace(self, exclude: list[str]) -> None:
        self._call("clean_workspace", exclude)

    def reset_hard(self, ref: str) -> None:
        self._call("reset_hard", ref)

    def pull_ff_only(self, remote: str, branch: str) -> None:
        self._call("pull_ff_only", remote, branch)

    def merged_refs(self, root: str) -> list[str]:
        self._call("merged_refs", root)
        return list(self.merged)

    def delete_local_branch(self, name: str) -> None:
        self._call("delete_local_branch", name)
        if name in self.unmerged:
            raise GitError(f"The branch '{name}' is not fully merged")
        self.branches.remove(name)

    def delete_remote_branches(self, remote: str, names: list[str]) -> None:
        self._call("delete_remote_branches", remote, names)

    def upstream_gone(self, branch: str) -> bool:
        self._call("upstream_gone", branch)
        return branch in self.gone

    def unset_upstream(self, branch: str) -> None:
        self._call("unset_upstream", branch)
        self.gone.discard(branch)

    def rebase(self, onto: str) -> None:
        self._call("rebase", onto)

    def merge(self, branch: str) -> None:
        self._call("merge", branch)

    def local_tags(self) -> list[str]:
        self._call("local_tags")
        return list(self.tags)

    def remote_tags(self, remote: str) -> list[str]:
        self._call("remote_tags", remote)
        return list(self.remote_tag_names)

    def delete_tags(self, names: list[str]) -> None:
        self._call("delete_tags", names)
        self.tags = [tag for tag in self.tags if tag not in names]

    def gc(self) -> None:
        self._call("gc")

    def prune_unreachable(self) -> None:
        self._call("prune_unreachable")

    def remove_gc_log(self) -> None:
        self._call("remove_gc_log")


@pytest.fixture
def fake_repo(tmp_path: Path) -> FakeRepo:
    """A fake repository on branch ``feature`` with a ``master`` root and a remote."""
    working_dir = tmp_path / "work"
    working_dir.mkdir()
    return FakeRepo(working_dir)
