"""Configuration handling for git-fresh."""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

IGNORE_FILE_NAME = ".gitfreshignore"


@dataclass(frozen=True)
class FreshOptions:
    """Options for a single run, fixed once parsed."""

    remote: str = "origin"
    root: str = "master"

    force: bool = False  # delete stale branches instead of reporting them
    merge: bool = False
    rebase: bool = False
    remove_missing_tags: bool = False
    apply_stash: bool = False
    local_only: bool = False  # with force, keep remote branches
    reset_root: bool = False
    wipe_workspace: bool = False

    def __post_init__(self) -> None:
        """Validate names after initialization."""
        if not self.remote or not self.remote.strip():
            raise ValueError("remote cannot be empty")
        if not self.root or not self.root.strip():
            raise ValueError("root branch cannot be empty")


class IgnoreList:
    """Branch names exempt from staleness checks.

    Membership is exact: ``feature`` does not match ``feature/x``.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: dict[str, None] = dict.fromkeys(names)

    def __contains__(self, name: object) -> bool:
        return name in self._names

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"IgnoreList({list(self._names)!r})"

    @classmethod
    def from_text(cls, text: str) -> "IgnoreList":
        """Parse one branch name per line, skipping blank lines."""
        return cls(line.strip() for line in text.splitlines() if line.strip())


def find_ignore_file(repo_root: Path, home: Optional[Path] = None) -> Optional[Path]:
    """Locate the ignore file.

    The copy at the repository root takes precedence. The home directory copy
    is only used when the repository has none.
    """
    candidate = repo_root / IGNORE_FILE_NAME
    if candidate.is_file():
        return candidate

    candidate = (home if home is not None else Path.home()) / IGNORE_FILE_NAME
    if candidate.is_file():
        return candidate
    return None


def load_ignore_list(repo_root: Path, home: Optional[Path] = None) -> IgnoreList:
    """Load the effective ignore list, empty when no ignore file exists."""
    path = find_ignore_file(repo_root, home)
    if path is None:
        return IgnoreList()
    return IgnoreList.from_text(path.read_text(encoding="utf-8"))
