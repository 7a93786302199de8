"""Branch and tag name classification."""

from dataclasses import dataclass
from typing import Container, Iterable, Optional

LOCAL_PREFIX = "refs/heads/"
REMOTE_PREFIX = "refs/remotes/"
TAG_PREFIX = "refs/tags/"


def strip_prefix(ref: str, prefix: str) -> Optional[str]:
    """Return ``ref`` without ``prefix``, or None if it does not start with it."""
    if not ref.startswith(prefix):
        return None
    return ref[len(prefix) :]


@dataclass(frozen=True)
class StaleBranches:
    """Branches merged into root that may be deleted."""

    local: tuple[str, ...] = ()
    remote: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.local or self.remote)


def find_stale_branches(
    merged_refs: Iterable[str],
    root: str,
    remote: str,
    ignore: Container[str],
) -> StaleBranches:
    """Split merged refs into stale local and remote branch names.

    Args:
        merged_refs: Full ref names (``refs/heads/...``, ``refs/remotes/...``)
            of branches merged into root
        root: Root branch name, never stale
        remote: Only remote-tracking branches of this remote are considered
        ignore: Branch names exempt from staleness, matched exactly

    Returns:
        StaleBranches with names in the order git listed them
    """
    remote_prefix = f"{REMOTE_PREFIX}{remote}/"
    local: list[str] = []
    remote_names: list[str] = []

    for ref in merged_refs:
        name = strip_prefix(ref, LOCAL_PREFIX)
        if name is not None:
            target = local
        else:
            # The remote prefix is removed once, anchored at the start
            name = strip_prefix(ref, remote_prefix)
            if name is None or name == "HEAD":
                continue
            target = remote_names

        if name == root or name in ignore or name in target:
            continue
        target.append(name)

    return StaleBranches(local=tuple(local), remote=tuple(remote_names))


def missing_tags(local_tags: Iterable[str], remote_tags: Iterable[str]) -> list[str]:
    """Local tags that do not exist on the remote, in local order."""
    remote_set = set(remote_tags)
    return [tag for tag in local_tags if tag not in remote_set]
