"""Command line interface for git-fresh."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich import print

from git_fresh import __version__, console
from git_fresh.config import FreshOptions
from git_fresh.fresh import Freshener, FreshError
from git_fresh.git import GitError, GitRepo

app = typer.Typer(
    help="Keep a git repository fresh: stash, prune, fast-forward and clean up merged branches.",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    if value:
        print(f"git-fresh {__version__}")
        raise typer.Exit()


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        console.error(str(err))
        raise typer.Exit(code=1) from err


@app.command()
def fresh(
    remote: Annotated[str, typer.Argument(help="Remote to sync with")] = "origin",
    root: Annotated[str, typer.Argument(help="Root branch to sync and compare against")] = "master",
    force: Annotated[bool, typer.Option("-f", "--force", help="Delete stale local and remote branches")] = False,
    merge: Annotated[bool, typer.Option("-m", "--merge", help="Merge root into the current branch")] = False,
    rebase: Annotated[bool, typer.Option("-r", "--rebase", help="Rebase the current branch onto root")] = False,
    tags: Annotated[bool, typer.Option("-t", "--tags", help="Delete local tags missing on the remote")] = False,
    reset: Annotated[bool, typer.Option("-R", "--reset", help="Hard-reset local root to the remote root")] = False,
    wipe: Annotated[bool, typer.Option("-W", "--wipe", help="Remove untracked and ignored files")] = False,
    apply_stash: Annotated[bool, typer.Option("-s", "--apply-stash", help="Re-apply stashed changes at the end")] = False,
    local_only: Annotated[bool, typer.Option("-l", "--local-only", help="With -f, only delete local branches")] = False,
    path: Annotated[Path, typer.Option("--path", help="Path to git repository")] = Path("."),
    debug: Annotated[bool, typer.Option("--debug", help="Log every git command")] = False,
    version: Annotated[
        Optional[bool],
        typer.Option("-v", "--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Stash, prune, fast-forward and clean up merged branches in one go."""
    try:
        options = FreshOptions(
            remote=remote,
            root=root,
            force=force,
            merge=merge,
            rebase=rebase,
            remove_missing_tags=tags,
            apply_stash=apply_stash,
            local_only=local_only,
            reset_root=reset,
            wipe_workspace=wipe,
        )
    except ValueError as err:
        raise typer.BadParameter(str(err)) from err

    console.setup_logging(debug)
    repo = get_repo(path)

    try:
        Freshener(repo, options).run()
    except FreshError as err:
        console.error(str(err))
        raise typer.Exit(code=1) from err


if __name__ == "__main__":
    app()
