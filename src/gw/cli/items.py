from __future__ import annotations

import click

from gw.cli.utils import _errors, _load_config, _make_client, _parse_target
from gw.repository import Repository
from gw.worktree import Worktree


@click.group()
def repo() -> None:
    """Manage bare repositories."""


@repo.command("clone")
@click.argument("full_name")
@click.option("--name", "custom_name", default=None, help="Local name for the repository.")
def repo_clone(full_name: str, custom_name: str | None) -> None:
    """Bare-clone FULL_NAME (owner/repo) from GitHub."""
    if "/" not in full_name.strip("/"):
        raise click.ClickException("Repository must be given as <owner>/<repo>.")
    config = _load_config()
    with _errors():
        repository = Repository.clone(
            config, full_name, custom_name=custom_name, client=_make_client()
        )
    click.echo(f"Successfully cloned {full_name} as '{repository.name}'")
    click.echo(f"  bare: {repository.bare_path}")
    click.echo(f"  tree: {repository.tree_dir}")


@click.command()
@click.argument("target")
def add(target: str) -> None:
    """Add a worktree for TARGET (<repo>/<branch>)."""
    repo_name, branch = _parse_target(target)
    config = _load_config()
    with _errors():
        worktree = Worktree.add(
            config,
            repo_name,
            branch,
            client=_make_client(),
            on_fetch=lambda: click.echo("Fetching latest changes from remote..."),
        )
    if worktree.created_from:
        click.echo(f"Branch '{branch}' not found. Created from '{worktree.created_from}'.")
    click.echo(f"Successfully created worktree '{branch}' for {repo_name}")
    click.echo(f"  path: {worktree.path}")


@click.command()
@click.argument("target")
@click.option("--force", is_flag=True, help="Discard uncommitted changes.")
def remove(target: str, force: bool) -> None:
    """Remove the worktree for TARGET (<repo>/<branch>)."""
    repo_name, branch = _parse_target(target)
    config = _load_config()
    with _errors():
        Worktree.remove_by_name(config, repo_name, branch, force=force, client=_make_client())
    click.echo(f"Successfully removed worktree '{branch}' for {repo_name}")


@click.command()
@click.argument("target")
def go(target: str) -> None:
    """Print the path of TARGET's worktree, e.g. cd $(gw go tools/feature-1)."""
    repo_name, branch = _parse_target(target)
    config = _load_config()
    with _errors():
        worktree = Worktree.find(config, repo_name, branch, client=_make_client())
    click.echo(str(worktree.path))
