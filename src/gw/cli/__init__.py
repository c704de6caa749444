from __future__ import annotations

import logging

import click

from gw.cli.admin import config, init
from gw.cli.info import list_cmd, prune, status
from gw.cli.items import add, go, remove, repo


@click.group()
@click.option("--verbose", is_flag=True, help="Log git and gh invocations to stderr.")
def cli(verbose: bool) -> None:
    """gw: bare-clone workspace manager with per-branch worktrees."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register admin commands
cli.add_command(init)
cli.add_command(config)

# Register repository and worktree commands
cli.add_command(repo)
cli.add_command(add)
cli.add_command(remove)
cli.add_command(remove, name="rm")
cli.add_command(go)

# Register info commands
cli.add_command(list_cmd)
cli.add_command(list_cmd, name="ls")
cli.add_command(status)
cli.add_command(status, name="st")
cli.add_command(prune)

__all__ = ["cli"]
