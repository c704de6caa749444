from __future__ import annotations

import click

from gw.cli.utils import _load_config


@click.command()
def init() -> None:
    """Initialize the gw workspace directories."""
    config = _load_config()
    config.core_dir.mkdir(parents=True, exist_ok=True)
    config.tree_dir.mkdir(parents=True, exist_ok=True)

    click.echo(f"Initialized gw workspace at {config.workspace}")
    click.echo(f"  core: {config.core_dir}")
    click.echo(f"  tree: {config.tree_dir}")


@click.group()
def config() -> None:
    """Get or set configuration values."""


@config.command("get")
@click.argument("key")
def config_get(key: str) -> None:
    """Print the value of KEY (nothing if unset)."""
    value = _load_config().get(key)
    if value is not None:
        click.echo(value)


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Persist KEY = VALUE in the config file."""
    _load_config().set(key, value)
    click.echo(f"Successfully set {key} = {value}")
