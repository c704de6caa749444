from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import click

from gw.config import Config, get_config
from gw.exceptions import GwError
from gw.github import GitHubClient


def _load_config() -> Config:
    return get_config()


def _make_client() -> GitHubClient:
    return GitHubClient()


def _parse_target(target: str) -> tuple[str, str]:
    """Split ``<repo>/<branch>``; the branch may itself contain slashes."""
    repo_name, sep, branch = target.partition("/")
    if not sep or not repo_name or not branch:
        raise click.ClickException(
            f"Invalid target '{target}'. Use: <repo-name>/<branch>"
        )
    return repo_name, branch


def _truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


@contextmanager
def _errors() -> Iterator[None]:
    """Turn gw errors into a ClickException (``Error: ...``, exit 1)."""
    try:
        yield
    except GwError as e:
        raise click.ClickException(str(e)) from e
