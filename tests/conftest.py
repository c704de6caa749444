from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from gw.config import Config
from gw.exceptions import RemoteQueryFailed
from gw.models import PullRequest
from gw.repository import Repository


class FakeGitHub:
    """Stands in for GitHubClient; records PR lookups."""

    def __init__(self, clone_source: Path | None = None) -> None:
        self.clone_source = clone_source
        self.prs: dict[str, PullRequest] = {}
        self.default = "main"
        self.pr_calls: list[tuple[str, set[str]]] = []
        self.fail_with: RemoteQueryFailed | None = None

    def clone_url(self, full_name: str) -> str:
        return str(self.clone_source)

    def default_branch(self, full_name: str) -> str:
        if self.fail_with:
            raise self.fail_with
        return self.default

    def find_prs_by_branches(self, full_name, branches):
        self.pr_calls.append((full_name, set(branches)))
        if self.fail_with:
            raise self.fail_with
        return {b: pr for b, pr in self.prs.items() if b in branches}

    def set_pr(self, branch: str, number: int, state: str, title: str = "") -> None:
        self.prs[branch] = PullRequest(
            number=number, state=state, title=title or f"PR {number}", branch=branch
        )


def git(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(["git", *args], check=True, capture_output=True, text=True)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch):
    """Keep git identity and the gw config file inside the test sandbox."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "gw tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "gw@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "gw tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "gw@example.com")
    monkeypatch.setenv("GW_CONFIG", str(tmp_path / "config" / "config.toml"))


@pytest.fixture
def workspace(tmp_path) -> Config:
    return Config.for_workspace(tmp_path / "ws")


@pytest.fixture
def upstream(tmp_path) -> Path:
    """A non-bare repo on `main` with a second branch `existing`."""
    repo = tmp_path / "upstream"
    repo.mkdir()
    git("init", "-b", "main", str(repo))
    git("-C", str(repo), "commit", "--allow-empty", "-m", "init")
    git("-C", str(repo), "branch", "existing")
    return repo


@pytest.fixture
def fake_github(upstream) -> FakeGitHub:
    return FakeGitHub(clone_source=upstream)


@pytest.fixture
def tools(workspace, fake_github) -> Repository:
    """`acme/tools` bare-cloned from the local upstream as `tools`."""
    return Repository.clone(workspace, "acme/tools", client=fake_github)


@pytest.fixture
def point_at_github():
    """Rewrite a repository's origin to a GitHub URL (no fetch may follow)."""

    def _point(repository: Repository, full_name: str = "acme/tools") -> None:
        git(
            "-C",
            str(repository.bare_path),
            "remote",
            "set-url",
            "origin",
            f"https://github.com/{full_name}.git",
        )

    return _point
