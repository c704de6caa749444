from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import TYPE_CHECKING

from gw import git
from gw.config import Config
from gw.exceptions import AlreadyExistsError, CloneFailed, FetchFailed, NotFoundError
from gw.github import GitHubClient, parse_full_name

if TYPE_CHECKING:
    from gw.worktree import Worktree

log = logging.getLogger(__name__)

_HEAD_REF = re.compile(r"ref: refs/heads/(.+)")

FALLBACK_BRANCH = "main"


class Repository:
    """A bare clone living at ``core_dir/<name>``."""

    def __init__(
        self,
        name: str,
        config: Config,
        client: GitHubClient | None = None,
        full_name: str | None = None,
    ) -> None:
        self.name = name
        self.config = config
        self.client = client or GitHubClient()
        self.bare_path = config.core_dir / name
        self._full_name = full_name
        self._full_name_resolved = full_name is not None
        self._default_branch: str | None = None

    def __repr__(self) -> str:
        return f"Repository({self.name!r})"

    # -- Lookup --

    @classmethod
    def clone(
        cls,
        config: Config,
        full_name: str,
        custom_name: str | None = None,
        client: GitHubClient | None = None,
    ) -> Repository:
        """Bare-clone ``owner/repo`` into the core directory."""
        name = custom_name or full_name.rstrip("/").split("/")[-1]
        repo = cls(name, config, client=client, full_name=full_name)
        if repo.exists():
            raise AlreadyExistsError(f"Repository '{name}' already exists.")

        config.core_dir.mkdir(parents=True, exist_ok=True)
        url = repo.client.clone_url(full_name)
        result = git.run_git(["clone", "--bare", url, str(repo.bare_path)])
        if result.returncode != 0:
            # stderr may echo the authenticated URL, so it is not included
            raise CloneFailed(
                f"Failed to clone {full_name} into '{name}' (git exited {result.returncode})",
                returncode=result.returncode,
            )

        # Bare clones have no fetch refspec; add one so fetch maintains origin/*.
        result = git.run_git(
            ["config", "remote.origin.fetch", "+refs/heads/*:refs/remotes/origin/*"],
            repo=repo.bare_path,
        )
        if result.returncode != 0:
            shutil.rmtree(repo.bare_path, ignore_errors=True)
            raise CloneFailed(
                f"Failed to configure fetch refspec for '{name}'",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        repo.tree_dir.mkdir(parents=True, exist_ok=True)
        log.info("cloned %s into %s", full_name, repo.bare_path)
        return repo

    @classmethod
    def find(
        cls, config: Config, name: str, client: GitHubClient | None = None
    ) -> Repository:
        repo = cls(name, config, client=client)
        if not repo.exists():
            raise NotFoundError(f"Repository '{name}' not found.")
        return repo

    @classmethod
    def list(cls, config: Config, client: GitHubClient | None = None) -> list[Repository]:
        """Existing repositories in filesystem order (unsorted)."""
        if not config.core_dir.is_dir():
            return []
        repos = [cls(p.name, config, client=client) for p in config.core_dir.iterdir()]
        return [r for r in repos if r.exists()]

    def exists(self) -> bool:
        return self.bare_path.is_dir() and (self.bare_path / "HEAD").is_file()

    @property
    def tree_dir(self) -> Path:
        return self.config.tree_dir / self.name

    def worktrees(self) -> list[Worktree]:
        from gw.worktree import Worktree

        return Worktree.list(self)

    # -- Remote identity --

    @property
    def full_name(self) -> str | None:
        """``owner/repo`` parsed from the origin URL; resolved at most once."""
        if not self._full_name_resolved:
            self._full_name = parse_full_name(git.remote_url(self.bare_path))
            self._full_name_resolved = True
        return self._full_name

    def default_branch(self) -> str:
        """Default branch from GitHub when identifiable, else from the bare HEAD."""
        if self._default_branch is None:
            if self.full_name:
                self._default_branch = self.client.default_branch(self.full_name)
            else:
                self._default_branch = self._head_branch()
        return self._default_branch

    def _head_branch(self) -> str:
        try:
            content = (self.bare_path / "HEAD").read_text().strip()
        except OSError:
            return FALLBACK_BRANCH
        match = _HEAD_REF.match(content)
        return match.group(1) if match else FALLBACK_BRANCH

    def fetch(self) -> None:
        result = git.run_git(["fetch", "--all", "--prune"], repo=self.bare_path)
        if result.returncode != 0:
            raise FetchFailed(
                f"Failed to fetch '{self.name}' from remote (git exited {result.returncode})",
                returncode=result.returncode,
            )
