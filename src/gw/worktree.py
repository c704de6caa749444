from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from gw import git
from gw.config import Config
from gw.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    WorktreeCreateFailed,
    WorktreeRemoveFailed,
)
from gw.github import GitHubClient
from gw.repository import Repository

log = logging.getLogger(__name__)


def _is_nested(path: Path, root: Path) -> bool:
    """True if ``path`` lies strictly inside ``root`` (symlinks resolved)."""
    resolved = path.resolve()
    return resolved != root and resolved.is_relative_to(root)


class Worktree:
    """A branch checked out under ``tree_dir/<repo>/<branch>``."""

    def __init__(self, repository: Repository, branch: str, path: Path | None = None) -> None:
        self.repository = repository
        self.branch = branch
        self.path = Path(path) if path is not None else repository.tree_dir / branch
        # Set by add() when the branch had to be created; names the base branch.
        self.created_from: str | None = None

    def __repr__(self) -> str:
        return f"Worktree({self.repository.name!r}, {self.branch!r})"

    @property
    def display_name(self) -> str:
        return f"{self.repository.name}/{self.branch}"

    def exists(self) -> bool:
        """True if ``path`` holds a .git file pointing back into the bare repository."""
        marker = self.path / ".git"
        if not (self.path.is_dir() and marker.is_file()):
            return False
        try:
            content = marker.read_text().strip()
        except (OSError, UnicodeDecodeError):
            return False
        if not content.startswith("gitdir:"):
            return False
        gitdir = Path(content.split(":", 1)[1].strip())
        if not gitdir.is_absolute():
            gitdir = self.path / gitdir
        return gitdir.resolve().is_relative_to(self.repository.bare_path.resolve())

    # -- Lifecycle --

    @classmethod
    def add(
        cls,
        config: Config,
        repo_name: str,
        branch: str,
        client: GitHubClient | None = None,
        on_fetch: Callable[[], None] | None = None,
    ) -> Worktree:
        """Check out ``branch`` into a new worktree, creating the branch if needed.

        Existing local branches and ``origin/<branch>`` tracking refs are
        checked out as-is; otherwise the branch is created from the
        repository's default branch and ``created_from`` is set. ``on_fetch`` is
        called once the repository and target are validated, right before
        the fetch.
        """
        repo = Repository.find(config, repo_name, client=client)
        worktree = cls(repo, branch)
        if worktree.exists():
            raise AlreadyExistsError(
                f"Worktree '{branch}' already exists for {repo_name}."
            )

        if on_fetch is not None:
            on_fetch()
        repo.fetch()

        bare = repo.bare_path
        branch_exists = git.ref_exists(bare, f"refs/heads/{branch}") or git.ref_exists(
            bare, f"refs/remotes/origin/{branch}"
        )

        worktree.path.parent.mkdir(parents=True, exist_ok=True)
        if branch_exists:
            cmd = ["worktree", "add", str(worktree.path), branch]
        else:
            base = repo.default_branch()
            worktree.created_from = base
            log.info("branch %s not found, creating from %s", branch, base)
            cmd = ["worktree", "add", "-b", branch, str(worktree.path), base]

        result = git.run_git(cmd, repo=bare)
        if result.returncode != 0:
            raise WorktreeCreateFailed(
                f"Failed to create worktree '{branch}' for {repo_name}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return worktree

    @classmethod
    def find(
        cls,
        config: Config,
        repo_name: str,
        branch: str,
        client: GitHubClient | None = None,
    ) -> Worktree:
        repo = Repository.find(config, repo_name, client=client)
        worktree = cls(repo, branch)
        if not worktree.exists():
            raise NotFoundError(f"Worktree '{branch}' not found for {repo_name}.")
        return worktree

    @classmethod
    def remove_by_name(
        cls,
        config: Config,
        repo_name: str,
        branch: str,
        force: bool = False,
        client: GitHubClient | None = None,
    ) -> Worktree:
        worktree = cls.find(config, repo_name, branch, client=client)
        worktree.remove(force=force)
        return worktree

    def remove(self, force: bool = False) -> None:
        """Remove this worktree; ``force`` discards uncommitted changes."""
        if not self.exists():
            raise NotFoundError(
                f"Worktree '{self.branch}' not found for {self.repository.name}."
            )
        cmd = ["worktree", "remove"]
        if force:
            cmd.append("--force")
        cmd.append(str(self.path))
        result = git.run_git(cmd, repo=self.repository.bare_path)
        if result.returncode != 0:
            raise WorktreeRemoveFailed(
                f"Failed to remove worktree '{self.branch}' for {self.repository.name}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

    @classmethod
    def list(cls, repository: Repository) -> list[Worktree]:
        """Worktrees registered in the bare repo that live under its tree dir.

        Detached entries have no branch and are skipped. Order follows
        ``git worktree list``.
        """
        tree_dir = repository.tree_dir
        if not tree_dir.is_dir():
            return []
        root = tree_dir.resolve()

        worktrees = []
        for record in git.list_worktrees(repository.bare_path):
            if record.bare or not record.branch:
                continue
            if not _is_nested(record.path, root):
                continue
            worktrees.append(cls(repository, record.branch, record.path))
        return worktrees
