"""Error hierarchy shared by the repository, worktree and reconcile layers."""

from __future__ import annotations


class GwError(Exception):
    """Base error for everything gw raises on purpose."""


class NotFoundError(GwError):
    """Raised when a repository or worktree is required but absent."""


class AlreadyExistsError(GwError):
    """Raised when creating something whose target already exists."""


class NoRemoteIdentityError(GwError):
    """Raised when ``owner/name`` cannot be derived from the origin URL."""

    def __init__(self, repo_name: str) -> None:
        self.repo_name = repo_name
        super().__init__(
            f"Could not determine GitHub repository for '{repo_name}' "
            "(origin URL is not a recognized GitHub URL)."
        )


class RemoteQueryFailed(GwError):
    """Raised when the code host cannot be queried (transport, auth, bad data)."""


class GitCommandError(GwError):
    """Raised when a git invocation exits non-zero."""

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        detail = (stderr or "").strip()
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr or ""


class CloneFailed(GitCommandError):
    """git clone --bare failed."""


class FetchFailed(GitCommandError):
    """git fetch failed."""


class WorktreeCreateFailed(GitCommandError):
    """git worktree add failed."""


class WorktreeRemoveFailed(GitCommandError):
    """git worktree remove failed."""
