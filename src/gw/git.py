"""Thin wrappers around the git CLI."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorktreeRecord:
    """One block of ``git worktree list --porcelain`` output."""

    path: Path
    head: str | None = None
    branch: str | None = None  # short name, None when detached or bare
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False


def run_git(
    args: Iterable[str],
    *,
    repo: str | Path | None = None,
    cwd: str | Path | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run git and return the completed process; never raises on exit status."""
    cmd = ["git"]
    if repo is not None:
        cmd += ["-C", str(repo)]
    cmd += list(args)
    log.debug("running %s", " ".join(cmd))
    result = subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        log.debug("git exited %d: %s", result.returncode, result.stderr.strip())
    return result


def ref_exists(repo: str | Path, ref: str) -> bool:
    """Return True if the fully-qualified ``ref`` exists in ``repo``."""
    result = run_git(["show-ref", "--verify", "--quiet", ref], repo=repo)
    return result.returncode == 0


def remote_url(repo: str | Path, remote: str = "origin") -> str | None:
    result = run_git(["remote", "get-url", remote], repo=repo)
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def parse_worktree_porcelain(text: str) -> list[WorktreeRecord]:
    """Parse ``git worktree list --porcelain`` into records.

    The format is a sequence of blank-line separated blocks of
    ``key [value]`` lines, each block starting with ``worktree <path>``.
    Unknown keys are ignored.
    """
    records: list[WorktreeRecord] = []
    current: dict | None = None

    def flush() -> None:
        if current is not None:
            records.append(WorktreeRecord(**current))

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        key, _, value = line.partition(" ")
        value = value.strip()
        if key == "worktree":
            flush()
            current = {"path": Path(value)}
        elif current is None:
            continue
        elif key == "HEAD":
            current["head"] = value
        elif key == "branch":
            if value.startswith("refs/heads/"):
                value = value[len("refs/heads/") :]
            current["branch"] = value or None
        elif key == "bare":
            current["bare"] = True
        elif key == "detached":
            current["detached"] = True
            current["branch"] = None
        elif key == "locked":
            current["locked"] = True
        elif key == "prunable":
            current["prunable"] = True
    flush()
    return records


def list_worktrees(repo: str | Path) -> list[WorktreeRecord]:
    result = run_git(["worktree", "list", "--porcelain"], repo=repo)
    if result.returncode != 0:
        return []
    return parse_worktree_porcelain(result.stdout)
