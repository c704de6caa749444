from __future__ import annotations

from dataclasses import dataclass

OPEN = "OPEN"
MERGED = "MERGED"
CLOSED = "CLOSED"
PR_STATES = (OPEN, MERGED, CLOSED)


@dataclass(frozen=True)
class PullRequest:
    number: int
    state: str  # OPEN, MERGED, CLOSED
    title: str
    branch: str
