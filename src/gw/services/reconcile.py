"""Reconcile local worktrees against pull request state (status / prune)."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from dataclasses import dataclass, field

import click

from gw.config import Config
from gw.exceptions import GwError, NoRemoteIdentityError
from gw.github import GitHubClient
from gw.models import CLOSED, MERGED, OPEN, PullRequest
from gw.repository import Repository
from gw.worktree import Worktree

log = logging.getLogger(__name__)

STATUS = "status"
PRUNE = "prune"

NO_PR = "NONE"

# Outcomes recorded on the report
EMPTY = "empty"  # repository has no worktrees
LISTED = "listed"  # status mode, nothing mutated
NOTHING_ELIGIBLE = "nothing_eligible"
DRY_RUN = "dry_run"
ABORTED = "aborted"
REMOVED = "removed"


def is_eligible(state: str | None, merged_only: bool = False) -> bool:
    """MERGED is always prunable, CLOSED only without ``merged_only``; nothing else is."""
    if state == MERGED:
        return True
    if state == CLOSED:
        return not merged_only
    return False


@dataclass
class ReconcileOptions:
    dry_run: bool = False
    merged_only: bool = False


@dataclass
class PruneDecision:
    worktree: Worktree
    matched: PullRequest | None
    eligible: bool

    @property
    def state(self) -> str:
        return self.matched.state if self.matched else NO_PR


@dataclass
class RemovalOutcome:
    worktree: Worktree
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class ReconcileReport:
    repository: str
    mode: str
    outcome: str
    decisions: list[PruneDecision] = field(default_factory=list)
    removals: list[RemovalOutcome] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        counts = {OPEN: 0, MERGED: 0, CLOSED: 0, NO_PR: 0}
        for d in self.decisions:
            counts[d.state] += 1
        return counts

    @property
    def eligible(self) -> list[PruneDecision]:
        return [d for d in self.decisions if d.eligible]

    @property
    def prunable_count(self) -> int:
        """Worktrees a default prune (without --merged) would remove."""
        return sum(1 for d in self.decisions if is_eligible(d.state))

    @property
    def removed_count(self) -> int:
        return sum(1 for r in self.removals if r.succeeded)

    @property
    def failures(self) -> list[RemovalOutcome]:
        return [r for r in self.removals if not r.succeeded]


ConfirmFn = Callable[[list[PruneDecision]], bool]
ProgressFn = Callable[[RemovalOutcome], None]


def prompt_confirmation(decisions: list[PruneDecision]) -> bool:
    """Ask on the terminal whether to remove ``decisions``; EOF counts as no."""
    click.echo("Worktrees to remove:")
    for d in decisions:
        click.echo(f"  {d.worktree.display_name} ({d.state}, #{d.matched.number})")
    click.echo("")
    try:
        return click.confirm(f"Remove {len(decisions)} worktrees?", default=False)
    except click.Abort:
        return False


def classify(
    worktrees: list[Worktree],
    prs: dict[str, PullRequest],
    merged_only: bool = False,
) -> list[PruneDecision]:
    decisions = []
    for wt in worktrees:
        pr = prs.get(wt.branch)
        eligible = pr is not None and is_eligible(pr.state, merged_only)
        decisions.append(PruneDecision(worktree=wt, matched=pr, eligible=eligible))
    return decisions


def reconcile(
    config: Config,
    repo_name: str,
    mode: str = STATUS,
    options: ReconcileOptions | None = None,
    client: GitHubClient | None = None,
    confirm: ConfirmFn | None = None,
    on_progress: ProgressFn | None = None,
) -> ReconcileReport:
    """Join a repository's worktrees with their PRs and optionally prune.

    Raises NotFoundError, NoRemoteIdentityError or RemoteQueryFailed before
    anything is mutated. During a prune, each removal failure is recorded on
    its RemovalOutcome and the remaining removals still run.
    """
    if mode not in (STATUS, PRUNE):
        raise ValueError(f"Unknown reconcile mode: {mode}")
    options = options or ReconcileOptions()
    confirm = confirm or prompt_confirmation

    repo = Repository.find(config, repo_name, client=client)
    worktrees = repo.worktrees()
    if not worktrees:
        return ReconcileReport(repository=repo_name, mode=mode, outcome=EMPTY)

    full_name = repo.full_name
    if not full_name:
        raise NoRemoteIdentityError(repo_name)

    branches = {wt.branch for wt in worktrees}
    log.debug("looking up PRs for %d branches of %s", len(branches), full_name)
    prs = repo.client.find_prs_by_branches(full_name, branches)

    merged_only = options.merged_only if mode == PRUNE else False
    decisions = classify(worktrees, prs, merged_only=merged_only)
    report = ReconcileReport(
        repository=repo_name, mode=mode, outcome=LISTED, decisions=decisions
    )
    if mode == STATUS:
        return report

    eligible = report.eligible
    if not eligible:
        report.outcome = NOTHING_ELIGIBLE
        return report
    if options.dry_run:
        report.outcome = DRY_RUN
        return report
    if not confirm(eligible):
        report.outcome = ABORTED
        return report

    for d in eligible:
        outcome = RemovalOutcome(worktree=d.worktree)
        try:
            d.worktree.remove(force=True)
        except (GwError, OSError, subprocess.SubprocessError) as e:
            log.info("could not remove %s: %s", d.worktree.display_name, e)
            outcome.error = e
        report.removals.append(outcome)
        if on_progress is not None:
            on_progress(outcome)

    report.outcome = REMOVED
    return report
