from __future__ import annotations

import click

from gw.cli.utils import _errors, _load_config, _make_client, _truncate
from gw.models import CLOSED, MERGED, OPEN
from gw.repository import Repository
from gw.services.reconcile import (
    ABORTED,
    DRY_RUN,
    EMPTY,
    NO_PR,
    NOTHING_ELIGIBLE,
    PRUNE,
    STATUS,
    ReconcileOptions,
    ReconcileReport,
    RemovalOutcome,
    reconcile,
)


@click.command("list")
@click.argument("repo_name", required=False)
def list_cmd(repo_name: str | None) -> None:
    """List worktrees, optionally for a single repository."""
    config = _load_config()
    client = _make_client()
    with _errors():
        if repo_name:
            repos = [Repository.find(config, repo_name, client=client)]
        else:
            repos = sorted(Repository.list(config, client=client), key=lambda r: r.name)

        if not repos:
            click.echo("No repositories found.")
            return

        rows: list[tuple[str, str]] = []
        for repository in repos:
            worktrees = sorted(repository.worktrees(), key=lambda w: w.branch)
            if not worktrees:
                rows.append((repository.name, "(no worktrees)"))
            for wt in worktrees:
                rows.append((wt.display_name, str(wt.path)))

    width = max([30] + [len(name) + 2 for name, _ in rows])
    click.echo(f"{'WORKTREE':<{width}}PATH")
    for name, path in rows:
        click.echo(f"{name:<{width}}{path}")


def _render_status(report: ReconcileReport) -> None:
    wt_width = max([20] + [len(d.worktree.display_name) for d in report.decisions]) + 2

    click.echo("")
    click.echo(f"{'WORKTREE':<{wt_width}}{'PR':<8}{'STATE':<8}TITLE")
    click.echo("-" * (wt_width + 8 + 8 + 42))
    for d in report.decisions:
        pr = d.matched
        number = f"#{pr.number}" if pr else "-"
        state = pr.state if pr else "-"
        title = _truncate(pr.title, 40) if pr else "-"
        click.echo(f"{d.worktree.display_name:<{wt_width}}{number:<8}{state:<8}{title}")

    counts = report.counts
    summary = []
    for key, label in ((OPEN, "open"), (MERGED, "merged"), (CLOSED, "closed"), (NO_PR, "no PR")):
        if counts[key]:
            summary.append(f"{counts[key]} {label}")
    click.echo("")
    click.echo(f"Total: {len(report.decisions)} worktrees ({', '.join(summary)})")

    if report.prunable_count:
        click.echo(
            f"Run 'gw prune {report.repository}' to remove "
            f"{report.prunable_count} completed worktrees"
        )


@click.command()
@click.argument("repo_name")
def status(repo_name: str) -> None:
    """Show the pull request status of every worktree in REPO_NAME."""
    config = _load_config()
    with _errors():
        report = reconcile(config, repo_name, mode=STATUS, client=_make_client())

    if report.outcome == EMPTY:
        click.echo(f"No worktrees found for {repo_name}")
        return
    _render_status(report)


def _echo_removal(outcome: RemovalOutcome) -> None:
    name = outcome.worktree.display_name
    if outcome.succeeded:
        click.echo(f"Removing {name}... done")
    else:
        click.echo(f"Removing {name}... failed: {outcome.error}")


@click.command()
@click.argument("repo_name")
@click.option("--dry-run", is_flag=True, help="Show what would be removed.")
@click.option("--merged", "merged_only", is_flag=True, help="Only remove merged worktrees.")
def prune(repo_name: str, dry_run: bool, merged_only: bool) -> None:
    """Remove worktrees whose pull requests are merged or closed."""
    config = _load_config()
    options = ReconcileOptions(dry_run=dry_run, merged_only=merged_only)
    with _errors():
        report = reconcile(
            config,
            repo_name,
            mode=PRUNE,
            options=options,
            client=_make_client(),
            on_progress=_echo_removal,
        )

    if report.outcome == EMPTY:
        click.echo(f"No worktrees found for {repo_name}")
        return
    if report.outcome == NOTHING_ELIGIBLE:
        click.echo("No worktrees to prune")
        return
    if report.outcome == DRY_RUN:
        click.echo("Worktrees to remove:")
        for d in report.eligible:
            click.echo(f"  {d.worktree.display_name} ({d.state}, #{d.matched.number})")
        click.echo("")
        click.echo(f"[Dry run] Would remove {len(report.eligible)} worktrees")
        return
    if report.outcome == ABORTED:
        click.echo("Aborted")
        return

    click.echo("")
    message = f"Removed {report.removed_count} worktrees"
    if report.failures:
        message += f" ({len(report.failures)} failed)"
    click.echo(message)
