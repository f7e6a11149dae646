"""Command line interface for pruner."""

from pathlib import Path
from typing import Annotated, List, Optional

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from pruner.classify import MergeClassifier, default_detectors
from pruner.cleanup import CleanupExecutor
from pruner.config import DEFAULT_REMOTE, CleanConfig
from pruner.git import GitError, GitRepo
from pruner.inventory import collect_candidates, resolve_repo_root, resolve_target_branch
from pruner.logging_config import setup_logging
from pruner.models import TIERS, CleanupPlan, CleanupReport, MergeStatus, WorktreeLink
from pruner.plan import ConfirmationGate, build_plan
from pruner.worktree import resolve_worktrees

app = typer.Typer(help="Prune merged branches and their worktrees")
console = Console()

TIER_HEADINGS = {
    MergeStatus.MERGED: "[bold green]Merged into {target}[/bold green]",
    MergeStatus.SQUASH_MERGED: "[bold green]Squash merged into {target}[/bold green]",
    MergeStatus.REMOTE_DELETED: "[bold bright_yellow]Upstream branch deleted[/bold bright_yellow]",
    MergeStatus.UNPUSHED: "[bold red]Never pushed (asked separately)[/bold red]",
}


def get_repo(path: Path) -> GitRepo:
    """Get git repository instance."""
    try:
        return GitRepo(path)
    except GitError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=1) from err


def get_config(**kwargs) -> CleanConfig:
    try:
        return CleanConfig(**kwargs)
    except ValueError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=1) from err


def analyze(repo: GitRepo, config: CleanConfig, prune: bool) -> tuple[Path, str, CleanupPlan]:
    """Inventory, classify and resolve worktrees. Exits on precondition failures."""
    try:
        if config.fetch:
            repo.fetch(config.remote)
        repo_root = resolve_repo_root(repo)
        target = resolve_target_branch(repo, config.remote, config.target_branch)
        candidates = collect_candidates(repo, target)
        if prune:
            repo.prune_worktrees()

        detectors = default_detectors(config.remote, config.squash_window, config.squash_keywords)
        classifications = MergeClassifier(repo, target, detectors).classify(candidates)
        classified = [branch for branch, status in classifications.items() if status is not MergeStatus.UNCLASSIFIED]
        links = resolve_worktrees(repo, repo_root, classified) if classified else {}
    except GitError as err:
        print(f"[red]Error:[/red] {err}")
        raise typer.Exit(code=1) from err

    return repo_root, target, build_plan(classifications, links)


def describe_worktree(link: WorktreeLink, repo_root: Path) -> str:
    if link.path is None:
        return "[dim]-[/dim]"
    try:
        shown = str(link.path.relative_to(repo_root))
    except ValueError:
        shown = str(link.path)
    shown = escape(shown)
    if not link.is_registered:
        return f"[yellow]{shown} (not a worktree of this branch, kept)[/yellow]"
    return shown


def show_plan(plan: CleanupPlan, repo_root: Path, target: str) -> None:
    """Print one table per populated tier."""
    for status in TIERS:
        entries = plan.tier(status)
        if not entries:
            continue
        table = Table(show_header=True, header_style="bold", show_edge=True)
        table.add_column("Branch", style="cyan", no_wrap=True)
        table.add_column("Worktree", style="magenta", no_wrap=True)
        for entry in entries:
            table.add_row(escape(entry.branch.name), describe_worktree(entry.worktree, repo_root))
        console.print()
        console.print(TIER_HEADINGS[status].format(target=target))
        console.print(table)


def show_report(report: CleanupReport) -> None:
    if report.removed_branches or report.removed_worktrees:
        console.print(
            f"\n[bold green]Removed {len(report.removed_branches)} branch(es) "
            f"and {len(report.removed_worktrees)} worktree(s)[/bold green] 🧹"
        )
    if report.removed_branches:
        result_table = Table(show_header=True, header_style="bold", show_edge=True)
        result_table.add_column("Branch", style="cyan")
        for branch in sorted(report.removed_branches):
            result_table.add_row(escape(branch))
        console.print(result_table)
    else:
        console.print("\n[yellow]No branches were deleted[/yellow] 🤔")

    if report.failures:
        console.print(f"\n[bold red]{len(report.failures)} branch(es) need manual attention[/bold red]")
        failure_table = Table(show_header=True, header_style="bold", show_edge=True)
        failure_table.add_column("Branch", style="cyan", no_wrap=True)
        failure_table.add_column("Stage", style="magenta", no_wrap=True)
        failure_table.add_column("Reason")
        for failure in report.failures:
            failure_table.add_row(escape(failure.branch), failure.stage.value, escape(failure.reason))
        console.print(failure_table)


def nothing_to_clean() -> None:
    console.print(
        Panel(
            "[green]Nothing to clean ✨[/green]",
            style="green",
            padding=(0, 2),
            expand=False,
        )
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show what is being done"),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging, including git commands"),
) -> None:
    """Prune local branches and their worktrees once they are merged upstream."""
    setup_logging(verbose=verbose, debug=debug)


@app.command()
def status(
    target: Annotated[Optional[str], typer.Argument(help="Branch to compare against (default: remote HEAD, main, master)")] = None,
    path: Annotated[Path, typer.Option(help="Path inside the repository")] = Path("."),
    remote: str = typer.Option(DEFAULT_REMOTE, "--remote", help="Remote used to detect pushed branches"),
    fetch: bool = typer.Option(False, "--fetch", help="Fetch and prune the remote first"),
) -> None:
    """Show which branches clean would remove, without changing anything."""
    config = get_config(target_branch=target, remote=remote, fetch=fetch)
    repo = get_repo(path)
    repo_root, target_branch, plan = analyze(repo, config, prune=False)

    if not plan:
        nothing_to_clean()
        return
    show_plan(plan, repo_root, target_branch)
    console.print(f"\n{len(plan)} branch(es) would be considered by [dim]`pruner clean`[/dim]")


@app.command()
def clean(
    target: Annotated[Optional[str], typer.Argument(help="Branch to compare against (default: remote HEAD, main, master)")] = None,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompts"),
    force_delete: bool = typer.Option(False, "--force-delete", "-D", help="Delete branches git considers unmerged"),
    path: Annotated[Path, typer.Option(help="Path inside the repository")] = Path("."),
    remote: str = typer.Option(DEFAULT_REMOTE, "--remote", help="Remote used to detect pushed branches"),
    shared_dir: Annotated[
        Optional[List[str]],
        typer.Option(
            "--shared-dir",
            envvar="PRUNER_SHARED_DIRS",
            help="Directory name symlinked into worktrees; the link is removed before the worktree",
        ),
    ] = None,
    fetch: bool = typer.Option(False, "--fetch", help="Fetch and prune the remote first"),
) -> None:
    """Remove worktrees and delete branches that are merged into the target."""
    config = get_config(
        target_branch=target,
        remote=remote,
        force=force,
        force_delete=force_delete,
        fetch=fetch,
        shared_dirs=tuple(shared_dir or ()),
    )
    repo = get_repo(path)
    repo_root, target_branch, plan = analyze(repo, config, prune=True)

    if not plan:
        nothing_to_clean()
        return

    show_plan(plan, repo_root, target_branch)
    console.print()

    gate = ConfirmationGate(
        confirm=lambda question: typer.confirm(question, default=False),
        warn=lambda message: console.print(f"[yellow]Warning:[/yellow] {message}"),
        force=config.force,
    )
    approved = gate.approve(plan)
    if not approved:
        console.print("\n[yellow]Operation cancelled[/yellow] 🛑")
        return

    executor = CleanupExecutor(repo, shared_dirs=config.shared_dirs, force_delete=config.force_delete)
    show_report(executor.execute(approved))


if __name__ == "__main__":
    app()
