"""Main CLI interface for Timemachine."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
import git as gitpython
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from timemachine.core.context import acting_as, operation
from timemachine.core.machine import TimeMachine
from timemachine.exceptions import CommitNotFoundError
from timemachine.models.identity import Identity

console = Console()


def get_machine_or_exit(root: Path) -> TimeMachine:
    """Get a running TimeMachine for root or exit with an error message."""
    if not (root / ".git").exists():
        console.print(
            "[red]Timemachine not initialized. Run 'timemachine init' first.[/red]"
        )
        raise click.Abort()

    machine = TimeMachine.start(root)
    if not machine.enabled:
        console.print(f"[red]Error: cannot open git repository in {root}[/red]")
        raise click.Abort()
    return machine


@click.group()
@click.version_option()
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=".",
    help="Tracked configuration root",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, root: str, verbose: bool):
    """Timemachine - track and browse configuration changes."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = Path(root).resolve()


@main.command()
@click.pass_obj
def init(root: Path):
    """Open or initialize the repository in the tracked root."""
    machine = TimeMachine.start(root)
    if not machine.enabled:
        console.print(f"[red]Error: cannot initialize git repository in {root}[/red]")
        raise click.Abort()

    console.print(f"[green]✅ Timemachine ready in {machine.root}[/green]")


@main.command()
@click.option("--limit", default=10, help="Number of commits to show")
@click.option("--oneline", is_flag=True, help="Show compact one-line format")
@click.pass_obj
def log(root: Path, limit: int, oneline: bool):
    """Show recent configuration commits."""
    machine = get_machine_or_exit(root)
    commits = list(machine.get_history())[:limit]

    if oneline:
        for commit in commits:
            console.print(f"[yellow]{commit.hexsha[:8]}[/yellow] {commit.summary}")
        return

    table = Table(title="Configuration History")
    table.add_column("Commit", style="cyan", no_wrap=True)
    table.add_column("Date", style="magenta")
    table.add_column("Author", style="green")
    table.add_column("Message")

    for commit in commits:
        table.add_row(
            commit.hexsha[:8],
            commit.committed_datetime.strftime("%Y-%m-%d %H:%M"),
            commit.author.name,
            commit.summary,
        )

    console.print(table)


@main.command()
@click.argument("commit_ref")
@click.pass_obj
def show(root: Path, commit_ref: str):
    """Show a commit with its diff against its parent."""
    machine = get_machine_or_exit(root)
    try:
        view = machine.get_commit(commit_ref)
    except CommitNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    commit = view.commit
    console.print(f"[bold]Commit:[/bold] [yellow]{view.sha}[/yellow]")
    console.print(f"[bold]Author:[/bold] {commit.author.name} <{commit.author.email}>")
    console.print(f"[bold]Date:[/bold] {commit.committed_datetime.isoformat()}")
    console.print()
    console.print(view.message.rstrip(), markup=False)
    console.print()

    if not view.diff:
        console.print("[dim]No changes[/dim]")
        return

    syntax = Syntax(view.diff, "diff", theme="monokai", word_wrap=True)
    console.print(Panel(syntax, border_style="blue", padding=(0, 1)))


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--message", "-m", help="Commit all paths together with this message")
@click.option("--cause", help="Cause recorded for paths committed one by one")
@click.option("--author", help="Author name for the commit")
@click.option("--email", default="", help="Author email for the commit")
@click.pass_obj
def record(
    root: Path,
    paths: Tuple[str, ...],
    message: Optional[str],
    cause: Optional[str],
    author: Optional[str],
    email: str,
):
    """Record changes to tracked files.

    Relative PATHS are taken relative to --root, not the working directory;
    absolute PATHS are used as given and must lie inside the root.
    """
    machine = get_machine_or_exit(root)
    identity = Identity(name=author, email=email) if author else machine.config.ghost

    try:
        with acting_as(identity), operation(cause or "command line"):
            if message:
                with machine.scopes.scope():
                    for path in paths:
                        machine.notify_mutation(path)
                    shas = [machine.flush(message)]
            else:
                shas = [machine.notify_mutation(path) for path in paths]
    except (ValueError, gitpython.exc.GitCommandError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    created = [sha for sha in shas if sha]
    if not created:
        console.print("[yellow]No changes to record[/yellow]")
        return
    for sha in created:
        console.print(f"[green]✅ Created commit: {sha[:8]}[/green]")


if __name__ == "__main__":
    main()
