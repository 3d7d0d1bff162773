"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from alsa_workaround.models.report import ApplyReport


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "NotRootError": [
            "• Re-run the command with sudo.",
        ],
        "PatchError": [
            "• Run as root to patch the mixer profiles directly.",
            "• Or make sure ~/.config/wireplumber is writable for your user.",
            "• Run `alsa-workaround status` to see which paths were checked.",
        ],
        "ConfigurationError": [
            "• Check the configuration file for typos.",
            "• Run `alsa-workaround --show-config` to see the effective values.",
            "• Delete the file to fall back to the built-in defaults.",
        ],
        "HookInstallError": [
            "• Make sure /etc/pacman.d/hooks or /etc/apt/apt.conf.d is writable.",
            "• Re-run `alsa-workaround install` as root.",
        ],
        "StatusFileError": [
            "• Check permissions of the status file under /var/lib.",
            "• Deleting it forces the workaround to run on the next dpkg run.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(console: Console, config_path: Path, config_data: dict[str, Any]):
    """Displays the effective configuration."""
    content = ""
    for key, value in sorted(config_data.items()):
        if isinstance(value, list):
            value = ", ".join(value)
        content += f"{key} = {value}\n"

    source = config_path if config_path.is_file() else f"{config_path}, not found"
    console.print(
        Panel(
            Text(content.strip()),
            title=f"Configuration ([dim]{source}[/dim])",
            border_style="cyan",
        )
    )


def print_diffs(console: Console, report: ApplyReport):
    """Shows the unified diff of every file the run changed or would change."""
    for path, diff in report.diffs.items():
        console.print(
            Panel(
                Syntax(diff, "diff", theme="ansi_dark", background_color="default"),
                title=f"[bold]{path}[/bold]",
                border_style="dim",
                box=box.ROUNDED,
            )
        )


def print_apply_summary(console: Console, report: ApplyReport):
    """Displays a summary of an apply run."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    method = "Mixer profiles" if report.patched_profiles else "Soft-mixer override"
    table.add_row("Method:", method)
    for path in report.changed_files:
        label = "would change" if report.dry_run else "changed"
        table.add_row("File:", f"[yellow]{label}[/yellow] [dim]{path}[/dim]")
    for path in report.unchanged_files:
        table.add_row("File:", f"[green]unchanged[/green] [dim]{path}[/dim]")

    if report.users_restarted:
        table.add_row("Restarted for:", ", ".join(report.users_restarted))
    for user, reason in report.users_skipped.items():
        table.add_row("Skipped:", f"{user} [dim]({reason})[/dim]")
    for user, error in report.users_failed.items():
        table.add_row("Failed:", f"[red]{user}[/red] [dim]({error})[/dim]")

    if report.dry_run:
        title, style = "[bold cyan]Dry Run[/bold cyan]", "cyan"
    elif report.changed:
        title, style = "[bold green]✓ Workaround Applied[/bold green]", "green"
    else:
        title, style = "[bold green]✓ Already Applied[/bold green]", "green"

    console.print(Panel(table, title=title, border_style=style, expand=False))


def print_status_table(console: Console, rows: list[tuple[str, bool | None, str]]):
    """
    Displays the status checks. Each row is (check, ok, detail); an ok of None
    marks a check that does not apply on this system.
    """
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan")
    table.add_column("Check", no_wrap=True)
    table.add_column("State", justify="center")
    table.add_column("Detail", style="dim", overflow="fold")

    for check, ok, detail in rows:
        if ok is None:
            state = "[dim]–[/dim]"
        elif ok:
            state = "[green]✓[/green]"
        else:
            state = "[red]✗[/red]"
        table.add_row(check, state, detail)

    console.print(
        Panel(table, title="[bold]ALSA Workaround Status[/bold]", border_style="cyan")
    )
