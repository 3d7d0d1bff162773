"""
Defines the command-line interface for the application using Typer.
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from alsa_workaround import __version__
from alsa_workaround.core.hooks import (
    HookInstaller,
    default_executable,
    require_root,
)
from alsa_workaround.core.mixer_profile import (
    MASTER_SECTION,
    has_section,
    is_patched,
)
from alsa_workaround.core.package_monitor import PackageMonitor
from alsa_workaround.core.workaround import WorkaroundManager
from alsa_workaround.exceptions import WorkaroundError
from alsa_workaround.models.config import WorkaroundConfig
from alsa_workaround.storage.config_manager import ConfigManager, get_config_file
from alsa_workaround.storage.status_file import PackageStatusFile
from alsa_workaround.utils.fileops import is_writable_file
from alsa_workaround.utils.structured_logger import create_structured_logger

from .formatters import (
    print_apply_summary,
    print_config,
    print_diffs,
    print_status_table,
)

console = Console()
err_console = Console(stderr=True)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=err_console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)

app = typer.Typer(
    name="alsa-workaround",
    help=(
        "Control a sound card's volume in software instead of its broken hardware"
        " mixer, and keep it that way across package upgrades."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def _config_file(ctx: typer.Context) -> Path:
    return get_config_file((ctx.obj or {}).get("config_file"))


def _load_config(
    ctx: typer.Context, cli_options: dict | None = None
) -> WorkaroundConfig:
    return ConfigManager(_config_file(ctx)).load_config(cli_options)


def _fail(error: WorkaroundError) -> typer.Exit:
    err_console.print(f"[bold red]Error: {escape(str(error))}[/bold red]")
    return typer.Exit(code=1)


def _make_manager(config: WorkaroundConfig):
    log_dir = Path(config.log_dir) if config.log_dir else None
    events_base, events = create_structured_logger(log_dir)
    events_base.set_session_context(dry_run=config.dry_run)
    return WorkaroundManager(config, events=events), events_base


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to the configuration file (default: /etc/alsa-workaround/config.ini).",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration."
    ),
):
    """ALSA volume workaround"""
    if version:
        console.print(
            f"[bold]alsa-workaround[/bold] version [cyan]{__version__}[/cyan]"
        )
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("alsa_workaround").setLevel(log_level)

    ctx.obj = {"config_file": config_file}

    if show_config:
        try:
            config = _load_config(ctx)
        except WorkaroundError as e:
            raise _fail(e) from e
        data = config.model_dump(include=WorkaroundConfig.get_ini_keys())
        print_config(console, _config_file(ctx), data)
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def apply(
    ctx: typer.Context,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would change without writing files or restarting services.",
    ),
    restart: bool | None = typer.Option(
        None,
        "--restart/--no-restart",
        help="Restart the session audio service for logged-in users after a change.",
    ),
    keep_backups: bool | None = typer.Option(
        None,
        "--keep-backups/--no-keep-backups",
        help="Keep the timestamped copies of the mixer profiles.",
    ),
    show_diff: bool = typer.Option(
        False, "--diff", help="Print the diff of every changed file."
    ),
):
    """Apply the workaround now."""
    cli_options = {
        key: value
        for key, value in {
            "restart_service": restart,
            "keep_backups": keep_backups,
        }.items()
        if value is not None
    }
    cli_options["dry_run"] = dry_run

    try:
        config = _load_config(ctx, cli_options)
        manager, events_base = _make_manager(config)
        with events_base:
            report = manager.apply()
    except WorkaroundError as e:
        raise _fail(e) from e

    if show_diff or dry_run:
        print_diffs(console, report)
    print_apply_summary(console, report)


@app.command(name="apt-hook")
def apt_hook(ctx: typer.Context):
    """Reapply the workaround if watched packages changed (run by dpkg)."""
    try:
        config = _load_config(ctx)
        manager, events_base = _make_manager(config)
        with events_base:
            report = PackageMonitor(manager).run()
    except WorkaroundError as e:
        raise _fail(e) from e

    if report is not None:
        print_apply_summary(console, report)


@app.command()
def install(
    ctx: typer.Context,
    apply_now: bool = typer.Option(
        False, "--apply-now", help="Apply the workaround right after installing."
    ),
    force_config: bool = typer.Option(
        False,
        "--force-config",
        help="Overwrite an existing configuration file with the defaults.",
    ),
):
    """Install package-manager hooks that reapply the workaround after upgrades."""
    try:
        require_root()

        config_file = _config_file(ctx)
        config_manager = ConfigManager(config_file)
        if force_config or not config_file.exists():
            executable = default_executable()
            config_manager.save_new_config(
                {"executable": executable} if executable else None
            )
            console.print(f"[green]✓ Configuration written to '{config_file}'[/green]")

        config = config_manager.load_config()
        manager, events_base = _make_manager(config)
        with events_base:
            installed = HookInstaller(config, events=manager.events).install()
            report = manager.apply() if apply_now else None
    except WorkaroundError as e:
        raise _fail(e) from e

    for spec in installed:
        console.print(f"[green]✓[/] {spec.manager} hook: [dim]{spec.path}[/dim]")
    if report is not None:
        print_apply_summary(console, report)
    console.print("[bold green]Installation complete.[/bold green]")


@app.command()
def uninstall(ctx: typer.Context):
    """Remove the package-manager hooks and the version status file."""
    try:
        require_root()
        config = _load_config(ctx)
        removed = HookInstaller(config).uninstall()
        status_removed = PackageStatusFile(config.status_file).remove()
    except WorkaroundError as e:
        raise _fail(e) from e

    if not removed and not status_removed:
        console.print("[yellow]Nothing to remove.[/yellow]")
        return
    for spec in removed:
        console.print(f"[green]✓[/] Removed {spec.manager} hook [dim]{spec.path}[/dim]")
    if status_removed:
        console.print(f"[green]✓[/] Removed [dim]{config.status_file}[/dim]")
    console.print(
        "[dim]Patched mixer profiles are restored by the next package upgrade.[/dim]"
    )


def _profile_rows(config: WorkaroundConfig) -> list[tuple[str, bool | None, str]]:
    rows: list[tuple[str, bool | None, str]] = []
    for label, path in (
        ("Common profile", config.common_path),
        ("Headphones profile", config.headphones_path),
    ):
        if not path.is_file():
            rows.append((label, False, f"missing: {path}"))
            continue
        access = "writable" if is_writable_file(path) else "read-only"
        rows.append((label, True, f"{access}: {path}"))

    if config.common_path.is_file() and config.headphones_path.is_file():
        common = config.common_path.read_text(
            encoding="utf-8", errors="surrogateescape"
        )
        headphones = config.headphones_path.read_text(
            encoding="utf-8", errors="surrogateescape"
        )
        rows.append(
            (
                "Profiles patched",
                has_section(common, MASTER_SECTION) and is_patched(common, headphones),
                f"[{MASTER_SECTION}] with volume = ignore",
            )
        )
    return rows


@app.command()
def status(ctx: typer.Context):
    """Show whether the workaround and its hooks are in place."""
    try:
        config = _load_config(ctx)
    except WorkaroundError as e:
        raise _fail(e) from e

    config_file = _config_file(ctx)
    rows = [
        (
            "Configuration",
            None if not config_file.is_file() else True,
            str(config_file) if config_file.is_file() else "built-in defaults",
        )
    ]
    rows.extend(_profile_rows(config))

    manager = WorkaroundManager(config)
    overrides = manager.soft_mixer.installed_files()
    rows.append(
        (
            "Soft-mixer override",
            True if overrides else None,
            ", ".join(map(str, overrides)) or "not installed",
        )
    )

    for spec in HookInstaller(config).specs():
        if not spec.detected():
            rows.append((f"{spec.manager} hook", None, f"{spec.command} not found"))
        elif not spec.installed():
            rows.append((f"{spec.manager} hook", False, f"missing: {spec.path}"))
        elif not spec.current():
            rows.append((f"{spec.manager} hook", False, f"outdated: {spec.path}"))
        else:
            rows.append((f"{spec.manager} hook", True, str(spec.path)))

    status_file = PackageStatusFile(config.status_file)
    if status_file.exists():
        try:
            versions = status_file.read()
        except WorkaroundError as e:
            rows.append(("Package versions", False, str(e)))
        else:
            detail = ", ".join(f"{p} {v}" for p, v in versions.items())
            rows.append(("Package versions", True, detail))
    else:
        rows.append(("Package versions", None, "not recorded yet"))

    print_status_table(console, rows)
