"""
Main entry point for the alsa-workaround application.
This module handles top-level setup, exception handling, and CLI invocation.
"""

import logging
import sys

import typer
from rich.console import Console

from alsa_workaround.cli.app import app
from alsa_workaround.cli.formatters import format_error_with_suggestions
from alsa_workaround.exceptions import WorkaroundError


def main() -> None:
    """Main entry point function."""
    log = logging.getLogger("alsa_workaround")
    console = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Operation cancelled by user.[/yellow]")
        sys.exit(0)
    except WorkaroundError as e:
        console.print()
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print()
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
