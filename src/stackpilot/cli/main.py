"""
stackpilot CLI entry point.

    stackpilot            deploy (update) the website stack
    stackpilot destroy    tear the stack down

Only the first argument is looked at, case-sensitively; any value other
than ``destroy`` means update.  Further arguments and unknown options are
ignored.
"""

from __future__ import annotations

import sys

import click
from rich.console import Console

from stackpilot.core.config import load_config
from stackpilot.core.exceptions import ConfigError
from stackpilot.core.logging import configure_logging
from stackpilot.ui.app import StackPilotApp


def _build_engine():
    from stackpilot.core.engine import PulumiEngine
    from stackpilot.core.program import website_program

    return PulumiEngine(website_program)


@click.command(
    "stackpilot",
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True},
)
@click.argument("args", nargs=-1, metavar="[destroy]")
def cli(args: tuple[str, ...]) -> None:
    """Deploy the static website stack, or destroy it with ``stackpilot destroy``."""
    err = Console(stderr=True)
    destroy = bool(args) and args[0] == "destroy"

    try:
        config = load_config()
    except ConfigError as exc:
        err.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)

    configure_logging(config.logging.level, config.log_path)

    app = StackPilotApp(destroy=destroy, engine=_build_engine(), config=config)
    try:
        app.run(inline=True, inline_no_clear=True)
    except Exception as exc:  # noqa: BLE001
        err.print(f"[red]could not start program:[/red] {exc}")
        sys.exit(1)

    if app.setup_error is not None:
        err.print(f"[red]Error:[/red] {app.setup_error}")
        sys.exit(1)
    sys.exit(app.return_code or 0)
