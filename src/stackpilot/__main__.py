"""Allow ``python -m stackpilot``."""

from stackpilot.cli.main import cli

cli()
