"""stackpilot — deploy a static S3 website from the terminal with live progress."""

__version__ = "0.3.0"
