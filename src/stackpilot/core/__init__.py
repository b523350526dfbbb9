"""Deployment core: messages, relays, engine adapter, and the deployment task.

Nothing in this package imports Textual; it can be driven and tested
without a running terminal.
"""
