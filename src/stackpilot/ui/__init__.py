"""
stackpilot terminal UI — ``src/stackpilot/ui/``.

``state`` and ``render`` are plain Python and testable without a terminal;
``app`` wires them to Textual.

Entry point::

    from stackpilot.ui.app import StackPilotApp
    StackPilotApp(destroy=False, engine=engine).run(inline=True)
"""
