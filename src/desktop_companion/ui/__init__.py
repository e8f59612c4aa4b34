"""Command line front end.

Run it through the ``desktop-companion`` entry point or as a module:
    python -m desktop_companion.ui.cli status

Nothing is re-exported here, so importing the package never pulls in Typer.
"""

__all__: list[str] = []
