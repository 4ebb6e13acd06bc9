# File: schemagen/__main__.py
"""
schemagen — Module entry point.

Allows running the generator directly via::

    python -m schemagen generate schema.sql -o app.zip

This module simply delegates to the CLI entry point defined in ``schemagen.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from schemagen.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
