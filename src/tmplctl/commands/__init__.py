"""Subcommand modules for tmplctl.

Provides register_commands() which uses deferred imports to keep
``tmplctl --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the ``template`` group and the standalone commands on *cli*."""
    # --- Groups ---
    from tmplctl.commands.template import template

    cli.add_command(template)

    # --- Standalone commands ---
    from tmplctl.commands.search import search
    from tmplctl.commands.verify import verify

    cli.add_command(search)
    cli.add_command(verify)
