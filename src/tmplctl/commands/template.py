"""Command group: inspect stored concept templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tmplctl.commands._base import TmplGroup
from tmplctl.services.template import TemplateService

if TYPE_CHECKING:
    from tmplctl.commands._context import AppContext

_TEMPLATE_EXAMPLES = """\
  tmplctl template list
  tmplctl template show 'Allergy to [substance]'
  tmplctl template ecl 'CT guided [procedure] of [body structure]'
  tmplctl --json template ecl 'Allergy to [substance]'"""


@click.group(cls=TmplGroup, examples=_TEMPLATE_EXAMPLES)
@click.pass_obj
def template(app: AppContext) -> None:
    """List, inspect, and compile concept templates."""


@template.command(
    "list",
    examples="""\
  tmplctl template list
  tmplctl -q template list""",
)
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List the templates in the template directory."""
    app.emit(TemplateService(app.workspace).list_templates())


@template.command(
    examples="""\
  tmplctl template show 'Allergy to [substance]'
  tmplctl --json template show 'Allergy to [substance]'""",
)
@click.argument("name")
@click.pass_obj
def show(app: AppContext, name: str) -> None:
    """Summarize a template's focus concepts, attributes, slots and terms."""
    app.emit(TemplateService(app.workspace).show(name))


@template.command(
    examples="""\
  tmplctl template ecl 'Allergy to [substance]'
  tmplctl -q template ecl 'Allergy to [substance]'""",
)
@click.argument("name")
@click.pass_obj
def ecl(app: AppContext, name: str) -> None:
    """Print the domain, logical, match and mismatch ECL for a template."""
    app.emit(TemplateService(app.workspace).compile(name))
