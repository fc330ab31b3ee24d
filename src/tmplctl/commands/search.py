"""Command: search a branch for concepts matching a template."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tmplctl.commands._base import (
    TmplCommand,
    branch_option,
    stated_option,
    template_argument,
    tristate_option,
)

if TYPE_CHECKING:
    from tmplctl.commands._context import AppContext


@click.command(
    cls=TmplCommand,
    examples="""\
  tmplctl search 'CT guided [procedure] of [body structure]' --logical-match true
  tmplctl search 'Allergy to [substance]' --logical-match true --lexical-match false
  tmplctl search 'Allergy to [substance]' --logical-match false --branch MAIN/PROJ
  tmplctl search 'Allergy to [substance]' --logical-match true --inferred
  tmplctl -q search 'Allergy to [substance]' --logical-match true""",
)
@template_argument
@branch_option
@tristate_option(
    "--logical-match",
    "true: concepts conforming to the template; false: domain concepts that don't.",
)
@tristate_option(
    "--lexical-match",
    "Also filter on term patterns matching (true) or not (false).",
)
@stated_option
@click.pass_obj
def search(
    app: AppContext,
    template_name: str,
    branch: str | None,
    logical_match: bool | None,
    lexical_match: bool | None,
    stated: bool,
) -> None:
    """Find concepts that logically (and optionally lexically) match a template."""
    from tmplctl.services.search import TemplateSearchService

    svc = TemplateSearchService(app.workspace)
    app.emit(
        svc.search(
            template_name,
            branch,
            logical_match=logical_match,
            lexical_match=lexical_match,
            stated=stated,
        )
    )
