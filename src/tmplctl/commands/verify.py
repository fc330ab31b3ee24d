"""Command: check given concepts against a template's exact attribute sets."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from tmplctl.commands._base import (
    CONCEPT_ID,
    TmplCommand,
    branch_option,
    stated_option,
    template_argument,
)

if TYPE_CHECKING:
    from tmplctl.commands._context import AppContext


@click.command(
    cls=TmplCommand,
    examples="""\
  tmplctl verify 'Allergy to [substance]' 91936005 294505008
  tmplctl verify 'Allergy to [substance]' 91936005 --inferred --branch MAIN/PROJ
  tmplctl --json verify 'Allergy to [substance]' 91936005""",
)
@template_argument
@click.argument("concept_ids", nargs=-1, required=True, type=CONCEPT_ID)
@branch_option
@stated_option
@click.pass_obj
def verify(
    app: AppContext,
    template_name: str,
    concept_ids: tuple[str, ...],
    branch: str | None,
    stated: bool,
) -> None:
    """Report whether each concept conforms exactly to the template."""
    from tmplctl.services.search import TemplateSearchService

    svc = TemplateSearchService(app.workspace)
    app.emit(svc.verify(template_name, list(concept_ids), branch, stated=stated))
