"""Shared Click building blocks for tmplctl commands.

``TmplCommand``/``TmplGroup`` add an eager ``--examples`` flag. The
decorators below declare the parameters that ``search`` and ``verify``
have in common, so both commands spell branch and axiom selection the
same way.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

import click

F = TypeVar("F", bound=Callable[..., Any])

# SCTIDs: 6 to 18 digits, no leading zero
_SCTID_MIN_LENGTH = 6
_SCTID_MAX_LENGTH = 18


class ConceptIdType(click.ParamType):
    """A SNOMED CT concept identifier, kept as a string."""

    name = "sctid"

    def convert(self, value: Any, param: click.Parameter | None, ctx: click.Context | None) -> str:
        text = str(value).strip()
        if (
            not text.isdigit()
            or text.startswith("0")
            or not _SCTID_MIN_LENGTH <= len(text) <= _SCTID_MAX_LENGTH
        ):
            self.fail(f"{value!r} is not a concept identifier", param, ctx)
        return text


CONCEPT_ID = ConceptIdType()


def template_argument(func: F) -> F:
    """Positional ``TEMPLATE_NAME`` of a stored concept template."""
    return click.argument("template_name")(func)


def branch_option(func: F) -> F:
    return click.option(
        "--branch",
        default=None,
        metavar="PATH",
        help="Branch path, e.g. MAIN/PROJ (default: search.default_branch).",
    )(func)


def stated_option(func: F) -> F:
    return click.option(
        "--stated/--inferred",
        default=True,
        help="Inspect stated axioms (default) or inferred relationships.",
    )(func)


def tristate_option(flag: str, help_text: str) -> Callable[[F], F]:
    """Boolean option that stays ``None`` when omitted.

    The service decides what an unset flag means, so no default is applied
    here.
    """
    return click.option(flag, type=bool, default=None, metavar="true|false", help=help_text)


def _add_examples_option(cmd: click.Command | click.Group, examples: str) -> None:
    def show_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
        if not value:
            return
        click.echo(f"Examples for '{ctx.command_path}':\n")
        click.echo(examples)
        ctx.exit(0)

    cmd.params.append(
        click.Option(
            ["--examples"],
            is_flag=True,
            expose_value=False,
            is_eager=True,
            callback=show_examples,
            help="Show usage examples.",
        )
    )


class TmplCommand(click.Command):
    """Command with an optional ``--examples`` flag."""

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)


class TmplGroup(click.Group):
    """Group whose subcommands default to :class:`TmplCommand`."""

    command_class = TmplCommand

    def __init__(self, *args: Any, examples: str | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.examples = examples
        if examples:
            _add_examples_option(self, examples)
