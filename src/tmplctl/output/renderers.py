"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO). Renderers
are dispatched by ``result.op`` in :func:`render_result`; unknown ops
fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from tmplctl.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from tmplctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode: bare ids or names."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    lines = _QUIET_LINES.get(result.op)
    if lines is None:
        return f"OK: {result.op}"
    return "\n".join(lines(result.data))


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="tmpl.ok")
    op = Text(f"  {result.op}", style="tmpl.op")
    console.print(label, op)


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    if key.endswith("ecl"):
        style = "tmpl.ecl"
    elif key in ("template", "name"):
        style = "tmpl.id"
    else:
        style = ""
    console.print(Text.assemble((f"  {key}: ", "tmpl.key"), (str(value), style)), soft_wrap=True)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="tmpl.error"),
        Text(f"  {result.op}{code}", style="tmpl.op"),
        Text(f"  {msg}"),
        soft_wrap=True,
    )

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"), soft_wrap=True)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Search ────────────────────────────────────────────────────────────


def _render_search(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("template", "branch", "logical_match", "lexical_match", "stated"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    if verbose:
        _field(console, "ecl", d.get("ecl", ""))
        _field(console, "excluded", d.get("excluded", 0))

    concept_ids = d.get("concept_ids", [])
    if concept_ids:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Concept", style="tmpl.id", no_wrap=True)
        for concept_id in concept_ids:
            table.add_row(concept_id)
        console.print(table)

    suffix = " (truncated)" if d.get("truncated") else ""
    console.print(f"\n{d.get('count', len(concept_ids))} concepts{suffix}")


def _render_verify(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    for key in ("template", "branch", "stated", "checked"):
        _field(console, key, d.get(key, ""))

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Concept", style="tmpl.id", no_wrap=True)
    table.add_column("Conforms")
    table.add_column("Reasons", style="tmpl.reason")
    for concept_id in d.get("conforming", []):
        table.add_row(concept_id, Text("yes", style="tmpl.ok"), "")
    for item in d.get("non_conforming", []):
        table.add_row(
            item["concept_id"], Text("no", style="tmpl.error"), ", ".join(item["reasons"])
        )
    console.print(table)

    not_found = d.get("not_found", [])
    if not_found:
        console.print(
            Text.assemble(("  not found: ", "tmpl.warning"), ", ".join(not_found)), soft_wrap=True
        )


# ── Templates ─────────────────────────────────────────────────────────


def _render_template_list(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    names = result.data.get("templates", [])
    for name in names:
        console.print(Text(name, style="tmpl.id"), soft_wrap=True)
    console.print(f"\n{result.data.get('count', len(names))} templates")


def _render_template_show(
    result: ServiceResult, console: Console, *, verbose: bool = False
) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "name", d.get("name", ""))
    _field(console, "focus_concepts", ", ".join(d.get("focus_concepts", [])))
    _field(console, "attribute_groups", d.get("attribute_groups", 0))
    _field(console, "ungrouped_attributes", d.get("ungrouped_attributes", 0))
    _field(console, "mandatory_attributes", ", ".join(d.get("mandatory_attributes", [])))
    _field(console, "slots", ", ".join(d.get("slots", [])))
    for key in ("fsn_term_templates", "synonym_term_templates"):
        terms = d.get(key, [])
        if terms:
            console.print(Text(f"  {key}:", style="tmpl.key"))
            for term in terms:
                console.print(Text(f"    {term}"), soft_wrap=True)


def _render_compile(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    _status_line(console, result)
    _field(console, "template", d.get("template", ""))
    for key in ("domain_ecl", "logical_ecl", "match_ecl", "mismatch_ecl"):
        _field(console, key, d.get(key, ""))


_OP_RENDERERS: dict[str, Any] = {
    "search": _render_search,
    "verify": _render_verify,
    "list_templates": _render_template_list,
    "show": _render_template_show,
    "compile": _render_compile,
}

_QUIET_LINES: dict[str, Any] = {
    "search": lambda d: d.get("concept_ids", []),
    "verify": lambda d: d.get("conforming", []),
    "list_templates": lambda d: d.get("templates", []),
    "show": lambda d: [d.get("name", "")],
    "compile": lambda d: [d.get("logical_ecl", "")],
}
