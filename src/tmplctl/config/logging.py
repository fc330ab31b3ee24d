"""structlog setup for tmplctl.

Logs go to stderr so stdout stays clean for results. ``--log-json``
switches the renderer to JSON lines. Every event logged while a search
or verify call runs carries that call's ``template`` and ``branch``
(see :func:`search_log_context`).

Compiled ECL and concept id lists can run to many kilobytes. The console
renderer clips them; JSON output keeps them whole for machine consumers.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import structlog

ECL_KEYS = frozenset({"ecl", "domain_ecl", "logical_ecl"})
MAX_ECL_CHARS = 300
MAX_LISTED_IDS = 20


@contextmanager
def search_log_context(template: str, branch: str) -> Iterator[None]:
    """Bind *template* and *branch* to every log event inside the block."""
    with structlog.contextvars.bound_contextvars(template=template, branch=branch):
        yield


def clip_long_values(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Shorten ECL strings and concept id lists for console output."""
    for key, value in event_dict.items():
        if key in ECL_KEYS and isinstance(value, str) and len(value) > MAX_ECL_CHARS:
            event_dict[key] = f"{value[:MAX_ECL_CHARS]}... ({len(value)} chars)"
        elif key == "concept_ids" and isinstance(value, list) and len(value) > MAX_LISTED_IDS:
            hidden = len(value) - MAX_LISTED_IDS
            event_dict[key] = [*value[:MAX_LISTED_IDS], f"... (+{hidden} more)"]
    return event_dict


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        verbose: DEBUG for tmplctl loggers (WARNING otherwise).
        log_json: Render JSON lines instead of the console format.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    render_chain: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        render_chain.append(structlog.processors.JSONRenderer())
    else:
        render_chain += [
            clip_long_values,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors, processors=render_chain
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("tmplctl").setLevel(level)
    # requests/urllib3 log every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
