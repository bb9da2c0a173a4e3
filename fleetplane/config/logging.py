"""Logging setup for the fleetplane CLI.

Library modules log through ``structlog.get_logger(__name__)`` and never
configure anything themselves. The CLI calls :func:`configure_logging` once
so that fleetplane events go to stderr and stdout stays free for reports.
"""

import logging
import sys

import structlog

LOGGER_NAME = "fleetplane"


def _render_chain(log_json: bool) -> list:
    if log_json:
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(sort_keys=True),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())]


def configure_logging(verbose: bool = False, log_json: bool = False) -> None:
    """Route fleetplane's structlog events to stderr.

    Args:
        verbose: Show DEBUG and INFO events (applied operations, written
            files). Otherwise only warnings such as empty selector matches.
        log_json: One JSON object per line instead of console output.
    """
    stamp = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            *stamp,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=stamp,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_render_chain(log_json),
        ],
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(LOGGER_NAME).setLevel(logging.DEBUG if verbose else logging.WARNING)
