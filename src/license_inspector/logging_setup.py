"""Route license-inspector's structlog events through stdlib logging to stderr."""

from __future__ import annotations

import logging.config
import os

import structlog


def setup_logging(level: str | None = None) -> None:
    """Configure structlog for the command line.

    ``LICENSE_INSPECTOR_LOG_LEVEL`` sets the level (INFO by default) and
    ``LICENSE_INSPECTOR_LOG_FORMAT=json`` switches to one JSON object per line.
    Reports are echoed on stdout, so log output always goes to stderr.
    """
    log_level = (level or os.environ.get("LICENSE_INSPECTOR_LOG_LEVEL", "INFO")).upper()
    as_json = os.environ.get("LICENSE_INSPECTOR_LOG_FORMAT", "console").lower() == "json"

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
    ]
    if as_json:
        pre_chain.append(structlog.processors.TimeStamper(fmt="iso", utc=True))
    pre_chain.append(structlog.processors.format_exc_info)

    renderer: structlog.types.Processor
    if as_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "cli": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "cli",
                },
            },
            "loggers": {
                "license_inspector": {"handlers": ["stderr"], "level": log_level, "propagate": False},
                "urllib3": {"handlers": ["stderr"], "level": "WARNING", "propagate": False},
            },
        }
    )
