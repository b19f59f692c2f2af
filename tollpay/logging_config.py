# tollpay/logging_config.py
"""
Structured logging setup.

Every module logs through ``structlog.get_logger(__name__)``; this wires
structlog on top of the standard library root logger so uvicorn's own
records and ours end up on the same stream.
"""
import logging
import sys

import structlog

from tollpay import config


def setup_logging(level=None, json_logs=None):
    """
    Configure structlog and the root logger.

    Args:
        level: Log level name, defaults to TOLLPAY_LOG_LEVEL
        json_logs: Render JSON lines instead of console output,
            defaults to TOLLPAY_LOG_JSON
    """
    level = (level or config.LOG_LEVEL).upper()
    json_logs = config.LOG_JSON if json_logs is None else json_logs

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level, logging.INFO))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
