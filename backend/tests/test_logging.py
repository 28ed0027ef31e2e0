"""
Tests for structured log output.
"""

import json
import logging

import structlog

from eventhub.core.config import Settings
from eventhub.core.logging import get_logger, setup_logging


def test_production_logs_are_json_with_service_fields(capsys):
    """Each production record is one JSON object stamped with service and environment."""
    setup_logging(Settings(ENVIRONMENT="production", APP_NAME="Registration Test", LOG_LEVEL="INFO"))
    try:
        with structlog.contextvars.bound_contextvars(request_id="req-1"):
            get_logger("tests.logging").info("event_created", event_id="evt-1")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["event"] == "event_created"
        assert record["event_id"] == "evt-1"
        assert record["request_id"] == "req-1"
        assert record["service"] == "Registration Test"
        assert record["environment"] == "production"
        assert record["level"] == "info"
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
                root_logger.removeHandler(handler)
        structlog.reset_defaults()
