import json
import logging

import pytest
import structlog

from app.config import settings
from app.infrastructure.observability.logging import log_evaluation, setup_logging


@pytest.fixture
def json_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    setup_logging("INFO")
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_log_lines_are_json_with_service_context(json_logging, caplog):
    caplog.set_level(logging.INFO)

    log_evaluation("evaluation", "E-1", 12.5, application_type="NEW", outcome="evaluated")

    entry = json.loads(caplog.records[-1].getMessage())
    assert entry["event"] == "Evaluation stage completed"
    assert entry["service"] == settings.SERVICE_NAME
    assert entry["environment"] == settings.environment
    assert entry["level"] == "info"
    assert entry["duration_ms"] == 12.5
    assert entry["application_type"] == "NEW"
    assert "timestamp" in entry
