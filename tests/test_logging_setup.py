import json
import logging

import pytest
import structlog

from license_inspector.logging_setup import setup_logging


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    for name in ("license_inspector", "urllib3"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
    structlog.reset_defaults()


def test_json_events_go_to_stderr(monkeypatch, capsys):
    monkeypatch.setenv("LICENSE_INSPECTOR_LOG_FORMAT", "json")
    setup_logging("debug")

    structlog.get_logger("license_inspector.scanner").info("scan.completed", artifacts=3)

    captured = capsys.readouterr()
    assert captured.out == ""
    event = json.loads(captured.err.strip().splitlines()[-1])
    assert event["event"] == "scan.completed"
    assert event["artifacts"] == 3
    assert event["level"] == "info"
    assert event["logger"] == "license_inspector.scanner"
    assert "timestamp" in event


def test_level_filters_console_output(monkeypatch, capsys):
    monkeypatch.delenv("LICENSE_INSPECTOR_LOG_FORMAT", raising=False)
    setup_logging("warning")
    log = structlog.get_logger("license_inspector.remote_cache")

    log.info("github.lookup")
    log.warning("github.rate_floor", remaining=12)

    err = capsys.readouterr().err
    assert "github.lookup" not in err
    assert "github.rate_floor" in err
    assert "remaining=12" in err
