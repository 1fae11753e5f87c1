"""Tests for the JSON logger and its bound context."""

import io
import json
import uuid
from decimal import Decimal

import pytest

from commission_engine.logger import StructuredLogger


@pytest.fixture
def stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def log(stream, tmp_path) -> StructuredLogger:
    return StructuredLogger(
        name=f"logger-test-{uuid.uuid4().hex}",
        stream=stream,
        log_file=str(tmp_path / "engine.log"),
    )


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_plain_line_has_no_context(log, stream) -> None:
    log.info("Cache cleared: %d entries", 3)

    (line,) = _lines(stream)
    assert line["level"] == "INFO"
    assert line["message"] == "Cache cleared: 3 entries"
    assert "context" not in line


def test_bound_context_is_attached_to_every_line(log, stream) -> None:
    cycle_log = log.bind(cycle_id="3f9a1c2b7d4e", user_id="admin-1")
    cycle_log.info("Bonus cycle paid", extra={"total": Decimal("400.00")})
    cycle_log.warning("Late employee skipped")

    first, second = _lines(stream)
    assert first["context"] == {"cycle_id": "3f9a1c2b7d4e", "user_id": "admin-1", "total": "400.00"}
    assert second["level"] == "WARNING"
    assert second["context"]["cycle_id"] == "3f9a1c2b7d4e"


def test_bind_leaves_the_parent_untouched(log, stream) -> None:
    child = log.bind(cycle_id="abc").bind(step="mark")
    assert child.context == {"cycle_id": "abc", "step": "mark"}
    assert log.context == {}

    log.info("unbound")
    assert "context" not in _lines(stream)[0]


def test_exception_is_rendered(log, stream) -> None:
    try:
        raise ValueError("bad row")
    except ValueError:
        log.error("Row rejected", exc_info=True)

    (line,) = _lines(stream)
    assert "ValueError: bad row" in line["exception"]


def test_file_handler_receives_the_same_lines(log, tmp_path) -> None:
    log.info("to disk")
    for handler in log.logger.handlers:
        handler.flush()
    content = (tmp_path / "engine.log").read_text(encoding="utf-8")
    assert json.loads(content.splitlines()[0])["message"] == "to disk"
