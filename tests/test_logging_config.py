import json
import logging
import sys

from conservation.logging_config import JSONFormatter, get_logger, setup_logging


def test_json_formatter_output() -> None:
    record = logging.LogRecord(
        "conservation.service", logging.WARNING, __file__, 1, "Cage %d rejected", (3,), None
    )
    record.context = {"cage_id": 3}
    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["logger"] == "conservation.service"
    assert data["message"] == "Cage 3 rejected"
    assert data["context"] == {"cage_id": 3}
    assert "timestamp" in data


def test_json_formatter_includes_exception() -> None:
    try:
        raise ValueError("bad capacity")
    except ValueError:
        record = logging.LogRecord("conservation", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    data = json.loads(JSONFormatter().format(record))
    assert "ValueError: bad capacity" in data["exception"]


def test_setup_logging_selects_formatter() -> None:
    package_logger = logging.getLogger("conservation")
    try:
        setup_logging("INFO", use_json_format=True)
        assert package_logger.level == logging.INFO
        assert len(package_logger.handlers) == 1
        assert isinstance(package_logger.handlers[0].formatter, JSONFormatter)

        setup_logging("debug")
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert not isinstance(package_logger.handlers[0].formatter, JSONFormatter)
    finally:
        setup_logging("WARNING")


def test_module_loggers_sit_under_package_logger() -> None:
    assert get_logger("conservation.service").parent is logging.getLogger("conservation")
