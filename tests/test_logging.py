"""Tests for logging configuration."""

import json
import logging
import sys
from unittest.mock import patch

from s3vector_nodes.config import Environment, Settings
from s3vector_nodes.logging_config import (
    DevFormatter,
    JSONFormatter,
    get_logger,
    setup_logging,
)


def _record(
    msg: str = "Inserted 3 vectors",
    level: int = logging.INFO,
    name: str = "s3vector_nodes.vectorstore.service",
    exc_info: object = None,
) -> logging.LogRecord:
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="/app/service.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,  # type: ignore[arg-type]
    )


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_format_basic_message(self) -> None:
        """Basic log message is formatted as JSON."""
        data = json.loads(JSONFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "s3vector_nodes.vectorstore.service"
        assert data["message"] == "Inserted 3 vectors"
        assert data["file"] == "/app/service.py:42"
        assert "timestamp" in data

    def test_extra_fields_are_grouped(self) -> None:
        """Values passed through ``extra`` land under one key."""
        record = _record()
        record.index = "documents"
        record.batch = 2

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"index": "documents", "batch": 2}
        assert "index" not in data

    def test_no_extra_key_without_extras(self) -> None:
        data = json.loads(JSONFormatter().format(_record()))
        assert "extra" not in data

    def test_format_with_exception(self) -> None:
        """Exception info is included in output."""
        try:
            raise ValueError("bad embedding")
        except ValueError:
            exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))

        assert "ValueError" in data["exception"]


class TestDevFormatter:
    """Tests for development formatter."""

    def test_format_includes_level_and_name(self) -> None:
        output = DevFormatter().format(_record(msg="Item 1 failed", level=logging.WARNING))

        assert "WARNING" in output
        assert "s3vector_nodes.vectorstore.service" in output
        assert "Item 1 failed" in output


class TestSetupLogging:
    """Tests for logging setup."""

    def test_returns_root_logger(self) -> None:
        logger = setup_logging(level="INFO", json_output=False)
        assert logger is logging.getLogger()

    def test_uses_json_outside_development(self) -> None:
        """JSON output is used in production environment."""
        mock_settings = Settings(environment=Environment.PRODUCTION)

        with patch("s3vector_nodes.logging_config.get_settings", return_value=mock_settings):
            setup_logging()

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JSONFormatter)

    def test_uses_dev_formatter_in_development(self) -> None:
        mock_settings = Settings(environment=Environment.DEVELOPMENT)

        with patch("s3vector_nodes.logging_config.get_settings", return_value=mock_settings):
            setup_logging()

        root = logging.getLogger()
        assert isinstance(root.handlers[0].formatter, DevFormatter)

    def test_level_override(self) -> None:
        setup_logging(level="DEBUG", json_output=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_aws_loggers_quieted(self) -> None:
        """botocore and boto3 only log warnings and above."""
        setup_logging(level="DEBUG", json_output=False)

        for name in ("botocore", "boto3", "urllib3", "httpx"):
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    """Tests for named logger retrieval."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("s3vector_nodes.nodes.base")
        assert logger.name == "s3vector_nodes.nodes.base"

    def test_child_inherits_root_level(self) -> None:
        setup_logging(level="WARNING", json_output=False)
        child = get_logger("s3vector_nodes.ingestion")
        assert child.getEffectiveLevel() == logging.WARNING
