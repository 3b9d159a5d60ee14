import json
import logging
import sys

from catalog.config import Config
from catalog.logger import StructuredFormatter


def test_config_defaults(monkeypatch):
    """Test default values when the environment is empty"""
    for key in ("DEBUG", "LOG_LEVEL", "CONTENT_LOCALE", "DEFAULT_CURRENCY", "SENTRY_DSN", "EXPORT_DIR"):
        monkeypatch.delenv(key, raising=False)

    config = Config()

    assert config.DEBUG is False
    assert config.LOG_LEVEL == "INFO"
    assert config.CONTENT_LOCALE == "es_ES"
    assert config.DEFAULT_CURRENCY == "EUR"
    assert config.EXPORT_DIR == "config/data/amazon/exports"
    assert config.has_sentry is False


def test_config_environment(monkeypatch):
    monkeypatch.setenv("DEBUG", "True")
    monkeypatch.setenv("SENTRY_DSN", "https://key@sentry.example.com/1")
    monkeypatch.setenv("AFFILIATE_TAG", "tienda-21")

    config = Config()

    assert config.DEBUG is True
    assert config.has_sentry is True
    assert config.AFFILIATE_TAG == "tienda-21"


def test_config_module_instance():
    from catalog.config import config

    assert isinstance(config, Config)


def test_structured_formatter_merges_context():
    record = logging.LogRecord("catalog", logging.INFO, __file__, 10, "Import completed", None, None)
    record.context = {"asin": "B0X", "failed": 0}

    data = json.loads(StructuredFormatter().format(record))

    assert data["message"] == "Import completed"
    assert data["level"] == "INFO"
    assert data["asin"] == "B0X"
    assert data["failed"] == 0


def test_structured_formatter_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("catalog", logging.ERROR, __file__, 10, "failed", None, sys.exc_info())

    data = json.loads(StructuredFormatter().format(record))

    assert "ValueError: boom" in data["exception"]
