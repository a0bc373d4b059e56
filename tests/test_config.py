# tests/test_config.py
import logging
import io
from pathlib import Path

import pytest

from echoping.core.config import Config, LoggingConfig
from echoping.core.errors import ConfigError
from echoping.core.logger import get_logger, setup_logging

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "config.toml.example"


def test_defaults():
    cfg = Config.default()
    assert cfg.probe.timeout == 3.0
    assert cfg.probe.interval == 1.5
    assert cfg.probe.payload == "Hi-Pinging"
    assert cfg.probe.count is None
    assert cfg.validate()


def test_example_config_loads():
    cfg = Config.from_file(EXAMPLE_CONFIG)
    assert cfg.probe.timeout == 3.0
    assert cfg.logging.level == "INFO"
    assert cfg.monitoring.webhook_enabled is False
    assert cfg.validate()


def test_partial_file_keeps_defaults(tmp_path):
    path = tmp_path / "echoping.toml"
    path.write_text("[probe]\ncount = 4\n")
    cfg = Config.from_file(path)
    assert cfg.probe.count == 4
    assert cfg.probe.timeout == 3.0
    assert cfg.logging.backup_count == 5


def test_unknown_key_rejected(tmp_path):
    path = tmp_path / "echoping.toml"
    path.write_text("[probe]\nttl = 4\n")
    with pytest.raises(ConfigError):
        Config.from_file(path)


def test_malformed_file_rejected(tmp_path):
    path = tmp_path / "echoping.toml"
    path.write_text("[probe\ntimeout = ")
    with pytest.raises(ConfigError):
        Config.from_file(path)


def test_missing_file_rejected(tmp_path):
    with pytest.raises(ConfigError):
        Config.from_file(tmp_path / "missing.toml")


def test_overrides_ignore_none():
    cfg = Config.default().with_overrides(count=3, timeout=None, interval=0.2)
    assert cfg.probe.count == 3
    assert cfg.probe.timeout == 3.0
    assert cfg.probe.interval == 0.2


@pytest.mark.parametrize("overrides", [
    {"timeout": 0},
    {"interval": -1},
    {"count": 0},
    {"payload": "x" * 70000},
])
def test_invalid_probe_values(overrides):
    with pytest.raises(ConfigError):
        Config.default().with_overrides(**overrides).validate()


def test_invalid_log_level():
    cfg = Config.default()
    cfg.logging.level = "LOUD"
    with pytest.raises(ConfigError):
        cfg.validate()


def test_webhook_requires_url():
    cfg = Config.default()
    cfg.monitoring.webhook_enabled = True
    with pytest.raises(ConfigError):
        cfg.validate()


def test_setup_logging_with_file(tmp_path):
    log_file = tmp_path / "logs" / "echoping.log"
    setup_logging(LoggingConfig(file=str(log_file)))
    try:
        get_logger("test").info("hello file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello file" in log_file.read_text()
        assert get_logger("test").name == "echoping.test"
    finally:
        for handler in logging.getLogger().handlers:
            handler.close()


def test_setup_logging_writes_to_given_stream():
    stream = io.StringIO()
    setup_logging(LoggingConfig(), stream=stream)
    get_logger("test").info("to the stream")
    assert "echoping.test - INFO - to the stream" in stream.getvalue()


def test_verbose_lowers_only_echoping_logger():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="INFO"), verbose=True, stream=stream)

    assert logging.getLogger().level == logging.INFO
    assert logging.getLogger("echoping").level == logging.DEBUG

    get_logger("test").debug("own detail")
    logging.getLogger("thirdparty").debug("library detail")
    assert "own detail" in stream.getvalue()
    assert "library detail" not in stream.getvalue()


def test_configured_level_applies_without_verbose():
    stream = io.StringIO()
    setup_logging(LoggingConfig(level="WARNING"), stream=stream)
    get_logger("test").info("quiet")
    assert logging.getLogger("echoping").level == logging.WARNING
    assert stream.getvalue() == ""
