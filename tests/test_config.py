"""
Configuration Tests
===================

Tests for settings defaults, YAML loading and environment overrides.
"""

import pytest
from pydantic import ValidationError

from printsocket.config import Settings, load_config
from printsocket.main import create_printer_sink, parse_args
from printsocket.printing import CupsPrinterSink, MockPrinterSink


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    """Run each test away from any real config.yaml or PRINTSOCKET_* variables."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in (
        "PRINTSOCKET_HOST",
        "PRINTSOCKET_PORT",
        "PRINTSOCKET_MAX_SESSIONS",
        "PRINTSOCKET_MAX_MESSAGE_BYTES",
        "PRINTSOCKET_RECEIVE_TIMEOUT",
        "PRINTSOCKET_PRINTER_BACKEND",
        "PRINTSOCKET_PRINT_TIMEOUT",
        "PRINTSOCKET_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Tests for configuration loading."""

    def test_defaults(self):
        settings = load_config()

        assert settings.server.host == "localhost"
        assert settings.server.port == 8080
        assert settings.server.max_sessions == 0
        assert settings.session.max_message_bytes == 16 * 1024 * 1024
        assert settings.printer.backend == "cups"
        assert settings.printer.fit == "stretch"
        assert settings.feedback.report_rejections is False
        assert settings.feedback.report_print_errors is False

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text(
            "server:\n  port: 9001\n"
            "printer:\n  backend: mock\n  fit: contain\n"
            "feedback:\n  report_rejections: true\n"
        )

        settings = load_config(str(path))

        assert settings.server.port == 9001
        assert settings.printer.backend == "mock"
        assert settings.printer.fit == "contain"
        assert settings.feedback.report_rejections is True

    def test_config_yaml_in_working_directory(self, tmp_path):
        (tmp_path / "config.yaml").write_text("session:\n  receive_timeout_seconds: 30\n")
        assert load_config().session.receive_timeout_seconds == 30.0

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("server:\n  port: 9001\n")
        monkeypatch.setenv("PRINTSOCKET_PORT", "9100")
        monkeypatch.setenv("PRINTSOCKET_MAX_MESSAGE_BYTES", "2048")
        monkeypatch.setenv("PRINTSOCKET_PRINTER_BACKEND", "mock")
        monkeypatch.setenv("PRINTSOCKET_LOG_LEVEL", "DEBUG")

        settings = load_config(str(path))

        assert settings.server.port == 9100
        assert settings.session.max_message_bytes == 2048
        assert settings.printer.backend == "mock"
        assert settings.logging.level == "DEBUG"

    def test_invalid_values_are_rejected(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"printer": {"backend": "laser"}})
        with pytest.raises(ValidationError):
            Settings.model_validate({"session": {"max_message_bytes": 0}})


class TestEntryPoint:
    """Tests for CLI parsing and component wiring."""

    def test_parse_args(self):
        args = parse_args(["--config", "c.yaml", "--port", "9000", "--log-level", "DEBUG"])

        assert args.config == "c.yaml"
        assert args.port == 9000
        assert args.host is None
        assert args.log_level == "DEBUG"

    def test_printer_backend_selection(self):
        cups = Settings.model_validate({"printer": {"backend": "cups"}})
        mock = Settings.model_validate({"printer": {"backend": "mock"}})

        assert isinstance(create_printer_sink(cups), CupsPrinterSink)
        assert isinstance(create_printer_sink(mock), MockPrinterSink)
