"""
Tests for startup configuration, logging setup and the CLI entry point.
"""

import io
import json
import logging
from unittest.mock import patch

import pytest

from misp_bridge.__main__ import main
from misp_bridge.config import DEFAULT_TIMEOUT_SEC, ConfigError, MispConfig, load_config
from misp_bridge.core import configure_logging, get_logger


BASE_ENV = {"MISP_URL": "https://misp.local/", "MISP_API_KEY": "secret-key"}


class TestLoadConfig:
    def test_defaults(self):
        config = load_config(env=BASE_ENV)
        assert config.url == "https://misp.local"
        assert config.api_key == "secret-key"
        assert config.verify_ssl is True
        assert config.timeout == DEFAULT_TIMEOUT_SEC
        assert config.log_level == "INFO"
        assert config.log_format == "console"

    def test_missing_url(self):
        with pytest.raises(ConfigError, match="MISP_URL"):
            load_config(env={"MISP_API_KEY": "k"})

    def test_missing_api_key(self):
        with pytest.raises(ConfigError, match="MISP_API_KEY"):
            load_config(env={"MISP_URL": "https://misp.local"})

    def test_blank_values_are_missing(self):
        with pytest.raises(ConfigError):
            load_config(env={"MISP_URL": "  ", "MISP_API_KEY": "k"})

    @pytest.mark.parametrize("raw,expected", [
        ("false", False),
        ("FALSE", False),
        ("true", True),
        ("0", True),
    ])
    def test_verify_ssl(self, raw, expected):
        config = load_config(env={**BASE_ENV, "MISP_VERIFY_SSL": raw})
        assert config.verify_ssl is expected

    def test_timeout_seconds(self):
        assert load_config(env={**BASE_ENV, "MISP_TIMEOUT": "2.5"}).timeout == 2.5

    @pytest.mark.parametrize("raw", ["soon", "0", "-1"])
    def test_bad_timeout(self, raw):
        with pytest.raises(ConfigError):
            load_config(env={**BASE_ENV, "MISP_TIMEOUT": raw})

    def test_log_settings(self):
        config = load_config(env={**BASE_ENV, "MISP_LOG_LEVEL": "debug", "MISP_LOG_FORMAT": "JSON"})
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_bad_log_format(self):
        with pytest.raises(ConfigError):
            load_config(env={**BASE_ENV, "MISP_LOG_FORMAT": "xml"})

    def test_dotenv_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("MISP_URL", raising=False)
        monkeypatch.delenv("MISP_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("MISP_URL=https://from-file.local\nMISP_API_KEY=file-key\n")

        config = load_config(dotenv_path=str(env_file))
        assert config.url == "https://from-file.local"
        assert config.api_key == "file-key"

    def test_repr_hides_api_key(self):
        config = MispConfig(url="https://misp.local", api_key="super-secret")
        assert "super-secret" not in repr(config)

    def test_config_is_frozen(self):
        config = MispConfig(url="https://misp.local", api_key="k")
        with pytest.raises(Exception):
            config.url = "https://other"


class TestLogging:
    def test_json_output(self):
        stream = io.StringIO()
        configure_logging("INFO", "json", stream=stream)

        get_logger("misp_bridge.test").info("tool_invoked", tool="misp_get_event")
        logging.getLogger("misp_bridge.stdlib").warning("plain %s", "message")

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[0]["event"] == "tool_invoked"
        assert lines[0]["tool"] == "misp_get_event"
        assert lines[0]["level"] == "info"
        assert lines[1]["event"] == "plain message"
        assert lines[1]["level"] == "warning"

    def test_level_filters(self):
        stream = io.StringIO()
        configure_logging("WARNING", "console", stream=stream)
        logging.getLogger("misp_bridge.test").info("hidden")
        assert "hidden" not in stream.getvalue()

    def test_reconfigure_replaces_handler(self):
        configure_logging("INFO", "console", stream=io.StringIO())
        configure_logging("INFO", "console", stream=io.StringIO())
        ours = [h for h in logging.getLogger().handlers if getattr(h, "_misp_bridge", False)]
        assert len(ours) == 1

    def test_httpx_quieted(self):
        configure_logging("DEBUG", "console", stream=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING


class TestMain:
    def test_missing_config_exits_2(self, monkeypatch, capsys, tmp_path):
        monkeypatch.delenv("MISP_URL", raising=False)
        monkeypatch.delenv("MISP_API_KEY", raising=False)
        empty = tmp_path / ".env"
        empty.write_text("")

        assert main(["--env-file", str(empty)]) == 2
        assert "MISP_URL" in capsys.readouterr().err

    def test_list_tools(self, monkeypatch, capsys):
        monkeypatch.setenv("MISP_URL", "https://misp.local")
        monkeypatch.setenv("MISP_API_KEY", "k")

        assert main(["--list-tools"]) == 0
        names = capsys.readouterr().out.split()
        assert "misp_search_events" in names
        assert "misp_check_warninglists" in names

    def test_serves_api(self, monkeypatch):
        monkeypatch.setenv("MISP_URL", "https://misp.local")
        monkeypatch.setenv("MISP_API_KEY", "k")
        monkeypatch.setenv("MISP_LOG_LEVEL", "WARNING")

        with patch("misp_bridge.api.main.start_api_server") as start, \
                patch("misp_bridge.api.tool_routes.set_client") as set_client:
            assert main(["--host", "0.0.0.0", "--port", "9001"]) == 0

        start.assert_called_once_with("0.0.0.0", 9001, log_level="WARNING")
        client = set_client.call_args.args[0]
        assert client.config.url == "https://misp.local"
