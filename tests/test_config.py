import json
import logging

import pytest

from http_activity_indicator import main as main_module
from http_activity_indicator.core.config import load_settings
from http_activity_indicator.core.logging_config import RequestIdFilter, get_logging_config
from http_activity_indicator.core.types import IndicatorTimings


def _write(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_without_config_file(tmp_path):
    settings = load_settings(str(tmp_path / "missing.json"))
    assert settings["indicator"] == {"debounce_delay_ms": 0, "min_duration_ms": 0, "extra_duration_ms": 0}
    assert settings["auth_keys"] == []
    assert settings["upstream"]["base_url"] is None


def test_user_config_is_merged_over_defaults(tmp_path):
    path = _write(tmp_path, {
        "server": {"port": "9000"},
        "auth_keys": "secret",
        "indicator": {"debounce_delay_ms": 150, "min_duration_ms": 500},
        "filters": {"methods": ["OPTIONS"], "included_url_patterns": "/api"},
        "upstream": {"base_url": "http://backend:8080", "timeouts": {"read": 5}},
    })
    settings = load_settings(path)

    assert settings["server"] == {"host": "0.0.0.0", "port": 9000}
    assert settings["auth_keys"] == ["secret"]
    assert settings["indicator"]["debounce_delay_ms"] == 150
    assert settings["indicator"]["extra_duration_ms"] == 0
    assert settings["filters"]["methods"] == ["OPTIONS"]
    assert settings["filters"]["included_url_patterns"] == ["/api"]
    # untouched filter keys keep their defaults
    assert settings["filters"]["url_patterns"]
    assert settings["upstream"]["timeouts"] == {"connect": 10, "read": 5}

    timings = IndicatorTimings.from_settings(settings["indicator"])
    assert timings == IndicatorTimings(debounce_delay=150, min_duration=500, extra_duration=0)


def test_negative_duration_is_rejected(tmp_path):
    path = _write(tmp_path, {"indicator": {"extra_duration_ms": -5}})
    with pytest.raises(ValueError, match="extra_duration_ms"):
        load_settings(path)


def test_request_id_filter_outside_request():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    assert RequestIdFilter().filter(record)
    assert record.request_id == "-"


def test_logging_config_uses_requested_level():
    config = get_logging_config("debug")
    assert config["loggers"]["http_activity_indicator"]["level"] == "DEBUG"
    assert config["handlers"]["default"]["filters"] == ["request_id_filter"]


@pytest.mark.parametrize("argv", [["-c", "CONFIG"], ["run", "-c", "CONFIG", "--port", "7000"]])
def test_run_starts_uvicorn_with_settings(tmp_path, monkeypatch, argv):
    path = _write(tmp_path, {"server": {"host": "127.0.0.1", "port": 8123}, "log_level": "warning"})
    calls = []
    monkeypatch.setattr(main_module.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setattr(main_module.logging.config, "dictConfig", lambda config: None)

    main_module.run([path if a == "CONFIG" else a for a in argv])

    app, kwargs = calls[0]
    assert kwargs["host"] == "127.0.0.1"
    assert kwargs["port"] == (7000 if "--port" in argv else 8123)
    assert kwargs["log_config"]["loggers"]["http_activity_indicator"]["level"] == "WARNING"
    assert app.state.settings["log_level"] == "warning"
