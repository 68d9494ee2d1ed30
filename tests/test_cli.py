import logging

import pytest
import requests

import unifi_updates.runner as runner
from unifi_updates import cli
from unifi_updates.config import AppConfig, LoggingConfig
from unifi_updates.models import HTML_SOURCE, SourceSpec

PAGE = """<html><body><h1>Updates</h1>
<table><tbody><tr><td>UniFi Protect</td><td>1.0</td><td>old</td><td>—</td></tr></tbody></table>
</body></html>"""

PROTECT_FEED = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<rss version="2.0"><channel><title>Feed</title>'
    "<item><title>UniFi Protect 5.0.34</title><link>https://community.ui.com/p</link>"
    "<description>Fixes</description></item></channel></rss>"
)


@pytest.fixture
def offline(monkeypatch):
    def fetch(url, timeout=None):
        if url == "https://feeds/protect":
            return PROTECT_FEED
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(runner, "fetch_text", fetch)


@pytest.fixture
def quiet_logging(monkeypatch):
    captured = {}

    def fake_configure(level, log_file=None):
        captured["level"] = level
        captured["file"] = log_file

    monkeypatch.setattr(cli, "configure_logging", fake_configure)
    return captured


def _app_config(**overrides):
    values = dict(
        products={"UniFi Protect": "https://feeds/protect"},
        news_sources=[SourceSpec(HTML_SOURCE, "https://blog.ui.com/")],
    )
    values.update(overrides)
    return AppConfig(**values)


def test_configure_logging_defaults_to_console_only():
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        cli.configure_logging("INFO")

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
        assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_with_log_file_creates_file_handler(tmp_path):
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        log_path = tmp_path / "logs" / "custom.log"
        cli.configure_logging("INFO", str(log_path))

        assert log_path.exists()
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("LOUD")


def test_main_once_refreshes_and_writes_output(
    monkeypatch, tmp_path, offline, quiet_logging, capsys
):
    page_file = tmp_path / "updates.html"
    page_file.write_text(PAGE, encoding="utf-8")
    output_file = tmp_path / "out" / "updates.html"
    monkeypatch.setattr(cli, "parse_app_config", lambda path: _app_config())

    exit_code = cli.main(
        ["--config", "c.xml", "--page", str(page_file), "--output", str(output_file), "--once"]
    )

    assert exit_code == 0
    written = output_file.read_text(encoding="utf-8")
    assert "5.0.34" in written
    assert "Unable to load news right now." in written
    assert page_file.read_text(encoding="utf-8") == PAGE
    assert "UniFi Protect: 5.0.34" in capsys.readouterr().out


def test_main_uses_config_page_and_logging(monkeypatch, tmp_path, offline, quiet_logging):
    page_file = tmp_path / "updates.html"
    page_file.write_text(PAGE, encoding="utf-8")
    monkeypatch.setattr(
        cli,
        "parse_app_config",
        lambda path: _app_config(
            page_file=str(page_file),
            logging=LoggingConfig(level="WARNING", file="config.log"),
        ),
    )

    exit_code = cli.main(["--config", "c.xml", "--once", "--log-level", "DEBUG"])

    assert exit_code == 0
    assert quiet_logging == {"level": "DEBUG", "file": "config.log"}
    assert "5.0.34" in page_file.read_text(encoding="utf-8")


def test_main_polls_until_interrupted(monkeypatch, tmp_path, offline, quiet_logging):
    page_file = tmp_path / "updates.html"
    page_file.write_text(PAGE, encoding="utf-8")
    monkeypatch.setattr(
        cli, "parse_app_config", lambda path: _app_config(interval_hours=2)
    )
    captured = {}

    class FakePoller:
        def __init__(self, refresh, interval_seconds):
            captured["interval"] = interval_seconds
            self.refresh = refresh

        def run(self):
            self.refresh()
            raise KeyboardInterrupt

        def stop(self):
            captured["stopped"] = True

    monkeypatch.setattr(cli, "Poller", FakePoller)
    monkeypatch.setattr(cli, "wire_manual_trigger", lambda poller: True)

    exit_code = cli.main(["--config", "c.xml", "--page", str(page_file)])

    assert exit_code == 0
    assert captured == {"interval": 7200, "stopped": True}
    assert "5.0.34" in page_file.read_text(encoding="utf-8")


def test_main_missing_page_returns_error(monkeypatch, tmp_path, quiet_logging):
    monkeypatch.setattr(cli, "parse_app_config", lambda path: _app_config())

    exit_code = cli.main(["--config", "c.xml", "--page", str(tmp_path / "nope.html")])

    assert exit_code == 1


def test_main_without_page_is_usage_error(quiet_logging):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--once"])

    assert excinfo.value.code == 2


def test_wire_manual_trigger_routes_signal(monkeypatch):
    if not hasattr(cli.signal, "SIGUSR1"):
        pytest.skip("SIGUSR1 not available on this platform")
    registered = {}
    monkeypatch.setattr(
        cli.signal, "signal", lambda signum, handler: registered.update({signum: handler})
    )
    triggered = []
    poller = type("P", (), {"trigger": lambda self: triggered.append(True)})()

    assert cli.wire_manual_trigger(poller) is True

    registered[cli.signal.SIGUSR1](cli.signal.SIGUSR1, None)
    assert triggered == [True]


def test_main_writes_in_flight_status_before_fetching(
    monkeypatch, tmp_path, quiet_logging
):
    page_file = tmp_path / "updates.html"
    page_file.write_text(PAGE, encoding="utf-8")
    monkeypatch.setattr(cli, "parse_app_config", lambda path: _app_config())
    seen_on_disk = []

    def fetch(url, timeout=None):
        seen_on_disk.append(page_file.read_text(encoding="utf-8"))
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(runner, "fetch_text", fetch)

    exit_code = cli.main(["--config", "c.xml", "--page", str(page_file), "--once"])

    assert exit_code == 0
    assert "Refreshing release data…" in seen_on_disk[0]
    assert "Last refreshed" in page_file.read_text(encoding="utf-8")
