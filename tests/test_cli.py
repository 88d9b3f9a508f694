import os

import pytest

from webserve import cli


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.startswith("WEBSERVE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def test_defaults(tmp_path):
    config = cli.config_from_args([])
    assert config.port == 8080
    assert config.host == "127.0.0.1"
    assert config.root == tmp_path.resolve()
    assert not config.spa
    assert not config.watch
    assert config.reload_path == "/reload"


def test_flags(tmp_path):
    served = tmp_path / "public"
    served.mkdir()
    config = cli.config_from_args([
        "--dir", str(served), "--port", "3000", "--host", "0.0.0.0",
        "--spa", "--watch", "--debounce-ms", "50",
    ])
    assert config.root == served.resolve()
    assert config.port == 3000
    assert config.host == "0.0.0.0"
    assert config.spa and config.watch
    assert config.debounce_seconds == 0.05


def test_short_flags(tmp_path):
    config = cli.config_from_args(["-d", str(tmp_path), "-p", "9000", "-H", "::1", "-w"])
    assert config.port == 9000
    assert config.host == "::1"
    assert config.watch


def test_environment_supplies_defaults(monkeypatch):
    monkeypatch.setenv("WEBSERVE_PORT", "5000")
    monkeypatch.setenv("WEBSERVE_SPA", "true")
    config = cli.config_from_args(["--port", "6000"])
    assert config.port == 6000
    assert config.spa


def test_config_is_immutable():
    config = cli.config_from_args([])
    with pytest.raises(Exception):
        config.port = 1


def test_missing_directory_is_rejected(tmp_path, capsys):
    assert cli.main(["--dir", str(tmp_path / "nope")]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_main_runs_uvicorn(tmp_path, monkeypatch):
    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(cli.uvicorn, "run", fake_run)
    assert cli.main(["-d", str(tmp_path), "-p", "4000", "--spa"]) == 0
    assert calls["port"] == 4000
    assert calls["log_level"] == "info"
    assert calls["app"].state.config.spa


def test_unknown_log_level_is_rejected(tmp_path, capsys):
    assert cli.main(["-d", str(tmp_path), "--log-level", "LOUD"]) == 2
    assert "invalid configuration" in capsys.readouterr().err


def test_log_level_is_normalized(tmp_path):
    config = cli.config_from_args(["-d", str(tmp_path), "--log-level", "debug"])
    assert config.log_level == "DEBUG"
