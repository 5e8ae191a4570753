"""Tests for the command-line front end."""

import io
import logging

import pytest

from countdown import cli


@pytest.fixture
def launched(monkeypatch):
    calls = []

    def fake_run(settings, resolution):
        calls.append((settings, resolution))
        return 0

    monkeypatch.setattr("countdown.ui.run", fake_run)
    monkeypatch.setattr("countdown.cli.require_tools", lambda color: None)
    monkeypatch.setattr("sys.stdin", io.StringIO())
    return calls


def test_no_duration_prints_usage(launched, caplog):
    assert cli.main([]) == 1
    assert "Usage: countdown [DURATION] [OPTIONS]" in caplog.text
    assert launched == []


def test_invalid_duration(launched, caplog):
    assert cli.main(["not-a-duration"]) == 1
    assert "Invalid time." in caplog.text


def test_invalid_until(launched, caplog):
    assert cli.main(["--until=notatime"]) == 1
    assert "Invalid --until value" in caplog.text


def test_too_many_positionals_is_usage_error(launched):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["5", "extra"])
    assert excinfo.value.code == 2


def test_bad_throttle_is_usage_error(launched):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["5", "--throttle=fast"])
    assert excinfo.value.code == 2


def test_flags_reach_settings(launched):
    code = cli.main(
        ["PT2S", "-o", "--throttle=off", "--nosound", "-T", "-f", "term", "-m", "All done", "-d", "true", "-y"]
    )
    assert code == 0
    settings, resolution = launched[0]
    assert settings.mode == "overwrite"
    assert settings.throttle == 0.0
    assert settings.sound is False
    assert settings.title is False
    assert settings.font == "term"
    assert settings.message == "All done"
    assert settings.done_cmd == "true"
    assert settings.assume_yes is True
    assert settings.interactive is False


def test_headless_output_drops_center_and_color(launched, caplog, monkeypatch):
    monkeypatch.setattr("countdown.cli.is_headless", lambda stream: True)
    cli.main(["0"])
    settings, _ = launched[0]
    assert settings.center is False
    assert settings.color is False
    assert "running in headless mode: centering and colors ignored" in caplog.text


def test_duration_and_until_note(launched, caplog):
    caplog.set_level(logging.INFO)
    cli.main(["1", "--until=2099-01-01T00:00"])
    assert "Note: both duration ('1') and --until given; using --until." in caplog.text


def test_missing_dependencies(monkeypatch, caplog):
    monkeypatch.setattr("sys.stdin", io.StringIO())
    monkeypatch.setattr("countdown.render.shutil.which", lambda name: None)
    assert cli.main(["5", "--no-color"]) == 1
    assert "Missing dependencies: toilet" in caplog.text
    assert "sudo apt install toilet" in caplog.text


def test_print_config(launched, capsys):
    assert cli.main(["--print-config", "--clear", "--left"]) == 0
    out = capsys.readouterr().out
    assert "mode=clear" in out
    assert "center=false" in out
    assert launched == []
