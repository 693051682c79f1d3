"""Tests for the reminder, condition and main CLI handlers."""

import io
import sys

import pytest

from teleworker.conditions import sentiment
from teleworker.conditions.condition_cmd import run_condition_command
from teleworker.scheduling.reminder_cmd import run_reminder_command
from teleworker.scheduling.reminders import list_reminders


def _capture_stdout(fn, *args):
    old = sys.stdout
    sys.stdout = buf = io.StringIO()
    try:
        fn(*args)
    finally:
        sys.stdout = old
    return buf.getvalue()


def _add(*extra):
    return _capture_stdout(
        run_reminder_command,
        ["add", "-n", "standup", "-m", "Standup in 5", "--to", "111", "222", *extra],
    )


def test_reminder_add_and_list(data_dir):
    output = _add("--when", "55 1 * * 1-5")
    assert "scheduled" in output
    assert "standup" in output

    output = _capture_stdout(run_reminder_command, ["list"])
    assert "55 1 * * 1-5" in output
    assert "next " in output

    (reminder,) = list_reminders()
    assert reminder.recipient_list == ["111", "222"]


def test_reminder_add_with_condition_and_ring(data_dir):
    _add("--when", "0 * * * *", "--condition", "/condition/extreme", "--ring")

    output = _capture_stdout(run_reminder_command, ["list"])

    assert "[ring, if /condition/extreme]" in output


def test_reminder_add_invalid_schedule(data_dir):
    with pytest.raises(SystemExit):
        _add("--when", "someday")

    assert list_reminders() == []


def test_reminder_cancel(data_dir):
    output = _add("--when", "P1M@2025-01-01T09:00")
    reminder_id = output.split()[1].rstrip(":")

    output = _capture_stdout(run_reminder_command, ["cancel", reminder_id])
    assert "cancelled" in output

    output = _capture_stdout(run_reminder_command, ["list"])
    assert "no reminders" in output


def test_reminder_cancel_unknown(data_dir):
    with pytest.raises(SystemExit):
        _capture_stdout(run_reminder_command, ["cancel", "nope"])


def test_reminder_pause_and_resume(data_dir):
    output = _add("--when", "0 9 * * *")
    reminder_id = output.split()[1].rstrip(":")

    _capture_stdout(run_reminder_command, ["pause", reminder_id])
    assert list_reminders()[0].active is False
    assert "paused" in _capture_stdout(run_reminder_command, ["list"])

    _capture_stdout(run_reminder_command, ["resume", reminder_id])
    assert list_reminders()[0].active is True


def test_reminder_list_shows_stalled_interval(data_dir):
    _add("--when", "P1D@2020-01-01")

    output = _capture_stdout(run_reminder_command, ["list"])

    assert "stalled" in output


def test_reminder_list_pending_one_shot(data_dir):
    _add("--when", "2020-01-01T00:00:00Z")

    output = _capture_stdout(run_reminder_command, ["list"])

    # never fired, still pending despite being in the past
    assert "next 2020-01-01" in output


def test_condition_list(data_dir):
    output = _capture_stdout(run_condition_command, [])

    assert "/condition/extreme" in output
    assert "/condition/monthly-meeting" in output


def test_condition_check(monkeypatch):
    async def fake(session):
        return sentiment.FearGreed(value=90, classification="Extreme Greed")

    monkeypatch.setattr(sentiment, "fetch_fear_greed", fake)

    output = _capture_stdout(run_condition_command, ["/condition/extreme"])

    assert output.splitlines()[0] == "1"
    assert "action: selling" in output


def test_main_help(monkeypatch):
    from teleworker import main as main_mod

    monkeypatch.setattr(sys, "argv", ["teleworker", "help"])

    output = _capture_stdout(main_mod.main)

    assert "teleworker reminder add" in output


def test_main_unknown_command(monkeypatch):
    from teleworker import main as main_mod

    monkeypatch.setattr(sys, "argv", ["teleworker", "bogus"])

    with pytest.raises(SystemExit):
        main_mod.main()


def test_main_run_is_not_a_subcommand(monkeypatch):
    from teleworker import main as main_mod

    monkeypatch.setattr(sys, "argv", ["teleworker", "run"])

    assert main_mod._dispatch_subcommand() is False
