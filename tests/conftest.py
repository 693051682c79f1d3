"""Shared fixtures for teleworker tests."""

import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "test-token")
os.environ["TELEWORKER_TIMEZONE"] = "Asia/Jakarta"
os.environ["TELEWORKER_CRON_TIMEZONE"] = "UTC"

import pytest


@pytest.fixture()
def data_dir(tmp_path, monkeypatch):
    """Redirect all data file paths to a temp directory."""
    import teleworker.conditions.prayer as prayer_mod
    import teleworker.scheduling.reminders as reminders_mod
    import teleworker.storage as storage_mod

    state_dir = tmp_path / "state"
    monkeypatch.setattr(storage_mod, "DATA_DIR", tmp_path)
    monkeypatch.setattr(storage_mod, "STATE_DIR", state_dir)
    monkeypatch.setattr(reminders_mod, "REMINDERS_DIR", tmp_path / "reminders")
    monkeypatch.setattr(prayer_mod, "CACHE_FILE", state_dir / "prayer_times.json")
    return tmp_path
