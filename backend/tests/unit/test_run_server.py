import pytest

import run_server


def test_single_worker_by_default(monkeypatch):
    monkeypatch.delenv("WEB_WORKERS", raising=False)
    monkeypatch.setattr("settings.CHANGE_FEED_POLL_SECONDS", 0)
    assert run_server.worker_count() == 1


def test_multiple_workers_need_feed_polling(monkeypatch):
    monkeypatch.setenv("WEB_WORKERS", "4")
    monkeypatch.setattr("settings.CHANGE_FEED_POLL_SECONDS", 0)

    with pytest.raises(SystemExit, match="CHANGE_FEED_POLL_SECONDS"):
        run_server.worker_count()

    monkeypatch.setattr("settings.CHANGE_FEED_POLL_SECONDS", 2.0)
    assert run_server.worker_count() == 4
