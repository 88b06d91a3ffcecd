"""Tests for the ``python -m taskmanager`` runner."""

from taskmanager import __main__ as entrypoint
from taskmanager.config import settings


def test_main_serves_app_with_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    entrypoint.main()

    assert calls == [
        ("taskmanager.main:app", {"host": settings.host, "port": settings.port, "log_config": None}),
    ]
