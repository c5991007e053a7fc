import os
import runpy

import uvicorn

BACKEND = os.path.dirname(os.path.dirname(__file__))


def test_runner_starts_uvicorn_with_app(monkeypatch, tmp_path):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs)))
    monkeypatch.setenv("PORT", "9123")
    monkeypatch.chdir(tmp_path)

    runpy.run_path(os.path.join(BACKEND, "run.py"), run_name="__main__")

    assert len(calls) == 1
    target, kwargs = calls[0]
    assert target == "app.main:app"
    assert kwargs["port"] == 9123
    assert kwargs["reload"] is False
