from __future__ import annotations

import runpy


def test_main_module_runs_uvicorn(monkeypatch) -> None:
    executed = {}

    def fake_run(app, **kwargs) -> None:
        executed["app"] = app
        executed.update(kwargs)

    monkeypatch.setattr("uvicorn.run", fake_run)
    monkeypatch.setenv("SERVICE_PORT", "9100")

    runpy.run_module("predictcore.main.__main__", run_name="__main__")

    assert executed["app"] == "predictcore.main.app:create_app"
    assert executed["factory"] is True
    assert executed["port"] == 9100
