from __future__ import annotations

import pytest

from predictcore.main.app import create_app
from predictcore.main.config import AppSettings


@pytest.mark.asyncio
async def test_create_app_initializes_lifespan() -> None:
    app = create_app(AppSettings())

    assert app.title == "Prediction Core"
    paths = {getattr(route, "path", None) for route in app.routes}
    assert {"/health", "/predictions", "/predictions/batch", "/optimizer"} <= paths

    async with app.router.lifespan_context(app):
        assert app.state.started_at is not None
        assert app.state.container.model_registry().has_active is False
