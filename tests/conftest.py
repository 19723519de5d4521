"""Pytest configuration helpers for the brew simulator project.

Conventions and fixtures
- `client` : TestClient for synchronous API tests.
- `patch` : general-purpose alias for pytest's `monkeypatch` fixture.
- `sleeper` / `instant_clock` : a simulation clock whose sleeps return
    immediately while recording the real-time seconds they would have waited.
- `run_parameters` : a valid default parameter bundle.
- `override_controller` : install a controller for the API dependency.
"""

from __future__ import annotations

import sys
from pathlib import Path


def _ensure_project_root_on_path() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_path()

from typing import List

import pytest
from fastapi.testclient import TestClient

from brew_sim.api import endpoints
from brew_sim.core.orchestrator import SimulationRunController
from brew_sim.core.timing import SimulationClock
from brew_sim.data_access.models import CoffeeType, GrindSize, RunParameters
from brew_sim.main import app


class RecordingSleeper:
    """Stand-in for ``asyncio.sleep`` that never blocks."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def client():
    """提供 TestClient 实例用于同步的接口测试。"""
    return TestClient(app)


@pytest.fixture
def patch(monkeypatch):
    """通用的 `monkeypatch` 别名。"""
    return monkeypatch


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def instant_clock(sleeper: RecordingSleeper) -> SimulationClock:
    return SimulationClock(sleeper=sleeper)


@pytest.fixture
def run_parameters() -> RunParameters:
    return RunParameters(
        time_scale=1,
        coffee_type=CoffeeType.ARABICA,
        coffee_grind_size=GrindSize.FINE,
        coffee_nominal_weight_g=20,
        water_nominal_volume_ml=36,
        water_nominal_temp_c=90,
        heat_source="electric",
        heat_power_w=1500,
    )


@pytest.fixture
def override_controller():
    """返回一个设置函数，用于在测试中替换接口层使用的运行控制器。

    测试结束时自动恢复原有的依赖覆盖。
    """

    original = dict(app.dependency_overrides)

    def _set(controller: SimulationRunController) -> SimulationRunController:
        app.dependency_overrides[endpoints.get_run_controller] = lambda: controller
        return controller

    yield _set

    app.dependency_overrides.clear()
    app.dependency_overrides.update(original)
