"""
Shared test fixtures for HomeSphere tests.

Provides a controllable clock, a small populated household and a FastAPI
TestClient bound to it. All HOMESPHERE_ env vars are cleaned before each
test to ensure isolation.

CHANGELOG:
- 2026-10-12: Add API client fixture (STORY-014)
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from homesphere.src.devices import ClimateUnit, DimmableLight, Lock, Scale
from homesphere.src.dispatcher import DeviceAction
from homesphere.src.household import Household, Room, User
from homesphere.src.scene import AutomationScene
from homesphere.src.system import HomeSphere

T0 = datetime(2026, 10, 1, 8, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, start: datetime = T0) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _clean_homesphere_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all HOMESPHERE_ env vars and isolate from .env files.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in list(os.environ):
        if var.startswith("HOMESPHERE_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def system(clock: FakeClock) -> HomeSphere:
    """A household with two rooms, one device of each variant and a scene.

    Layout:
        room 1 "Living room": climate unit 1, light 2
        room 2 "Bathroom":    lock 3, scale 4
        scene 1 "Evening":    light 2 power_on, light 2 set_brightness 30
        users: admin/admin (admin), alice/secret
    """
    household = Household(1, "1 Test Street")
    household.set_admin(
        User(user_id=1, login_name="admin", login_password="admin", username="Admin")
    )
    household.add_user(
        User(user_id=2, login_name="alice", login_password="secret", username="Alice")
    )
    hs = HomeSphere(household, clock=clock)
    hs.add_room(Room(1, "Living room", 30.0))
    hs.add_room(Room(2, "Bathroom", 8.5))

    light = DimmableLight(2, "Ceiling light", clock=clock)
    hs.add_device(ClimateUnit(1, "Living AC", clock=clock), room_id=1)
    hs.add_device(light, room_id=1)
    hs.add_device(Lock(3, "Front door", clock=clock), room_id=2)
    hs.add_device(Scale(4, "Bathroom scale", clock=clock), room_id=2)

    hs.add_scene(
        AutomationScene(
            1,
            "Evening",
            "Dim the living room",
            [
                DeviceAction(light, "power_on"),
                DeviceAction(light, "set_brightness", "30"),
            ],
        )
    )
    return hs


@pytest.fixture()
def client(system: HomeSphere) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient serving the sample household.

    Uses a context manager so the application lifespan runs.

    Yields:
        TestClient: Configured test client.
    """
    from homesphere.src.api.main import create_app
    from homesphere.src.config import HomeSphereSettings

    app = create_app(system, HomeSphereSettings())
    with TestClient(app) as test_client:
        yield test_client

