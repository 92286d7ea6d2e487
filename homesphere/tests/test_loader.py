"""
Tests for the household data loader.

Tests verify:
- Record parsing with quoted values containing commas.
- The bundled sample household loads completely.
- Malformed lines, unknown tags and structural errors are counted and
  skipped without aborting the load.
- A missing file raises FileNotFoundError.

CHANGELOG:
- 2026-10-19: Unknown manufacturers fall back to the registry default (STORY-016)
- 2026-10-11: Cover Scale and Action records (STORY-013)
- 2026-10-10: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import pytest

from homesphere.src.devices import ClimateUnit, DimmableLight, Lock, Scale
from homesphere.src.exceptions import LoaderError
from homesphere.src.loader import HouseholdLoader, load_household, parse_record
from homesphere.src.system import HomeSphere

SAMPLE_FILE = Path(__file__).resolve().parent.parent / "data" / "sample_household.txt"


def _load(text: str) -> tuple[HomeSphere, object]:
    system = HomeSphere()
    summary = HouseholdLoader(system).load_lines(text.splitlines())
    return system, summary


class TestParseRecord:
    """Splitting one line into tag and fields."""

    def test_plain_and_quoted_values(self) -> None:
        tag, fields = parse_record(
            "Household{householdId=3, address='1 Main St, Apt 2'}"
        )
        assert tag == "Household"
        assert fields == {"householdId": "3", "address": "1 Main St, Apt 2"}

    def test_empty_body(self) -> None:
        assert parse_record("Scene{}") == ("Scene", {})

    @pytest.mark.parametrize("line", ["Room roomId=1", "{roomId=1}", "Room{roomId=1"])
    def test_not_a_record(self, line: str) -> None:
        with pytest.raises(LoaderError):
            parse_record(line)

    def test_malformed_fields(self) -> None:
        with pytest.raises(LoaderError):
            parse_record("Room{roomId=1, =2}")


class TestSampleHousehold:
    """The bundled sample file."""

    def test_loads_everything(self) -> None:
        system = HomeSphere()
        summary = load_household(system, SAMPLE_FILE)

        assert summary.errors == 0
        assert (summary.rooms, summary.users, summary.devices) == (3, 2, 5)
        assert (summary.scenes, summary.actions) == (2, 6)
        assert system.household.address == "12 Elm Street, Springfield"

    def test_device_state_from_file(self) -> None:
        system = HomeSphere()
        load_household(system, SAMPLE_FILE)

        ac = system.get_device(1)
        assert isinstance(ac, ClimateUnit)
        assert (ac.current_temp, ac.target_temp) == (27.0, 24.0)
        assert ac.manufacturer.name == "Mijia Smart Home"

        lamp = system.get_device(3)
        assert isinstance(lamp, DimmableLight)
        assert lamp.rated_power_w == 8.0
        assert (lamp.brightness, lamp.color_temp) == (30, 2700)

        ceiling = system.get_device(2)
        assert ceiling.rated_power_w == 20.0

        door = system.get_device(4)
        assert isinstance(door, Lock)
        assert (door.locked, door.battery_level) == (True, 85)

        scale = system.get_device(5)
        assert isinstance(scale, Scale)
        assert scale.battery_level == 60

    def test_scenes_and_users(self) -> None:
        system = HomeSphere()
        load_household(system, SAMPLE_FILE)

        assert [a.command for a in system.get_scene(1).actions] == [
            "power_off",
            "set_brightness",
            "lock",
        ]
        assert system.household.admin.login_name == "admin"
        assert system.login("alice", "secret").is_admin is False

    def test_loaded_scene_triggers(self) -> None:
        system = HomeSphere()
        load_household(system, SAMPLE_FILE)
        result = system.trigger_scene(2)
        assert result.applied_count == 3
        assert system.get_device(1).target_temp == 22.5


class TestErrorHandling:
    """Per-line failures are logged, counted and skipped."""

    def test_blank_lines_and_comments_skipped(self) -> None:
        _, summary = _load("\n# comment\n   \nRoom{roomId=1, name=Hall, area=4}\n")
        assert summary.errors == 0
        assert summary.rooms == 1
        assert summary.lines == 4

    def test_unknown_tag_counted(self) -> None:
        system, summary = _load(
            "Toaster{deviceId=1}\nRoom{roomId=1, name=Hall, area=4}"
        )
        assert summary.errors == 1
        assert len(system.rooms) == 1

    def test_bad_number_counted(self) -> None:
        _, summary = _load("Room{roomId=one, name=Hall, area=4}")
        assert summary.errors == 1
        assert summary.rooms == 0

    def test_missing_field_counted(self) -> None:
        _, summary = _load("Room{roomId=1, area=4}")
        assert summary.errors == 1

    def test_device_in_missing_room_is_structural_error(self) -> None:
        system, summary = _load(
            "Lock{deviceId=1, name=Door, manufacturerId=1, isLocked=true, "
            "batteryLevel=50, roomId=9}"
        )
        assert summary.errors == 1
        assert summary.devices == 0
        assert system.get_device(1) is None

    def test_duplicate_device_id(self) -> None:
        system, summary = _load(
            "Room{roomId=1, name=Hall, area=4}\n"
            "Lock{deviceId=1, name=Door, roomId=1}\n"
            "Scale{deviceId=1, name=Scale, roomId=1}\n"
        )
        assert summary.devices == 1
        assert summary.errors == 1
        assert isinstance(system.get_device(1), Lock)

    def test_unknown_manufacturer_uses_registry_default(self) -> None:
        system, summary = _load(
            "Room{roomId=1, name=Hall, area=4}\n"
            "Scale{deviceId=1, name=Scale, manufacturerId=77, roomId=1}\n"
        )
        assert summary.errors == 0
        assert system.get_device(1).manufacturer is system.default_manufacturer
        assert system.default_manufacturer.devices == [system.get_device(1)]

    def test_action_for_unknown_device_or_scene(self) -> None:
        _, summary = _load(
            "Scene{sceneId=1, name=S}\n"
            "Action{sceneId=1, deviceId=5, command=lock}\n"
            "Action{sceneId=2, deviceId=5, command=lock}\n"
        )
        assert summary.scenes == 1
        assert summary.actions == 0
        assert summary.errors == 2

    def test_unlocked_lock(self) -> None:
        system, _ = _load(
            "Room{roomId=1, name=Hall, area=4}\n"
            "SmartLock{deviceId=1, name=Door, isLocked=false, roomId=1}\n"
        )
        assert system.get_device(1).locked is False

    def test_bad_boolean_counted(self) -> None:
        _, summary = _load(
            "Room{roomId=1, name=Hall, area=4}\n"
            "Lock{deviceId=1, name=Door, isLocked=maybe, roomId=1}\n"
        )
        assert summary.errors == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_household(HomeSphere(), tmp_path / "missing.txt")
