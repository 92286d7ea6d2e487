"""
Household data loader for the line-oriented text format.

One record per line, ``Tag{key=value, key='quoted, value', ...}``. Blank
lines and lines starting with ``#`` are skipped. Records are applied in
file order, so rooms must precede the devices placed in them and scenes
must precede their actions.

Supported tags (aliases in parentheses)::

    Household{householdId, address}
    Room{roomId, name, area}
    User{userId, loginName, password, username, email, isAdmin}
    Manufacturer{manufacturerId, name, protocols}
    ClimateUnit{deviceId, name, manufacturerId, currTemp, targetTemp, power, roomId}
        (AirConditioner)
    DimmableLight{deviceId, name, manufacturerId, brightness, colorTemp, power, roomId}
        (LightBulb)
    Lock{deviceId, name, manufacturerId, isLocked, batteryLevel, roomId}
        (SmartLock)
    Scale{deviceId, name, manufacturerId, batteryLevel, roomId}
        (BathroomScale)
    Scene{sceneId, name, description}
        (AutomationScene)
    Action{sceneId, deviceId, command, parameters}

A malformed line, an unknown tag or a record that references a missing
room, scene or device is logged, counted and skipped; loading continues
with the next line. Only a missing file is fatal.

CHANGELOG:
- 2026-10-19: Fall back to the registry's own default manufacturer (STORY-016)
- 2026-10-11: Add Scale and Action records (STORY-013)
- 2026-10-10: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import BaseModel

from homesphere.src.devices import ClimateUnit, Device, DimmableLight, Lock, Scale
from homesphere.src.dispatcher import DeviceAction
from homesphere.src.exceptions import LoaderError
from homesphere.src.household import Room, User
from homesphere.src.manufacturer import Manufacturer
from homesphere.src.scene import AutomationScene
from homesphere.src.system import HomeSphere

logger = logging.getLogger(__name__)

_RECORD_RE = re.compile(r"^(?P<tag>\w+)\s*\{(?P<body>.*)\}\s*$")
_PAIR_RE = re.compile(r"\s*(?P<key>\w+)\s*=\s*(?P<value>'[^']*'|[^,]*)\s*(?:,|$)")

_DEFAULT_PASSWORD = "default"


class LoadSummary(BaseModel):
    """Counts of what a load run applied and skipped."""

    lines: int = 0
    rooms: int = 0
    users: int = 0
    devices: int = 0
    scenes: int = 0
    actions: int = 0
    errors: int = 0


# ---------------------------------------------------------------------------
# Field parsing
# ---------------------------------------------------------------------------


def parse_record(line: str) -> tuple[str, dict[str, str]]:
    """Split one record line into its tag and raw field values.

    Quoted values have their quotes removed.

    Raises:
        LoaderError: If the line is not of the form ``Tag{...}``.
    """
    match = _RECORD_RE.match(line)
    if match is None:
        raise LoaderError(f"Not a record: {line!r}")
    body = match.group("body").strip()
    fields: dict[str, str] = {}
    pos = 0
    while pos < len(body):
        pair = _PAIR_RE.match(body, pos)
        if pair is None or pair.end() == pos:
            raise LoaderError(f"Malformed fields near {body[pos:]!r}")
        value = pair.group("value").strip()
        if len(value) >= 2 and value[0] == value[-1] == "'":
            value = value[1:-1]
        fields[pair.group("key")] = value
        pos = pair.end()
    return match.group("tag"), fields


def _require(fields: dict[str, str], key: str) -> str:
    try:
        return fields[key]
    except KeyError:
        raise LoaderError(f"Missing field {key!r}") from None


def _int(fields: dict[str, str], key: str) -> int:
    raw = _require(fields, key)
    try:
        return int(raw)
    except ValueError:
        raise LoaderError(f"Field {key!r} is not an integer: {raw!r}") from None


def _float(fields: dict[str, str], key: str) -> float:
    raw = _require(fields, key)
    try:
        return float(raw)
    except ValueError:
        raise LoaderError(f"Field {key!r} is not a number: {raw!r}") from None


def _optional_float(fields: dict[str, str], key: str) -> float | None:
    return _float(fields, key) if key in fields else None


def _bool(fields: dict[str, str], key: str) -> bool:
    raw = _require(fields, key).lower()
    if raw not in ("true", "false"):
        raise LoaderError(f"Field {key!r} is not a boolean: {raw!r}")
    return raw == "true"


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class HouseholdLoader:
    """Applies data file records to a HomeSphere registry.

    Args:
        system: Registry the records are applied to.
    """

    def __init__(self, system: HomeSphere) -> None:
        self.system = system
        self.manufacturers: dict[int, Manufacturer] = {}
        self._handlers: dict[str, Callable[[dict[str, str], LoadSummary], None]] = {
            "household": self._household,
            "room": self._room,
            "user": self._user,
            "manufacturer": self._manufacturer,
            "climateunit": self._climate_unit,
            "airconditioner": self._climate_unit,
            "dimmablelight": self._light,
            "lightbulb": self._light,
            "lock": self._lock,
            "smartlock": self._lock,
            "scale": self._scale,
            "bathroomscale": self._scale,
            "scene": self._scene,
            "automationscene": self._scene,
            "action": self._action,
        }

    def load(self, path: str | Path) -> LoadSummary:
        """Load records from *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
        """
        path = Path(path)
        logger.info("Loading household data from %s", path)
        with path.open(encoding="utf-8") as fh:
            summary = self.load_lines(fh)
        logger.info(
            "Loaded %s: %d room(s), %d device(s), %d scene(s), %d action(s), "
            "%d error(s)",
            path,
            summary.rooms,
            summary.devices,
            summary.scenes,
            summary.actions,
            summary.errors,
        )
        return summary

    def load_lines(self, lines: Iterable[str]) -> LoadSummary:
        summary = LoadSummary()
        for lineno, raw in enumerate(lines, start=1):
            summary.lines = lineno
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            try:
                tag, fields = parse_record(line)
                handler = self._handlers.get(tag.lower())
                if handler is None:
                    raise LoaderError(f"Unknown record type {tag!r}")
                handler(fields, summary)
            except LoaderError as exc:
                summary.errors += 1
                logger.warning("Line %d skipped: %s", lineno, exc)
        return summary

    # ------------------------------------------------------------------
    # Record handlers
    # ------------------------------------------------------------------

    def _household(self, fields: dict[str, str], summary: LoadSummary) -> None:
        household = self.system.household
        household.household_id = _int(fields, "householdId")
        household.address = fields.get("address", household.address)

    def _room(self, fields: dict[str, str], summary: LoadSummary) -> None:
        room = Room(_int(fields, "roomId"), _require(fields, "name"), _float(fields, "area"))
        if not self.system.add_room(room):
            raise LoaderError(f"Duplicate room id {room.room_id}")
        summary.rooms += 1

    def _user(self, fields: dict[str, str], summary: LoadSummary) -> None:
        username = _require(fields, "username")
        user = User(
            user_id=_int(fields, "userId"),
            login_name=fields.get("loginName", username),
            login_password=fields.get("password", _DEFAULT_PASSWORD),
            username=username,
            email=fields.get("email", ""),
        )
        is_admin = _bool(fields, "isAdmin") if "isAdmin" in fields else False
        if self.system.household.get_user(user.user_id) is not None:
            raise LoaderError(f"Duplicate user id {user.user_id}")
        if is_admin:
            self.system.household.set_admin(user)
        else:
            self.system.add_user(user)
        summary.users += 1

    def _manufacturer(self, fields: dict[str, str], summary: LoadSummary) -> None:
        manufacturer = Manufacturer(
            _int(fields, "manufacturerId"),
            _require(fields, "name"),
            fields.get("protocols", ""),
        )
        self.manufacturers[manufacturer.manufacturer_id] = manufacturer

    def _resolve_manufacturer(self, fields: dict[str, str]) -> Manufacturer:
        fallback = self.system.default_manufacturer
        if "manufacturerId" not in fields:
            return fallback
        manufacturer_id = _int(fields, "manufacturerId")
        manufacturer = self.manufacturers.get(manufacturer_id)
        if manufacturer is None:
            logger.warning(
                "Unknown manufacturer %d, using %s",
                manufacturer_id,
                fallback.name,
            )
            return fallback
        return manufacturer

    def _create(
        self, device_type: str, fields: dict[str, str], summary: LoadSummary
    ) -> Device:
        device_id = _int(fields, "deviceId")
        room_id = _int(fields, "roomId")
        device = self.system.create_device(
            device_type,
            device_id,
            _require(fields, "name"),
            room_id,
            manufacturer=self._resolve_manufacturer(fields),
            power_w=_optional_float(fields, "power"),
        )
        if device is None:
            raise LoaderError(
                f"Device {device_id} rejected (duplicate id or unknown room {room_id})"
            )
        summary.devices += 1
        return device

    def _climate_unit(self, fields: dict[str, str], summary: LoadSummary) -> None:
        current = _optional_float(fields, "currTemp")
        target = _optional_float(fields, "targetTemp")
        device: ClimateUnit = self._create("climate", fields, summary)
        if current is not None:
            device.set_current_temp(current)
        if target is not None:
            device.set_target_temp(target)

    def _light(self, fields: dict[str, str], summary: LoadSummary) -> None:
        brightness = int(_float(fields, "brightness")) if "brightness" in fields else None
        color_temp = int(_float(fields, "colorTemp")) if "colorTemp" in fields else None
        device: DimmableLight = self._create("light", fields, summary)
        if brightness is not None:
            device.set_brightness(brightness)
        if color_temp is not None:
            device.set_color_temp(color_temp)

    def _lock(self, fields: dict[str, str], summary: LoadSummary) -> None:
        locked = _bool(fields, "isLocked") if "isLocked" in fields else True
        battery = _int(fields, "batteryLevel") if "batteryLevel" in fields else None
        device: Lock = self._create("lock", fields, summary)
        if not locked:
            device.unlock()
        if battery is not None:
            device.set_battery_level(battery)

    def _scale(self, fields: dict[str, str], summary: LoadSummary) -> None:
        battery = _int(fields, "batteryLevel") if "batteryLevel" in fields else None
        device: Scale = self._create("scale", fields, summary)
        if battery is not None:
            device.set_battery_level(battery)

    def _scene(self, fields: dict[str, str], summary: LoadSummary) -> None:
        scene = AutomationScene(
            _int(fields, "sceneId"),
            _require(fields, "name"),
            fields.get("description", ""),
        )
        if not self.system.add_scene(scene):
            raise LoaderError(f"Duplicate scene id {scene.scene_id}")
        summary.scenes += 1

    def _action(self, fields: dict[str, str], summary: LoadSummary) -> None:
        scene_id = _int(fields, "sceneId")
        device_id = _int(fields, "deviceId")
        scene = self.system.get_scene(scene_id)
        if scene is None:
            raise LoaderError(f"Unknown scene {scene_id}")
        device = self.system.get_device(device_id)
        if device is None:
            raise LoaderError(f"Unknown device {device_id}")
        scene.add_action(
            DeviceAction(device, _require(fields, "command"), fields.get("parameters", ""))
        )
        summary.actions += 1


def load_household(system: HomeSphere, path: str | Path) -> LoadSummary:
    """Convenience wrapper: load *path* into *system*."""
    return HouseholdLoader(system).load(path)
