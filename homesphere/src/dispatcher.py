"""
Command dispatch: turns a (device, command, raw parameter) triple into a
validated mutation on the device.

Commands are defined once in :data:`COMMANDS`, the single source of truth
for command names, the capability a device needs to receive them, the
parameter parser and the accepted parameter range. Dispatch checks, in
order:

1. Unknown command name          -> UNKNOWN_COMMAND
2. Device lacks the capability   -> IGNORED (silent no-op, not an error)
3. Parameter does not parse      -> INVALID_FORMAT
4. Parameter outside the range   -> OUT_OF_RANGE
5. Apply through the capability  -> OK

Every failure is non-fatal: :func:`dispatch` always returns an
:class:`ActionOutcome` and never raises, so a surrounding scene can carry
on with its next action. Rejected commands leave the device untouched.

Actions whose device is no longer registered are not dispatched at all; the
registry reports them with :func:`lookup_error` as LOOKUP_ERROR.

The colour temperature range accepted here (2300-7000 K) is wider than the
light's own setter range (2700-6500 K). A value in the gap passes dispatch
and is then dropped by the setter: the outcome is OK with ``changed=False``.

CHANGELOG:
- 2026-10-19: LOOKUP_ERROR for unregistered devices, strict ASCII number
  parsing (STORY-016)
- 2026-10-08: Catch unexpected errors from appliers as ERROR outcomes (STORY-007)
- 2026-10-06: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict

from homesphere.src.devices import (
    Device,
    Dimmable,
    Lockable,
    ThermostatControllable,
    WeighScaleCapable,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Actions and outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DeviceAction:
    """A requested mutation: stateless, reusable and without identity.

    Attributes:
        device: Target device.
        command: Command name, matched case-insensitively.
        parameters: Raw string parameter; empty for parameterless commands.
    """

    device: Device
    command: str
    parameters: str = ""

    def __str__(self) -> str:
        return (
            f"DeviceAction(device_id={self.device.device_id}, "
            f"command={self.command!r}, parameters={self.parameters!r})"
        )


class ActionStatus(StrEnum):
    """Result classification of a dispatched action."""

    OK = "ok"
    IGNORED = "ignored"
    INVALID_FORMAT = "invalid_format"
    OUT_OF_RANGE = "out_of_range"
    UNKNOWN_COMMAND = "unknown_command"
    LOOKUP_ERROR = "lookup_error"
    ERROR = "error"


class ActionOutcome(BaseModel):
    """Typed result of dispatching one DeviceAction.

    Attributes:
        device_id: Target device id.
        command: Command name as submitted.
        parameters: Raw parameter as submitted.
        status: Result classification.
        changed: Whether the device state (and its log) changed.
        message: Human-readable explanation.
    """

    model_config = ConfigDict(frozen=True)

    device_id: int
    command: str
    parameters: str
    status: ActionStatus
    changed: bool = False
    message: str = ""

    @property
    def ok(self) -> bool:
        """True unless the action was rejected or failed."""
        return self.status in (ActionStatus.OK, ActionStatus.IGNORED)


# ---------------------------------------------------------------------------
# Command table
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CommandDef:
    """Definition of a single dispatchable command.

    Attributes:
        name: Lower-case command name.
        apply: Callable ``(device, value) -> bool`` performing the mutation
            through the capability; returns whether state changed.
        capability: Protocol the device must implement, or ``None`` when
            any device accepts the command.
        parser: Converts the raw parameter string; ``None`` for commands
            without a parameter. Must raise ValueError on bad input.
        valid_range: Optional inclusive ``(min, max)`` for the parsed value.
        exclusive_min: Optional strict lower bound for the parsed value.
        description: Free-text description.
    """

    name: str
    apply: Callable[[Any, Any], bool]
    capability: type | None = None
    parser: Callable[[str], float] | None = None
    valid_range: tuple[float, float] | None = None
    exclusive_min: float | None = None
    description: str = ""

    def check_range(self, value: float) -> bool:
        if self.valid_range is not None:
            lo, hi = self.valid_range
            if not (lo <= value <= hi):
                return False
        if self.exclusive_min is not None and not value > self.exclusive_min:
            return False
        return True

    def range_text(self) -> str:
        if self.valid_range is not None:
            return f"{self.valid_range[0]}-{self.valid_range[1]}"
        if self.exclusive_min is not None:
            return f"> {self.exclusive_min}"
        return "any"


# Plain ASCII numerals only: no underscores, no non-ASCII digits, no
# inf/nan spellings.
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_DECIMAL_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def _parse_int(raw: str) -> int:
    text = raw.strip()
    if _INT_RE.fullmatch(text) is None:
        raise ValueError(f"not an integer: {raw!r}")
    return int(text)


def _parse_decimal(raw: str) -> float:
    text = raw.strip()
    if _DECIMAL_RE.fullmatch(text) is None:
        raise ValueError(f"not a decimal number: {raw!r}")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"non-finite value {raw!r}")
    return value


_COMMAND_LIST: list[CommandDef] = [
    CommandDef(
        name="power_on",
        apply=lambda device, _: device.power_on(),
        description="Switch the device on",
    ),
    CommandDef(
        name="power_off",
        apply=lambda device, _: device.power_off(),
        description="Switch the device off",
    ),
    CommandDef(
        name="set_brightness",
        apply=lambda device, value: device.set_brightness(value),
        capability=Dimmable,
        parser=_parse_int,
        valid_range=(0, 100),
        description="Light brightness in percent",
    ),
    CommandDef(
        name="set_colortemp",
        apply=lambda device, value: device.set_color_temp(value),
        capability=Dimmable,
        parser=_parse_int,
        valid_range=(2300, 7000),
        description="Light colour temperature in kelvin",
    ),
    CommandDef(
        name="set_temperature",
        apply=lambda device, value: device.set_target_temp(value),
        capability=ThermostatControllable,
        parser=_parse_decimal,
        valid_range=(16.0, 32.0),
        description="Climate unit target temperature in Celsius",
    ),
    CommandDef(
        name="lock",
        apply=lambda device, _: device.lock(),
        capability=Lockable,
        description="Engage the lock",
    ),
    CommandDef(
        name="unlock",
        apply=lambda device, _: device.unlock(),
        capability=Lockable,
        description="Release the lock",
    ),
    CommandDef(
        name="measure_weight",
        apply=lambda device, value: device.measure_weight(value),
        capability=WeighScaleCapable,
        parser=_parse_decimal,
        exclusive_min=0.0,
        description="Record a body mass measurement in kg",
    ),
]

COMMANDS: dict[str, CommandDef] = {cmd.name: cmd for cmd in _COMMAND_LIST}
"""Command name -> CommandDef lookup."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def supported_commands(device: Device) -> list[str]:
    """Names of the commands *device* is able to receive."""
    return [
        cmd.name
        for cmd in _COMMAND_LIST
        if cmd.capability is None or isinstance(device, cmd.capability)
    ]


def lookup_error(action: DeviceAction) -> ActionOutcome:
    """Outcome for an action whose device is not in the registry."""
    device_id = action.device.device_id
    logger.warning(
        "Device %d is not registered, %s not dispatched", device_id, action.command
    )
    return ActionOutcome(
        device_id=device_id,
        command=action.command,
        parameters=action.parameters or "",
        status=ActionStatus.LOOKUP_ERROR,
        message=f"Device {device_id} is not registered",
    )


def dispatch(action: DeviceAction) -> ActionOutcome:
    """Validate *action* and apply it to its device.

    Never raises; every failure is reported through the returned outcome
    and logged at WARNING.
    """
    device = action.device
    parameters = action.parameters if action.parameters is not None else ""

    def outcome(
        status: ActionStatus, message: str, changed: bool = False
    ) -> ActionOutcome:
        return ActionOutcome(
            device_id=device.device_id,
            command=action.command,
            parameters=parameters,
            status=status,
            changed=changed,
            message=message,
        )

    cmd = COMMANDS.get(action.command.strip().lower())
    if cmd is None:
        logger.warning(
            "Unknown command %r for device %d", action.command, device.device_id
        )
        return outcome(ActionStatus.UNKNOWN_COMMAND, f"Unknown command: {action.command}")

    if cmd.capability is not None and not isinstance(device, cmd.capability):
        logger.debug(
            "Command %s not supported by %s device %d, ignoring",
            cmd.name,
            device.device_type,
            device.device_id,
        )
        return outcome(
            ActionStatus.IGNORED,
            f"{cmd.name} does not apply to {device.device_type} devices",
        )

    value: float | None = None
    if cmd.parser is not None:
        try:
            value = cmd.parser(parameters)
        except ValueError:
            logger.warning(
                "Command %s on device %d: invalid parameter format %r",
                cmd.name,
                device.device_id,
                parameters,
            )
            return outcome(
                ActionStatus.INVALID_FORMAT, f"Invalid parameter format: {parameters!r}"
            )

        if not cmd.check_range(value):
            logger.warning(
                "Command %s on device %d: parameter %s outside range %s",
                cmd.name,
                device.device_id,
                value,
                cmd.range_text(),
            )
            return outcome(
                ActionStatus.OUT_OF_RANGE,
                f"{cmd.name} parameter must be {cmd.range_text()}, got {value}",
            )

    try:
        changed = bool(cmd.apply(device, value))
    except Exception:
        logger.error(
            "Command %s on device %d raised", cmd.name, device.device_id, exc_info=True
        )
        return outcome(ActionStatus.ERROR, f"{cmd.name} failed unexpectedly")

    logger.info(
        "Command %s applied to device %d (%s), changed=%s",
        cmd.name,
        device.device_id,
        device.name,
        changed,
    )
    return outcome(
        ActionStatus.OK,
        f"{cmd.name} applied" if changed else f"{cmd.name} accepted, no change",
        changed,
    )
