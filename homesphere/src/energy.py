"""
Energy metering for devices that report power draw.

``energy_in_window`` integrates a constant instantaneous power over the part
of a query window during which the device has been on. Only the most recent
on-transition is known, so the result is a single-interval approximation: a
device power-cycled several times inside the window is metered as if it had
been on continuously since its last power-on.

This is a pure function: no side effects, no I/O, no clock. The caller
supplies the power draw, the on/off state and the last on-transition.

CHANGELOG:
- 2026-10-19: Take naive datetimes as UTC (STORY-016)
- 2026-10-07: Add household report models (STORY-008)
- 2026-10-06: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, computed_field

logger = logging.getLogger(__name__)

_SECONDS_PER_HOUR = 3600.0
_WATTS_PER_KILOWATT = 1000.0


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware values are returned unchanged."""
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


@runtime_checkable
class EnergyReporting(Protocol):
    """Capability of a device that reports power draw and energy use."""

    device_id: int

    def current_power(self) -> float:
        """Instantaneous power draw in watts (0 when off)."""
        ...

    def energy_in_window(self, start: datetime, end: datetime) -> float:
        """Energy consumed in ``[start, end]`` in kilowatt-hours."""
        ...


# ---------------------------------------------------------------------------
# Core algorithm
# ---------------------------------------------------------------------------


def energy_in_window(
    *,
    power_w: float,
    powered_on: bool,
    on_time: datetime | None,
    start: datetime,
    end: datetime,
) -> float:
    """Return the energy in kWh drawn during ``[start, end]``.

    Callers must ensure ``start <= end``; a reversed window is undefined.
    Naive datetimes are taken as UTC, so naive and aware values can be
    mixed.

    Args:
        power_w: Instantaneous power draw while on, in watts.
        powered_on: Current power flag of the device.
        on_time: Instant of the most recent on-transition, or ``None`` when
            unknown (the whole window is then counted).
        start: Window start.
        end: Window end.

    Returns:
        Energy in kilowatt-hours. 0.0 when the device is off or was switched
        on after the window closed.
    """
    if not powered_on:
        return 0.0

    start, end = as_utc(start), as_utc(end)
    effective_start = start
    if on_time is not None:
        on_time = as_utc(on_time)
        if on_time > end:
            return 0.0
        effective_start = max(start, on_time)

    seconds = max(0.0, (end - effective_start).total_seconds())
    hours = seconds / _SECONDS_PER_HOUR
    return power_w * hours / _WATTS_PER_KILOWATT


# ---------------------------------------------------------------------------
# Household report
# ---------------------------------------------------------------------------


class DeviceEnergy(BaseModel):
    """Energy used by one device over a report window."""

    device_id: int
    name: str
    device_type: str
    current_power_w: float
    energy_kwh: float


class EnergyReport(BaseModel):
    """Energy used by all energy-reporting devices over a window."""

    start: datetime
    end: datetime
    devices: list[DeviceEnergy]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_kwh(self) -> float:
        return sum(entry.energy_kwh for entry in self.devices)


def build_energy_report(
    devices: Iterable[object],
    start: datetime,
    end: datetime,
) -> EnergyReport:
    """Meter every energy-reporting device in *devices* over ``[start, end]``.

    Devices without the EnergyReporting capability are skipped. Naive
    bounds are taken as UTC.

    Raises:
        ValueError: If *end* is before *start*.
    """
    start, end = as_utc(start), as_utc(end)
    if end < start:
        raise ValueError(f"Report window end {end} is before start {start}")

    entries: list[DeviceEnergy] = []
    for device in devices:
        if not isinstance(device, EnergyReporting):
            continue
        entries.append(
            DeviceEnergy(
                device_id=device.device_id,
                name=getattr(device, "name", ""),
                device_type=str(getattr(device, "device_type", "")),
                current_power_w=device.current_power(),
                energy_kwh=device.energy_in_window(start, end),
            )
        )

    report = EnergyReport(start=start, end=end, devices=entries)
    logger.info(
        "Energy report %s..%s: %d device(s), total %.4f kWh",
        start.isoformat(),
        end.isoformat(),
        len(entries),
        report.total_kwh,
    )
    return report
