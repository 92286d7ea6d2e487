"""
HomeSphere command-line entry point.

Each invocation loads settings, configures logging, builds the registry,
loads the household data file, logs in and runs one subcommand against the
in-memory household:

    homesphere devices
    homesphere rooms
    homesphere scenes
    homesphere logs DEVICE_ID
    homesphere action DEVICE_ID COMMAND [PARAM]
    homesphere power DEVICE_ID on|off
    homesphere trigger SCENE_ID
    homesphere energy --hours N
    homesphere export --format json|xml|html

Command results go to stdout; operational logs go to stderr as structured
JSON (or plain text with ``HOMESPHERE_LOG_FORMAT=text``).

Exit codes: 0 on success, 1 on a lookup, authentication or rejected-action
failure, 2 on usage errors (raised by argparse).

CHANGELOG:
- 2026-10-12: Add energy and export subcommands (STORY-013)
- 2026-10-11: Initial creation (STORY-012)

TODO:
- None
"""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
import sys
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from homesphere.src.dispatcher import DeviceAction
from homesphere.src.exceptions import AuthenticationError
from homesphere.src.formatters import FORMATTERS, TIMESTAMP_FORMAT
from homesphere.src.household import Household
from homesphere.src.loader import load_household
from homesphere.src.system import HomeSphere

if TYPE_CHECKING:
    from homesphere.src.config import HomeSphereSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured logging setup
# ---------------------------------------------------------------------------


class _JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure root logging with a single stderr handler.

    Args:
        level: Log level name, e.g. ``"INFO"``.
        fmt: ``"json"`` for one JSON object per line, ``"text"`` for a
            plain line format.
    """
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "text":
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    else:
        handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_secret(value: str | None) -> str:
    """Return a short non-reversible fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: HomeSphereSettings) -> None:
    """Log a config summary at startup with the admin password masked."""
    logger.info(
        "HomeSphere starting with config: "
        "data_file=%s, log_level=%s, log_format=%s, household_id=%s, "
        "default_climate_power_w=%s, default_light_power_w=%s, "
        "admin_login=%s, admin_password_masked=%s",
        settings.data_file or "<none>",
        settings.log_level,
        settings.log_format,
        settings.household_id,
        settings.default_climate_power_w,
        settings.default_light_power_w,
        settings.admin_login,
        _masked_secret(settings.admin_password),
    )


# ---------------------------------------------------------------------------
# System construction
# ---------------------------------------------------------------------------


def build_system(settings: HomeSphereSettings, data_file: str | None = None) -> HomeSphere:
    """Build the registry from *settings* and load the data file, if any.

    Args:
        settings: Loaded configuration.
        data_file: Overrides ``settings.data_file`` when given.

    Raises:
        FileNotFoundError: If the data file does not exist.
    """
    system = HomeSphere(
        Household(settings.household_id, settings.household_address),
        admin_login=settings.admin_login,
        admin_password=settings.admin_password,
        default_climate_power_w=settings.default_climate_power_w,
        default_light_power_w=settings.default_light_power_w,
    )
    path = data_file if data_file is not None else settings.data_file
    if path:
        load_household(system, path)
    return system


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="homesphere", description="Smart-home household simulator"
    )
    parser.add_argument("--data-file", help="household data file (overrides settings)")
    parser.add_argument("--user", help="login name (default: configured admin)")
    parser.add_argument("--password", help="password (default: configured admin)")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("devices", help="list devices")
    sub.add_parser("rooms", help="list rooms")
    sub.add_parser("scenes", help="list scenes")

    logs = sub.add_parser("logs", help="show a device's running logs")
    logs.add_argument("device_id", type=int)

    action = sub.add_parser("action", help="dispatch a command to a device")
    action.add_argument("device_id", type=int)
    action.add_argument("action_command", metavar="COMMAND")
    action.add_argument("parameter", nargs="?", default="")

    power = sub.add_parser("power", help="switch a device on or off")
    power.add_argument("device_id", type=int)
    power.add_argument("state", choices=["on", "off"])

    trigger = sub.add_parser("trigger", help="trigger a scene")
    trigger.add_argument("scene_id", type=int)

    energy = sub.add_parser("energy", help="energy report for the last N hours")
    energy.add_argument("--hours", type=float, default=24.0)

    export = sub.add_parser("export", help="export running logs")
    export.add_argument("--format", dest="fmt", choices=sorted(FORMATTERS), default="json")

    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_devices(system: HomeSphere, args: argparse.Namespace) -> int:
    for device in system.devices:
        print(
            f"{device.device_id}\t{device.device_type}\t{device.name}\t"
            f"{'on' if device.powered_on else 'off'}\t"
            f"{'online' if device.online else 'offline'}"
        )
    return 0


def _cmd_rooms(system: HomeSphere, args: argparse.Namespace) -> int:
    for room in system.rooms:
        print(f"{room.room_id}\t{room.name}\t{room.area}\t{len(room.devices)} device(s)")
    return 0


def _cmd_scenes(system: HomeSphere, args: argparse.Namespace) -> int:
    for scene in system.scenes:
        print(f"{scene.scene_id}\t{scene.name}\t{len(scene.actions)} action(s)")
    return 0


def _cmd_logs(system: HomeSphere, args: argparse.Namespace) -> int:
    device = system.get_device(args.device_id)
    if device is None:
        print(f"Device {args.device_id} not found", file=sys.stderr)
        return 1
    for log in device.running_logs:
        print(
            f"{log.timestamp.strftime(TIMESTAMP_FORMAT)}\t{log.severity}\t"
            f"{log.event}\t{log.note}"
        )
    return 0


def _cmd_action(system: HomeSphere, args: argparse.Namespace) -> int:
    device = system.get_device(args.device_id)
    if device is None:
        print(f"Device {args.device_id} not found", file=sys.stderr)
        return 1
    outcome = system.submit(DeviceAction(device, args.action_command, args.parameter))
    print(outcome.model_dump_json())
    return 0 if outcome.ok else 1


def _cmd_power(system: HomeSphere, args: argparse.Namespace) -> int:
    outcome = system.power(args.device_id, args.state == "on")
    if outcome is None:
        print(f"Device {args.device_id} not found", file=sys.stderr)
        return 1
    print(outcome.model_dump_json())
    return 0


def _cmd_trigger(system: HomeSphere, args: argparse.Namespace) -> int:
    result = system.trigger_scene(args.scene_id)
    if result is None:
        print(f"Scene {args.scene_id} not found", file=sys.stderr)
        return 1
    print(result.model_dump_json())
    return 0


def _cmd_energy(system: HomeSphere, args: argparse.Namespace) -> int:
    end = datetime.now(tz=UTC)
    report = system.energy_report(end - timedelta(hours=args.hours), end)
    print(report.model_dump_json())
    return 0


def _cmd_export(system: HomeSphere, args: argparse.Namespace) -> int:
    print(system.export_logs(args.fmt))
    return 0


_COMMANDS = {
    "devices": _cmd_devices,
    "rooms": _cmd_rooms,
    "scenes": _cmd_scenes,
    "logs": _cmd_logs,
    "action": _cmd_action,
    "power": _cmd_power,
    "trigger": _cmd_trigger,
    "energy": _cmd_energy,
    "export": _cmd_export,
}


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entrypoint: load config, build the system, log in, run a command."""
    args = parse_args(argv)

    from homesphere.src.config import HomeSphereSettings

    settings = HomeSphereSettings()
    configure_logging(settings.log_level, settings.log_format)
    log_config_summary(settings)

    try:
        system = build_system(settings, args.data_file)
    except FileNotFoundError as exc:
        logger.error("Data file not found: %s", exc.filename)
        print(f"Data file not found: {exc.filename}", file=sys.stderr)
        return 1

    login_name = args.user if args.user is not None else settings.admin_login
    password = args.password if args.password is not None else settings.admin_password
    try:
        system.login(login_name, password)
    except AuthenticationError as exc:
        print(f"Login failed: {exc}", file=sys.stderr)
        return 1

    try:
        return _COMMANDS[args.command](system, args)
    finally:
        system.logoff()


if __name__ == "__main__":
    sys.exit(main())
