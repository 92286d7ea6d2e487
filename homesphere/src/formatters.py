"""
Running-log export formatters.

Each formatter walks household -> rooms -> devices -> running logs and
renders the tree as one document. Timestamps are rendered as
``YYYY-MM-DD HH:MM:SS``. Formatters only read through the public accessors
and never mutate the household.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import html
import json
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from homesphere.src.household import Household
    from homesphere.src.running_log import RunningLog

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class RunningLogFormatter(Protocol):
    name: str

    def format(self, household: Household) -> str: ...


def _log_dict(log: RunningLog) -> dict[str, str]:
    return {
        "timestamp": log.timestamp.strftime(TIMESTAMP_FORMAT),
        "event": log.event,
        "severity": str(log.severity),
        "note": log.note,
    }


def household_tree(household: Household) -> dict[str, Any]:
    """Nested dict view of the household's running logs."""
    return {
        "household_id": household.household_id,
        "address": household.address,
        "rooms": [
            {
                "room_id": room.room_id,
                "room_name": room.name,
                "devices": [
                    {
                        "device_id": device.device_id,
                        "device_name": device.name,
                        "device_type": str(device.device_type),
                        "running_logs": [_log_dict(log) for log in device.running_logs],
                    }
                    for device in room.devices
                ],
            }
            for room in household.rooms
        ],
    }


class JsonFormatter:
    name = "json"

    def format(self, household: Household) -> str:
        return json.dumps(household_tree(household), indent=2, ensure_ascii=False)


class XmlFormatter:
    name = "xml"

    def format(self, household: Household) -> str:
        tree = household_tree(household)
        root = ET.Element(
            "household",
            household_id=str(tree["household_id"]),
            address=tree["address"],
        )
        rooms_el = ET.SubElement(root, "rooms")
        for room in tree["rooms"]:
            room_el = ET.SubElement(
                rooms_el,
                "room",
                room_id=str(room["room_id"]),
                room_name=room["room_name"],
            )
            devices_el = ET.SubElement(room_el, "devices")
            for device in room["devices"]:
                device_el = ET.SubElement(
                    devices_el,
                    "device",
                    device_id=str(device["device_id"]),
                    device_name=device["device_name"],
                    device_type=device["device_type"],
                )
                logs_el = ET.SubElement(device_el, "running_logs")
                for log in device["running_logs"]:
                    ET.SubElement(logs_el, "running_log", **log)

        ET.indent(root)
        return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(
            root, encoding="unicode"
        )


class HtmlFormatter:
    """One table per device, grouped under a heading per room."""

    name = "html"

    def format(self, household: Household) -> str:
        esc = html.escape
        lines = [
            "<!DOCTYPE html>",
            "<html>",
            "<head>",
            '  <meta charset="UTF-8">',
            "  <title>HomeSphere running logs</title>",
            "</head>",
            "<body>",
            "  <h1>HomeSphere running logs</h1>",
            f"  <p><strong>Household:</strong> {household.household_id}</p>",
            f"  <p><strong>Address:</strong> {esc(household.address)}</p>",
        ]
        for room in household.rooms:
            lines.append('  <div class="room">')
            lines.append(f"    <h2>Room: {esc(room.name)} (ID: {room.room_id})</h2>")
            for device in room.devices:
                lines.append('    <table class="device">')
                lines.append(
                    f"      <caption>{esc(device.name)} "
                    f"(ID: {device.device_id}, {esc(str(device.device_type))})</caption>"
                )
                lines.append(
                    "      <tr><th>Timestamp</th><th>Event</th>"
                    "<th>Severity</th><th>Note</th></tr>"
                )
                logs = device.running_logs
                if not logs:
                    lines.append('      <tr><td colspan="4">No running logs</td></tr>')
                for log in logs:
                    row = _log_dict(log)
                    lines.append(
                        f"      <tr><td>{row['timestamp']}</td>"
                        f"<td>{esc(row['event'])}</td>"
                        f"<td>{row['severity']}</td>"
                        f"<td>{esc(row['note'])}</td></tr>"
                    )
                lines.append("    </table>")
            lines.append("  </div>")
        lines.extend(["</body>", "</html>"])
        return "\n".join(lines)


FORMATTERS: dict[str, RunningLogFormatter] = {
    f.name: f for f in (JsonFormatter(), XmlFormatter(), HtmlFormatter())
}


def get_formatter(name: str) -> RunningLogFormatter:
    """Look up a formatter by name (case-insensitive).

    Raises:
        ValueError: If no formatter has that name.
    """
    formatter = FORMATTERS.get(name.strip().lower())
    if formatter is None:
        raise ValueError(
            f"Unknown log format {name!r}, expected one of {sorted(FORMATTERS)}"
        )
    return formatter
