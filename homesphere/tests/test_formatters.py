"""
Tests for the running-log export formatters.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-011)

TODO:
- None
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET

import pytest

from homesphere.src.devices import Lock
from homesphere.src.formatters import (
    HtmlFormatter,
    JsonFormatter,
    XmlFormatter,
    get_formatter,
    household_tree,
)
from homesphere.src.household import Household, Room
from homesphere.src.system import HomeSphere


class TestHouseholdTree:
    """The shared nested view."""

    def test_structure(self, system: HomeSphere) -> None:
        system.power(2, True)
        tree = household_tree(system.household)

        assert tree["household_id"] == 1
        assert tree["address"] == "1 Test Street"
        assert [r["room_name"] for r in tree["rooms"]] == ["Living room", "Bathroom"]
        light = tree["rooms"][0]["devices"][1]
        assert light["device_id"] == 2
        assert light["device_type"] == "LIGHT"
        assert light["running_logs"] == [
            {
                "timestamp": "2026-10-01 08:00:00",
                "event": "power on",
                "severity": "INFO",
                "note": "Power switched on",
            }
        ]

    def test_does_not_mutate(self, system: HomeSphere) -> None:
        before = [len(d.running_logs) for d in system.devices]
        household_tree(system.household)
        assert [len(d.running_logs) for d in system.devices] == before


class TestJsonFormatter:
    """JSON export."""

    def test_parses_back(self, system: HomeSphere) -> None:
        data = json.loads(JsonFormatter().format(system.household))
        assert data["rooms"][1]["devices"][0]["device_name"] == "Front door"
        assert data["rooms"][1]["devices"][0]["running_logs"] == []

    def test_non_ascii_kept(self) -> None:
        household = Household(1, "Straße 5")
        assert "Straße 5" in JsonFormatter().format(household)


class TestXmlFormatter:
    """XML export."""

    def test_declaration_and_structure(self, system: HomeSphere) -> None:
        system.power(3, True)
        text = XmlFormatter().format(system.household)

        assert text.startswith('<?xml version="1.0" encoding="UTF-8"?>\n')
        root = ET.fromstring(text.split("\n", 1)[1])
        assert root.tag == "household"
        assert root.get("address") == "1 Test Street"
        rooms = root.findall("./rooms/room")
        assert [r.get("room_name") for r in rooms] == ["Living room", "Bathroom"]
        log = rooms[1].find("./devices/device/running_logs/running_log")
        assert log is not None
        assert log.get("event") == "power on"
        assert log.get("timestamp") == "2026-10-01 08:00:00"

    def test_special_characters_escaped(self) -> None:
        household = Household(1, 'A & B <"home">')
        text = XmlFormatter().format(household)
        root = ET.fromstring(text.split("\n", 1)[1])
        assert root.get("address") == 'A & B <"home">'


class TestHtmlFormatter:
    """HTML export."""

    def test_table_per_device(self, system: HomeSphere) -> None:
        text = HtmlFormatter().format(system.household)
        assert text.startswith("<!DOCTYPE html>")
        assert text.count('<table class="device">') == 4
        assert "Room: Living room (ID: 1)" in text
        assert text.count("No running logs") == 4

    def test_escapes_names(self) -> None:
        household = Household(1, "Street")
        room = Room(1, "<Kids>")
        room.add_device(Lock(1, "Door & gate"))
        household.add_room(room)
        text = HtmlFormatter().format(household)
        assert "&lt;Kids&gt;" in text
        assert "Door &amp; gate" in text
        assert "<Kids>" not in text

    def test_log_rows(self, system: HomeSphere) -> None:
        system.power(1, True)
        text = HtmlFormatter().format(system.household)
        assert "<td>2026-10-01 08:00:00</td><td>power on</td>" in text
        assert text.count("No running logs") == 3


class TestGetFormatter:
    """Formatter lookup."""

    @pytest.mark.parametrize("name", ["json", "JSON", " Xml ", "html"])
    def test_known_names(self, name: str) -> None:
        assert get_formatter(name).name == name.strip().lower()

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown log format"):
            get_formatter("yaml")
