"""
Containment structures: users, rooms and the household.

Rooms hold device references, the household holds rooms, users and scenes.
Every collection is guarded by its own lock so add/remove are serialised;
accessors return copies. Lookups by id return ``None`` and removals return
``False`` when nothing matches.

CHANGELOG:
- 2026-10-07: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from homesphere.src.devices import Device
    from homesphere.src.scene import AutomationScene


class User(BaseModel):
    """A household member with plain in-memory credentials.

    Attributes:
        user_id: Identifier, unique within the household.
        login_name: Name used to log in.
        login_password: Password compared verbatim at login.
        username: Display name.
        email: Contact e-mail.
        is_admin: Whether the user administers the household.
    """

    user_id: int
    login_name: str
    login_password: str
    username: str = ""
    email: str = ""
    is_admin: bool = False

    def public_dict(self) -> dict[str, object]:
        """Serialisable view without the password."""
        return self.model_dump(exclude={"login_password"})


class Room:
    """A room holding references to devices."""

    def __init__(self, room_id: int, name: str, area: float = 0.0) -> None:
        self.room_id = room_id
        self.name = name
        self.area = area
        self._devices: list[Device] = []
        self._lock = threading.Lock()

    @property
    def devices(self) -> list[Device]:
        with self._lock:
            return list(self._devices)

    def add_device(self, device: Device) -> None:
        with self._lock:
            self._devices.append(device)

    def remove_device(self, device_id: int) -> bool:
        with self._lock:
            before = len(self._devices)
            self._devices = [d for d in self._devices if d.device_id != device_id]
            return len(self._devices) != before

    def get_device(self, device_id: int) -> Device | None:
        with self._lock:
            return next((d for d in self._devices if d.device_id == device_id), None)

    def to_dict(self) -> dict[str, object]:
        return {
            "room_id": self.room_id,
            "name": self.name,
            "area": self.area,
            "device_ids": [d.device_id for d in self.devices],
        }

    def __repr__(self) -> str:
        return (
            f"Room(room_id={self.room_id}, name={self.name!r}, area={self.area}, "
            f"devices={len(self._devices)})"
        )


class Household:
    """A household: rooms, users and automation scenes.

    Args:
        household_id: Identifier of the household.
        address: Postal address as free text.
        admin: Optional administrator; added to the users and marked admin.
    """

    def __init__(
        self, household_id: int, address: str, admin: User | None = None
    ) -> None:
        self.household_id = household_id
        self.address = address
        self.admin: User | None = None
        self._rooms: list[Room] = []
        self._users: list[User] = []
        self._scenes: list[AutomationScene] = []
        self._rooms_lock = threading.Lock()
        self._users_lock = threading.Lock()
        self._scenes_lock = threading.Lock()
        if admin is not None:
            self.set_admin(admin)

    # ------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------

    @property
    def rooms(self) -> list[Room]:
        with self._rooms_lock:
            return list(self._rooms)

    def add_room(self, room: Room) -> bool:
        """Add *room*; a room whose id is already present is rejected."""
        with self._rooms_lock:
            if any(r.room_id == room.room_id for r in self._rooms):
                return False
            self._rooms.append(room)
            return True

    def get_room(self, room_id: int) -> Room | None:
        with self._rooms_lock:
            return next((r for r in self._rooms if r.room_id == room_id), None)

    def remove_room(self, room_id: int) -> bool:
        with self._rooms_lock:
            before = len(self._rooms)
            self._rooms = [r for r in self._rooms if r.room_id != room_id]
            return len(self._rooms) != before

    def list_all_devices(self) -> list[Device]:
        devices: list[Device] = []
        for room in self.rooms:
            devices.extend(room.devices)
        return devices

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @property
    def users(self) -> list[User]:
        with self._users_lock:
            return list(self._users)

    def add_user(self, user: User) -> bool:
        """Add *user* unless a user with the same id is already present."""
        with self._users_lock:
            if any(u.user_id == user.user_id for u in self._users):
                return False
            self._users.append(user)
            return True

    def get_user(self, user_id: int) -> User | None:
        with self._users_lock:
            return next((u for u in self._users if u.user_id == user_id), None)

    def find_user(self, login_name: str) -> User | None:
        with self._users_lock:
            return next((u for u in self._users if u.login_name == login_name), None)

    def remove_user(self, user_id: int) -> bool:
        with self._users_lock:
            before = len(self._users)
            self._users = [u for u in self._users if u.user_id != user_id]
            removed = len(self._users) != before
        if removed and self.admin is not None and self.admin.user_id == user_id:
            self.admin = None
        return removed

    def set_admin(self, user: User) -> None:
        user.is_admin = True
        self.admin = user
        self.add_user(user)

    # ------------------------------------------------------------------
    # Scenes
    # ------------------------------------------------------------------

    @property
    def scenes(self) -> list[AutomationScene]:
        with self._scenes_lock:
            return list(self._scenes)

    def add_scene(self, scene: AutomationScene) -> bool:
        """Add *scene*; a scene whose id is already present is rejected."""
        with self._scenes_lock:
            if any(s.scene_id == scene.scene_id for s in self._scenes):
                return False
            self._scenes.append(scene)
            return True

    def get_scene(self, scene_id: int) -> AutomationScene | None:
        with self._scenes_lock:
            return next((s for s in self._scenes if s.scene_id == scene_id), None)

    def remove_scene(self, scene_id: int) -> bool:
        with self._scenes_lock:
            before = len(self._scenes)
            self._scenes = [s for s in self._scenes if s.scene_id != scene_id]
            return len(self._scenes) != before

    def __repr__(self) -> str:
        return (
            f"Household(household_id={self.household_id}, address={self.address!r}, "
            f"rooms={len(self._rooms)}, users={len(self._users)}, "
            f"scenes={len(self._scenes)})"
        )
