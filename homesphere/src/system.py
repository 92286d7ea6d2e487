"""
HomeSphere registry: the explicit context object collaborators share.

One instance is built at process start and passed by reference to the CLI,
the loader, the formatters and the HTTP API. It owns the household (rooms,
users, scenes), the device registry keyed by device id and the session's
current user.

Collection mutations are serialised per collection; every read returns a
copy. Lookups that miss return ``None``/``False`` rather than raising. Only
authentication failures raise, with distinct exception types for an unknown
login name and a wrong password.

CHANGELOG:
- 2026-10-19: Per-registry default manufacturer; LOOKUP_ERROR for
  unregistered devices (STORY-016)
- 2026-10-10: Add create_device helper for the API and loader (STORY-012)
- 2026-10-09: Energy report and log export entry points (STORY-010)
- 2026-10-08: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from homesphere.src.devices import (
    DEFAULT_CLIMATE_POWER_W,
    DEFAULT_LIGHT_POWER_W,
    Clock,
    Device,
    DeviceType,
)
from homesphere.src.dispatcher import (
    ActionOutcome,
    DeviceAction,
    dispatch,
    lookup_error,
)
from homesphere.src.energy import EnergyReport, build_energy_report
from homesphere.src.exceptions import UnknownUserError, WrongPasswordError
from homesphere.src.formatters import get_formatter
from homesphere.src.household import Household, Room, User
from homesphere.src.manufacturer import (
    Manufacturer,
    default_manufacturer,
    resolve_device_type,
)
from homesphere.src.scene import AutomationScene, SceneResult

logger = logging.getLogger(__name__)

DEFAULT_HOUSEHOLD_ADDRESS = "Default household address"


class HomeSphere:
    """Registry and session context for one simulated household.

    Args:
        household: Household to operate on. A fresh one with id 1 is
            created when omitted.
        admin_login: Login name of the administrator bootstrapped on the
            first authentication attempt against an empty user list.
        admin_password: Password of that bootstrap administrator.
        default_climate_power_w: Rated wattage for climate units created
            through :meth:`create_device` without an explicit rating.
        default_light_power_w: Same, for dimmable lights.
        clock: Optional clock injected into devices created here.
    """

    def __init__(
        self,
        household: Household | None = None,
        *,
        admin_login: str = "admin",
        admin_password: str = "admin",
        default_climate_power_w: float = DEFAULT_CLIMATE_POWER_W,
        default_light_power_w: float = DEFAULT_LIGHT_POWER_W,
        clock: Clock | None = None,
    ) -> None:
        self.household = (
            household
            if household is not None
            else Household(1, DEFAULT_HOUSEHOLD_ADDRESS)
        )
        self.admin_login = admin_login
        self.admin_password = admin_password
        self.default_climate_power_w = default_climate_power_w
        self.default_light_power_w = default_light_power_w
        self.clock = clock
        self.default_manufacturer = default_manufacturer()

        self._devices: dict[int, Device] = {}
        self._devices_lock = threading.Lock()
        self._session_lock = threading.Lock()
        self._current_user: User | None = None

        for device in self.household.list_all_devices():
            self._devices.setdefault(device.device_id, device)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------

    @property
    def devices(self) -> list[Device]:
        """Registered devices ordered by id."""
        with self._devices_lock:
            return [self._devices[k] for k in sorted(self._devices)]

    def get_device(self, device_id: int) -> Device | None:
        with self._devices_lock:
            return self._devices.get(device_id)

    def is_registered(self, device: Device) -> bool:
        """True if *device* itself (not just its id) is in the registry."""
        with self._devices_lock:
            return self._devices.get(device.device_id) is device

    def add_device(self, device: Device, room_id: int | None = None) -> bool:
        """Register *device* and place it in room *room_id* if given.

        Rejected, without any mutation, when the id is already registered
        or when *room_id* names no room of the household.
        """
        with self._devices_lock:
            if device.device_id in self._devices:
                logger.warning(
                    "Device id %d already registered, rejecting %s",
                    device.device_id,
                    device.name,
                )
                return False

            room: Room | None = None
            if room_id is not None:
                room = self.household.get_room(room_id)
                if room is None:
                    logger.warning(
                        "Room %d does not exist, device %d (%s) not added",
                        room_id,
                        device.device_id,
                        device.name,
                    )
                    return False

            self._devices[device.device_id] = device
            if room is not None:
                room.add_device(device)

        logger.info(
            "Added %s device %d (%s)%s",
            device.device_type,
            device.device_id,
            device.name,
            f" to room {room_id}" if room_id is not None else "",
        )
        return True

    def create_device(
        self,
        device_type: str,
        device_id: int,
        name: str,
        room_id: int | None = None,
        *,
        manufacturer: Manufacturer | None = None,
        power_w: float | None = None,
    ) -> Device | None:
        """Produce a device through *manufacturer* and register it.

        Climate units and lights without an explicit *power_w* get the
        registry's configured default rating. Returns ``None`` if the id is
        taken or the room is unknown; nothing is produced in that case.

        Raises:
            ValueError: If *device_type* is not a known variant.
        """
        resolved = resolve_device_type(device_type)
        if power_w is None:
            if resolved is DeviceType.CLIMATE:
                power_w = self.default_climate_power_w
            elif resolved is DeviceType.LIGHT:
                power_w = self.default_light_power_w

        if self.get_device(device_id) is not None:
            logger.warning("Device id %d already registered", device_id)
            return None
        if room_id is not None and self.household.get_room(room_id) is None:
            logger.warning("Room %d does not exist", room_id)
            return None

        producer = (
            manufacturer if manufacturer is not None else self.default_manufacturer
        )
        device = producer.produce_device(
            resolved, device_id, name, power_w=power_w, clock=self.clock
        )
        if not self.add_device(device, room_id):
            # Lost a race for the id or room; undo the production record.
            producer.remove_device(device)
            return None
        return device

    def remove_device(self, device_id: int) -> bool:
        """Unregister a device, remove it from every room and drop it from
        its manufacturer's production list.

        Scene actions that still refer to the device are kept and report
        LOOKUP_ERROR when the scene is triggered.
        """
        with self._devices_lock:
            device = self._devices.pop(device_id, None)
        if device is None:
            return False
        for room in self.household.rooms:
            room.remove_device(device_id)
        device.manufacturer.remove_device(device)
        logger.info("Removed device %d (%s)", device_id, device.name)
        return True

    # ------------------------------------------------------------------
    # Rooms and scenes
    # ------------------------------------------------------------------

    @property
    def rooms(self) -> list[Room]:
        return self.household.rooms

    def get_room(self, room_id: int) -> Room | None:
        return self.household.get_room(room_id)

    def add_room(self, room: Room) -> bool:
        added = self.household.add_room(room)
        if added:
            logger.info("Added room %d (%s)", room.room_id, room.name)
        else:
            logger.warning("Room id %d already exists", room.room_id)
        return added

    @property
    def scenes(self) -> list[AutomationScene]:
        return self.household.scenes

    def get_scene(self, scene_id: int) -> AutomationScene | None:
        return self.household.get_scene(scene_id)

    def add_scene(self, scene: AutomationScene) -> bool:
        added = self.household.add_scene(scene)
        if added:
            logger.info("Added scene %d (%s)", scene.scene_id, scene.name)
        else:
            logger.warning("Scene id %d already exists", scene.scene_id)
        return added

    def remove_scene(self, scene_id: int) -> bool:
        return self.household.remove_scene(scene_id)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def submit(self, action: DeviceAction) -> ActionOutcome:
        """Dispatch a single action.

        An action on a device that is not registered here is not dispatched
        and yields a LOOKUP_ERROR outcome.
        """
        if not self.is_registered(action.device):
            return lookup_error(action)
        return dispatch(action)

    def power(self, device_id: int, on: bool) -> ActionOutcome | None:
        """Switch a device on or off; ``None`` if the id is unknown."""
        device = self.get_device(device_id)
        if device is None:
            return None
        return dispatch(DeviceAction(device, "power_on" if on else "power_off"))

    def trigger_scene(self, scene_id: int) -> SceneResult | None:
        """Trigger a scene by id; ``None`` if no such scene exists."""
        scene = self.get_scene(scene_id)
        if scene is None:
            logger.warning("Scene %d does not exist", scene_id)
            return None
        return scene.trigger(self.is_registered)

    def energy_report(self, start: datetime, end: datetime) -> EnergyReport:
        """Energy per energy-reporting device over ``[start, end]``.

        Raises:
            ValueError: If *end* is before *start*.
        """
        return build_energy_report(self.devices, start, end)

    def export_logs(self, fmt: str) -> str:
        """Render the household's running logs with the named formatter.

        Raises:
            ValueError: If *fmt* names no formatter.
        """
        return get_formatter(fmt).format(self.household)

    # ------------------------------------------------------------------
    # Users and session
    # ------------------------------------------------------------------

    @property
    def users(self) -> list[User]:
        return self.household.users

    @property
    def current_user(self) -> User | None:
        return self._current_user

    def add_user(self, user: User) -> bool:
        return self.household.add_user(user)

    def remove_user(self, user_id: int) -> bool:
        removed = self.household.remove_user(user_id)
        if removed:
            with self._session_lock:
                if self._current_user is not None and self._current_user.user_id == user_id:
                    self._current_user = None
        return removed

    def _ensure_bootstrap_admin(self) -> None:
        if self.household.users:
            return
        admin = User(
            user_id=1,
            login_name=self.admin_login,
            login_password=self.admin_password,
            username="Administrator",
            email="admin@homesphere.local",
            is_admin=True,
        )
        self.household.set_admin(admin)
        logger.info("Created default administrator %r", self.admin_login)

    def authenticate(self, login_name: str, password: str) -> User:
        """Check credentials without touching the session.

        Raises:
            UnknownUserError: If no user has *login_name*.
            WrongPasswordError: If the password does not match.
        """
        self._ensure_bootstrap_admin()
        user = self.household.find_user(login_name)
        if user is None:
            raise UnknownUserError(login_name)
        if user.login_password != password:
            raise WrongPasswordError(login_name)
        return user

    def login(self, login_name: str, password: str) -> User:
        """Authenticate and make the user current.

        On failure the current user is left unchanged.
        """
        try:
            user = self.authenticate(login_name, password)
        except (UnknownUserError, WrongPasswordError) as exc:
            logger.warning("Login failed for %r: %s", login_name, exc)
            raise
        with self._session_lock:
            self._current_user = user
        logger.info("User %r logged in", login_name)
        return user

    def logoff(self) -> None:
        with self._session_lock:
            user, self._current_user = self._current_user, None
        if user is not None:
            logger.info("User %r logged off", user.login_name)

    def register(
        self,
        login_name: str,
        password: str,
        username: str = "",
        email: str = "",
    ) -> User | None:
        """Create a user; ``None`` if *login_name* is already taken.

        The first user ever registered becomes the administrator.
        """
        existing = self.household.users
        if any(u.login_name == login_name for u in existing):
            logger.warning("Registration failed: login name %r taken", login_name)
            return None

        user = User(
            user_id=max((u.user_id for u in existing), default=0) + 1,
            login_name=login_name,
            login_password=password,
            username=username,
            email=email,
        )
        if not existing:
            self.household.set_admin(user)
        elif not self.household.add_user(user):
            return None
        logger.info("Registered user %r (id %d)", login_name, user.user_id)
        return user

    def __repr__(self) -> str:
        return (
            f"HomeSphere(household={self.household!r}, "
            f"devices={len(self._devices)})"
        )
