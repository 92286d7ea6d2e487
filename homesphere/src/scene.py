"""
Automation scenes: named, ordered lists of device actions.

Triggering a scene replays its actions strictly in list order through the
dispatcher. A failing action is logged with the scene's context and the
remaining actions still run, so a scene of N actions always attempts all N.
There is no rollback; a partially applied scene is a valid end state. The
caller receives every per-action outcome in a :class:`SceneResult`.

CHANGELOG:
- 2026-10-19: Report actions on unregistered devices as LOOKUP_ERROR (STORY-016)
- 2026-10-08: Return SceneResult with per-action outcomes (STORY-007)
- 2026-10-07: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from pydantic import BaseModel, computed_field

from homesphere.src.dispatcher import (
    ActionOutcome,
    ActionStatus,
    DeviceAction,
    dispatch,
    lookup_error,
)

if TYPE_CHECKING:
    from homesphere.src.devices import Device

logger = logging.getLogger(__name__)


class SceneResult(BaseModel):
    """Outcome of one scene trigger."""

    scene_id: int
    scene_name: str
    outcomes: list[ActionOutcome]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def applied_count(self) -> int:
        """Number of actions that changed device state."""
        return sum(1 for o in self.outcomes if o.changed)

    @property
    def failures(self) -> list[ActionOutcome]:
        return [o for o in self.outcomes if not o.ok]


class AutomationScene:
    """An ordered, named collection of DeviceActions triggerable as a unit.

    Args:
        scene_id: Scene identifier, unique within a household.
        name: Display name.
        description: Free-text description.
        actions: Optional initial actions, kept in the given order.
    """

    def __init__(
        self,
        scene_id: int,
        name: str,
        description: str = "",
        actions: list[DeviceAction] | None = None,
    ) -> None:
        self.scene_id = scene_id
        self.name = name
        self.description = description
        self._actions: list[DeviceAction] = list(actions or [])
        self._lock = threading.Lock()

    @property
    def actions(self) -> list[DeviceAction]:
        with self._lock:
            return list(self._actions)

    def add_action(self, action: DeviceAction) -> None:
        with self._lock:
            self._actions.append(action)

    def remove_action(self, action: DeviceAction) -> bool:
        """Remove the first action equal to *action*."""
        with self._lock:
            try:
                self._actions.remove(action)
            except ValueError:
                return False
            return True

    def trigger(
        self, is_registered: Callable[[Device], bool] | None = None
    ) -> SceneResult:
        """Replay every action in order and collect the outcomes.

        Args:
            is_registered: Optional check applied to each action's device
                before dispatch. Actions on a device it rejects are not
                dispatched and are reported as LOOKUP_ERROR.
        """
        actions = self.actions
        logger.info(
            "Triggering scene %d (%s) with %d action(s)",
            self.scene_id,
            self.name,
            len(actions),
        )

        outcomes: list[ActionOutcome] = []
        for index, action in enumerate(actions):
            if is_registered is not None and not is_registered(action.device):
                outcomes.append(lookup_error(action))
                continue
            try:
                outcome = dispatch(action)
            except Exception:
                logger.error(
                    "Scene %d action %d raised, continuing",
                    self.scene_id,
                    index,
                    exc_info=True,
                )
                outcome = ActionOutcome(
                    device_id=action.device.device_id,
                    command=str(action.command),
                    parameters=str(action.parameters),
                    status=ActionStatus.ERROR,
                    message="Action raised unexpectedly",
                )
                outcomes.append(outcome)
                continue
            if not outcome.ok:
                logger.warning(
                    "Scene %d action %d (%s) failed: %s, continuing",
                    self.scene_id,
                    index,
                    action,
                    outcome.message,
                )
            outcomes.append(outcome)

        result = SceneResult(
            scene_id=self.scene_id, scene_name=self.name, outcomes=outcomes
        )
        logger.info(
            "Scene %d finished: %d applied, %d failed",
            self.scene_id,
            result.applied_count,
            len(result.failures),
        )
        return result

    def to_dict(self) -> dict[str, object]:
        return {
            "scene_id": self.scene_id,
            "name": self.name,
            "description": self.description,
            "actions": [
                {
                    "device_id": a.device.device_id,
                    "command": a.command,
                    "parameters": a.parameters,
                }
                for a in self.actions
            ],
        }

    def __repr__(self) -> str:
        return (
            f"AutomationScene(scene_id={self.scene_id}, name={self.name!r}, "
            f"actions={len(self._actions)})"
        )
