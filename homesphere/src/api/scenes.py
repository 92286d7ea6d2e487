"""
Scene endpoints: listing and manual triggering.

Triggering returns the full SceneResult so clients can inspect every
per-action outcome, including rejected actions.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

from typing import Any

from fastapi import APIRouter, HTTPException

from homesphere.src.api.deps import CurrentUser, SystemDep
from homesphere.src.scene import SceneResult

router = APIRouter(prefix="/v1", tags=["scenes"])


@router.get("/scenes")
async def list_scenes(system: SystemDep, user: CurrentUser) -> list[dict[str, Any]]:
    return [scene.to_dict() for scene in system.scenes]


@router.post("/scenes/{scene_id}/trigger")
async def trigger_scene(
    scene_id: int, system: SystemDep, user: CurrentUser
) -> SceneResult:
    """Trigger a scene by id.

    Raises:
        HTTPException: 404 if the scene does not exist.
    """
    result = system.trigger_scene(scene_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"Scene {scene_id} not found.")
    return result
