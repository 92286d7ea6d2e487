"""
Liveness check for the HomeSphere API.

GET /health is unauthenticated. Besides ``status`` it reports how many rooms
and devices the served registry holds, which is enough to tell an empty
startup (no data file) from a loaded household.

CHANGELOG:
- 2026-10-19: Report room and device counts (STORY-016)
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

from fastapi import APIRouter

from homesphere.src.api.deps import SystemDep

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(system: SystemDep) -> dict[str, str | int]:
    return {
        "status": "ok",
        "rooms": len(system.rooms),
        "devices": len(system.devices),
    }
