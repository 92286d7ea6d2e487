"""
FastAPI dependency injection providers.

Provides the shared HomeSphere registry and the authenticated user for use
with FastAPI's Depends() mechanism. Both are read from ``app.state``, which
the application factory populates.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)
"""

from typing import Annotated

from fastapi import Depends, Request

from homesphere.src.household import User
from homesphere.src.system import HomeSphere


def get_system(request: Request) -> HomeSphere:
    """Return the registry stored on ``app.state``."""
    return request.app.state.system


async def get_current_user(request: Request) -> User:
    """Authenticate the request via BasicAuth on ``app.state``."""
    return await request.app.state.auth.verify(request)


async def get_admin_user(request: Request) -> User:
    """Authenticate the request and require an administrator."""
    return await request.app.state.auth.verify_admin(request)


# Type aliases for route handler signatures, e.g.
#   async def my_route(system: SystemDep, user: CurrentUser): ...
SystemDep = Annotated[HomeSphere, Depends(get_system)]
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(get_admin_user)]
