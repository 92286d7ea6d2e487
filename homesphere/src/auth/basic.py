"""
HTTP Basic authentication for the HomeSphere API.

Credentials from the ``Authorization: Basic`` header are checked through
``HomeSphere.authenticate``, which never changes the CLI-style session.
An unknown login name and a wrong password are reported with distinct
401 details. Admin-only routes additionally require ``is_admin``.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-014)

TODO:
- None
"""

import logging

from fastapi import HTTPException, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from homesphere.src.exceptions import UnknownUserError, WrongPasswordError
from homesphere.src.household import User
from homesphere.src.system import HomeSphere

logger = logging.getLogger(__name__)

_CHALLENGE = {"WWW-Authenticate": "Basic"}


class BasicAuth:
    """FastAPI-compatible HTTP Basic authentication dependency.

    Wraps HTTPBasic for OpenAPI documentation and validates the extracted
    credentials against the registry's users.

    Attributes:
        system: Registry whose users are authenticated.
        scheme: FastAPI HTTPBasic security scheme.
    """

    def __init__(self, system: HomeSphere) -> None:
        self.system = system
        self.scheme = HTTPBasic(auto_error=False)

    async def verify(self, request: Request) -> User:
        """FastAPI dependency that validates Basic credentials.

        Args:
            request: The incoming FastAPI request.

        Returns:
            User: The authenticated user.

        Raises:
            HTTPException: 401 Unauthorized if credentials are missing, the
                login name is unknown or the password is wrong.
        """
        credentials: HTTPBasicCredentials | None = await self.scheme(request)

        if credentials is None:
            raise HTTPException(
                status_code=401,
                detail="Missing authorization credentials.",
                headers=_CHALLENGE,
            )

        try:
            return self.system.authenticate(credentials.username, credentials.password)
        except UnknownUserError:
            logger.warning("API login with unknown login name %r", credentials.username)
            raise HTTPException(
                status_code=401,
                detail="Unknown login name.",
                headers=_CHALLENGE,
            ) from None
        except WrongPasswordError:
            logger.warning("API login with wrong password for %r", credentials.username)
            raise HTTPException(
                status_code=401,
                detail="Wrong password.",
                headers=_CHALLENGE,
            ) from None

    async def verify_admin(self, request: Request) -> User:
        """Like :meth:`verify`, but also require an administrator.

        Raises:
            HTTPException: 403 Forbidden if the user is not an administrator.
        """
        user = await self.verify(request)
        if not user.is_admin:
            raise HTTPException(
                status_code=403,
                detail="Administrator privileges required.",
            )
        return user
