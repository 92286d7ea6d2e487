"""
HomeSphere exception hierarchy.

Only authentication and loader failures are exceptions. Command validation
and lookup failures are returned as typed outcomes or None/False results so
callers can branch without unwinding.

CHANGELOG:
- 2026-10-05: Initial creation (STORY-001)

TODO:
- None
"""


class HomeSphereError(Exception):
    """Base exception for HomeSphere."""

    pass


class AuthenticationError(HomeSphereError):
    """Login failed; session state is unchanged."""

    pass


class UnknownUserError(AuthenticationError):
    """No user is registered under the given login name."""

    def __init__(self, login_name: str) -> None:
        super().__init__(f"Unknown login name: {login_name!r}")
        self.login_name = login_name


class WrongPasswordError(AuthenticationError):
    """The login name exists but the password does not match."""

    def __init__(self, login_name: str) -> None:
        super().__init__(f"Wrong password for {login_name!r}")
        self.login_name = login_name


class LoaderError(HomeSphereError):
    """A household data file line could not be parsed."""

    pass
