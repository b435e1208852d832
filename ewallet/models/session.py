"""
Session Models

The Session is the client's current belief about whether the user
is authenticated. There is exactly one per running client and only
the SessionStore produces new values of it.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthState(str, Enum):
    """
    Authentication states.

    UNKNOWN until initialize() has looked at the credential slot.
    """
    UNKNOWN = "unknown"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


# (from, to) pairs the SessionStore may perform. Self-transitions are no-ops.
LEGAL_TRANSITIONS: frozenset[tuple[AuthState, AuthState]] = frozenset({
    (AuthState.UNKNOWN, AuthState.AUTHENTICATED),
    (AuthState.UNKNOWN, AuthState.UNAUTHENTICATED),
    (AuthState.AUTHENTICATED, AuthState.UNAUTHENTICATED),
    (AuthState.UNAUTHENTICATED, AuthState.AUTHENTICATED),
})


class UserIdentity(BaseModel):
    """Who the session belongs to."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    username: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Username as known to the remote service"
    )


class Session(BaseModel):
    """Immutable snapshot of the authentication session."""
    model_config = ConfigDict(frozen=True)

    credential_present: bool = False
    auth_state: AuthState = AuthState.UNKNOWN
    user: Optional[UserIdentity] = None

    @property
    def is_authenticated(self) -> bool:
        return self.auth_state == AuthState.AUTHENTICATED

    @property
    def is_resolved(self) -> bool:
        """Has the initial credential check completed?"""
        return self.auth_state != AuthState.UNKNOWN

    @property
    def username(self) -> Optional[str]:
        return self.user.username if self.user else None
