"""
Session Store

Owns the authentication state and is the only writer of the
credential slot.

State machine:
    UNKNOWN ──initialize()──> AUTHENTICATED     (credential present)
    UNKNOWN ──initialize()──> UNAUTHENTICATED   (credential absent)
    AUTHENTICATED ──logout() / 401──> UNAUTHENTICATED
    UNAUTHENTICATED ──login()──> AUTHENTICATED

initialize() looks at credential presence only; it does not ask the
remote service whether the credential is still valid. A revoked
credential is believed until the first 401 arrives.
"""

from typing import Any, Callable, Optional

from jose import jwt
from jose.exceptions import JWTError

from ewallet.errors import (
    CredentialsError,
    NetworkError,
    SessionStateError,
)
from ewallet.models.session import (
    LEGAL_TRANSITIONS,
    AuthState,
    Session,
    UserIdentity,
)
from ewallet.observability import get_logger
from ewallet.services.gateway import (
    FailureKind,
    GatewayError,
    GatewayFailure,
    RemoteGateway,
)
from ewallet.services.storage import CredentialStorageInterface
from ewallet.validation import CredentialsValidator


LOGIN_FAILED_MESSAGE = "Login failed. Please check your credentials."
LOGIN_NO_TOKEN_MESSAGE = "Login successful but no token received."
REGISTRATION_FAILED_MESSAGE = "Registration failed. Please try again."

SessionListener = Callable[[Session, Session], None]


def username_from_token(token: str) -> Optional[str]:
    """
    Read the subject claim of a JWT without verifying it.

    The client cannot verify the signature; the claim is only used to
    label the ledger view. Returns None for tokens that are not JWTs.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    subject = claims.get("sub") or claims.get("username")
    if isinstance(subject, str) and subject.strip():
        return subject.strip()
    return None


def extract_token(body: Any) -> Optional[str]:
    """Login responses carry the token as "token" (or "jwtToken")."""
    if not isinstance(body, dict):
        return None
    for key in ("token", "jwtToken", "accessToken"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class SessionStore:
    """
    Authentication session for one running client.

    Listeners registered with subscribe() are called with
    (previous, current) after every change.
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        credential_storage: CredentialStorageInterface,
        validator: Optional[CredentialsValidator] = None,
    ):
        self._gateway = gateway
        self._storage = credential_storage
        self._validator = validator or CredentialsValidator()
        self._session = Session()
        self._listeners: list[SessionListener] = []
        self._logger = get_logger(__name__)

        self._remove_invalidation_listener = gateway.add_invalidation_listener(
            self._on_remote_invalidation
        )

    @property
    def session(self) -> Session:
        return self._session

    @property
    def auth_state(self) -> AuthState:
        return self._session.auth_state

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener; returns its unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def close(self) -> None:
        """Detach from the gateway's invalidation events."""
        self._remove_invalidation_listener()

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _transition(
        self,
        auth_state: AuthState,
        user: Optional[UserIdentity],
        reason: str,
    ) -> Session:
        previous = self._session
        if (
            auth_state != previous.auth_state
            and (previous.auth_state, auth_state) not in LEGAL_TRANSITIONS
        ):
            raise SessionStateError(
                f"Illegal session transition {previous.auth_state.value} -> {auth_state.value}"
            )

        current = Session(
            credential_present=self._storage.present,
            auth_state=auth_state,
            user=user,
        )
        self._session = current

        if current != previous:
            self._logger.info(
                "session_transition",
                previous=previous.auth_state.value,
                current=current.auth_state.value,
                reason=reason,
                username=current.username,
            )
            for listener in list(self._listeners):
                listener(previous, current)

        return current

    def _clear_credential(self, reason: str) -> Session:
        """Empty the slot; drop to UNAUTHENTICATED unless still UNKNOWN."""
        self._storage.clear()
        if self._session.auth_state == AuthState.UNKNOWN:
            return self._transition(AuthState.UNKNOWN, None, reason)
        return self._transition(AuthState.UNAUTHENTICATED, None, reason)

    def _on_remote_invalidation(self, failure: GatewayFailure) -> None:
        self._clear_credential(reason="remote_401")

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def initialize(self) -> Session:
        """
        Resolve the initial state from the credential slot.

        Local only: no network call. Runs once; later calls return
        the current session unchanged.
        """
        if self._session.is_resolved:
            return self._session

        token = self._storage.get()
        if token:
            username = username_from_token(token)
            user = UserIdentity(username=username) if username else None
            return self._transition(AuthState.AUTHENTICATED, user, "credential_present")

        return self._transition(AuthState.UNAUTHENTICATED, None, "credential_absent")

    async def login(self, username: str, password: str) -> Session:
        """
        Exchange username/password for a credential.

        Raises:
            ValidationError: Empty username or password (no network call)
            CredentialsError: The remote service rejected the login
            NetworkError: The remote service could not be reached
            SessionStateError: initialize() has not run yet
        """
        if not self._session.is_resolved:
            raise SessionStateError("initialize() must run before login()")

        self._validator.validate_login(username, password)
        username = username.strip()

        try:
            body = await self._gateway.login(username, password)
        except GatewayError as e:
            self._clear_credential(reason="login_failed")
            if e.kind == FailureKind.TRANSPORT:
                raise NetworkError(LOGIN_FAILED_MESSAGE, status_code=e.status_code) from e
            message = e.message if e.failure.structured else LOGIN_FAILED_MESSAGE
            raise CredentialsError(message, status_code=e.status_code) from e

        token = extract_token(body)
        if not token:
            self._clear_credential(reason="login_without_token")
            raise CredentialsError(LOGIN_NO_TOKEN_MESSAGE)

        self._storage.set(token)
        return self._transition(
            AuthState.AUTHENTICATED,
            UserIdentity(username=username),
            "login",
        )

    def logout(self) -> Session:
        """
        Clear the credential and end the session.

        Never touches the network. Idempotent.
        """
        return self._clear_credential(reason="logout")

    async def register(
        self,
        username: str,
        password: str,
        confirm_password: Optional[str] = None,
    ) -> Any:
        """
        Create an account. The session is not changed either way.

        Returns:
            The remote service's response body

        Raises:
            ValidationError: Form checks failed (no network call)
            CredentialsError: The remote service rejected the registration
            NetworkError: The remote service could not be reached
        """
        self._validator.validate_registration(username, password, confirm_password)

        try:
            return await self._gateway.register(username.strip(), password)
        except GatewayError as e:
            if e.kind == FailureKind.TRANSPORT:
                raise NetworkError(REGISTRATION_FAILED_MESSAGE, status_code=e.status_code) from e
            message = e.message if e.failure.structured else REGISTRATION_FAILED_MESSAGE
            raise CredentialsError(message, status_code=e.status_code) from e
