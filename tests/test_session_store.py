"""Tests for the authentication session state machine."""

import pytest

from ewallet.auth import SessionStore, extract_token, username_from_token
from ewallet.auth.session_store import (
    LOGIN_FAILED_MESSAGE,
    LOGIN_NO_TOKEN_MESSAGE,
    REGISTRATION_FAILED_MESSAGE,
)
from ewallet.errors import (
    CredentialsError,
    NetworkError,
    SessionStateError,
    ValidationError,
)
from ewallet.models import AuthState
from ewallet.services.gateway import GatewayError, routes

from tests.conftest import make_token


class TestTokenHelpers:
    """Tests for reading login responses and token claims."""

    def test_username_from_jwt_subject(self):
        """Test that the subject claim names the user."""
        assert username_from_token(make_token("carol")) == "carol"

    def test_username_from_opaque_token(self):
        """Test that a non-JWT token yields no username."""
        assert username_from_token("not-a-jwt") is None

    @pytest.mark.parametrize("body", [{"token": "t"}, {"jwtToken": "t"}, {"accessToken": "t"}])
    def test_extract_token_field_names(self, body):
        """Test the accepted token field names."""
        assert extract_token(body) == "t"

    @pytest.mark.parametrize("body", [None, "t", {}, {"token": ""}])
    def test_extract_token_missing(self, body):
        """Test bodies without a usable token."""
        assert extract_token(body) is None


class TestInitialize:
    """Tests for resolving the initial state."""

    def test_starts_unknown(self, session_store):
        """Test the state before initialize()."""
        assert session_store.auth_state == AuthState.UNKNOWN

    def test_credential_present_means_authenticated(self, session_store, storage, server):
        """Test presence-only resolution with no network call."""
        storage.set(make_token("alice"))

        session = session_store.initialize()

        assert session.auth_state == AuthState.AUTHENTICATED
        assert session.credential_present
        assert session.username == "alice"
        assert server.requests == []

    def test_opaque_credential_still_authenticates(self, session_store, storage):
        """Test that a token without claims keeps the presence-based state."""
        storage.set("opaque")

        session = session_store.initialize()

        assert session.is_authenticated
        assert session.user is None

    def test_no_credential_means_unauthenticated(self, session_store):
        """Test the empty-slot branch."""
        session = session_store.initialize()
        assert session.auth_state == AuthState.UNAUTHENTICATED
        assert not session.credential_present

    def test_initialize_runs_once(self, session_store, storage):
        """Test that a second initialize() does not re-read the slot."""
        session_store.initialize()
        storage.set(make_token())

        assert session_store.initialize().auth_state == AuthState.UNAUTHENTICATED


class TestLogin:
    """Tests for login()."""

    @pytest.mark.asyncio
    async def test_login_success(self, session_store, storage, server):
        """Test that a token response authenticates and persists the token."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_LOGIN, {"token": "fresh"})

        session = await session_store.login(" alice ", "secret")

        assert session.auth_state == AuthState.AUTHENTICATED
        assert session.username == "alice"
        assert storage.get() == "fresh"
        assert server.last_json(routes.AUTH_LOGIN)["username"] == "alice"

    @pytest.mark.asyncio
    async def test_login_before_initialize(self, session_store):
        """Test that login() refuses to run in the UNKNOWN state."""
        with pytest.raises(SessionStateError):
            await session_store.login("alice", "secret")

    @pytest.mark.asyncio
    async def test_login_empty_fields_never_hits_network(self, session_store, server):
        """Test local validation of the login form."""
        session_store.initialize()

        with pytest.raises(ValidationError):
            await session_store.login("", "")

        assert server.requests == []
        assert session_store.auth_state == AuthState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_login_rejected_with_message(self, session_store, storage, server):
        """Test that the service's message is surfaced."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_LOGIN, {"message": "Bad credentials"}, 400)

        with pytest.raises(CredentialsError) as exc:
            await session_store.login("alice", "wrong")

        assert exc.value.message == "Bad credentials"
        assert storage.get() is None
        assert session_store.auth_state == AuthState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_login_401_without_message(self, session_store, server):
        """Test the default login failure message."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_LOGIN, None, 401)

        with pytest.raises(CredentialsError) as exc:
            await session_store.login("alice", "wrong")

        assert exc.value.message == LOGIN_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_login_server_error_is_network_error(self, session_store, server):
        """Test that a message-less 500 is a NetworkError."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_LOGIN, None, 500)

        with pytest.raises(NetworkError) as exc:
            await session_store.login("alice", "secret")

        assert exc.value.message == LOGIN_FAILED_MESSAGE

    @pytest.mark.asyncio
    async def test_login_without_token(self, session_store, storage, server):
        """Test a success response that carries no token."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_LOGIN, {"message": "ok"})

        with pytest.raises(CredentialsError) as exc:
            await session_store.login("alice", "secret")

        assert exc.value.message == LOGIN_NO_TOKEN_MESSAGE
        assert storage.get() is None
        assert not session_store.session.is_authenticated

    @pytest.mark.asyncio
    async def test_failed_relogin_drops_to_unauthenticated(self, signed_in_store, storage, server):
        """Test that a failed login while signed in clears the old credential."""
        server.reply("POST", routes.AUTH_LOGIN, {"message": "Bad credentials"}, 400)

        with pytest.raises(CredentialsError):
            await signed_in_store.login("bob", "wrong")

        assert signed_in_store.auth_state == AuthState.UNAUTHENTICATED
        assert storage.get() is None


class TestLogout:
    """Tests for logout()."""

    def test_logout_clears_credential(self, signed_in_store, storage, server):
        """Test logout is local and empties the slot."""
        session = signed_in_store.logout()

        assert session.auth_state == AuthState.UNAUTHENTICATED
        assert not session.credential_present
        assert storage.get() is None
        assert server.requests == []

    def test_logout_is_idempotent(self, signed_in_store):
        """Test that logging out twice is harmless."""
        first = signed_in_store.logout()
        second = signed_in_store.logout()
        assert first == second

    def test_logout_while_unknown_stays_unknown(self, session_store, storage):
        """Test logout before initialize() only clears the slot."""
        storage.set("tok")

        session = session_store.logout()

        assert session.auth_state == AuthState.UNKNOWN
        assert storage.get() is None


class TestRemoteInvalidation:
    """Tests for 401 handling funneled through the SessionStore."""

    @pytest.mark.asyncio
    async def test_401_anywhere_logs_out(self, signed_in_store, gateway, storage, server):
        """Test that a 401 from any call ends the session."""
        server.reply("GET", routes.WALLET_BALANCE, {"message": "Token expired"}, 401)

        with pytest.raises(GatewayError):
            await gateway.get_balance()

        assert signed_in_store.auth_state == AuthState.UNAUTHENTICATED
        assert storage.get() is None

    @pytest.mark.asyncio
    async def test_closed_store_ignores_401(self, signed_in_store, gateway, server):
        """Test close() detaches the store from the gateway."""
        server.reply("GET", routes.WALLET_BALANCE, None, 401)
        signed_in_store.close()

        with pytest.raises(GatewayError):
            await gateway.get_balance()

        assert signed_in_store.auth_state == AuthState.AUTHENTICATED


class TestSubscription:
    """Tests for change notifications."""

    def test_listener_sees_transitions(self, session_store, storage):
        """Test (previous, current) pairs are delivered in order."""
        seen = []
        session_store.subscribe(lambda prev, cur: seen.append((prev.auth_state, cur.auth_state)))
        storage.set(make_token())

        session_store.initialize()
        session_store.logout()
        session_store.logout()

        assert seen == [
            (AuthState.UNKNOWN, AuthState.AUTHENTICATED),
            (AuthState.AUTHENTICATED, AuthState.UNAUTHENTICATED),
        ]

    def test_unsubscribe(self, session_store):
        """Test that an unsubscribed listener is not called."""
        seen = []
        unsubscribe = session_store.subscribe(lambda prev, cur: seen.append(cur))
        unsubscribe()

        session_store.initialize()

        assert seen == []


class TestRegister:
    """Tests for register()."""

    @pytest.mark.asyncio
    async def test_register_does_not_change_session(self, session_store, server):
        """Test that registering leaves the session unauthenticated."""
        session_store.initialize()
        server.reply("POST", routes.AUTH_REGISTER, text="User registered successfully")

        body = await session_store.register("alice", "secret1", "secret1")

        assert body == "User registered successfully"
        assert session_store.auth_state == AuthState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_register_validation_runs_first(self, session_store, server):
        """Test that a short username never reaches the service."""
        with pytest.raises(ValidationError):
            await session_store.register("ab", "secret1")
        assert server.requests == []

    @pytest.mark.asyncio
    async def test_register_rejected(self, session_store, server):
        """Test the service's rejection message is surfaced."""
        server.reply("POST", routes.AUTH_REGISTER, {"message": "Username already exists"}, 409)

        with pytest.raises(CredentialsError) as exc:
            await session_store.register("alice", "secret1")

        assert exc.value.message == "Username already exists"

    @pytest.mark.asyncio
    async def test_register_unreachable(self, session_store, server):
        """Test the default registration failure message."""
        server.reply("POST", routes.AUTH_REGISTER, None, 503)

        with pytest.raises(NetworkError) as exc:
            await session_store.register("alice", "secret1")

        assert exc.value.message == REGISTRATION_FAILED_MESSAGE


class TestIllegalTransitions:
    """Tests for the transition guard."""

    def test_unknown_cannot_be_reentered(self, signed_in_store):
        """Test that moving back to UNKNOWN is refused."""
        with pytest.raises(SessionStateError):
            signed_in_store._transition(AuthState.UNKNOWN, None, "test")

    def test_store_is_constructed_unknown(self, gateway, storage):
        """Test a brand new store regardless of slot contents."""
        storage.set("tok")
        assert SessionStore(gateway, storage).auth_state == AuthState.UNKNOWN
