"""
Access Gate

Decides, for a requested view and the current session, whether to
render it, show a neutral placeholder, or redirect. The only side
effect it ever performs is navigation.

Protected views:
    UNKNOWN          -> placeholder (no protected content, no redirect)
    UNAUTHENTICATED  -> redirect to the entry view, replacing history
    AUTHENTICATED    -> render

Login and registration views redirect an authenticated session to
the home view instead.
"""

from enum import Enum
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict

from ewallet.auth.session_store import SessionStore
from ewallet.models.session import AuthState


class View(str, Enum):
    """Navigable views of the client."""
    LOGIN = "login"
    REGISTER = "register"
    DASHBOARD = "dashboard"
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TRANSFER = "transfer"
    HISTORY = "history"

    @property
    def path(self) -> str:
        return f"/{self.value}"


ENTRY_VIEW = View.LOGIN
HOME_VIEW = View.DASHBOARD

PUBLIC_VIEWS = frozenset({View.LOGIN, View.REGISTER})
PROTECTED_VIEWS = frozenset(View) - PUBLIC_VIEWS


def resolve_path(path: str) -> View:
    """Map a path to a view. The root and unknown paths go home."""
    name = path.strip().strip("/").lower()
    try:
        return View(name)
    except ValueError:
        return HOME_VIEW


class Navigator(Protocol):
    """Whatever the front end uses to change the current view."""

    def replace(self, view: View) -> None:
        """Navigate, replacing the current history entry."""
        ...


class GateOutcome(str, Enum):
    PLACEHOLDER = "placeholder"
    REDIRECT = "redirect"
    RENDER = "render"


class GateDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    view: View
    outcome: GateOutcome
    redirect_to: Optional[View] = None
    replace: bool = False

    @property
    def should_render(self) -> bool:
        return self.outcome == GateOutcome.RENDER


class AccessGate:
    """Route-level gating on top of the SessionStore."""

    def __init__(self, session_store: SessionStore):
        self._session_store = session_store

    def check(self, view: View) -> GateDecision:
        """Decide what to show for a view. Pure; no navigation."""
        state = self._session_store.auth_state

        if state == AuthState.UNKNOWN:
            return GateDecision(view=view, outcome=GateOutcome.PLACEHOLDER)

        if view in PUBLIC_VIEWS:
            if state == AuthState.AUTHENTICATED:
                return GateDecision(
                    view=view,
                    outcome=GateOutcome.REDIRECT,
                    redirect_to=HOME_VIEW,
                    replace=True,
                )
            return GateDecision(view=view, outcome=GateOutcome.RENDER)

        if state == AuthState.UNAUTHENTICATED:
            return GateDecision(
                view=view,
                outcome=GateOutcome.REDIRECT,
                redirect_to=ENTRY_VIEW,
                replace=True,
            )

        return GateDecision(view=view, outcome=GateOutcome.RENDER)

    def guard(self, view: View, navigator: Navigator) -> GateDecision:
        """Decide, and perform the redirect if there is one."""
        decision = self.check(view)
        if decision.outcome == GateOutcome.REDIRECT and decision.redirect_to is not None:
            navigator.replace(decision.redirect_to)
        return decision
