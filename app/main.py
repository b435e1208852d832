"""
Streamlit Frontend for the E-Wallet Client

Every page goes through the AccessGate before anything is drawn:
- while the session is still being resolved a neutral placeholder is shown
- a signed-out user asking for a wallet page is sent to the login page
- a signed-in user asking for login/register is sent to the dashboard

The current view lives in the `view` query parameter so browser
history and reloads behave like a normal multi-page app.

Transaction forms follow the same convention as the rest of the UI:
- the submit button is disabled while a submission is in flight
- entered values survive a failed submission
- after a success the balance and history are refetched, never patched
"""

import asyncio
from decimal import Decimal
from typing import Any, Optional

import streamlit as st

from ewallet.auth import ENTRY_VIEW, HOME_VIEW, PUBLIC_VIEWS, View, resolve_path
from ewallet.errors import ValidationError, WalletError
from ewallet.models import TransactionKind
from ewallet.orchestrator import AppComponents, create_app_components
from ewallet.validation import get_user_friendly_summary


# Page configuration
st.set_page_config(
    page_title="E-Wallet",
    page_icon="💳",
    layout="centered",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .credit { color: #28a745; font-weight: bold; }
    .debit { color: #dc3545; font-weight: bold; }
    .big-number {
        font-size: 2.5em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


PAGE_TITLES = {
    View.DASHBOARD: "🏠 Dashboard",
    View.DEPOSIT: "➕ Deposit",
    View.WITHDRAW: "➖ Withdraw",
    View.TRANSFER: "🔁 Transfer",
    View.HISTORY: "📜 History",
}

FORM_KINDS = {
    View.DEPOSIT: TransactionKind.DEPOSIT,
    View.WITHDRAW: TransactionKind.WITHDRAW,
    View.TRANSFER: TransactionKind.TRANSFER,
}


def get_components() -> AppComponents:
    """One set of components per browser session."""
    if "components" not in st.session_state:
        st.session_state.components = create_app_components()
    return st.session_state.components


def run_async(coro):
    """
    Helper to run async functions in Streamlit.

    Each call gets a fresh event loop, so the gateway's HTTP client is
    closed before the loop goes away and recreated on the next call.
    """
    components = get_components()

    async def runner():
        try:
            return await coro
        finally:
            await components.gateway.aclose()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(runner())
    finally:
        loop.close()


class QueryParamNavigator:
    """Navigator backed by the `view` query parameter."""

    def replace(self, view: View) -> None:
        st.query_params["view"] = view.value
        st.rerun()


def current_view() -> View:
    return resolve_path(st.query_params.get("view", ""))


def go_to(view: View) -> None:
    st.query_params["view"] = view.value
    st.rerun()


def format_amount(amount: Optional[Decimal]) -> str:
    if amount is None:
        return "-"
    return f"{amount:,.2f}"


def clear_loaded_flags() -> None:
    for key in ("dashboard_loaded", "history_loaded"):
        st.session_state.pop(key, None)


def show_error(error: WalletError) -> None:
    if isinstance(error, ValidationError):
        st.error(get_user_friendly_summary(error))
    else:
        st.error(error.message)


def main():
    """Main application entry point."""
    components = get_components()
    view = current_view()

    decision = components.access_gate.guard(view, QueryParamNavigator())
    if not decision.should_render:
        # UNKNOWN state: render nothing protected and do not redirect
        st.info("Loading...")
        st.stop()

    if view in PUBLIC_VIEWS:
        render_public_page(components, view)
        return

    render_sidebar(components, view)

    if view == View.DASHBOARD:
        render_dashboard_page(components)
    elif view in FORM_KINDS:
        render_transaction_page(components, view)
    elif view == View.HISTORY:
        render_history_page(components)


def render_sidebar(components: AppComponents, view: View):
    session = components.session_store.session
    st.sidebar.title("💳 E-Wallet")
    if session.username:
        st.sidebar.markdown(f"Signed in as **{session.username}**")
    st.sidebar.markdown("---")

    pages = list(PAGE_TITLES)
    selected = st.sidebar.radio(
        "Navigate to:",
        pages,
        index=pages.index(view),
        format_func=lambda v: PAGE_TITLES[v],
    )
    if selected != view:
        go_to(selected)

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Log out"):
        components.session_store.logout()
        clear_loaded_flags()
        go_to(ENTRY_VIEW)


# -----------------------------------------------------------------------------
# Public pages
# -----------------------------------------------------------------------------

def render_public_page(components: AppComponents, view: View):
    st.title("💳 E-Wallet")
    if view == View.LOGIN:
        render_login_page(components)
    else:
        render_register_page(components)


def render_login_page(components: AppComponents):
    st.subheader("Log in")

    if st.session_state.pop("registered_message", None):
        st.success("Registration successful. Please log in.")

    with st.form("login_form"):
        username = st.text_input("Username", key="login_username")
        password = st.text_input("Password", type="password", key="login_password")
        submitted = st.form_submit_button("Log in", type="primary")

    if submitted:
        try:
            with st.spinner("Logging in..."):
                run_async(components.session_store.login(username, password))
        except WalletError as e:
            show_error(e)
        else:
            clear_loaded_flags()
            go_to(HOME_VIEW)

    if st.button("Create an account"):
        go_to(View.REGISTER)


def render_register_page(components: AppComponents):
    st.subheader("Create an account")

    with st.form("register_form"):
        username = st.text_input("Username", key="register_username")
        password = st.text_input("Password", type="password", key="register_password")
        confirm = st.text_input(
            "Confirm password", type="password", key="register_confirm"
        )
        submitted = st.form_submit_button("Register", type="primary")

    if submitted:
        try:
            with st.spinner("Creating your account..."):
                run_async(components.session_store.register(username, password, confirm))
        except WalletError as e:
            show_error(e)
        else:
            st.session_state.registered_message = True
            go_to(View.LOGIN)

    if st.button("Back to log in"):
        go_to(View.LOGIN)


# -----------------------------------------------------------------------------
# Protected pages
# -----------------------------------------------------------------------------

def render_balance(components: AppComponents):
    ledger = components.ledger
    st.markdown("Current balance")
    st.markdown(
        f'<div class="big-number">{format_amount(ledger.balance)}</div>',
        unsafe_allow_html=True,
    )
    if ledger.balance_error:
        st.warning(ledger.balance_error)


def render_entries(entries: list):
    if not entries:
        st.info("No transactions yet.")
        return

    for entry in entries:
        color = "credit" if entry.is_credit else "debit"
        sign = "+" if entry.is_credit else "-"
        counterparty = f" · {entry.counterparty_name}" if entry.counterparty_name else ""
        st.markdown(
            f"**{entry.label}**{counterparty}  \n"
            f'<span class="{color}">{sign}{format_amount(abs(entry.signed_amount))}</span>'
            f" · {entry.timestamp:%Y-%m-%d %H:%M}",
            unsafe_allow_html=True,
        )


def render_dashboard_page(components: AppComponents):
    st.title(PAGE_TITLES[View.DASHBOARD])

    if "dashboard_loaded" not in st.session_state or st.button("🔄 Refresh"):
        with st.spinner("Loading your wallet..."):
            run_async(components.ledger.refresh())
        st.session_state.dashboard_loaded = True

    render_balance(components)

    st.markdown("---")
    st.subheader("Recent transactions")
    if components.ledger.error:
        st.warning(components.ledger.error)
    render_entries(components.ledger.summary())


def _form_key(view: View, field: str) -> str:
    return f"{view.value}_{field}"


def render_transaction_page(components: AppComponents, view: View):
    """Deposit, withdraw and transfer share one form."""
    kind = FORM_KINDS[view]
    state_key = _form_key(view, "state")
    amount_key = _form_key(view, "amount")
    receiver_key = _form_key(view, "receiver")

    st.title(PAGE_TITLES[view])

    if state_key not in st.session_state:
        st.session_state[state_key] = "idle"  # idle, submitting, succeeded

    # Widgets can only be reset before they are created
    if st.session_state[state_key] == "succeeded":
        st.session_state.pop(amount_key, None)
        st.session_state.pop(receiver_key, None)
        st.success(st.session_state.pop(_form_key(view, "message"), "Done."))
        st.session_state[state_key] = "idle"

    render_balance(components)
    st.markdown("---")

    submitting = (
        st.session_state[state_key] == "submitting"
        or components.submitter.pending > 0
    )

    with st.form(f"{view.value}_form"):
        receiver = None
        if kind == TransactionKind.TRANSFER:
            receiver = st.text_input("Recipient username", key=receiver_key)
        amount = st.text_input("Amount", key=amount_key, placeholder="0.00")
        clicked = st.form_submit_button(
            "Submit", type="primary", disabled=submitting
        )

    if clicked:
        st.session_state[_form_key(view, "pending_input")] = (amount, receiver)
        st.session_state[state_key] = "submitting"
        st.rerun()

    if st.session_state[state_key] == "submitting":
        amount, receiver = st.session_state.pop(
            _form_key(view, "pending_input"), (amount, receiver)
        )
        submit_transaction(components, view, kind, amount, receiver)


def submit_transaction(
    components: AppComponents,
    view: View,
    kind: TransactionKind,
    amount: Any,
    receiver: Optional[str],
):
    state_key = _form_key(view, "state")
    try:
        with st.spinner("Submitting..."):
            result = run_async(components.submitter.submit(kind, amount, receiver))
    except WalletError as e:
        # Entered values stay in their widgets for another attempt
        st.session_state[state_key] = "idle"
        show_error(e)
        return

    with st.spinner("Refreshing balance..."):
        run_async(components.ledger.refresh())

    st.session_state[_form_key(view, "message")] = result.summary
    st.session_state[state_key] = "succeeded"
    st.rerun()


def render_history_page(components: AppComponents):
    st.title(PAGE_TITLES[View.HISTORY])

    col1, col2 = st.columns(2)
    with col1:
        start = st.date_input("From", value=None, key="history_start")
    with col2:
        end = st.date_input("To", value=None, key="history_end")

    if st.button("🔍 Apply", type="primary") or "history_loaded" not in st.session_state:
        with st.spinner("Loading history..."):
            run_async(components.ledger.fetch_range(start, end))
        st.session_state.history_loaded = True

    if components.ledger.error:
        st.warning(components.ledger.error)

    st.markdown("---")
    render_entries(components.ledger.history())


if __name__ == "__main__":
    main()
