"""
Streamlit Frontend for Debt Tracker

One page: the current balance, the date interest was last applied,
payment and borrow inputs, and an undo button.

DESIGN PRINCIPLES:
1. The big number is always the authoritative balance, rounded
2. Every command shows what happened (interest added, undo applied, ...)
3. A failed save is shown, never hidden
4. The page holds no ledger state of its own
"""

import streamlit as st

from debt_tracker.animation import CounterAnimator
from debt_tracker.config import get_settings, validate_all_settings
from debt_tracker.controller import LedgerController, create_controller
from debt_tracker.display import DisplayState, format_amount, notifications
from debt_tracker.models.events import CommandResult


# Page configuration
st.set_page_config(
    page_title="Debt Tracker",
    page_icon="💴",
    layout="centered",
)

st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .big-number {
        font-size: 3em;
        font-weight: bold;
        color: #2c3e50;
        text-align: center;
    }
    .settled {
        color: #28a745;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_controller() -> LedgerController:
    """Get or create the ledger controller (cached)."""
    return create_controller()


def get_animator() -> CounterAnimator:
    if "animator" not in st.session_state:
        display = get_settings().display
        st.session_state.animator = CounterAnimator(
            duration_ms=display.animation_duration_ms,
            frame_interval_ms=display.frame_interval_ms,
        )
    return st.session_state.animator


def render_balance(placeholder, text: str, settled: bool = False) -> None:
    css = "big-number settled" if settled else "big-number"
    placeholder.markdown(
        f'<div class="{css}">¥{text}</div>',
        unsafe_allow_html=True,
    )


def show_result(result: CommandResult, locale: str) -> None:
    """Queue notifications so they survive the rerun."""
    st.session_state.notifications = notifications(result, locale)
    change = result.balance_change
    st.session_state.pending_animation = (
        (change.from_balance, change.to_balance) if change else None
    )


def main():
    """Main application entry point."""
    controller = get_controller()
    locale = get_settings().display.locale

    st.title("💴 Debt Tracker")

    for level, message in st.session_state.pop("notifications", []):
        getattr(st, level)(message)

    view = DisplayState.from_ledger(controller.state, locale)
    balance_placeholder = st.empty()

    pending = st.session_state.pop("pending_animation", None)
    if pending:
        animation = get_animator().animate(*pending)
        animation.run(lambda value: render_balance(balance_placeholder, format_amount(value, locale)))
    render_balance(balance_placeholder, view.balance_text, view.settled)

    st.caption(f"Interest last applied: {view.last_accrual_text}")
    if view.settled:
        st.success("🎉 The debt is paid off!")

    st.markdown("---")
    col1, col2 = st.columns(2)

    with col1:
        payment = st.text_input("Payment amount", key="payment_input")
        if st.button("💸 Record payment", type="primary", disabled=not view.payment_enabled):
            show_result(controller.record_payment(payment), locale)
            st.rerun()

    with col2:
        borrow = st.text_input("Borrow amount", key="borrow_input")
        if st.button("➕ Record borrow", disabled=not view.borrow_enabled):
            show_result(controller.record_borrow(borrow), locale)
            st.rerun()

    if st.button("↩️ Undo", disabled=not view.undo_enabled):
        show_result(controller.undo(), locale)
        st.rerun()

    with st.expander("⚙️ Configuration"):
        ledger = get_settings().ledger
        st.markdown(f"**Annual rate:** {ledger.annual_rate:.2%}")
        st.markdown(f"**Undo depth:** {ledger.max_history}")
        st.markdown(f"**Storage:** {get_settings().storage.backend}")
        status = validate_all_settings()
        if not status.get("google_sheets", False):
            st.caption("Google Sheets storage is not configured.")


if __name__ == "__main__":
    main()
