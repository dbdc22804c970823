"""
Streamlit Frontend for SmartSpend

The screens a user works with daily: quick entry, the Bazar list,
monthly and yearly reports, lending and history.

DESIGN PRINCIPLES:
1. Every number on screen comes from the ledger core
2. One explicit AppState per session; nothing else is global
3. Clear notices when a save or sync did not go through
4. The entry form validates before anything is saved
"""

import asyncio
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import streamlit as st

from smartspend.config import get_settings, validate_all_settings
from smartspend.ledger import shift_month, top_n_by_description
from smartspend.ledger.entries import (
    received_money_draft,
    salary_draft,
    transfer_draft,
    withdrawal_draft,
)
from smartspend.ledger.lending import (
    lend_draft,
    people_balances,
    person_history,
    recovery_draft,
    search_people,
)
from smartspend.ledger.reports import (
    bazar_monthly_report,
    bazar_transactions,
    bazar_trips,
    daily_flow,
    expenses_by_category,
    month_end_balances,
    monthly_flow,
    top_expense_items,
)
from smartspend.models import (
    ACCOUNT_IDS,
    AccountFilter,
    AppState,
    Category,
    FinancialSummary,
    FlowRow,
    Period,
    Tab,
    Theme,
    TransactionDraft,
    TransactionType,
    local_now,
)
from smartspend.orchestrator import AdviceFlow, LedgerFlow, LedgerResult, create_app_components


# Page configuration
st.set_page_config(
    page_title="SmartSpend",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

DARK_CSS = """
<style>
    .stApp { background-color: #0f172a; color: #e2e8f0; }
</style>
"""

PAGES = {
    "➕ Add": Tab.INPUT,
    "🛒 Bazar": Tab.BAZAR,
    "📊 Report": Tab.REPORT,
    "📅 Month": Tab.MONTH,
    "📆 Year": Tab.YEAR,
    "🤝 Lending": Tab.LENDING,
    "📜 History": Tab.HISTORY,
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@st.cache_resource
def get_components() -> tuple[LedgerFlow, AdviceFlow]:
    """Get or create application components (cached), with the ledger loaded."""
    ledger_flow, advice_flow = create_app_components(use_cloud=True)
    notices = run_async(ledger_flow.load())
    for notice in notices:
        st.warning(notice)
    return ledger_flow, advice_flow


def get_state() -> AppState:
    if "app_state" not in st.session_state:
        st.session_state.app_state = AppState()
    return st.session_state.app_state


def set_state(state: AppState) -> None:
    st.session_state.app_state = state


def money(amount: Decimal) -> str:
    symbol = get_settings().app.currency_symbol
    return f"{symbol} {amount:,.2f}"


def parse_amount(text: str) -> Optional[Decimal]:
    try:
        amount = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        return None
    return amount if amount.is_finite() else None


def show_result(result: LedgerResult, success_message: str) -> None:
    """Report a ledger change: validation problems, then save/sync notices."""
    if result.validation is not None:
        for issue in result.validation.issues:
            if issue.severity == "error":
                st.error(issue.message)
            elif issue.severity == "warning":
                st.warning(issue.message)
    if result.success:
        st.success(success_message)
    for notice in result.notices:
        st.warning(notice)


def save_draft(ledger_flow: LedgerFlow, draft: TransactionDraft, message: str) -> None:
    result = run_async(ledger_flow.add_transaction(draft))
    show_result(result, message)


def flow_chart_data(rows: list[FlowRow]) -> dict:
    return {
        "label": [row.label for row in rows],
        "Income": [float(row.income) for row in rows],
        "Expense": [float(row.expense) for row in rows],
    }


def render_summary(summary: FinancialSummary) -> None:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Income", money(summary.total_income))
    col2.metric("Expenses", money(summary.total_expenses))
    col3.metric("Balance", money(summary.balance))
    col4.metric("Savings rate", f"{summary.savings_rate:.1f}%")

    col1, col2, col3 = st.columns(3)
    col1.metric("💼 Salary account", money(summary.salary_account_balance))
    col2.metric("🏦 Savings account", money(summary.savings_account_balance))
    col3.metric("💵 Cash", money(summary.cash_balance))


def main():
    """Main application entry point."""
    ledger_flow, advice_flow = get_components()
    state = get_state()

    if state.theme == Theme.DARK:
        st.markdown(DARK_CSS, unsafe_allow_html=True)

    # Sidebar navigation
    st.sidebar.title("💰 SmartSpend")
    st.sidebar.markdown("---")

    labels = list(PAGES)
    current = labels[list(PAGES.values()).index(state.active_tab)]
    page = st.sidebar.radio("Navigate to:", labels + ["🤖 Advice", "⚙️ Settings"],
                            index=labels.index(current))
    if page in PAGES and PAGES[page] != state.active_tab:
        state = state.model_copy(update={"active_tab": PAGES[page]})
        set_state(state)

    st.sidebar.markdown("---")
    account = st.sidebar.selectbox(
        "Account",
        options=list(AccountFilter),
        index=list(AccountFilter).index(state.account_filter),
        format_func=lambda a: a.value.title(),
    )
    if account != state.account_filter:
        state = state.model_copy(update={"account_filter": account})
        set_state(state)

    if st.sidebar.button("🌓 Toggle theme"):
        set_state(state.toggle_theme())
        st.rerun()

    # Route to appropriate page
    if page == "➕ Add":
        render_input_page(ledger_flow, advice_flow)
    elif page == "🛒 Bazar":
        render_bazar_page(ledger_flow, state)
    elif page == "📊 Report":
        render_report_page(ledger_flow, state)
    elif page == "📅 Month":
        render_month_page(ledger_flow, state)
    elif page == "📆 Year":
        render_year_page(ledger_flow, state)
    elif page == "🤝 Lending":
        render_lending_page(ledger_flow)
    elif page == "📜 History":
        render_history_page(ledger_flow, state)
    elif page == "🤖 Advice":
        render_advice_page(ledger_flow, advice_flow)
    elif page == "⚙️ Settings":
        render_settings_page(ledger_flow)


def render_input_page(ledger_flow: LedgerFlow, advice_flow: AdviceFlow):
    """Render the entry forms."""
    st.title("➕ Add Transaction")

    tx_type = st.radio(
        "Type",
        options=list(TransactionType),
        format_func=lambda t: t.value.title(),
        horizontal=True,
    )

    description = st.text_input("Description", placeholder="e.g., Lunch at office")

    categories = [c.value for c in Category]
    if "suggested_category" not in st.session_state:
        st.session_state.suggested_category = None
    if st.button("✨ Suggest category") and description:
        with st.spinner("Thinking..."):
            st.session_state.suggested_category = run_async(
                advice_flow.suggest_category(description)
            )
        if st.session_state.suggested_category is None:
            st.info("No suggestion available right now.")

    suggestion = st.session_state.suggested_category
    if suggestion and suggestion not in categories:
        categories.append(suggestion)
    default_index = categories.index(suggestion) if suggestion in categories else 0

    with st.form("transaction_form", clear_on_submit=True):
        amount_text = st.text_input("Amount", placeholder="0.00")
        category = st.selectbox("Category", options=categories, index=default_index)
        col1, col2 = st.columns(2)
        source = col1.selectbox("From account", options=ACCOUNT_IDS, format_func=str.title)
        target = None
        if tx_type == TransactionType.TRANSFER:
            target = col2.selectbox("To account", options=ACCOUNT_IDS, index=2, format_func=str.title)
        when = st.date_input("Date", value=local_now().date())
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        amount = parse_amount(amount_text)
        if amount is None or amount < 0:
            st.error("Please enter a valid amount.")
            return
        draft = TransactionDraft(
            amount=amount,
            type=tx_type,
            category=category,
            description=description,
            date=datetime.combine(when, local_now().time()),
            account_id=source,
            target_account_id=target,
        )
        save_draft(ledger_flow, draft, "Transaction saved.")
        st.session_state.suggested_category = None

    st.markdown("---")
    st.markdown("### Quick actions")
    col1, col2, col3 = st.columns(3)

    with col1.form("salary_form", clear_on_submit=True):
        st.markdown("**💼 Salary**")
        salary_text = st.text_input("Amount", key="salary_amount")
        if st.form_submit_button("Add salary"):
            amount = parse_amount(salary_text)
            if amount is None:
                st.error("Please enter a valid amount.")
            else:
                save_draft(ledger_flow, salary_draft(amount), "Salary added.")

    with col2.form("withdraw_form", clear_on_submit=True):
        st.markdown("**🏧 Cash withdrawal**")
        withdraw_text = st.text_input("Amount", key="withdraw_amount")
        withdraw_from = st.selectbox("From", options=["salary", "savings"], format_func=str.title)
        if st.form_submit_button("Withdraw"):
            amount = parse_amount(withdraw_text)
            if amount is None:
                st.error("Please enter a valid amount.")
            else:
                save_draft(ledger_flow, withdrawal_draft(amount, withdraw_from), "Withdrawal recorded.")

    with col3.form("received_form", clear_on_submit=True):
        st.markdown("**📥 Received money**")
        received_text = st.text_input("Amount", key="received_amount")
        received_into = st.selectbox("Into", options=ACCOUNT_IDS, index=2, format_func=str.title)
        note = st.text_input("From whom / note", key="received_note")
        if st.form_submit_button("Add"):
            amount = parse_amount(received_text)
            if amount is None:
                st.error("Please enter a valid amount.")
            else:
                save_draft(ledger_flow, received_money_draft(amount, received_into, note), "Income added.")

    with st.expander("🔁 Move to savings"):
        with st.form("savings_form", clear_on_submit=True):
            savings_text = st.text_input("Amount", key="savings_amount")
            if st.form_submit_button("Transfer salary → savings"):
                amount = parse_amount(savings_text)
                if amount is None:
                    st.error("Please enter a valid amount.")
                else:
                    draft = transfer_draft(amount, "salary", "savings", "Monthly savings")
                    save_draft(ledger_flow, draft, "Moved to savings.")


def render_bazar_page(ledger_flow: LedgerFlow, state: AppState):
    """Render the Bazar (groceries) list and trips."""
    st.title("🛒 Bazar")

    with st.form("bazar_form", clear_on_submit=True):
        st.markdown("One item per line: `item, amount`")
        lines = st.text_area("Items", placeholder="Potato, 60\nEggs, 145")
        paid_from = st.selectbox("Paid from", options=ACCOUNT_IDS, index=2, format_func=str.title)
        submitted = st.form_submit_button("💾 Save trip", type="primary")

    if submitted:
        # All items of one trip share a timestamp so they group together
        trip_time = local_now().replace(second=0, microsecond=0)
        drafts = []
        for line in lines.splitlines():
            name, _, amount_text = line.rpartition(",")
            amount = parse_amount(amount_text)
            if not name.strip() or amount is None:
                if line.strip():
                    st.warning(f"Skipped line: {line}")
                continue
            drafts.append(TransactionDraft(
                amount=amount,
                type=TransactionType.EXPENSE,
                category=Category.BAZAR,
                description=name.strip(),
                date=trip_time,
                account_id=paid_from,
            ))
        if drafts:
            result = run_async(ledger_flow.add_transactions(drafts))
            show_result(result, f"Saved {len(result.transactions)} items.")

    items = bazar_transactions(ledger_flow.snapshot, state.reference_now)
    total = sum((t.amount for t in items), Decimal("0"))
    st.metric("This month", money(total))

    st.markdown("### Trips")
    for trip in bazar_trips(items):
        with st.expander(f"{trip.started_at:%d %b, %H:%M} · {money(trip.total)}"):
            for t in trip.items:
                st.markdown(f"- {t.description}: {money(t.amount)}")

    st.markdown("### Most bought")
    for item in top_n_by_description(items, 5):
        st.markdown(f"- **{item.description}** × {item.count}: {money(item.total)}")

    with st.expander("📋 Monthly Bazar report"):
        for month, (month_total, trips) in bazar_monthly_report(ledger_flow.snapshot).items():
            st.markdown(f"**{month}**: {money(month_total)} over {len(trips)} trips")


def render_report_page(ledger_flow: LedgerFlow, state: AppState):
    """Render the period summary with category breakdown."""
    st.title("📊 Report")

    period = st.radio(
        "Period",
        options=list(Period),
        index=list(Period).index(state.period),
        format_func=lambda p: "This month" if p == Period.MONTH else "This year",
        horizontal=True,
    )
    if period != state.period:
        state = state.model_copy(update={"period": period})
        set_state(state)

    snapshot = ledger_flow.snapshot
    summary = snapshot.summary(state.period, state.account_filter, state.reference_now)
    render_summary(summary)

    filtered = snapshot.filtered(state.period, state.account_filter, state.reference_now)

    st.markdown("### Spending by category")
    by_category = expenses_by_category(filtered)
    if by_category:
        st.bar_chart({
            "category": [name for name, _ in by_category],
            "amount": [float(amount) for _, amount in by_category],
        }, x="category", y="amount")
    else:
        st.info("No expenses in this period.")

    st.markdown("### Top expenses")
    for item in top_expense_items(filtered, 5):
        st.markdown(f"- **{item.description}** × {item.count}: {money(item.total)}")


def render_month_page(ledger_flow: LedgerFlow, state: AppState):
    """Render one month with navigation."""
    col1, col2, col3 = st.columns([1, 3, 1])
    if col1.button("◀ Previous"):
        set_state(state.model_copy(update={"reference_now": shift_month(state.reference_now, -1)}))
        st.rerun()
    if col3.button("Next ▶"):
        set_state(state.model_copy(update={"reference_now": shift_month(state.reference_now, 1)}))
        st.rerun()
    col2.title(f"📅 {state.reference_now:%B %Y}")

    snapshot = ledger_flow.snapshot
    render_summary(snapshot.summary(Period.MONTH, state.account_filter, state.reference_now))

    filtered = snapshot.filtered(Period.MONTH, state.account_filter, state.reference_now)
    rows = daily_flow(filtered)
    if rows:
        st.bar_chart(flow_chart_data(rows), x="label", y=["Income", "Expense"])

    month = f"{state.reference_now:%Y-%m}"
    closing = month_end_balances(snapshot, month)
    st.markdown(f"### Balances at end of {state.reference_now:%B}")
    col1, col2, col3 = st.columns(3)
    col1.metric("Salary", money(closing.salary))
    col2.metric("Savings", money(closing.savings))
    col3.metric("Cash", money(closing.cash))


def render_year_page(ledger_flow: LedgerFlow, state: AppState):
    """Render the year overview."""
    st.title(f"📆 {state.reference_now:%Y}")

    snapshot = ledger_flow.snapshot
    render_summary(snapshot.summary(Period.YEAR, state.account_filter, state.reference_now))

    filtered = snapshot.filtered(Period.YEAR, state.account_filter, state.reference_now)
    st.bar_chart(flow_chart_data(monthly_flow(filtered)), x="label", y=["Income", "Expense"])


def render_lending_page(ledger_flow: LedgerFlow):
    """Render who owes what."""
    st.title("🤝 Lending")

    with st.form("lending_form", clear_on_submit=True):
        col1, col2, col3 = st.columns(3)
        name = col1.text_input("Name")
        amount_text = col2.text_input("Amount")
        action = col3.selectbox("Action", options=["Lend", "Recover"])
        account = st.selectbox("Account", options=ACCOUNT_IDS, index=2, format_func=str.title)
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        amount = parse_amount(amount_text)
        if not name.strip() or amount is None:
            st.error("Please enter a name and a valid amount.")
        elif action == "Lend":
            save_draft(ledger_flow, lend_draft(name, amount, account), f"Lent to {name.strip()}.")
        else:
            save_draft(ledger_flow, recovery_draft(name, amount, account), f"Recovered from {name.strip()}.")

    people = people_balances(ledger_flow.snapshot)
    term = st.text_input("🔍 Search people")
    if term:
        people = search_people(people, term)

    if not people:
        st.info("No lending records yet.")
    for person in people:
        label = f"{person.name} · {money(person.balance)}"
        with st.expander(label):
            for t in person_history(ledger_flow.snapshot, person.name):
                when = f"{t.date:%d %b %Y}" if t.date else "undated"
                st.markdown(f"- {when}: {t.description} ({money(t.amount)})")


def render_history_page(ledger_flow: LedgerFlow, state: AppState):
    """Render the statement for the selected account."""
    st.title("📜 History")

    transactions = ledger_flow.snapshot.filtered(account_filter=state.account_filter)
    if not transactions:
        st.info("No transactions yet. Use the Add page to record your first one.")
        return

    for t in transactions:
        col1, col2, col3 = st.columns([4, 2, 1])
        when = f"{t.date:%d %b %Y}" if t.date else "undated"
        route = t.account_id
        if t.is_transfer and t.target_account_id:
            route = f"{t.account_id} → {t.target_account_id}"
        col1.markdown(f"**{t.description or t.category}**  \n{when} · {t.category} · {route}")
        sign = {"income": "+", "expense": "-"}.get(t.type.value, "")
        col2.markdown(f"{sign}{money(t.amount)}")
        if col3.button("🗑️", key=f"delete_{t.id}"):
            result = run_async(ledger_flow.delete_transaction(t.id))
            show_result(result, "Deleted.")
            st.rerun()


def render_advice_page(ledger_flow: LedgerFlow, advice_flow: AdviceFlow):
    """Render the AI advice panel."""
    st.title("🤖 Advice")
    st.markdown("Get a short review of your recent spending.")

    if st.button("✨ Get advice", type="primary"):
        with st.spinner("Analyzing your transactions..."):
            st.session_state.advice = run_async(advice_flow.get_advice(ledger_flow.snapshot))

    if st.session_state.get("advice"):
        st.markdown(st.session_state.advice)


def render_settings_page(ledger_flow: LedgerFlow):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    status = validate_all_settings()

    services = [
        ("Google Sheets (Cloud sync)", "google_sheets"),
        ("Gemini (AI)", "gemini"),
    ]

    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if ledger_flow.cloud_enabled and st.button("☁️ Sync now"):
        notices = run_async(ledger_flow.sync_to_cloud())
        if notices:
            for notice in notices:
                st.warning(notice)
        else:
            st.success("Synced.")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "To configure the application, create a `.env` file with your API keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
