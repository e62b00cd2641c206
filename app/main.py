"""
Streamlit Frontend for Spend Tracker

The household records salaries, expenses, investments and other cash
activities, then reads the dashboard for a month or a whole year.

DESIGN PRINCIPLES:
1. Presentation only: every number shown comes from the session/engine
2. Every change goes to the backend first, then the data is refetched
3. Clear error messages, shown inline next to what failed
4. The view is frozen while an add/edit form is open

Run with:
    streamlit run app/main.py
"""

import asyncio
from datetime import date

import streamlit as st

from spend_tracker.config import get_settings, validate_all_settings
from spend_tracker.engine import filter_expenses
from spend_tracker.models import (
    MONTH_NAMES,
    ActivityEntry,
    ActivityType,
    DashboardView,
    EntryKind,
    ExpenseCategory,
    ExpenseEntry,
    FundGoal,
    FundsPatch,
    InsightKind,
    InvestmentEntry,
    InvestmentType,
    SalaryEntry,
    ViewMode,
    ViewScope,
)
from spend_tracker.services import AuthenticationError
from spend_tracker.session import (
    AuthSession,
    HouseholdSession,
    RefreshAfterCommandError,
    SessionError,
    create_app_components,
)
from spend_tracker.utils import format_currency


# Page configuration
st.set_page_config(
    page_title="Spend Tracker",
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 16px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 8px 0;
    }
    .warning-box {
        padding: 16px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 8px 0;
    }
</style>
""", unsafe_allow_html=True)

DARK_CSS = """
<style>
    .stApp { background-color: #111827; color: #f3f4f6; }
</style>
"""


def run_async(coro):
    """
    Run a coroutine on this browser session's event loop.

    The loop lives as long as the session so the HTTP connection pool
    is never shared across closed loops.
    """
    loop = st.session_state.get("event_loop")
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        st.session_state.event_loop = loop
    return loop.run_until_complete(coro)


def get_components() -> tuple[AuthSession, HouseholdSession]:
    """Get or create this browser session's components."""
    if "components" not in st.session_state:
        st.session_state.components = create_app_components()
    return st.session_state.components


def money(amount) -> str:
    return format_currency(amount, get_settings().app.currency_symbol)


def main():
    """Main application entry point."""
    auth, household = get_components()

    if "auth_restored" not in st.session_state:
        auth.restore()
        st.session_state.auth_restored = True

    if not auth.is_authenticated:
        render_auth_page(auth)
        return

    if "loaded" not in st.session_state:
        try:
            run_async(household.load())
        except SessionError as e:
            st.error(f"❌ Could not load your data: {e}")
        st.session_state.loaded = True

    if household.dark_mode:
        st.markdown(DARK_CSS, unsafe_allow_html=True)

    render_sidebar(auth, household)

    notice = st.session_state.pop("notice", None)
    if notice:
        st.warning(f"⚠️ {notice}")

    tabs = st.tabs([
        "📊 Dashboard",
        "💼 Salary",
        "🧾 Expenses",
        "📈 Investments",
        "🔁 Activities",
        "👪 Household",
    ])
    with tabs[0]:
        render_dashboard(household)
    with tabs[1]:
        render_salary_page(household)
    with tabs[2]:
        render_expenses_page(household)
    with tabs[3]:
        render_investments_page(household)
    with tabs[4]:
        render_activities_page(household)
    with tabs[5]:
        render_household_page(household)


# =============================================================================
# AUTH
# =============================================================================

def render_auth_page(auth: AuthSession):
    """Sign in / sign up form."""
    st.title("💰 Spend Tracker")
    mode = st.radio(
        "Mode", ["Sign in", "Create account"], horizontal=True, label_visibility="collapsed",
    )

    with st.form("auth_form"):
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        confirm = None
        if mode == "Create account":
            confirm = st.text_input("Confirm password", type="password")
        submitted = st.form_submit_button(mode)

    if submitted:
        try:
            if mode == "Sign in":
                run_async(auth.sign_in(email, password))
            else:
                run_async(auth.sign_up(email, password, confirm))
        except AuthenticationError as e:
            st.error(e.message)
        else:
            st.rerun()


# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar(auth: AuthSession, household: HouseholdSession):
    """View mode, period, scope and preferences."""
    view = household.view
    locked = household.open_dialog_name is not None

    st.sidebar.title("💰 Spend Tracker")
    st.sidebar.caption(auth.user.email if auth.user else "")
    st.sidebar.markdown("---")

    if locked:
        st.sidebar.info("Finish or cancel the open form to change the view.")

    try:
        mode = st.sidebar.radio(
            "View",
            list(ViewMode),
            index=list(ViewMode).index(view.view_mode),
            format_func=lambda m: m.value.title(),
            horizontal=True,
            disabled=locked,
        )
        if mode is not view.view_mode:
            run_async(household.set_view_mode(mode))
            st.rerun()

        year = st.sidebar.number_input(
            "Year",
            min_value=2000,
            max_value=2100,
            value=view.selected_year,
            step=1,
            disabled=locked,
        )
        month = view.selected_month
        if mode is ViewMode.MONTH:
            month = st.sidebar.selectbox(
                "Month",
                range(1, 13),
                index=view.selected_month - 1,
                format_func=lambda m: MONTH_NAMES[m - 1],
                disabled=locked,
            )
        if (month, year) != (view.selected_month, view.selected_year):
            run_async(household.set_period(month, int(year)))
            st.rerun()

        scope = st.sidebar.radio(
            "Scope",
            list(ViewScope),
            index=list(ViewScope).index(view.view_scope),
            format_func=lambda s: s.value.title(),
            horizontal=True,
            disabled=locked,
        )
        if scope is not view.view_scope:
            run_async(household.set_view_scope(scope))
            st.rerun()

        names = household.member_names
        if view.view_scope is ViewScope.PERSONAL and names:
            current = view.active_member_name
            name = st.sidebar.selectbox(
                "I am",
                names,
                index=names.index(current) if current in names else 0,
                disabled=locked,
            )
            if name != current:
                run_async(household.set_my_member_name(name))
                st.rerun()
    except SessionError as e:
        st.sidebar.error(str(e))

    st.sidebar.markdown("---")
    dark = st.sidebar.toggle("Dark mode", value=household.dark_mode)
    if dark != household.dark_mode:
        household.set_dark_mode(dark)
        st.rerun()

    if st.sidebar.button("Sign out"):
        auth.sign_out()
        st.session_state.pop("loaded", None)
        st.rerun()


# =============================================================================
# DASHBOARD
# =============================================================================

def render_dashboard(household: HouseholdSession):
    """Metrics, funds, insights and charts."""
    dashboard = household.dashboard()
    totals = dashboard.totals

    st.header(dashboard.heading)

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total income", money(totals.total_income))
    col2.metric("Expenses", money(totals.total_expenses))
    col3.metric("Investments", money(totals.total_investments))
    col4.metric(
        "Net savings",
        money(totals.savings),
        f"{totals.savings_percent_label}% of income",
    )

    if dashboard.funds.funds_enabled:
        st.metric(
            "Total available",
            money(dashboard.funds.total_available),
            f"{money(dashboard.funds.reserved_amount)} reserved in funds",
            delta_color="off",
        )

    render_insights(dashboard)
    render_funds(household, dashboard)
    render_charts(dashboard)


def render_insights(dashboard: DashboardView):
    if not dashboard.insights:
        return
    st.subheader("Insights")
    for insight in dashboard.insights:
        box = "success-box" if insight.kind is InsightKind.SUCCESS else "warning-box"
        st.markdown(f'<div class="{box}">{insight.message}</div>', unsafe_allow_html=True)


def render_funds(household: HouseholdSession, dashboard: DashboardView):
    """Fund goals with progress, plus the edit form."""
    st.subheader("Funds")

    for goal in dashboard.funds.goals:
        label = f"{goal.name.title()} fund"
        if not goal.enabled:
            st.caption(f"{label}: off")
            continue
        st.progress(
            float(goal.progress) / 100,
            text=f"{label}: {money(goal.current)} of {money(goal.target)}",
        )

    if not dashboard.funds.funds_enabled:
        st.caption(
            'Enable emergency or vacation fund to reserve money and track '
            '"Total available" on the dashboard.'
        )

    if household.open_dialog_name != "funds":
        if st.button("✏️ Edit funds", disabled=household.open_dialog_name is not None):
            household.open_dialog("funds")
            st.rerun()
        return

    with st.form("funds_form"):
        patch = {}
        for name, goal in household.funds.goals().items():
            st.markdown(f"**{name.title()} fund**")
            enabled = st.checkbox("Enabled", value=goal.enabled, key=f"{name}_enabled")
            target = st.number_input(
                "Target", min_value=0.0, value=float(goal.target), key=f"{name}_target",
            )
            current = st.number_input(
                "Reserved so far", min_value=0.0, value=float(goal.current), key=f"{name}_current",
            )
            patch[name] = FundGoal(enabled=enabled, target=target, current=current)
        col1, col2 = st.columns(2)
        save = col1.form_submit_button("💾 Save")
        cancel = col2.form_submit_button("Cancel")

    if cancel:
        household.close_dialog()
        st.rerun()
    if save:
        try:
            run_async(household.update_funds(FundsPatch(**patch)))
        except SessionError as e:
            # Dialog stays open so the edit isn't lost
            st.error(f"❌ Could not save funds: {e}")
        else:
            household.close_dialog()
            st.rerun()


def render_charts(dashboard: DashboardView):
    """Breakdowns and the year series."""
    st.subheader("Breakdown")

    def bars(values: dict, label: str):
        if not values:
            st.caption(f"No {label.lower()} yet")
            return
        st.markdown(f"**{label}**")
        st.bar_chart(
            [{"name": name, "amount": float(amount)} for name, amount in values.items()],
            x="name",
            y="amount",
        )

    col1, col2 = st.columns(2)
    with col1:
        bars(dashboard.expenses_by_category, "Expenses by category")
        bars(dashboard.salary_by_person, "Salary by person")
        bars(dashboard.activities_by_type, "Activities by type")
    with col2:
        bars(dashboard.investments_by_type, "Investments by type")
        bars(dashboard.expenses_by_person, "Expenses by person")
        bars(
            {bar.name: bar.amount for bar in dashboard.income_vs_spending},
            "Income vs spending",
        )

    if dashboard.contribution:
        st.markdown("**Contribution by member**")
        st.dataframe(
            [
                {
                    "Member": row.name,
                    "Salary": money(row.salary),
                    "Expenses": money(row.expenses),
                    "Investments": money(row.investments),
                }
                for row in dashboard.contribution
            ],
            hide_index=True,
            use_container_width=True,
        )

    if dashboard.month_series:
        st.markdown("**Month by month**")
        st.line_chart(
            [
                {
                    "month": f"{row.month:02d} {row.label}",
                    "Income": float(row.income),
                    "Expenses": float(row.expenses),
                    "Investments": float(row.investments),
                    "Savings": float(row.savings),
                }
                for row in dashboard.month_series
            ],
            x="month",
        )


# =============================================================================
# ENTRY PAGES
# =============================================================================

def entry_form_open(household: HouseholdSession, kind: EntryKind) -> bool:
    """Render the "Add" toggle. Returns True while this kind's form is open."""
    if not household.members:
        st.info("👪 Add a household member on the Household tab first.")
        return False
    if household.open_dialog_name == kind.value:
        return True
    if st.button(f"➕ Add {kind.value}", key=f"add_{kind.value}",
                 disabled=household.open_dialog_name is not None):
        household.open_dialog(kind.value)
        st.rerun()
    return False


def default_entry_date(household: HouseholdSession) -> date:
    view = household.view
    today = date.today()
    if (view.selected_year, view.selected_month) == (today.year, today.month):
        return today
    return date(view.selected_year, view.selected_month, 1)


def submit_entry(household: HouseholdSession, kind: EntryKind, build):
    """Validate the form values, send them, and close the form on success."""
    try:
        entry = build()
        run_async(household.add_entry(kind, entry))
    except ValueError as e:
        st.error(f"❌ {e}")
    except RefreshAfterCommandError as e:
        # Stored already: close the form so it is not submitted twice
        household.close_dialog()
        st.session_state.notice = str(e)
        st.rerun()
    except SessionError as e:
        st.error(f"❌ Could not add {kind.value}: {e}")
    else:
        household.close_dialog()
        st.rerun()


def render_entry_list(household: HouseholdSession, kind: EntryKind, rows: list, describe):
    """List entries with a delete button each."""
    if not rows:
        st.caption(f"No {kind.resource} for this period")
        return
    for entry in rows:
        col1, col2 = st.columns([6, 1])
        col1.markdown(describe(entry))
        if col2.button("🗑️", key=f"delete_{kind.value}_{entry.id}"):
            try:
                run_async(household.delete_entry(kind, entry.id))
            except RefreshAfterCommandError as e:
                st.session_state.notice = str(e)
                st.rerun()
            except SessionError as e:
                st.error(f"❌ Could not delete: {e}")
            else:
                st.rerun()


def form_buttons(household: HouseholdSession) -> bool:
    """Save/Cancel pair. Returns True when Save was pressed."""
    col1, col2 = st.columns(2)
    save = col1.form_submit_button("💾 Save")
    if col2.form_submit_button("Cancel"):
        household.close_dialog()
        st.rerun()
    return save


def render_salary_page(household: HouseholdSession):
    st.header("💼 Salary")
    kind = EntryKind.SALARY

    if entry_form_open(household, kind):
        with st.form("salary_form"):
            person = st.selectbox("Person", household.member_names)
            amount = st.number_input("Amount", min_value=0.0, step=1000.0)
            entry_date = st.date_input("Date", value=default_entry_date(household))
            if form_buttons(household):
                submit_entry(household, kind, lambda: SalaryEntry(
                    person=person,
                    amount=amount,
                    date=entry_date,
                    month=entry_date.month,
                    year=entry_date.year,
                ))

    render_entry_list(
        household, kind, household.scoped_snapshot().salaries,
        lambda s: f"**{s.person}** · {money(s.amount)} · {s.entry_date:%d %b %Y}",
    )


def render_expenses_page(household: HouseholdSession):
    st.header("🧾 Expenses")
    kind = EntryKind.EXPENSE

    if entry_form_open(household, kind):
        with st.form("expense_form"):
            title = st.text_input("Title")
            amount = st.number_input("Amount", min_value=0.0, step=100.0)
            category = st.selectbox(
                "Category", list(ExpenseCategory), format_func=lambda c: c.value,
            )
            paid_by = st.selectbox("Paid by", household.member_names)
            entry_date = st.date_input("Date", value=default_entry_date(household))
            notes = st.text_area("Notes")
            if form_buttons(household):
                submit_entry(household, kind, lambda: ExpenseEntry(
                    title=title,
                    amount=amount,
                    category=category,
                    paid_by=paid_by,
                    date=entry_date,
                    month=entry_date.month,
                    year=entry_date.year,
                    notes=notes or None,
                ))

    col1, col2 = st.columns(2)
    category_filter = col1.selectbox(
        "Filter by category",
        [None] + list(ExpenseCategory),
        format_func=lambda c: "All categories" if c is None else c.value,
    )
    member_filter = col2.selectbox(
        "Filter by member",
        [None] + household.member_names,
        format_func=lambda m: "Everyone" if m is None else m,
    )
    rows = filter_expenses(
        household.scoped_snapshot().expenses,
        category=category_filter,
        paid_by=member_filter,
    )
    render_entry_list(
        household, kind, list(rows),
        lambda e: (
            f"**{e.title}** · {money(e.amount)} · {e.category.value} · "
            f"{e.paid_by} · {e.entry_date:%d %b %Y}"
        ),
    )


def render_investments_page(household: HouseholdSession):
    st.header("📈 Investments")
    kind = EntryKind.INVESTMENT

    if entry_form_open(household, kind):
        with st.form("investment_form"):
            investment_type = st.selectbox(
                "Type", list(InvestmentType), format_func=lambda t: t.value,
            )
            amount = st.number_input("Amount", min_value=0.0, step=1000.0)
            owner = st.selectbox("Owner", household.member_names)
            entry_date = st.date_input("Date", value=default_entry_date(household))
            return_percent = st.number_input("Return %", value=0.0, step=0.5)
            price_per_gram = st.number_input(
                "Price per gram at purchase (Gold only)", min_value=0.0, step=10.0,
            )
            notes = st.text_area("Notes")
            if form_buttons(household):
                submit_entry(household, kind, lambda: InvestmentEntry(
                    type=investment_type,
                    amount=amount,
                    owner=owner,
                    date=entry_date,
                    month=entry_date.month,
                    year=entry_date.year,
                    return_percent=return_percent or None,
                    price_per_gram_at_purchase=(
                        price_per_gram
                        if investment_type is InvestmentType.GOLD and price_per_gram
                        else None
                    ),
                    notes=notes or None,
                ))

    render_entry_list(
        household, kind, household.scoped_snapshot().investments,
        lambda i: (
            f"**{i.type.value}** · {money(i.amount)} · {i.owner} · "
            f"{i.entry_date:%d %b %Y}"
        ),
    )

    st.markdown("---")
    if st.button("🪙 Value gold holdings"):
        try:
            valuation = run_async(household.gold_valuation())
        except SessionError as e:
            st.error(f"❌ Could not value gold: {e}")
        else:
            col1, col2, col3 = st.columns(3)
            col1.metric("Price per gram", money(valuation.current_price_per_gram))
            col2.metric("Invested", money(valuation.total_invested))
            col3.metric(
                "Current value",
                money(valuation.total_current_value),
                money(valuation.gain),
            )


def render_activities_page(household: HouseholdSession):
    st.header("🔁 Other activities")
    st.caption("Income and gifts add to income. Loans count as spending. Transfers and other are informational.")
    kind = EntryKind.ACTIVITY

    if entry_form_open(household, kind):
        with st.form("activity_form"):
            title = st.text_input("Title")
            activity_type = st.selectbox(
                "Type", list(ActivityType), format_func=lambda t: t.value,
            )
            amount = st.number_input("Amount", min_value=0.0, step=100.0)
            person = st.selectbox("Person", household.member_names)
            entry_date = st.date_input("Date", value=default_entry_date(household))
            notes = st.text_area("Notes")
            if form_buttons(household):
                submit_entry(household, kind, lambda: ActivityEntry(
                    title=title,
                    type=activity_type,
                    amount=amount,
                    person=person,
                    date=entry_date,
                    month=entry_date.month,
                    year=entry_date.year,
                    notes=notes or None,
                ))

    render_entry_list(
        household, kind, household.scoped_snapshot().activities,
        lambda a: (
            f"**{a.title}** · {a.type.value} · {money(a.amount)} · {a.person} · "
            f"{a.entry_date:%d %b %Y}"
        ),
    )


# =============================================================================
# HOUSEHOLD
# =============================================================================

def render_household_page(household: HouseholdSession):
    """Members and connection status."""
    st.header("👪 Household")

    with st.form("member_form", clear_on_submit=True):
        name = st.text_input("Member name")
        if st.form_submit_button("➕ Add member"):
            try:
                run_async(household.add_member(name))
            except SessionError as e:
                st.error(f"❌ Could not add member: {e}")
            else:
                st.rerun()

    if not household.members:
        st.info("No members yet. Add everyone who earns, spends or invests.")
    for member in household.members:
        col1, col2 = st.columns([6, 1])
        col1.markdown(f"**{member.name}**")
        if col2.button("🗑️", key=f"remove_member_{member.id}"):
            try:
                run_async(household.remove_member(member.id))
            except SessionError as e:
                st.error(f"❌ Could not remove member: {e}")
            else:
                st.rerun()

    st.markdown("---")
    st.markdown("### Connection Status")
    status = validate_all_settings()
    for label, key in (("Backend", "backend"), ("App settings", "app")):
        if status.get(key, False):
            st.success(f"✅ {label} - OK")
        else:
            st.error(f"❌ {label} - {status.get(f'{key}_error', 'Not configured')}")


if __name__ == "__main__":
    main()
