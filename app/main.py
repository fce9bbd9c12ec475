import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
from datetime import datetime, time

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from budgetbook.advisor import advisor_from_config, generate_advice
from budgetbook.aggregation import bucket_by_category, bucket_by_month, newest_first, running_balance
from budgetbook.backup import dumps_snapshot
from budgetbook.config import load_config
from budgetbook.domain import (
    ALL, AVAILABLE_COLORS, AVAILABLE_ICONS, CURRENCIES, CUSTOM, EXPENSE, INCOME,
    LANGUAGES, LAST_MONTH, THIS_MONTH, THIS_YEAR, FilterSpec,
)
from budgetbook.exceptions import AdviceUnavailableError, RestoreError
from budgetbook.formatting import budget_level, format_amount
from budgetbook.log import setup_logging
from budgetbook.security import check_pin, is_locked
from budgetbook.services import FinanceService
from budgetbook.storage import FinanceStore, JsonFileStorage

st.set_page_config(page_title="Budget Book", layout="wide")

config = load_config()

if "service" not in st.session_state:
    setup_logging(config.log_level)
    st.session_state.service = FinanceService(FinanceStore(JsonFileStorage(config.data_dir)))
    st.session_state.unlocked = not is_locked(st.session_state.service.settings)

svc: FinanceService = st.session_state.service
settings = svc.settings


def money(value) -> str:
    return format_amount(value, svc.settings)


def show_error(result) -> None:
    st.error(result.get_error()["message"])


def tx_to_df(tx_list):
    rows = []
    for t in tx_list:
        rows.append({
            "id": t.id,
            "date": pd.to_datetime(t.date),
            "description": t.description,
            "category": t.category,
            "type": t.type,
            "amount": float(t.amount),
            "recurring": t.is_recurring,
        })
    return pd.DataFrame(rows, columns=["id", "date", "description", "category", "type", "amount", "recurring"])


if not st.session_state.unlocked:
    st.title("🔒 Budget Book Protected")
    with st.form("pin_form", clear_on_submit=True):
        attempt = st.text_input("Enter PIN", type="password", max_chars=4)
        if st.form_submit_button("Unlock"):
            if check_pin(settings, attempt):
                st.session_state.unlocked = True
                st.rerun()
            else:
                st.error("Wrong PIN")
    st.stop()


menu = st.sidebar.radio(
    "Menu",
    ["🏠 Dashboard", "💰 Budgets", "📑 Reports", "🗂 Categories", "⚙️ Settings", "🤖 Advisor"]
)

if svc.alerts:
    for alert in reversed(svc.alerts[-3:]):
        st.sidebar.warning(f"🔴 {alert['alert']}")
    if st.sidebar.button("Clear Alerts"):
        svc.alerts.clear()
        st.rerun()

if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    st.caption(datetime.now().strftime("%A, %d %B %Y"))

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        search = st.text_input("Search")
    with col2:
        kind = st.selectbox("Type", [ALL, INCOME, EXPENSE])
    with col3:
        category = st.selectbox("Category", ["—"] + [c.name for c in svc.categories])
    with col4:
        period = st.selectbox("Period", [ALL, THIS_MONTH, LAST_MONTH, THIS_YEAR, CUSTOM])

    start = end = None
    if period == CUSTOM:
        date_range = st.date_input("Date Range", value=())
        if len(date_range) == 2:
            start = datetime.combine(date_range[0], time.min)
            end = datetime.combine(date_range[1], time.min)

    spec = FilterSpec(
        search=search,
        type=kind,
        category=None if category == "—" else category,
        period=period,
        start=start,
        end=end,
    )
    summary = svc.summary(spec)

    k1, k2, k3 = st.columns(3)
    k1.metric("Income", money(summary.income))
    k2.metric("Expense", money(summary.expense))
    k3.metric("Balance", money(summary.balance))

    with st.expander("➕ Add New Transaction"):
        with st.form("input_form", clear_on_submit=True):
            c1, c2 = st.columns(2)
            with c1:
                description = st.text_input("Description")
                amount = st.number_input("Amount", min_value=0.0, step=10.0, format="%.2f")
                tx_type = st.radio("Type", [EXPENSE, INCOME], horizontal=True)
            with c2:
                tx_category = st.selectbox("Category", [c.name for c in svc.categories])
                tx_date = st.date_input("Date")
                recurring = st.checkbox("Recurring")
            submitted = st.form_submit_button("Add Transaction")

            if submitted:
                result = svc.add_transaction(
                    description=description,
                    amount=str(amount),
                    type=tx_type,
                    category=tx_category,
                    date=tx_date,
                    is_recurring=recurring,
                )
                if result.is_left():
                    show_error(result)
                else:
                    st.success("✅ Transaction added!")
                    st.rerun()

    filtered = newest_first(svc.filtered(spec))
    if filtered:
        df = tx_to_df(filtered)
        display_df = df.assign(
            date=df["date"].dt.strftime("%Y-%m-%d"),
            amount=[money(t.amount) if t.type == INCOME else f"- {money(t.amount)}" for t in filtered],
            icon=[svc.category_for(t.category).map(lambda c: c.icon).get_or_else("❓") for t in filtered],
        ).drop(columns=["id"])
        st.dataframe(display_df, use_container_width=True)

        st.download_button(
            "⬇️ Download Filtered Data",
            df.to_csv(index=False),
            file_name="transactions_filtered.csv",
            mime="text/csv"
        )

        to_delete = st.selectbox(
            "Delete transaction",
            options=[None] + [t.id for t in filtered],
            format_func=lambda tid: "—" if tid is None else next(
                f"{t.date:%Y-%m-%d} {t.description} ({money(t.amount)})" for t in filtered if t.id == tid
            ),
        )
        if to_delete and st.button("🗑 Delete", key="btn_delete_tx"):
            svc.delete_transaction(to_delete)
            st.rerun()
    else:
        st.info("No transactions match the selected filters")

elif menu == "💰 Budgets":
    st.title("💰 Budgets")
    st.caption(datetime.now().strftime("%B %Y"))

    with st.form("budget_form", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            b_category = st.selectbox("Category", [c.name for c in svc.categories_for(EXPENSE)])
        with c2:
            b_limit = st.number_input("Monthly Limit", min_value=0.0, step=50.0, format="%.2f")
        if st.form_submit_button("Add Budget"):
            result = svc.add_budget(b_category, str(b_limit))
            if result.is_left():
                show_error(result)
            else:
                st.rerun()

    statuses = svc.budget_statuses()
    if not statuses:
        st.info("No budgets defined")
    for status in statuses:
        level = budget_level(status.percentage)
        col_info, col_action = st.columns([5, 1])
        with col_info:
            st.metric(
                f"Budget: {status.budget.category}",
                f"{money(status.spent)} / {money(status.budget.limit)}",
                f"{money(status.remaining)} remaining",
                delta_color="inverse" if level != "ok" else "normal",
            )
            st.progress(float(status.percentage) / 100)
            if status.is_over_budget:
                st.error("⚠️ Over budget")
            elif level == "warning":
                st.warning("Close to the limit")
        with col_action:
            if st.button("🗑", key=f"del_budget_{status.budget.id}"):
                svc.delete_budget(status.budget.id)
                st.rerun()

elif menu == "📑 Reports":
    st.title("📑 Reports")
    left, right = st.columns(2)

    with left:
        expense_data = bucket_by_category(svc.transactions, EXPENSE)
        if expense_data:
            df_cat = pd.DataFrame([{"Category": c.name, "Total": float(c.total)} for c in expense_data])
            fig_cat = px.pie(df_cat, values="Total", names="Category", title="Expense by Category")
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No expenses yet")

    with right:
        monthly = bucket_by_month(svc.transactions)
        if monthly:
            fig_m = go.Figure()
            fig_m.add_trace(go.Bar(x=[m.key for m in monthly], y=[float(m.income) for m in monthly], name="Income"))
            fig_m.add_trace(go.Bar(x=[m.key for m in monthly], y=[float(m.expense) for m in monthly], name="Expense"))
            fig_m.update_layout(barmode="group", title="Monthly Income vs Expense")
            st.plotly_chart(fig_m, use_container_width=True)
        else:
            st.info("No transactions yet")

    rows = running_balance(svc.transactions)
    if rows:
        fig_bal = px.line(
            x=[t.date for t, _ in rows],
            y=[float(balance) for _, balance in rows],
            labels={"x": "Date", "y": "Balance"},
            title="Running Balance",
        )
        st.plotly_chart(fig_bal, use_container_width=True)

elif menu == "🗂 Categories":
    st.title("🗂 Categories")
    tab = st.radio("Type", [EXPENSE, INCOME], horizontal=True)

    for cat in svc.categories_for(tab):
        with st.expander(f"{cat.icon} · {cat.name} ({cat.type})"):
            with st.form(f"cat_form_{cat.id}"):
                name = st.text_input("Name", value=cat.name)
                icon = st.selectbox("Icon", AVAILABLE_ICONS, index=AVAILABLE_ICONS.index(cat.icon) if cat.icon in AVAILABLE_ICONS else 0)
                color = st.selectbox("Color", AVAILABLE_COLORS, index=AVAILABLE_COLORS.index(cat.color) if cat.color in AVAILABLE_COLORS else 0)
                save, delete = st.columns(2)
                if save.form_submit_button("Save"):
                    result = svc.update_category(cat.id, name=name, icon=icon, color=color)
                    if result.is_left():
                        show_error(result)
                    else:
                        st.rerun()
                if delete.form_submit_button("Delete"):
                    svc.delete_category(cat.id)
                    st.rerun()

    st.subheader("➕ New Category")
    with st.form("new_category", clear_on_submit=True):
        name = st.text_input("Name")
        cat_type = st.selectbox("Type", [tab, "both"])
        icon = st.selectbox("Icon", AVAILABLE_ICONS)
        color = st.selectbox("Color", AVAILABLE_COLORS)
        if st.form_submit_button("Add Category"):
            result = svc.add_category(name, cat_type, icon, color)
            if result.is_left():
                show_error(result)
            else:
                st.rerun()

elif menu == "⚙️ Settings":
    st.title("⚙️ Settings")

    language = st.selectbox("Language", LANGUAGES, index=LANGUAGES.index(settings.language))
    currency = st.selectbox("Currency", CURRENCIES, index=CURRENCIES.index(settings.currency))
    if (language, currency) != (settings.language, settings.currency):
        svc.update_settings(language=language, currency=currency)
        st.rerun()

    st.subheader("🔐 Security")
    if settings.has_password_protection:
        st.success("PIN protection is on")
        if st.button("Disable PIN"):
            svc.disable_pin()
            st.rerun()
    else:
        pin = st.text_input("New 4-digit PIN", type="password", max_chars=4)
        if st.button("Set PIN"):
            result = svc.enable_pin(pin)
            if result.is_left():
                show_error(result)
            else:
                st.rerun()

    st.subheader("💾 Backup")
    if settings.last_backup_date:
        st.caption(f"Last backup: {settings.last_backup_date}")
    if st.button("Prepare Backup"):
        st.session_state.backup_text = dumps_snapshot(svc.export_backup())
    if st.session_state.get("backup_text"):
        st.download_button(
            "⬇️ Download Backup",
            st.session_state.backup_text,
            file_name=f"budgetbook-backup-{datetime.now():%Y%m%d}.json",
            mime="application/json",
        )

    uploaded = st.file_uploader("Restore from backup", type=["json"])
    if uploaded is not None and st.button("Restore"):
        try:
            svc.restore_backup(uploaded.getvalue())
        except RestoreError as e:
            st.error(f"Restore failed: {e}")
        else:
            st.success("Backup restored")
            st.rerun()

elif menu == "🤖 Advisor":
    st.title("🤖 Advisor")
    st.caption("Insights from your most recent transactions")

    if st.button("✨ Get Advice"):
        with st.spinner("Analyzing..."):
            try:
                st.session_state.advice = asyncio.run(generate_advice(
                    svc.transactions, settings.currency, settings.language, advisor_from_config(config)
                ))
            except AdviceUnavailableError:
                st.session_state.advice = None
                st.error("Failed to fetch advice. Check your API key or try again later.")

    if st.session_state.get("advice"):
        st.markdown(st.session_state.advice)
