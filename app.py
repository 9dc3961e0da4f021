"""
app.py
Streamlit Gym Membership Tracker (owner-only).
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
from datetime import date, datetime
import streamlit as st

import config
import db
import auth
import utils
from forms import MemberDraft
from models import PLAN_MONTHS, STATUS_FILTERS
from store import MemberStore, PersistenceError, ValidationError

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

st.set_page_config(page_title="Gym Membership Tracker", layout="wide")

STATUS_FILTER_LABELS = {
    "all": "All Members",
    "paid": "Paid",
    "unpaid": "Unpaid",
    "overdue": "Overdue",
    "due-soon": f"Due Soon ({config.DUE_SOON_DAYS} days)",
}


def init_once():
    if "store" in st.session_state:
        return
    db.init_db(auth.hash_password(config.DEFAULT_ADMIN_PASSWORD))
    store = MemberStore()
    store.load()
    st.session_state.store = store
    st.session_state.draft = MemberDraft()
    st.session_state.form_gen = 0


def require_login():
    if "logged_in" not in st.session_state:
        st.session_state.logged_in = False
    if "username" not in st.session_state:
        st.session_state.username = None


def logout():
    st.session_state.logged_in = False
    st.session_state.username = None
    st.success("Logged out.")


def login_screen():
    st.title("🔐 Gym Owner Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            if auth.login(username.strip(), password):
                st.session_state.logged_in = True
                st.session_state.username = username.strip()
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        st.info(
            "First run creates a default admin:\n\n"
            "- username: **admin**\n"
            "- password: **admin123** (or GYM_DEFAULT_ADMIN_PASSWORD)\n\n"
            "You will be forced to change it on first login."
        )


def password_fields() -> str | None:
    new1 = st.text_input("New password", type="password")
    new2 = st.text_input("Confirm new password", type="password")
    if st.button("Update password", type="primary"):
        if len(new1) < 6:
            st.error("Password must be at least 6 characters.")
        elif new1 != new2:
            st.error("Passwords do not match.")
        else:
            return new1
    return None


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    new_password = password_fields()
    if new_password:
        auth.change_password(st.session_state.username, new_password)
        st.success("Password updated. You can continue.")
        st.rerun()


def save_guard(action, *args, **kwargs):
    """
    Run a store mutation; show a notice instead of crashing when the write fails.
    """
    try:
        return action(*args, **kwargs)
    except PersistenceError as e:
        st.error(str(e))
        return None


def reset_form(draft: MemberDraft):
    draft.reset()
    st.session_state.form_gen += 1


# ---------- Pages ----------

def dashboard_page(store: MemberStore):
    st.header("📊 Dashboard")

    stats = store.stats(datetime.now())
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Members", stats["total"])
    c2.metric("Paid", stats["paid"])
    c3.metric("Unpaid", stats["unpaid"])
    c4.metric("Overdue", stats["overdue"])

    st.divider()

    st.subheader(f"Due soon (next {config.DUE_SOON_DAYS} days)")
    due_soon = store.filter(status="due-soon", now=datetime.now())
    if due_soon:
        df = utils.members_to_dataframe(due_soon, datetime.now())
        st.dataframe(df[["id", "name", "contact", "due_date", "due_status"]], use_container_width=True, hide_index=True)
    else:
        st.caption(f"No members due in the next {config.DUE_SOON_DAYS} days.")


def member_form(store: MemberStore, draft: MemberDraft):
    if draft.editing_id is not None:
        st.subheader(f"✏️ Edit Member (ID: {draft.editing_id})")
    else:
        st.subheader("➕ Add Member")

    k = f"form{st.session_state.form_gen}_"
    plans = list(PLAN_MONTHS.keys())

    col1, col2, col3 = st.columns(3)
    with col1:
        draft.set("name", st.text_input("Name *", value=draft.name, key=k + "name"))
        draft.set("age", st.text_input("Age", value=draft.age, key=k + "age"))
        draft.set("contact", st.text_input("Contact *", value=draft.contact, key=k + "contact"))
        draft.set("email", st.text_input("Email", value=draft.email, key=k + "email"))

    with col2:
        draft.set("address", st.text_input("Address", value=draft.address, key=k + "address"))
        draft.set(
            "membership_type",
            st.selectbox(
                "Membership type",
                options=plans,
                index=plans.index(draft.membership_type) if draft.membership_type in plans else 0,
                key=k + "plan",
            ),
        )
        draft.set("fee_amount", st.text_input("Fee amount *", value=draft.fee_amount, key=k + "fee"))

    with col3:
        join = st.date_input("Join date", value=utils.parse_iso(draft.join_date), key=k + "join")
        draft.set("join_date", join.isoformat())
        last_paid = st.date_input(
            "Last payment date",
            value=(utils.parse_iso(draft.last_payment_date) if draft.last_payment_date else None),
            key=k + "last_paid",
        )
        draft.set("last_payment_date", last_paid.isoformat() if last_paid else "")
        st.text_input("Due date (auto-calculated)", value=draft.due_date or "-", disabled=True, key=k + "due")
        draft.set("fee_paid", st.checkbox("Fee paid", value=draft.fee_paid, key=k + "paid"))

    c1, c2 = st.columns([1, 5])
    with c1:
        label = "Update Member" if draft.editing_id is not None else "Add Member"
        if st.button(label, type="primary"):
            try:
                saved = save_guard(draft.submit, store)
            except ValidationError as e:
                for err in e.errors:
                    st.error(err)
                return
            if saved is None:
                return
            st.session_state.form_gen += 1
            st.success("Member saved.")
            st.rerun()
    with c2:
        if st.button("Cancel"):
            reset_form(draft)
            st.rerun()


def member_actions(store: MemberStore, draft: MemberDraft, member_id: int):
    m = store.get(member_id)
    if m is None:
        return
    st.subheader("Member actions")
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        if st.button("Mark as paid", disabled=m.fee_paid):
            save_guard(store.mark_paid, member_id)
            st.rerun()
    with c2:
        if st.button("Send reminder", disabled=not m.due_date):
            st.info(store.send_reminder(member_id, datetime.now()))
    with c3:
        if st.button("Edit"):
            st.session_state.draft = MemberDraft.from_member(m)
            st.session_state.form_gen += 1
            st.rerun()
    with c4:
        confirmed = st.checkbox("Confirm delete", value=False, key=f"del_confirm_{member_id}")
        if st.button("Delete", type="secondary", disabled=not confirmed):
            if save_guard(store.delete, member_id, lambda: confirmed):
                if draft.editing_id == member_id:
                    reset_form(draft)
                st.success("Member deleted.")
            st.rerun()


def members_page(store: MemberStore):
    st.header("👥 Members")

    with st.sidebar:
        st.subheader("Search & Filters")
        search = st.text_input("Search (name/contact)")
        status = st.selectbox("Status", STATUS_FILTERS, format_func=STATUS_FILTER_LABELS.get)

    now = datetime.now()
    rows = store.filter(search_term=search, status=status, now=now)
    df = utils.members_to_dataframe(rows, now)
    if rows:
        st.dataframe(df, use_container_width=True, hide_index=True)
    else:
        st.caption("No members found. Add your first member to get started!")

    st.divider()

    colA, colB = st.columns([1, 2])
    with colA:
        st.subheader("Select member")
        selected_id = st.selectbox("Member ID", options=["(none)"] + [str(m.id) for m in rows])

    with colB:
        if selected_id != "(none)":
            member_actions(store, st.session_state.draft, int(selected_id))

    st.divider()

    member_form(store, st.session_state.draft)


def reports_page(store: MemberStore):
    st.header("🧾 Reports")

    st.subheader("Export members to CSV")
    if store.members:
        st.download_button(
            "Download members.csv",
            data=utils.members_to_csv_bytes(store.members, datetime.now()),
            file_name="members.csv",
            mime="text/csv",
        )
    else:
        st.caption("No members to export.")


def settings_page(store: MemberStore):
    st.header("⚙️ Settings")

    st.subheader("Change password")
    new_password = password_fields()
    if new_password:
        auth.change_password(st.session_state.username, new_password)
        st.success("Password updated.")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert 3 sample members for testing (adds new rows each run).")
    if st.button("Insert sample data"):
        if save_guard(store.insert_sample_data, date.today()):
            st.success("Sample data inserted.")
        st.rerun()


def main_app():
    store: MemberStore = st.session_state.store

    st.sidebar.title("🏋️ Gym Tracker")
    st.sidebar.caption(f"Logged in as: {st.session_state.username}")
    if store.dirty:
        st.sidebar.warning("Latest changes are not saved. They will be lost on reload.")

    pages = ["Dashboard", "Members", "Reports", "Settings"]
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    if st.session_state.page == "Dashboard":
        dashboard_page(store)
    elif st.session_state.page == "Members":
        members_page(store)
    elif st.session_state.page == "Reports":
        reports_page(store)
    elif st.session_state.page == "Settings":
        settings_page(store)


# --------- App entry ---------

def run():
    init_once()
    require_login()

    if not st.session_state.logged_in:
        login_screen()
        return

    # Force password change on first login after DB creation
    if db.is_force_password_change():
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
