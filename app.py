"""
app.py
Streamlit gym administration dashboard over Supabase.
Run: streamlit run app.py
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import pandas as pd
import streamlit as st
from supabase import AuthApiError

import auth
import billing_service
import config
import db
import fee_package_service
import member_service
import notification_service
import notification_feeds
import supplement_service
import utils
from models import BILL_STATUSES, MEMBER_STATUSES, NOTIFICATION_TYPES

st.set_page_config(page_title="Gym Administration", layout="wide")

logger = logging.getLogger(__name__)

PAGES = {
    "Dashboard": "/admin",
    "Members": "/admin/members",
    "Packages": "/admin/packages",
    "Billing": "/admin/billing",
    "Notifications": "/admin/notifications",
    "Supplements": "/admin/supplements",
    "Reports": "/admin/reports",
}


def init_once():
    if "settings" not in st.session_state:
        st.session_state.settings = config.load_config()
        logging.basicConfig(level=st.session_state.settings.log_level)


def init_session():
    if "auth_user" not in st.session_state:
        st.session_state.auth_user = None
    if "user_profile" not in st.session_state:
        st.session_state.user_profile = None
    if "page" not in st.session_state:
        st.session_state.page = "Dashboard"


def show_error(exc: Exception):
    # Dismissible banner; the page reloads its data on the next rerun
    st.session_state.flash_error = str(exc)


def show_success(msg: str):
    # Shown once, after the st.rerun() that follows a completed action
    st.session_state.flash_success = msg


def render_flash():
    """
    Messages queued by actions of the previous run. Called once per run, above the page.
    """
    msg = st.session_state.pop("flash_success", None)
    if msg:
        st.success(msg)
    err = st.session_state.get("flash_error")
    if err:
        c1, c2 = st.columns([6, 1])
        c1.error(err)
        if c2.button("Dismiss", key="dismiss_error"):
            st.session_state.flash_error = None
            st.rerun()


def logout():
    try:
        auth.sign_out()
    except AuthApiError as exc:  # session may already be gone server-side
        logger.warning(f"Sign-out failed: {exc}")
    st.session_state.auth_user = None
    st.session_state.user_profile = None
    show_success("Logged out.")


def login_screen():
    st.title("🔐 Gym Admin Login")
    render_flash()

    col1, col2 = st.columns([1, 1])
    with col1:
        email = st.text_input("Email")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            user = auth.sign_in(email.strip(), password)
            if user:
                st.session_state.auth_user = {"id": user.id, "email": user.email}
                st.session_state.user_profile = None
                return_to = st.session_state.pop("return_to", None)
                for name, path in PAGES.items():
                    if path == return_to:
                        st.session_state.page = name
                st.rerun()
            else:
                st.error("Invalid email or password.")

    with col2:
        st.info(
            "Sign in with a Supabase account whose profile role is **ADMIN**.\n\n"
            "Members and users are sent to the unauthorized page."
        )


def unauthorized_screen():
    st.title("⛔ Unauthorized")
    st.warning("Your account does not have access to the admin dashboard.")
    profile = st.session_state.user_profile
    if profile:
        st.caption(f"Signed in as {profile.email} ({profile.role}); your dashboard is {auth.dashboard_for_role(profile.role)}.")
    if st.button("Logout"):
        logout()
        st.rerun()


def guard(page: str) -> bool:
    """
    Route protection for one page. Returns True when the page may render.
    """
    user = st.session_state.auth_user
    if user and st.session_state.user_profile is None:
        try:
            st.session_state.user_profile = auth.load_profile(user["id"])
        except db.ServiceError as exc:
            show_error(exc)

    decision = auth.evaluate_route(
        loading="auth_user" not in st.session_state,
        user=user,
        profile=st.session_state.user_profile,
        location=PAGES[page],
        allowed_roles=auth.ADMIN_ROUTE,
    )
    if decision.state == "loading":
        st.info("Loading...")
    elif decision.state == "unauthenticated":
        st.session_state.return_to = decision.from_location
        login_screen()
    elif decision.state == "profile-pending":
        render_flash()
        st.info("Loading profile...")
        if st.button("Retry"):
            st.rerun()
    elif decision.state == "forbidden":
        unauthorized_screen()
    return decision.allowed


# ---------- Pages ----------

def dashboard_page():
    st.header("📊 Dashboard")
    settings = st.session_state.settings

    try:
        members = member_service.compute_stats()
        bills = billing_service.compute_stats()
        notes = notification_service.compute_stats()
        expiring = member_service.list_expiring_soon(days=settings.expiry_warning_days)
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Active members", members.active)
    c2.metric("Total members", members.total)
    c3.metric("Monthly revenue", utils.format_amount(bills.monthly_revenue, settings.currency))
    c4.metric("Total revenue", utils.format_amount(bills.total_revenue, settings.currency))

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Pending bills", bills.pending_bills)
    c2.metric("Overdue bills", bills.overdue_bills)
    c3.metric("Unread notifications", notes.unread)
    c4.metric("Notifications (24h)", notes.recent_count)

    st.divider()

    st.subheader(f"Expiring soon (next {settings.expiry_warning_days} days)")
    if expiring:
        st.dataframe(
            pd.DataFrame([
                {
                    "membership_number": m.membership_number,
                    "name": m.display_name,
                    "package": m.fee_package.name if m.fee_package else None,
                    "end_date": m.membership_end_date,
                }
                for m in expiring
            ]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No members expiring soon.")


def member_form():
    st.subheader("➕ Add Member")

    col1, col2 = st.columns(2)
    with col1:
        full_name = st.text_input("Full name")
        email = st.text_input("Email")
        phone = st.text_input("Phone (optional)")
    with col2:
        address = st.text_input("Address (optional)")
        emergency_name = st.text_input("Emergency contact name (optional)")
        emergency_phone = st.text_input("Emergency contact phone (optional)")
        dob = st.text_input("Date of birth (YYYY-MM-DD, optional)")

    errors = utils.validate_member_inputs(email, full_name, phone, dob) if (full_name or email) else []
    for e in errors:
        st.error(e)

    if st.button("Save member", type="primary", disabled=bool(errors) or not full_name):
        try:
            member = member_service.create(
                {"email": email.strip(), "full_name": full_name.strip(), "phone": phone.strip() or None},
                {
                    "address": address.strip(),
                    "emergency_contact_name": emergency_name.strip(),
                    "emergency_contact_phone": emergency_phone.strip(),
                    "date_of_birth": dob.strip(),
                },
            )
            show_success(f"Member {member.membership_number} added.")
            st.rerun()
        except db.ServiceError as exc:
            show_error(exc)
            st.rerun()


def member_actions(member):
    settings = st.session_state.settings
    st.subheader(f"{member.display_name} ({member.membership_number})")
    st.write(
        f"Status: **{member.status}** | Package: **{member.fee_package.name if member.fee_package else '-'}** "
        f"| Ends: **{member.membership_end_date or '-'}**"
    )

    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("**Status**")
        new_status = st.selectbox("New status", MEMBER_STATUSES, index=MEMBER_STATUSES.index(member.status))
        reason = st.text_input("Reason (required for suspension)")
        if st.button("Update status"):
            try:
                member_service.change_status(member, new_status, reason)
                show_success("Status updated.")
                st.rerun()
            except ValueError as exc:
                st.error(str(exc))
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()

    with c2:
        st.markdown("**Fee package**")
        try:
            packages = fee_package_service.list_active()
        except db.ServiceError as exc:
            packages = []
            st.error(str(exc))
        if packages:
            labels = {f"{p.name} - {utils.format_amount(p.amount, settings.currency)} / {p.duration_months} mo": p for p in packages}
            chosen = st.selectbox("Package", list(labels.keys()))
            if st.button("Assign package"):
                try:
                    bill = member_service.assign_package(
                        member.id, labels[chosen], due_days=settings.bill_due_days, currency=settings.currency
                    )
                    show_success(f"Package assigned, bill {bill.id} generated.")
                    st.rerun()
                except db.ServiceError as exc:
                    show_error(exc)
                    st.rerun()
        else:
            st.caption("No active fee packages.")

    with c3:
        st.markdown("**Danger zone**")
        delete_confirm = st.checkbox("Confirm delete", value=False, key="del_member_confirm")
        if st.button("Delete member", disabled=not delete_confirm):
            try:
                notification_service.delete_all_for_member(member.id)
                member_service.delete(member.id)
                show_success("Member deleted.")
                st.rerun()
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()


def upgrade_user_form():
    st.subheader("⬆️ Upgrade user to member")
    try:
        users = member_service.list_users("USER")
    except db.ServiceError as exc:
        st.error(str(exc))
        return
    if not users:
        st.caption("No plain user accounts to upgrade.")
        return

    options = {f"{u.full_name or '-'} ({u.email})": u for u in users}
    chosen = st.selectbox("User", list(options.keys()))
    col1, col2 = st.columns(2)
    with col1:
        phone = st.text_input("Phone (optional)", key="upgrade_phone")
        address = st.text_input("Address (optional)", key="upgrade_address")
    with col2:
        emergency_name = st.text_input("Emergency contact name (optional)", key="upgrade_emergency_name")
        emergency_phone = st.text_input("Emergency contact phone (optional)", key="upgrade_emergency_phone")

    if st.button("Upgrade to member"):
        try:
            member = member_service.upgrade_user_to_member(
                options[chosen].id,
                {
                    "phone": phone.strip(),
                    "address": address.strip(),
                    "emergency_contact_name": emergency_name.strip(),
                    "emergency_contact_phone": emergency_phone.strip(),
                },
            )
            show_success(f"{member.display_name} is now member {member.membership_number}.")
            st.rerun()
        except db.ServiceError as exc:
            show_error(exc)
            st.rerun()


def members_page():
    st.header("👥 Members")

    with st.sidebar:
        st.subheader("Search & Filters")
        search = st.text_input("Search (number/name/email)")
        status_filter = st.selectbox("Status", ["All", *MEMBER_STATUSES])
        if st.button("Expire lapsed memberships"):
            try:
                count, labels = member_service.update_expired()
                st.success(f"{count} memberships expired." + (f" {', '.join(labels)}" if labels else ""))
            except db.ServiceError as exc:
                st.error(str(exc))
        if st.button("Sync member records"):
            try:
                result = member_service.sync_missing_member_records()
                st.success(f"{result.created} member records created.")
                for line in result.created_members:
                    st.caption(line)
                for line in result.errors:
                    st.error(line)
            except db.ServiceError as exc:
                st.error(str(exc))

    try:
        if status_filter != "All":
            members = member_service.list_by_status(status_filter)
            if search.strip():
                needle = search.strip().lower()
                members = [m for m in members if needle in f"{m.membership_number} {m.display_name}".lower()]
        else:
            members = member_service.search(search)
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    df = pd.DataFrame([
        {
            "id": m.id,
            "membership_number": m.membership_number,
            "name": m.display_name,
            "email": m.user.email if m.user else None,
            "status": m.status,
            "package": m.fee_package.name if m.fee_package else None,
            "end_date": m.membership_end_date,
        }
        for m in members
    ])
    if df.empty:
        st.caption("No members found.")
    else:
        st.dataframe(df, use_container_width=True, hide_index=True)

    st.divider()

    options = {f"{m.membership_number} - {m.display_name}": m for m in members}
    selected = st.selectbox("Select member", ["(none)", *options.keys()])
    if selected != "(none)":
        member_actions(options[selected])
        st.divider()

    member_form()
    st.divider()
    upgrade_user_form()


def packages_page():
    st.header("📦 Fee Packages")
    settings = st.session_state.settings

    try:
        packages = fee_package_service.list_all()
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    if packages:
        st.dataframe(
            pd.DataFrame([
                {
                    "name": p.name,
                    "amount": utils.format_amount(p.amount, settings.currency),
                    "months": p.duration_months,
                    "active": p.is_active,
                    "features": ", ".join(p.features),
                }
                for p in packages
            ]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No fee packages yet.")
        if st.button("Create default packages"):
            created = fee_package_service.create_defaults()
            show_success(f"{len(created)} packages created.")
            st.rerun()

    st.divider()

    options = {p.name: p for p in packages}
    selected = st.selectbox("Edit package", ["(new)", *options.keys()])
    existing = options.get(selected)

    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Name", value=existing.name if existing else "")
        amount = st.text_input("Amount", value=str(existing.amount) if existing else "1500")
        months = st.text_input("Duration (months)", value=str(existing.duration_months) if existing else "1")
    with col2:
        description = st.text_input("Description", value=(existing.description or "") if existing else "")
        features = st.text_area("Features (one per line)", value="\n".join(existing.features) if existing else "")
        is_active = st.checkbox("Active", value=existing.is_active if existing else True)

    errors = utils.validate_package_inputs(name, amount, months)
    if name:
        for e in errors:
            st.error(e)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Save package", type="primary", disabled=bool(errors)):
            data = {
                "name": name.strip(),
                "amount": float(amount),
                "duration_months": int(months),
                "description": description.strip() or None,
                "features": [f.strip() for f in features.splitlines() if f.strip()],
                "is_active": is_active,
            }
            try:
                if existing:
                    fee_package_service.update(existing.id, data)
                else:
                    fee_package_service.create(**data)
                show_success("Package saved.")
                st.rerun()
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()
    with c2:
        if existing and st.button("Delete package"):
            try:
                fee_package_service.delete(existing.id)
                show_success("Package deleted.")
                st.rerun()
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()


def billing_page():
    st.header("💳 Billing")
    settings = st.session_state.settings

    c1, c2 = st.columns([3, 1])
    with c1:
        status_filter = st.radio("Status", ["All", *BILL_STATUSES], horizontal=True)
    with c2:
        if st.button("Mark overdue bills"):
            try:
                count = billing_service.mark_overdue()
                st.success(f"{count} bills marked overdue.")
            except db.ServiceError as exc:
                st.error(str(exc))

    try:
        stats = billing_service.compute_stats()
        bills = billing_service.list_all() if status_filter == "All" else billing_service.list_by_status(status_filter)
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total revenue", utils.format_amount(stats.total_revenue, settings.currency))
    m2.metric("This month", utils.format_amount(stats.monthly_revenue, settings.currency))
    m3.metric("Pending", stats.pending_bills)
    m4.metric("Overdue", stats.overdue_bills)

    if not bills:
        st.caption("No bills.")
        return

    st.dataframe(
        pd.DataFrame([
            {
                "id": b.id,
                "member": b.member.display_name if b.member else b.member_id,
                "type": b.bill_type,
                "amount": utils.format_amount(b.amount, b.currency),
                "status": b.status,
                "due_date": b.due_date[:10],
                "paid_date": b.paid_date[:10] if b.paid_date else None,
                "notes": b.notes,
            }
            for b in bills
        ]),
        use_container_width=True,
        hide_index=True,
    )

    st.divider()

    st.subheader("Process payment")
    unpaid = {f"{b.id} - {b.member.display_name if b.member else b.member_id} - {utils.format_amount(b.amount, b.currency)}": b
              for b in bills if b.status != "PAID"}
    if not unpaid:
        st.caption("Nothing to collect.")
        return
    chosen = st.selectbox("Bill", list(unpaid.keys()))
    receipt_url = st.text_input("Receipt URL (optional)")
    notes = st.text_input("Payment notes (optional)")
    if st.button("Mark as paid", type="primary"):
        try:
            bill, member = billing_service.mark_paid(
                unpaid[chosen].id, receipt_url=receipt_url.strip() or None, notes=notes.strip() or None
            )
            if member and member.status == "ACTIVE" and bill.bill_type == "MEMBERSHIP":
                show_success(f"Payment recorded. Membership active until {member.membership_end_date}.")
            else:
                show_success("Payment recorded.")
            st.rerun()
        except db.ServiceError as exc:
            show_error(exc)
            st.rerun()


def send_notification_form():
    st.subheader("✉️ Send notification")

    mode = st.radio("Recipients", ["All active members", "Specific members", "Members by status"], horizontal=True)
    title = st.text_input("Title")
    message = st.text_area("Message")
    # broadcasts to active members are always GENERAL
    notification_type = "GENERAL"
    if mode != "All active members":
        notification_type = st.selectbox("Type", NOTIFICATION_TYPES)

    member_ids: list[str] = []
    status = None
    if mode == "Specific members":
        try:
            members = member_service.list_all()
        except db.ServiceError as exc:
            members = []
            st.error(str(exc))
        options = {f"{m.membership_number} - {m.display_name}": m.id for m in members}
        chosen = st.multiselect("Members", list(options.keys()))
        member_ids = [options[c] for c in chosen]
    elif mode == "Members by status":
        status = st.selectbox("Member status", MEMBER_STATUSES, index=MEMBER_STATUSES.index("ACTIVE"))

    if st.button("Send", type="primary", disabled=not (title.strip() and message.strip())):
        try:
            if mode == "All active members":
                sent = notification_service.send_to_all_active(title.strip(), message.strip())
            elif mode == "Specific members":
                sent = notification_service.send_to_members(member_ids, title.strip(), message.strip(), notification_type)
            else:
                ids = [m.id for m in member_service.list_by_status(status)]
                sent = notification_service.send_to_members(ids, title.strip(), message.strip(), notification_type)
            st.success(f"{len(sent)} notifications sent.")
        except db.ServiceError as exc:
            show_error(exc)
            st.rerun()


def notifications_page():
    st.header("🔔 Notifications")
    settings = st.session_state.settings

    c1, c2, c3 = st.columns([3, 1, 1])
    with c1:
        type_filter = st.radio("Type", ["All", *NOTIFICATION_TYPES], horizontal=True)
    with c2:
        if st.button("Send expiry warnings"):
            try:
                sent = notification_service.create_expiry_warnings(days=settings.expiry_warning_days)
                st.success(f"{len(sent)} expiry warnings sent.")
            except db.ServiceError as exc:
                st.error(str(exc))
    with c3:
        listen = st.button("Listen 30s")

    if listen:
        with st.spinner("Listening for new notifications..."):
            received = asyncio.run(notification_feeds.collect_new_notifications(settings, 30))
        st.info(f"{len(received)} new notifications arrived.")
        for n in received:
            st.write(f"**{n.title}** ({n.type}) - {n.message}")

    try:
        stats = notification_service.compute_stats()
        if type_filter == "All":
            notifications = notification_service.list_all()
        else:
            notifications = notification_service.list_by_type(type_filter)
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    m1, m2, m3 = st.columns(3)
    m1.metric("Total", stats.total)
    m2.metric("Unread", stats.unread)
    m3.metric("Last 24h", stats.recent_count)
    st.bar_chart(pd.DataFrame({"type": list(stats.by_type), "count": list(stats.by_type.values())}).set_index("type"))

    if notifications:
        st.dataframe(
            pd.DataFrame([
                {
                    "id": n.id,
                    "member": n.member.display_name if n.member else n.member_id,
                    "type": n.type,
                    "title": n.title,
                    "read": n.is_read,
                    "created_at": (n.created_at or "")[:16],
                }
                for n in notifications
            ]),
            use_container_width=True,
            hide_index=True,
        )
        options = {f"{n.id} - {n.title}": n for n in notifications}
        chosen = st.selectbox("Notification", list(options.keys()))
        a1, a2, a3 = st.columns(3)
        try:
            if a1.button("Mark read"):
                notification_service.mark_read(options[chosen].id)
                st.rerun()
            if a2.button("Mark all read for member"):
                notification_service.mark_all_read_for_member(options[chosen].member_id)
                st.rerun()
            if a3.button("Delete"):
                notification_service.delete(options[chosen].id)
                st.rerun()
        except db.ServiceError as exc:
            show_error(exc)
            st.rerun()
    else:
        st.caption("No notifications.")

    st.divider()
    send_notification_form()


def supplements_page():
    st.header("🥤 Supplements")
    settings = st.session_state.settings

    try:
        supplements = supplement_service.list_all()
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    if supplements:
        st.dataframe(
            pd.DataFrame([
                {
                    "name": s.name,
                    "category": s.category,
                    "price": utils.format_amount(s.price, settings.currency),
                    "stock": s.stock_quantity,
                    "available": s.is_available,
                }
                for s in supplements
            ]),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No supplements yet.")

    st.divider()

    col1, col2 = st.columns(2)
    options = {s.name: s for s in supplements}

    with col1:
        st.subheader("Add / edit")
        selected = st.selectbox("Supplement", ["(new)", *options.keys()])
        existing = options.get(selected)
        name = st.text_input("Name", value=existing.name if existing else "")
        category = st.text_input("Category", value=existing.category if existing else "")
        price = st.text_input("Price", value=str(existing.price) if existing else "0")
        stock = st.text_input("Stock", value=str(existing.stock_quantity) if existing else "0")
        description = st.text_input("Description", value=(existing.description or "") if existing else "")
        available = st.checkbox("Available", value=existing.is_available if existing else True)

        errors = utils.validate_supplement_inputs(name, category, price, stock)
        if name:
            for e in errors:
                st.error(e)
        if st.button("Save supplement", type="primary", disabled=bool(errors)):
            data = {
                "name": name.strip(),
                "category": category.strip(),
                "price": float(price),
                "stock_quantity": int(stock),
                "description": description.strip() or None,
                "is_available": available,
            }
            try:
                if existing:
                    supplement_service.update(existing.id, data)
                else:
                    supplement_service.create(data)
                show_success("Supplement saved.")
                st.rerun()
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()
        if existing and st.button("Delete supplement"):
            try:
                supplement_service.delete(existing.id)
                st.rerun()
            except db.ServiceError as exc:
                show_error(exc)
                st.rerun()

    with col2:
        st.subheader("Record purchase")
        try:
            available_items = supplement_service.list_available()
        except db.ServiceError as exc:
            available_items = []
            st.error(str(exc))
        if not available_items:
            st.caption("Nothing in stock.")
            return
        items = {f"{s.category} / {s.name} ({s.stock_quantity} left)": s for s in available_items}
        item = st.selectbox("Item", list(items.keys()))
        user_id = st.text_input("Buyer user ID")
        quantity = st.number_input("Quantity", min_value=1, value=1, step=1)
        if st.button("Create bill", disabled=not user_id.strip()):
            result = supplement_service.purchase(user_id.strip(), items[item].id, int(quantity))
            if result.success:
                st.success(result.message)
            else:
                st.error(result.message)


def reports_page():
    st.header("🧾 Reports")

    try:
        members = member_service.list_all()
        bills = billing_service.list_all()
    except db.ServiceError as exc:
        st.error(str(exc))
        return

    st.subheader("Export members to CSV")
    if members:
        st.download_button(
            "Download members.csv",
            data=utils.members_to_csv_bytes(members),
            file_name="members.csv",
            mime="text/csv",
        )
    else:
        st.caption("No members to export.")

    st.divider()

    st.subheader("Export bills to CSV")
    if bills:
        st.download_button(
            "Download bills.csv",
            data=utils.bills_to_csv_bytes(bills),
            file_name=f"bills-{date.today().isoformat()}.csv",
            mime="text/csv",
        )
    else:
        st.caption("No bills to export.")

    st.divider()

    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Revenue summary by month")
        st.dataframe(utils.revenue_summary_by_month(bills), use_container_width=True, hide_index=True)
    with c2:
        st.subheader("Bills by status")
        st.dataframe(utils.bill_status_counts(bills), use_container_width=True, hide_index=True)


def main_app():
    st.sidebar.title("🏋️ Gym Admin")
    profile = st.session_state.user_profile
    st.sidebar.caption(f"Logged in as: {profile.full_name or profile.email}")

    pages = list(PAGES.keys())
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    render_flash()

    if st.session_state.page == "Dashboard":
        dashboard_page()
    elif st.session_state.page == "Members":
        members_page()
    elif st.session_state.page == "Packages":
        packages_page()
    elif st.session_state.page == "Billing":
        billing_page()
    elif st.session_state.page == "Notifications":
        notifications_page()
    elif st.session_state.page == "Supplements":
        supplements_page()
    elif st.session_state.page == "Reports":
        reports_page()


# --------- App entry ---------

def run():
    init_once()
    init_session()

    if not guard(st.session_state.page):
        return

    main_app()


if __name__ == "__main__":
    run()
