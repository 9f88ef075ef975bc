import pytest
from streamlit.testing.v1 import AppTest

from config import AppConfig, SupabaseConfig


@pytest.fixture
def app(client):
    client.seed("users", {"id": "u0", "email": "boss@gym.test", "full_name": "Boss", "role": "ADMIN"})
    client.auth.accounts["boss@gym.test"] = {"id": "u0", "password": "s3cret"}
    at = AppTest.from_file("../app.py", default_timeout=30)
    at.session_state["supabase_client"] = client
    at.session_state["settings"] = AppConfig(SupabaseConfig("https://gym.supabase.test", "anon-key"))
    return at


def signed_in(at, user_id="u0", email="boss@gym.test"):
    at.session_state["auth_user"] = {"id": user_id, "email": email}
    return at


def button(at, label):
    return next(b for b in at.button if b.label == label)


def test_anonymous_visit_shows_login_and_remembers_page(app):
    app.session_state["page"] = "Billing"
    app.run()

    assert not app.exception
    assert app.title[0].value == "🔐 Gym Admin Login"
    assert app.session_state["return_to"] == "/admin/billing"


def test_login_returns_to_requested_page(app):
    app.session_state["page"] = "Billing"
    app.run()

    app.text_input[0].input("boss@gym.test")
    app.text_input[1].input("s3cret")
    button(app, "Login").click().run()

    assert not app.exception
    assert app.session_state["page"] == "Billing"
    assert "return_to" not in app.session_state
    assert [h.value for h in app.header] == ["💳 Billing"]


def test_wrong_password_stays_on_login(app):
    app.run()

    app.text_input[0].input("boss@gym.test")
    app.text_input[1].input("nope")
    button(app, "Login").click().run()

    assert app.session_state["auth_user"] is None
    assert [e.value for e in app.error] == ["Invalid email or password."]


def test_member_account_gets_unauthorized_screen(app, client):
    client.seed("users", {"id": "u1", "email": "ana@gym.test", "full_name": "Ana", "role": "MEMBER"})
    signed_in(app, "u1", "ana@gym.test").run()

    assert not app.exception
    assert app.title[0].value == "⛔ Unauthorized"
    assert not app.header


def test_backend_outage_renders_inline_on_every_run(app, client):
    client.fail_on("select", "members", "database offline")
    signed_in(app).run()
    app.run()

    assert not app.exception
    assert [e.value for e in app.error] == ["Failed to fetch member stats: database offline"]


def test_error_banner_rendered_once_and_dismissible(app, client):
    client.fail_on("select", "members", "database offline")
    app.session_state["flash_error"] = "Failed to update member: timeout"
    signed_in(app).run()

    assert not app.exception
    assert [b.key for b in app.button].count("dismiss_error") == 1
    assert "Failed to update member: timeout" in [e.value for e in app.error]

    app.button(key="dismiss_error").click().run()

    assert app.session_state["flash_error"] is None
    assert "Failed to update member: timeout" not in [e.value for e in app.error]


def test_success_message_survives_one_rerun(app):
    app.session_state["flash_success"] = "Package saved."
    signed_in(app).run()

    assert [s.value for s in app.success] == ["Package saved."]

    app.run()

    assert not app.success


def test_broadcast_hides_type_selector(app):
    app.session_state["page"] = "Notifications"
    signed_in(app).run()

    assert "Type" not in [s.label for s in app.selectbox]

    next(r for r in app.radio if r.label == "Recipients").set_value("Specific members").run()

    assert "Type" in [s.label for s in app.selectbox]


def test_sync_button_creates_missing_records(app, client):
    client.seed("users", {"id": "u4", "email": "sam@gym.test", "full_name": "Sam Roy", "role": "MEMBER"})
    app.session_state["page"] = "Members"
    signed_in(app).run()

    button(app, "Sync member records").click().run()

    assert not app.exception
    assert "1 member records created." in [s.value for s in app.success]
    assert [m["user_id"] for m in client.tables["members"]] == ["u4"]
