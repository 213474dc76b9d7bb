"""
Critical Integration Tests for folioadmin
=========================================

Focused tests covering the integration points most likely to break.
Run with: pytest tests/test_critical.py -v

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import os
import shutil
import tempfile

import pytest
from flask import Flask, render_template_string

from folioadmin import Folioadmin

ADMIN_PASSWORD = "correct-horse"


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="folioadmin-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


# ---------------------------------------------------------------------------
# 1. Framework initialisation -- Folioadmin(app) does not raise
# ---------------------------------------------------------------------------

def test_framework_initialisation(tmp_db_dir):
    """Folioadmin(app) boots without errors and stores itself on the app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir

    folioadmin = Folioadmin(app)

    assert app.extensions["folioadmin"] is folioadmin
    assert folioadmin.get_registered_modules() == [
        "dashboard", "projects", "settings", "projects_public"]


# ---------------------------------------------------------------------------
# 2. Local database paths follow DB_DIR
# ---------------------------------------------------------------------------

def test_config_db_paths(tmp_db_dir):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = os.path.join(tmp_db_dir, "nested")

    Folioadmin(app)

    assert os.path.isdir(app.config["DB_DIR"])
    assert app.config["STORE_DB"] == os.path.join(tmp_db_dir, "nested", "portfolio.db")
    assert app.config["ACTIVITY_DB"] == os.path.join(tmp_db_dir, "nested", "activity_log.db")
    assert app.config["IMAGE_MAX_WIDTH"] == 800


# ---------------------------------------------------------------------------
# 3. Blueprints -- feature flags decide which modules register
# ---------------------------------------------------------------------------

def test_all_blueprints_registered(app):
    for name in ("admin", "projects_admin", "settings", "projects_public"):
        assert name in app.blueprints, f"Blueprint '{name}' not registered"


def test_disabled_feature_is_not_registered(tmp_db_dir):
    app = Flask(__name__)
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = tmp_db_dir

    folioadmin = Folioadmin(app, {"features": {"projects_public": False}})

    assert "projects_public" not in app.blueprints
    assert "projects_public" not in folioadmin.get_registered_modules()
    assert "admin" in app.blueprints


# ---------------------------------------------------------------------------
# 4. Template context injection
# ---------------------------------------------------------------------------

def test_template_context_injection(app):
    app.config["BRAND_NAME"] = "Studio Nine"
    with app.test_request_context("/"):
        assert render_template_string("{{ brand_name }}") == "Studio Nine"


# ---------------------------------------------------------------------------
# 5. Admin auth -- pages redirect, API calls answer 401
# ---------------------------------------------------------------------------

def test_admin_auth_redirect(client):
    resp = client.get("/admin/")
    assert resp.status_code == 302
    assert "/admin/login" in resp.headers["Location"]


@pytest.mark.parametrize("method,path", [
    ("get", "/admin/projects/api/projects"),
    ("post", "/admin/projects/api/projects"),
    ("delete", "/admin/projects/api/projects/abc"),
    ("post", "/admin/projects/upload-image"),
    ("post", "/admin/settings/api/hero"),
    ("get", "/admin/api/activity"),
])
def test_admin_api_requires_login(client, method, path):
    resp = getattr(client, method)(path)
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Authentication required"


# ---------------------------------------------------------------------------
# 6. Sign-in gate
# ---------------------------------------------------------------------------

def test_login_page_renders(client):
    resp = client.get("/admin/login")
    assert resp.status_code == 200
    assert b"INVALID CREDENTIALS" not in resp.data


def test_wrong_password_shows_error(client):
    resp = client.post("/admin/login", data={"password": "nope"})
    assert resp.status_code == 401
    assert b"INVALID CREDENTIALS" in resp.data
    assert client.get("/admin/").status_code == 302


def test_empty_password_shows_error(client):
    resp = client.post("/admin/login", data={"password": ""})
    assert resp.status_code == 401
    assert b"INVALID CREDENTIALS" in resp.data


def test_login_then_dashboard(client):
    resp = client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/admin/dashboard")

    resp = client.get("/admin/dashboard")
    assert resp.status_code == 200
    assert b"New Entry" in resp.data
    assert b"admin@test.com" in resp.data


def test_login_respects_local_next(client):
    resp = client.post("/admin/login?next=/admin/", data={"password": ADMIN_PASSWORD})
    assert resp.headers["Location"].endswith("/admin/")


def test_login_ignores_external_next(client):
    resp = client.post("/admin/login?next=//evil.example", data={"password": ADMIN_PASSWORD})
    assert resp.headers["Location"].endswith("/admin/dashboard")


def test_logout_clears_session(app, admin_client):
    assert len(app.extensions["folioadmin"].workspaces) == 0
    admin_client.get("/admin/dashboard")
    assert len(app.extensions["folioadmin"].workspaces) == 1

    resp = admin_client.get("/admin/logout")

    assert resp.status_code == 302
    assert len(app.extensions["folioadmin"].workspaces) == 0
    assert admin_client.get("/admin/").status_code == 302


# ---------------------------------------------------------------------------
# 7. Activity log
# ---------------------------------------------------------------------------

def test_activity_log_records_login(admin_client):
    resp = admin_client.get("/admin/api/activity?limit=10")
    assert resp.status_code == 200
    messages = [e["message"] for e in resp.get_json()["entries"]]
    assert "Admin action: login" in messages


def test_activity_log_rejects_bad_limit(admin_client):
    assert admin_client.get("/admin/api/activity?limit=lots").status_code == 400


# ---------------------------------------------------------------------------
# 8. Public feed -- readable cross-origin without a session
# ---------------------------------------------------------------------------

def test_public_feed_cors(client):
    resp = client.get("/api/portfolio/projects", headers={"Origin": "https://portfolio.example"})
    assert resp.status_code == 200
    assert resp.get_json() == []
    assert resp.headers.get("Access-Control-Allow-Origin") in ("*", "https://portfolio.example")


def test_public_hero_empty(client):
    assert client.get("/api/portfolio/hero").get_json() == {"hero_image": ""}


# ---------------------------------------------------------------------------
# 9. Workspaces -- one per signed-in browser session
# ---------------------------------------------------------------------------

def test_repeated_login_keeps_one_workspace(app, client):
    for _ in range(3):
        client.post("/admin/login", data={"password": ADMIN_PASSWORD})
        assert client.get("/admin/projects/api/projects").status_code == 200

    assert len(app.extensions["folioadmin"].workspaces) == 1


def test_expired_session_closes_workspace(app, admin_client):
    admin_client.get("/admin/dashboard")
    assert len(app.extensions["folioadmin"].workspaces) == 1

    with admin_client.session_transaction() as sess:
        sess["access_token"] = "expired-or-forged"

    resp = admin_client.get("/admin/dashboard")

    assert resp.status_code == 302
    assert len(app.extensions["folioadmin"].workspaces) == 0
