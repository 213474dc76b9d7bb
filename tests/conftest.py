"""
Shared fixtures: a Flask app wired to the local SQLite store in a temp dir,
plus helpers for building test images.
"""

import base64
import io
import os
from datetime import datetime, timedelta, timezone

import pytest
from flask import Flask
from PIL import Image

from folioadmin import Folioadmin
from folioadmin.core.config import Config

ADMIN_EMAIL = "admin@test.com"
ADMIN_PASSWORD = "correct-horse"


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Keep every SQLite file the code might touch inside the test's temp dir."""
    monkeypatch.setattr(Config, "DB_DIR", str(tmp_path))
    monkeypatch.setattr(Config, "STORE_DB", str(tmp_path / "portfolio.db"))
    monkeypatch.setattr(Config, "ACTIVITY_DB", str(tmp_path / "activity_log.db"))
    monkeypatch.setattr(Config, "STORE_TYPE", "local")


@pytest.fixture
def app(tmp_path):
    """Flask app with every folioadmin module registered, local backend."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["SECRET_KEY"] = "test-secret"
    app.config["DB_DIR"] = str(tmp_path)
    app.config["STORE_DB"] = os.path.join(str(tmp_path), "portfolio.db")
    app.config["ACTIVITY_DB"] = os.path.join(str(tmp_path), "activity_log.db")
    app.config["STORE_TYPE"] = "local"
    app.config["ADMIN_EMAIL"] = ADMIN_EMAIL
    app.config["ADMIN_PASSWORD"] = ADMIN_PASSWORD
    Folioadmin(app)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(client):
    """Test client with a signed-in operator session."""
    response = client.post("/admin/login", data={"password": ADMIN_PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def make_image():
    """Factory returning encoded image bytes of the given size."""
    def _make(width, height, mode="RGB", fmt="PNG", color=(200, 30, 30)):
        img = Image.new(mode, (width, height), color)
        buffer = io.BytesIO()
        img.save(buffer, format=fmt)
        return buffer.getvalue()
    return _make


@pytest.fixture
def decode_data_url():
    """Split a data URL into (mime type, raw bytes)."""
    def _decode(value):
        header, payload = value.split(",", 1)
        assert header.startswith("data:") and header.endswith(";base64")
        return header[len("data:"):-len(";base64")], base64.b64decode(payload)
    return _decode


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock():
    return StepClock()
