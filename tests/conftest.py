import os
import tempfile
from pathlib import Path
from itertools import count

import pytest

from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, USER_PASSWORD, login, terminal_payload

_DB_DIR = tempfile.mkdtemp(prefix="portray-tests-")
_DB_FILE = Path(_DB_DIR) / "test.db"

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_FILE}"
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["SYSTEM_ADMIN_EMAIL"] = ADMIN_EMAIL
os.environ["SYSTEM_ADMIN_PASSWORD"] = ADMIN_PASSWORD
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_LEVEL"] = "WARNING"

from fastapi.testclient import TestClient  # noqa: E402

from portray.main import app  # noqa: E402

_ids = count(1)


@pytest.fixture
def client():
    """A client against a fresh database with only the startup reference data."""
    _DB_FILE.unlink(missing_ok=True)
    with TestClient(app) as test_client:
        yield test_client
    _DB_FILE.unlink(missing_ok=True)


@pytest.fixture
def admin_headers(client):
    return login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def make_user(client, admin_headers):
    """
    Create a user holding a role with the given grants and return
    (auth headers, user json).
    """
    def _make_user(grants, role_name=None, email=None):
        n = next(_ids)
        role = client.post(
            "/roles",
            json={"name": role_name or f"role-{n}", "permissions": grants},
            headers=admin_headers,
        )
        assert role.status_code == 201, role.text
        user = client.post(
            "/users",
            json={
                "email": email or f"user{n}@example.com",
                "first_name": "Test",
                "last_name": f"User{n}",
                "password": USER_PASSWORD,
                "role_id": role.json()["id"],
            },
            headers=admin_headers,
        )
        assert user.status_code == 201, user.text
        headers = login(client, user.json()["email"], USER_PASSWORD)
        return headers, user.json()

    return _make_user


@pytest.fixture
def organization(client, admin_headers):
    response = client.post(
        "/organizations",
        json={
            "organization_name": "Chennai Port Authority",
            "display_name": "ChPA",
            "organization_code": "CPA",
            "register_office": "1 Harbour Road, Chennai",
            "country": "India",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def port(client, admin_headers, organization):
    response = client.post(
        "/ports",
        json={
            "organization_id": organization["id"],
            "port_name": "Chennai",
            "display_name": "CHN",
            "address": "Rajaji Salai",
            "country": "India",
            "state": "Tamil Nadu",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def terminal(client, admin_headers, port):
    response = client.post("/terminals", json=terminal_payload(port["id"]), headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()
