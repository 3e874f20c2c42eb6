import pytest


@pytest.fixture
def activated(client, admin_headers, make_user, port):
    """A user who registered two terminals that have since been activated."""
    headers, user = make_user(["ports:terminals:read,write"])
    subscription = client.get("/subscription-types", headers=admin_headers).json()[0]
    for code in ("AAA01", "BBB01"):
        terminal = client.post(
            "/terminals",
            json={
                "port_id": port["id"],
                "terminal_name": code,
                "short_code": code,
                "billing_address": "x",
                "billing_city": "y",
                "billing_pin_code": "1",
            },
            headers=headers,
        ).json()
        client.put(
            f"/terminals/{terminal['id']}/activate",
            json={"activation_start_date": "2025-03-01", "subscription_type_id": subscription["id"]},
            headers=admin_headers,
        )
    return headers


def test_unread_count_and_mark_read(client, activated):
    assert client.get("/notifications/unread-count", headers=activated).json() == {"count": 2}

    first = client.get("/notifications", headers=activated).json()[0]
    response = client.patch(f"/notifications/{first['id']}/read", headers=activated)
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    assert client.get("/notifications/unread-count", headers=activated).json() == {"count": 1}
    unread = client.get("/notifications", params={"unread_only": True}, headers=activated).json()
    assert len(unread) == 1


def test_mark_all_read(client, activated):
    response = client.patch("/notifications/read-all", headers=activated)
    assert response.json() == {"updated": 2}
    assert client.get("/notifications/unread-count", headers=activated).json() == {"count": 0}


def test_delete(client, activated):
    first = client.get("/notifications", headers=activated).json()[0]
    assert client.delete(f"/notifications/{first['id']}", headers=activated).status_code == 204
    assert len(client.get("/notifications", headers=activated).json()) == 1


def test_other_users_notifications_are_hidden(client, admin_headers, activated):
    notification = client.get("/notifications", headers=activated).json()[0]
    assert client.get("/notifications", headers=admin_headers).json() == []
    assert client.patch(f"/notifications/{notification['id']}/read", headers=admin_headers).status_code == 404
    assert client.delete(f"/notifications/{notification['id']}", headers=admin_headers).status_code == 404


def test_requires_login(client):
    assert client.get("/notifications").status_code == 401
