from tests.helpers import USER_PASSWORD


def _create_user(client, headers, **overrides):
    payload = {
        "email": "jane@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "password": USER_PASSWORD,
    }
    payload.update(overrides)
    return client.post("/users", json=payload, headers=headers)


def _audit(client, headers, **params):
    response = client.get("/audit-logs", params=params, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_create_user_is_audited(client, admin_headers):
    role = client.post("/roles", json={"name": "Clerk"}, headers=admin_headers).json()
    response = _create_user(client, admin_headers, role_id=role["id"])
    assert response.status_code == 201
    user = response.json()
    assert user["role_name"] == "Clerk"
    assert "password_hash" not in user

    logs = _audit(client, admin_headers, target_user_id=user["id"])
    assert logs["total"] == 1
    entry = logs["items"][0]
    assert entry["action"] == "created"
    assert entry["description"] == "User account created with email: jane@example.com"
    assert entry["new_values"]["role_id"] == role["id"]
    assert entry["ip_address"] == "testclient"


def test_duplicate_email(client, admin_headers):
    _create_user(client, admin_headers)
    assert _create_user(client, admin_headers).status_code == 409


def test_unknown_role(client, admin_headers):
    response = _create_user(client, admin_headers, role_id="missing")
    assert response.status_code == 400
    assert response.json()["detail"] == "Role not found"


def test_short_password_rejected(client, admin_headers):
    response = _create_user(client, admin_headers, password="short")
    assert response.status_code == 400
    assert "password" in response.json()


def test_update_is_audited_with_changes(client, admin_headers):
    user = _create_user(client, admin_headers).json()
    role = client.post("/roles", json={"name": "Supervisor"}, headers=admin_headers).json()

    response = client.put(
        f"/users/{user['id']}",
        json={"first_name": "Janet", "role_id": role["id"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["first_name"] == "Janet"
    assert response.json()["role_name"] == "Supervisor"

    actions = {e["action"]: e for e in _audit(client, admin_headers, target_user_id=user["id"])["items"]}
    assert actions["role_changed"]["description"] == "User role changed from none to Supervisor"
    assert "first name changed from Jane to Janet" in actions["updated"]["description"]


def test_update_without_changes_is_not_audited(client, admin_headers):
    user = _create_user(client, admin_headers).json()
    client.put(f"/users/{user['id']}", json={"first_name": "Jane"}, headers=admin_headers)
    assert _audit(client, admin_headers, target_user_id=user["id"])["total"] == 1


def test_toggle_status(client, admin_headers):
    user = _create_user(client, admin_headers).json()
    response = client.patch(f"/users/{user['id']}/toggle-status", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    logs = _audit(client, admin_headers, target_user_id=user["id"], action="status_changed")
    assert logs["items"][0]["description"] == "User status changed from active to inactive"


def test_cannot_deactivate_or_delete_self(client, admin_headers):
    me = client.get("/auth/me", headers=admin_headers).json()
    assert client.patch(f"/users/{me['id']}/toggle-status", headers=admin_headers).status_code == 400
    assert client.delete(f"/users/{me['id']}", headers=admin_headers).status_code == 400


def test_delete_user(client, admin_headers):
    user = _create_user(client, admin_headers).json()
    assert client.delete(f"/users/{user['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/users/{user['id']}", headers=admin_headers).status_code == 404

    logs = _audit(client, admin_headers, target_user_id=user["id"])
    assert [e["action"] for e in logs["items"]] == ["deleted", "created"]


def test_only_admins_grant_admin(client, make_user):
    headers, _ = make_user(["users-access:users:read,write,manage"])
    response = _create_user(client, headers, is_system_admin=True)
    assert response.status_code == 403
    assert _create_user(client, headers).status_code == 201


def test_audit_pagination(client, admin_headers):
    for n in range(3):
        _create_user(client, admin_headers, email=f"p{n}@example.com")
    logs = _audit(client, admin_headers, action="created", limit=2)
    assert logs["total"] == 3
    assert logs["pages"] == 2
    assert logs["page"] == 1
    assert len(logs["items"]) == 2

    second = _audit(client, admin_headers, action="created", skip=2, limit=2)
    assert second["page"] == 2
    assert len(second["items"]) == 1


def test_audit_for_user_and_performer(client, admin_headers):
    me = client.get("/auth/me", headers=admin_headers).json()
    user = _create_user(client, admin_headers).json()

    by_user = client.get(f"/audit-logs/users/{user['id']}", headers=admin_headers).json()
    assert by_user["total"] == 1
    assert _audit(client, admin_headers, performed_by_id=me["id"])["total"] == 1


def test_audit_requires_scope(client, make_user):
    headers, _ = make_user(["users-access:users:read"])
    response = client.get("/audit-logs", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required permission: audit-logs:read"


def _system_admin_role(client, admin_headers):
    roles = client.get("/roles", headers=admin_headers).json()
    return next(r["id"] for r in roles if r["name"] == "SystemAdmin")


def test_only_admins_assign_reserved_role(client, admin_headers, make_user):
    headers, user = make_user(["users-access:users:read,write"])
    admin_role = _system_admin_role(client, admin_headers)

    response = client.put(f"/users/{user['id']}", json={"role_id": admin_role}, headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "System administrator access required"
    assert _create_user(client, headers, role_id=admin_role).status_code == 403

    check = client.post("/permissions/check", json={"section": "anything", "level": "manage"}, headers=headers)
    assert check.json()["has_permission"] is False

    response = client.put(f"/users/{user['id']}", json={"role_id": admin_role}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["role_name"] == "SystemAdmin"


def test_admin_accounts_need_admin_to_change(client, admin_headers, make_user):
    headers, _ = make_user(["users-access:users:read,write,manage"])
    admin = client.get("/auth/me", headers=admin_headers).json()

    response = client.put(f"/users/{admin['id']}", json={"password": "taken-over-1"}, headers=headers)
    assert response.status_code == 403
    assert client.patch(f"/users/{admin['id']}/toggle-status", headers=headers).status_code == 403
    assert client.delete(f"/users/{admin['id']}", headers=headers).status_code == 403
