def test_create_role(client, admin_headers):
    response = client.post(
        "/roles",
        json={
            "name": "  Surveyor ",
            "description": "Reads terminals",
            "permissions": ["ports:terminals:read", "ports:terminals:read", "ports:read"],
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["name"] == "Surveyor"
    assert body["permissions"] == ["ports:terminals:read", "ports:read"]
    assert body["is_active"] is True


def test_malformed_grant_rejected(client, admin_headers):
    response = client.post(
        "/roles", json={"name": "Broken", "permissions": ["ports:reed"]}, headers=admin_headers
    )
    assert response.status_code == 400
    assert "permissions" in response.json()


def test_duplicate_name(client, admin_headers):
    client.post("/roles", json={"name": "Dup"}, headers=admin_headers)
    response = client.post("/roles", json={"name": "Dup"}, headers=admin_headers)
    assert response.status_code == 409


def test_list_and_filter(client, admin_headers):
    active = client.post("/roles", json={"name": "Active"}, headers=admin_headers).json()
    inactive = client.post("/roles", json={"name": "Inactive"}, headers=admin_headers).json()
    client.patch(f"/roles/{inactive['id']}/toggle-status", headers=admin_headers)

    names = [r["name"] for r in client.get("/roles", headers=admin_headers).json()]
    assert {"Active", "Inactive", "SystemAdmin"} <= set(names)

    only_active = client.get("/roles", params={"is_active": True}, headers=admin_headers).json()
    assert active["id"] in [r["id"] for r in only_active]
    assert inactive["id"] not in [r["id"] for r in only_active]


def test_update_role(client, admin_headers):
    role = client.post("/roles", json={"name": "Editor"}, headers=admin_headers).json()
    response = client.put(
        f"/roles/{role['id']}",
        json={"description": "Edits", "permissions": ["customers:read,write"]},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["customers:read,write"]
    assert response.json()["name"] == "Editor"


def test_get_missing_role(client, admin_headers):
    assert client.get("/roles/nope", headers=admin_headers).status_code == 404


def test_delete_assigned_role_conflicts(client, admin_headers, make_user):
    _, user = make_user(["ports:read"])
    response = client.delete(f"/roles/{user['role_id']}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["detail"] == "Role is assigned to 1 user(s)"


def test_delete_unassigned_role(client, admin_headers):
    role = client.post("/roles", json={"name": "Temp"}, headers=admin_headers).json()
    assert client.delete(f"/roles/{role['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/roles/{role['id']}", headers=admin_headers).status_code == 404


def test_role_management_needs_roles_scope(client, make_user):
    headers, _ = make_user(["users-access:users:read,write,manage"])
    response = client.get("/roles", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required permission: users-access:roles:read"


def _role_id(client, admin_headers, name):
    roles = client.get("/roles", headers=admin_headers).json()
    return next(r["id"] for r in roles if r["name"] == name)


def test_reserved_role_names_need_admin(client, admin_headers, make_user):
    headers, user = make_user(["users-access:roles:read,write"])

    response = client.post("/roles", json={"name": "System Admin"}, headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "System administrator access required"

    response = client.put(f"/roles/{user['role_id']}", json={"name": "System Admin"}, headers=headers)
    assert response.status_code == 403
    check = client.post(
        "/permissions/check",
        json={"section": "users-access", "subsection": "users", "level": "manage"},
        headers=headers,
    )
    assert check.json()["has_permission"] is False

    assert client.post("/roles", json={"name": "System Admin"}, headers=admin_headers).status_code == 201


def test_reserved_role_cannot_be_changed_without_admin(client, admin_headers, make_user):
    headers, _ = make_user(["users-access:roles:read,write,manage"])
    admin_role = _role_id(client, admin_headers, "SystemAdmin")

    assert client.put(f"/roles/{admin_role}", json={"name": "Renamed"}, headers=headers).status_code == 403
    assert client.patch(f"/roles/{admin_role}/toggle-status", headers=headers).status_code == 403
    assert client.delete(f"/roles/{admin_role}", headers=headers).status_code == 403
    assert client.get(f"/roles/{admin_role}", headers=headers).json()["name"] == "SystemAdmin"
