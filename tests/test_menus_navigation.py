import pytest


@pytest.fixture
def menus(client, admin_headers):
    """ports (terminals, terminal-activation), customers (contracts), audit-logs."""
    def create(**payload):
        response = client.post("/menus", json=payload, headers=admin_headers)
        assert response.status_code == 201, response.text
        return response.json()

    ports = create(name="ports", label="Ports", sort_order=1)
    customers = create(name="customers", label="Customers", sort_order=2)
    audit = create(name="audit-logs", label="Audit Logs", sort_order=3)
    terminals = create(name="terminals", label="Terminals", menu_type="plink", parent_id=ports["id"])
    activation = create(
        name="terminal-activation", label="Activation", menu_type="plink", parent_id=ports["id"], sort_order=1
    )
    contracts = create(name="contracts", label="Contracts", menu_type="plink", parent_id=customers["id"])
    return {
        "ports": ports, "customers": customers, "audit": audit,
        "terminals": terminals, "activation": activation, "contracts": contracts,
    }


def _tree(client, headers):
    response = client.get("/menus/navigation", headers=headers)
    assert response.status_code == 200, response.text
    return {node["name"]: [child["name"] for child in node["children"]] for node in response.json()}


def test_admin_sees_everything(client, admin_headers, menus):
    assert _tree(client, admin_headers) == {
        "ports": ["terminals", "terminal-activation"],
        "customers": ["contracts"],
        "audit-logs": [],
    }


def test_navigation_filtered_by_grants(client, make_user, menus):
    headers, _ = make_user(["ports:terminals:read"])
    assert _tree(client, headers) == {"ports": ["terminals"]}


def test_empty_level_grant_still_shows_menu(client, make_user, menus):
    headers, _ = make_user(["customers:"])
    assert _tree(client, headers) == {"customers": []}


def test_inactive_menus_hidden(client, admin_headers, menus):
    client.patch(f"/menus/{menus['terminals']['id']}/toggle-status", headers=admin_headers)
    client.patch(f"/menus/{menus['audit']['id']}/toggle-status", headers=admin_headers)
    assert _tree(client, admin_headers) == {
        "ports": ["terminal-activation"],
        "customers": ["contracts"],
    }


def test_plink_needs_parent(client, admin_headers):
    response = client.post("/menus", json={"name": "orphan", "label": "Orphan", "menu_type": "plink"},
                           headers=admin_headers)
    assert response.status_code == 400


def test_duplicate_menu_name_under_same_parent(client, admin_headers, menus):
    response = client.post(
        "/menus",
        json={"name": "terminals", "label": "Again", "menu_type": "plink", "parent_id": menus["ports"]["id"]},
        headers=admin_headers,
    )
    assert response.status_code == 409


def test_delete_group_removes_pages(client, admin_headers, menus):
    assert client.delete(f"/menus/{menus['ports']['id']}", headers=admin_headers).status_code == 204
    remaining = [m["name"] for m in client.get("/menus", headers=admin_headers).json()]
    assert "terminals" not in remaining
    assert "terminal-activation" not in remaining


def test_update_menu(client, admin_headers, menus):
    response = client.put(f"/menus/{menus['ports']['id']}", json={"label": "Harbour"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["label"] == "Harbour"
    assert response.json()["name"] == "ports"


def test_menu_management_scope(client, make_user, menus):
    headers, _ = make_user(["configuration:read"])
    response = client.get("/menus", headers=headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required permission: configuration:menus:read"
