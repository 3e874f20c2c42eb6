from datetime import datetime, timezone

from tests.helpers import terminal_payload


def _customer(client, headers, terminal_id, name="Acme Shipping"):
    response = client.post(
        "/customers",
        json={
            "terminal_id": terminal_id,
            "customer_name": name,
            "display_name": name,
            "email": "ops@acme.example.com",
            "country": "India",
            "state": "Tamil Nadu",
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def _contract(client, headers, customer_id, number="C-001", **overrides):
    payload = {
        "customer_id": customer_id,
        "contract_number": number,
        "valid_from": "2025-01-01",
        "valid_to": "2025-12-31",
    }
    payload.update(overrides)
    return client.post("/contracts", json=payload, headers=headers)


def test_customer_codes_count_per_terminal(client, admin_headers, port, terminal):
    year = datetime.now(timezone.utc).year
    other = client.post("/terminals", json=terminal_payload(port["id"], "ENN01"), headers=admin_headers).json()

    first = _customer(client, admin_headers, terminal["id"], "First")
    second = _customer(client, admin_headers, terminal["id"], "Second")
    elsewhere = _customer(client, admin_headers, other["id"], "Elsewhere")

    assert first["customer_code"] == f"{year}_CHN01_001"
    assert second["customer_code"] == f"{year}_CHN01_002"
    assert elsewhere["customer_code"] == f"{year}_ENN01_001"


def test_customer_code_not_reused_after_delete(client, admin_headers, terminal):
    year = datetime.now(timezone.utc).year
    first = _customer(client, admin_headers, terminal["id"], "First")
    second = _customer(client, admin_headers, terminal["id"], "Second")
    client.delete(f"/customers/{first['id']}", headers=admin_headers)

    third = _customer(client, admin_headers, terminal["id"], "Third")
    assert second["customer_code"] == f"{year}_CHN01_002"
    assert third["customer_code"] == f"{year}_CHN01_003"


def test_highest_customer_code_not_reused_after_delete(client, admin_headers, terminal):
    year = datetime.now(timezone.utc).year
    _customer(client, admin_headers, terminal["id"], "First")
    second = _customer(client, admin_headers, terminal["id"], "Second")
    assert second["customer_code"] == f"{year}_CHN01_002"
    client.delete(f"/customers/{second['id']}", headers=admin_headers)

    third = _customer(client, admin_headers, terminal["id"], "Third")
    assert third["customer_code"] == f"{year}_CHN01_003"


def test_customer_needs_terminal(client, admin_headers):
    response = client.post(
        "/customers",
        json={"terminal_id": "missing", "customer_name": "X", "display_name": "X",
              "country": "India", "state": "TN"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_update_and_status(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    response = client.put(f"/customers/{customer['id']}", json={"gst": "33AAAAA0000A1Z5"}, headers=admin_headers)
    assert response.json()["gst"] == "33AAAAA0000A1Z5"
    assert response.json()["customer_code"] == customer["customer_code"]

    response = client.patch(f"/customers/{customer['id']}/status", json={"status": "Inactive"}, headers=admin_headers)
    assert response.json()["status"] == "Inactive"

    listed = client.get("/customers", params={"status": "Active"}, headers=admin_headers).json()
    assert listed == []


def test_contract_period_must_be_positive(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    response = _contract(client, admin_headers, customer["id"], valid_to="2025-01-01")
    assert response.status_code == 400
    assert response.json() == {"valid_to": "Value error, valid_to must be after valid_from"}


def test_contract_with_tariffs(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    response = _contract(
        client, admin_headers, customer["id"],
        tariffs=[{"service_type": "Storage", "rate": "120.50", "unit": "per day"}],
    )
    assert response.status_code == 201, response.text
    contract = response.json()
    assert contract["status"] == "Draft"
    assert len(contract["tariffs"]) == 1
    assert float(contract["tariffs"][0]["rate"]) == 120.5

    added = client.post(
        f"/contracts/{contract['id']}/tariffs",
        json={"service_type": "Handling", "rate": 1500},
        headers=admin_headers,
    )
    assert added.status_code == 201
    tariffs = client.get(f"/contracts/{contract['id']}/tariffs", headers=admin_headers).json()
    assert [t["service_type"] for t in tariffs] == ["Handling", "Storage"]

    response = client.delete(f"/contracts/{contract['id']}/tariffs/{added.json()['id']}", headers=admin_headers)
    assert response.status_code == 204
    contract = client.get(f"/contracts/{contract['id']}", headers=admin_headers).json()
    assert [t["service_type"] for t in contract["tariffs"]] == ["Storage"]


def test_contract_update_keeps_period_valid(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    contract = _contract(client, admin_headers, customer["id"]).json()

    response = client.put(f"/contracts/{contract['id']}", json={"valid_from": "2026-01-01"}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "valid_to must be after valid_from"

    response = client.put(
        f"/contracts/{contract['id']}", json={"valid_to": "2026-06-30", "status": "Active"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["valid_to"] == "2026-06-30"
    assert response.json()["status"] == "Active"


def test_duplicate_contract_number(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    _contract(client, admin_headers, customer["id"])
    assert _contract(client, admin_headers, customer["id"]).status_code == 409


def test_customer_with_contracts_cannot_be_deleted(client, admin_headers, terminal):
    customer = _customer(client, admin_headers, terminal["id"])
    contract = _contract(client, admin_headers, customer["id"]).json()
    assert client.delete(f"/customers/{customer['id']}", headers=admin_headers).status_code == 409

    listed = client.get(f"/customers/{customer['id']}/contracts", headers=admin_headers).json()
    assert [c["id"] for c in listed] == [contract["id"]]

    assert client.delete(f"/contracts/{contract['id']}", headers=admin_headers).status_code == 204
    assert client.delete(f"/customers/{customer['id']}", headers=admin_headers).status_code == 204


def test_contracts_need_contract_scope(client, admin_headers, make_user, terminal):
    headers, _ = make_user(["customers:read,write"])
    customer = _customer(client, headers, terminal["id"])
    response = _contract(client, headers, customer["id"])
    assert response.status_code == 403
    assert response.json()["detail"] == "Access denied. Required permission: customers:contracts:write"
