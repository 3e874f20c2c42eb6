ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"
USER_PASSWORD = "user-password"


def login(client, email, password):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def terminal_payload(port_id, short_code="CHN01", **overrides):
    payload = {
        "port_id": port_id,
        "terminal_name": f"Terminal {short_code}",
        "short_code": short_code,
        "billing_address": "Gate 4",
        "billing_city": "Chennai",
        "billing_pin_code": "600001",
    }
    payload.update(overrides)
    return payload
