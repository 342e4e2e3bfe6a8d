"""Integration tests for the payment endpoints"""

from decimal import Decimal

from fastapi.testclient import TestClient


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": "wallet-master-api"}
    assert response.headers["X-Request-ID"]


def test_metrics_endpoint(client: TestClient, alice, make_card, auth_headers):
    """Payment counters show up after an operation"""
    card = make_card(alice)
    client.post(
        "/api/payments/add-funds",
        json={"cardId": card.id, "amount": 5, "paymentMethodId": "pm_card_visa"},
        headers=auth_headers(alice),
    )

    response = client.get("/metrics")

    assert response.status_code == 200
    assert "wallet_payment_operations_total" in response.text


def test_payment_endpoints_require_authentication(client: TestClient):
    for path in ("/api/payments/add-funds", "/api/payments/pay-utility", "/api/payments/transfer", "/api/payments/create-intent"):
        response = client.post(path, json={})
        assert response.status_code == 401
        assert response.json() == {"message": "Not authenticated", "error": "unauthorized"}

    response = client.post("/api/payments/transfer", json={}, headers={"Authorization": "Bearer wm_bogus"})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


def test_list_gateways(client: TestClient):
    response = client.get("/api/payments/gateways")

    assert response.status_code == 200
    assert response.json() == [{"id": "mock", "name": "Test Gateway"}]


def test_create_intent(client: TestClient, alice, auth_headers, gateway):
    response = client.post(
        "/api/payments/create-intent",
        json={"amount": 12.5, "metadata": {"orderId": "A1"}},
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["id"].startswith("mock_payment_")
    assert data["clientSecret"].startswith(data["id"])
    assert data["status"] == "pending"
    assert gateway.calls[0][1][2] == {"orderId": "A1", "userId": str(alice.id)}


def test_add_funds(client: TestClient, store, alice, make_card, auth_headers):
    card = make_card(alice, "100.00")

    response = client.post(
        "/api/payments/add-funds",
        json={"cardId": card.id, "amount": 50.00, "paymentMethodId": "pm_card_visa"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["card"]["balance"] == 150.0
    assert "cardNumber" not in data["card"]
    assert data["card"]["lastFour"] == "4242"
    assert data["transaction"]["type"] == "income"
    assert data["transaction"]["amount"] == 50.0
    assert data["transaction"]["paymentRef"] == data["paymentId"]
    assert store.get_card(card.id).balance == Decimal("150.00")


def test_add_funds_decline_returns_400(client: TestClient, store, alice, make_card, auth_headers):
    card = make_card(alice, "100.00")

    response = client.post(
        "/api/payments/add-funds",
        json={"cardId": card.id, "amount": 10.99, "paymentMethodId": "pm_card_visa"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "payment_declined"
    assert response.json()["message"] == "Mock payment failure"
    assert store.get_card(card.id).balance == Decimal("100.00")
    assert store.list_transactions(alice.id) == []


def test_add_funds_missing_fields(client: TestClient, alice, make_card, auth_headers, gateway):
    card = make_card(alice)

    response = client.post("/api/payments/add-funds", json={"cardId": card.id}, headers=auth_headers(alice))

    assert response.status_code == 400
    assert response.json() == {"message": "amount is required", "error": "invalid_request"}
    assert gateway.calls == []


def test_malformed_body_is_a_validation_error(client: TestClient, alice, auth_headers):
    response = client.post("/api/payments/add-funds", json={"cardId": "not-a-number"}, headers=auth_headers(alice))

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"
    assert response.json()["errors"]


def test_foreign_card_is_404(client: TestClient, alice, bob, make_card, auth_headers):
    card = make_card(bob)

    response = client.post(
        "/api/payments/pay-utility",
        json={"cardId": card.id, "amount": 10, "utilityName": "Electric Co"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "card_not_found"


def test_pay_utility(client: TestClient, store, alice, make_card, auth_headers):
    card = make_card(alice, "80.00")

    response = client.post(
        "/api/payments/pay-utility",
        json={"cardId": card.id, "amount": "30.00", "utilityName": "City Water", "description": "March water"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["card"]["balance"] == 50.0
    assert data["transaction"]["merchant"] == "City Water"
    assert data["transaction"]["description"] == "March water"
    assert data["transaction"]["categoryId"] == store.get_category_by_name("Bills & Utilities").id
    assert data["paymentId"].startswith("mock_payment_")


def test_pay_utility_insufficient_funds(client: TestClient, alice, make_card, auth_headers, gateway):
    card = make_card(alice, "20.00")

    response = client.post(
        "/api/payments/pay-utility",
        json={"cardId": card.id, "amount": 25, "utilityName": "Electric Co"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "insufficient_funds"
    assert gateway.calls == []


def test_transfer(client: TestClient, store, alice, bob, make_card, auth_headers):
    sender = make_card(alice, "100.00")
    make_card(bob, "0.00", number="5555555555554444")
    default = make_card(bob, "10.00", is_default=True, number="4000056655665556")

    response = client.post(
        "/api/payments/transfer",
        json={"recipientId": bob.id, "cardId": sender.id, "amount": 40, "description": "Rent share"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["senderCard"]["balance"] == 60.0
    assert data["recipientCard"]["id"] == default.id
    assert data["recipientCard"]["balance"] == 50.0
    assert data["senderTransaction"]["merchant"] == "Bob Jones"
    assert data["recipientTransaction"]["merchant"] == "Alice Smith"
    assert len(store.list_transactions_by_payment(data["paymentId"])) == 2


def test_transfer_to_recipient_without_cards(client: TestClient, alice, bob, make_card, auth_headers):
    sender = make_card(alice, "100.00")

    response = client.post(
        "/api/payments/transfer",
        json={"recipientId": bob.id, "cardId": sender.id, "amount": 10},
        headers=auth_headers(alice),
    )

    assert response.status_code == 404
    assert response.json()["error"] == "recipient_has_no_card"


def test_transfer_to_self_rejected(client: TestClient, alice, make_card, auth_headers, gateway):
    card = make_card(alice, "100.00")

    response = client.post(
        "/api/payments/transfer",
        json={"recipientId": alice.id, "cardId": card.id, "amount": 10},
        headers=auth_headers(alice),
    )

    assert response.status_code == 400
    assert gateway.calls == []


def test_find_user(client: TestClient, alice, bob, auth_headers):
    response = client.get("/api/users/find", params={"email": "bob@example.com"}, headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json() == {"id": bob.id, "email": "bob@example.com", "firstName": "Bob", "lastName": "Jones"}


def test_find_user_rejects_self_and_unknown(client: TestClient, alice, auth_headers):
    headers = auth_headers(alice)

    assert client.get("/api/users/find", params={"email": "alice@example.com"}, headers=headers).status_code == 400
    assert client.get("/api/users/find", params={"email": "ghost@example.com"}, headers=headers).status_code == 404
    assert client.get("/api/users/find", headers=headers).status_code == 400
