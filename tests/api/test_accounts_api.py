"""
Tests for the account endpoints.
"""

from decimal import Decimal


def create(client, username, referred_by_id=None):
    response = client.post(
        "/accounts",
        json={"username": username, "referred_by_id": referred_by_id},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_create_account(client):
    data = create(client, "alice")

    assert data["username"] == "alice"
    assert Decimal(data["balance"]) == Decimal("50")
    assert data["is_active"] is True


def test_duplicate_username_is_400(client):
    create(client, "alice")

    response = client.post("/accounts", json={"username": "alice"})

    assert response.status_code == 400
    assert "already exists" in response.json()["detail"]


def test_unknown_referrer_is_404(client):
    response = client.post(
        "/accounts", json={"username": "bob", "referred_by_id": 77}
    )

    assert response.status_code == 404


def test_get_account_and_balance(client):
    account = create(client, "alice")

    response = client.get(f"/accounts/{account['id']}")
    assert response.status_code == 200

    balance = client.get(f"/accounts/{account['id']}/balance").json()
    assert Decimal(balance["balance"]) == Decimal("50")
    assert balance["currency"] == "PKR"


def test_missing_account_is_404(client):
    assert client.get("/accounts/999").status_code == 404
    assert client.get("/accounts/999/balance").status_code == 404
    assert client.get("/accounts/999/entries").status_code == 404


def test_entries(client):
    account = create(client, "alice")

    entries = client.get(f"/accounts/{account['id']}/entries").json()

    assert len(entries) == 1
    assert entries[0]["entry_type"] == "welcome_bonus"


def test_deactivate(client):
    account = create(client, "alice")

    response = client.patch(
        f"/accounts/{account['id']}/status", json={"is_active": False}
    )

    assert response.status_code == 200
    assert response.json()["is_active"] is False


def test_adjustment(client):
    account = create(client, "alice")

    response = client.post(
        f"/accounts/{account['id']}/adjustments",
        json={"amount": "-20.00", "admin_id": "admin-1", "reason": "chargeback"},
    )

    assert response.status_code == 201
    assert Decimal(response.json()["balance_after"]) == Decimal("30")


def test_adjustment_without_reason_is_400(client):
    account = create(client, "alice")

    response = client.post(
        f"/accounts/{account['id']}/adjustments",
        json={"amount": "10.00", "admin_id": "admin-1"},
    )

    assert response.status_code == 400


def test_referrals(client):
    alice = create(client, "alice")
    bob = create(client, "bob", referred_by_id=alice["id"])

    summary = client.get(f"/accounts/{alice['id']}/referrals").json()

    assert summary["total_referrals"] == 1
    assert summary["referred_account_ids"] == [bob["id"]]


def test_signup_with_referral_code(client):
    alice = create(client, "alice")

    response = client.post(
        "/accounts",
        json={"username": "bob", "referral_code": alice["referral_code"]},
    )

    assert response.status_code == 201
    assert response.json()["referred_by_id"] == alice["id"]
    assert response.json()["referral_code"] != alice["referral_code"]


def test_unknown_referral_code_is_400(client):
    response = client.post(
        "/accounts", json={"username": "bob", "referral_code": "NOPE0000"}
    )

    assert response.status_code == 400
    assert client.get("/reports/dashboard").json()["total_users"] == 0


def test_check_referral_code(client):
    alice = create(client, "alice")
    code = alice["referral_code"]

    known = client.get(f"/accounts/referral-codes/{code.lower()}").json()
    unknown = client.get("/accounts/referral-codes/NOPE0000").json()

    assert known == {"referral_code": code, "valid": True}
    assert unknown["valid"] is False
