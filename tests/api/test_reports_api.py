"""
Tests for the admin reporting endpoints.
"""

from decimal import Decimal


def test_dashboard_on_empty_database(client):
    response = client.get("/reports/dashboard")

    assert response.status_code == 200
    data = response.json()
    assert data["total_users"] == 0
    assert data["degraded_sections"] == []
    assert data["today"]["games_played"] == 0


def test_dashboard_counts_users(client):
    client.post("/accounts", json={"username": "alice"})
    client.post("/accounts", json={"username": "bob"})

    data = client.get("/reports/dashboard").json()

    assert data["total_users"] == 2
    assert Decimal(data["total_wallet_balance"]) == Decimal("100")


def test_ledger_types(client):
    client.post("/accounts", json={"username": "alice"})

    data = client.get("/reports/ledger-types").json()

    assert Decimal(data["welcome_bonus"]) == Decimal("50")


def test_game_report(client):
    account = client.post("/accounts", json={"username": "alice"}).json()
    client.post("/games/rounds", json={
        "account_id": account["id"],
        "game_id": "mines",
        "bet_amount": "10.00",
        "is_win": False,
    })

    games = client.get("/reports/games").json()

    assert games[0]["game_id"] == "mines"
    assert Decimal(games[0]["house_profit"]) == Decimal("10")


def test_admin_actions(client):
    account = client.post("/accounts", json={"username": "alice"}).json()
    client.post(
        f"/accounts/{account['id']}/adjustments",
        json={"amount": "5.00", "admin_id": "admin-1", "reason": "promo"},
    )

    actions = client.get("/reports/admin-actions").json()

    assert actions[0]["action"] == "adjust_balance"
    assert actions[0]["admin_id"] == "admin-1"


def test_integrity(client):
    client.post("/accounts", json={"username": "alice"})

    data = client.get("/reports/integrity").json()

    assert data["is_consistent"] is True
    assert data["accounts_checked"] == 1


def test_top_referrers(client):
    alice = client.post("/accounts", json={"username": "alice"}).json()
    client.post("/accounts", json={"username": "bob", "referred_by_id": alice["id"]})

    top = client.get("/reports/top-referrers").json()

    assert [t["username"] for t in top] == ["alice"]
    assert top[0]["total_referrals"] == 1
    assert top[0]["referral_code"] == alice["referral_code"]


def test_top_referrers_bad_limit_is_400(client):
    assert client.get("/reports/top-referrers?limit=0").status_code == 400
