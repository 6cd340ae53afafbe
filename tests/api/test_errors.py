"""
Tests for the error-to-status mapping used by every endpoint.
"""

from decimal import Decimal

import pytest
from sqlalchemy.orm.exc import StaleDataError

from casino_wallet.api.errors import http_error
from casino_wallet.exceptions import (
    AccountNotFound,
    AlreadyProcessed,
    InsufficientBalance,
    RequestNotFound,
    ValidationError,
)
from casino_wallet.models.enums import RequestStatus
from casino_wallet.services.account_service import AccountService


@pytest.mark.parametrize("error, status_code", [
    (AccountNotFound(1), 404),
    (RequestNotFound(1), 404),
    (AlreadyProcessed(1, RequestStatus.APPROVED), 409),
    (StaleDataError("UPDATE statement on table 'accounts'"), 409),
    (InsufficientBalance(Decimal("10"), Decimal("20")), 400),
    (ValidationError("bad amount"), 400),
])
def test_status_codes(error, status_code):
    assert http_error(error).status_code == status_code


def test_stale_data_detail_asks_for_retry():
    error = http_error(StaleDataError("UPDATE statement on table 'accounts'"))

    assert error.detail == "Concurrent update, please retry"


def test_concurrent_update_returns_409(client, monkeypatch):
    account = client.post("/accounts", json={"username": "alice"}).json()

    def lost_race(self, *args, **kwargs):
        raise StaleDataError("UPDATE statement on table 'accounts'")

    monkeypatch.setattr(AccountService, "adjust_balance", lost_race)
    response = client.post(
        f"/accounts/{account['id']}/adjustments",
        json={"amount": "5.00", "admin_id": "admin-1", "reason": "promo"},
    )

    assert response.status_code == 409
    balance = client.get(f"/accounts/{account['id']}/balance").json()
    assert Decimal(balance["balance"]) == Decimal("50")
