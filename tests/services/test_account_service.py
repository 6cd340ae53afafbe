"""
Tests for the AccountService.
"""

from decimal import Decimal

import pytest
from sqlalchemy import Text

from casino_wallet.exceptions import (
    AccountNotFound,
    InsufficientBalance,
    ValidationError,
)
from casino_wallet.models.account import Account
from casino_wallet.models.audit_log import AdminAction
from casino_wallet.models.enums import EntryType
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.services.account_service import AccountService
from casino_wallet.services.ledger_service import LedgerService


class TestCreateAccount:

    def test_new_account_gets_welcome_credit(self, db_session, make_account):
        account = make_account("alice")

        assert account.balance == Decimal("50")
        assert account.is_active is True

        entries = LedgerService(db_session).get_entries(account.id)
        assert len(entries) == 1
        assert entries[0].entry_type == EntryType.WELCOME_BONUS
        assert entries[0].balance_before == Decimal("0")
        assert entries[0].balance_after == Decimal("50")

    def test_welcome_credit_replays(self, db_session, make_account):
        account = make_account("alice")

        ledger = LedgerService(db_session)
        assert ledger.replay_balance(account.id) == account.balance

    def test_no_entry_when_welcome_bonus_disabled(self, db_session, settings):
        settings.WELCOME_BONUS = Decimal("0")
        account = AccountService(db_session, settings).create_account("alice")
        db_session.commit()

        assert account.balance == Decimal("0")
        assert LedgerService(db_session).get_entries(account.id) == []

    def test_duplicate_username_rejected(self, db_session, make_account):
        make_account("alice")

        with pytest.raises(ValidationError, match="already exists"):
            make_account("alice")

    def test_referrer_must_exist(self, db_session, make_account):
        with pytest.raises(AccountNotFound):
            make_account("alice", referred_by_id=123)

    def test_referral_link_counts_on_referrer(self, db_session, make_account):
        referrer = make_account("alice")
        referred = make_account("bob", referred_by_id=referrer.id)

        db_session.refresh(referrer)
        assert referred.referred_by_id == referrer.id
        assert referrer.total_referrals == 1


class TestAccountStatus:

    def test_deactivate_and_reactivate(self, db_session, make_account, settings):
        account = make_account("alice")
        service = AccountService(db_session, settings)

        service.set_active(account.id, False)
        db_session.commit()
        assert service.get_account(account.id).is_active is False

        service.set_active(account.id, True)
        db_session.commit()
        assert service.get_account(account.id).is_active is True

    def test_get_missing_account(self, db_session, settings):
        with pytest.raises(AccountNotFound):
            AccountService(db_session, settings).get_account(7)


class TestAdjustBalance:

    def test_credit_adjustment_logged(self, db_session, make_account, settings):
        account = make_account("alice")
        service = AccountService(db_session, settings)

        new_balance, entry = service.adjust_balance(
            account.id, Decimal("25"), "admin-1", "goodwill credit"
        )
        db_session.commit()

        assert new_balance == Decimal("75")
        assert entry.entry_type == EntryType.ADMIN_ADJUSTMENT

        action = db_session.query(AdminAction).one()
        assert action.action == "adjust_balance"
        assert action.admin_id == "admin-1"
        assert action.account_id == account.id

    def test_debit_adjustment(self, db_session, make_account, settings):
        account = make_account("alice")
        service = AccountService(db_session, settings)

        new_balance, _ = service.adjust_balance(
            account.id, Decimal("-30"), "admin-1", "chargeback"
        )

        assert new_balance == Decimal("20")

    def test_debit_beyond_balance_refused(
        self, db_session, make_account, settings
    ):
        account = make_account("alice")
        service = AccountService(db_session, settings)

        with pytest.raises(InsufficientBalance):
            service.adjust_balance(
                account.id, Decimal("-51"), "admin-1", "too much"
            )

    def test_reason_required(self, db_session, make_account, settings):
        account = make_account("alice")
        service = AccountService(db_session, settings)

        with pytest.raises(ValidationError, match="reason"):
            service.adjust_balance(account.id, Decimal("5"), "admin-1", "  ")

    def test_long_reason_kept_in_entry(self, db_session, make_account, settings):
        account = make_account("alice")
        service = AccountService(db_session, settings)
        reason = "y" * 500

        _, entry = service.adjust_balance(
            account.id, Decimal("5"), "admin-1", reason
        )
        db_session.commit()
        db_session.expire_all()

        stored = LedgerService(db_session).get_entries(account.id)[0]
        assert stored.id == entry.id
        assert stored.description == f"Admin adjustment: {reason}"

    def test_description_column_is_unbounded(self):
        assert isinstance(LedgerEntry.__table__.c.description.type, Text)


def test_constraints_use_naming_convention():
    names = {c.name for c in Account.__table__.constraints}

    assert "ck_accounts_balance_non_negative" in names
    assert "uq_accounts_referral_code" in names
