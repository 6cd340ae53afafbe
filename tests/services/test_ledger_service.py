"""
Tests for the LedgerService.

Tests cover:
- Credits and debits with matching entries
- Sign rules per entry type
- Clamping at zero
- Replay of entries against the stored balance
- Integrity check catching out-of-band balance changes
"""

from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from casino_wallet.exceptions import AccountNotFound, ValidationError
from casino_wallet.models.account import Account
from casino_wallet.models.enums import EntryType
from casino_wallet.services.ledger_service import LedgerService


class TestApplyDelta:

    def test_credit_increases_balance_and_writes_entry(
        self, db_session, make_account
    ):
        account = make_account("alice")
        service = LedgerService(db_session)

        new_balance, entry = service.apply_delta(
            account.id, Decimal("100"), EntryType.ADMIN_ADJUSTMENT, "top up"
        )
        db_session.commit()

        assert new_balance == Decimal("150")
        assert entry.amount == Decimal("100")
        assert entry.balance_before == Decimal("50")
        assert entry.balance_after == Decimal("150")
        assert service.get_balance(account.id) == Decimal("150")

    def test_debit_decreases_balance(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        new_balance, entry = service.apply_delta(
            account.id, Decimal("-20"), EntryType.GAME_LOSS, "dice loss"
        )

        assert new_balance == Decimal("30")
        assert entry.amount == Decimal("-20")

    def test_zero_amount_rejected(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        with pytest.raises(ValidationError, match="non-zero"):
            service.apply_delta(
                account.id, Decimal("0"), EntryType.ADMIN_ADJUSTMENT, "noop"
            )

    def test_loss_cannot_credit(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        with pytest.raises(ValidationError, match="must be a debit"):
            service.apply_delta(
                account.id, Decimal("10"), EntryType.GAME_LOSS, "bad"
            )

    def test_deposit_cannot_debit(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        with pytest.raises(ValidationError, match="must be a credit"):
            service.apply_delta(
                account.id, Decimal("-10"), EntryType.DEPOSIT, "bad"
            )

    def test_overdraw_clamps_to_zero_and_records_applied_amount(
        self, db_session, make_account
    ):
        account = make_account("alice")
        service = LedgerService(db_session)

        new_balance, entry = service.apply_delta(
            account.id, Decimal("-80"), EntryType.GAME_LOSS, "big loss"
        )
        db_session.commit()

        assert new_balance == Decimal("0")
        assert entry.amount == Decimal("-50")
        assert service.replay_balance(account.id) == Decimal("0")

    def test_unknown_account(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(AccountNotFound):
            service.apply_delta(
                999, Decimal("10"), EntryType.ADMIN_ADJUSTMENT, "x"
            )

    def test_sub_cent_amount_rejected(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        with pytest.raises(ValidationError):
            service.apply_delta(
                account.id, Decimal("10.004"), EntryType.ADMIN_ADJUSTMENT, "x"
            )

        assert service.get_balance(account.id) == Decimal("50")

    def test_trailing_zero_digits_accepted(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)

        _, entry = service.apply_delta(
            account.id, Decimal("10.000"), EntryType.ADMIN_ADJUSTMENT, "x"
        )

        assert entry.amount == Decimal("10.00")


class TestEntries:

    def test_entries_newest_first(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)
        service.apply_delta(account.id, Decimal("5"), EntryType.GAME_WIN, "w")
        service.apply_delta(account.id, Decimal("-5"), EntryType.GAME_LOSS, "l")
        db_session.commit()

        entries = service.get_entries(account.id)

        assert [e.entry_type for e in entries] == [
            EntryType.GAME_LOSS,
            EntryType.GAME_WIN,
            EntryType.WELCOME_BONUS,
        ]

    def test_filter_by_type_and_limit(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)
        for _ in range(3):
            service.apply_delta(
                account.id, Decimal("5"), EntryType.GAME_WIN, "w"
            )
        db_session.commit()

        entries = service.get_entries(
            account.id, entry_type=EntryType.GAME_WIN, limit=2
        )

        assert len(entries) == 2
        assert all(e.entry_type == EntryType.GAME_WIN for e in entries)


class TestReplayAndIntegrity:

    def test_replay_matches_stored_balance(self, db_session, make_account):
        account = make_account("alice")
        service = LedgerService(db_session)
        service.apply_delta(account.id, Decimal("250.50"), EntryType.GAME_WIN, "w")
        service.apply_delta(account.id, Decimal("-100.25"), EntryType.GAME_LOSS, "l")
        db_session.commit()

        assert service.replay_balance(account.id) == Decimal("200.25")
        assert service.get_balance(account.id) == Decimal("200.25")

    def test_replay_unknown_account(self, db_session):
        with pytest.raises(AccountNotFound):
            LedgerService(db_session).replay_balance(42)

    def test_integrity_passes_on_clean_ledger(self, db_session, make_account):
        make_account("alice")
        make_account("bob")

        report = LedgerService(db_session).check_integrity()

        assert report.is_consistent is True
        assert report.accounts_checked == 2
        assert report.mismatches == []

    def test_integrity_detects_balance_changed_outside_ledger(
        self, db_session, make_account
    ):
        account = make_account("alice")
        db_session.execute(
            update(Account)
            .where(Account.id == account.id)
            .values(balance=Decimal("999"))
        )
        db_session.commit()

        report = LedgerService(db_session).check_integrity()

        assert report.is_consistent is False
        assert report.mismatches[0].account_id == account.id
        assert report.mismatches[0].replayed_balance == Decimal("50")


class TestConcurrentWriters:

    def test_stale_account_write_fails(
        self, db_session, session_factory, make_account
    ):
        account = make_account("alice")

        # Second writer read the account before the first one wrote
        other = session_factory(expire_on_commit=False)
        try:
            assert other.get(Account, account.id).balance == Decimal("50")
            other.commit()

            LedgerService(db_session).apply_delta(
                account.id, Decimal("5"), EntryType.ADMIN_ADJUSTMENT, "first"
            )
            db_session.commit()

            with pytest.raises(StaleDataError):
                LedgerService(other).apply_delta(
                    account.id, Decimal("-10"), EntryType.GAME_LOSS, "second"
                )
            other.rollback()
        finally:
            other.close()

        service = LedgerService(db_session)
        assert service.get_balance(account.id) == Decimal("55")
        assert service.replay_balance(account.id) == Decimal("55")
        assert len(service.get_entries(account.id)) == 2
