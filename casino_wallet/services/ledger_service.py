"""
Ledger service: the core of the wallet system.

This service enforces the fundamental rules:
1. apply_delta is the only code path that changes a balance
2. Every balance change writes exactly one ledger entry
3. Entries are immutable (append-only)
4. A balance never goes below zero

No other service writes Account.balance directly.
All money movement goes through this service.
"""

import logging
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from casino_wallet.exceptions import AccountNotFound, ValidationError
from casino_wallet.models.account import Account
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.models.enums import (
    EntryType,
    DEBIT_ENTRY_TYPES,
    CREDIT_ENTRY_TYPES,
)
from casino_wallet.schemas.ledger import BalanceMismatch, IntegrityReport

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


class LedgerService:
    """
    All balance changes pass through this service.

    The service takes a database session as a constructor
    argument. This means the caller controls the transaction
    boundary: they decide when to commit or rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    def lock_account(self, account_id: int) -> Account:
        """
        Load an account with a row lock for the rest of the transaction.

        Callers that must check sufficiency before a debit use this
        so the check and the debit see the same balance. If the row
        was already loaded earlier in the session, or the backend
        has no FOR UPDATE, the version column still turns a lost
        race into StaleDataError at flush time.
        """
        account = self.db.execute(
            select(Account)
            .where(Account.id == account_id)
            .with_for_update()
        ).scalar_one_or_none()

        if not account:
            raise AccountNotFound(account_id)
        return account

    def get_balance(self, account_id: int) -> Decimal:
        balance = self.db.execute(
            select(Account.balance).where(Account.id == account_id)
        ).scalar_one_or_none()

        if balance is None:
            raise AccountNotFound(account_id)
        return balance

    def apply_delta(
        self,
        account_id: int,
        amount: Decimal,
        entry_type: EntryType,
        description: str,
        reference_id: int | None = None,
    ) -> tuple[Decimal, LedgerEntry]:
        """
        Apply a signed balance change and append its ledger entry.

        Credits are positive, debits negative. The sign must agree
        with entry_type (a game_loss can never credit). A debit
        larger than the balance is clamped so the balance lands on
        zero; the entry records the amount actually applied, which
        keeps replay exact. Callers are expected to have checked
        sufficiency already, so a clamp is logged as a warning.

        Amounts must be whole cents; nothing is rounded here.

        Returns (new_balance, entry). Nothing is committed.
        """
        amount = Decimal(amount)
        if amount != amount.quantize(CENT):
            raise ValidationError(f"amount {amount} is not in whole cents")
        amount = amount.quantize(CENT)

        if amount == ZERO:
            raise ValidationError("amount must be non-zero")
        if entry_type in DEBIT_ENTRY_TYPES and amount > ZERO:
            raise ValidationError(f"{entry_type.value} must be a debit")
        if entry_type in CREDIT_ENTRY_TYPES and amount < ZERO:
            raise ValidationError(f"{entry_type.value} must be a credit")

        account = self.lock_account(account_id)

        balance_before = account.balance
        balance_after = balance_before + amount

        if balance_after < ZERO:
            logger.warning(
                f"Clamped {entry_type.value} on account {account_id}: "
                f"requested {amount}, balance {balance_before}"
            )
            balance_after = ZERO

        applied = balance_after - balance_before

        account.balance = balance_after
        entry = LedgerEntry(
            account_id=account.id,
            entry_type=entry_type,
            amount=applied,
            balance_before=balance_before,
            balance_after=balance_after,
            reference_id=reference_id,
            description=description,
        )
        self.db.add(entry)
        self.db.flush()

        logger.debug(
            f"Applied {entry_type.value} {applied} to account {account_id}: "
            f"{balance_before} -> {balance_after}"
        )
        return balance_after, entry

    def get_entries(
        self,
        account_id: int,
        entry_type: EntryType | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]:
        """Return entries for an account, newest first."""
        query = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.id.desc())
        )
        if entry_type is not None:
            query = query.where(LedgerEntry.entry_type == entry_type)
        if limit is not None:
            query = query.limit(limit)
        return list(self.db.execute(query).scalars().all())

    def get_entries_by_reference(self, reference_id: int) -> list[LedgerEntry]:
        """Return all entries caused by one deposit/withdrawal request."""
        entries = self.db.execute(
            select(LedgerEntry)
            .where(LedgerEntry.reference_id == reference_id)
            .order_by(LedgerEntry.id)
        ).scalars().all()
        return list(entries)

    def replay_balance(self, account_id: int) -> Decimal:
        """
        Rebuild an account's balance from its entries.

        Starting from zero and adding every signed amount in
        creation order must land on the stored balance.
        """
        if self.db.get(Account, account_id) is None:
            raise AccountNotFound(account_id)

        total = self.db.execute(
            select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
                LedgerEntry.account_id == account_id
            )
        ).scalar()
        return Decimal(str(total)).quantize(CENT)

    def check_integrity(self) -> IntegrityReport:
        """
        Verify the ledger against the stored balances.

        Two checks:
        - each account's replayed balance equals its stored balance
        - each entry satisfies balance_after - balance_before == amount
        """
        sums = dict(self.db.execute(
            select(LedgerEntry.account_id, func.sum(LedgerEntry.amount))
            .group_by(LedgerEntry.account_id)
        ).all())

        accounts = self.db.execute(select(Account.id, Account.balance)).all()

        mismatches = []
        for account_id, stored in accounts:
            replayed = Decimal(str(sums.get(account_id, 0))).quantize(CENT)
            if replayed != stored:
                mismatches.append(BalanceMismatch(
                    account_id=account_id,
                    stored_balance=stored,
                    replayed_balance=replayed,
                ))

        # Compared as Decimals here; column arithmetic is float on SQLite
        malformed = [
            entry_id
            for entry_id, amount, before, after in self.db.execute(
                select(
                    LedgerEntry.id,
                    LedgerEntry.amount,
                    LedgerEntry.balance_before,
                    LedgerEntry.balance_after,
                )
            ).all()
            if after - before != amount
        ]

        if mismatches or malformed:
            logger.error(
                f"Ledger integrity check failed: {len(mismatches)} balance "
                f"mismatches, {len(malformed)} malformed entries"
            )

        return IntegrityReport(
            is_consistent=not mismatches and not malformed,
            accounts_checked=len(accounts),
            mismatches=mismatches,
            malformed_entry_ids=malformed,
        )
