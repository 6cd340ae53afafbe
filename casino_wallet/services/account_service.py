"""
Account service: manages player accounts and their lifecycle.

Opening an account seeds the welcome credit through the ledger,
so the very first balance already has an entry behind it.
Admin corrections also go through the ledger and are logged
as admin actions.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from casino_wallet.config import Settings, get_settings
from casino_wallet.exceptions import (
    AccountNotFound,
    InsufficientBalance,
    ValidationError,
)
from casino_wallet.models.account import Account
from casino_wallet.models.audit_log import AdminAction
from casino_wallet.models.enums import EntryType
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.referral_service import (
    ReferralService,
    generate_referral_code,
    normalize_code,
)

logger = logging.getLogger(__name__)


class AccountService:

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger_service = LedgerService(db)

    def create_account(
        self,
        username: str,
        referred_by_id: int | None = None,
        referral_code: str | None = None,
    ) -> Account:
        """
        Create a new player account with the welcome credit.

        The referrer may be named by id or by referral code. If
        given, the referrer must exist; their referral count goes
        up by one. The link is permanent.
        """
        existing = self.db.execute(
            select(Account).where(Account.username == username)
        ).scalar_one_or_none()

        if existing:
            raise ValidationError(f"Account '{username}' already exists")

        referrer = None
        if normalize_code(referral_code):
            referrer = ReferralService(self.db).get_by_code(referral_code)
            if not referrer or not referrer.is_active:
                raise ValidationError(
                    f"Invalid referral code '{referral_code}'"
                )
            if referred_by_id is not None and referred_by_id != referrer.id:
                raise ValidationError(
                    "referral_code and referred_by_id name different accounts"
                )
        elif referred_by_id is not None:
            referrer = self.db.get(Account, referred_by_id)
            if not referrer:
                raise AccountNotFound(referred_by_id)

        if referrer is not None:
            referrer.total_referrals += 1

        account = Account(
            username=username,
            referral_code=generate_referral_code(self.db),
            balance=Decimal("0"),
            referred_by_id=referrer.id if referrer else None,
        )
        self.db.add(account)
        self.db.flush()

        if self.settings.WELCOME_BONUS > 0:
            self.ledger_service.apply_delta(
                account.id,
                self.settings.WELCOME_BONUS,
                EntryType.WELCOME_BONUS,
                description="Welcome bonus for new user",
            )

        logger.info(f"Account created: {account.id} ({username})")
        return account

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFound(account_id)
        return account

    def get_balance(self, account_id: int) -> Decimal:
        return self.ledger_service.get_balance(account_id)

    def set_active(self, account_id: int, is_active: bool) -> Account:
        """Soft-activate or deactivate. Accounts are never deleted."""
        account = self.get_account(account_id)
        account.is_active = is_active
        self.db.flush()
        return account

    def adjust_balance(
        self,
        account_id: int,
        amount: Decimal,
        admin_id: str,
        reason: str,
    ) -> tuple[Decimal, LedgerEntry]:
        """
        Post a manual admin correction.

        Unlike the clamping backstop in apply_delta, an explicit
        admin debit larger than the balance is refused outright.
        """
        if not reason or not reason.strip():
            raise ValidationError("reason is required for a balance adjustment")

        amount = Decimal(amount)
        account = self.ledger_service.lock_account(account_id)
        if amount < 0 and account.balance < -amount:
            raise InsufficientBalance(account.balance, -amount)

        new_balance, entry = self.ledger_service.apply_delta(
            account_id,
            amount,
            EntryType.ADMIN_ADJUSTMENT,
            description=f"Admin adjustment: {reason.strip()}",
        )

        self.db.add(AdminAction(
            admin_id=admin_id,
            action="adjust_balance",
            account_id=account_id,
            details=f"amount={entry.amount} reason={reason.strip()}",
        ))
        self.db.flush()

        logger.info(
            f"Admin {admin_id} adjusted account {account_id} by {entry.amount}"
        )
        return new_balance, entry
