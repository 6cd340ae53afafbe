"""
Referral codes, bonus calculation and crediting.

Every account gets a unique code at creation; a new player can
quote it to link to their referrer. When a referred player's
deposit is approved, the immediate referrer earns a percentage
of the deposit. There are no multi-level chains: only the
account in referred_by_id is paid.
"""

import logging
import random
import string
from decimal import Decimal, ROUND_FLOOR

from sqlalchemy import select
from sqlalchemy.orm import Session

from casino_wallet.exceptions import AccountNotFound, ValidationError
from casino_wallet.models.account import Account
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.models.wallet_request import WalletRequest
from casino_wallet.models.enums import EntryType
from casino_wallet.schemas.account import ReferralSummary, TopReferrer
from casino_wallet.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)


def floor_amount(amount: Decimal, rate: Decimal) -> Decimal:
    """floor(amount * rate) in whole currency units."""
    return (Decimal(amount) * Decimal(rate)).to_integral_value(
        rounding=ROUND_FLOOR
    )


def calculate_referral_bonus(deposit_amount: Decimal, rate: Decimal) -> Decimal:
    """Bonus owed to the referrer for one approved deposit."""
    return floor_amount(deposit_amount, rate)


CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 8


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def generate_referral_code(db: Session) -> str:
    """Draw random codes until one is not taken."""
    while True:
        code = "".join(random.choices(CODE_ALPHABET, k=CODE_LENGTH))
        taken = db.execute(
            select(Account.id).where(Account.referral_code == code)
        ).first()
        if not taken:
            return code


class ReferralService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)

    def credit_referrer(
        self,
        referred: Account,
        deposit: WalletRequest,
        rate: Decimal,
    ) -> LedgerEntry | None:
        """
        Pay the referrer of `referred` for an approved deposit.

        Only called from deposit approval. Returns None when the
        account has no referrer or the bonus rounds down to zero.
        Raises if the referrer is missing or inactive; the caller
        decides whether that is fatal.
        """
        if referred.referred_by_id is None:
            return None

        bonus = calculate_referral_bonus(deposit.amount, rate)
        if bonus <= 0:
            return None

        referrer = self.ledger_service.lock_account(referred.referred_by_id)
        if not referrer.is_active:
            raise ValidationError(
                f"Referrer account {referrer.id} is not active"
            )

        _, entry = self.ledger_service.apply_delta(
            referrer.id,
            bonus,
            EntryType.REFERRAL_BONUS,
            description=(
                f"Referral bonus {bonus} from {referred.username}'s "
                f"{deposit.amount} deposit"
            ),
            reference_id=deposit.id,
        )
        referrer.referral_earnings += bonus
        referrer.referral_bonus_count += 1
        self.db.flush()

        logger.info(
            f"Referral bonus {bonus} credited to account {referrer.id} "
            f"for deposit {deposit.id}"
        )
        return entry

    def get_summary(self, account_id: int) -> ReferralSummary:
        account = self.db.get(Account, account_id)
        if not account:
            raise AccountNotFound(account_id)

        referred_ids = self.db.execute(
            select(Account.id)
            .where(Account.referred_by_id == account_id)
            .order_by(Account.id)
        ).scalars().all()

        return ReferralSummary(
            account_id=account.id,
            referral_code=account.referral_code,
            total_referrals=account.total_referrals,
            referral_earnings=account.referral_earnings,
            referral_bonus_count=account.referral_bonus_count,
            referred_by_id=account.referred_by_id,
            referred_account_ids=list(referred_ids),
        )

    def get_by_code(self, code: str) -> Account | None:
        """Look up an account by referral code, ignoring case and padding."""
        code = normalize_code(code)
        if not code:
            return None
        return self.db.execute(
            select(Account).where(Account.referral_code == code)
        ).scalar_one_or_none()

    def validate_referral_code(self, code: str) -> bool:
        """True if the code belongs to an active account."""
        account = self.get_by_code(code)
        return account is not None and account.is_active

    def top_referrers(self, limit: int = 10) -> list[TopReferrer]:
        """
        Accounts with at least one referral, most referrals first.

        Ties go to the higher referral earnings, then the older
        account.
        """
        if limit < 1:
            raise ValidationError("limit must be at least 1")

        accounts = self.db.execute(
            select(Account)
            .where(Account.total_referrals > 0)
            .order_by(
                Account.total_referrals.desc(),
                Account.referral_earnings.desc(),
                Account.id,
            )
            .limit(limit)
        ).scalars().all()

        return [
            TopReferrer(
                account_id=account.id,
                username=account.username,
                referral_code=account.referral_code,
                total_referrals=account.total_referrals,
                referral_earnings=account.referral_earnings,
            )
            for account in accounts
        ]
