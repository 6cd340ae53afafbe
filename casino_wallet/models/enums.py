"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored. An invalid entry_type
or request status is caught at the database level, not just
in Python validation.
"""

import enum


class EntryType(str, enum.Enum):
    """What caused a balance change."""
    DEPOSIT = "deposit"
    DEPOSIT_BONUS = "deposit_bonus"
    WITHDRAWAL = "withdrawal"
    WITHDRAWAL_REFUND = "withdrawal_refund"
    REFERRAL_BONUS = "referral_bonus"
    GAME_WIN = "game_win"
    GAME_LOSS = "game_loss"
    WELCOME_BONUS = "welcome_bonus"
    ADMIN_ADJUSTMENT = "admin_adjustment"


# Sign rules enforced by LedgerService.apply_delta.
# ADMIN_ADJUSTMENT is in neither set: it may go either way.
DEBIT_ENTRY_TYPES = frozenset({EntryType.WITHDRAWAL, EntryType.GAME_LOSS})
CREDIT_ENTRY_TYPES = frozenset({
    EntryType.DEPOSIT,
    EntryType.DEPOSIT_BONUS,
    EntryType.WITHDRAWAL_REFUND,
    EntryType.REFERRAL_BONUS,
    EntryType.GAME_WIN,
    EntryType.WELCOME_BONUS,
})


class RequestKind(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class RequestStatus(str, enum.Enum):
    """Lifecycle of a deposit or withdrawal request."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class PaymentMethod(str, enum.Enum):
    BANK_TRANSFER = "bank_transfer"
    USDT_TRC20 = "usdt_trc20"
