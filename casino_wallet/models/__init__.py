"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from casino_wallet.models.base import Base
from casino_wallet.models.enums import (
    EntryType,
    RequestKind,
    RequestStatus,
    PaymentMethod,
)
from casino_wallet.models.account import Account
from casino_wallet.models.wallet_request import WalletRequest
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.models.game_round import GameRound
from casino_wallet.models.audit_log import AdminAction

__all__ = [
    "Base",
    "EntryType",
    "RequestKind",
    "RequestStatus",
    "PaymentMethod",
    "Account",
    "WalletRequest",
    "LedgerEntry",
    "GameRound",
    "AdminAction",
]
