"""Business logic services."""

from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.account_service import AccountService
from casino_wallet.services.request_service import RequestService
from casino_wallet.services.game_service import GameService
from casino_wallet.services.referral_service import ReferralService
from casino_wallet.services.reporting_service import ReportingService

__all__ = [
    "LedgerService",
    "AccountService",
    "RequestService",
    "GameService",
    "ReferralService",
    "ReportingService",
]
