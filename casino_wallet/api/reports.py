"""
Admin reporting endpoints. All read-only.
"""

from decimal import Decimal

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casino_wallet.api.errors import HANDLED_ERRORS, http_error
from casino_wallet.models.base import get_db
from casino_wallet.models.enums import EntryType
from casino_wallet.schemas.account import TopReferrer
from casino_wallet.schemas.ledger import IntegrityReport
from casino_wallet.schemas.report import (
    AdminActionResponse,
    DashboardStats,
    GameStatistics,
)
from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.referral_service import ReferralService
from casino_wallet.services.reporting_service import ReportingService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/dashboard", response_model=DashboardStats)
def get_dashboard(db: Session = Depends(get_db)):
    """
    Platform totals plus today's activity.

    Sections that could not be loaded are zeroed and named in
    degraded_sections.
    """
    return ReportingService(db).dashboard_stats()


@router.get("/games", response_model=list[GameStatistics])
def get_game_statistics(db: Session = Depends(get_db)):
    return ReportingService(db).game_statistics()


@router.get("/ledger-types", response_model=dict[EntryType, Decimal])
def get_totals_by_type(db: Session = Depends(get_db)):
    return ReportingService(db).totals_by_type()


@router.get("/admin-actions", response_model=list[AdminActionResponse])
def get_admin_actions(limit: int = 50, db: Session = Depends(get_db)):
    return ReportingService(db).recent_admin_actions(limit)


@router.get("/top-referrers", response_model=list[TopReferrer])
def get_top_referrers(limit: int = 10, db: Session = Depends(get_db)):
    try:
        return ReferralService(db).top_referrers(limit)
    except HANDLED_ERRORS as e:
        raise http_error(e)


@router.get("/integrity", response_model=IntegrityReport)
def check_integrity(db: Session = Depends(get_db)):
    """
    Replay every account's ledger and compare with stored balances.

    Any mismatch means a balance changed without a matching entry.
    """
    return LedgerService(db).check_integrity()
