"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casino_wallet.api.errors import HANDLED_ERRORS, http_error
from casino_wallet.config import get_settings
from casino_wallet.models.base import get_db
from casino_wallet.models.enums import EntryType
from casino_wallet.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountStatusUpdate,
    AccountBalanceResponse,
    BalanceAdjustment,
    ReferralCodeCheck,
    ReferralSummary,
)
from casino_wallet.schemas.ledger import LedgerEntryResponse
from casino_wallet.services.account_service import AccountService
from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.referral_service import (
    ReferralService,
    normalize_code,
)

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("", response_model=AccountResponse, status_code=201)
def create_account(
    request: AccountCreate,
    db: Session = Depends(get_db),
):
    """
    Open a player account.

    The welcome credit is posted as the account's first
    ledger entry.
    """
    service = AccountService(db)
    try:
        account = service.create_account(
            request.username,
            referred_by_id=request.referred_by_id,
            referral_code=request.referral_code,
        )
        db.commit()
        return account
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


# Declared before the /{account_id} routes so a code is never
# parsed as an account id
@router.get("/referral-codes/{code}", response_model=ReferralCodeCheck)
def check_referral_code(
    code: str,
    db: Session = Depends(get_db),
):
    """Whether a code can be quoted when opening an account."""
    return ReferralCodeCheck(
        referral_code=normalize_code(code),
        valid=ReferralService(db).validate_referral_code(code),
    )


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        return service.get_account(account_id)
    except HANDLED_ERRORS as e:
        raise http_error(e)


@router.get("/{account_id}/balance", response_model=AccountBalanceResponse)
def get_account_balance(
    account_id: int,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        account = service.get_account(account_id)
        return AccountBalanceResponse(
            account_id=account.id,
            external_id=account.external_id,
            balance=service.get_balance(account_id),
            currency=get_settings().CURRENCY,
        )
    except HANDLED_ERRORS as e:
        raise http_error(e)


@router.get("/{account_id}/entries", response_model=list[LedgerEntryResponse])
def get_account_entries(
    account_id: int,
    entry_type: EntryType | None = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """Ledger history for an account, newest first."""
    try:
        AccountService(db).get_account(account_id)
        return LedgerService(db).get_entries(
            account_id, entry_type=entry_type, limit=limit
        )
    except HANDLED_ERRORS as e:
        raise http_error(e)


@router.patch("/{account_id}/status", response_model=AccountResponse)
def change_account_status(
    account_id: int,
    request: AccountStatusUpdate,
    db: Session = Depends(get_db),
):
    service = AccountService(db)
    try:
        account = service.set_active(account_id, request.is_active)
        db.commit()
        return account
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.post(
    "/{account_id}/adjustments",
    response_model=LedgerEntryResponse,
    status_code=201,
)
def adjust_balance(
    account_id: int,
    request: BalanceAdjustment,
    db: Session = Depends(get_db),
):
    """Manual admin correction; the reason is required."""
    service = AccountService(db)
    try:
        _, entry = service.adjust_balance(
            account_id, request.amount, request.admin_id, request.reason
        )
        db.commit()
        return entry
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.get("/{account_id}/referrals", response_model=ReferralSummary)
def get_referrals(
    account_id: int,
    db: Session = Depends(get_db),
):
    try:
        return ReferralService(db).get_summary(account_id)
    except HANDLED_ERRORS as e:
        raise http_error(e)
