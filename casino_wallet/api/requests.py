"""
Deposit and withdrawal request endpoints.

Players create requests; admins approve or reject them.
A decision on a request that already left PENDING returns
409 and changes nothing.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casino_wallet.api.errors import HANDLED_ERRORS, http_error
from casino_wallet.models.base import get_db
from casino_wallet.models.enums import RequestKind, RequestStatus
from casino_wallet.schemas.request import (
    ApprovalBody,
    DecisionResult,
    DepositRequestCreate,
    RejectionBody,
    WalletRequestResponse,
    WithdrawalRequestCreate,
)
from casino_wallet.services.request_service import RequestService

router = APIRouter(prefix="/requests", tags=["Requests"])


@router.post("/deposits", response_model=WalletRequestResponse, status_code=201)
def create_deposit(
    request: DepositRequestCreate,
    db: Session = Depends(get_db),
):
    """Submit a deposit for review. The balance is credited on approval."""
    service = RequestService(db)
    try:
        wallet_request = service.create_deposit_request(
            request.account_id, request.amount, request.payment
        )
        db.commit()
        return wallet_request
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.post(
    "/withdrawals", response_model=WalletRequestResponse, status_code=201
)
def create_withdrawal(
    request: WithdrawalRequestCreate,
    db: Session = Depends(get_db),
):
    """Submit a withdrawal. The full amount is held immediately."""
    service = RequestService(db)
    try:
        wallet_request = service.create_withdrawal_request(
            request.account_id, request.amount, request.payout
        )
        db.commit()
        return wallet_request
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.get("", response_model=list[WalletRequestResponse])
def list_requests(
    status: RequestStatus | None = None,
    kind: RequestKind | None = None,
    account_id: int | None = None,
    db: Session = Depends(get_db),
):
    return RequestService(db).list_requests(
        status=status, kind=kind, account_id=account_id
    )


@router.get("/{request_id}", response_model=WalletRequestResponse)
def get_request(
    request_id: int,
    db: Session = Depends(get_db),
):
    try:
        return RequestService(db).get_request(request_id)
    except HANDLED_ERRORS as e:
        raise http_error(e)


@router.post("/{request_id}/approve", response_model=DecisionResult)
def approve_request(
    request_id: int,
    body: ApprovalBody,
    db: Session = Depends(get_db),
):
    """
    Approve a pending request.

    A failed referral payout does not fail the approval; it is
    listed in the response's warnings.
    """
    service = RequestService(db)
    try:
        result = service.approve_request(request_id, body.admin_id, body.notes)
        db.commit()
        return result
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.post("/{request_id}/reject", response_model=DecisionResult)
def reject_request(
    request_id: int,
    body: RejectionBody,
    db: Session = Depends(get_db),
):
    """Reject a pending request. Withdrawals are refunded in full."""
    service = RequestService(db)
    try:
        result = service.reject_request(request_id, body.admin_id, body.reason)
        db.commit()
        return result
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)
