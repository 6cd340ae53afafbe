"""
Request service: deposit and withdrawal requests and their approval.

Lifecycle: PENDING -> APPROVED | REJECTED, exactly once.

Money moves asymmetrically:
- deposits credit nothing until an admin approves them
- withdrawals debit (escrow) the full amount at request time;
  approval only finalizes, rejection refunds the same amount

Every decision claims the request with a conditional UPDATE
(WHERE status = PENDING). Whoever changes the row wins; everyone
else gets AlreadyProcessed and performs no writes. The caller
controls the commit, so the claim and its ledger effects land
in one transaction.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casino_wallet.config import Settings, get_settings
from casino_wallet.exceptions import (
    WalletError,
    AlreadyProcessed,
    InsufficientBalance,
    RequestNotFound,
    ValidationError,
)
from casino_wallet.models.audit_log import AdminAction
from casino_wallet.models.enums import (
    EntryType,
    PaymentMethod,
    RequestKind,
    RequestStatus,
)
from casino_wallet.models.wallet_request import WalletRequest
from casino_wallet.schemas.request import (
    DecisionResult,
    SecondaryEffectFailure,
    WalletRequestResponse,
)
from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.referral_service import (
    ReferralService,
    floor_amount,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """
    Validate a request amount as whole minor units.

    A sub-cent amount would be rounded one way by the column and
    another way by the ledger, so the escrow and its refund could
    differ by a cent.
    """
    amount = Decimal(amount)
    if amount != amount.quantize(CENT):
        raise ValidationError(
            f"Amount {amount} has more than 2 decimal places"
        )
    return amount.quantize(CENT)


def withdrawal_fee(amount: Decimal, rate: Decimal) -> Decimal:
    """Fee withheld from a payout, rounded half-up to minor units."""
    return (Decimal(amount) * Decimal(rate)).quantize(CENT, rounding=ROUND_HALF_UP)


class RequestService:

    def __init__(self, db: Session, settings: Settings | None = None):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger_service = LedgerService(db)
        self.referral_service = ReferralService(db)

    # --- Creation ---

    def create_deposit_request(
        self, account_id: int, amount: Decimal, payment
    ) -> WalletRequest:
        """
        Record a player's deposit for admin review.

        `payment` is one of the DepositPayment variants. The
        balance is not touched until approval.
        """
        amount = to_cents(amount)
        if amount < self.settings.MIN_DEPOSIT:
            raise ValidationError(
                f"Minimum deposit amount is {self.settings.MIN_DEPOSIT}"
            )
        if amount > self.settings.MAX_DEPOSIT:
            raise ValidationError(
                f"Maximum deposit amount is {self.settings.MAX_DEPOSIT}"
            )

        account = self.ledger_service.lock_account(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account_id} is not active")

        request = WalletRequest(
            account_id=account.id,
            kind=RequestKind.DEPOSIT,
            status=RequestStatus.PENDING,
            amount=amount,
            payment_method=PaymentMethod(payment.method),
            payment_details=payment.model_dump(mode="json", exclude={"method"}),
        )
        self.db.add(request)
        self.db.flush()

        logger.info(
            f"Deposit request created: {request.id} - {amount} "
            f"for account {account_id}"
        )
        return request

    def create_withdrawal_request(
        self, account_id: int, amount: Decimal, payout
    ) -> WalletRequest:
        """
        Record a withdrawal and escrow the funds immediately.

        The full amount is debited now so the same money cannot be
        requested twice while the first request is pending. The fee
        split is computed for display; the ledger debit is the full
        amount.
        """
        amount = to_cents(amount)
        if amount < self.settings.MIN_WITHDRAWAL:
            raise ValidationError(
                f"Minimum withdrawal amount is {self.settings.MIN_WITHDRAWAL}"
            )
        if amount > self.settings.MAX_WITHDRAWAL:
            raise ValidationError(
                f"Maximum withdrawal amount is {self.settings.MAX_WITHDRAWAL}"
            )

        account = self.ledger_service.lock_account(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account_id} is not active")
        if account.balance < amount:
            raise InsufficientBalance(account.balance, amount)

        deduction = withdrawal_fee(amount, self.settings.WITHDRAWAL_FEE_RATE)

        request = WalletRequest(
            account_id=account.id,
            kind=RequestKind.WITHDRAWAL,
            status=RequestStatus.PENDING,
            amount=amount,
            payment_method=PaymentMethod(payout.method),
            payment_details=payout.model_dump(mode="json", exclude={"method"}),
            deduction_amount=deduction,
            final_amount=amount - deduction,
        )
        self.db.add(request)
        self.db.flush()

        self.ledger_service.apply_delta(
            account.id,
            -amount,
            EntryType.WITHDRAWAL,
            description=f"Withdrawal request - {amount} (pending approval)",
            reference_id=request.id,
        )

        logger.info(
            f"Withdrawal request created: {request.id} - {amount} escrowed "
            f"from account {account_id} (fee {deduction})"
        )
        return request

    # --- Decisions ---

    def approve_request(
        self, request_id: int, admin_id: str, notes: str | None = None
    ) -> DecisionResult:
        """
        Approve a pending request.

        Deposits: credit amount and bonus as two entries, then try
        to pay the referrer inside a savepoint. A referral failure
        is reported in `warnings` and does not undo the approval.

        Withdrawals: funds were escrowed at creation, so only the
        status and total_withdrawn change.
        """
        request = self.get_request(request_id)
        if request.status != RequestStatus.PENDING:
            raise AlreadyProcessed(request_id, request.status)

        if request.kind == RequestKind.DEPOSIT:
            return self._approve_deposit(request, admin_id, notes)
        return self._approve_withdrawal(request, admin_id, notes)

    def reject_request(
        self, request_id: int, admin_id: str, reason: str
    ) -> DecisionResult:
        """
        Reject a pending request. A reason is mandatory.

        Withdrawals are refunded the full escrowed amount (not the
        post-fee final_amount). Deposits have nothing to undo.
        """
        if not reason or not reason.strip():
            raise ValidationError("A rejection reason is required")
        reason = reason.strip()

        request = self.get_request(request_id)
        if request.status != RequestStatus.PENDING:
            raise AlreadyProcessed(request_id, request.status)

        self._claim(
            request,
            RequestStatus.REJECTED,
            admin_id,
            rejection_reason=reason,
        )

        entry_ids = []
        if request.kind == RequestKind.WITHDRAWAL:
            new_balance, refund = self.ledger_service.apply_delta(
                request.account_id,
                request.amount,
                EntryType.WITHDRAWAL_REFUND,
                description=(
                    f"Withdrawal refund - {request.amount} "
                    f"(Rejection: {reason})"
                ),
                reference_id=request.id,
            )
            entry_ids.append(refund.id)
        else:
            new_balance = self.ledger_service.get_balance(request.account_id)

        self._log_action(request, admin_id, "reject", reason)

        logger.info(
            f"{request.kind.value.title()} {request.id} rejected by "
            f"{admin_id}: {reason}"
        )
        return DecisionResult(
            request=WalletRequestResponse.model_validate(request),
            new_balance=new_balance,
            ledger_entry_ids=entry_ids,
        )

    def _approve_deposit(
        self, request: WalletRequest, admin_id: str, notes: str | None
    ) -> DecisionResult:
        bonus = floor_amount(request.amount, self.settings.DEPOSIT_BONUS_RATE)

        self._claim(
            request,
            RequestStatus.APPROVED,
            admin_id,
            admin_notes=notes,
            bonus_amount=bonus,
        )

        account = self.ledger_service.lock_account(request.account_id)
        new_balance, deposit_entry = self.ledger_service.apply_delta(
            account.id,
            request.amount,
            EntryType.DEPOSIT,
            description=f"Deposit approved - {request.amount}",
            reference_id=request.id,
        )
        entry_ids = [deposit_entry.id]

        if bonus > 0:
            new_balance, bonus_entry = self.ledger_service.apply_delta(
                account.id,
                bonus,
                EntryType.DEPOSIT_BONUS,
                description=(
                    f"Deposit bonus - {bonus} "
                    f"(on {request.amount} deposit)"
                ),
                reference_id=request.id,
            )
            entry_ids.append(bonus_entry.id)

        # The bonus is not a deposit
        account.total_deposited += request.amount
        self.db.flush()

        warnings = []
        referral_bonus = None
        if account.referred_by_id is not None:
            try:
                with self.db.begin_nested():
                    referral_entry = self.referral_service.credit_referrer(
                        account, request, self.settings.REFERRAL_BONUS_RATE
                    )
            except (WalletError, SQLAlchemyError) as e:
                logger.error(
                    f"Referral bonus for deposit {request.id} failed "
                    f"(non-blocking): {e}"
                )
                warnings.append(SecondaryEffectFailure(
                    effect="referral_bonus",
                    account_id=account.referred_by_id,
                    message=str(e),
                ))
            else:
                if referral_entry is not None:
                    referral_bonus = referral_entry.amount
                    entry_ids.append(referral_entry.id)

        self._log_action(request, admin_id, "approve", notes)

        logger.info(
            f"Deposit {request.id} approved by {admin_id}: "
            f"{request.amount} + {bonus} bonus for account {account.id}"
        )
        return DecisionResult(
            request=WalletRequestResponse.model_validate(request),
            new_balance=new_balance,
            bonus_amount=bonus,
            referral_bonus=referral_bonus,
            ledger_entry_ids=entry_ids,
            warnings=warnings,
        )

    def _approve_withdrawal(
        self, request: WalletRequest, admin_id: str, notes: str | None
    ) -> DecisionResult:
        self._claim(request, RequestStatus.APPROVED, admin_id, admin_notes=notes)

        account = self.ledger_service.lock_account(request.account_id)
        account.total_withdrawn += request.amount
        self.db.flush()

        self._log_action(request, admin_id, "approve", notes)

        logger.info(
            f"Withdrawal {request.id} approved by {admin_id}: "
            f"{request.final_amount} payable after {request.deduction_amount} fee"
        )
        return DecisionResult(
            request=WalletRequestResponse.model_validate(request),
            new_balance=account.balance,
        )

    def _claim(
        self,
        request: WalletRequest,
        new_status: RequestStatus,
        admin_id: str,
        **values,
    ) -> None:
        """
        Move a request out of PENDING with a compare-and-set UPDATE.

        Raises AlreadyProcessed if another decision got there first.
        """
        if not request.can_transition_to(new_status):
            raise AlreadyProcessed(request.id, request.status)

        result = self.db.execute(
            update(WalletRequest)
            .where(
                WalletRequest.id == request.id,
                WalletRequest.status == RequestStatus.PENDING,
            )
            .values(
                status=new_status,
                decided_by=admin_id,
                decided_at=datetime.utcnow(),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(request)

        if result.rowcount != 1:
            raise AlreadyProcessed(request.id, request.status)

    def _log_action(
        self,
        request: WalletRequest,
        admin_id: str,
        verb: str,
        details: str | None,
    ) -> None:
        self.db.add(AdminAction(
            admin_id=admin_id,
            action=f"{verb}_{request.kind.value.lower()}",
            account_id=request.account_id,
            request_id=request.id,
            details=details or "",
        ))
        self.db.flush()

    # --- Queries ---

    def get_request(self, request_id: int) -> WalletRequest:
        request = self.db.get(WalletRequest, request_id)
        if not request:
            raise RequestNotFound(request_id)
        return request

    def list_requests(
        self,
        status: RequestStatus | None = None,
        kind: RequestKind | None = None,
        account_id: int | None = None,
    ) -> list[WalletRequest]:
        """Return matching requests, newest first."""
        query = select(WalletRequest).order_by(WalletRequest.id.desc())
        if status is not None:
            query = query.where(WalletRequest.status == status)
        if kind is not None:
            query = query.where(WalletRequest.kind == kind)
        if account_id is not None:
            query = query.where(WalletRequest.account_id == account_id)
        return list(self.db.execute(query).scalars().all())
