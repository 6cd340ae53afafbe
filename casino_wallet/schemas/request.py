"""
Pydantic schemas for deposit and withdrawal requests.

Payment details are a tagged union discriminated on `method`.
The variant is chosen when the request is created and stored
as-is; nothing downstream fills in fields ad hoc.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from casino_wallet.models.enums import (
    RequestKind,
    RequestStatus,
    PaymentMethod,
)


# --- Deposit payment evidence ---

class BankDepositPayment(BaseModel):
    method: Literal["bank_transfer"] = "bank_transfer"
    bank_account_id: str = Field(min_length=1, max_length=100)
    transaction_reference: str = Field(default="", max_length=100)
    receipt_image: str = Field(default="", max_length=500)


class UsdtDepositPayment(BaseModel):
    method: Literal["usdt_trc20"] = "usdt_trc20"
    usdt_account_id: str = Field(min_length=1, max_length=100)
    transaction_hash: str = Field(min_length=1, max_length=128)


DepositPayment = Annotated[
    Union[BankDepositPayment, UsdtDepositPayment],
    Field(discriminator="method"),
]


# --- Withdrawal payout destination ---

class BankTransferPayout(BaseModel):
    method: Literal["bank_transfer"] = "bank_transfer"
    account_title: str = Field(min_length=1, max_length=100)
    account_number: str = Field(min_length=1, max_length=50)
    iban: str = Field(default="", max_length=34)
    bank: str = Field(min_length=1, max_length=100)


class UsdtPayout(BaseModel):
    method: Literal["usdt_trc20"] = "usdt_trc20"
    wallet_address: str = Field(min_length=1, max_length=64)
    network: str = Field(default="TRC20", max_length=20)


WithdrawalMethod = Annotated[
    Union[BankTransferPayout, UsdtPayout],
    Field(discriminator="method"),
]


# --- Requests ---

class DepositRequestCreate(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, decimal_places=2)
    payment: DepositPayment


class WithdrawalRequestCreate(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, decimal_places=2)
    payout: WithdrawalMethod


class ApprovalBody(BaseModel):
    admin_id: str = Field(min_length=1, max_length=100)
    notes: str | None = Field(default=None, max_length=1000)


class RejectionBody(BaseModel):
    admin_id: str = Field(min_length=1, max_length=100)
    # Emptiness is checked by RequestService so the error type
    # is the same for API and direct callers.
    reason: str = Field(default="", max_length=1000)


# --- Responses ---

class WalletRequestResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    account_id: int
    kind: RequestKind
    status: RequestStatus
    amount: Decimal
    payment_method: PaymentMethod
    payment_details: dict
    bonus_amount: Decimal | None
    deduction_amount: Decimal | None
    final_amount: Decimal | None
    admin_notes: str | None
    rejection_reason: str | None
    decided_by: str | None
    created_at: datetime
    decided_at: datetime | None

    model_config = {"from_attributes": True}


class SecondaryEffectFailure(BaseModel):
    """
    A non-primary step that failed after the primary effect was kept.

    Returned alongside a successful result so callers can see,
    for example, that a deposit was approved but the referrer
    was not paid.
    """
    effect: str
    account_id: int | None = None
    message: str


class DecisionResult(BaseModel):
    success: bool = True
    request: WalletRequestResponse
    new_balance: Decimal
    bonus_amount: Decimal | None = None
    referral_bonus: Decimal | None = None
    ledger_entry_ids: list[int] = Field(default_factory=list)
    warnings: list[SecondaryEffectFailure] = Field(default_factory=list)
