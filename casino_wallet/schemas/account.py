"""
Pydantic schemas for account operations.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AccountCreate(BaseModel):
    """
    New player. The referrer can be given by account id or by
    referral code; if both are given they must name the same account.
    """
    username: str = Field(min_length=1, max_length=100)
    referred_by_id: int | None = None
    referral_code: str | None = Field(default=None, max_length=16)


class AccountResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    username: str
    referral_code: str
    balance: Decimal
    total_deposited: Decimal
    total_withdrawn: Decimal
    total_won: Decimal
    total_lost: Decimal
    referral_earnings: Decimal
    total_referrals: int
    referred_by_id: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountStatusUpdate(BaseModel):
    """Request to activate or deactivate an account."""
    is_active: bool


class AccountBalanceResponse(BaseModel):
    account_id: int
    external_id: uuid.UUID
    balance: Decimal
    currency: str


class BalanceAdjustment(BaseModel):
    """
    Manual correction by an admin.

    Positive amounts credit the account, negative amounts debit it.
    """
    amount: Decimal = Field(decimal_places=2)
    admin_id: str = Field(min_length=1, max_length=100)
    reason: str = Field(default="", max_length=500)


class ReferralSummary(BaseModel):
    account_id: int
    referral_code: str
    total_referrals: int
    referral_earnings: Decimal
    referral_bonus_count: int
    referred_by_id: int | None
    referred_account_ids: list[int]


class ReferralCodeCheck(BaseModel):
    referral_code: str
    valid: bool


class TopReferrer(BaseModel):
    account_id: int
    username: str
    referral_code: str
    total_referrals: int
    referral_earnings: Decimal
