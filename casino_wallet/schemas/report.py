"""
Pydantic schemas for admin reporting.

Every field defaults to zero so a report can be built even
when one of its data sources could not be read.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

ZERO = Decimal("0")


class TodayStats(BaseModel):
    new_users: int = 0
    deposits: Decimal = ZERO
    withdrawals: Decimal = ZERO
    game_revenue: Decimal = ZERO
    pending_deposits: Decimal = ZERO
    pending_withdrawals: Decimal = ZERO
    deposit_requests: int = 0
    withdrawal_requests: int = 0
    games_played: int = 0
    total_bets: Decimal = ZERO


class DashboardStats(BaseModel):
    generated_at: datetime
    total_users: int = 0
    active_users: int = 0
    total_wallet_balance: Decimal = ZERO
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO
    pending_deposits: Decimal = ZERO
    pending_withdrawals: Decimal = ZERO
    pending_deposit_count: int = 0
    pending_withdrawal_count: int = 0
    approval_rate: float = 0.0
    total_game_revenue: Decimal = ZERO
    total_referral_bonuses: Decimal = ZERO
    total_deposit_bonuses: Decimal = ZERO
    today: TodayStats = Field(default_factory=TodayStats)
    degraded_sections: list[str] = Field(default_factory=list)


class GameStatistics(BaseModel):
    game_id: str
    rounds_played: int
    total_wagered: Decimal
    total_paid_out: Decimal
    house_profit: Decimal
    unique_players: int


class AdminActionResponse(BaseModel):
    id: int
    admin_id: str
    action: str
    account_id: int | None
    request_id: int | None
    details: str
    created_at: datetime

    model_config = {"from_attributes": True}
