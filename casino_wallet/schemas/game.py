"""
Pydantic schemas for game settlement.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class GameRoundCreate(BaseModel):
    """Outcome of a finished round, as reported by the game client."""
    account_id: int
    game_id: str = Field(min_length=1, max_length=50)
    bet_amount: Decimal = Field(gt=0, decimal_places=2)
    is_win: bool
    win_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    description: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def win_amount_matches_outcome(self):
        if self.is_win and self.win_amount <= 0:
            raise ValueError("win_amount must be positive for a winning round")
        if not self.is_win and self.win_amount != 0:
            raise ValueError("win_amount must be 0 for a losing round")
        return self


class GameRoundResponse(BaseModel):
    id: int
    account_id: int
    game_id: str
    bet_amount: Decimal
    win_amount: Decimal
    is_win: bool
    ledger_entry_id: int
    created_at: datetime

    model_config = {"from_attributes": True}


class GameResult(BaseModel):
    success: bool = True
    round: GameRoundResponse
    new_balance: Decimal
    ledger_entry_id: int


class PlayerStats(BaseModel):
    """Per-player aggregates that feed the win probability policy."""
    total_games_played: int = 0
    total_won: Decimal = Decimal("0")
    total_lost: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    win_streak: int = 0
    loss_streak: int = 0
    average_bet: Decimal = Decimal("0")
    last_game_at: datetime | None = None
