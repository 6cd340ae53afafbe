"""
Game round model.

One completed bet. Written in the same flush as the ledger
entry it produced, so reports never see one without the other.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from casino_wallet.models.base import Base


class GameRound(Base):
    __tablename__ = "game_rounds"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    game_id: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True
    )
    bet_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    win_amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    is_win: Mapped[bool] = mapped_column(Boolean, nullable=False)
    ledger_entry_id: Mapped[int] = mapped_column(
        ForeignKey("ledger_entries.id"), nullable=False, unique=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )

    ledger_entry: Mapped["LedgerEntry"] = relationship()

    def __repr__(self) -> str:
        outcome = "WIN" if self.is_win else "LOSS"
        return f"<GameRound {self.game_id} {outcome} bet={self.bet_amount}>"
