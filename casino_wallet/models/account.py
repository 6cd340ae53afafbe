"""
Player account (wallet) model.

The account stores its current balance together with lifetime
accumulators. The balance is only ever changed by
LedgerService.apply_delta, which writes a matching ledger entry,
so replaying the entries always reproduces the stored balance.

Accounts are never deleted. Deactivation is a soft state.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Integer, Numeric, ForeignKey,
    CheckConstraint, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from casino_wallet.models.base import Base


class Account(Base):
    __tablename__ = "accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(
        String(100), unique=True, nullable=False
    )
    # Shared by the player; new accounts may quote it instead of an id
    referral_code: Mapped[str] = mapped_column(
        String(16), unique=True, nullable=False
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )

    # Lifetime accumulators, never decreased
    total_deposited: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    total_withdrawn: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    total_won: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    total_lost: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    referral_earnings: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False, default=Decimal("0")
    )
    total_referrals: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    referral_bonus_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    # Set once at creation
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Incremented on every flush that touches the row. A concurrent
    # writer holding an older version gets StaleDataError.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Relationships
    referred_by: Mapped["Account | None"] = relationship(
        remote_side=[id], back_populates="referrals"
    )
    referrals: Mapped[list["Account"]] = relationship(
        back_populates="referred_by"
    )
    entries: Mapped[list["LedgerEntry"]] = relationship(
        back_populates="account"
    )

    def __repr__(self) -> str:
        return f"<Account {self.username} balance={self.balance}>"
