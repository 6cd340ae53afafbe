"""
Ledger entry model.

One row per balance-affecting event. Entries are immutable:
once written they are never modified or deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    DateTime, Numeric, ForeignKey, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from casino_wallet.models.base import Base
from casino_wallet.models.enums import EntryType


class LedgerEntry(Base):
    """
    An immutable balance change on a single account.

    amount is signed: credits are positive, debits negative.
    balance_after - balance_before always equals amount. This
    invariant is enforced by the LedgerService, not by the
    model. The model is just the data structure.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    entry_type: Mapped[EntryType] = mapped_column(
        SAEnum(EntryType, name="entry_type_enum"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    balance_before: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    balance_after: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    reference_id: Mapped[int | None] = mapped_column(
        ForeignKey("wallet_requests.id"), nullable=True, index=True
    )
    # Holds admin reasons verbatim, which can exceed any VARCHAR bound
    description: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="entries")

    def __repr__(self) -> str:
        return (
            f"<LedgerEntry {self.entry_type.value} "
            f"{self.amount} ({self.balance_before} -> {self.balance_after})>"
        )
