"""
Deposit / withdrawal request model.

A request is created PENDING by the player-facing flow and
terminated by exactly one admin decision. The decision is
applied with a conditional UPDATE guarded on status, so two
admins cannot both move the same request out of PENDING.

amount, kind, payment_method and payment_details never change
after creation.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey, JSON, Text,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from casino_wallet.models.base import Base
from casino_wallet.models.enums import (
    RequestKind,
    RequestStatus,
    PaymentMethod,
)


# Valid state transitions: the source of truth for the state machine
VALID_TRANSITIONS: dict[RequestStatus, set[RequestStatus]] = {
    RequestStatus.PENDING: {RequestStatus.APPROVED, RequestStatus.REJECTED},
    RequestStatus.APPROVED: set(),  # Terminal
    RequestStatus.REJECTED: set(),  # Terminal
}


class WalletRequest(Base):
    __tablename__ = "wallet_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    kind: Mapped[RequestKind] = mapped_column(
        SAEnum(
            RequestKind,
            name="request_kind_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    status: Mapped[RequestStatus] = mapped_column(
        SAEnum(
            RequestStatus,
            name="request_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=RequestStatus.PENDING,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 2), nullable=False
    )
    payment_method: Mapped[PaymentMethod] = mapped_column(
        SAEnum(
            PaymentMethod,
            name="payment_method_enum",
            create_constraint=True,
        ),
        nullable=False,
    )
    payment_details: Mapped[dict] = mapped_column(
        JSON, nullable=False, default=dict
    )

    # Deposit only, set at approval
    bonus_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 2), nullable=True
    )
    # Withdrawal only, set at creation
    deduction_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 2), nullable=True
    )
    final_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 2), nullable=True
    )

    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, index=True
    )
    decided_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    account: Mapped["Account"] = relationship()

    def can_transition_to(self, new_status: RequestStatus) -> bool:
        """Check if a state transition is valid."""
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return (
            f"<WalletRequest {self.kind.value} "
            f"{self.amount} ({self.status.value})>"
        )
