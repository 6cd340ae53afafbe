"""
Admin action log model.

Records every admin decision and balance adjustment. Every
approval, rejection and manual correction must be traceable
to the admin who made it.
"""

from datetime import datetime

from sqlalchemy import String, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from casino_wallet.models.base import Base


class AdminAction(Base):
    """
    Immutable record of an admin action.

    Like ledger entries, these rows are append-only.
    """

    __tablename__ = "admin_actions"

    id: Mapped[int] = mapped_column(primary_key=True)
    admin_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True
    )
    request_id: Mapped[int | None] = mapped_column(
        ForeignKey("wallet_requests.id"), nullable=True
    )
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<AdminAction {self.action} by {self.admin_id}>"
