"""
Reporting service: read-only aggregates for the admin dashboard.

Each dashboard section is queried on its own inside a savepoint.
If one section's query fails, that section reports zeros and is
listed in degraded_sections; the rest of the report still loads.
"""

import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casino_wallet.models.account import Account
from casino_wallet.models.audit_log import AdminAction
from casino_wallet.models.enums import EntryType, RequestKind, RequestStatus
from casino_wallet.models.game_round import GameRound
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.models.wallet_request import WalletRequest
from casino_wallet.schemas.report import (
    DashboardStats,
    GameStatistics,
    TodayStats,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def _money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT)


def _house_profit():
    """
    Net amount game entries took from players, as a SQL expression.

    Read from the ledger, not the rounds: a clamped loss moved
    less than its bet. Queries using it must join _round_entry.
    """
    return -func.coalesce(func.sum(LedgerEntry.amount), 0)


_round_entry = GameRound.ledger_entry_id == LedgerEntry.id


class ReportingService:

    def __init__(self, db: Session):
        self.db = db

    def dashboard_stats(self, now: datetime | None = None) -> DashboardStats:
        """
        Build the admin dashboard.

        `now` sets the "today" window (midnight to now); it defaults
        to the current UTC time.
        """
        now = now or datetime.utcnow()
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

        degraded = []
        fields = {}
        for name, section in (
            ("users", self._user_totals),
            ("requests", self._request_totals),
            ("ledger", self._ledger_totals),
            ("games", self._game_totals),
        ):
            fields.update(self._section(name, section, degraded, {}))

        today = self._section(
            "today", lambda: self._today(midnight, now), degraded, TodayStats()
        )

        return DashboardStats(
            generated_at=now,
            today=today,
            degraded_sections=degraded,
            **fields,
        )

    def _section(self, name: str, query, degraded: list[str], fallback):
        try:
            with self.db.begin_nested():
                return query()
        except SQLAlchemyError as e:
            logger.error(f"Dashboard section '{name}' failed: {e}")
            degraded.append(name)
            return fallback

    def _user_totals(self) -> dict:
        total, active, balance = self.db.execute(
            select(
                func.count(Account.id),
                func.count(case((Account.is_active.is_(True), 1))),
                func.coalesce(func.sum(Account.balance), 0),
            )
        ).one()
        return {
            "total_users": total,
            "active_users": active,
            "total_wallet_balance": _money(balance),
        }

    def _request_totals(self) -> dict:
        rows = self.db.execute(
            select(
                WalletRequest.kind,
                WalletRequest.status,
                func.count(WalletRequest.id),
                func.coalesce(func.sum(WalletRequest.amount), 0),
            ).group_by(WalletRequest.kind, WalletRequest.status)
        ).all()

        counts = {(kind, status): count for kind, status, count, _ in rows}
        sums = {(kind, status): _money(total) for kind, status, _, total in rows}

        approved = sum(
            n for (_, status), n in counts.items()
            if status == RequestStatus.APPROVED
        )
        decided = approved + sum(
            n for (_, status), n in counts.items()
            if status == RequestStatus.REJECTED
        )

        deposit, withdrawal = RequestKind.DEPOSIT, RequestKind.WITHDRAWAL
        pending, done = RequestStatus.PENDING, RequestStatus.APPROVED
        return {
            "total_deposits": sums.get((deposit, done), ZERO),
            "total_withdrawals": sums.get((withdrawal, done), ZERO),
            "pending_deposits": sums.get((deposit, pending), ZERO),
            "pending_withdrawals": sums.get((withdrawal, pending), ZERO),
            "pending_deposit_count": counts.get((deposit, pending), 0),
            "pending_withdrawal_count": counts.get((withdrawal, pending), 0),
            "approval_rate": approved / decided if decided else 0.0,
        }

    def _ledger_totals(self) -> dict:
        totals = self.totals_by_type()
        return {
            "total_referral_bonuses": totals.get(EntryType.REFERRAL_BONUS, ZERO),
            "total_deposit_bonuses": totals.get(EntryType.DEPOSIT_BONUS, ZERO),
        }

    def _game_totals(self) -> dict:
        revenue = self.db.execute(
            select(_house_profit())
            .select_from(GameRound)
            .join(LedgerEntry, _round_entry)
        ).scalar()
        return {"total_game_revenue": _money(revenue)}

    def _today(self, start: datetime, end: datetime) -> TodayStats:
        new_users = self.db.execute(
            select(func.count(Account.id)).where(
                Account.created_at >= start, Account.created_at <= end
            )
        ).scalar()

        decided = self.db.execute(
            select(
                WalletRequest.kind,
                func.coalesce(func.sum(WalletRequest.amount), 0),
            )
            .where(
                WalletRequest.status == RequestStatus.APPROVED,
                WalletRequest.decided_at >= start,
                WalletRequest.decided_at <= end,
            )
            .group_by(WalletRequest.kind)
        ).all()
        approved = {kind: _money(total) for kind, total in decided}

        created = self.db.execute(
            select(
                WalletRequest.kind,
                func.count(WalletRequest.id),
                func.coalesce(func.sum(case(
                    (WalletRequest.status == RequestStatus.PENDING,
                     WalletRequest.amount),
                    else_=0,
                )), 0),
            )
            .where(
                WalletRequest.created_at >= start,
                WalletRequest.created_at <= end,
            )
            .group_by(WalletRequest.kind)
        ).all()
        counts = {kind: count for kind, count, _ in created}
        pending = {kind: _money(total) for kind, _, total in created}

        games, bets, revenue = self.db.execute(
            select(
                func.count(GameRound.id),
                func.coalesce(func.sum(GameRound.bet_amount), 0),
                _house_profit(),
            )
            .select_from(GameRound)
            .join(LedgerEntry, _round_entry)
            .where(
                GameRound.created_at >= start, GameRound.created_at <= end
            )
        ).one()

        return TodayStats(
            new_users=new_users,
            deposits=approved.get(RequestKind.DEPOSIT, ZERO),
            withdrawals=approved.get(RequestKind.WITHDRAWAL, ZERO),
            game_revenue=_money(revenue),
            pending_deposits=pending.get(RequestKind.DEPOSIT, ZERO),
            pending_withdrawals=pending.get(RequestKind.WITHDRAWAL, ZERO),
            deposit_requests=counts.get(RequestKind.DEPOSIT, 0),
            withdrawal_requests=counts.get(RequestKind.WITHDRAWAL, 0),
            games_played=games,
            total_bets=_money(bets),
        )

    def totals_by_type(self) -> dict[EntryType, Decimal]:
        """Net ledger amount per entry type. Debit types come out negative."""
        rows = self.db.execute(
            select(LedgerEntry.entry_type, func.sum(LedgerEntry.amount))
            .group_by(LedgerEntry.entry_type)
        ).all()
        return {entry_type: _money(total) for entry_type, total in rows}

    def game_statistics(self) -> list[GameStatistics]:
        rows = self.db.execute(
            select(
                GameRound.game_id,
                func.count(GameRound.id),
                func.coalesce(func.sum(GameRound.bet_amount), 0),
                func.coalesce(func.sum(GameRound.win_amount), 0),
                _house_profit(),
                func.count(func.distinct(GameRound.account_id)),
            )
            .select_from(GameRound)
            .join(LedgerEntry, _round_entry)
            .group_by(GameRound.game_id)
            .order_by(GameRound.game_id)
        ).all()

        return [
            GameStatistics(
                game_id=game_id,
                rounds_played=rounds,
                total_wagered=_money(wagered),
                total_paid_out=_money(paid),
                house_profit=_money(profit),
                unique_players=players,
            )
            for game_id, rounds, wagered, paid, profit, players in rows
        ]

    def pending_requests(
        self, kind: RequestKind | None = None
    ) -> list[WalletRequest]:
        """The review queue, oldest first."""
        query = (
            select(WalletRequest)
            .where(WalletRequest.status == RequestStatus.PENDING)
            .order_by(WalletRequest.created_at, WalletRequest.id)
        )
        if kind is not None:
            query = query.where(WalletRequest.kind == kind)
        return list(self.db.execute(query).scalars().all())

    def recent_admin_actions(self, limit: int = 50) -> list[AdminAction]:
        return list(self.db.execute(
            select(AdminAction).order_by(AdminAction.id.desc()).limit(limit)
        ).scalars().all())
