"""
Game service: settles bets against the ledger.

A round is all-or-nothing. The balance change, its ledger entry,
the player's win/loss totals and the GameRound row are flushed
together; if any step fails the caller rolls all of them back.

Amounts are net: a win credits win_amount (the bet is not debited
separately), a loss debits the bet.
"""

import logging
import random
from decimal import Decimal, ROUND_FLOOR

from sqlalchemy import select
from sqlalchemy.orm import Session

from casino_wallet.config import Settings, get_settings
from casino_wallet.exceptions import InsufficientBalance, ValidationError
from casino_wallet.models.enums import EntryType
from casino_wallet.models.game_round import GameRound
from casino_wallet.models.ledger_entry import LedgerEntry
from casino_wallet.schemas.game import GameResult, GameRoundResponse, PlayerStats
from casino_wallet.services.ledger_service import LedgerService
from casino_wallet.services.win_policy import (
    FixedRatePolicy,
    WinProbabilityPolicy,
    get_game_config,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


class GameService:

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        policy: WinProbabilityPolicy | None = None,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.policy = policy or FixedRatePolicy()
        self.rng = rng or random.SystemRandom()
        self.ledger_service = LedgerService(db)

    def apply_game_result(
        self,
        account_id: int,
        bet_amount: Decimal,
        is_win: bool,
        win_amount: Decimal,
        game_id: str,
        description: str | None = None,
    ) -> GameResult:
        """
        Record one finished round.

        Does not check limits or sufficiency; use settle_round for
        untrusted input. A loss larger than the balance is clamped
        to zero by the ledger.
        """
        bet_amount = Decimal(bet_amount)
        win_amount = Decimal(win_amount)
        if bet_amount <= 0:
            raise ValidationError("bet_amount must be positive")
        if is_win and win_amount <= 0:
            raise ValidationError("win_amount must be positive for a win")

        account = self.ledger_service.lock_account(account_id)

        if is_win:
            new_balance, entry = self.ledger_service.apply_delta(
                account_id,
                win_amount,
                EntryType.GAME_WIN,
                description=description or f"{game_id} win - {win_amount}",
            )
            account.total_won += entry.amount
        else:
            win_amount = ZERO
            new_balance, entry = self.ledger_service.apply_delta(
                account_id,
                -bet_amount,
                EntryType.GAME_LOSS,
                description=description or f"{game_id} loss - {bet_amount}",
            )
            account.total_lost += -entry.amount

        game_round = GameRound(
            account_id=account_id,
            game_id=game_id,
            bet_amount=bet_amount,
            win_amount=win_amount,
            is_win=is_win,
            ledger_entry_id=entry.id,
        )
        self.db.add(game_round)
        self.db.flush()

        logger.info(
            f"Round {game_round.id} settled for account {account_id}: "
            f"{game_id} {'WIN' if is_win else 'LOSS'} "
            f"bet={bet_amount} win={win_amount} balance={new_balance}"
        )
        return GameResult(
            round=GameRoundResponse.model_validate(game_round),
            new_balance=new_balance,
            ledger_entry_id=entry.id,
        )

    def settle_round(
        self,
        account_id: int,
        game_id: str,
        bet_amount: Decimal,
        is_win: bool,
        win_amount: Decimal = ZERO,
        description: str | None = None,
    ) -> GameResult:
        """Check bet limits and funds, then settle the round."""
        bet_amount = Decimal(bet_amount)
        if bet_amount < self.settings.MIN_BET:
            raise ValidationError(f"Minimum bet is {self.settings.MIN_BET}")
        if bet_amount > self.settings.MAX_SINGLE_BET:
            raise ValidationError(
                f"Maximum bet is {self.settings.MAX_SINGLE_BET}"
            )

        account = self.ledger_service.lock_account(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account_id} is not active")
        if account.balance < bet_amount:
            raise InsufficientBalance(account.balance, bet_amount)

        return self.apply_game_result(
            account_id, bet_amount, is_win, win_amount, game_id, description
        )

    def play_round(
        self,
        account_id: int,
        game_id: str,
        bet_amount: Decimal,
        payout_multiplier: Decimal,
        rng: random.Random | None = None,
    ) -> GameResult:
        """
        Decide a round server-side and settle it.

        One draw from the rng against the policy's probability.
        A win pays floor(bet * payout_multiplier * modulator),
        never less than one unit.
        """
        bet_amount = Decimal(bet_amount)
        payout_multiplier = Decimal(payout_multiplier)
        if payout_multiplier <= 0:
            raise ValidationError("payout_multiplier must be positive")

        config = get_game_config(game_id)
        if bet_amount > config.max_bet:
            raise ValidationError(
                f"Maximum bet for {config.name} is {config.max_bet}"
            )

        stats = self.player_stats(account_id, game_id)
        probability = self.policy.win_probability(game_id, stats)
        is_win = (rng or self.rng).random() < probability

        win_amount = ZERO
        if is_win:
            modulator = Decimal(str(self.policy.payout_modulator(
                game_id, stats, float(bet_amount)
            )))
            win_amount = max(
                (bet_amount * payout_multiplier * modulator).to_integral_value(
                    rounding=ROUND_FLOOR
                ),
                Decimal("1"),
            )

        return self.settle_round(
            account_id, game_id, bet_amount, is_win, win_amount
        )

    def player_stats(
        self, account_id: int, game_id: str | None = None
    ) -> PlayerStats:
        """
        Aggregate a player's rounds, optionally for one game.

        Losses count what the ledger actually debited, which is
        less than the bet when a loss was clamped. Streaks count
        the current run of identical outcomes, newest round first.
        """
        query = (
            select(GameRound, LedgerEntry.amount)
            .join(LedgerEntry, GameRound.ledger_entry_id == LedgerEntry.id)
            .where(GameRound.account_id == account_id)
            .order_by(GameRound.id.desc())
        )
        if game_id is not None:
            query = query.where(GameRound.game_id == game_id)
        rows = self.db.execute(query).all()

        if not rows:
            return PlayerStats()

        rounds = [r for r, _ in rows]
        total_won = sum((r.win_amount for r in rounds if r.is_win), ZERO)
        total_lost = sum((-applied for r, applied in rows if not r.is_win), ZERO)
        total_bet = sum((r.bet_amount for r in rounds), ZERO)

        streak = 0
        for r in rounds:
            if r.is_win != rounds[0].is_win:
                break
            streak += 1

        return PlayerStats(
            total_games_played=len(rounds),
            total_won=total_won,
            total_lost=total_lost,
            net_profit=total_won - total_lost,
            win_streak=streak if rounds[0].is_win else 0,
            loss_streak=0 if rounds[0].is_win else streak,
            average_bet=(total_bet / len(rounds)).quantize(CENT),
            last_game_at=rounds[0].created_at,
        )
