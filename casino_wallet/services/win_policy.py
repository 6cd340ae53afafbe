"""
Win probability policies for server-side rounds.

A policy looks at a player's history for one game and returns
the chance that the next round wins, plus a multiplier applied
to the payout. GameService.play_round takes any object with
these two methods, so tests can plug in a fixed rate.
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from casino_wallet.schemas.game import PlayerStats

logger = logging.getLogger(__name__)

MIN_PROBABILITY = 0.05
MAX_PROBABILITY = 0.85
MIN_MODULATOR = 0.5
MAX_MODULATOR = 1.2


@dataclass(frozen=True)
class GameConfig:
    name: str
    base_win_probability: float
    house_edge: float
    min_bet: int = 10
    max_bet: int = 5000


GAME_CONFIGS: dict[str, GameConfig] = {
    "dice": GameConfig("Dice Game", 0.15, 0.08),
    "mines": GameConfig("Mines", 0.12, 0.07),
    "tower": GameConfig("Tower", 0.10, 0.09),
    "limbo": GameConfig("Limbo", 0.18, 0.06),
    "aviator": GameConfig("Aviator", 0.16, 0.06),
    "slots": GameConfig("Diamond Slots", 0.14, 0.08),
    "baccarat": GameConfig("Baccarat", 0.13, 0.07),
    "blackjack": GameConfig("Blackjack", 0.15, 0.06),
    "poker": GameConfig("Poker", 0.12, 0.07),
    "roulette": GameConfig("Roulette", 0.10, 0.08),
    "megadraw": GameConfig("Mega Draw", 0.08, 0.35, max_bet=1000),
    "luckynumbers": GameConfig("Lucky Numbers", 0.08, 0.35, max_bet=1000),
    "crash": GameConfig("Crash Game", 0.20, 0.03, max_bet=10000),
    "powerball": GameConfig("PowerBall Lottery", 0.05, 0.15, max_bet=1000),
    "rollmaster": GameConfig("Roll Master", 0.18, 0.04),
}


def get_game_config(game_id: str) -> GameConfig:
    """Config for a game; unknown games play with dice odds."""
    return GAME_CONFIGS.get(game_id, GAME_CONFIGS["dice"])


class WinProbabilityPolicy(Protocol):

    def win_probability(self, game_id: str, stats: PlayerStats) -> float:
        ...

    def payout_modulator(
        self, game_id: str, stats: PlayerStats, bet_amount: float
    ) -> float:
        ...


class FixedRatePolicy:
    """Always the configured base probability, payouts untouched."""

    def __init__(self, probability: float | None = None):
        self.probability = probability

    def win_probability(self, game_id: str, stats: PlayerStats) -> float:
        if self.probability is not None:
            return self.probability
        return get_game_config(game_id).base_win_probability

    def payout_modulator(
        self, game_id: str, stats: PlayerStats, bet_amount: float
    ) -> float:
        return 1.0


class EngagementPolicy:
    """
    Adjusts the base probability from the player's record.

    - profitable after more than 5 games: up to -10%
    - losing after more than 3 games: up to +15%
    - 5+ losses in a row: +2% per loss, at most +15%
    - 2+ wins in a row: -2% per win, at most -10%

    The result is clamped to [0.05, 0.85].
    """

    max_profit_reduction = 0.10
    max_loss_recovery = 0.15
    max_recovery_bonus = 0.15
    max_streak_reduction = 0.10

    def __init__(self, loss_recovery: bool = True, win_streak_balance: bool = True):
        self.loss_recovery = loss_recovery
        self.win_streak_balance = win_streak_balance

    def win_probability(self, game_id: str, stats: PlayerStats) -> float:
        probability = get_game_config(game_id).base_win_probability

        played = stats.total_games_played
        won = float(stats.total_won)
        lost = float(stats.total_lost)
        volume = max(won + lost, 1)

        if won > lost and played > 5:
            probability -= min(
                self.max_profit_reduction, (won - lost) / volume * 0.2
            )

        if lost > won and self.loss_recovery and played > 3:
            probability += min(
                self.max_loss_recovery, (lost - won) / volume * 0.3
            )

        if stats.loss_streak >= 5 and self.loss_recovery:
            probability += min(
                self.max_recovery_bonus, stats.loss_streak * 0.02
            )

        if stats.win_streak >= 2 and self.win_streak_balance:
            probability -= min(
                self.max_streak_reduction, stats.win_streak * 0.02
            )

        probability = max(MIN_PROBABILITY, min(MAX_PROBABILITY, probability))
        logger.debug(f"Win probability for {game_id}: {probability:.3f}")
        return probability

    def payout_modulator(
        self, game_id: str, stats: PlayerStats, bet_amount: float
    ) -> float:
        """1 - house_edge - net_profit / (games * bet * 10), clamped."""
        config = get_game_config(game_id)
        net = float(stats.total_won) - float(stats.total_lost)
        scale = max(stats.total_games_played * float(bet_amount) * 10, 1)
        modulator = 1 - config.house_edge - net / scale
        return max(MIN_MODULATOR, min(MAX_MODULATOR, modulator))
