"""
Game settlement endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from casino_wallet.api.errors import HANDLED_ERRORS, http_error
from casino_wallet.models.base import get_db
from casino_wallet.schemas.game import GameResult, GameRoundCreate, PlayerStats
from casino_wallet.services.account_service import AccountService
from casino_wallet.services.game_service import GameService

router = APIRouter(prefix="/games", tags=["Games"])


@router.post("/rounds", response_model=GameResult, status_code=201)
def settle_round(
    request: GameRoundCreate,
    db: Session = Depends(get_db),
):
    """
    Settle a finished round.

    The bet must be within limits and covered by the balance.
    """
    service = GameService(db)
    try:
        result = service.settle_round(
            request.account_id,
            request.game_id,
            request.bet_amount,
            request.is_win,
            request.win_amount,
            request.description,
        )
        db.commit()
        return result
    except HANDLED_ERRORS as e:
        db.rollback()
        raise http_error(e)


@router.get("/stats/{account_id}", response_model=PlayerStats)
def get_player_stats(
    account_id: int,
    game_id: str | None = None,
    db: Session = Depends(get_db),
):
    try:
        AccountService(db).get_account(account_id)
        return GameService(db).player_stats(account_id, game_id)
    except HANDLED_ERRORS as e:
        raise http_error(e)
