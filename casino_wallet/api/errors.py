"""
Mapping from service errors to HTTP responses.

Services raise domain errors; endpoints roll back and turn
them into an HTTPException with the matching status code.
"""

from fastapi import HTTPException
from sqlalchemy.orm.exc import StaleDataError

from casino_wallet.exceptions import (
    AccountNotFound,
    AlreadyProcessed,
    RequestNotFound,
)

STATUS_CODES = {
    AccountNotFound: 404,
    RequestNotFound: 404,
    AlreadyProcessed: 409,
}

# Errors endpoints translate; anything else is a 500.
HANDLED_ERRORS = (ValueError, StaleDataError)


def http_error(error: Exception) -> HTTPException:
    if isinstance(error, StaleDataError):
        return HTTPException(
            status_code=409,
            detail="Concurrent update, please retry",
        )
    status_code = STATUS_CODES.get(type(error), 400)
    return HTTPException(status_code=status_code, detail=str(error))
