"""
Casino Wallet Ledger: FastAPI application.

This is the entry point for the application.
All routers are registered here.
"""

import logging

from fastapi import FastAPI

from casino_wallet.config import get_settings
from casino_wallet.api.health import router as health_router
from casino_wallet.api.accounts import router as accounts_router
from casino_wallet.api.requests import router as requests_router
from casino_wallet.api.games import router as games_router
from casino_wallet.api.reports import router as reports_router

settings = get_settings()

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Player wallet ledger with admin-approved deposits and withdrawals",
)

# Register routers
app.include_router(health_router)
app.include_router(accounts_router)
app.include_router(requests_router)
app.include_router(games_router)
app.include_router(reports_router)
