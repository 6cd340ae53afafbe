"""
Database engine, session management, and base model.

Every wallet model inherits from Base. Every API request gets
its own session from get_db(), and the endpoint decides when
that session commits: an approval, its ledger entries and its
admin action row either all land or none of them do.
"""

from sqlalchemy import MetaData, create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from casino_wallet.config import get_settings

settings = get_settings()


def _connect_args(url: str) -> dict:
    # pysqlite refuses to share a connection across threads by
    # default; FastAPI runs sync endpoints in a thread pool.
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# --- Engine ---
# One pool of connections for the whole process.
# pool_pre_ping=True tests a connection before handing it out,
# so a database restart between requests shows up as a fresh
# connection instead of a half-applied approval.
engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

# --- Session Factory ---
# Each call to SessionLocal() creates a new session.
# autocommit=False: services only flush; the caller commits the
# whole unit (claim + entries + accumulators) at once.
# autoflush=False: SQL goes out only on an explicit flush, so the
# order of writes inside a service is the order in its code.
SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)

# --- Constraint naming ---
# Alembic can only drop or alter a constraint it can name.
# A fixed convention keeps the names identical on PostgreSQL
# and SQLite, e.g. ck_accounts_balance_non_negative.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


# --- Base Model Class ---
# Account, LedgerEntry, WalletRequest, GameRound and AdminAction
# all inherit from this class, which is how Alembic finds them.
class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


# --- Dependency for FastAPI ---
def get_db():
    """
    Provide a database session for a single request.

    The session is closed when the request finishes, even if
    the endpoint raised. Closing an uncommitted session rolls
    it back, so an endpoint that fails before db.commit()
    leaves no partial wallet state behind.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
