"""
Pydantic schemas for ledger reads.

Ledger entries are never created through the API directly;
they are a side effect of requests, settlements and adjustments.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from casino_wallet.models.enums import EntryType


class LedgerEntryResponse(BaseModel):
    """Single entry in API responses."""
    id: int
    account_id: int
    entry_type: EntryType
    amount: Decimal
    balance_before: Decimal
    balance_after: Decimal
    reference_id: int | None
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class BalanceMismatch(BaseModel):
    account_id: int
    stored_balance: Decimal
    replayed_balance: Decimal


class IntegrityReport(BaseModel):
    is_consistent: bool
    accounts_checked: int
    mismatches: list[BalanceMismatch]
    malformed_entry_ids: list[int]
