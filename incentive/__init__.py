"""
Health Incentive Reward Ledger

This module provides:
- Admin-managed activity reward schedules and approvals
- Patient claim submission with per-activity cooldowns
- Oracle verification of pending claims
- Supply-capped reward accounting per patient and in aggregate
"""

from .models import (
    SENTINEL_PRINCIPAL,
    ErrorCode,
    ClaimKey,
    RewardSchedule,
    ClaimRecord,
    PendingClaim,
)
from .service import LedgerServiceError, LedgerState, RewardLedger

__all__ = [
    "SENTINEL_PRINCIPAL",
    "ErrorCode",
    "ClaimKey",
    "RewardSchedule",
    "ClaimRecord",
    "PendingClaim",
    "LedgerServiceError",
    "LedgerState",
    "RewardLedger",
]
