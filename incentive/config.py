"""Environment-driven settings for the incentive ledger."""

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from .models import SENTINEL_PRINCIPAL

DEFAULT_ADMIN = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
DEFAULT_MAX_SUPPLY = 1_000_000_000
DEFAULT_START_BLOCK_HEIGHT = 100


class LedgerSettings(BaseModel):
    admin: str = DEFAULT_ADMIN
    oracle: str = SENTINEL_PRINCIPAL
    max_supply: int = Field(default=DEFAULT_MAX_SUPPLY, ge=0)
    start_block_height: int = Field(default=DEFAULT_START_BLOCK_HEIGHT, ge=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


def load_settings(environ: Optional[dict] = None) -> LedgerSettings:
    """Build settings from INCENTIVE_* environment variables.

    Unset variables fall back to the model defaults. Malformed values raise
    pydantic's ValidationError.
    """
    env = os.environ if environ is None else environ
    mapping = {
        "admin": "INCENTIVE_ADMIN",
        "oracle": "INCENTIVE_ORACLE",
        "max_supply": "INCENTIVE_MAX_SUPPLY",
        "start_block_height": "INCENTIVE_START_BLOCK_HEIGHT",
        "log_level": "INCENTIVE_LOG_LEVEL",
    }
    values = {field: env.get(var) for field, var in mapping.items()}
    return LedgerSettings(**{k: v for k, v in values.items() if v is not None})
