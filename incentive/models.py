from dataclasses import dataclass
from enum import IntEnum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


# Reserved "unset/burn" principal. Never a valid oracle or patient.
SENTINEL_PRINCIPAL = "SP000000000000000000002Q6VF78"


class ErrorCode(IntEnum):
    UNAUTHORIZED = 100
    CONTRACT_PAUSED = 101
    SUPPLY_EXCEEDED = 102
    ACTIVITY_NOT_FOUND = 103
    CLAIM_NOT_FOUND = 104
    ORACLE_NOT_CONFIGURED = 105
    INVALID_PRINCIPAL = 106
    INVALID_AMOUNT = 107
    COOLDOWN_ACTIVE = 108
    INVALID_ACTIVITY = 109


@dataclass(frozen=True)
class ClaimKey:
    patient: str
    activity_id: int


class RewardSchedule(BaseModel):
    reward_amount: int
    cooldown: int

    model_config = ConfigDict(json_schema_extra={
        "example": {"reward_amount": 100, "cooldown": 1440}
    })


class ClaimRecord(BaseModel):
    activity_id: int = 0
    block_height: int = 0

    def cooldown_ends_at(self, schedule: RewardSchedule) -> int:
        return self.block_height + schedule.cooldown


class PendingClaim(BaseModel):
    status: bool = True
    verified: bool = False


class LedgerStatus(BaseModel):
    admin: str
    oracle: str
    paused: bool
    total_distributed: int
    max_supply: int
    block_height: int
    approved_activities: list[int]
    pending_claims: int


# Request/response bodies for the HTTP surface

class CallerRequest(BaseModel):
    caller: str = Field(..., description="Principal supplied by the identity layer")


class SetPausedRequest(CallerRequest):
    pause: bool


class SetOracleRequest(CallerRequest):
    new_oracle: str


class SetRewardScheduleRequest(CallerRequest):
    reward_amount: int
    cooldown: int = Field(..., description="Re-claim interval in blocks")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "caller": "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM",
            "reward_amount": 100,
            "cooldown": 1440,
        }
    })


class VerifyClaimRequest(CallerRequest):
    verified: bool


class AdvanceChainRequest(CallerRequest):
    blocks: int = Field(default=1, ge=1)


class ActivityResponse(BaseModel):
    activity_id: int
    approved: bool
    schedule: Optional[RewardSchedule] = None


class OperationResult(BaseModel):
    value: bool


class IntResult(BaseModel):
    value: int


class ErrorResult(BaseModel):
    error: Optional[ErrorCode] = None
    detail: str
