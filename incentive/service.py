import logging
import threading
from typing import Optional

from .config import LedgerSettings
from .models import (
    SENTINEL_PRINCIPAL,
    ErrorCode,
    ClaimKey,
    RewardSchedule,
    ClaimRecord,
    PendingClaim,
    LedgerStatus,
)

logger = logging.getLogger(__name__)


class LedgerServiceError(Exception):
    # Subclasses set a stable ErrorCode; None marks an uncoded service failure.
    code: Optional[ErrorCode] = None

    def __init__(self, message: str = ""):
        default = self.code.name.replace("_", " ").lower() if self.code is not None else "ledger service error"
        super().__init__(message or default)


class UnauthorizedError(LedgerServiceError):
    code = ErrorCode.UNAUTHORIZED


class ContractPausedError(LedgerServiceError):
    code = ErrorCode.CONTRACT_PAUSED


class SupplyExceededError(LedgerServiceError):
    code = ErrorCode.SUPPLY_EXCEEDED


class ActivityNotFoundError(LedgerServiceError):
    code = ErrorCode.ACTIVITY_NOT_FOUND


class ClaimNotFoundError(LedgerServiceError):
    code = ErrorCode.CLAIM_NOT_FOUND


class OracleNotConfiguredError(LedgerServiceError):
    code = ErrorCode.ORACLE_NOT_CONFIGURED


class InvalidPrincipalError(LedgerServiceError):
    code = ErrorCode.INVALID_PRINCIPAL


class InvalidAmountError(LedgerServiceError):
    code = ErrorCode.INVALID_AMOUNT


class CooldownActiveError(LedgerServiceError):
    code = ErrorCode.COOLDOWN_ACTIVE


class InvalidActivityError(LedgerServiceError):
    code = ErrorCode.INVALID_ACTIVITY


class LedgerState:
    """All mutable ledger state. Owned by exactly one RewardLedger.

    block_height is host context. Claim operations only read it; the host
    moves it forward through RewardLedger.advance_block_height.
    """

    def __init__(
        self,
        admin: str,
        oracle: str = SENTINEL_PRINCIPAL,
        max_supply: int = 1_000_000_000,
        block_height: int = 100,
    ):
        self.admin = admin
        self.oracle = oracle
        self.paused = False
        self.total_distributed = 0
        self.max_supply = max_supply
        self.block_height = block_height
        self.patient_balances: dict[str, int] = {}
        self.reward_schedules: dict[int, RewardSchedule] = {}
        self.approved_activities: dict[int, bool] = {}
        self.last_claims: dict[str, ClaimRecord] = {}
        self.pending_claims: dict[ClaimKey, PendingClaim] = {}

    @classmethod
    def from_settings(cls, settings: LedgerSettings) -> "LedgerState":
        return cls(
            admin=settings.admin,
            oracle=settings.oracle,
            max_supply=settings.max_supply,
            block_height=settings.start_block_height,
        )


class RewardLedger:
    """Owning handle for a LedgerState.

    Every public operation runs under one re-entrant lock, so operations never
    interleave even when the HTTP layer dispatches them from a thread pool.
    """

    def __init__(self, state: Optional[LedgerState] = None):
        self.state = state or LedgerState.from_settings(LedgerSettings())
        self._lock = threading.RLock()

    def is_admin(self, caller: str) -> bool:
        return caller == self.state.admin

    def set_paused(self, caller: str, pause: bool) -> bool:
        with self._lock:
            self._require_admin(caller, "set_paused")
            self.state.paused = pause
            logger.info("Ledger %s by %s", "paused" if pause else "unpaused", caller)
            return pause

    def set_oracle(self, caller: str, new_oracle: str) -> bool:
        with self._lock:
            self._require_admin(caller, "set_oracle")
            if new_oracle == SENTINEL_PRINCIPAL:
                raise self._reject(InvalidPrincipalError("Cannot appoint the sentinel principal as oracle"))
            self.state.oracle = new_oracle
            logger.info("Oracle set to %s", new_oracle)
            return True

    def set_reward_schedule(self, caller: str, activity_id: int, reward_amount: int, cooldown: int) -> bool:
        with self._lock:
            self._require_admin(caller, "set_reward_schedule")
            if reward_amount <= 0 or cooldown <= 0:
                raise self._reject(InvalidAmountError(
                    f"Reward amount and cooldown must be positive (got {reward_amount}, {cooldown})"
                ))
            if activity_id <= 0:
                raise self._reject(InvalidActivityError(f"Invalid activity id {activity_id}"))

            self.state.reward_schedules[activity_id] = RewardSchedule(reward_amount=reward_amount, cooldown=cooldown)
            self.state.approved_activities[activity_id] = True
            logger.info("Activity %s scheduled: reward=%s cooldown=%s", activity_id, reward_amount, cooldown)
            return True

    def remove_activity(self, caller: str, activity_id: int) -> bool:
        with self._lock:
            self._require_admin(caller, "remove_activity")
            if activity_id not in self.state.reward_schedules:
                raise self._reject(ActivityNotFoundError(f"Activity {activity_id} not found"))

            del self.state.reward_schedules[activity_id]
            self.state.approved_activities.pop(activity_id, None)
            logger.info("Activity %s removed", activity_id)
            return True

    def submit_claim(self, caller: str, activity_id: int) -> bool:
        with self._lock:
            if self.state.paused:
                raise self._reject(ContractPausedError("Ledger is paused"))
            schedule = self.state.reward_schedules.get(activity_id)
            if schedule is None:
                raise self._reject(ActivityNotFoundError(f"Activity {activity_id} not found"))
            if activity_id <= 0:
                raise self._reject(InvalidActivityError(f"Invalid activity id {activity_id}"))

            # Cooldown only applies against the same activity's last verified claim.
            last_claim = self.state.last_claims.get(caller, ClaimRecord())
            ends_at = last_claim.cooldown_ends_at(schedule)
            if last_claim.activity_id == activity_id and self.state.block_height < ends_at:
                raise self._reject(CooldownActiveError(
                    f"Activity {activity_id} on cooldown until block {ends_at}"
                ))

            self.state.pending_claims[ClaimKey(caller, activity_id)] = PendingClaim(status=True, verified=False)
            logger.info("Claim submitted: patient=%s activity=%s", caller, activity_id)
            return True

    def verify_claim(self, caller: str, patient: str, activity_id: int, verified: bool) -> bool:
        """Adjudicate a pending claim.

        Returns True when the claim is accepted and paid, False when the oracle
        rejects it. On SupplyExceededError the pending claim is left in place.
        """
        with self._lock:
            if caller != self.state.oracle:
                raise self._reject(UnauthorizedError(f"{caller} is not the oracle"))
            if self.state.oracle == SENTINEL_PRINCIPAL:
                raise self._reject(OracleNotConfiguredError("Oracle is not configured"))
            if activity_id <= 0:
                raise self._reject(InvalidActivityError(f"Invalid activity id {activity_id}"))
            if patient == SENTINEL_PRINCIPAL:
                raise self._reject(InvalidPrincipalError("Patient cannot be the sentinel principal"))

            key = ClaimKey(patient, activity_id)
            claim = self.state.pending_claims.get(key)
            if claim is None or not claim.status:
                raise self._reject(ClaimNotFoundError(f"No pending claim for {patient} on activity {activity_id}"))

            if not verified:
                del self.state.pending_claims[key]
                logger.info("Claim rejected: patient=%s activity=%s", patient, activity_id)
                return False

            schedule = self.state.reward_schedules.get(activity_id)
            if schedule is None:
                raise self._reject(ActivityNotFoundError(f"Activity {activity_id} not found"))

            new_total = self.state.total_distributed + schedule.reward_amount
            if new_total > self.state.max_supply:
                raise self._reject(SupplyExceededError(
                    f"Reward of {schedule.reward_amount} would exceed max supply {self.state.max_supply}"
                ))

            balances = self.state.patient_balances
            balances[patient] = balances.get(patient, 0) + schedule.reward_amount
            self.state.total_distributed = new_total
            self.state.last_claims[patient] = ClaimRecord(activity_id=activity_id, block_height=self.state.block_height)
            del self.state.pending_claims[key]
            logger.info(
                "Claim verified: patient=%s activity=%s reward=%s total=%s",
                patient, activity_id, schedule.reward_amount, new_total,
            )
            return True

    def advance_block_height(self, caller: str, blocks: int = 1) -> int:
        """Host-side chain progress. Not part of the claim lifecycle."""
        with self._lock:
            self._require_admin(caller, "advance_block_height")
            self.state.block_height += blocks
            logger.info("Block height advanced to %s", self.state.block_height)
            return self.state.block_height

    def get_patient_rewards(self, patient: str) -> int:
        with self._lock:
            return self.state.patient_balances.get(patient, 0)

    def get_reward_schedule(self, activity_id: int) -> Optional[RewardSchedule]:
        with self._lock:
            schedule = self.state.reward_schedules.get(activity_id)
            return schedule.model_copy() if schedule else None

    def get_total_rewards_distributed(self) -> int:
        with self._lock:
            return self.state.total_distributed

    def is_activity_approved(self, activity_id: int) -> bool:
        with self._lock:
            return self.state.approved_activities.get(activity_id, False)

    def get_pending_claim(self, patient: str, activity_id: int) -> Optional[PendingClaim]:
        with self._lock:
            claim = self.state.pending_claims.get(ClaimKey(patient, activity_id))
            return claim.model_copy() if claim else None

    def get_last_claim(self, patient: str) -> Optional[ClaimRecord]:
        with self._lock:
            record = self.state.last_claims.get(patient)
            return record.model_copy() if record else None

    def get_status(self) -> LedgerStatus:
        with self._lock:
            return LedgerStatus(
                admin=self.state.admin,
                oracle=self.state.oracle,
                paused=self.state.paused,
                total_distributed=self.state.total_distributed,
                max_supply=self.state.max_supply,
                block_height=self.state.block_height,
                approved_activities=sorted(self.state.approved_activities),
                pending_claims=len(self.state.pending_claims),
            )

    def _require_admin(self, caller: str, operation: str) -> None:
        if not self.is_admin(caller):
            raise self._reject(UnauthorizedError(f"{caller} is not allowed to {operation}"))

    def _reject(self, error: LedgerServiceError) -> LedgerServiceError:
        logger.warning("Rejected with %s: %s", error.code, error)
        return error
