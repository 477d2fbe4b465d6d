import logging
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import load_settings
from .models import (
    ErrorCode, CallerRequest, SetPausedRequest, SetOracleRequest,
    SetRewardScheduleRequest, VerifyClaimRequest, AdvanceChainRequest,
    ActivityResponse, OperationResult, IntResult, ErrorResult,
    LedgerStatus, PendingClaim, ClaimRecord,
)
from .service import LedgerServiceError, LedgerState, RewardLedger

ERROR_STATUS = {
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.CONTRACT_PAUSED: status.HTTP_409_CONFLICT,
    ErrorCode.SUPPLY_EXCEEDED: status.HTTP_409_CONFLICT,
    ErrorCode.ACTIVITY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CLAIM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.COOLDOWN_ACTIVE: status.HTTP_409_CONFLICT,
}


def error_status(exc: LedgerServiceError) -> int:
    if exc.code is None:
        return status.HTTP_500_INTERNAL_SERVER_ERROR
    return ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)


def create_app(ledger: Optional[RewardLedger] = None, root_path: str = "") -> FastAPI:
    if ledger is None:
        settings = load_settings()
        logging.basicConfig(level=settings.log_level)
        ledger = RewardLedger(LedgerState.from_settings(settings))

    app = FastAPI(
        title="Health Incentive Ledger API",
        description="Reward-claim ledger: activity schedules, oracle-verified claims and supply-capped rewards",
        version="1.0.0",
        root_path=root_path,
    )
    app.state.ledger = ledger

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(LedgerServiceError)
    async def ledger_error_handler(request: Request, exc: LedgerServiceError) -> JSONResponse:
        body = ErrorResult(error=exc.code, detail=str(exc))
        return JSONResponse(
            status_code=error_status(exc),
            content=body.model_dump(mode="json"),
        )

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "incentive-ledger"}

    @app.get("/ledger", response_model=LedgerStatus, tags=["System"])
    def get_ledger_status() -> LedgerStatus:
        return ledger.get_status()

    @app.post("/admin/pause", response_model=OperationResult, tags=["Admin"])
    def set_paused(request: SetPausedRequest) -> OperationResult:
        return OperationResult(value=ledger.set_paused(request.caller, request.pause))

    @app.post("/admin/oracle", response_model=OperationResult, tags=["Admin"])
    def set_oracle(request: SetOracleRequest) -> OperationResult:
        return OperationResult(value=ledger.set_oracle(request.caller, request.new_oracle))

    @app.put("/activities/{activity_id}", response_model=OperationResult, tags=["Activities"])
    def set_reward_schedule(activity_id: int, request: SetRewardScheduleRequest) -> OperationResult:
        return OperationResult(value=ledger.set_reward_schedule(
            request.caller, activity_id, request.reward_amount, request.cooldown
        ))

    @app.delete("/activities/{activity_id}", response_model=OperationResult, tags=["Activities"])
    def remove_activity(activity_id: int, request: CallerRequest) -> OperationResult:
        return OperationResult(value=ledger.remove_activity(request.caller, activity_id))

    @app.get("/activities/{activity_id}", response_model=ActivityResponse, tags=["Activities"])
    def get_activity(activity_id: int) -> ActivityResponse:
        return ActivityResponse(
            activity_id=activity_id,
            approved=ledger.is_activity_approved(activity_id),
            schedule=ledger.get_reward_schedule(activity_id),
        )

    @app.post("/activities/{activity_id}/claims", response_model=OperationResult,
              status_code=status.HTTP_201_CREATED, tags=["Claims"])
    def submit_claim(activity_id: int, request: CallerRequest) -> OperationResult:
        return OperationResult(value=ledger.submit_claim(request.caller, activity_id))

    @app.post("/activities/{activity_id}/claims/{patient}/verify", response_model=OperationResult, tags=["Claims"])
    def verify_claim(activity_id: int, patient: str, request: VerifyClaimRequest) -> OperationResult:
        return OperationResult(value=ledger.verify_claim(request.caller, patient, activity_id, request.verified))

    @app.get("/activities/{activity_id}/claims/{patient}", response_model=Optional[PendingClaim], tags=["Claims"])
    def get_pending_claim(activity_id: int, patient: str) -> Optional[PendingClaim]:
        return ledger.get_pending_claim(patient, activity_id)

    @app.get("/patients/{patient}/rewards", response_model=IntResult, tags=["Patients"])
    def get_patient_rewards(patient: str) -> IntResult:
        return IntResult(value=ledger.get_patient_rewards(patient))

    @app.get("/patients/{patient}/last-claim", response_model=Optional[ClaimRecord], tags=["Patients"])
    def get_last_claim(patient: str) -> Optional[ClaimRecord]:
        return ledger.get_last_claim(patient)

    @app.get("/rewards/total", response_model=IntResult, tags=["Patients"])
    def get_total_rewards_distributed() -> IntResult:
        return IntResult(value=ledger.get_total_rewards_distributed())

    # Stands in for the host chain advancing; admin only.
    @app.post("/chain/advance", response_model=IntResult, tags=["System"])
    def advance_chain(request: AdvanceChainRequest) -> IntResult:
        return IntResult(value=ledger.advance_block_height(request.caller, request.blocks))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
