"""Account-recovery throttling endpoints."""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..logging_config import logger
from ..models.schemas import ResetAllowed, ResetDenied, ResetRequest, SecureActionResponse
from ..services.throttle import REQUEST_ACTION
from ..utils.state import device_store

router = APIRouter(prefix="/api", tags=["security"])


@router.post("/secure-action", response_model=SecureActionResponse)
async def secure_action() -> SecureActionResponse:
    return SecureActionResponse(status="success", data="Access Verified")


@router.post(
    "/security/request-reset",
    response_model=ResetAllowed,
    responses={429: {"model": ResetDenied}},
)
def request_reset(payload: ResetRequest) -> JSONResponse:
    check_only = bool(payload.check_only)
    verdict = device_store.evaluate(payload.device_id, payload.action, check_only)
    log = logger.bind(
        device_id=payload.device_id,
        action=payload.action or REQUEST_ACTION,
        check_only=check_only,
        reason=verdict.reason,
    )
    if verdict.allowed:
        log.info("reset.allowed", remaining_attempts=verdict.remaining_attempts)
        body = ResetAllowed(message=verdict.message, remaining_attempts=verdict.remaining_attempts)
    else:
        log.warning("reset.denied", cooldown_remaining=verdict.cooldown_remaining)
        body = ResetDenied(message=verdict.message, cooldown_remaining=verdict.cooldown_remaining)
    return JSONResponse(status_code=verdict.status_code, content=body.model_dump(exclude_none=True))
