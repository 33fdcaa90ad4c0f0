from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from memberhub.core.clock import Clock, get_clock
from memberhub.core.config import get_settings
from memberhub.membership.inactivity.service import clamp_threshold_days
from memberhub.services.inactivity_sweep import run_inactivity_sweep
from memberhub.services.internal_auth import is_internal_request_allowed
from memberhub.services.notifications import get_notification_sink

from .models import InactiveUserResponse, InactivityScanResponse

router = APIRouter(prefix="/internal/inactivity", tags=["internal", "inactivity"])
logger = structlog.get_logger(__name__)


def _assert_internal_access(request: Request) -> None:
    settings = get_settings()
    if not is_internal_request_allowed(
        request,
        expected_token=settings.internal_api_token,
        allowlist=settings.internal_api_allowlist,
        trusted_proxies=settings.internal_api_trusted_proxies,
    ):
        logger.warning(
            "internal_inactivity_access_denied",
            client=request.client.host if request.client is not None else None,
        )
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


@router.post("/scan", response_model=InactivityScanResponse)
async def scan_inactive_users(
    request: Request,
    threshold_days: int | None = Query(default=None, ge=1, le=3650),
    notify: bool = Query(default=False),
    clock: Clock = Depends(get_clock),
) -> InactivityScanResponse:
    _assert_internal_access(request)

    resolved_threshold = clamp_threshold_days(
        threshold_days if threshold_days is not None else get_settings().inactivity_threshold_days
    )
    report, notification = await run_inactivity_sweep(
        now_utc=clock.now(),
        threshold_days=resolved_threshold,
        sink=get_notification_sink() if notify else None,
    )
    return InactivityScanResponse(
        generated_at=report.generated_at,
        threshold_days=report.threshold_days,
        total_users_scanned=report.total_users_scanned,
        total_inactive_users=report.total_inactive_users,
        inactive_users=[
            InactiveUserResponse(id=user.user_id, days_since_login=user.days_since_login)
            for user in report.inactive_users
        ],
        unknown_login_user_ids=list(report.unknown_login_user_ids),
        notification=notification.as_dict() if notification is not None else None,
    )
