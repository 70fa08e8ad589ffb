"""One-time code endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from askmyfile.api.models import OtpRequest, OtpVerifyRequest

if TYPE_CHECKING:
    from askmyfile.containers import AppContainer

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/otp", status_code=status.HTTP_202_ACCEPTED)
async def request_otp(request: Request, body: OtpRequest) -> dict[str, str]:
    """Issue a one-time code; the email is delivered in the background."""
    container: AppContainer = request.app.state.container
    container.otp_service.issue_code(body.email)
    return {"message": "OTP sent"}


@router.post("/otp/verify")
async def verify_otp(request: Request, body: OtpVerifyRequest) -> dict[str, bool]:
    """Check a one-time code."""
    container: AppContainer = request.app.state.container
    if not container.otp_service.verify_code(body.email, body.code):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired OTP"
        )
    return {"verified": True}
