"""Phone verification API: send a code, confirm a code.

Learn: These routes are open (no JWT): they run during sign-up, before
the user has an account. They are rate limited more strictly instead,
see RateLimitMiddleware.

The SMS gateway is an external collaborator. Until one is configured
the code goes nowhere; with FITCOACH_EXPOSE_VERIFICATION_CODES=true it
is written to the log so developers can complete the flow by hand.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from fitcoach.api.deps import get_code_store
from fitcoach.config import settings
from fitcoach.schemas.verification import (
    ConfirmCodeRequest,
    SendCodeRequest,
    VerificationResult,
)
from fitcoach.services.verification import (
    CodeNotFoundError,
    VerificationCodeStore,
    mask_phone,
)

logger = structlog.get_logger()
router = APIRouter(prefix="/verification")


def _dispatch_sms(phone: str, code: str) -> None:
    if settings.expose_verification_codes:
        logger.info("verification.sms_stub", phone=phone, code=code)
    else:
        logger.info("verification.sms_pending_gateway", phone=mask_phone(phone))


@router.post("/send-code", response_model=VerificationResult)
async def send_code(
    body: SendCodeRequest,
    codes: VerificationCodeStore = Depends(get_code_store),
):
    """Issue a fresh 6-digit code for a phone number (replaces any previous one)."""
    code = codes.issue(body.phone)
    _dispatch_sms(body.phone, code)
    return VerificationResult(result=True, message="Verification code sent")


@router.post("/confirm", response_model=VerificationResult)
async def confirm_code(
    body: ConfirmCodeRequest,
    codes: VerificationCodeStore = Depends(get_code_store),
):
    """Check a code. A wrong code can be retried until the code expires."""
    try:
        matched = codes.verify(body.phone, body.code)
    except CodeNotFoundError:
        raise HTTPException(
            status_code=400,
            detail="Verification code has expired. Request a new one.",
        )

    if matched:
        return VerificationResult(result=True, message="Phone number verified")
    return VerificationResult(result=False, message="Incorrect verification code")
