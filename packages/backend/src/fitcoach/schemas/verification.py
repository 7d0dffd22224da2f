"""Pydantic schemas for phone verification.

Learn: Format checks live here, not in the code store: a malformed
phone number never reaches the service and FastAPI answers 422.
"""

from pydantic import BaseModel, Field

PHONE_PATTERN = r"^[0-9]{10,11}$"
CODE_PATTERN = r"^[0-9]{6}$"


class SendCodeRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN, description="Digits only, e.g. 01012345678")


class ConfirmCodeRequest(BaseModel):
    phone: str = Field(..., pattern=PHONE_PATTERN)
    code: str = Field(..., pattern=CODE_PATTERN, description="The 6-digit code that was texted")


class VerificationResult(BaseModel):
    result: bool
    message: str
