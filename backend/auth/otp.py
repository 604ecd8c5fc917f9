"""One-time password format check for mobile verification.

Only the shape of the code is checked: it is not compared with a code sent to
the user, so a positive answer is not a proof of possession.
"""

from __future__ import annotations

import re

from shared.models import OtpVerifyResult


_OTP_PATTERN = re.compile(r"[0-9]{6}")


def verify_otp_format(otp: str) -> bool:
    return _OTP_PATTERN.fullmatch(otp or "") is not None


def verify_otp(otp: str) -> OtpVerifyResult:
    if verify_otp_format(otp):
        return OtpVerifyResult(verified=True, message="OTP verified successfully")
    return OtpVerifyResult(verified=False, message="Invalid OTP")
