import pytest

from backend.auth.otp import verify_otp, verify_otp_format


@pytest.mark.parametrize("otp", ["123456", "000000"])
def test_six_digit_codes_are_accepted(otp: str) -> None:
    result = verify_otp(otp)

    assert result.verified is True
    assert result.message == "OTP verified successfully"


@pytest.mark.parametrize("otp", ["", "12345", "1234567", "12a456", " 123456", "１２３４５６"])
def test_other_codes_are_rejected(otp: str) -> None:
    result = verify_otp(otp)

    assert result.verified is False
    assert result.message == "Invalid OTP"


def test_verify_otp_format_handles_missing_value() -> None:
    assert verify_otp_format(None) is False
