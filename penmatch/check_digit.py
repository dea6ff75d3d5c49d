"""PEN check-digit validation."""

import re
from typing import Optional

CHECK_DIGIT_OK = '000'
CHECK_DIGIT_ERROR = '001'

PEN_LENGTH = 9

_PEN_RE = re.compile(r'[0-9]{9}')


def expected_check_digit(digits: str) -> int:
    """Compute the check digit for the first eight digits of a PEN.

    Example for 746282656: the digits at even indexes 7, 6, 8, 6 sum to 27
    (S1). The digits at odd indexes form 4225, doubled 8450, whose digits sum
    to 17 (S2). S3 = 44, so the check digit is 10 - 4 = 6.

    Args:
        digits: At least eight ASCII digits; only the first eight are used.

    Returns:
        The expected ninth digit (0-9).
    """
    body = digits[:PEN_LENGTH - 1]
    sum_odds = sum(int(d) for d in body[0::2])
    doubled = int(body[1::2]) * 2
    sum_evens = sum(int(d) for d in str(doubled))
    return (10 - (sum_odds + sum_evens) % 10) % 10


def pen_check_digit(pen: Optional[str]) -> str:
    """Validate the format and check digit of a PEN.

    Args:
        pen: Candidate PEN.

    Returns:
        CHECK_DIGIT_OK if well-formed, CHECK_DIGIT_ERROR otherwise
        (including wrong length or non-numeric input).
    """
    if pen is None or not _PEN_RE.fullmatch(pen):
        return CHECK_DIGIT_ERROR
    if int(pen[-1]) != expected_check_digit(pen):
        return CHECK_DIGIT_ERROR
    return CHECK_DIGIT_OK


def is_valid_pen(pen: Optional[str]) -> bool:
    return pen_check_digit(pen) == CHECK_DIGIT_OK
