"""Session identifier derivation.

The identifier has two halves: an 8 character base-36 hash of the normalized
identity fields, and a base-36 millisecond timestamp. The hash half is a pure
function of (first name, last name, date of birth) and can collide; the
timestamp half is what makes two registrations of the same person distinct.
An identifier therefore cannot be re-derived from identity alone.
"""

from __future__ import annotations

from datetime import date

from healthbot_memory.time_utils import epoch_millis

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
INVALID_DATE = "Invalid Date"


def to_base36(value: int) -> str:
    if value < 0:
        return "-" + to_base36(-value)
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def format_date_of_birth(date_of_birth: date | str) -> str:
    if isinstance(date_of_birth, date):
        return date_of_birth.isoformat()
    text = (date_of_birth or "").strip()
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return INVALID_DATE


def rolling_hash(text: str) -> int:
    """32-bit signed ``h * 31 + c`` over UTF-16 code units."""
    encoded = text.encode("utf-16-le")
    value = 0
    for idx in range(0, len(encoded), 2):
        code_unit = encoded[idx] | (encoded[idx + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def identity_hash(first_name: str, last_name: str, date_of_birth: date | str) -> str:
    base = "_".join(
        [
            last_name.strip().lower(),
            first_name.strip().lower(),
            format_date_of_birth(date_of_birth),
        ]
    )
    return to_base36(abs(rolling_hash(base)))[:8]


def derive_session_id(
    first_name: str,
    last_name: str,
    date_of_birth: date | str,
    *,
    now_ms: int | None = None,
) -> str:
    suffix = to_base36(now_ms if now_ms is not None else epoch_millis())
    return f"{identity_hash(first_name, last_name, date_of_birth)}_{suffix}"
