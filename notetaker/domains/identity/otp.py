"""
OTP Engine - Pure functions over ``OTPState``.

Nothing here touches storage or the clock: callers pass ``now`` and
persist the returned state.

Example:
    >>> state, code = generate_otp(user.otp, now)
    >>> state, result = verify_otp(state, code, now)
    >>> result is OTPCheck.VALID
    True
"""

from __future__ import annotations

import math
import secrets
from datetime import datetime, timedelta
from enum import Enum

from .models import OTPState

__all__ = [
    "OTPCheck",
    "generate_otp",
    "check_otp",
    "verify_otp",
    "mark_used",
    "clear_otp",
    "is_expired",
    "cooldown_remaining",
]

DEFAULT_LENGTH = 6
DEFAULT_TTL = timedelta(minutes=10)


class OTPCheck(str, Enum):
    """Outcome of checking a submitted code."""

    VALID = "valid"
    MISSING = "missing"
    EXPIRED = "expired"
    USED = "used"
    MISMATCH = "mismatch"


def _random_code(length: int) -> str:
    return str(secrets.randbelow(10**length)).zfill(length)


def generate_otp(
    state: OTPState | None,
    now: datetime,
    length: int = DEFAULT_LENGTH,
    ttl: timedelta = DEFAULT_TTL,
) -> tuple[OTPState, str]:
    """
    Issue a fresh code, replacing any previous one.

    The new code always differs from the previous code so the old one can
    never verify again.

    Args:
        state: Current OTP state (may be None)
        now: Current time
        length: Number of digits
        ttl: Validity period

    Returns:
        (new state, plain code)
    """
    if length < 1:
        raise ValueError("OTP length must be positive")

    previous = state.code if state else None
    code = _random_code(length)
    while code == previous and length > 0:
        code = _random_code(length)

    return (
        OTPState(
            code=code,
            expires_at=now + ttl,
            is_used=False,
            attempts=0,
            last_attempt_at=now,
        ),
        code,
    )


def is_expired(state: OTPState, now: datetime) -> bool:
    """A missing code counts as expired."""
    if state.code is None or state.expires_at is None:
        return True
    return now > state.expires_at


def check_otp(state: OTPState, code: str, now: datetime) -> OTPCheck:
    """Classify a submitted code without changing state."""
    if state.code is None:
        return OTPCheck.MISSING
    if is_expired(state, now):
        return OTPCheck.EXPIRED
    if state.is_used:
        return OTPCheck.USED
    if not secrets.compare_digest(state.code, code.strip()):
        return OTPCheck.MISMATCH
    return OTPCheck.VALID


def verify_otp(state: OTPState, code: str, now: datetime) -> tuple[OTPState, OTPCheck]:
    """
    Check a code and record the attempt.

    Every call increments ``attempts`` and stamps ``last_attempt_at``,
    whatever the outcome.
    """
    result = check_otp(state, code, now)
    attempted = state.model_copy(
        update={"attempts": state.attempts + 1, "last_attempt_at": now}
    )
    return attempted, result


def mark_used(state: OTPState) -> OTPState:
    """Spend the code; it stays on record so replays report USED."""
    if state.code is None:
        return state
    return state.model_copy(update={"is_used": True})


def clear_otp() -> OTPState:
    return OTPState()


def cooldown_remaining(state: OTPState, now: datetime, cooldown: timedelta) -> int:
    """Whole seconds (rounded up) until a new code may be issued."""
    if state.last_attempt_at is None:
        return 0
    elapsed = now - state.last_attempt_at
    if elapsed >= cooldown:
        return 0
    return max(1, math.ceil((cooldown - elapsed).total_seconds()))
