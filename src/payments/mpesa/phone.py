"""M-Pesa phone number normalization and validation.

Normalization and validation are deliberately separate steps. ``normalize_phone``
is lenient and total so the till can show a formatted preview on every
keystroke; ``is_valid_phone`` decides whether the result is usable by the
gateway. Canonical form is the country code followed by a 9-digit subscriber
number, digits only (``254712345678``).
"""

import re
from dataclasses import dataclass

from protean.exceptions import ValidationError

COUNTRY_CODE = "254"
TRUNK_PREFIX = "0"
SUBSCRIBER_LENGTH = 9
CANONICAL_LENGTH = len(COUNTRY_CODE) + SUBSCRIBER_LENGTH

_NON_DIGITS = re.compile(r"\D")
_CANONICAL = re.compile(rf"^{COUNTRY_CODE}\d{{{SUBSCRIBER_LENGTH}}}$")


def digits_only(raw: str | None) -> str:
    return _NON_DIGITS.sub("", raw or "")


def normalize_phone(raw: str | None) -> str:
    """Convert user input into canonical form on a best-effort basis.

    ``0712345678``, ``712345678``, ``+254 712 345 678`` all become
    ``254712345678``. Anything else is returned as its digits, which may well
    be invalid.
    """
    cleaned = digits_only(raw)

    if cleaned.startswith(TRUNK_PREFIX):
        return COUNTRY_CODE + cleaned[len(TRUNK_PREFIX) :]
    if cleaned.startswith(COUNTRY_CODE):
        return cleaned
    if len(cleaned) == SUBSCRIBER_LENGTH:
        return COUNTRY_CODE + cleaned
    return cleaned


def is_valid_phone(canonical: str | None) -> bool:
    return bool(canonical) and _CANONICAL.fullmatch(canonical) is not None


def phone_problem(raw: str | None) -> str | None:
    """Return the reason ``raw`` is unusable, or None when it is valid."""
    typed = digits_only(raw)
    if len(typed) < SUBSCRIBER_LENGTH:
        return f"Phone number is too short: enter at least {SUBSCRIBER_LENGTH} digits"

    formatted = normalize_phone(typed)
    if not formatted.startswith(COUNTRY_CODE):
        return f"Phone number must start with {COUNTRY_CODE}"
    if len(formatted) != CANONICAL_LENGTH:
        return f"Phone number must be exactly {CANONICAL_LENGTH} digits long"
    if not is_valid_phone(formatted):
        return "Invalid phone number format"
    return None


def validate_phone(raw: str | None) -> str:
    """Return the canonical number or raise ValidationError."""
    problem = phone_problem(raw)
    if problem is not None:
        raise ValidationError({"phone": [problem]})
    return normalize_phone(raw)


@dataclass(frozen=True)
class PhoneFeedback:
    """What the till shows under the phone field while the shopper types."""

    digits: str
    formatted: str
    valid: bool
    error: str | None = None


def phone_feedback(raw: str | None) -> PhoneFeedback:
    """Live formatting feedback.

    Errors are held back until enough digits are typed to judge the number,
    so a half-typed entry is not flagged.
    """
    typed = digits_only(raw)
    formatted = normalize_phone(typed) if typed else ""
    valid = is_valid_phone(formatted)
    error = None
    if typed and len(typed) >= SUBSCRIBER_LENGTH and not valid:
        error = phone_problem(typed)
    return PhoneFeedback(digits=typed, formatted=formatted, valid=valid, error=error)
