"""Phone number normalization and matching for WhatsApp routing.

Numbers are stored and compared in E.164 form. Numbers written without an
international prefix are treated as UK numbers: a leading ``0`` is the UK
trunk prefix and is replaced by ``+44``.
"""

from __future__ import annotations

import re

DEFAULT_COUNTRY_CODE = "44"
E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
_STRIP_PATTERN = re.compile(r"[^\d+]")
SUFFIX_MATCH_DIGITS = 10


def normalize_phone_number(raw: str | None) -> str | None:
    """Return the E.164 form of ``raw``, or ``None`` when it cannot be normalized."""
    if not raw:
        return None

    cleaned = _STRIP_PATTERN.sub("", raw)
    if not cleaned:
        return None

    if cleaned.startswith("00"):
        cleaned = "+" + cleaned[2:]
    elif cleaned.startswith("0"):
        cleaned = f"+{DEFAULT_COUNTRY_CODE}{cleaned[1:]}"
    elif not cleaned.startswith("+"):
        if cleaned.startswith(DEFAULT_COUNTRY_CODE):
            cleaned = "+" + cleaned
        else:
            cleaned = f"+{DEFAULT_COUNTRY_CODE}{cleaned}"

    if not E164_PATTERN.match(cleaned):
        return None
    return cleaned


def _digits(value: str) -> str:
    return "".join(ch for ch in value if ch.isdigit())


def is_exact_match(left: str | None, right: str | None) -> bool:
    normalized_left = normalize_phone_number(left)
    return normalized_left is not None and normalized_left == normalize_phone_number(right)


def phone_numbers_match(left: str | None, right: str | None) -> bool:
    """Equal after normalization, or equal on the last ten digits."""
    normalized_left = normalize_phone_number(left)
    normalized_right = normalize_phone_number(right)
    if normalized_left is None or normalized_right is None:
        return False
    if normalized_left == normalized_right:
        return True

    left_digits = _digits(normalized_left)
    right_digits = _digits(normalized_right)
    if len(left_digits) < SUFFIX_MATCH_DIGITS or len(right_digits) < SUFFIX_MATCH_DIGITS:
        return False
    return left_digits[-SUFFIX_MATCH_DIGITS:] == right_digits[-SUFFIX_MATCH_DIGITS:]
