from __future__ import annotations

import pytest

from app.modules.messaging.phone import is_exact_match, normalize_phone_number, phone_numbers_match


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("07700 900123", "+447700900123"),
        ("+44 7700 900123", "+447700900123"),
        ("0044 7700 900123", "+447700900123"),
        ("447700900123", "+447700900123"),
        ("7700900123", "+447700900123"),
        ("(0)7700-900-123", "+447700900123"),
        ("+1 (415) 555-2671", "+14155552671"),
    ],
)
def test_normalize_phone_number_returns_e164(raw: str, expected: str) -> None:
    assert normalize_phone_number(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "call me", "+0123456", "+1234567890123456789"])
def test_normalize_phone_number_rejects_unusable_input(raw: str | None) -> None:
    assert normalize_phone_number(raw) is None


def test_exact_match_compares_normalized_forms() -> None:
    assert is_exact_match("07700 900123", "+447700900123") is True
    assert is_exact_match("07700 900123", "07700 900124") is False
    assert is_exact_match(None, "+447700900123") is False


def test_numbers_match_on_last_ten_digits() -> None:
    assert phone_numbers_match("+1 415 555 2671", "4155552671") is True
    assert phone_numbers_match("+447700900123", "+447700900999") is False


def test_short_numbers_never_suffix_match() -> None:
    assert phone_numbers_match("+4412345", "+3312345") is False


def test_unparsable_numbers_never_match() -> None:
    assert phone_numbers_match("not a number", "+447700900123") is False
