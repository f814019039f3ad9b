"""Brazilian taxpayer id validation (CPF for individuals, CNPJ for companies).

Pure Python — no DB. Both ids end in two mod-11 check digits.

CPF format:  000.000.000-00      (11 digits)
CNPJ format: 00.000.000/0000-00  (14 digits)

Numbers made of one repeated digit pass the checksum but are never issued,
so they are rejected.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_NON_DIGITS = re.compile(r"\D")
_REPEATED = re.compile(r"^(\d)\1+$")

CNPJ_WEIGHTS_FIRST: tuple[int, ...] = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
CNPJ_WEIGHTS_SECOND: tuple[int, ...] = (6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def clean_digits(value: str) -> str:
    """Strip punctuation: "123.456.789-09" -> "12345678909"."""
    return _NON_DIGITS.sub("", value)


def _cpf_digit(digits: str, length: int) -> int:
    total = sum(int(digits[i]) * (length + 1 - i) for i in range(length))
    digit = (total * 10) % 11
    return 0 if digit == 10 else digit


def validate_cpf(cpf: str) -> bool:
    """Check length, repeated digits and both CPF check digits."""
    digits = clean_digits(cpf)
    if len(digits) != 11 or _REPEATED.match(digits):
        return False
    if _cpf_digit(digits, 9) != int(digits[9]):
        return False
    return _cpf_digit(digits, 10) == int(digits[10])


def _cnpj_digit(digits: str, weights: tuple[int, ...]) -> int:
    total = sum(int(d) * w for d, w in zip(digits, weights, strict=False))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def validate_cnpj(cnpj: str) -> bool:
    """Check length, repeated digits and both CNPJ check digits."""
    digits = clean_digits(cnpj)
    if len(digits) != 14 or _REPEATED.match(digits):
        return False
    if _cnpj_digit(digits, CNPJ_WEIGHTS_FIRST) != int(digits[12]):
        return False
    return _cnpj_digit(digits, CNPJ_WEIGHTS_SECOND) == int(digits[13])
