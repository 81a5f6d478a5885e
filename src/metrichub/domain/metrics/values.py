"""
Locale-aware parsing of raw spreadsheet cells.

Sheets exported by Brazilian clients use "." for thousands and "," for
decimals ("R$ 1.234,56"), while ads-platform exports use plain numbers. Every
parser here returns None for anything it cannot read: None means "no data",
which is different from zero spend or zero leads.
"""

import math
import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

RawValue = Union[str, int, float, None]

_NUMERIC_CHARS_RE = re.compile(r"[^\d.,-]")
_BR_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_NOT_A_NUMBER = object()


def parse_number(raw: RawValue) -> Optional[float]:
    """
    Parse a number written in either Brazilian or plain notation.

    When both separators are present "." is the thousands separator and ","
    the decimal one. With a single kind of separator it is the decimal mark
    if it appears once and a thousands separator if it repeats.

    Args:
        raw: Cell content (string or number)

    Returns:
        Parsed float, or None when the value is unavailable
    """
    numeric = _from_number(raw)
    if numeric is not _NOT_A_NUMBER:
        return numeric

    prepared = _prepare(raw)
    if prepared is None:
        return None
    negative, cleaned = prepared

    has_dot = "." in cleaned
    has_comma = "," in cleaned
    if has_dot and has_comma:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif has_comma:
        cleaned = _single_separator(cleaned, ",")
    elif has_dot:
        cleaned = _single_separator(cleaned, ".")

    return _to_float(cleaned, negative)


def parse_currency_br(raw: RawValue) -> Optional[float]:
    """
    Parse a BRL amount ("R$ 1.234,56", "-R$ 10,00", "1234,5").

    Every "." is treated as a thousands separator and "," as the decimal mark.

    Args:
        raw: Cell content

    Returns:
        Amount in reais, or None when the value is unavailable
    """
    numeric = _from_number(raw)
    if numeric is not _NOT_A_NUMBER:
        return numeric

    prepared = _prepare(raw)
    if prepared is None:
        return None
    negative, cleaned = prepared

    cleaned = cleaned.replace(".", "")
    if cleaned.count(",") > 1:
        return None
    cleaned = cleaned.replace(",", ".")

    return _to_float(cleaned, negative)


def parse_percentage(raw: RawValue) -> Optional[float]:
    """Parse "1,5%" / "12.3 %" into 1.5 / 12.3."""
    if isinstance(raw, str):
        raw = raw.replace("%", "")
    return parse_number(raw)


def parse_date_br(raw: Optional[str]) -> Optional[str]:
    """
    Normalize "dd/mm/yyyy" or "yyyy-mm-dd" into ISO "yyyy-mm-dd".

    Args:
        raw: Cell content

    Returns:
        ISO date string, or None for any other shape or an impossible date
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    br_match = _BR_DATE_RE.match(text)
    if br_match:
        day, month, year = (int(part) for part in br_match.groups())
    else:
        iso_match = _ISO_DATE_RE.match(text)
        if not iso_match:
            return None
        year, month, day = (int(part) for part in iso_match.groups())

    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def parse_cell(raw: RawValue) -> Optional[float]:
    """
    Parse a measurement cell of unknown format.

    Cells carrying "R$" follow the BRL convention, cells carrying "%" are
    percentages, everything else goes through parse_number.
    """
    if isinstance(raw, str):
        if "R$" in raw:
            return parse_currency_br(raw)
        if "%" in raw:
            return parse_percentage(raw)
    return parse_number(raw)


def is_date_like(raw: RawValue) -> bool:
    """Check whether a cell holds a date rather than a measurement."""
    return parse_date_br(raw) is not None if isinstance(raw, str) else False


def _from_number(raw: RawValue):
    """Handle numeric (non-string) input; returns _NOT_A_NUMBER for strings."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        try:
            value = float(raw)
        except OverflowError:
            return None
        return value if math.isfinite(value) else None
    if isinstance(raw, Decimal):
        return _to_float(str(raw), False)
    if not isinstance(raw, str):
        return None
    return _NOT_A_NUMBER


def _prepare(raw: str) -> Optional[tuple[bool, str]]:
    """Strip currency symbols and spaces; split off the sign."""
    cleaned = _NUMERIC_CHARS_RE.sub("", raw.strip())
    negative = cleaned.startswith("-")
    cleaned = cleaned.replace("-", "")
    if not any(ch.isdigit() for ch in cleaned):
        return None
    return negative, cleaned


def _single_separator(cleaned: str, separator: str) -> str:
    if cleaned.count(separator) > 1:
        return cleaned.replace(separator, "")
    return cleaned.replace(separator, ".")


def _to_float(cleaned: str, negative: bool) -> Optional[float]:
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return -result if negative else result
