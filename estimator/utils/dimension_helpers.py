# estimator/utils/dimension_helpers.py

import re
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from estimator.core.config import settings

logger = logging.getLogger(__name__)

Number = Union[Decimal, int, float, str]

# Sheet gauge → decimal inches
GAUGE_THICKNESS = {
    24: Decimal("0.025"),
    22: Decimal("0.030"),
    20: Decimal("0.036"),
    18: Decimal("0.048"),
    16: Decimal("0.060"),
    14: Decimal("0.075"),
    12: Decimal("0.105"),
    11: Decimal("0.120"),
    10: Decimal("0.135"),
}

_GAUGE_RE = re.compile(r"^(\d+)\s*ga", re.IGNORECASE)
_MIXED_RE = re.compile(r"^(\d+)\s*[-–]\s*(\d+)\s*/\s*(\d+)")
_FRACTION_RE = re.compile(r"^(\d+)\s*/\s*(\d+)")
_LEADING_RE = re.compile(r"^(\d*\.?\d+)")


def to_decimal(value: Optional[Number]) -> Optional[Decimal]:
    """
    Convert a JSON-ish number to Decimal without binary float drift.

    Floats go through str() so 0.1 becomes Decimal("0.1"). Blank strings and
    None return None. NaN and infinities raise ValueError whatever their type.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a numeric value: {value!r}")
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Not a decimal value: {value!r}")
    if not number.is_finite():
        raise ValueError(f"Not a finite decimal value: {value!r}")
    return number


def parse_dimension(value: Optional[Number]) -> Decimal:
    """
    Parse shop dimension notation into decimal inches.

    Handles '3/8"' -> 0.375, '1-1/2' -> 1.5, '2.5' -> 2.5, '24 ga' -> 0.025
    and '2x2' -> 2. Anything unreadable is 0.
    """
    if value is None:
        return Decimal(0)
    if isinstance(value, (Decimal, int, float)) and not isinstance(value, bool):
        return to_decimal(value)

    text = str(value).strip().replace('"', "").replace("″", "").strip()
    if not text:
        return Decimal(0)

    try:
        number = Decimal(text)
        if number.is_finite():
            return number
    except InvalidOperation:
        pass

    gauge = _GAUGE_RE.match(text)
    if gauge:
        return GAUGE_THICKNESS.get(int(gauge.group(1)), Decimal(0))

    mixed = _MIXED_RE.match(text)
    if mixed:
        whole, num, den = (int(g) for g in mixed.groups())
        if den == 0:
            return Decimal(0)
        return Decimal(whole) + Decimal(num) / Decimal(den)

    fraction = _FRACTION_RE.match(text)
    if fraction:
        num, den = (int(g) for g in fraction.groups())
        if den == 0:
            return Decimal(0)
        return Decimal(num) / Decimal(den)

    leading = _LEADING_RE.match(text)
    if leading:
        return Decimal(leading.group(1))

    logger.debug(f"Unreadable dimension {value!r}, treating as 0")
    return Decimal(0)


def canonical_od(value: Number) -> Decimal:
    """Quantize an outer diameter so equality lookups ignore representation drift."""
    places = Decimal(1).scaleb(-settings.OD_DECIMAL_PLACES)
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> Decimal:
    """Half-up rounding to cents, for display and persistence only."""
    places = Decimal(1).scaleb(-settings.CURRENCY_PLACES)
    return value.quantize(places, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return amount * percent / Decimal(100)
