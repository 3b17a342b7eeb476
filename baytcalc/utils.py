"""Assorted numeric helpers shared by the models and calculators."""
from __future__ import annotations

import math
from decimal import Decimal, ROUND_HALF_UP

_WHOLE = Decimal("1")
_CENTI = Decimal("0.01")


def nz(x, default=0.0):
    """Return a float for ``x`` or a fallback value.

    Calculator inputs arrive straight from form state, where a field that is
    being edited is ``None``, an empty string or ``NaN``.  This helper mirrors
    the spreadsheet ``NZ()`` function so those interim values read as zero
    instead of breaking the math.
    """

    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return default
        return float(x)
    except (TypeError, ValueError):
        return default


def _quantize(value, step):
    return float(Decimal(repr(float(value))).quantize(step, rounding=ROUND_HALF_UP))


def round_aed(value) -> float:
    """Round a money amount to whole dirhams, halves away from zero."""
    return _quantize(value, _WHOLE)


def round_pct(value) -> float:
    """Round a percentage to two decimals, halves away from zero."""
    return _quantize(value, _CENTI)
