import math
from decimal import Decimal, InvalidOperation


INT32_MIN, INT32_MAX = -(2 ** 31), 2 ** 31 - 1
INT64_MIN, INT64_MAX = -(2 ** 63), 2 ** 63 - 1

# 96-bit fixed-point decimal: 28 significant digits, scale up to 28
DECIMAL_MAX_PRECISION = 28
DECIMAL_MAX_SCALE = 28
DECIMAL_MAX_VALUE = Decimal(2 ** 96 - 1)


def fits_int32(value: int) -> bool:
    return INT32_MIN <= value <= INT32_MAX


def fits_int64(value: int) -> bool:
    return INT64_MIN <= value <= INT64_MAX


def _is_fixed_point(d: Decimal) -> bool:
    """
    True when d round-trips through a 28-digit fixed-point decimal.
    """
    if not d.is_finite():
        return False
    if abs(d) > DECIMAL_MAX_VALUE:
        return False

    _, digits, exponent = d.normalize().as_tuple()
    scale = -exponent if exponent < 0 else 0
    if scale > DECIMAL_MAX_SCALE:
        return False

    # integer digits + scale
    precision = max(len(digits), scale)
    if exponent > 0:
        precision = len(digits) + exponent
    return precision <= DECIMAL_MAX_PRECISION


def _classify_integral(value: int) -> str:
    if fits_int32(value):
        return "integer"
    if fits_int64(value):
        return "long"
    if _is_fixed_point(Decimal(value)):
        return "decimal"
    return "number"


def classify_number(value) -> str:
    """
    Pick the narrowest numeric label that holds the value exactly.

    Preference order: integer (32-bit) -> long (64-bit) ->
    decimal (fixed-point) -> number (floating point).
    """
    if isinstance(value, int):
        return _classify_integral(value)

    if isinstance(value, Decimal):
        if value.is_finite() and value.as_tuple().exponent >= 0:
            return _classify_integral(int(value))
        return "decimal" if _is_fixed_point(value) else "number"

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return "number"
        try:
            d = Decimal(repr(value))
        except InvalidOperation:
            return "number"
        return "decimal" if _is_fixed_point(d) else "number"

    return "number"
