"""
Arbitrary-Precision Math Module

Decimal-string arithmetic for ledger amounts. Inputs may be strings, ints or
Decimals; results are always plain decimal strings (no exponent notation).
NEVER uses float arithmetic for monetary values.
"""

import math
import re
from decimal import Decimal, Context, ROUND_HALF_UP, ROUND_FLOOR, ROUND_CEILING, MAX_PREC, MAX_EMAX, MIN_EMIN
from typing import Union

from .config import ROUNDING_MODES, get_config
from .exceptions import InvalidNumberFormat


Number = Union[str, int, Decimal]

# Add, subtract, multiply and quantize are exact under this context
EXACT_CONTEXT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN)

_NUMBER_PATTERN = re.compile(r'[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)')


def to_decimal(value: Number) -> Decimal:
    """
    Parse a number into a finite Decimal.

    Strings must be plain decimal notation: optional sign, digits and an
    optional fractional part. Floats are converted through their repr, the
    same way Money does, so 0.1 becomes Decimal('0.1') and not the binary
    approximation.

    Raises:
        InvalidNumberFormat: If the value is not a finite decimal number
    """
    if isinstance(value, bool):
        raise InvalidNumberFormat(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidNumberFormat(value)
        return value

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidNumberFormat(value)
        return Decimal(repr(value))

    if isinstance(value, str):
        text = value.strip()
        if not _NUMBER_PATTERN.fullmatch(text):
            raise InvalidNumberFormat(value)
        return Decimal(text)

    raise InvalidNumberFormat(value)


def format_decimal(value: Decimal) -> str:
    """Render a Decimal in plain notation, folding -0 into 0"""
    if value.is_zero():
        value = value.copy_abs()
    return format(value, 'f')


def _check_scale(scale: int) -> None:
    if isinstance(scale, bool) or not isinstance(scale, int) or scale < 0:
        raise ValueError(f"Scale must be a non-negative integer, got {scale!r}")


class MathService:
    """
    Stateless arbitrary-precision arithmetic over decimal strings.

    Every rounding step (div, round) uses the same rounding mode, by default
    round half away from zero (ROUND_HALF_UP).
    """

    def __init__(self, rounding: str = ROUND_HALF_UP):
        if rounding not in ROUNDING_MODES:
            raise ValueError(f"Unknown rounding mode '{rounding}'")
        self.rounding = rounding

    @classmethod
    def from_config(cls, config=None) -> 'MathService':
        """Build a math service using the configured rounding mode"""
        config = config or get_config()
        return cls(rounding=config.rounding_mode)

    def pow_ten(self, n: int) -> str:
        """10^n as a decimal string"""
        _check_scale(n)
        return "1" + "0" * n

    def add(self, a: Number, b: Number) -> str:
        return format_decimal(EXACT_CONTEXT.add(to_decimal(a), to_decimal(b)))

    def sub(self, a: Number, b: Number) -> str:
        return format_decimal(EXACT_CONTEXT.subtract(to_decimal(a), to_decimal(b)))

    def mul(self, a: Number, b: Number) -> str:
        """Exact product, no rounding"""
        return format_decimal(EXACT_CONTEXT.multiply(to_decimal(a), to_decimal(b)))

    def div(self, a: Number, b: Number, scale: int) -> str:
        """
        Divide a by b, rounding the quotient to exactly `scale` fractional digits.

        The quotient is computed from the exact integer ratios of both operands,
        so the configured rounding mode is applied once, to the true value.

        Args:
            a: Dividend
            b: Divisor
            scale: Number of fractional digits in the result

        Returns:
            Quotient as a decimal string with `scale` fractional digits

        Raises:
            InvalidNumberFormat: If either operand is malformed
            ZeroDivisionError: If b is zero
        """
        _check_scale(scale)
        dividend = to_decimal(a)
        divisor = to_decimal(b)
        if divisor.is_zero():
            raise ZeroDivisionError("Division by zero")

        dividend_num, dividend_den = dividend.as_integer_ratio()
        divisor_num, divisor_den = divisor.as_integer_ratio()

        quotient = self._round_ratio(
            dividend_num * divisor_den * 10 ** scale,
            dividend_den * divisor_num
        )
        return format_decimal(Decimal(quotient).scaleb(-scale, context=EXACT_CONTEXT))

    def round(self, a: Number, scale: int = 0) -> str:
        """Round to `scale` fractional digits using the service rounding mode"""
        _check_scale(scale)
        return self._quantize(to_decimal(a), scale, self.rounding)

    def floor(self, a: Number) -> str:
        return self._quantize(to_decimal(a), 0, ROUND_FLOOR)

    def ceil(self, a: Number) -> str:
        return self._quantize(to_decimal(a), 0, ROUND_CEILING)

    def negative(self, a: Number) -> str:
        return format_decimal(to_decimal(a).copy_negate())

    def abs(self, a: Number) -> str:
        return format_decimal(to_decimal(a).copy_abs())

    def compare(self, a: Number, b: Number) -> int:
        """Three-way comparison: -1, 0 or 1"""
        return int(to_decimal(a).compare(to_decimal(b)))

    def _quantize(self, value: Decimal, scale: int, rounding: str) -> str:
        exponent = Decimal((0, (1,), -scale))
        return format_decimal(value.quantize(exponent, rounding=rounding, context=EXACT_CONTEXT))

    def _round_ratio(self, numerator: int, denominator: int) -> int:
        """
        Round numerator/denominator to an integer with the service rounding mode.

        Only the integer part, whether the remainder is zero, and how the
        remainder compares to one half decide the result, so the remainder is
        replaced by a representative fraction (.25, .5 or .75) and the final
        step is delegated to Decimal.quantize.
        """
        if denominator < 0:
            numerator, denominator = -numerator, -denominator

        quotient, remainder = divmod(abs(numerator), denominator)
        if remainder == 0:
            fraction = "0"
        elif 2 * remainder < denominator:
            fraction = "25"
        elif 2 * remainder == denominator:
            fraction = "5"
        else:
            fraction = "75"

        approximation = Decimal(f"{quotient}.{fraction}")
        if numerator < 0:
            approximation = approximation.copy_negate()

        rounded = approximation.quantize(Decimal(1), rounding=self.rounding, context=EXACT_CONTEXT)
        return int(rounded)
