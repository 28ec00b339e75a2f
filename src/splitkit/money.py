"""Fixed-point money in integer minor units. Two fractional digits, one currency tag."""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

CENT = Decimal("0.01")
SCALE = 100


class CurrencyMismatchError(ValueError):
    """Arithmetic or comparison attempted across two currencies."""

    pass


def to_decimal(value: Any) -> Decimal:
    """Coerce user input to Decimal, going through str() for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def normalize_currency_code(value: Any) -> str:
    """Upper-case a currency code and check it has the ISO 4217 shape."""
    code = str(value).strip().upper()
    if len(code) != 3 or not code.isascii() or not code.isalpha():
        raise ValueError(f"Invalid currency code: {value!r}")
    return code


def round_half_up(value: Decimal) -> int:
    """Round a Decimal to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class Money(BaseModel):
    """
    An amount of money stored as integer minor units (cents).

    Money is immutable. Adding, subtracting or ordering two amounts in different
    currencies raises CurrencyMismatchError instead of coercing.
    """

    model_config = ConfigDict(frozen=True)

    minor: int
    currency: str

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> str:
        return normalize_currency_code(v)

    @classmethod
    def of(cls, value: Any, currency: str) -> "Money":
        """
        Build Money from a major-unit value such as "33.34", 10 or Decimal("1.5").

        Values with more than two fractional digits are rounded half-up.
        """
        minor = round_half_up(to_decimal(value) * SCALE)
        return cls(minor=minor, currency=currency)

    @classmethod
    def zero(cls, currency: str) -> "Money":
        return cls(minor=0, currency=currency)

    @property
    def amount(self) -> Decimal:
        """Major-unit value with exactly two decimal places."""
        return (Decimal(self.minor) / SCALE).quantize(CENT)

    def is_zero(self) -> bool:
        return self.minor == 0

    def is_positive(self) -> bool:
        return self.minor > 0

    def is_negative(self) -> bool:
        return self.minor < 0

    def _check(self, other: "Money") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return Money(minor=self.minor + other.minor, currency=self.currency)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return Money(minor=self.minor - other.minor, currency=self.currency)

    def __neg__(self) -> "Money":
        return Money(minor=-self.minor, currency=self.currency)

    def __abs__(self) -> "Money":
        return Money(minor=abs(self.minor), currency=self.currency)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.minor == other.minor

    def __hash__(self) -> int:
        return hash((self.minor, self.currency))

    def __lt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.minor < other.minor

    def __le__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.minor <= other.minor

    def __gt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.minor > other.minor

    def __ge__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check(other)
        return self.minor >= other.minor

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"


def sum_money(amounts: Iterable[Money], currency: str) -> Money:
    """Sum amounts that must all be in `currency`. Empty input sums to zero."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total
