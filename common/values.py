"""
Money and Quantity value types.

Both are immutable; every operation returns a new instance. Money is held
as integer cents and conversions from major units round half away from zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation


def _require_int(value: object, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an integer, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Money:
    """
    Amount in minor currency units (cents).

    >>> Money.from_major_units(19.99).cents
    1999
    >>> Money.from_major_units("0.125").to_major_units()
    0.13
    >>> Money.from_major_units(-0.125).cents
    -13
    """

    cents: int

    def __post_init__(self) -> None:
        _require_int(self.cents, "cents")

    @classmethod
    def from_major_units(cls, amount: int | float | str | Decimal) -> Money:
        """Build from a major-unit amount (dollars), rounding to the nearest cent."""
        if isinstance(amount, bool):
            raise TypeError("amount must be numeric, got bool")
        try:
            major = Decimal(str(amount))
        except InvalidOperation as e:
            raise ValueError(f"Not a monetary amount: {amount!r}") from e
        if not major.is_finite():
            raise ValueError(f"Not a monetary amount: {amount!r}")
        try:
            cents = (major * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ValueError(f"Monetary amount out of range: {amount!r}") from e
        return cls(int(cents))

    def to_decimal(self) -> Decimal:
        return Decimal(self.cents).scaleb(-2)

    def to_major_units(self) -> float:
        return float(self.to_decimal())

    def __str__(self) -> str:
        return f"{self.to_decimal():.2f}"


@dataclass(frozen=True)
class Quantity:
    """
    Integer stock count. Negative values are representable so that a
    computation can detect them before anything is persisted.

    >>> Quantity(10).minus(3)
    Quantity(value=7)
    >>> Quantity(10).minus(15).clamped()
    Quantity(value=0)
    >>> Quantity(4).covers(5)
    False
    """

    value: int

    def __post_init__(self) -> None:
        _require_int(self.value, "quantity")

    @classmethod
    def of(cls, raw: int | float | str | Quantity) -> Quantity:
        """Coerce wire values (ints, integral floats, numeric strings)."""
        if isinstance(raw, Quantity):
            return raw
        if isinstance(raw, bool):
            raise TypeError("quantity must be numeric, got bool")
        if isinstance(raw, int):
            return cls(raw)
        if isinstance(raw, float):
            if not raw.is_integer():
                raise ValueError(f"quantity must be a whole number, got {raw!r}")
            return cls(int(raw))
        if isinstance(raw, str):
            return cls(int(raw.strip()))
        raise TypeError(f"quantity must be numeric, got {type(raw).__name__}")

    @property
    def is_negative(self) -> bool:
        return self.value < 0

    def minus(self, amount: int | Quantity) -> Quantity:
        delta = amount.value if isinstance(amount, Quantity) else _require_int(amount, "amount")
        return Quantity(self.value - delta)

    def clamped(self, floor: int = 0) -> Quantity:
        if self.value >= floor:
            return self
        return Quantity(floor)

    def covers(self, requested: int) -> bool:
        return self.value >= requested

    def __str__(self) -> str:
        return str(self.value)
