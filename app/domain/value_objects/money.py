"""Value Object Money - a monetary amount in a given currency."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def quantize(amount: Decimal | int | float | str) -> Decimal:
    """Round half-up to two decimal places."""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Money:
    """
    Immutable non-negative monetary amount.

    Attributes:
        amount: Decimal amount, kept at 2 decimal places.
        currency_code: ISO 4217 code (e.g. INR).
    """

    amount: Decimal
    currency_code: str = "INR"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", quantize(self.amount))

        if len(self.currency_code) != 3:
            raise ValueError(f"currency_code must have 3 characters: {self.currency_code}")

        if self.amount < 0:
            raise ValueError(f"amount cannot be negative: {self.amount}")

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            raise TypeError(f"Cannot subtract {type(other)} from Money")
        if self.currency_code != other.currency_code:
            raise ValueError(
                f"Cannot subtract amounts in different currencies: "
                f"{self.currency_code} vs {other.currency_code}"
            )
        return Money(amount=self.amount - other.amount, currency_code=self.currency_code)

    def __mul__(self, factor: int) -> "Money":
        return Money(amount=self.amount * factor, currency_code=self.currency_code)

    def __str__(self) -> str:
        return f"{self.amount:.2f} {self.currency_code}"

    @classmethod
    def zero(cls, currency_code: str = "INR") -> "Money":
        return cls(amount=Decimal("0"), currency_code=currency_code)

    def to_minor_units(self) -> int:
        """Amount in the smallest currency unit (paise/cents) for gateways."""
        return int(self.amount * 100)
