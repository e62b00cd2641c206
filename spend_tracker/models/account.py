"""
Account and Valuation Models

Small response shapes from the backend that are not part of a snapshot:
the signed-in user and the gold valuation report.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuthUser(BaseModel):
    """The signed-in user."""
    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


class AuthResult(BaseModel):
    """Token and user returned by sign-in and sign-up."""
    model_config = ConfigDict(frozen=True)

    token: str = Field(..., min_length=1)
    user: AuthUser


class GoldValuationItem(BaseModel):
    """Current value of one gold holding."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: Optional[str] = None
    owner: Optional[str] = None
    amount: Decimal = Decimal("0")
    grams: Optional[Decimal] = None
    price_per_gram_at_purchase: Optional[Decimal] = None
    current_value: Optional[Decimal] = None


class GoldValuation(BaseModel):
    """Gold holdings marked to the current price per gram."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    current_price_per_gram: Decimal = Decimal("0")
    items: tuple[GoldValuationItem, ...] = ()
    total_invested: Decimal = Decimal("0")
    total_current_value: Decimal = Decimal("0")

    @property
    def gain(self) -> Decimal:
        return self.total_current_value - self.total_invested
