"""
Fund Goal Models

Two named reserved-savings goals exist: emergency and vacation.
They are fetched as a unit and saved as a unit.

DESIGN DECISION: Goals start disabled with zero target and zero reserved
before the first server sync. Only enabled goals reserve money.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from spend_tracker.models.entities import Amount


class FundGoal(BaseModel):
    """A reserved-savings target."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    target: Amount = Field(
        default=Decimal("0"),
        description="Amount the household wants in this fund"
    )
    current: Amount = Field(
        default=Decimal("0"),
        description="Amount already reserved in this fund"
    )


class Funds(BaseModel):
    """Both fund goals, always handled together."""
    model_config = ConfigDict(frozen=True)

    emergency: FundGoal = Field(default_factory=FundGoal)
    vacation: FundGoal = Field(default_factory=FundGoal)

    def goals(self) -> dict[str, FundGoal]:
        """Goals by name, in display order."""
        return {"emergency": self.emergency, "vacation": self.vacation}

    def to_payload(self) -> dict:
        return self.model_dump(mode="json")


class FundsPatch(BaseModel):
    """
    A partial update to the funds.

    A goal left as None keeps its last fetched value when merged.
    """
    model_config = ConfigDict(frozen=True)

    emergency: Optional[FundGoal] = None
    vacation: Optional[FundGoal] = None
