"""
View Configuration Models

The view configuration is passed explicitly to everything that needs it.
There is no ambient, global view state.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ViewMode(str, Enum):
    """Granularity of the active snapshot."""
    MONTH = "month"
    YEAR = "year"


class ViewScope(str, Enum):
    """Household (all members) or personal (one member) projection."""
    HOUSEHOLD = "household"
    PERSONAL = "personal"


MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class ViewConfig(BaseModel):
    """What the user is currently looking at."""
    model_config = ConfigDict(frozen=True)

    view_mode: ViewMode = ViewMode.MONTH
    view_scope: ViewScope = ViewScope.HOUSEHOLD
    selected_month: int = Field(
        default_factory=lambda: date.today().month,
        ge=1,
        le=12,
    )
    selected_year: int = Field(
        default_factory=lambda: date.today().year,
        ge=1000,
        le=9999,
    )
    active_member_name: str = Field(
        default="",
        description="Member shown in personal scope; remembered across scope changes"
    )

    @property
    def is_year_view(self) -> bool:
        return self.view_mode is ViewMode.YEAR

    @property
    def period_label(self) -> str:
        """Heading for the dashboard, e.g. ``March overview``."""
        if self.is_year_view:
            return f"{self.selected_year} overview"
        return f"{MONTH_NAMES[self.selected_month - 1]} overview"

    @property
    def fetch_key(self) -> tuple:
        """Identifies which snapshot this view needs from the backend."""
        if self.is_year_view:
            return (ViewMode.YEAR, self.selected_year)
        return (ViewMode.MONTH, self.selected_year, self.selected_month)
