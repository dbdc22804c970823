"""
Application state for the view layer.

Theme, navigation and filters live here as one explicit object held
by the UI session. The ledger core never reads it.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from smartspend.models.transaction import AccountFilter, Period, local_now


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class Tab(str, Enum):
    INPUT = "input"
    BAZAR = "bazar"
    REPORT = "report"
    MONTH = "month"
    YEAR = "year"
    LENDING = "lending"
    HISTORY = "history"


class AppState(BaseModel):
    """Process-wide UI/session state with app-lifetime scope."""

    theme: Theme = Theme.LIGHT
    active_tab: Tab = Tab.INPUT
    account_filter: AccountFilter = AccountFilter.ALL
    period: Period = Period.MONTH
    reference_now: datetime = Field(default_factory=local_now)

    def toggle_theme(self) -> "AppState":
        theme = Theme.DARK if self.theme == Theme.LIGHT else Theme.LIGHT
        return self.model_copy(update={"theme": theme})
