from pydantic import BaseModel, Field
from typing import Literal

SETTING_DESCRIPTIONS = {
    "display_name": "User display name",
    "email": "User email address",
    "timezone": "User timezone preference",
    "date_format": "Date display format",
    "currency": "Default currency for calculations",
    "default_portfolio_view": "Default view for portfolio data",
    "show_percentage_returns": "Show percentage returns in views",
    "show_dividend_info": "Display dividend information",
    "email_notifications": "Enable email notifications",
    "price_alerts": "Enable price alert notifications",
    "theme": "UI theme preference",
    "auto_refresh": "Enable automatic data refresh",
    "data_retention_days": "Number of days to retain historical data",
}


class UserPreferences(BaseModel):
    # Profile
    display_name: str = ""
    email: str = ""
    timezone: str = "UTC"
    date_format: Literal["MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD"] = "MM/DD/YYYY"
    currency: str = Field(default="USD", min_length=3, max_length=3)

    # Portfolio
    default_portfolio_view: Literal["table", "cards"] = "table"
    show_percentage_returns: bool = True
    show_dividend_info: bool = True

    # Notifications
    email_notifications: bool = True
    price_alerts: bool = False

    # System
    theme: Literal["system", "light", "dark"] = "system"
    auto_refresh: bool = True
    data_retention_days: int = Field(default=365, ge=1)
