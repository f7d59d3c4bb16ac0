"""Pydantic models for bill records"""
import datetime as dt
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# (year, month)
MonthKey = Tuple[int, int]


class SpendType(str, Enum):
    LOCAL = "Local"
    TRAVEL = "Travel"


class Bill(BaseModel):
    """
    A single restaurant bill, flattened from an Airtable activity row.
    Instances are immutable snapshots.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    date: Optional[dt.date] = None
    amount: float = Field(default=0.0, ge=0)
    spend_type: Optional[SpendType] = None
    # True when the row's label was unrecognized and the type was assigned by policy
    spend_type_inferred: bool = False
    city: Optional[str] = None
    country: Optional[str] = None
    party: List[str] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    month: Optional[MonthKey] = None

    # Display fields
    dish: Optional[str] = None
    restaurant: Optional[str] = None
    emoji: Optional[str] = None
    coordinates: Optional[Tuple[float, float]] = None
    photo_url: Optional[str] = None

    @property
    def party_size(self) -> int:
        return len(self.party)

    @property
    def has_attachment(self) -> bool:
        return len(self.attachments) > 0


def month_label(month: MonthKey) -> str:
    """Formats a month key as 'YY-MM'."""
    year, mon = month
    return f"{year % 100:02d}-{mon:02d}"
