"""Holiday Pydantic v2 schemas."""

import datetime as dt
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HolidayCreate(BaseModel):
    date: date
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    is_recurring: bool = False


class HolidayUpdate(BaseModel):
    date: Optional[dt.date] = None
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    is_recurring: Optional[bool] = None


class HolidayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    date: date
    name: str
    description: Optional[str] = None
    is_recurring: bool = False
    # For recurring holidays: the date it falls on in the requested year
    occurrence_date: Optional[date] = None
    created_at: Optional[datetime] = None


class TodayHolidayStatus(BaseModel):
    date: date
    is_holiday: bool
    holiday: Optional[HolidayResponse] = None


class HolidayStatistics(BaseModel):
    year: int
    total: int
    recurring: int
    upcoming: int
    past: int
    by_month: dict[int, int]
