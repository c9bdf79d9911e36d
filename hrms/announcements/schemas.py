"""Announcement Pydantic v2 schemas."""

import datetime as dt
import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    # Admin only; managers always post to their own department
    department_id: Optional[uuid.UUID] = None
    date: Optional[dt.date] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    date: Optional[dt.date] = None


class AnnouncementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    department_id: Optional[uuid.UUID] = None
    department_name: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    author_name: Optional[str] = None
    is_active: bool
    created_at: datetime
    date: date


class MyAnnouncementResponse(AnnouncementResponse):
    """An announcement as seen by one recipient."""

    is_read: bool = False
    read_at: Optional[datetime] = None
