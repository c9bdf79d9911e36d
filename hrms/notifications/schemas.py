"""Notification Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from hrms.common.constants import NotificationType
from hrms.common.pagination import PaginationMeta


# ── Requests ────────────────────────────────────────────────────────

class NotificationCreate(BaseModel):
    """Admin / manager sends a message to one user."""

    user_id: uuid.UUID
    type: NotificationType = NotificationType.info
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    related_id: Optional[uuid.UUID] = None


# ── Responses ───────────────────────────────────────────────────────

class NotificationResponse(BaseModel):
    """Single notification in API responses."""

    id: uuid.UUID
    user_id: uuid.UUID
    type: NotificationType
    title: str
    message: str
    related_id: Optional[uuid.UUID] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationListMeta(PaginationMeta):
    """Extends standard pagination meta with unread count."""

    unread: int


class NotificationListResponse(BaseModel):
    """Paginated list of notifications with unread count in meta."""

    data: list[NotificationResponse]
    meta: NotificationListMeta
