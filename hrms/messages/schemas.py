"""Direct message Pydantic schemas for request / response validation."""


import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# ── Requests ────────────────────────────────────────────────────────

class MessageCreate(BaseModel):
    receiver_id: uuid.UUID
    message: str = Field(..., min_length=1, max_length=5000)


# ── Responses ───────────────────────────────────────────────────────

class MessageResponse(BaseModel):
    """Single message in API responses."""

    id: uuid.UUID
    sender_id: uuid.UUID
    sender_name: Optional[str] = None
    receiver_id: uuid.UUID
    receiver_name: Optional[str] = None
    message: str
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationSummary(BaseModel):
    """Latest exchange with one other user."""

    user_id: uuid.UUID
    full_name: str
    employee_code: str
    last_message: MessageResponse
    unread: int = 0
