"""Application Pydantic v2 schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hrms.common.constants import ApplicationPriority, ApplicationType, ApprovalStatus


class ApplicationCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    reason: str = Field(..., min_length=1, max_length=5000)
    application_type: ApplicationType = ApplicationType.leave_request
    priority: ApplicationPriority = ApplicationPriority.medium
    start_date: date
    end_date: date


class ApplicationUpdate(BaseModel):
    """Partial update, allowed only while the application is pending."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    reason: Optional[str] = Field(None, min_length=1, max_length=5000)
    application_type: Optional[ApplicationType] = None
    priority: Optional[ApplicationPriority] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ApplicationReject(BaseModel):
    rejection_reason: str = Field(..., min_length=1, max_length=2000)


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    applicant_name: Optional[str] = None
    department_id: Optional[uuid.UUID] = None
    title: str
    reason: str
    application_type: ApplicationType
    priority: ApplicationPriority
    start_date: date
    end_date: date
    total_days: int
    status: ApprovalStatus
    approved_by: Optional[uuid.UUID] = None
    approved_at: Optional[datetime] = None
    rejected_by: Optional[uuid.UUID] = None
    rejected_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
