"""Direct message endpoints — send, conversations, read state, search, delete."""


import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.dependencies import get_current_user
from hrms.common.pagination import PaginatedResponse, PaginationParams
from hrms.database import get_db
from hrms.messages.schemas import ConversationSummary, MessageCreate, MessageResponse
from hrms.messages.service import MessageService
from hrms.users.models import User

router = APIRouter(prefix="", tags=["messages"])


# ── POST /: send a message ─────────────────────────────────────────

@router.post("", response_model=MessageResponse, status_code=201)
async def send_message(
    body: MessageCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await MessageService.send(db, user, body)
    await db.commit()
    return MessageResponse.model_validate(message)


# ── Conversations ──────────────────────────────────────────────────

@router.get("/conversations", response_model=list[ConversationSummary])
async def list_conversations(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Latest message with every conversation partner, newest first."""
    return await MessageService.conversations(db, user.id)


@router.get("/conversations/{user_id}", response_model=PaginatedResponse[MessageResponse])
async def get_conversation(
    user_id: uuid.UUID,
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.conversation(db, user.id, user_id, pagination)


@router.put("/conversations/{user_id}/read")
async def mark_conversation_read(
    user_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await MessageService.mark_conversation_read(db, user.id, user_id)
    await db.commit()
    return {"message": "Conversation marked as read", "data": {"count": count}}


# ── GET /unread-count and /search ──────────────────────────────────
# NOTE: registered before /{message_id} routes so the literal paths win.

@router.get("/unread-count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    count = await MessageService.unread_count(db, user.id)
    return {"data": {"count": count}}


@router.get("/search", response_model=PaginatedResponse[MessageResponse])
async def search_messages(
    q: str = Query(..., min_length=1, description="Text to look for"),
    pagination: PaginationParams = Depends(),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await MessageService.search(db, user.id, q, pagination)


# ── Single message ─────────────────────────────────────────────────

@router.get("/{message_id}", response_model=MessageResponse)
async def get_message(
    message_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    message = await MessageService.get_message(db, message_id, user.id)
    return MessageResponse.model_validate(message)


@router.delete("/{message_id}", status_code=204)
async def delete_message(
    message_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await MessageService.delete_message(db, message_id, user.id)
    await db.commit()
