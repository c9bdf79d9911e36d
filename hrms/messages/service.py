"""Direct message service — send, conversations, read state, search."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.common.exceptions import ForbiddenException, NotFoundException, ValidationException
from hrms.common.filters import apply_search
from hrms.common.pagination import PaginatedResponse, PaginationParams, paginate
from hrms.messages.models import Message
from hrms.messages.schemas import ConversationSummary, MessageCreate, MessageResponse
from hrms.users.models import User
from hrms.users.service import UserService

logger = logging.getLogger(__name__)


def _between(user_id: uuid.UUID, other_id: uuid.UUID):
    return or_(
        and_(Message.sender_id == user_id, Message.receiver_id == other_id),
        and_(Message.sender_id == other_id, Message.receiver_id == user_id),
    )


def _involving(user_id: uuid.UUID):
    return or_(Message.sender_id == user_id, Message.receiver_id == user_id)


class MessageService:
    """Async direct-message operations."""

    @staticmethod
    async def send(db: AsyncSession, sender: User, data: MessageCreate) -> Message:
        """Send a message to another active user."""
        if data.receiver_id == sender.id:
            raise ValidationException({"receiver_id": ["You cannot send a message to yourself."]})
        receiver = await UserService.get_user(db, data.receiver_id)
        if not receiver.is_active:
            raise NotFoundException("User", data.receiver_id)

        message = Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            message=data.message.strip(),
        )
        db.add(message)
        await db.flush()
        await db.refresh(message, attribute_names=["sender", "receiver"])
        logger.info("Message %s sent by %s", message.id, sender.username)
        return message

    @staticmethod
    async def conversation(
        db: AsyncSession,
        user_id: uuid.UUID,
        other_id: uuid.UUID,
        pagination: PaginationParams,
    ) -> PaginatedResponse:
        """Messages exchanged with one user, oldest first."""
        await UserService.get_user(db, other_id)
        query = (
            select(Message)
            .where(_between(user_id, other_id))
            .order_by(Message.created_at.asc())
        )
        return await paginate(db, query, pagination, model=Message, schema=MessageResponse)

    @staticmethod
    async def conversations(db: AsyncSession, user_id: uuid.UUID) -> list[ConversationSummary]:
        """One entry per conversation partner, most recent exchange first."""
        rows = (
            await db.execute(
                select(Message)
                .where(_involving(user_id))
                .order_by(Message.created_at.desc())
            )
        ).scalars().all()

        summaries: dict[uuid.UUID, ConversationSummary] = {}
        for message in rows:
            incoming = message.receiver_id == user_id
            partner = message.sender if incoming else message.receiver
            summary = summaries.get(partner.id)
            if summary is None:
                summary = ConversationSummary(
                    user_id=partner.id,
                    full_name=partner.full_name,
                    employee_code=partner.employee_code,
                    last_message=MessageResponse.model_validate(message),
                )
                summaries[partner.id] = summary
            if incoming and not message.is_read:
                summary.unread += 1
        return list(summaries.values())

    @staticmethod
    async def mark_conversation_read(
        db: AsyncSession,
        user_id: uuid.UUID,
        other_id: uuid.UUID,
    ) -> int:
        """Mark everything *other_id* sent to the user as read. Returns count updated."""
        result = await db.execute(
            update(Message)
            .where(
                Message.sender_id == other_id,
                Message.receiver_id == user_id,
                Message.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.now(timezone.utc))
        )
        await db.flush()
        return result.rowcount  # type: ignore[return-value]

    @staticmethod
    async def unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
        result = await db.execute(
            select(func.count())
            .select_from(Message)
            .where(Message.receiver_id == user_id, Message.is_read.is_(False))
        )
        return result.scalar_one()

    @staticmethod
    async def get_message(
        db: AsyncSession,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Message:
        """A message the user sent or received."""
        result = await db.execute(select(Message).where(Message.id == message_id))
        message = result.scalars().first()
        if message is None:
            raise NotFoundException("Message", message_id)
        if user_id not in (message.sender_id, message.receiver_id):
            raise ForbiddenException("You can only view your own messages.")
        return message

    @staticmethod
    async def delete_message(
        db: AsyncSession,
        message_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> None:
        message = await MessageService.get_message(db, message_id, user_id)
        if message.sender_id != user_id:
            raise ForbiddenException("Only the sender can delete a message.")
        await db.execute(delete(Message).where(Message.id == message.id))
        await db.flush()

    @staticmethod
    async def search(
        db: AsyncSession,
        user_id: uuid.UUID,
        text: str,
        pagination: PaginationParams,
    ) -> PaginatedResponse:
        """Case-insensitive search over the user's sent and received messages."""
        query = (
            select(Message)
            .where(_involving(user_id))
            .order_by(Message.created_at.desc())
        )
        query = apply_search(query, Message, text, ["message"])
        return await paginate(db, query, pagination, model=Message, schema=MessageResponse)
