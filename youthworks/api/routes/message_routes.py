"""
Message Routes

GET /messages - My messages (sent or received), paginated
POST /messages - Send a message
GET /messages/unread-count - Unread messages addressed to me
GET /messages/{id} - One message (participants only)
PUT /messages/{id}/read - Mark as read (recipient only)
"""

import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import selectinload

from youthworks.core.auth import get_current_user
from youthworks.db.models import Message, User, utcnow
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    CountResponse, MessageContext, MessageCreate, MessageListResponse, MessageOut, Pagination,
)
from youthworks.services.notification_service import notify_safely

router = APIRouter(prefix="/messages", tags=["Messages"])


def _party(user: User) -> dict:
    name = (user.profile.full_name if user.profile else "") or user.email
    return {"id": user.id, "name": name, "role": user.role}


def message_to_out(message: Message) -> MessageOut:
    return MessageOut(
        id=message.id,
        sender_id=message.sender_id,
        recipient_id=message.recipient_id,
        content=message.content,
        message_type=message.message_type,
        context_type=message.context_type,
        context_id=message.context_id,
        is_read=message.read_at is not None,
        created_at=message.created_at,
        sender=_party(message.sender),
        recipient=_party(message.recipient),
    )


def _with_parties(query):
    return query.options(
        selectinload(Message.sender).selectinload(User.profile),
        selectinload(Message.recipient).selectinload(User.profile),
    )


@router.get("", response_model=MessageListResponse)
async def list_messages(
    context_type: Optional[MessageContext] = Query(None),
    context_id: Optional[str] = Query(None),
    with_user: Optional[int] = Query(None, description="Only the conversation with this user"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
):
    me = user["user_id"]
    conditions = [or_(Message.sender_id == me, Message.recipient_id == me)]
    if context_type:
        conditions.append(Message.context_type == context_type.value)
    if context_id:
        conditions.append(Message.context_id == context_id)
    if with_user:
        conditions.append(or_(
            and_(Message.sender_id == me, Message.recipient_id == with_user),
            and_(Message.sender_id == with_user, Message.recipient_id == me),
        ))

    with get_db_session() as db:
        total = db.scalar(select(func.count(Message.id)).where(*conditions))
        messages = db.scalars(
            _with_parties(select(Message))
            .where(*conditions)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        items = [message_to_out(m) for m in messages]

    total_pages = math.ceil(total / limit) if total else 0
    return MessageListResponse(
        messages=items,
        pagination=Pagination(
            page=page,
            limit=limit,
            total_count=total,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )


@router.post("", response_model=MessageOut, status_code=201)
async def send_message(data: MessageCreate, user: dict = Depends(get_current_user)):
    content = data.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Message content cannot be empty")

    with get_db_session() as db:
        recipient = db.get(User, data.recipient_id)
        if not recipient:
            raise HTTPException(status_code=404, detail="Recipient not found")

        message = Message(
            sender_id=user["user_id"],
            recipient_id=recipient.id,
            content=content,
            message_type=data.message_type,
            context_type=data.context_type.value,
            context_id=data.context_id,
        )
        db.add(message)
        db.flush()
        response = message_to_out(message)

    notify_safely(
        data.recipient_id,
        "message",
        f"New message from {response.sender.name}",
        content[:140],
        data={"message_id": response.id, "sender_id": user["user_id"]},
        email=True,
    )
    return response


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        count = db.scalar(
            select(func.count(Message.id)).where(
                Message.recipient_id == user["user_id"], Message.read_at.is_(None)
            )
        )
    return CountResponse(count=count)


@router.get("/{message_id}", response_model=MessageOut)
async def get_message(message_id: int, user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        message = db.get(Message, message_id)
        if not message or user["user_id"] not in (message.sender_id, message.recipient_id):
            raise HTTPException(status_code=404, detail="Message not found")
        return message_to_out(message)


@router.put("/{message_id}/read", response_model=MessageOut)
async def mark_message_read(message_id: int, user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        message = db.get(Message, message_id)
        if not message or message.recipient_id != user["user_id"]:
            raise HTTPException(status_code=404, detail="Message not found")
        if message.read_at is None:
            message.read_at = utcnow()
        db.flush()
        return message_to_out(message)
