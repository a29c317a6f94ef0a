"""
Notification Routes

GET /notifications - My notifications, newest first
GET /notifications/unread-count
PUT /notifications/read-all - Mark everything read, returns how many changed
GET /notifications/preferences
PUT /notifications/preferences - Partial update
PUT /notifications/{id}/read
DELETE /notifications/{id}
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select

from youthworks.core.auth import get_current_user
from youthworks.db.models import Notification, NotificationPreference
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    CountResponse, MessageResponse, NotificationListResponse, NotificationOut,
    NotificationPreferences, NotificationPreferencesUpdate,
)
from youthworks.services.notification_service import get_preferences, mark_all_read, preferences_to_dict

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def notification_to_out(row: Notification) -> NotificationOut:
    return NotificationOut(
        id=row.id, type=row.type, title=row.title, message=row.message,
        data=row.data or {}, is_read=row.is_read, created_at=row.created_at,
    )


def _unread_count(db, user_id: int) -> int:
    return db.scalar(
        select(func.count(Notification.id)).where(
            Notification.user_id == user_id, Notification.is_read.is_(False)
        )
    )


def _own_notification(db, notification_id: int, user_id: int) -> Notification:
    row = db.get(Notification, notification_id)
    if not row or row.user_id != user_id:
        raise HTTPException(status_code=404, detail="Notification not found")
    return row


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: dict = Depends(get_current_user),
):
    query = select(Notification).where(Notification.user_id == user["user_id"])
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).offset(offset).limit(limit)

    with get_db_session() as db:
        rows = db.scalars(query).all()
        return NotificationListResponse(
            notifications=[notification_to_out(r) for r in rows],
            unread_count=_unread_count(db, user["user_id"]),
        )


@router.get("/unread-count", response_model=CountResponse)
async def unread_count(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        return CountResponse(count=_unread_count(db, user["user_id"]))


@router.put("/read-all", response_model=CountResponse)
async def read_all(user: dict = Depends(get_current_user)):
    return CountResponse(count=mark_all_read(user["user_id"]))


@router.get("/preferences", response_model=NotificationPreferences)
async def get_notification_preferences(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        return NotificationPreferences(**get_preferences(db, user["user_id"]))


@router.put("/preferences", response_model=NotificationPreferences)
async def update_notification_preferences(
    data: NotificationPreferencesUpdate, user: dict = Depends(get_current_user)
):
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    with get_db_session() as db:
        pref = db.get(NotificationPreference, user["user_id"])
        if pref is None:
            pref = NotificationPreference(user_id=user["user_id"], **preferences_to_dict(None))
            db.add(pref)
        for field, value in updates.items():
            setattr(pref, field, value)
        db.flush()
        return NotificationPreferences(**preferences_to_dict(pref))


@router.put("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(notification_id: int, user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        row = _own_notification(db, notification_id, user["user_id"])
        row.is_read = True
        db.flush()
        return notification_to_out(row)


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(notification_id: int, user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        db.delete(_own_notification(db, notification_id, user["user_id"]))
    return MessageResponse(message="Notification deleted")
