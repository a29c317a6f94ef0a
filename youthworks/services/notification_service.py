"""
Notification Service - in-app notifications and email delivery.

send_notification() is the single entry point used by the routes. It honours
the user's stored preferences (all enabled when none are stored):

- a disabled category (job_applications, job_offers, messages, courses)
  suppresses the notification entirely; "system" is always delivered
- in_app controls the notifications table row
- email controls SMTP delivery, which also needs an address and SMTP settings
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from sqlalchemy import select

from youthworks.core.config import get_settings
from youthworks.db.models import Notification, NotificationPreference, User
from youthworks.db.postgres import get_db_session

logger = logging.getLogger(__name__)

settings = get_settings()

NOTIFICATION_TYPES = ("job_application", "job_offer", "message", "course", "system")

# Notification type -> preference flag that gates it
CATEGORY_PREFERENCES = {
    "job_application": "job_applications",
    "job_offer": "job_offers",
    "message": "messages",
    "course": "courses",
}

PREFERENCE_FIELDS = ("email", "push", "in_app", "job_applications", "job_offers", "messages", "courses")

EMAIL_SUBJECTS = {
    "job_application": "New job application - {title}",
    "job_offer": "New job offer - {title}",
    "message": "New message - {title}",
    "course": "Course update - {title}",
}

EMAIL_LINKS = {
    "job_application": "/jobs",
    "job_offer": "/jobs",
    "message": "/messages",
    "course": "/courses",
}

SMTP_TIMEOUT_SECONDS = 12


def default_preferences() -> dict:
    return {name: True for name in PREFERENCE_FIELDS}


def preferences_to_dict(pref: Optional[NotificationPreference]) -> dict:
    if pref is None:
        return default_preferences()
    return {name: bool(getattr(pref, name)) for name in PREFERENCE_FIELDS}


def get_preferences(db, user_id: int) -> dict:
    return preferences_to_dict(db.get(NotificationPreference, user_id))


def is_category_enabled(preferences: dict, notification_type: str) -> bool:
    flag = CATEGORY_PREFERENCES.get(notification_type)
    if flag is None:
        return True
    return preferences.get(flag, True)


def render_email(notification_type: str, title: str, message: str) -> tuple:
    """Return (subject, text_body) for a notification email."""
    subject = EMAIL_SUBJECTS.get(notification_type, "{title}").format(title=title)
    link = settings.app_base_url.rstrip("/") + EMAIL_LINKS.get(notification_type, "/notifications")
    body = (
        f"{title}\n\n"
        f"{message}\n\n"
        f"Open YouthWorks: {link}\n\n"
        "You are receiving this email because of your notification preferences."
    )
    return subject, body


def send_email(to_email: str, subject: str, text_body: str) -> bool:
    """Send a plain text email over SMTP. Returns False on any delivery error."""
    if not settings.smtp_enabled:
        logger.debug("SMTP not configured, skipping email to %s", to_email)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = settings.mail_from
    msg["To"] = to_email
    msg.set_content(text_body)

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
        return True
    except smtplib.SMTPException:
        logger.exception("SMTP error while sending email to %s", to_email)
    except OSError:
        logger.exception("SMTP network error while sending email to %s", to_email)
    return False


def send_notification(
    user_id: int,
    notification_type: str,
    title: str,
    message: str,
    data: dict = None,
    email: bool = False,
) -> dict:
    """
    Deliver one notification according to the user's preferences.

    Returns:
        {"in_app": bool, "email": bool, "notification_id": int | None}
    """
    result = {"in_app": False, "email": False, "notification_id": None}

    with get_db_session() as db:
        user = db.get(User, user_id)
        if user is None:
            logger.warning("Notification for unknown user %s dropped", user_id)
            return result

        preferences = get_preferences(db, user_id)
        if not is_category_enabled(preferences, notification_type):
            logger.debug("Notification %s disabled for user %s", notification_type, user_id)
            return result

        if preferences["in_app"]:
            row = Notification(
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                data=data or {},
            )
            db.add(row)
            db.flush()
            result["in_app"] = True
            result["notification_id"] = row.id

        to_email = user.email

    if email and preferences["email"] and to_email:
        subject, body = render_email(notification_type, title, message)
        result["email"] = send_email(to_email, subject, body)

    return result


def notify_safely(*args, **kwargs) -> Optional[dict]:
    """send_notification() for side effects that must not fail the request."""
    try:
        return send_notification(*args, **kwargs)
    except Exception:
        logger.exception("Failed to send notification")
        return None


def mark_all_read(user_id: int) -> int:
    with get_db_session() as db:
        rows = db.scalars(
            select(Notification).where(Notification.user_id == user_id, Notification.is_read.is_(False))
        ).all()
        for row in rows:
            row.is_read = True
        return len(rows)
