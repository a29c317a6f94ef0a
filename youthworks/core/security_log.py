"""
Security audit log.

Writes structured security events (logins, access denials, admin actions,
uploads) to the "youthworks.security" logger. Sensitive keys in the event
details are redacted before anything is written.
"""

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

logger = logging.getLogger("youthworks.security")


class SecurityEventType(str, Enum):
    login_success = "AUTH_LOGIN_SUCCESS"
    login_failed = "AUTH_LOGIN_FAILED"
    registration = "AUTH_REGISTRATION"
    unauthorized_access = "UNAUTHORIZED_ACCESS_ATTEMPT"
    data_modification = "DATA_MODIFICATION"
    file_upload = "FILE_UPLOAD"
    admin_action = "ADMIN_ACTION"


SEVERITY_WEIGHTS = {"low": 1, "medium": 2, "high": 3, "critical": 4}

_LOG_LEVELS = {
    "low": logging.INFO,
    "medium": logging.INFO,
    "high": logging.WARNING,
    "critical": logging.ERROR,
}

SENSITIVE_FIELDS = (
    "password", "token", "secret", "key", "authorization", "cookie", "session",
)

REDACTED = "[REDACTED]"


def sanitize_details(value: Any) -> Any:
    """Recursively replace values of sensitive keys with a placeholder."""
    if isinstance(value, list):
        return [sanitize_details(item) for item in value]
    if not isinstance(value, dict):
        return value

    result = {}
    for key, item in value.items():
        lower_key = str(key).lower()
        if any(field in lower_key for field in SENSITIVE_FIELDS):
            result[key] = REDACTED
        else:
            result[key] = sanitize_details(item)
    return result


class SecurityLogger:
    def __init__(self, min_severity: str = "low"):
        self.min_severity = min_severity

    def should_log(self, severity: str) -> bool:
        return SEVERITY_WEIGHTS[severity] >= SEVERITY_WEIGHTS[self.min_severity]

    def log(
        self,
        event_type: SecurityEventType,
        message: str,
        severity: str = "low",
        success: bool = True,
        user_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> Optional[dict]:
        """Record an event. Returns the written event, or None when filtered."""
        if not self.should_log(severity):
            return None

        event = {
            "id": f"SEC_{uuid.uuid4().hex[:12]}",
            "type": event_type.value,
            "severity": severity,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "user_id": user_id,
            "success": success,
            "message": message,
            "details": sanitize_details(details or {}),
        }
        logger.log(
            _LOG_LEVELS[severity],
            "%s %s user=%s success=%s details=%s",
            event["type"], message, user_id, success, event["details"],
        )
        return event


security_logger = SecurityLogger()
