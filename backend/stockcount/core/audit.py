"""
Audit logging for authentication, access and catalog/inventory changes.

Entries are JSON lines on the "audit" logger so they can be shipped
separately from application logs. Passwords and tokens are never logged.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from stockcount.models.user import User

audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security-relevant events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "logout", "register", "oauth_login", "oauth_link"
        email: str,
        ip_address: str,
        success: bool,
        reason: str = "",
    ):
        """
        Usage:
            AuditLog.log_authentication("login", "user@example.com", "10.0.0.1", True)
            AuditLog.log_authentication("login", "user@example.com", "10.0.0.1", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "ip_address": ip_address,
            "success": success,
        }
        if reason and not success:
            log_entry["reason"] = reason

        if success:
            audit_logger.info(json.dumps(log_entry))
        else:
            audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "update", "delete", "bulk_add", "copy"
        resource_type: str,  # "item", "inventory", "inventory_item", "user"
        resource_id: Optional[int],
        user: User,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Usage:
            AuditLog.log_action("delete", "inventory", 12, current_user)
            AuditLog.log_action("bulk_add", "inventory", 12, current_user, changes={"count_added": 40})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "user_id": user.id,
            "user_email": user.email,
            "resource_id": resource_id,
        }
        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_access_denied(
        action: str,  # "read", "write", "delete", "admin"
        resource_type: str,
        resource_id: Optional[int],
        user_id: int,
        reason: str,
    ):
        """Track attempts to reach other users' rows or admin-only endpoints."""
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "user_id": user_id,
            "reason": reason,
        }
        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_permission_change(
        user_id: int,
        granted_by: int,
        old_role: str,
        new_role: str,
    ):
        """
        Usage:
            AuditLog.log_permission_change(user_id=2, granted_by=1, old_role="TEAM_MEMBER", new_role="ADMIN")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": "permissions.changed",
            "user_id": user_id,
            "granted_by": granted_by,
            "old_role": old_role,
            "new_role": new_role,
        }
        audit_logger.info(json.dumps(log_entry))
