"""
Audit service untuk ContextAuth API.
Mencatat event keamanan ke logger "contextauth.audit" sebagai JSON line.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import UUID
import json
import logging

from contextauth.core.constants import AuditAction

audit_logger = logging.getLogger("contextauth.audit")


class AuditService:
    """
    Service class untuk audit logging.
    Riwayat context per user tetap tersimpan di trust store; service ini
    hanya untuk monitoring.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or audit_logger

    def log_action(
        self,
        action: AuditAction,
        user_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        level: int = logging.INFO
    ) -> Dict[str, Any]:
        """
        Log audit action.

        Args:
            action: Action yang dilakukan
            user_id: User terkait
            ip_address: IP address
            metadata: Additional metadata
            level: Log level

        Returns:
            Record yang di-log
        """
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "action": action.value,
            "user_id": str(user_id) if user_id else None,
            "ip_address": ip_address,
            "metadata": metadata or {}
        }
        self.logger.log(level, json.dumps(record, default=str))
        return record
