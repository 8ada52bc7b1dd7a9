import hashlib
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from app.db.base_class import utcnow
from app.db.models.audit_log import AuditLog
from app.exports.tabular import format_decimal
from app.repositories.audit_log import AuditLogRepository
from app.services.base import BaseService


def _canonical_default(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format_decimal(value)
    if isinstance(value, Enum):
        return value.value
    return str(value)


def canonical_json(payload: Dict[str, Any]) -> str:
    """Key-sorted, whitespace-free JSON used as the hash input."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), default=_canonical_default)


class AuditService(BaseService):
    """Append-only audit trail, hash chained per business.

    Each row stores the previous row's hash and its own hash over the event
    payload, so tampering with any row breaks every later link. Rows are only
    flushed here; the caller's transaction commits them.
    """

    def __init__(self, audit_repo: AuditLogRepository, correlation_id: Optional[str] = None):
        super().__init__(correlation_id)
        self._set_repositories(audit_repo=audit_repo)

    def log_event(
        self,
        business_id: str,
        user_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: Optional[str],
        outcome: str,
        reason: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        branch_id: Optional[str] = None,
    ) -> AuditLog:
        previous_hash = self.audit_repo.latest_hash(business_id)
        created_at = utcnow()
        payload = {
            "business_id": business_id,
            "user_id": user_id,
            "branch_id": branch_id,
            "correlation_id": self.correlation_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "outcome": outcome,
            "reason": reason,
            "metadata": metadata,
            "created_at": created_at,
            "previous_hash": previous_hash,
        }
        entry_hash = hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()

        entry = self.audit_repo.create({
            "business_id": business_id,
            "user_id": user_id,
            "branch_id": branch_id,
            "correlation_id": self.correlation_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "outcome": outcome,
            "reason": reason,
            "log_metadata": metadata,
            "created_at": created_at,
            "previous_hash": previous_hash,
            "hash": entry_hash,
        })
        self.log_operation("audit_event", action=action, outcome=outcome, resource_id=resource_id)
        return entry
