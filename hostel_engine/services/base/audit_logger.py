"""
Best-effort audit trail.

Entries are written in their own session after the business transaction
committed, so an audit failure can never roll back the operation it
describes.
"""

from typing import Any, Dict, Optional

from hostel_engine.core.logging import get_logger
from hostel_engine.db.session import Database
from hostel_engine.models.audit import AuditLog

logger = get_logger(__name__)


class AuditLogger:
    """Append-only ``audit_logs`` writer that never raises."""

    def __init__(self, database: Database):
        self.database = database

    def append(
        self,
        action: str,
        actor_id: Optional[str],
        target_id: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
        entity_type: Optional[str] = None,
    ) -> bool:
        try:
            with self.database.session() as session:
                session.add(AuditLog(
                    action=action,
                    actor_id=str(actor_id) if actor_id is not None else None,
                    target_id=str(target_id) if target_id is not None else None,
                    entity_type=entity_type,
                    metadata_json=metadata or {},
                ))
            return True
        except Exception as e:
            logger.warning(
                f"Audit entry '{action}' could not be written: {e}",
                extra={"action": action, "target_id": target_id},
            )
            return False
