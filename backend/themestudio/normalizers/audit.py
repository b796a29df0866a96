# themestudio/normalizers/audit.py
from __future__ import annotations

from typing import Dict, Any
from themestudio.models.audit_log import AuditLog


def normalize_audit_log(log: AuditLog) -> Dict[str, Any]:
    """
    entity_id is always serialized as string; payload is stored as JSON
    already.
    """
    return {
        "id": log.id,
        "store_id": log.store_id,
        "actor_id": log.actor_id,
        "action": log.action,
        "entity_type": log.entity_type,
        "entity_id": str(log.entity_id) if log.entity_id is not None else None,
        "payload": log.payload or {},
        "created_at": log.created_at.isoformat() if log.created_at else None,
    }
