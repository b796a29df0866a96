from flask import current_app
from themestudio.extensions import db
from themestudio.models.audit_log import AuditLog
from typing import Optional


def log_action(
    *,
    store_id: str,
    actor_id: Optional[str],
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    payload: dict | None = None
):
    if not current_app.config.get("AUDIT_ENABLED", True):
        return

    log = AuditLog()
    log.store_id = store_id
    log.actor_id = actor_id
    log.action = action
    log.entity_type = entity_type
    log.entity_id = entity_id
    log.payload = payload or {}

    db.session.add(log)
    db.session.flush()
    return log
