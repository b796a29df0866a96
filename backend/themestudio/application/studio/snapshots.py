"""Point-in-time copies of a store template and restoring from them."""
from typing import List, Optional
from themestudio.extensions import db
from themestudio.models.section import SectionInstance
from themestudio.models.template_snapshot import TemplateSnapshot
from themestudio.domain.exceptions import NotFound, ValidationError
from themestudio.domain.invariants.template import assert_template
from themestudio.domain.slots import is_global_type
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from themestudio.utils.versioning import next_version, snapshot_template
from .scopes import get_template, materialize_blocks

SNAPSHOT_REASONS = {"full_reset", "manual", "restore"}


def record_snapshot(template, *, reason: str, actor_id: Optional[str]) -> TemplateSnapshot:
    """Adds the snapshot to the current transaction; the caller commits."""
    if reason not in SNAPSHOT_REASONS:
        raise ValidationError(f"Unknown snapshot reason: {reason}")

    snapshot = TemplateSnapshot()
    snapshot.store_id = template.store_id
    snapshot.template_id = template.id
    snapshot.version = next_version(template.id, template.store_id)
    snapshot.reason = reason
    snapshot.snapshot = snapshot_template(template)
    snapshot.created_by = actor_id

    db.session.add(snapshot)
    db.session.flush()
    return snapshot


def create_snapshot(*, store_id: str, actor_id: str, template_type: str) -> TemplateSnapshot:
    store = load_owned_store(store_id=store_id, actor_id=actor_id)

    with transactional():
        template = get_template(store.id, template_type, lock=True)
        snapshot = record_snapshot(template, reason="manual", actor_id=actor_id)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="template.snapshot",
            entity_type="template",
            entity_id=template.id,
            payload={"version": snapshot.version},
        )

    return snapshot


def list_snapshots(*, store_id: str, actor_id: str, template_type: str) -> List[TemplateSnapshot]:
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    template = get_template(store.id, template_type)
    return (
        TemplateSnapshot.query
        .filter_by(store_id=store.id, template_id=template.id)
        .order_by(TemplateSnapshot.version.desc())
        .all()
    )


def restore_snapshot(*, store_id: str, actor_id: str, template_type: str, version: int):
    """
    Replace the template's sections and blocks with the ones recorded in
    ``version``. The state being replaced is itself kept as a ``restore``
    snapshot, so a restore can be undone.
    """
    store = load_owned_store(store_id=store_id, actor_id=actor_id)

    with transactional():
        template = get_template(store.id, template_type, lock=True)
        snapshot = TemplateSnapshot.query.filter_by(
            store_id=store.id,
            template_id=template.id,
            version=version,
        ).first()
        if snapshot is None:
            raise NotFound(f"Snapshot version {version} not found")

        backup = record_snapshot(template, reason="restore", actor_id=actor_id)

        for section in list(template.sections):
            template.sections.remove(section)
        db.session.flush()

        content = snapshot.snapshot or {}
        saved = content.get("template") or {}
        if isinstance(saved.get("settings"), dict):
            template.settings = dict(saved["settings"])

        entries = [
            entry for entry in content.get("sections") or []
            if not is_global_type(entry.get("type"))
        ]
        # Stored order wins; positions are renumbered from 0.
        entries = sorted(
            enumerate(entries),
            key=lambda pair: (pair[1].get("position", pair[0]), pair[0]),
        )
        for position, (_, entry) in enumerate(entries):
            section = SectionInstance(
                store_id=store.id,
                section_type=entry["type"],
                position=position,
                enabled=entry.get("enabled", True),
                settings=dict(entry.get("settings") or {}),
            )
            template.sections.append(section)
            materialize_blocks(section, entry.get("blocks") or [])

        db.session.flush()
        assert_template(template)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="template.restore",
            entity_type="template",
            entity_id=template.id,
            payload={"version": version, "backup_version": backup.version},
        )

    return template
