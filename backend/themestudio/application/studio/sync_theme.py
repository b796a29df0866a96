"""
Theme-to-store template synchronization.

The theme's template JSON declares which sections a template should have.
Syncing brings a store's persisted template in line with it without undoing
the owner's work: customized settings are kept (only missing default keys
are filled in), owner-added sections stay, and nothing declared is created
twice. A second sync with no theme change writes nothing.
"""
import logging
import threading
from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from themestudio.extensions import db, themes
from themestudio.models.section import SectionInstance
from themestudio.models.template import Template
from themestudio.domain.exceptions import NotFound, SyncInProgress, Unauthorized
from themestudio.domain.invariants.template import assert_template
from themestudio.domain.lifecycle.template import SYNCED, SYNCING, assert_sync_transition
from themestudio.domain.positions import compact, insert_at, ordered
from themestudio.domain.slots import is_global_type
from themestudio.services.stores import get_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import find_template, materialize_blocks
from .snapshots import record_snapshot

logger = logging.getLogger(__name__)

_active_syncs: set = set()
_active_syncs_lock = threading.Lock()


@contextmanager
def sync_guard(store_id, template_type):
    """One sync per (store, template type) at a time within this process."""
    key = (str(store_id), template_type)
    with _active_syncs_lock:
        if key in _active_syncs:
            raise SyncInProgress(
                f"A sync of '{template_type}' is already running for this store",
                details={"template_type": template_type},
            )
        _active_syncs.add(key)
    try:
        yield
    finally:
        with _active_syncs_lock:
            _active_syncs.discard(key)


@dataclass
class SyncPlan:
    remove: List[SectionInstance] = field(default_factory=list)
    fill: List[Tuple[SectionInstance, Dict[str, Any]]] = field(default_factory=list)
    materialize: List[Tuple[SectionInstance, Any]] = field(default_factory=list)
    create: List[Tuple[int, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.remove or self.fill or self.materialize or self.create)

    @property
    def updated(self) -> int:
        return len({id(s) for s, _ in self.fill} | {id(s) for s, _ in self.materialize})


@dataclass
class SyncResult:
    template_type: str
    theme_code: str
    status: str
    sections_created: int = 0
    sections_updated: int = 0
    sections_removed: int = 0
    dry_run: bool = False
    full_reset: bool = False
    snapshot_version: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def declared_sections(definition) -> List[Tuple[int, Any]]:
    """Template body sections in declared order; global types live elsewhere."""
    body = [s for s in definition.sections if not is_global_type(s.type)]
    return list(enumerate(body))


def plan_sync(definition, existing) -> SyncPlan:
    """
    Compare declared sections with persisted ones. Read only.

    Matching prefers a persisted section of the same type at the declared
    position, then any unmatched one of the same type.
    """
    plan = SyncPlan()

    seen = set()
    survivors = []
    for section in ordered(existing):
        key = (section.section_type, section.position)
        if key in seen:
            plan.remove.append(section)
        else:
            seen.add(key)
            survivors.append(section)

    declared = declared_sections(definition)
    matches: Dict[int, SectionInstance] = {}
    pool = list(survivors)

    for index, declared_section in declared:
        for section in pool:
            if section.section_type == declared_section.type and section.position == index:
                matches[index] = section
                pool.remove(section)
                break

    for index, declared_section in declared:
        if index in matches:
            continue
        candidates = [s for s in pool if s.section_type == declared_section.type]
        if candidates:
            # Nearest to the declared slot, so a same-type section the owner
            # added elsewhere is not mistaken for the theme's.
            section = min(candidates, key=lambda s: (abs(s.position - index), s.position))
            matches[index] = section
            pool.remove(section)

    for index, declared_section in declared:
        section = matches.get(index)
        if section is None:
            plan.create.append((index, declared_section))
            continue

        current = section.settings or {}
        filled = {**declared_section.settings, **current}
        if filled != current:
            plan.fill.append((section, filled))
        if declared_section.blocks and not section.blocks:
            plan.materialize.append((section, declared_section))

    return plan


def apply_plan(template, plan: SyncPlan) -> None:
    for section in plan.remove:
        template.sections.remove(section)
    compact(template.sections)

    for section, settings in plan.fill:
        section.settings = settings

    for section, declared_section in plan.materialize:
        materialize_blocks(section, declared_section.block_tree(section.id))

    for index, declared_section in sorted(plan.create, key=lambda pair: pair[0]):
        section = SectionInstance(
            store_id=template.store_id,
            section_type=declared_section.type,
            enabled=declared_section.enabled,
            settings=dict(declared_section.settings),
        )
        insert_at(template.sections, section, index)
        template.sections.append(section)
        materialize_blocks(section, declared_section.block_tree(section.id))


def _result(template_type, theme, status, plan=None, **extra) -> SyncResult:
    result = SyncResult(template_type=template_type, theme_code=theme.code, status=status, **extra)
    if plan is not None:
        result.sections_created = len(plan.create)
        result.sections_updated = plan.updated
        result.sections_removed += len(plan.remove)
    return result


def sync_theme_to_store(
    *,
    store_id: str,
    theme_code: str,
    template_type: str,
    actor_id: Optional[str] = None,
    full_reset: bool = False,
    dry_run: bool = False,
) -> SyncResult:
    """
    Bring the store's ``template_type`` template in line with the theme.

    The template is marked ``syncing`` in its own commit before any section
    changes; the changes and the final ``synced`` mark commit together. A
    failure in between leaves ``syncing`` behind, and the next run starts
    again from a fresh comparison.

    ``full_reset`` snapshots the template, then rebuilds it from the theme.
    ``dry_run`` reports what would change and writes nothing.
    """
    store = get_store(store_id)
    if actor_id is not None and not store.is_owned_by(actor_id):
        raise Unauthorized("You do not own this store")

    theme = themes.load_theme_definition(theme_code)
    definition = theme.templates.get(template_type)
    if definition is None:
        raise NotFound(f"Theme '{theme_code}' has no '{template_type}' template")

    with sync_guard(store.id, template_type):
        template = find_template(store.id, template_type)
        existing = list(template.sections) if template is not None else []

        if dry_run:
            if full_reset:
                plan = plan_sync(definition, [])
                return _result(template_type, theme, "dry_run", plan, dry_run=True,
                               full_reset=True, sections_removed=len(existing))
            return _result(template_type, theme, "dry_run", plan_sync(definition, existing), dry_run=True)

        if not full_reset and template is not None:
            plan = plan_sync(definition, existing)
            if plan.is_empty and template.is_synced_with(theme.code, theme.version):
                logger.debug("Template %s of store %s already in sync", template_type, store.id)
                return _result(template_type, theme, SYNCED)

        with transactional():
            if template is None:
                template = Template(
                    store_id=store.id,
                    template_type=template_type,
                    name=definition.name,
                    settings={},
                )
                db.session.add(template)
            assert_sync_transition(from_status=template.sync_status, to_status=SYNCING)
            template.sync_status = SYNCING

        logger.info(
            "Syncing template %s of store %s with theme %s v%s%s",
            template_type, store.id, theme.code, theme.version, " (full reset)" if full_reset else "",
        )

        try:
            with transactional():
                template = find_template(store.id, template_type, lock=True)
                snapshot_version = None
                removed = 0

                if full_reset:
                    snapshot_version = record_snapshot(template, reason="full_reset", actor_id=actor_id).version
                    removed = len(template.sections)
                    for section in list(template.sections):
                        template.sections.remove(section)
                    db.session.flush()

                plan = plan_sync(definition, list(template.sections))
                apply_plan(template, plan)

                assert_sync_transition(from_status=template.sync_status, to_status=SYNCED)
                template.sync_status = SYNCED
                template.synced_theme = theme.code
                template.synced_version = theme.version
                template.synced_at = datetime.now(timezone.utc)

                db.session.flush()
                assert_template(template)

                result = _result(
                    template_type, theme, SYNCED, plan,
                    full_reset=full_reset,
                    sections_removed=removed,
                    snapshot_version=snapshot_version,
                )

                log_action(
                    store_id=store.id,
                    actor_id=actor_id,
                    action="template.sync",
                    entity_type="template",
                    entity_id=template.id,
                    payload={
                        "theme": theme.code,
                        "version": theme.version,
                        "created": result.sections_created,
                        "updated": result.sections_updated,
                        "removed": result.sections_removed,
                        "full_reset": full_reset,
                    },
                )
        except Exception:
            logger.exception("Sync of template %s for store %s failed; left in %s", template_type, store.id, SYNCING)
            raise

        logger.info(
            "Synced template %s of store %s: %d created, %d updated, %d removed",
            template_type, store.id, result.sections_created, result.sections_updated, result.sections_removed,
        )
        return result
