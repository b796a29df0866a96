from themestudio.extensions import db
from themestudio.domain.invariants.template import assert_global_sections, assert_template
from themestudio.domain.positions import compact
from themestudio.services.global_sections import clear_global_sections_cache, global_sections_of
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import get_section


def delete_section(*, store_id: str, actor_id: str, section_id: str) -> None:
    """Remove a section with all of its blocks; later siblings shift down."""
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    section = get_section(store.id, section_id, lock=True)
    is_global = section.global_slot is not None
    payload = {
        "type": section.section_type,
        "position": section.position,
        "global_slot": section.global_slot,
        "blocks": len(section.blocks),
    }

    with transactional():
        if is_global:
            db.session.delete(section)
            db.session.flush()
            remaining = global_sections_of(store.id)
            compact(remaining)
            db.session.flush()
            assert_global_sections(remaining)
        else:
            template = section.template
            template.sections.remove(section)
            compact(template.sections)
            db.session.flush()
            assert_template(template)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="section.delete",
            entity_type="section",
            entity_id=section_id,
            payload=payload,
        )

    if is_global:
        clear_global_sections_cache(store.id)
