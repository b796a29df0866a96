# themestudio/application/studio/add_section.py
from typing import Any, Dict, Optional
from themestudio.extensions import db
from themestudio.models.section import SectionInstance
from themestudio.domain.exceptions import PersistenceConflict, ValidationError
from themestudio.domain.positions import insert_at
from themestudio.domain.settings import defaults_for, validate_section_settings
from themestudio.domain.slots import GLOBAL_SLOTS, is_global_type
from themestudio.services.global_sections import clear_global_sections_cache, global_sections_of
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import active_theme, assert_section_scope, get_or_create_template


def add_section(
    *,
    store_id: str,
    actor_id: str,
    section_type: Optional[str] = None,
    template_type: Optional[str] = None,
    global_slot: Optional[str] = None,
    position: Optional[int] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> SectionInstance:
    """
    Place a new section on a template, or override one global slot.

    Siblings at or after ``position`` shift up by one; ``None`` appends.
    Settings start from the theme's schema defaults.
    """
    if (template_type is None) == (global_slot is None):
        raise ValidationError("Provide exactly one of template_type or global_slot")
    if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
        raise ValidationError("Position must be an integer")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    theme = active_theme(store)

    if global_slot is not None:
        if global_slot not in GLOBAL_SLOTS:
            raise ValidationError(f"Unknown global slot: {global_slot}")
        section_type = section_type or global_slot
    elif not section_type:
        raise ValidationError("section_type is required")
    elif is_global_type(section_type):
        raise ValidationError(
            f"'{section_type}' is a global section; override it through its global slot"
        )

    schema = theme.section_schema(section_type) if theme else None
    merged = {**defaults_for(schema), **(settings or {})}
    validate_section_settings(theme, section_type, merged)

    section = SectionInstance(
        store_id=store.id,
        section_type=section_type,
        enabled=True,
        settings=merged,
    )

    with transactional():
        if global_slot is not None:
            siblings = global_sections_of(store.id)
            if any(s.global_slot == global_slot for s in siblings):
                raise PersistenceConflict(f"Global slot '{global_slot}' already has an override")
            section.global_slot = global_slot
            insert_at(siblings, section, position)
            db.session.add(section)
        else:
            template = get_or_create_template(store, template_type, theme=theme)
            insert_at(template.sections, section, position)
            template.sections.append(section)

        assert_section_scope(section)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="section.create",
            entity_type="section",
            entity_id=section.id,
            payload={
                "type": section.section_type,
                "template_type": template_type,
                "global_slot": global_slot,
                "position": section.position,
            },
        )

    if global_slot is not None:
        clear_global_sections_cache(store.id)

    return section
