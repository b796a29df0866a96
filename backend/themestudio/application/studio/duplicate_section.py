import copy
from themestudio.models.section import SectionInstance
from themestudio.domain.exceptions import ValidationError
from themestudio.domain.positions import duplicate_position, insert_at
from themestudio.domain.tree import nest
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import assert_section_scope, get_section, materialize_blocks


def duplicate_section(*, store_id: str, actor_id: str, section_id: str) -> SectionInstance:
    """
    Deep copy a template section, blocks and nesting included, right after
    the original.
    """
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    original = get_section(store.id, section_id, lock=True)

    if original.global_slot is not None:
        raise ValidationError("A global slot holds a single section and cannot be duplicated")

    tree = nest([b.to_record() for b in original.blocks])

    with transactional():
        template = original.template
        clone = SectionInstance(
            store_id=store.id,
            section_type=original.section_type,
            enabled=original.enabled,
            settings=copy.deepcopy(original.settings or {}),
        )
        insert_at(template.sections, clone, duplicate_position(original))
        template.sections.append(clone)
        materialize_blocks(clone, tree)

        assert_section_scope(clone)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="section.duplicate",
            entity_type="section",
            entity_id=clone.id,
            payload={"source_id": original.id, "position": clone.position},
        )

    return clone
