from themestudio.models.block import Block
from themestudio.domain.positions import duplicate_position
from themestudio.domain.tree import nest
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import assert_section_scope, get_block, materialize_blocks, subtree_of


def duplicate_block(*, store_id: str, actor_id: str, block_id: str) -> Block:
    """Deep copy a block (with its children) right after the original."""
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    original = get_block(store.id, block_id, lock=True)
    section = original.section

    # The original's parent is outside the copied rows, so it nests as a root.
    tree = nest([b.to_record() for b in subtree_of(section, original)])

    with transactional():
        created = materialize_blocks(
            section,
            tree,
            parent=original.parent,
            index=duplicate_position(original),
        )
        clone = created[0]

        assert_section_scope(section)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="block.duplicate",
            entity_type="block",
            entity_id=clone.id,
            payload={"source_id": original.id, "copied": len(created)},
        )

    if section.global_slot is not None:
        clear_global_sections_cache(store.id)

    return clone
