from themestudio.domain.positions import compact
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import assert_section_scope, block_siblings, get_block, subtree_of


def delete_block(*, store_id: str, actor_id: str, block_id: str) -> None:
    """Remove a block and, for containers, everything nested inside it."""
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    block = get_block(store.id, block_id, lock=True)
    section = block.section
    parent_id = block.parent_block_id

    subtree = subtree_of(section, block)

    with transactional():
        # Children first so no row is left pointing at a deleted parent.
        for doomed in reversed(subtree):
            section.blocks.remove(doomed)

        compact(block_siblings(section, parent_id))
        assert_section_scope(section)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="block.delete",
            entity_type="block",
            entity_id=block_id,
            payload={
                "type": block.block_type,
                "section_id": section.id,
                "parent_block_id": parent_id,
                "removed": len(subtree),
            },
        )

    if section.global_slot is not None:
        clear_global_sections_cache(store.id)
