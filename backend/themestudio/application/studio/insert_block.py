from typing import Any, Dict, Optional
from themestudio.models.block import Block
from themestudio.domain.block_defaults import default_block_settings
from themestudio.domain.exceptions import ValidationError
from themestudio.domain.nesting import assert_can_drop, max_depth
from themestudio.domain.settings import validate_block_settings
from themestudio.domain.tree import nest
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import (
    active_theme,
    assert_section_scope,
    get_block,
    get_section,
    materialize_blocks,
    parents_map,
)


def insert_block(
    *,
    store_id: str,
    actor_id: str,
    block_type: str,
    section_id: Optional[str] = None,
    parent_block_id: Optional[str] = None,
    position: Optional[int] = None,
    settings: Optional[Dict[str, Any]] = None,
) -> Block:
    """
    Insert a block at the top level of a section, or inside a container
    block when ``parent_block_id`` is given.

    A container may arrive with children embedded in ``settings["blocks"]``;
    they are stored as real child rows. Nesting rules are checked for the
    whole incoming subtree before anything is written.
    """
    if not block_type:
        raise ValidationError("block_type is required")
    if section_id is None and parent_block_id is None:
        raise ValidationError("Provide section_id or parent_block_id")
    if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
        raise ValidationError("Position must be an integer")
    if settings is not None and not isinstance(settings, dict):
        raise ValidationError("Settings must be a JSON object")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    theme = active_theme(store)

    parent = None
    if parent_block_id is not None:
        parent = get_block(store.id, parent_block_id, lock=True)
        if section_id is not None and parent.section_id != section_id:
            raise ValidationError("Parent block belongs to a different section")
        section = parent.section
    else:
        section = get_section(store.id, section_id, lock=True)

    merged = {**default_block_settings(block_type, theme), **(settings or {})}
    tree = nest([{"id": "new", "type": block_type, "position": 0, "settings": merged}])
    validate_block_settings(theme, block_type, tree[0]["settings"])

    assert_can_drop(
        block_id=None,
        block_type=block_type,
        height=max_depth(tree),
        target_id=parent.id if parent is not None else None,
        target_type=parent.block_type if parent is not None else None,
        parents=parents_map(section),
    )

    with transactional():
        created = materialize_blocks(section, tree, parent=parent, index=position)
        block = created[0]

        assert_section_scope(section)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="block.create",
            entity_type="block",
            entity_id=block.id,
            payload={
                "type": block_type,
                "section_id": section.id,
                "parent_block_id": block.parent_block_id,
                "position": block.position,
                "children": len(created) - 1,
            },
        )

    if section.global_slot is not None:
        clear_global_sections_cache(store.id)

    return block
