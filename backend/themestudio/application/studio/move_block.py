from typing import Optional
from themestudio.models.block import Block
from themestudio.domain.exceptions import ValidationError
from themestudio.domain.nesting import assert_can_drop, max_depth
from themestudio.domain.positions import insert_at, move, ordered, remove
from themestudio.domain.tree import nest
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import (
    assert_section_scope,
    attach,
    block_siblings,
    get_block,
    get_section,
    parents_map,
    subtree_of,
    touches_global,
)


def move_block(
    *,
    store_id: str,
    actor_id: str,
    block_id: str,
    position: Optional[int] = None,
    target_parent_id: Optional[str] = None,
    target_section_id: Optional[str] = None,
) -> Block:
    """
    Move a block (and its subtree) to ``position`` under ``target_parent_id``;
    no target parent means the top level of ``target_section_id`` (default:
    the block's own section).

    Moving a block to where it already is writes nothing.
    """
    if position is not None and (not isinstance(position, int) or isinstance(position, bool)):
        raise ValidationError("Position must be an integer")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    block = get_block(store.id, block_id, lock=True)
    source = block.section

    target_parent = None
    if target_parent_id is not None:
        target_parent = get_block(store.id, target_parent_id, lock=True)
        if target_section_id is not None and target_parent.section_id != target_section_id:
            raise ValidationError("Target parent belongs to a different section")
        target = target_parent.section
    elif target_section_id is not None:
        target = get_section(store.id, target_section_id, lock=True)
    else:
        target = source

    new_parent_id = target_parent.id if target_parent is not None else None
    same_scope = target.id == source.id and new_parent_id == block.parent_block_id

    if same_scope:
        siblings = ordered(block_siblings(source, block.parent_block_id))
        last = len(siblings) - 1
        index = last if position is None else max(0, min(position, last))
        if index == block.position:
            return block

    subtree = subtree_of(source, block)
    height = max_depth(nest([b.to_record() for b in subtree]))
    assert_can_drop(
        block_id=block.id,
        block_type=block.block_type,
        height=height,
        target_id=new_parent_id,
        target_type=target_parent.block_type if target_parent is not None else None,
        parents=parents_map(target),
    )

    old_parent_id = block.parent_block_id
    old_position = block.position

    with transactional():
        if same_scope:
            move(block_siblings(source, old_parent_id), block, position)
        else:
            remove(block_siblings(source, old_parent_id), block)
            if target.id != source.id:
                for moved in subtree:
                    moved.section = target
            attach(block, target_parent)
            destination = [b for b in block_siblings(target, new_parent_id) if b is not block]
            insert_at(destination, block, position)

        assert_section_scope(source)
        if target.id != source.id:
            assert_section_scope(target)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="block.move",
            entity_type="block",
            entity_id=block.id,
            payload={
                "from": {"section_id": source.id, "parent_block_id": old_parent_id, "position": old_position},
                "to": {"section_id": target.id, "parent_block_id": new_parent_id, "position": block.position},
            },
        )

    if touches_global(source, target):
        clear_global_sections_cache(store.id)

    return block
