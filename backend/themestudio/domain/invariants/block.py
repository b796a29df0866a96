from ..exceptions import InvariantViolation
from ..nesting import MAX_NESTING_DEPTH, depth_in, is_container
from ..positions import assert_contiguous


def assert_block_order(blocks, *, scope="section blocks"):
    """Siblings of one parent (section top level or one container)."""
    assert_contiguous(blocks, scope=scope)


def assert_block_nesting(blocks):
    """
    Every block of one section: only containers have children and nothing
    sits deeper than the nesting limit.
    """
    by_id = {block.id: block for block in blocks}
    parents = {block.id: block.parent_block_id for block in blocks}

    for block in blocks:
        parent_id = block.parent_block_id
        if parent_id is None:
            continue

        parent = by_id.get(parent_id)
        if parent is None:
            raise InvariantViolation(
                f"Block {block.id} points at parent {parent_id} outside its section"
            )
        if not is_container(parent.block_type):
            raise InvariantViolation(
                f"{parent.block_type} block {parent.id} cannot hold children"
            )

        if depth_in(parents, block.id) > MAX_NESTING_DEPTH:
            raise InvariantViolation(
                f"Block {block.id} is nested deeper than {MAX_NESTING_DEPTH} levels"
            )
