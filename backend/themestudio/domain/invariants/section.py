from .block import assert_block_order, assert_block_nesting


def assert_section(section):
    blocks = list(section.blocks)

    assert_block_nesting(blocks)

    scopes = {}
    for block in blocks:
        scopes.setdefault(block.parent_block_id, []).append(block)

    for parent_id, siblings in scopes.items():
        scope = "section blocks" if parent_id is None else f"container {parent_id}"
        assert_block_order(siblings, scope=scope)
