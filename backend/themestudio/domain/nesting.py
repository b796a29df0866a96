"""
Container nesting rules.

Depth counts from the owning section: the section is depth 0, its top-level
blocks depth 1, the children of a top-level container depth 2, and so on.
"""
from typing import Any, Dict, Iterable, Mapping, Optional

from .exceptions import NestingRejected

CONTAINER = "container"

# Levels including the root section.
MAX_NESTING_DEPTH = 3


def is_container(block_type: Optional[str]) -> bool:
    return block_type == CONTAINER


def can_nest(target_block_type: str, dragged_block_type: str, current_depth: int) -> bool:
    """
    Pre-flight check: may a ``dragged_block_type`` block be dropped into a
    ``target_block_type`` block that sits at ``current_depth``?

    Depths count from the owning section (depth 0), so a top-level block is at
    depth 1 and nothing may land deeper than ``MAX_NESTING_DEPTH``.

    Pure and side-effect free.
    """
    if not is_container(target_block_type):
        return False

    landing_depth = current_depth + 1
    if landing_depth > MAX_NESTING_DEPTH:
        return False

    if is_container(dragged_block_type):
        # A container may only open one more level below it; a container
        # already inside a container cannot receive another one.
        return landing_depth < MAX_NESTING_DEPTH

    return True


def subtree_height(node: Mapping[str, Any]) -> int:
    """Levels occupied by a nested block node, itself included."""
    children = node.get("blocks") or []
    if not children:
        return 1
    return 1 + max(subtree_height(child) for child in children)


def depth_in(parents: Mapping[str, Optional[str]], block_id: str) -> int:
    """
    Depth of ``block_id`` given a ``{block_id: parent_block_id}`` map.

    Raises NestingRejected when the parent chain loops.
    """
    depth = 0
    seen = set()
    current: Optional[str] = block_id
    while current is not None:
        if current in seen:
            raise NestingRejected(f"Block {block_id} sits in a nesting cycle")
        seen.add(current)
        depth += 1
        current = parents.get(current)
    return depth


def descendants_of(parents: Mapping[str, Optional[str]], block_id: str) -> set:
    children: Dict[str, list] = {}
    for child, parent in parents.items():
        if parent is not None:
            children.setdefault(parent, []).append(child)

    found = set()
    stack = list(children.get(block_id, []))
    while stack:
        current = stack.pop()
        if current in found:
            continue
        found.add(current)
        stack.extend(children.get(current, []))
    return found


def assert_can_drop(
    *,
    block_id: Optional[str],
    block_type: str,
    height: int,
    target_id: Optional[str],
    target_type: Optional[str],
    parents: Mapping[str, Optional[str]],
) -> None:
    """
    Validate dropping a block (with a subtree ``height`` levels tall) into
    ``target_id``; ``None`` targets the section's top level.
    """
    if target_id is None:
        if height > MAX_NESTING_DEPTH:
            raise NestingRejected(
                f"Block subtree is {height} levels deep; the limit is {MAX_NESTING_DEPTH}"
            )
        return

    if block_id is not None:
        if target_id == block_id:
            raise NestingRejected("A block cannot be dropped into itself")
        if target_id in descendants_of(parents, block_id):
            raise NestingRejected("A block cannot be dropped into one of its own descendants")

    target_depth = depth_in(parents, target_id)
    if not can_nest(target_type, block_type, target_depth):
        raise NestingRejected(
            f"'{block_type}' cannot be nested in '{target_type}' at depth {target_depth}",
            details={"target_id": target_id, "depth": target_depth},
        )

    if target_depth + height > MAX_NESTING_DEPTH:
        raise NestingRejected(
            f"Dropping here would nest {target_depth + height} levels deep; "
            f"the limit is {MAX_NESTING_DEPTH}"
        )


def max_depth(nodes: Iterable[Mapping[str, Any]]) -> int:
    nodes = list(nodes)
    if not nodes:
        return 0
    return max(subtree_height(node) for node in nodes)
