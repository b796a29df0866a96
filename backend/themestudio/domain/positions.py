"""
Position reconciliation for sibling sections and blocks.

Every function here works on plain objects exposing ``id`` and ``position``
attributes (ORM rows in production, simple namespaces in tests) and mutates
positions in place. Each returns the items whose position actually changed so
callers can tell a no-op from a write.

Invariant: after any operation the siblings of one parent scope carry the
positions ``0..n-1`` with no gaps or repeats.
"""
from typing import Any, Iterable, List, Sequence

from .exceptions import InvariantViolation, PersistenceConflict, ValidationError


def ordered(siblings: Iterable[Any]) -> List[Any]:
    """Siblings sorted by position; ties keep their incoming order."""
    return sorted(
        siblings,
        key=lambda item: item.position if item.position is not None else float("inf"),
    )


def renumber(items: Sequence[Any]) -> List[Any]:
    """Assign 0..n-1 following the given sequence order."""
    changed = []
    for index, item in enumerate(items):
        if item.position != index:
            item.position = index
            changed.append(item)
    return changed


def compact(siblings: Iterable[Any]) -> List[Any]:
    """Close gaps while preserving relative order."""
    return renumber(ordered(siblings))


def insert_at(siblings: Iterable[Any], item: Any, index: int | None = None) -> List[Any]:
    """
    Place ``item`` at ``index`` and shift every sibling at or after it up by one.

    ``index`` is clamped to ``0..n``; ``None`` appends.
    """
    items = [s for s in ordered(siblings) if s is not item]
    if index is None or index > len(items):
        index = len(items)
    index = max(index, 0)

    item.position = None
    items.insert(index, item)
    changed = renumber(items)
    if item not in changed:
        changed.append(item)
    return changed


def remove(siblings: Iterable[Any], item: Any) -> List[Any]:
    """Take ``item`` out of the scope and shift later siblings down by one."""
    remaining = [s for s in ordered(siblings) if s is not item]
    return renumber(remaining)


def move(siblings: Iterable[Any], item: Any, index: int) -> List[Any]:
    """Reposition an existing sibling within the same scope."""
    return insert_at(siblings, item, index)


def duplicate_position(original: Any) -> int:
    return (original.position or 0) + 1


def _target_order(target: Sequence[Any]) -> List[str]:
    """
    Normalize a reorder payload into an ordered id list.

    Accepts either ``["id", ...]`` or ``[{"id": ..., "position": n}, ...]``.
    """
    if not isinstance(target, (list, tuple)):
        raise ValidationError("Reorder payload must be a list")

    if all(isinstance(entry, dict) for entry in target) and target:
        pairs = []
        for entry in target:
            if "id" not in entry or "position" not in entry:
                raise ValidationError("Each reorder entry needs 'id' and 'position'")
            position = entry["position"]
            if not isinstance(position, int) or isinstance(position, bool):
                raise ValidationError(f"Position must be an integer: {position!r}")
            pairs.append((position, str(entry["id"])))

        positions = sorted(position for position, _ in pairs)
        if positions != list(range(len(pairs))):
            raise ValidationError(
                "Target positions must be a contiguous permutation of 0..n-1",
                details={"positions": positions},
            )
        ids = [entry_id for _, entry_id in sorted(pairs)]
    elif all(isinstance(entry, str) for entry in target):
        ids = list(target)
    else:
        raise ValidationError("Reorder payload mixes ids and objects")

    if len(set(ids)) != len(ids):
        raise ValidationError("Reorder payload repeats an id")
    return ids


def apply_reorder(siblings: Iterable[Any], target: Sequence[Any]) -> List[Any]:
    """
    Apply a complete target ordering to a sibling set.

    The target must name every current sibling exactly once. An id that is no
    longer a sibling (deleted or moved by another request) or a sibling the
    target leaves out means the caller worked from a stale view, which is
    reported as a conflict rather than guessed around.
    """
    ids = _target_order(target)
    by_id = {str(s.id): s for s in siblings}

    requested = set(ids)
    stale = [entry_id for entry_id in ids if entry_id not in by_id]
    missing = [entry_id for entry_id in by_id if entry_id not in requested]
    if stale or missing:
        raise PersistenceConflict(
            "Reorder target does not match the current sibling set",
            details={"stale_ids": stale, "missing_ids": missing},
        )

    return renumber([by_id[entry_id] for entry_id in ids])


def is_contiguous(siblings: Iterable[Any]) -> bool:
    positions = [s.position for s in siblings]
    if None in positions:
        return False
    return sorted(positions) == list(range(len(positions)))


def assert_contiguous(siblings: Iterable[Any], *, scope: str = "siblings") -> None:
    items = list(siblings)
    if not is_contiguous(items):
        positions = [s.position for s in items]
        raise InvariantViolation(
            f"Positions in {scope} are not contiguous from 0: {positions}"
        )
