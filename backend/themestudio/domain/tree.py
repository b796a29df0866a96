"""
Conversion between flat block records and the nested block tree.

A flat record is a dict with at least ``id``, ``type``, ``position`` and an
optional ``parent_block_id``. A tree node is the same dict plus a ``blocks``
list of child nodes. Container blocks written by older clients may still carry
their children embedded in ``settings["blocks"]`` (or ``settings["childBlocks"]``);
``nest`` lifts those into real child nodes.
"""
import copy
import itertools
from typing import Any, Dict, List, Mapping, Optional

from .nesting import is_container

LEGACY_CHILD_KEYS = ("blocks", "childBlocks")

Node = Dict[str, Any]


def _embedded_children(node: Node) -> List[Node]:
    settings = node.get("settings") or {}
    embedded: List[Any] = []
    for key in LEGACY_CHILD_KEYS:
        if isinstance(settings.get(key), list) and not embedded:
            embedded = settings[key]
    return [child for child in embedded if isinstance(child, dict)]


def _strip_embedded(node: Node) -> None:
    settings = node.get("settings")
    if isinstance(settings, dict):
        node["settings"] = {k: v for k, v in settings.items() if k not in LEGACY_CHILD_KEYS}


def _expand(rows: List[Mapping[str, Any]]) -> List[Node]:
    """Copy rows and append embedded legacy children as separate records."""
    records: List[Node] = []
    pending = [(dict(row), None, f"b{index}") for index, row in enumerate(rows)]
    explicit_parents = {row.get("parent_block_id") for row in rows if row.get("parent_block_id")}

    while pending:
        record, inherited_parent, fallback_id = pending.pop(0)
        record["settings"] = copy.deepcopy(record.get("settings") or {})
        record.setdefault("enabled", True)
        if not record.get("id"):
            record["id"] = fallback_id
        if inherited_parent is not None:
            record["parent_block_id"] = inherited_parent

        if is_container(record.get("type")):
            embedded = _embedded_children(record)
            _strip_embedded(record)
            # Rows that already point at this container win over a stale embedded copy.
            if embedded and record["id"] not in explicit_parents:
                for index, child in enumerate(embedded):
                    child = dict(child)
                    child.setdefault("position", index)
                    nested = child.pop("blocks", None)
                    if nested and is_container(child.get("type")):
                        child.setdefault("settings", {})
                        child["settings"] = {**(child.get("settings") or {}), "blocks": nested}
                    pending.append((child, record["id"], f"{record['id']}.{index}"))

        record.pop("blocks", None)
        records.append(record)
    return records


def _reaches_root(block_id: str, parents: Mapping[str, Optional[str]]) -> bool:
    seen = set()
    current: Optional[str] = block_id
    while current is not None:
        if current in seen:
            return False
        seen.add(current)
        current = parents.get(current)
    return True


def nest(flat_rows: List[Mapping[str, Any]]) -> List[Node]:
    """
    Build the nested tree from flat records.

    Each level is sorted by position and renumbered from 0. A record whose
    parent is missing, or whose parent chain loops, is attached at the top
    level so nothing is dropped.
    """
    records = _expand(list(flat_rows))
    by_id: Dict[str, Node] = {}
    for record in records:
        by_id.setdefault(record["id"], record)

    parents: Dict[str, Optional[str]] = {}
    for block_id, record in by_id.items():
        parent = record.get("parent_block_id")
        if parent not in by_id or parent == block_id:
            parent = None
        parents[block_id] = parent

    # Judge every chain against the original links before detaching any.
    looping = [block_id for block_id in parents if not _reaches_root(block_id, parents)]
    for block_id in looping:
        parents[block_id] = None

    children: Dict[Optional[str], List[Node]] = {}
    for index, (block_id, record) in enumerate(by_id.items()):
        record["_order"] = index
        children.setdefault(parents[block_id], []).append(record)

    def build(parent_id: Optional[str]) -> List[Node]:
        level = sorted(
            children.get(parent_id, []),
            key=lambda r: (r.get("position") if r.get("position") is not None else float("inf"), r["_order"]),
        )
        nodes = []
        for position, record in enumerate(level):
            node = {k: v for k, v in record.items() if k != "_order"}
            node["position"] = position
            node["parent_block_id"] = parent_id
            node["blocks"] = build(record["id"])
            nodes.append(node)
        return nodes

    return build(None)


def flatten(tree: List[Mapping[str, Any]]) -> List[Node]:
    """
    Depth-first flattening with one global position counter.

    Every emitted record keeps its parent id and loses its ``blocks`` list.
    """
    counter = itertools.count()
    records: List[Node] = []

    def walk(nodes: List[Mapping[str, Any]], parent_id: Optional[str]) -> None:
        level = sorted(
            enumerate(nodes),
            key=lambda pair: (pair[1].get("position") if pair[1].get("position") is not None else float("inf"), pair[0]),
        )
        for _, node in level:
            record = {k: copy.deepcopy(v) for k, v in node.items() if k != "blocks"}
            record["position"] = next(counter)
            record["parent_block_id"] = parent_id
            records.append(record)
            walk(node.get("blocks") or [], record.get("id"))

    walk(list(tree), None)
    return records


def find_node(tree: List[Mapping[str, Any]], block_id: str) -> Optional[Mapping[str, Any]]:
    for node in tree:
        if node.get("id") == block_id:
            return node
        found = find_node(node.get("blocks") or [], block_id)
        if found is not None:
            return found
    return None


def prune_disabled(tree: List[Node]) -> List[Node]:
    """Drop disabled nodes (and their subtrees), renumbering what is left."""
    kept = []
    for node in tree:
        if node.get("enabled", True) is False:
            continue
        node = dict(node)
        node["blocks"] = prune_disabled(node.get("blocks") or [])
        kept.append(node)
    for position, node in enumerate(kept):
        node["position"] = position
    return kept
