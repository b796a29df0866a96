"""
Lookups shared by the studio use cases: owned rows, sibling sets and the
invariant checks each parent scope needs before commit.
"""
import copy
from typing import Dict, List, Optional

from sqlalchemy import select

from themestudio.extensions import db, themes
from themestudio.models.block import Block
from themestudio.models.section import SectionInstance
from themestudio.models.template import Template
from themestudio.domain.exceptions import NotFound
from themestudio.domain.invariants.section import assert_section
from themestudio.domain.invariants.template import assert_global_sections, assert_template
from themestudio.domain.nesting import descendants_of
from themestudio.domain.positions import ordered, renumber
from themestudio.domain.tree import flatten
from themestudio.services.global_sections import global_sections_of


def active_theme(store):
    """The store's theme definition, or None when it is missing on disk."""
    return themes.find_theme(store.active_theme)


def find_template(store_id, template_type, *, lock=False) -> Optional[Template]:
    query = select(Template).where(
        Template.store_id == store_id,
        Template.template_type == template_type,
    )
    if lock:
        query = query.with_for_update()
    return db.session.execute(query).scalar_one_or_none()


def get_template(store_id, template_type, *, lock=False) -> Template:
    template = find_template(store_id, template_type, lock=lock)
    if template is None:
        raise NotFound(f"Template '{template_type}' not found")
    return template


def get_or_create_template(store, template_type, *, theme=None) -> Template:
    """Must be called inside a transaction; a new row is added to the session."""
    template = find_template(store.id, template_type, lock=True)
    if template is not None:
        return template

    definition = theme.templates.get(template_type) if theme else None
    template = Template(
        store_id=store.id,
        template_type=template_type,
        name=definition.name if definition else template_type.replace("-", " ").title(),
        settings={},
    )
    db.session.add(template)
    return template


def get_section(store_id, section_id, *, lock=False) -> SectionInstance:
    query = select(SectionInstance).where(
        SectionInstance.id == section_id,
        SectionInstance.store_id == store_id,
    )
    if lock:
        query = query.with_for_update()
    section = db.session.execute(query).scalar_one_or_none()
    if section is None:
        raise NotFound("Section not found")
    return section


def get_block(store_id, block_id, *, lock=False) -> Block:
    query = select(Block).where(Block.id == block_id, Block.store_id == store_id)
    if lock:
        query = query.with_for_update()
    block = db.session.execute(query).scalar_one_or_none()
    if block is None:
        raise NotFound("Block not found")
    return block


def block_siblings(section, parent_block_id) -> List[Block]:
    return [b for b in section.blocks if b.parent_block_id == parent_block_id]


def parents_map(section) -> Dict[str, Optional[str]]:
    return {b.id: b.parent_block_id for b in section.blocks}


def subtree_of(section, block) -> List[Block]:
    """``block`` and every descendant, parents before children."""
    found = descendants_of(parents_map(section), block.id)
    by_id = {b.id: b for b in section.blocks}
    result = [block]
    queue = [block.id]
    while queue:
        parent_id = queue.pop(0)
        for child in ordered(b for b in by_id.values() if b.parent_block_id == parent_id):
            if child.id in found:
                result.append(child)
                queue.append(child.id)
    return result


def attach(block, parent) -> None:
    block.parent = parent
    block.parent_block_id = parent.id if parent is not None else None


def materialize_blocks(section, tree, *, parent=None, index=None) -> List[Block]:
    """
    Create rows for a nested block tree under ``parent`` (None for the
    section's top level), inserting the top-level nodes at ``index``.

    Positions are renumbered per parent scope; the tree's own positions only
    decide order.
    """
    parent_id = parent.id if parent is not None else None
    existing = ordered(block_siblings(section, parent_id))

    created: Dict[str, Block] = {}
    top: List[Block] = []
    counters: Dict[str, int] = {}
    for record in flatten(tree):
        block = Block(
            store_id=section.store_id,
            block_type=record["type"],
            enabled=record.get("enabled", True),
            settings=copy.deepcopy(record.get("settings") or {}),
        )
        owner = created.get(record.get("parent_block_id"))
        block.section = section
        db.session.add(block)
        if owner is not None:
            block.position = counters.get(owner.id, 0)
            counters[owner.id] = block.position + 1
            attach(block, owner)
        else:
            attach(block, parent)
            top.append(block)
        created[str(record["id"])] = block

    if index is None or index > len(existing):
        index = len(existing)
    index = max(index, 0)
    renumber(existing[:index] + top + existing[index:])

    return list(created.values())


def assert_section_scope(section) -> None:
    """Invariants for the parent scope ``section`` lives in, and its blocks."""
    db.session.flush()
    if section.is_global:
        assert_global_sections(global_sections_of(section.store_id))
    else:
        assert_template(section.template)
    assert_section(section)


def touches_global(*sections) -> bool:
    return any(s is not None and s.is_global for s in sections)
