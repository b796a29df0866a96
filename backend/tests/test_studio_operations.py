import pytest
from sqlalchemy.exc import OperationalError

from themestudio.application.studio import reorder_siblings as reorder_module
from themestudio.application.studio.add_section import add_section
from themestudio.application.studio.delete_block import delete_block
from themestudio.application.studio.delete_section import delete_section
from themestudio.application.studio.duplicate_block import duplicate_block
from themestudio.application.studio.duplicate_section import duplicate_section
from themestudio.application.studio.insert_block import insert_block
from themestudio.application.studio.move_block import move_block
from themestudio.application.studio.reorder_siblings import parse_scope, reorder_siblings
from themestudio.application.studio.snapshots import create_snapshot, list_snapshots, restore_snapshot
from themestudio.application.studio.sync_theme import sync_theme_to_store
from themestudio.application.studio.update_block import update_block
from themestudio.application.studio.update_section import update_section
from themestudio.application.studio.update_template_settings import update_template_settings
from themestudio.domain.exceptions import (
    NestingRejected,
    NotFound,
    PersistenceConflict,
    Unauthorized,
    ValidationError,
)
from themestudio.domain.positions import is_contiguous, ordered
from themestudio.models import AuditLog, Block, SectionInstance, Template


@pytest.fixture
def synced(store):
    sync_theme_to_store(store_id=store.id, theme_code="base", template_type="homepage")
    return store


@pytest.fixture
def actor(owner, synced):
    return {"store_id": synced.id, "actor_id": owner.id}


def sections(store):
    template = Template.query.filter_by(store_id=store.id, template_type="homepage").one()
    return ordered(template.sections)


def hero(store):
    return sections(store)[0]


def top_blocks(section):
    return ordered(b for b in section.blocks if b.parent_block_id is None)


def children(section, parent):
    return ordered(b for b in section.blocks if b.parent_block_id == parent.id)


def container_of(section):
    return next(b for b in top_blocks(section) if b.block_type == "container")


# ------------------------
# Sections
# ------------------------

def test_add_section_shifts_siblings_and_applies_defaults(synced, actor):
    section = add_section(template_type="homepage", section_type="newsletter", position=1, **actor)

    types = [s.section_type for s in sections(synced)]
    assert types == ["hero", "newsletter", "featured-products", "rich-text", "newsletter"]
    assert section.position == 1
    assert section.settings == {"title": "Join our newsletter", "buttonText": "Subscribe"}
    assert AuditLog.query.filter_by(action="section.create", entity_id=section.id).count() == 1


def test_add_section_validation(synced, actor):
    with pytest.raises(ValidationError):
        add_section(template_type="homepage", section_type="hero", settings={"overlayOpacity": 101}, **actor)
    with pytest.raises(ValidationError):
        add_section(template_type="homepage", section_type="header", **actor)
    with pytest.raises(ValidationError):
        add_section(template_type="homepage", global_slot="header", section_type="header", **actor)
    with pytest.raises(ValidationError):
        add_section(global_slot="sidebar", **actor)
    assert len(sections(synced)) == 4


def test_mutations_require_the_owner(synced, stranger):
    with pytest.raises(Unauthorized):
        add_section(store_id=synced.id, actor_id=stranger.id, template_type="homepage", section_type="hero")
    with pytest.raises(Unauthorized):
        delete_section(store_id=synced.id, actor_id=stranger.id, section_id=hero(synced).id)


def test_rows_of_another_store_are_not_found(synced, actor, other_store, stranger):
    sync_theme_to_store(store_id=other_store.id, theme_code="base", template_type="homepage")
    foreign = sections(other_store)[0]

    with pytest.raises(NotFound):
        update_section(section_id=foreign.id, settings={"title": "Mine now"}, **actor)


def test_update_section_merges_settings(synced, actor):
    section = update_section(section_id=hero(synced).id, settings={"title": "Hi"}, **actor)

    assert section.settings["title"] == "Hi"
    assert section.settings["height"] == "large"

    section = update_section(section_id=section.id, enabled=False, **actor)
    assert section.enabled is False

    with pytest.raises(ValidationError):
        update_section(section_id=section.id, **actor)


def test_delete_section_compacts(synced, actor):
    doomed = sections(synced)[1]
    block_count = Block.query.count()

    delete_section(section_id=doomed.id, **actor)

    remaining = sections(synced)
    assert [s.section_type for s in remaining] == ["hero", "rich-text", "newsletter"]
    assert is_contiguous(remaining)
    assert Block.query.count() == block_count

    delete_section(section_id=remaining[0].id, **actor)
    assert Block.query.count() == block_count - 4


def test_duplicate_section_deep_copies_blocks(synced, actor):
    original = hero(synced)

    clone = duplicate_section(section_id=original.id, **actor)

    assert [s.id for s in sections(synced)][:2] == [original.id, clone.id]
    assert is_contiguous(sections(synced))
    assert clone.settings == original.settings

    copied = container_of(clone)
    assert copied.id != container_of(original).id
    assert [b.settings["text"] for b in children(clone, copied)] == ["Shop women", "Shop men"]
    assert len(clone.blocks) == len(original.blocks) == 4


def test_duplicate_middle_section_lands_right_after_it(synced, actor):
    add_section(template_type="homepage", section_type="newsletter", **actor)
    original = sections(synced)[2]

    clone = duplicate_section(section_id=original.id, **actor)

    after = sections(synced)
    assert [s.position for s in after] == [0, 1, 2, 3, 4, 5]
    assert clone.position == 3
    assert after[2].id == original.id
    assert after[3].id == clone.id


# ------------------------
# Blocks
# ------------------------

def test_insert_block_into_section_and_container(synced, actor):
    section = hero(synced)
    container = container_of(section)

    first = insert_block(section_id=section.id, block_type="text", position=0, **actor)
    assert [b.id for b in top_blocks(section)][0] == first.id
    assert first.settings["text"] == "Text content"

    nested = insert_block(parent_block_id=container.id, block_type="image", position=1, **actor)
    assert nested.parent_block_id == container.id
    assert [b.block_type for b in children(section, container)] == ["button", "image", "button"]


def test_insert_container_with_embedded_children(synced, actor):
    section = sections(synced)[2]

    block = insert_block(
        section_id=section.id,
        block_type="container",
        settings={"direction": "row", "blocks": [{"type": "text"}, {"type": "button"}]},
        **actor,
    )

    assert "blocks" not in block.settings
    assert [b.block_type for b in children(section, block)] == ["text", "button"]


def test_nesting_rules_on_insert(synced, actor):
    section = hero(synced)
    container = container_of(section)
    heading = top_blocks(section)[0]

    with pytest.raises(NestingRejected):
        insert_block(parent_block_id=heading.id, block_type="text", **actor)

    inner = insert_block(parent_block_id=container.id, block_type="container", **actor)
    insert_block(parent_block_id=inner.id, block_type="text", **actor)

    with pytest.raises(NestingRejected):
        insert_block(parent_block_id=inner.id, block_type="container", **actor)


def test_update_and_delete_block(synced, actor):
    section = hero(synced)
    container = container_of(section)
    heading = top_blocks(section)[0]

    updated = update_block(block_id=heading.id, settings={"level": "h3"}, **actor)
    assert updated.settings["level"] == "h3"
    with pytest.raises(ValidationError):
        update_block(block_id=heading.id, settings={"level": "h9"}, **actor)
    with pytest.raises(ValidationError):
        update_block(block_id=container.id, settings={"blocks": []}, **actor)

    delete_block(block_id=container.id, **actor)

    assert [b.block_type for b in hero(synced).blocks] == ["heading"]
    assert is_contiguous(top_blocks(hero(synced)))


def test_duplicate_block_copies_subtree(synced, actor):
    section = hero(synced)
    container = container_of(section)

    clone = duplicate_block(block_id=container.id, **actor)

    assert [b.id for b in top_blocks(section)] == [top_blocks(section)[0].id, container.id, clone.id]
    assert [b.settings["text"] for b in children(section, clone)] == ["Shop women", "Shop men"]


def test_move_block_between_scopes(synced, actor):
    section = hero(synced)
    container = container_of(section)
    heading = top_blocks(section)[0]

    moved = move_block(block_id=heading.id, target_parent_id=container.id, position=0, **actor)

    assert moved.parent_block_id == container.id
    assert [b.block_type for b in children(section, container)] == ["heading", "button", "button"]
    assert [b.id for b in top_blocks(section)] == [container.id]
    assert top_blocks(section)[0].position == 0

    other = sections(synced)[2]
    move_block(block_id=container.id, target_section_id=other.id, position=0, **actor)

    assert hero(synced).blocks == []
    assert [b.block_type for b in top_blocks(other)] == ["container", "text"]
    assert all(b.section_id == other.id for b in other.blocks)
    assert len(other.blocks) == 5


def test_move_block_rejects_cycles_and_is_noop_in_place(synced, actor, sql_writes):
    section = hero(synced)
    container = container_of(section)
    button = children(section, container)[0]

    with pytest.raises(NestingRejected):
        move_block(block_id=container.id, target_parent_id=container.id, **actor)
    with pytest.raises(NestingRejected):
        move_block(block_id=container.id, target_parent_id=button.id, **actor)

    sql_writes.clear()
    move_block(block_id=button.id, target_parent_id=container.id, position=0, **actor)
    assert sql_writes == []


# ------------------------
# Reorder
# ------------------------

def test_reorder_sections(synced, actor):
    ids = [s.id for s in sections(synced)]

    result = reorder_siblings(scope="template:homepage", ordered_ids=list(reversed(ids)), **actor)

    assert result["changed"] == 4
    assert [s.id for s in sections(synced)] == list(reversed(ids))


def test_reorder_blocks_of_container(synced, actor):
    section = hero(synced)
    container = container_of(section)
    ids = [b.id for b in children(section, container)]

    reorder_siblings(
        scope=f"block:{container.id}",
        ordered_ids=[{"id": ids[1], "position": 0}, {"id": ids[0], "position": 1}],
        **actor,
    )

    assert [b.id for b in children(hero(synced), container)] == [ids[1], ids[0]]


def test_reorder_with_stale_id_is_a_conflict(synced, actor):
    ids = [s.id for s in sections(synced)]

    with pytest.raises(PersistenceConflict) as exc:
        reorder_siblings(scope="template:homepage", ordered_ids=ids[:-1] + ["deleted-elsewhere"], **actor)

    assert exc.value.details["stale_ids"] == ["deleted-elsewhere"]
    assert [s.id for s in sections(synced)] == ids


def test_reorder_is_all_or_nothing(synced, actor, monkeypatch):
    ids = [s.id for s in sections(synced)]

    def failing_log_action(**kwargs):
        raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))

    monkeypatch.setattr(reorder_module, "log_action", failing_log_action)

    with pytest.raises(PersistenceConflict):
        reorder_siblings(scope="template:homepage", ordered_ids=list(reversed(ids)), **actor)

    assert [s.id for s in sections(synced)] == ids
    assert [s.position for s in sections(synced)] == [0, 1, 2, 3]


@pytest.mark.parametrize("scope", ["", "page:home", "template:", "global:x", None])
def test_parse_scope_rejects_bad_scopes(scope):
    with pytest.raises(ValidationError):
        parse_scope(scope)


# ------------------------
# Template settings & snapshots
# ------------------------

def test_update_template_settings(synced, actor):
    template = update_template_settings(template_type="homepage", settings={"pageWidth": "narrow"}, **actor)
    assert template.settings == {"pageWidth": "narrow"}

    created = update_template_settings(template_type="blog", settings={"layout": "list"}, **actor)
    assert created.sync_status == "uninitialized"


def test_snapshot_and_restore(synced, actor):
    before = [(s.section_type, len(s.blocks)) for s in sections(synced)]
    snapshot = create_snapshot(template_type="homepage", **actor)
    assert snapshot.version == 1

    delete_section(section_id=hero(synced).id, **actor)
    add_section(template_type="homepage", section_type="rich-text", position=0, **actor)

    restore_snapshot(template_type="homepage", version=1, **actor)

    assert [(s.section_type, len(s.blocks)) for s in sections(synced)] == before
    assert is_contiguous(sections(synced))
    versions = [(s.version, s.reason) for s in list_snapshots(template_type="homepage", **actor)]
    assert versions == [(2, "restore"), (1, "manual")]

    with pytest.raises(NotFound):
        restore_snapshot(template_type="homepage", version=42, **actor)


def test_global_section_override_scope(synced, actor):
    header = add_section(global_slot="header", settings={"sticky": False}, **actor)
    footer = add_section(global_slot="footer", position=0, **actor)

    globals_ = ordered(SectionInstance.query.filter(SectionInstance.global_slot.isnot(None)).all())
    assert [s.id for s in globals_] == [footer.id, header.id]
    assert header.template_id is None

    with pytest.raises(PersistenceConflict):
        add_section(global_slot="header", **actor)
    with pytest.raises(ValidationError):
        duplicate_section(section_id=header.id, **actor)

    reorder_siblings(scope="global", ordered_ids=[header.id, footer.id], **actor)
    delete_section(section_id=header.id, **actor)

    remaining = SectionInstance.query.filter(SectionInstance.global_slot.isnot(None)).all()
    assert [(s.id, s.position) for s in remaining] == [(footer.id, 0)]
