import pytest

from themestudio.application.storefront.compile_template import get_compiled_template
from themestudio.application.studio import sync_theme as sync_module
from themestudio.application.studio.add_section import add_section
from themestudio.application.studio.analyze_template import analyze_template
from themestudio.application.studio.sync_theme import sync_guard, sync_theme_to_store
from themestudio.domain.exceptions import NotFound, SyncInProgress, Unauthorized
from themestudio.domain.positions import is_contiguous, ordered
from themestudio.models import Block, SectionInstance, Template, TemplateSnapshot

BODY = ["hero", "featured-products", "rich-text", "newsletter"]


def sync(store, **kwargs):
    kwargs.setdefault("theme_code", "base")
    kwargs.setdefault("template_type", "homepage")
    return sync_theme_to_store(store_id=store.id, **kwargs)


def homepage(store):
    return Template.query.filter_by(store_id=store.id, template_type="homepage").one()


def section_types(store):
    return [s.section_type for s in ordered(homepage(store).sections)]


def test_first_sync_materializes_declared_sections(store):
    result = sync(store)

    assert result.status == "synced"
    assert result.sections_created == 4
    template = homepage(store)
    assert template.sync_status == "synced"
    assert (template.synced_theme, template.synced_version) == ("base", "1.2.0")
    # Header and footer are global sections, never template rows.
    assert section_types(store) == BODY

    hero = ordered(template.sections)[0]
    top = ordered(b for b in hero.blocks if b.parent_block_id is None)
    assert [b.block_type for b in top] == ["heading", "container"]
    children = ordered(b for b in hero.blocks if b.parent_block_id == top[1].id)
    assert [b.settings["text"] for b in children] == ["Shop women", "Shop men"]
    assert [b.position for b in children] == [0, 1]


def test_second_sync_writes_nothing(store, sql_writes):
    sync(store)
    sql_writes.clear()

    result = sync(store)

    assert (result.sections_created, result.sections_updated, result.sections_removed) == (0, 0, 0)
    assert sql_writes == []


def test_sync_keeps_customizations_and_fills_missing_defaults(store, owner, db):
    sync(store)
    hero = ordered(homepage(store).sections)[0]
    hero.settings = {"title": "My shop"}
    db.session.commit()

    result = sync(store)

    assert result.sections_updated == 1
    hero = ordered(homepage(store).sections)[0]
    assert hero.settings["title"] == "My shop"
    assert hero.settings["height"] == "large"
    assert hero.settings["overlayOpacity"] == 40


def test_owner_added_sections_survive_and_cause_no_writes(store, owner, sql_writes):
    sync(store)
    add_section(store_id=store.id, actor_id=owner.id, template_type="homepage",
                section_type="rich-text", position=0, settings={"heading": "Mine"})
    sql_writes.clear()

    result = sync(store)

    assert result.sections_created == 0
    assert sql_writes == []
    assert section_types(store) == ["rich-text"] + BODY


def test_deleted_declared_section_is_recreated_at_its_index(store, db):
    sync(store)
    template = homepage(store)
    featured = ordered(template.sections)[1]
    template.sections.remove(featured)
    for position, section in enumerate(ordered(template.sections)):
        section.position = position
    db.session.commit()

    result = sync(store)

    assert result.sections_created == 1
    assert section_types(store) == BODY


def test_failed_sync_leaves_syncing_and_retry_resumes(store, monkeypatch):
    def boom(template, plan):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(sync_module, "apply_plan", boom)
    with pytest.raises(RuntimeError):
        sync(store)

    template = homepage(store)
    assert template.sync_status == "syncing"
    assert template.sections == []

    monkeypatch.undo()
    result = sync(store)

    assert result.status == "synced"
    assert section_types(store) == BODY
    assert SectionInstance.query.filter_by(store_id=store.id).count() == 4


def test_storefront_keeps_theme_layout_after_failed_first_sync(store, monkeypatch):
    def boom(template, plan):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(sync_module, "apply_plan", boom)
    with pytest.raises(RuntimeError):
        sync(store)

    compiled = get_compiled_template(store_id=store.id, template_type="homepage")
    assert homepage(store).sync_status == "syncing"
    assert compiled["source"] == "theme"
    assert [s["type"] for s in compiled["sections"]] == BODY

    monkeypatch.undo()
    sync(store)

    compiled = get_compiled_template(store_id=store.id, template_type="homepage")
    assert compiled["source"] == "store"
    assert [s["type"] for s in compiled["sections"]] == BODY


def test_concurrent_sync_is_rejected(store):
    with sync_guard(store.id, "homepage"):
        with pytest.raises(SyncInProgress):
            sync(store)

    # Other templates are not blocked, and the guard is released afterwards.
    with sync_guard(store.id, "homepage"):
        sync(store, template_type="product")
    assert sync(store).status == "synced"


def test_duplicate_sections_are_removed(store, owner, db):
    sync(store)
    template = homepage(store)
    db.session.add(SectionInstance(store_id=store.id, template_id=template.id,
                                   section_type="hero", position=0, settings={}))
    db.session.commit()

    report = analyze_template(store_id=store.id, actor_id=owner.id, template_type="homepage")
    assert report["duplicates"] == [
        {"template_type": "homepage", "section_type": "hero", "position": 0, "count": 2}
    ]

    result = sync(store)

    assert result.sections_removed == 1
    assert result.sections_created == 0
    assert section_types(store) == BODY
    assert is_contiguous(homepage(store).sections)
    assert analyze_template(store_id=store.id, actor_id=owner.id)["duplicates"] == []


def test_full_reset_snapshots_then_rebuilds(store, owner, db):
    sync(store)
    add_section(store_id=store.id, actor_id=owner.id, template_type="homepage", section_type="newsletter")

    result = sync(store, full_reset=True, actor_id=owner.id)

    assert result.full_reset is True
    assert result.sections_removed == 5
    assert result.sections_created == 4
    assert section_types(store) == BODY

    snapshot = TemplateSnapshot.query.filter_by(store_id=store.id).one()
    assert snapshot.reason == "full_reset"
    assert snapshot.version == result.snapshot_version == 1
    assert len(snapshot.snapshot["sections"]) == 5


def test_dry_run_writes_nothing(store, sql_writes):
    result = sync(store, dry_run=True)

    assert result.dry_run is True
    assert result.sections_created == 4
    assert sql_writes == []
    assert Template.query.count() == 0


def test_unknown_theme_or_template(store):
    with pytest.raises(NotFound):
        sync(store, theme_code="nope")
    with pytest.raises(NotFound):
        sync(store, template_type="blog")


def test_sync_checks_ownership_when_actor_given(store, stranger):
    with pytest.raises(Unauthorized):
        sync(store, actor_id=stranger.id)


def test_blocks_of_theme_sections_are_restored_when_missing(store, db):
    sync(store)
    product = Template.query.filter_by(store_id=store.id, template_type="product").first()
    assert product is None

    sync(store, template_type="product")
    main = ordered(Template.query.filter_by(store_id=store.id, template_type="product").one().sections)[0]
    for block in list(main.blocks):
        main.blocks.remove(block)
    db.session.commit()
    assert Block.query.filter_by(section_id=main.id).count() == 0

    result = sync(store, template_type="product")

    assert result.sections_updated == 1
    assert Block.query.filter_by(section_id=main.id).count() == 3
