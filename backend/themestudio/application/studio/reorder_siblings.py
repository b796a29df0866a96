# themestudio/application/studio/reorder_siblings.py
from typing import Any, Dict, List, Sequence, Tuple
from themestudio.extensions import db
from themestudio.domain.exceptions import NotFound, ValidationError
from themestudio.domain.invariants.template import assert_global_sections, assert_template
from themestudio.domain.invariants.section import assert_section
from themestudio.domain.nesting import is_container
from themestudio.domain.positions import apply_reorder
from themestudio.services.global_sections import clear_global_sections_cache, global_sections_of
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import block_siblings, get_block, get_section, get_template

SCOPE_KINDS = ("template", "global", "section", "block")


def parse_scope(scope: str) -> Tuple[str, str | None]:
    """
    ``template:<type>``, ``global``, ``section:<id>`` (top-level blocks) or
    ``block:<container id>`` (the container's children).
    """
    if not isinstance(scope, str) or not scope:
        raise ValidationError("Scope is required")

    kind, _, ref = scope.partition(":")
    if kind not in SCOPE_KINDS:
        raise ValidationError(f"Unknown reorder scope: {scope}")
    if kind == "global":
        if ref:
            raise ValidationError("The global scope takes no reference")
        return kind, None
    if not ref:
        raise ValidationError(f"Scope '{kind}' needs a reference, e.g. '{kind}:<id>'")
    return kind, ref


def reorder_siblings(
    *,
    store_id: str,
    actor_id: str,
    scope: str,
    ordered_ids: Sequence[Any],
) -> Dict[str, Any]:
    """
    Apply a complete new ordering to one parent scope in a single transaction.

    Either every sibling gets its new position or, on any failure, none does.
    """
    kind, ref = parse_scope(scope)
    store = load_owned_store(store_id=store_id, actor_id=actor_id)

    section = None
    with transactional():
        if kind == "template":
            template = get_template(store.id, ref, lock=True)
            siblings: List[Any] = list(template.sections)
        elif kind == "global":
            siblings = global_sections_of(store.id)
        elif kind == "section":
            section = get_section(store.id, ref, lock=True)
            siblings = block_siblings(section, None)
        else:
            container = get_block(store.id, ref, lock=True)
            if not is_container(container.block_type):
                raise NotFound(f"Block {ref} is not a container")
            section = container.section
            siblings = block_siblings(section, container.id)

        changed = apply_reorder(siblings, ordered_ids)
        db.session.flush()

        if kind == "template":
            assert_template(template)
        elif kind == "global":
            assert_global_sections(siblings)
        else:
            assert_section(section)

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="siblings.reorder",
            entity_type="scope",
            entity_id=(ref or kind)[:36],
            payload={"scope": scope, "order": [str(s.id) for s in sorted(siblings, key=lambda s: s.position)]},
        )

    if kind == "global" or (section is not None and section.global_slot is not None):
        clear_global_sections_cache(store.id)

    return {"scope": scope, "changed": len(changed)}
