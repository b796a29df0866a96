from themestudio.domain.tree import flatten, nest, prune_disabled


def normalize_section(section, admin=False, include_disabled=False):
    """A persisted section with its blocks nested into a tree."""
    blocks = nest([b.to_record() for b in section.blocks])
    if not include_disabled:
        blocks = prune_disabled(blocks)

    data = {
        "id": section.id,
        "type": section.section_type,
        "position": section.position,
        "enabled": bool(section.enabled),
        "settings": section.settings or {},
        "blocks": blocks,
        "source": "store",
    }

    if section.global_slot is not None:
        data["global_slot"] = section.global_slot

    if admin:
        data["template_id"] = section.template_id
        data["updated_at"] = section.updated_at.isoformat() if section.updated_at else None

    return data


def normalize_section_definition(definition, *, position, prefix):
    """A section as the theme JSON declares it; ids are derived, not stored."""
    section_id = definition.id or prefix
    blocks = nest(flatten(definition.block_tree(section_id)))
    return {
        "id": section_id,
        "type": definition.type,
        "position": position,
        "enabled": definition.enabled,
        "settings": dict(definition.settings),
        "blocks": prune_disabled(blocks),
        "source": "theme",
    }
