def normalize_block(block, admin=False):
    base = {
        "id": block.id,
        "type": block.block_type,
        "position": block.position,
        "enabled": bool(block.enabled),
        "parent_block_id": block.parent_block_id,
        "settings": block.settings or {},
    }

    if admin:
        base["section_id"] = block.section_id
        base["created_at"] = block.created_at.isoformat() if block.created_at else None
        base["updated_at"] = block.updated_at.isoformat() if block.updated_at else None

    return base
