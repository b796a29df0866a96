def normalize_template(template, admin=False):
    data = {
        "id": template.id,
        "template_type": template.template_type,
        "name": template.name,
        "enabled": bool(template.enabled),
        "settings": template.settings or {},
    }

    if admin:
        data["sync"] = {
            "status": template.sync_status,
            "theme": template.synced_theme,
            "version": template.synced_version,
            "synced_at": template.synced_at.isoformat() if template.synced_at else None,
        }

    return data


def normalize_snapshot(snapshot, include_content=False):
    data = {
        "id": snapshot.id,
        "template_id": snapshot.template_id,
        "version": snapshot.version,
        "reason": snapshot.reason,
        "created_by": snapshot.created_by,
        "created_at": snapshot.created_at.isoformat() if snapshot.created_at else None,
    }
    if include_content:
        data["snapshot"] = snapshot.snapshot
    return data
