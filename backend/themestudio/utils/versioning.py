from themestudio.domain.positions import ordered
from themestudio.domain.tree import nest
from themestudio.models.template_snapshot import TemplateSnapshot


def snapshot_template(template):
    return {
        "template": {
            "id": template.id,
            "template_type": template.template_type,
            "name": template.name,
            "enabled": template.enabled,
            "settings": dict(template.settings or {}),
            "synced_theme": template.synced_theme,
            "synced_version": template.synced_version,
        },
        "sections": [
            {
                "id": s.id,
                "type": s.section_type,
                "position": s.position,
                "enabled": s.enabled,
                "settings": dict(s.settings or {}),
                "blocks": nest([b.to_record() for b in s.blocks]),
            }
            for s in ordered(template.sections)
        ],
    }


def next_version(template_id, store_id):
    last = (
        TemplateSnapshot.query
        .filter_by(template_id=template_id, store_id=store_id)
        .order_by(TemplateSnapshot.version.desc())
        .first()
    )
    return (last.version + 1) if last else 1
