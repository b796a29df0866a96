from collections import Counter
from typing import Any, Dict, Optional
from themestudio.models.template import Template
from themestudio.services.stores import load_owned_store


def analyze_template(*, store_id: str, actor_id: str, template_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Read-only health report: row counts per template and sections that share
    a (type, position) pair, which only legacy data or a failed write leaves
    behind. Running a sync removes them.
    """
    store = load_owned_store(store_id=store_id, actor_id=actor_id)

    query = Template.query.filter_by(store_id=store.id)
    if template_type is not None:
        query = query.filter_by(template_type=template_type)

    report: Dict[str, Any] = {
        "templates": 0,
        "sections": 0,
        "blocks": 0,
        "duplicates": [],
        "by_template": [],
    }

    for template in query.order_by(Template.template_type).all():
        sections = list(template.sections)
        blocks = sum(len(s.blocks) for s in sections)
        groups = Counter((s.section_type, s.position) for s in sections)
        duplicates = [
            {
                "template_type": template.template_type,
                "section_type": section_type,
                "position": position,
                "count": count,
            }
            for (section_type, position), count in sorted(groups.items(), key=lambda item: item[0][1])
            if count > 1
        ]

        report["templates"] += 1
        report["sections"] += len(sections)
        report["blocks"] += blocks
        report["duplicates"].extend(duplicates)
        report["by_template"].append({
            "template_type": template.template_type,
            "sync_status": template.sync_status,
            "synced_theme": template.synced_theme,
            "synced_version": template.synced_version,
            "sections": len(sections),
            "blocks": blocks,
            "duplicate_sections": sum(d["count"] - 1 for d in duplicates),
        })

    return report
