"""
Read path: what a store's page looks like right now.

Persisted store sections win; a template the store never synced (or has
disabled) falls back to the theme's JSON. Nothing here writes.
"""
import logging
from typing import Any, Dict, Optional

from themestudio.extensions import themes
from themestudio.models.template import Template
from themestudio.domain.lifecycle.template import SYNCED
from themestudio.domain.positions import ordered
from themestudio.domain.slots import is_global_type
from themestudio.normalizers.section import normalize_section, normalize_section_definition
from themestudio.services.global_sections import get_resolver
from themestudio.services.stores import get_store

logger = logging.getLogger(__name__)


def _uses_store_sections(template: Optional[Template]) -> bool:
    if template is None or not template.enabled:
        return False
    # A template with no sections that never finished a sync (never run, or
    # interrupted) still renders the theme's layout.
    return template.sync_status == SYNCED or bool(template.sections)


def get_compiled_template(
    *,
    store_id: str,
    template_type: str,
    theme_code: Optional[str] = None,
    include_disabled: bool = False,
) -> Dict[str, Any]:
    store = get_store(store_id)
    theme_code = theme_code or store.active_theme

    theme = themes.find_theme(theme_code)
    definition = theme.templates.get(template_type) if theme else None
    template = Template.query.filter_by(store_id=store.id, template_type=template_type).first()

    settings: Dict[str, Any] = dict(definition.settings) if definition else {}

    if _uses_store_sections(template):
        source = "store"
        settings.update(template.settings or {})
        sections = [
            normalize_section(section, admin=include_disabled, include_disabled=include_disabled)
            for section in ordered(template.sections)
            if (include_disabled or section.enabled) and not is_global_type(section.section_type)
        ]
    elif definition is not None:
        source = "theme"
        logger.info("Store %s has no %s template; serving theme %s defaults", store.id, template_type, theme_code)
        body = [s for s in definition.sections if not is_global_type(s.type)]
        sections = [
            normalize_section_definition(s, position=index, prefix=f"{template_type}.{index}")
            for index, s in enumerate(body)
            if include_disabled or s.enabled
        ]
    else:
        source = "none"
        logger.warning("No %s template for store %s in theme %s", template_type, store.id, theme_code)
        sections = []

    return {
        "template_type": template_type,
        "name": (template.name if template is not None else definition.name if definition else template_type),
        "theme": {"code": theme_code, "version": theme.version if theme else None},
        "source": source,
        "settings": settings,
        "sections": sections,
        "global_sections": get_resolver().resolve(store.id, theme_code),
    }
