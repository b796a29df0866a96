from typing import Any, Dict, Optional
from themestudio.models.section import SectionInstance
from themestudio.domain.exceptions import ValidationError
from themestudio.domain.settings import validate_section_settings
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import active_theme, get_section


def update_section(
    *,
    store_id: str,
    actor_id: str,
    section_id: str,
    settings: Optional[Dict[str, Any]] = None,
    enabled: Optional[bool] = None,
    replace: bool = False,
) -> SectionInstance:
    """
    Merge ``settings`` into the section's settings (or replace them outright
    with ``replace=True``) and/or toggle ``enabled``.

    An update that changes nothing writes nothing.
    """
    if settings is None and enabled is None:
        raise ValidationError("No valid fields provided for update")
    if settings is not None and not isinstance(settings, dict):
        raise ValidationError("Settings must be a JSON object")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValidationError("Enabled must be a boolean")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    section = get_section(store.id, section_id, lock=True)

    changed_fields: list[str] = []
    new_settings = section.settings or {}
    if settings is not None:
        new_settings = dict(settings) if replace else {**new_settings, **settings}
        validate_section_settings(active_theme(store), section.section_type, new_settings)
        if new_settings != (section.settings or {}):
            changed_fields.append("settings")

    if enabled is not None and enabled != section.enabled:
        changed_fields.append("enabled")

    if not changed_fields:
        return section

    with transactional():
        if "settings" in changed_fields:
            section.settings = new_settings
        if "enabled" in changed_fields:
            section.enabled = enabled

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="section.update",
            entity_type="section",
            entity_id=section.id,
            payload={"fields": changed_fields},
        )

    if section.global_slot is not None:
        clear_global_sections_cache(store.id)

    return section
