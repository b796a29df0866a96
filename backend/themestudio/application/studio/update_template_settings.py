from typing import Any, Dict
from themestudio.models.template import Template
from themestudio.domain.exceptions import ValidationError
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import active_theme, get_or_create_template


def update_template_settings(
    *,
    store_id: str,
    actor_id: str,
    template_type: str,
    settings: Dict[str, Any],
    replace: bool = False,
) -> Template:
    """Template-wide overrides layered over the theme template's own settings."""
    if not isinstance(settings, dict):
        raise ValidationError("Settings must be a JSON object")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)

    with transactional():
        template = get_or_create_template(store, template_type, theme=active_theme(store))
        current = template.settings or {}
        merged = dict(settings) if replace else {**current, **settings}
        changed = sorted(k for k in set(current) | set(merged) if current.get(k) != merged.get(k))

        if changed:
            template.settings = merged
            log_action(
                store_id=store.id,
                actor_id=actor_id,
                action="template.settings",
                entity_type="template",
                entity_id=template.id,
                payload={"keys": changed},
            )

    return template
