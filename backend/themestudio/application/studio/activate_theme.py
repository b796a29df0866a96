import logging
from typing import Any, Dict
from themestudio.extensions import themes
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .sync_theme import sync_theme_to_store

logger = logging.getLogger(__name__)


def activate_theme(*, store_id: str, actor_id: str, theme_code: str) -> Dict[str, Any]:
    """
    Switch the store to ``theme_code`` and sync every template the theme
    declares. Sections the owner already customized are kept.
    """
    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    theme = themes.load_theme_definition(theme_code)
    previous = store.active_theme

    if previous != theme.code:
        with transactional():
            store.active_theme = theme.code
            log_action(
                store_id=store.id,
                actor_id=actor_id,
                action="store.theme",
                entity_type="store",
                entity_id=store.id,
                payload={"from": previous, "to": theme.code, "version": theme.version},
            )
        clear_global_sections_cache(store.id)
        logger.info("Store %s switched theme %s -> %s", store.id, previous, theme.code)

    results = [
        sync_theme_to_store(
            store_id=store.id,
            theme_code=theme.code,
            template_type=template_type,
            actor_id=actor_id,
        ).to_dict()
        for template_type in sorted(theme.templates)
    ]

    return {"theme": theme.code, "version": theme.version, "previous": previous, "templates": results}
