from typing import Any, Dict, Optional
from themestudio.models.block import Block
from themestudio.domain.exceptions import ValidationError
from themestudio.domain.settings import validate_block_settings
from themestudio.domain.tree import LEGACY_CHILD_KEYS
from themestudio.domain.nesting import is_container
from themestudio.services.global_sections import clear_global_sections_cache
from themestudio.services.stores import load_owned_store
from themestudio.utils.audit import log_action
from themestudio.utils.transaction import transactional
from .scopes import active_theme, get_block


def update_block(
    *,
    store_id: str,
    actor_id: str,
    block_id: str,
    settings: Optional[Dict[str, Any]] = None,
    enabled: Optional[bool] = None,
    replace: bool = False,
) -> Block:
    if settings is None and enabled is None:
        raise ValidationError("No valid fields provided for update")
    if settings is not None and not isinstance(settings, dict):
        raise ValidationError("Settings must be a JSON object")
    if enabled is not None and not isinstance(enabled, bool):
        raise ValidationError("Enabled must be a boolean")

    store = load_owned_store(store_id=store_id, actor_id=actor_id)
    block = get_block(store.id, block_id, lock=True)

    if settings is not None and is_container(block.block_type):
        embedded = [key for key in LEGACY_CHILD_KEYS if key in settings]
        if embedded:
            # Children are rows of their own; they change through block operations.
            raise ValidationError(
                "Container children cannot be edited through settings",
                details={"keys": embedded},
            )

    changed_fields: list[str] = []
    new_settings = block.settings or {}
    if settings is not None:
        new_settings = dict(settings) if replace else {**new_settings, **settings}
        validate_block_settings(active_theme(store), block.block_type, new_settings)
        if new_settings != (block.settings or {}):
            changed_fields.append("settings")

    if enabled is not None and enabled != block.enabled:
        changed_fields.append("enabled")

    if not changed_fields:
        return block

    with transactional():
        if "settings" in changed_fields:
            block.settings = new_settings
        if "enabled" in changed_fields:
            block.enabled = enabled

        log_action(
            store_id=store.id,
            actor_id=actor_id,
            action="block.update",
            entity_type="block",
            entity_id=block.id,
            payload={"fields": changed_fields},
        )

    if block.section.global_slot is not None:
        clear_global_sections_cache(store.id)

    return block
