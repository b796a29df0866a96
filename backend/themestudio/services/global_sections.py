"""
Resolution of store-wide sections (header, footer, announcement bar).

For each slot the store's own override wins, then the theme's declared
default, else nothing. Results are cached per (store, theme) until a global
section of that store changes or the store switches theme.
"""
import logging
from typing import Any, Dict, Optional

from flask import current_app

from themestudio.domain.positions import ordered
from themestudio.domain.slots import GLOBAL_SLOTS
from themestudio.models.section import SectionInstance
from themestudio.normalizers.section import normalize_section, normalize_section_definition

logger = logging.getLogger(__name__)

Resolved = Dict[str, Optional[Dict[str, Any]]]


class GlobalSectionResolver:
    def __init__(self, cache, themes):
        self.cache = cache
        self.themes = themes

    @staticmethod
    def cache_key(store_id, theme_code) -> str:
        return f"global-sections:{store_id}:{theme_code}"

    def resolve(self, store_id, theme_code) -> Resolved:
        key = self.cache_key(store_id, theme_code)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        theme = self.themes.find_theme(theme_code)
        if theme is None:
            logger.warning("Global sections for store %s: theme %s unavailable", store_id, theme_code)
            return {slot: None for slot in GLOBAL_SLOTS}

        overrides = {}
        for section in ordered(global_sections_of(store_id)):
            overrides.setdefault(section.global_slot, section)

        resolved: Resolved = {}
        for position, slot in enumerate(GLOBAL_SLOTS):
            override = overrides.get(slot)
            if override is not None:
                # A disabled override hides the slot rather than falling back.
                resolved[slot] = normalize_section(override) if override.enabled else None
            elif slot in theme.global_sections:
                resolved[slot] = normalize_section_definition(
                    theme.global_sections[slot],
                    position=position,
                    prefix=f"{theme.code}.{slot}",
                )
            else:
                resolved[slot] = None

        self.cache.set(key, resolved)
        return resolved

    def clear(self, store_id) -> None:
        codes = self.themes.list_themes()
        for code in codes:
            self.cache.clear(self.cache_key(store_id, code))
        logger.info("Cleared global sections cache for store %s (%d themes)", store_id, len(codes))


def global_sections_of(store_id):
    return (
        SectionInstance.query
        .filter(
            SectionInstance.store_id == store_id,
            SectionInstance.global_slot.isnot(None),
        )
        .all()
    )


def get_resolver() -> GlobalSectionResolver:
    return GlobalSectionResolver(
        current_app.extensions["global_sections_cache"],
        current_app.extensions["theme_loader"],
    )


def clear_global_sections_cache(store_id) -> None:
    get_resolver().clear(store_id)
