"""Platform defaults applied to a newly inserted block before theme defaults."""
import copy
from typing import Any, Dict

from .settings import defaults_for

PLATFORM_BLOCK_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "heading": {
        "text": "Heading",
        "level": "h2",
        "alignment": "left",
        "fontWeight": "font-bold",
    },
    "text": {
        "text": "Text content",
        "alignment": "left",
        "lineHeight": "leading-relaxed",
    },
    "image": {
        "src": "/placeholder-image.svg",
        "alt": "Image",
        "width": 800,
        "height": 600,
        "objectFit": "object-cover",
    },
    "button": {
        "text": "Button",
        "href": "#",
        "variant": "primary",
        "size": "medium",
        "openInNewTab": False,
    },
    "spacer": {"height": "h-8"},
    "divider": {"style": "solid", "thickness": "border-t", "width": "w-full"},
    "container": {"direction": "column", "gap": 16, "alignment": "stretch"},
    "logo": {"src": "/logo.svg", "text": "STORE", "alt": "Store Logo", "width": 120, "link": "/"},
    "navigation": {
        "items": [
            {"text": "Home", "href": "/"},
            {"text": "Products", "href": "/products"},
            {"text": "About", "href": "/about"},
            {"text": "Contact", "href": "/contact"},
        ],
        "layout": "horizontal",
    },
    "search": {"placeholder": "Search products...", "showIcon": True},
    "cart": {"showIcon": True, "showCount": True, "text": "Cart"},
    "social": {"links": []},
}


def default_block_settings(block_type: str, theme=None) -> Dict[str, Any]:
    """Platform defaults overlaid with the theme's declared schema defaults."""
    settings = copy.deepcopy(PLATFORM_BLOCK_DEFAULTS.get(block_type, {}))
    if theme is not None:
        settings.update(defaults_for(theme.block_schema(block_type)))
    return settings
