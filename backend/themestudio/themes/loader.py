import json
import logging
import os
import re
import threading
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from themestudio.domain.exceptions import NotFound, ValidationError
from themestudio.domain.settings import clear_model_cache
from .definition import TemplateDefinition, ThemeDefinition

logger = logging.getLogger(__name__)

THEME_CODE_RE = re.compile(r"^[a-z0-9][a-z0-9_-]*$")
TEMPLATE_TYPE_RE = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")


class ThemeLoader:
    """
    Reads immutable theme bundles from disk:

        <THEMES_DIR>/<code>/theme.json
        <THEMES_DIR>/<code>/templates/<template_type>.json

    Parsed definitions are cached per theme code for the life of the app.
    """

    extension_name = "theme_loader"

    def __init__(self, app=None):
        self.themes_dir: Optional[str] = None
        self._cache: Dict[str, ThemeDefinition] = {}
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self.themes_dir = app.config["THEMES_DIR"]
        with self._lock:
            self._cache.clear()
        clear_model_cache()
        app.extensions[self.extension_name] = self

    def _theme_path(self, theme_code: str) -> str:
        if not theme_code or not THEME_CODE_RE.match(theme_code):
            raise NotFound(f"Theme '{theme_code}' not found")
        return os.path.join(self.themes_dir, theme_code)

    def list_themes(self) -> List[str]:
        if not self.themes_dir or not os.path.isdir(self.themes_dir):
            return []
        return sorted(
            entry
            for entry in os.listdir(self.themes_dir)
            if THEME_CODE_RE.match(entry)
            and os.path.isfile(os.path.join(self.themes_dir, entry, "theme.json"))
        )

    def list_templates(self, theme_code: str) -> List[str]:
        return sorted(self.load_theme_definition(theme_code).templates)

    def load_theme_definition(self, theme_code: str) -> ThemeDefinition:
        """Raises NotFound for unknown themes, ValidationError for malformed ones."""
        with self._lock:
            cached = self._cache.get(theme_code)
        if cached is not None:
            return cached

        theme_dir = self._theme_path(theme_code)
        manifest_path = os.path.join(theme_dir, "theme.json")
        if not os.path.isfile(manifest_path):
            raise NotFound(f"Theme '{theme_code}' not found")

        manifest = self._read_json(manifest_path)
        manifest.setdefault("code", theme_code)
        manifest["templates"] = self._read_templates(theme_dir)

        try:
            definition = ThemeDefinition.model_validate(manifest)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"Theme '{theme_code}' is malformed",
                details=exc.errors(include_url=False),
            ) from exc

        logger.debug("Loaded theme %s v%s (%d templates)", theme_code, definition.version, len(definition.templates))
        with self._lock:
            self._cache[theme_code] = definition
        return definition

    def find_theme(self, theme_code: str) -> Optional[ThemeDefinition]:
        """Read-path variant: None instead of an error."""
        try:
            return self.load_theme_definition(theme_code)
        except (NotFound, ValidationError) as exc:
            logger.warning("Theme %s unavailable: %s", theme_code, exc)
            return None

    def load_template_definition(self, theme_code: str, template_type: str) -> Optional[TemplateDefinition]:
        return self.load_theme_definition(theme_code).templates.get(template_type)

    def _read_templates(self, theme_dir: str) -> Dict[str, dict]:
        templates_dir = os.path.join(theme_dir, "templates")
        if not os.path.isdir(templates_dir):
            return {}

        templates = {}
        for filename in sorted(os.listdir(templates_dir)):
            name, ext = os.path.splitext(filename)
            if ext != ".json" or not TEMPLATE_TYPE_RE.match(name):
                continue
            data = self._read_json(os.path.join(templates_dir, filename))
            data.setdefault("type", name)
            data.setdefault("name", name.replace("-", " ").title())
            templates[name] = data
        return templates

    @staticmethod
    def _read_json(path: str) -> dict:
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Invalid JSON in {os.path.basename(path)}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValidationError(f"{os.path.basename(path)} must contain a JSON object")
        return data
