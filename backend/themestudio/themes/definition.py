from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

CONTAINER = "container"
LEGACY_CHILD_KEYS = ("blocks", "childBlocks")


class SettingField(BaseModel):
    """One entry of a section or block settings schema."""

    model_config = ConfigDict(extra="allow")

    key: str
    type: str = "text"
    label: Optional[str] = None
    default: Any = None
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    options: List[Any] = Field(default_factory=list)

    def option_values(self) -> List[Any]:
        return [
            option.get("value") if isinstance(option, dict) else option
            for option in self.options
        ]


class BlockDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str
    enabled: bool = True
    settings: Dict[str, Any] = Field(default_factory=dict)
    blocks: List[BlockDefinition] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def lift_embedded_children(cls, data: Any) -> Any:
        # Containers in older theme files keep children inside settings.
        if not isinstance(data, dict) or data.get("type") != CONTAINER:
            return data

        settings = dict(data.get("settings") or {})
        embedded = None
        for key in LEGACY_CHILD_KEYS:
            value = settings.pop(key, None)
            if embedded is None and isinstance(value, list):
                embedded = value

        data = {**data, "settings": settings}
        if embedded and not data.get("blocks"):
            data["blocks"] = embedded
        return data

    def to_node(self, position: int, fallback_id: str) -> Dict[str, Any]:
        node_id = self.id or fallback_id
        return {
            "id": node_id,
            "type": self.type,
            "position": position,
            "enabled": self.enabled,
            "settings": dict(self.settings),
            "blocks": [
                child.to_node(index, f"{node_id}.{index}")
                for index, child in enumerate(self.blocks)
            ],
        }


BlockDefinition.model_rebuild()


class SectionDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    type: str
    enabled: bool = True
    settings: Dict[str, Any] = Field(default_factory=dict)
    blocks: List[BlockDefinition] = Field(default_factory=list)

    def block_tree(self, prefix: str) -> List[Dict[str, Any]]:
        return [
            block.to_node(index, f"{prefix}.b{index}")
            for index, block in enumerate(self.blocks)
        ]


class TemplateDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    type: str
    settings: Dict[str, Any] = Field(default_factory=dict)
    sections: List[SectionDefinition] = Field(default_factory=list)


class ThemeDefinition(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: str
    name: str
    version: str = "1.0.0"
    section_schemas: Dict[str, List[SettingField]] = Field(default_factory=dict)
    block_schemas: Dict[str, List[SettingField]] = Field(default_factory=dict)
    global_sections: Dict[str, SectionDefinition] = Field(default_factory=dict)
    templates: Dict[str, TemplateDefinition] = Field(default_factory=dict)

    def section_schema(self, section_type: str) -> Optional[List[SettingField]]:
        return self.section_schemas.get(section_type)

    def block_schema(self, block_type: str) -> Optional[List[SettingField]]:
        return self.block_schemas.get(block_type)
