"""
Campaign entity models consumed by the player export layer.

These mirror the shapes the campaign store hands over: entities with custom
field values, relationship links, and the per-type field schemas that declare
which fields live in the GM-only "hidden" section.

All models accept the camelCase names used in stored campaign documents
(``targetId``, ``playerVisible``, ``fieldDefinitions`` ...) as well as the
snake_case attribute names.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Closed set of values a custom field may hold. Resource ({"current", "max"})
# and duration ({"value", "unit"}) values travel as mappings.
FieldValue = Union[bool, int, float, str, List[Any], Dict[str, Any], None]

HIDDEN_SECTION = "hidden"


class CampaignModel(BaseModel):
    """Base for campaign document models (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldDefinition(CampaignModel):
    """Schema entry for one custom field of an entity type."""

    key: str
    label: str
    type: str = "text"
    required: bool = False
    order: int = 0
    section: Optional[str] = None  # "hidden" marks GM-only fields
    options: Optional[List[str]] = None
    help_text: Optional[str] = None
    placeholder: Optional[str] = None

    @property
    def is_hidden(self) -> bool:
        return self.section == HIDDEN_SECTION


class EntityTypeDefinition(CampaignModel):
    """Built-in or user-defined entity type with its field schema."""

    type: str
    label: str = ""
    label_plural: str = ""
    icon: Optional[str] = None
    color: Optional[str] = None
    is_built_in: bool = False
    field_definitions: List[FieldDefinition] = Field(default_factory=list)
    default_relationships: List[str] = Field(default_factory=list)


class EntityLink(CampaignModel):
    """Directed relationship from one entity to another."""

    id: str
    source_id: Optional[str] = None
    target_id: str
    target_type: str
    relationship: str
    bidirectional: bool = False
    reverse_relationship: Optional[str] = None
    strength: Optional[str] = None  # "strong" | "moderate" | "weak"
    notes: Optional[str] = None
    player_visible: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class BaseEntity(CampaignModel):
    """
    One campaign object (NPC, location, session, timeline event ...).

    ``player_visible`` is tri-state: True, False, or None when the GM never
    set it. ``metadata`` may carry per-entity export overrides under
    ``PLAYER_EXPORT_FIELD_OVERRIDES_KEY``.
    """

    id: str
    type: str
    name: str
    description: str = ""
    summary: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    fields: Dict[str, FieldValue] = Field(default_factory=dict)
    links: List[EntityLink] = Field(default_factory=list)
    notes: str = ""
    player_visible: Optional[bool] = None
    created_at: datetime
    updated_at: datetime
    metadata: Dict[str, Any] = Field(default_factory=dict)
