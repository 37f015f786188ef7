"""
Operator configuration for player export visibility.

Two layers of configuration feed the export cascade:

- ``PlayerExportFieldConfig``: per-category settings stored on the campaign
  (whole-category visibility plus per-field visibility for each entity type).
- Per-entity overrides: a ``{field_key: bool}`` map stored in
  ``entity.metadata[PLAYER_EXPORT_FIELD_OVERRIDES_KEY]``.

Both layers share one key space: custom field keys, plus reserved core keys
(``__core_description`` ...) that govern built-in entity attributes.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel


PLAYER_EXPORT_FIELD_OVERRIDES_KEY = "playerExportFieldOverrides"
CORE_FIELD_PREFIX = "__core_"


class CoreField(str, Enum):
    """Built-in entity attributes that can be hidden like custom fields."""

    DESCRIPTION = "description"
    TAGS = "tags"
    SUMMARY = "summary"
    IMAGE_URL = "imageUrl"
    RELATIONSHIPS = "relationships"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


def core_field_key(field: CoreField) -> str:
    """Return the override key for a core attribute, e.g. ``__core_tags``."""
    return f"{CORE_FIELD_PREFIX}{field.value}"


def is_core_field_key(key: str) -> bool:
    return key.startswith(CORE_FIELD_PREFIX)


class PlayerExportFieldConfig(BaseModel):
    """
    Per-category player export configuration.

    ``field_visibility[entity_type][field_key]`` forces a field in or out for
    every entity of that type. ``category_visibility[entity_type]`` sets the
    default visibility of whole entities of that type. Missing keys mean "no
    setting"; the cascade falls through to the next layer.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_visibility: Dict[str, Dict[str, StrictBool]] = Field(default_factory=dict)
    category_visibility: Optional[Dict[str, StrictBool]] = None

    def field_settings_for(self, entity_type: Optional[str]) -> Optional[Dict[str, bool]]:
        if entity_type is None:
            return None
        return self.field_visibility.get(entity_type)
