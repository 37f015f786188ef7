"""
Visibility rules for player exports.

Decides whether whole entities and individual fields may leave the GM-only
context. Every decision runs the same cascade, highest precedence first:

1. Hardcoded vetoes (entities only): player profiles and secret/lost
   timeline events are never exported.
2. Per-entity overrides stored in the entity metadata.
3. Per-category configuration from ``PlayerExportFieldConfig``.
4. Hardcoded field rules and structural defaults.

Nothing here mutates its arguments or keeps state between calls.
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

from models.entity import BaseEntity, FieldDefinition, HIDDEN_SECTION
from models.field_visibility import (
    CoreField,
    PlayerExportFieldConfig,
    core_field_key,
)
from .entity_overrides import get_entity_overrides


logger = logging.getLogger(__name__)

PLAYER_PROFILE_TYPE = "player_profile"
TIMELINE_EVENT_TYPE = "timeline_event"
SESSION_TYPE = "session"

NOTES_FIELD = "notes"
PREPARATION_FIELD = "preparation"
KNOWN_BY_FIELD = "knownBy"

# knownBy values that keep a timeline event out of every export
SECRET_KNOWN_BY = frozenset({"secret", "lost"})


def resolve_override(
    per_entity: Optional[Mapping[str, Any]],
    per_category: Optional[Mapping[str, Any]],
    key: str,
) -> Optional[bool]:
    """
    Resolve one key against the per-entity and per-category maps.

    Only explicit booleans count; anything else falls through to the next
    layer.

    Args:
        per_entity: Overrides for a single entity, or None
        per_category: Field settings for the entity's type, or None

    Returns:
        The winning boolean, or None when neither layer decides
    """
    for layer in (per_entity, per_category):
        if layer is None:
            continue
        value = layer.get(key)
        if isinstance(value, bool):
            return value
    return None


def get_hidden_field_keys(
    field_definitions: Optional[Iterable[FieldDefinition]],
) -> List[str]:
    """Keys of fields declared in the hidden section, in schema order."""
    if not field_definitions:
        return []
    return [field_def.key for field_def in field_definitions if field_def.is_hidden]


def get_hardcoded_default(
    field_key: str, field_def: Optional[FieldDefinition], entity_type: Optional[str]
) -> bool:
    """
    Visibility of a field when no override or category setting applies.

    - ``notes`` is hidden
    - fields in the hidden section are hidden
    - ``preparation`` on sessions is hidden
    - everything else, core attributes included, is visible
    """
    if field_key == NOTES_FIELD:
        return False
    if field_def is not None and field_def.section == HIDDEN_SECTION:
        return False
    if field_key == PREPARATION_FIELD and entity_type == SESSION_TYPE:
        return False
    return True


def _category_field_settings(
    config: Optional[PlayerExportFieldConfig], entity_type: Optional[str]
) -> Optional[Mapping[str, bool]]:
    if config is None:
        return None
    return config.field_settings_for(entity_type)


def is_field_player_visible(
    field_key: str,
    field_def: Optional[FieldDefinition],
    entity_type: Optional[str],
    entity: Optional[BaseEntity] = None,
    config: Optional[PlayerExportFieldConfig] = None,
) -> bool:
    """
    Decide whether a single field (custom or ``__core_*``) is exported.

    Args:
        field_key: Custom field key or reserved core key
        field_def: Schema entry for the field, if the type declares one
        entity_type: Type of the owning entity
        entity: Owning entity, consulted for per-entity overrides
        config: Per-category configuration

    Returns:
        True if the field should appear in the player export
    """
    per_entity = get_entity_overrides(entity.metadata) if entity is not None else None
    resolved = resolve_override(
        per_entity, _category_field_settings(config, entity_type), field_key
    )
    if resolved is not None:
        return resolved
    return get_hardcoded_default(field_key, field_def, entity_type)


def is_core_field_visible(
    core_field: CoreField,
    entity: BaseEntity,
    config: Optional[PlayerExportFieldConfig] = None,
) -> bool:
    """Core attributes are visible unless an override or category setting hides them."""
    resolved = resolve_override(
        get_entity_overrides(entity.metadata),
        _category_field_settings(config, entity.type),
        core_field_key(core_field),
    )
    return True if resolved is None else resolved


def _is_vetoed(entity: BaseEntity) -> bool:
    if entity.type == PLAYER_PROFILE_TYPE:
        return True
    if entity.type == TIMELINE_EVENT_TYPE:
        known_by = entity.fields.get(KNOWN_BY_FIELD)
        # Exact, case-sensitive string match only
        if isinstance(known_by, str) and known_by in SECRET_KNOWN_BY:
            return True
    return False


def is_entity_player_visible(
    entity: BaseEntity, config: Optional[PlayerExportFieldConfig] = None
) -> bool:
    """
    Decide whether an entity is included in the player export at all.

    Hardcoded vetoes beat everything, including ``player_visible=True``. An
    explicit ``player_visible`` flag beats the category setting, and with
    neither set the entity is visible.

    Args:
        entity: The entity to check
        config: Per-category configuration, or None

    Returns:
        True if the entity should be exported
    """
    if _is_vetoed(entity):
        logger.debug(f"Entity {entity.id} ({entity.type}) vetoed for player export")
        return False

    if entity.player_visible is not None:
        return entity.player_visible

    if config is not None and config.category_visibility:
        category_visible = config.category_visibility.get(entity.type)
        if category_visible is not None:
            return category_visible

    return True
