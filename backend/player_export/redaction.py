"""
Redaction of campaign entities into player-safe export entities.

Builds ``PlayerEntity`` / ``PlayerEntityLink`` copies of GM data with notes,
metadata, hidden fields and DM-only links removed. Inputs are never modified;
every returned structure is new.
"""

import logging
from copy import deepcopy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from models.entity import (
    BaseEntity,
    EntityLink,
    EntityTypeDefinition,
    FieldDefinition,
    FieldValue,
)
from models.field_visibility import CoreField, PlayerExportFieldConfig
from models.player_export import PlayerEntity, PlayerEntityLink
from .entity_overrides import get_entity_overrides
from .visibility import (
    NOTES_FIELD,
    PREPARATION_FIELD,
    SESSION_TYPE,
    get_hidden_field_keys,
    is_core_field_visible,
    is_entity_player_visible,
    resolve_override,
)


logger = logging.getLogger(__name__)

# Link attributes that survive redaction when present on the source link
_OPTIONAL_LINK_ATTRIBUTES = ("reverse_relationship", "strength")


def filter_fields_for_player(
    fields: Mapping[str, FieldValue],
    hidden_keys: Iterable[str],
    is_session: bool,
    entity_type: Optional[str] = None,
    entity: Optional[BaseEntity] = None,
    field_defs: Optional[Sequence[FieldDefinition]] = None,
    config: Optional[PlayerExportFieldConfig] = None,
) -> Dict[str, FieldValue]:
    """
    Filter custom field values down to the player-visible ones.

    Called with only the first three arguments this applies the hardcoded
    rules: ``notes`` is dropped, ``preparation`` is dropped on sessions, and
    every key in ``hidden_keys`` is dropped. Per-entity overrides and the
    category config for ``entity_type`` take precedence over those rules.

    Args:
        fields: Field values of the entity
        hidden_keys: Keys declared in the hidden section of the schema
        is_session: Whether the owning entity is a session
        entity_type: Type used to look up category settings
        entity: Owning entity, consulted for per-entity overrides
        field_defs: Field schema of the type
        config: Per-category configuration

    Returns:
        New mapping of surviving keys to copies of their values
    """
    excluded = {NOTES_FIELD, *hidden_keys}
    if is_session:
        excluded.add(PREPARATION_FIELD)
    if field_defs:
        excluded.update(get_hidden_field_keys(field_defs))

    per_entity = get_entity_overrides(entity.metadata) if entity is not None else None
    per_category = config.field_settings_for(entity_type) if config is not None else None

    filtered: Dict[str, FieldValue] = {}
    for key, value in fields.items():
        visible = resolve_override(per_entity, per_category, key)
        if visible is None:
            visible = key not in excluded
        if visible:
            filtered[key] = deepcopy(value)
    return filtered


def filter_links_for_player(links: Iterable[EntityLink]) -> List[PlayerEntityLink]:
    """
    Drop DM-only links and strip the rest to their player-visible attributes.

    Links with ``player_visible=False`` are removed. Kept links lose notes,
    metadata, the visibility flag and audit fields. ``reverse_relationship``
    and ``strength`` are carried over only when the source link set them.
    """
    player_links: List[PlayerEntityLink] = []
    for link in links:
        if link.player_visible is False:
            continue

        data: Dict[str, Any] = {
            "id": link.id,
            "target_id": link.target_id,
            "target_type": link.target_type,
            "relationship": link.relationship,
            "bidirectional": link.bidirectional,
        }
        for attribute in _OPTIONAL_LINK_ATTRIBUTES:
            if attribute in link.model_fields_set:
                data[attribute] = getattr(link, attribute)

        player_links.append(PlayerEntityLink(**data))
    return player_links


def _redact_core_fields(
    entity: BaseEntity, config: Optional[PlayerExportFieldConfig]
) -> Dict[str, Any]:
    """
    Resolve the built-in attributes of an entity.

    Hidden collections become empty, a hidden description becomes an empty
    string, and hidden optional attributes are left out so they stay unset.
    """
    def visible(core_field: CoreField) -> bool:
        return is_core_field_visible(core_field, entity, config)

    core: Dict[str, Any] = {
        "description": entity.description if visible(CoreField.DESCRIPTION) else "",
        "tags": list(entity.tags) if visible(CoreField.TAGS) else [],
        "links": (
            filter_links_for_player(entity.links)
            if visible(CoreField.RELATIONSHIPS)
            else []
        ),
    }

    if entity.summary is not None and visible(CoreField.SUMMARY):
        core["summary"] = entity.summary
    if entity.image_url is not None and visible(CoreField.IMAGE_URL):
        core["image_url"] = entity.image_url
    if visible(CoreField.CREATED_AT):
        core["created_at"] = entity.created_at
    if visible(CoreField.UPDATED_AT):
        core["updated_at"] = entity.updated_at

    return core


def filter_entity_for_player(
    entity: BaseEntity,
    type_definition: Optional[EntityTypeDefinition] = None,
    config: Optional[PlayerExportFieldConfig] = None,
) -> Optional[PlayerEntity]:
    """
    Produce the player-safe version of one entity.

    Args:
        entity: The entity to redact
        type_definition: Schema of the entity's type; without it no field is
            structurally hidden, though the hardcoded field rules still apply
        config: Per-category configuration

    Returns:
        The redacted entity, or None if the entity is not player visible
    """
    if not is_entity_player_visible(entity, config):
        return None

    field_defs = type_definition.field_definitions if type_definition else None
    hidden_keys = get_hidden_field_keys(field_defs)

    fields = filter_fields_for_player(
        entity.fields,
        hidden_keys,
        entity.type == SESSION_TYPE,
        entity.type,
        entity,
        field_defs,
        config,
    )

    return PlayerEntity(
        id=entity.id,
        type=entity.type,
        name=entity.name,
        fields=fields,
        **_redact_core_fields(entity, config),
    )


def filter_entities_for_player(
    entities: Iterable[BaseEntity],
    type_definitions: Iterable[EntityTypeDefinition],
    config: Optional[PlayerExportFieldConfig] = None,
) -> List[PlayerEntity]:
    """
    Redact a whole entity collection for player export.

    Entities without a matching type definition are still exported, just
    without structural field hiding. Order of the surviving entities matches
    the input order.
    """
    type_map = {type_def.type: type_def for type_def in type_definitions}

    player_entities: List[PlayerEntity] = []
    total = 0
    for entity in entities:
        total += 1
        player_entity = filter_entity_for_player(
            entity, type_map.get(entity.type), config
        )
        if player_entity is not None:
            player_entities.append(player_entity)

    logger.debug(
        f"Player export filter kept {len(player_entities)} of {total} entities"
    )
    return player_entities
