"""
Per-category player export configuration helpers.

Pure functions over ``PlayerExportFieldConfig`` as stored in the campaign
metadata. Setters return a new config and never modify the one passed in;
persisting the result is up to the caller.
"""

from typing import Any, Mapping, Optional

from models.field_visibility import PlayerExportFieldConfig


CAMPAIGN_CONFIG_KEY = "playerExportFieldConfig"


def get_player_export_field_config(
    campaign_metadata: Optional[Mapping[str, Any]],
) -> PlayerExportFieldConfig:
    """Read the config from campaign metadata, or an empty config if none is stored."""
    raw = (campaign_metadata or {}).get(CAMPAIGN_CONFIG_KEY)
    if raw is None:
        return PlayerExportFieldConfig()
    if isinstance(raw, PlayerExportFieldConfig):
        return raw
    return PlayerExportFieldConfig.model_validate(raw)


def get_field_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str, field_key: str
) -> Optional[bool]:
    """
    Get the configured visibility of a field for an entity type.

    Returns:
        True (visible), False (hidden), or None when nothing is configured
    """
    type_settings = config.field_visibility.get(entity_type)
    if not type_settings:
        return None
    return type_settings.get(field_key)


def set_field_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str, field_key: str, visible: bool
) -> PlayerExportFieldConfig:
    field_visibility = {k: dict(v) for k, v in config.field_visibility.items()}
    field_visibility.setdefault(entity_type, {})[field_key] = visible
    return config.model_copy(update={"field_visibility": field_visibility})


def remove_field_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str, field_key: str
) -> PlayerExportFieldConfig:
    """Reset one field to its default. Emptied entity type entries are dropped."""
    field_visibility = {k: dict(v) for k, v in config.field_visibility.items()}
    type_settings = field_visibility.get(entity_type)
    if type_settings is not None:
        type_settings.pop(field_key, None)
        if not type_settings:
            del field_visibility[entity_type]
    return config.model_copy(update={"field_visibility": field_visibility})


def reset_entity_type_config(
    config: PlayerExportFieldConfig, entity_type: str
) -> PlayerExportFieldConfig:
    field_visibility = {
        k: dict(v) for k, v in config.field_visibility.items() if k != entity_type
    }
    return config.model_copy(update={"field_visibility": field_visibility})


def get_category_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str
) -> Optional[bool]:
    """
    Get the configured visibility of a whole entity category.

    Returns:
        True (visible), False (hidden), or None when nothing is configured
    """
    if not config.category_visibility:
        return None
    return config.category_visibility.get(entity_type)


def set_category_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str, visible: bool
) -> PlayerExportFieldConfig:
    category_visibility = dict(config.category_visibility or {})
    category_visibility[entity_type] = visible
    return config.model_copy(update={"category_visibility": category_visibility})


def remove_category_visibility_setting(
    config: PlayerExportFieldConfig, entity_type: str
) -> PlayerExportFieldConfig:
    """Reset one category to its default. An emptied category map is removed."""
    if config.category_visibility is None:
        return config.model_copy(deep=True)
    category_visibility = {
        k: v for k, v in config.category_visibility.items() if k != entity_type
    }
    return config.model_copy(
        update={"category_visibility": category_visibility or None}
    )


def reset_all_category_visibility(
    config: PlayerExportFieldConfig,
) -> PlayerExportFieldConfig:
    return config.model_copy(update={"category_visibility": None})
