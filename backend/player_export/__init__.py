"""
Player export layer.

Turns GM campaign data into player-safe exports: entity visibility, field
and link redaction, operator configuration helpers, export assembly and
output formatting.
"""

from .redaction import (
    filter_entities_for_player,
    filter_entity_for_player,
    filter_fields_for_player,
    filter_links_for_player,
)
from .visibility import (
    get_hardcoded_default,
    get_hidden_field_keys,
    is_entity_player_visible,
    is_field_player_visible,
    resolve_override,
)
from .export_service import (
    build_player_export,
    export_player_data,
    find_campaign,
    get_player_export_preview,
)
from .errors import CampaignNotFound, PlayerExportError, UnknownExportFormat

__all__ = [
    "CampaignNotFound",
    "PlayerExportError",
    "UnknownExportFormat",
    "build_player_export",
    "export_player_data",
    "filter_entities_for_player",
    "filter_entity_for_player",
    "filter_fields_for_player",
    "filter_links_for_player",
    "find_campaign",
    "get_hardcoded_default",
    "get_hidden_field_keys",
    "get_player_export_preview",
    "is_entity_player_visible",
    "is_field_player_visible",
    "resolve_override",
]
