"""
Player export assembly.

Coordinates an export run over an already-loaded campaign:

1. Pick the campaign entity and its stored export configuration
2. Filter every non-campaign entity for player visibility
3. Wrap the result in a versioned ``PlayerExport`` document
4. Format it and derive the download filename and mime type

No storage access happens here; callers pass entities in and persist or
download the result themselves.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from models.entity import BaseEntity, EntityTypeDefinition
from models.field_visibility import PlayerExportFieldConfig
from models.player_export import (
    PLAYER_EXPORT_VERSION,
    PlayerExport,
    PlayerExportOptions,
    PlayerExportPreview,
    PlayerExportResult,
    TypeCounts,
)
from .errors import CampaignNotFound, UnknownExportFormat
from .field_config import get_player_export_field_config
from .formatters import format_player_export
from .formatters.common import format_date
from .redaction import filter_entities_for_player


logger = logging.getLogger(__name__)

CAMPAIGN_TYPE = "campaign"

# format -> (file extension, mime type)
EXPORT_FILE_TYPES = {
    "json": ("json", "application/json"),
    "html": ("html", "text/html"),
    "markdown": ("md", "text/markdown"),
}


def find_campaign(
    entities: Iterable[BaseEntity], campaign_id: Optional[str] = None
) -> Optional[BaseEntity]:
    """Return the campaign entity with the given id, or the first campaign if no id is given."""
    for entity in entities:
        if entity.type != CAMPAIGN_TYPE:
            continue
        if campaign_id is None or entity.id == campaign_id:
            return entity
    return None


def _non_campaign_entities(entities: Iterable[BaseEntity]) -> List[BaseEntity]:
    return [entity for entity in entities if entity.type != CAMPAIGN_TYPE]


def build_player_export(
    campaign: Optional[BaseEntity],
    entities: Iterable[BaseEntity],
    type_definitions: Iterable[EntityTypeDefinition],
    config: Optional[PlayerExportFieldConfig] = None,
    exported_at: Optional[datetime] = None,
) -> PlayerExport:
    """
    Build the player export document for a campaign.

    Args:
        campaign: The campaign entity being exported
        entities: All campaign entities; campaign-typed entities are skipped
        type_definitions: Schemas for the entity types in play
        config: Export configuration; defaults to the one stored in the
            campaign metadata
        exported_at: Export timestamp, defaults to now (UTC)

    Returns:
        The assembled PlayerExport

    Raises:
        CampaignNotFound: If no campaign is given
    """
    if campaign is None:
        raise CampaignNotFound("No active campaign found")

    if config is None:
        config = get_player_export_field_config(campaign.metadata)

    candidates = _non_campaign_entities(entities)
    player_entities = filter_entities_for_player(candidates, type_definitions, config)

    logger.info(
        f"Built player export for '{campaign.name}': "
        f"{len(player_entities)} of {len(candidates)} entities included"
    )

    return PlayerExport(
        version=PLAYER_EXPORT_VERSION,
        exported_at=exported_at or datetime.now(timezone.utc),
        campaign_name=campaign.name,
        campaign_description=campaign.description,
        entities=player_entities,
    )


def get_player_export_preview(
    entities: Iterable[BaseEntity],
    type_definitions: Iterable[EntityTypeDefinition],
    config: Optional[PlayerExportFieldConfig] = None,
) -> PlayerExportPreview:
    """Count what an export would include and exclude, overall and per entity type."""
    candidates = _non_campaign_entities(entities)
    included_ids = {
        entity.id
        for entity in filter_entities_for_player(candidates, type_definitions, config)
    }

    by_type: Dict[str, TypeCounts] = {}
    included_total = 0
    for entity in candidates:
        counts = by_type.setdefault(entity.type, TypeCounts())
        if entity.id in included_ids:
            counts.included += 1
            included_total += 1
        else:
            counts.excluded += 1

    return PlayerExportPreview(
        total_entities=included_total,
        excluded_entities=len(candidates) - included_total,
        by_type=by_type,
    )


def campaign_slug(campaign_name: str) -> str:
    """Lowercase filename-safe slug; path separators and dots never survive."""
    slug = re.sub(r"[^\w-]+", "-", campaign_name).strip("-").lower()
    return slug or CAMPAIGN_TYPE


def export_filename(player_export: PlayerExport, extension: str) -> str:
    """``<campaign-slug>-player-export-<date>.<extension>``"""
    slug = campaign_slug(player_export.campaign_name)
    return f"{slug}-player-export-{format_date(player_export.exported_at)}.{extension}"


def export_player_data(
    player_export: PlayerExport, options: PlayerExportOptions
) -> PlayerExportResult:
    """
    Format an export and attach its filename and mime type.

    Raises:
        UnknownExportFormat: If ``options.format`` has no formatter
    """
    file_type = EXPORT_FILE_TYPES.get(options.format)
    if file_type is None:
        raise UnknownExportFormat(f"Unknown export format: {options.format}")
    extension, mime_type = file_type

    return PlayerExportResult(
        data=format_player_export(player_export, options),
        filename=export_filename(player_export, extension),
        mime_type=mime_type,
    )
