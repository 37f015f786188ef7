"""
Player-safe export models.

A ``PlayerEntity`` is the redacted form of a ``BaseEntity``: GM notes,
metadata and visibility flags are gone, and only surviving custom fields and
links remain. Optional attributes that were absent on the source, or redacted
away, are left *unset* rather than set to None so that serialized exports
omit the key entirely.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .entity import FieldValue


PLAYER_EXPORT_VERSION = "1.0.0"

PlayerExportFormat = Literal["json", "html", "markdown"]


class PlayerExportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerEntityLink(PlayerExportModel):
    """Relationship link stripped of notes, metadata and audit fields."""

    id: str
    target_id: str
    target_type: str
    relationship: str
    bidirectional: bool
    reverse_relationship: Optional[str] = None
    strength: Optional[str] = None


class PlayerEntity(PlayerExportModel):
    """Entity as players are allowed to see it."""

    id: str
    type: str
    name: str
    description: str
    summary: Optional[str] = None
    image_url: Optional[str] = None
    tags: List[str]
    fields: Dict[str, FieldValue]
    links: List[PlayerEntityLink]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def model_dump_json_safe(
        self, include_timestamps: bool = True, include_images: bool = True
    ) -> Dict[str, Any]:
        """
        Export the entity as a JSON-safe dict with camelCase keys.

        Unset optional attributes are omitted. Timestamps and the image
        reference can additionally be dropped for the export options.
        """
        data = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if not include_timestamps:
            data.pop("createdAt", None)
            data.pop("updatedAt", None)
        if not include_images:
            data.pop("imageUrl", None)
        return data


class PlayerExport(PlayerExportModel):
    """A complete player export document for one campaign."""

    version: str = PLAYER_EXPORT_VERSION
    exported_at: datetime
    campaign_name: str
    campaign_description: str = ""
    entities: List[PlayerEntity] = Field(default_factory=list)

    def model_dump_json_safe(
        self, include_timestamps: bool = True, include_images: bool = True
    ) -> Dict[str, Any]:
        return {
            "version": self.version,
            "exportedAt": self.exported_at.isoformat(),
            "campaignName": self.campaign_name,
            "campaignDescription": self.campaign_description,
            "entities": [
                entity.model_dump_json_safe(
                    include_timestamps=include_timestamps,
                    include_images=include_images,
                )
                for entity in self.entities
            ],
        }


class PlayerExportOptions(PlayerExportModel):
    """Output options for formatting a player export."""

    format: PlayerExportFormat = "json"
    include_timestamps: bool = True
    include_images: bool = True
    group_by_type: bool = False


class PlayerExportResult(PlayerExportModel):
    """Formatted export ready to be written or downloaded."""

    data: str
    filename: str
    mime_type: str


class TypeCounts(PlayerExportModel):
    included: int = 0
    excluded: int = 0


class PlayerExportPreview(PlayerExportModel):
    """Entity counts describing what an export would contain."""

    total_entities: int
    excluded_entities: int
    by_type: Dict[str, TypeCounts] = Field(default_factory=dict)
