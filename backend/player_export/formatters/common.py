"""Display helpers shared by the Markdown and HTML formatters."""

import json
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urlsplit

from models.entity import FieldValue
from models.player_export import PlayerEntity


# Image URL schemes allowed into exports; relative URLs carry no scheme
SAFE_IMAGE_SCHEMES = frozenset({"", "http", "https", "data"})


def group_by_type(entities: List[PlayerEntity]) -> Dict[str, List[PlayerEntity]]:
    """Group entities by type, keeping first-seen type order."""
    grouped: Dict[str, List[PlayerEntity]] = {}
    for entity in entities:
        grouped.setdefault(entity.type, []).append(entity)
    return grouped


def capitalize_type(entity_type: str) -> str:
    """Plural heading for an entity type ("npc" -> "NPCs", "location" -> "Locations")."""
    if entity_type == "npc":
        return "NPCs"
    return entity_type[:1].upper() + entity_type[1:] + "s"


def format_scalar(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def format_field_value(value: FieldValue) -> str:
    """
    Render a field value as display text.

    Lists are comma-joined, resources render as ``current/max``, durations as
    ``value unit`` and any other mapping as JSON.
    """
    if value is None:
        return ""
    if isinstance(value, list):
        return ", ".join(format_scalar(item) for item in value)
    if isinstance(value, dict):
        if "current" in value and "max" in value:
            return f"{value['current']}/{value['max']}"
        if "unit" in value:
            amount = value.get("value")
            return f"{amount} {value['unit']}" if amount else str(value["unit"])
        return json.dumps(value)
    return format_scalar(value)


def format_date(value: datetime) -> str:
    """Calendar date (UTC for aware datetimes) as YYYY-MM-DD."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date().isoformat()


def safe_image_url(url: Optional[str]) -> Optional[str]:
    """
    Return the image URL if its scheme is allowed, otherwise None.

    ``javascript:`` and other active schemes are dropped so they never reach
    an ``<img src>`` or a Markdown image link.
    """
    if not url:
        return None
    url = url.strip()
    try:
        scheme = urlsplit(url).scheme.lower()
    except ValueError:
        return None
    if scheme not in SAFE_IMAGE_SCHEMES:
        return None
    return url
