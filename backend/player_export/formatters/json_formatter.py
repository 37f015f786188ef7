"""JSON formatter for player exports."""

import json

from models.player_export import PlayerExport, PlayerExportOptions


def format_as_json(player_export: PlayerExport, options: PlayerExportOptions) -> str:
    """
    Pretty-printed JSON document.

    Always a flat entity list; ``group_by_type`` does not apply. Datetimes are
    ISO 8601 strings and attributes missing from an entity are omitted.
    """
    data = player_export.model_dump_json_safe(
        include_timestamps=options.include_timestamps,
        include_images=options.include_images,
    )
    return json.dumps(data, indent=2, ensure_ascii=False)
