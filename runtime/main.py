"""
Command-line runner for player exports.

Loads a campaign document, applies the player export rules and writes the
result as JSON, HTML or Markdown:

    python -m runtime.main campaign.json --format markdown --group-by-type
    python -m runtime.main campaign.json --config export.yaml --preview
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Union

import yaml
from pydantic import Field, ValidationError

from backend.player_export import (
    PlayerExportError,
    build_player_export,
    export_player_data,
    find_campaign,
    get_player_export_preview,
)
from backend.player_export.field_config import get_player_export_field_config
from models.entity import BaseEntity, CampaignModel, EntityTypeDefinition
from models.field_visibility import PlayerExportFieldConfig
from models.player_export import PlayerExportOptions, PlayerExportPreview
from runtime import config


logger = logging.getLogger(__name__)


class CampaignDocument(CampaignModel):
    """On-disk campaign document: the campaign, its entities and type schemas."""

    campaign: Optional[BaseEntity] = None
    campaign_id: Optional[str] = None
    entities: List[BaseEntity] = Field(default_factory=list)
    type_definitions: List[EntityTypeDefinition] = Field(default_factory=list)

    def resolve_campaign(self) -> Optional[BaseEntity]:
        if self.campaign is not None:
            return self.campaign
        return find_campaign(self.entities, self.campaign_id)


def setup_logging(debug: bool = False) -> None:
    """Set up logging for the export runner."""
    level = logging.DEBUG if debug else logging.INFO
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config.PLAYER_EXPORT_LOG_FILE:
        handlers.append(logging.FileHandler(config.PLAYER_EXPORT_LOG_FILE))
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )


def load_campaign_document(path: Union[str, Path]) -> CampaignDocument:
    """Load and validate a campaign document from a JSON file."""
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        document = CampaignDocument.model_validate(data)
        logger.info(f"Loaded {len(document.entities)} entities from {path}")
        return document
    except FileNotFoundError:
        logger.error(f"Campaign file not found: {path}")
        raise
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in campaign file: {e}")
        raise
    except ValidationError as e:
        logger.error(f"Invalid campaign document {path}: {e}")
        raise


def load_export_config(path: Union[str, Path]) -> PlayerExportFieldConfig:
    """
    Load a player export configuration file.

    YAML is used for ``.yaml``/``.yml`` files, JSON otherwise. The file may
    hold the config itself or a campaign-metadata style mapping with a
    ``playerExportFieldConfig`` entry.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if data is None:
        data = {}
    if isinstance(data, Mapping) and "playerExportFieldConfig" in data:
        return get_player_export_field_config(data)
    return PlayerExportFieldConfig.model_validate(data)


def format_preview(preview: PlayerExportPreview) -> str:
    lines = [
        f"Included entities: {preview.total_entities}",
        f"Excluded entities: {preview.excluded_entities}",
    ]
    for entity_type, counts in sorted(preview.by_type.items()):
        lines.append(
            f"  {entity_type}: {counts.included} included, {counts.excluded} excluded"
        )
    return "\n".join(lines)


def run_export(
    campaign_file: Union[str, Path],
    options: PlayerExportOptions,
    config_file: Optional[Union[str, Path]] = None,
    output: Optional[Union[str, Path]] = None,
) -> Path:
    """
    Export a campaign file for players and write the result to disk.

    Returns:
        Path of the written export
    """
    document = load_campaign_document(campaign_file)
    export_config = load_export_config(config_file) if config_file else None

    player_export = build_player_export(
        document.resolve_campaign(),
        document.entities,
        document.type_definitions,
        export_config,
    )
    result = export_player_data(player_export, options)

    output_path = (
        Path(output)
        if output
        else Path(config.PLAYER_EXPORT_OUTPUT_DIR) / Path(result.filename).name
    )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.data, encoding="utf-8")

    logger.info(f"Wrote {options.format} player export to {output_path}")
    return output_path


def run_preview(
    campaign_file: Union[str, Path], config_file: Optional[Union[str, Path]] = None
) -> PlayerExportPreview:
    document = load_campaign_document(campaign_file)
    if config_file:
        export_config = load_export_config(config_file)
    else:
        campaign = document.resolve_campaign()
        export_config = (
            get_player_export_field_config(campaign.metadata) if campaign else None
        )
    return get_player_export_preview(
        document.entities, document.type_definitions, export_config
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export campaign data for players")
    parser.add_argument("campaign", help="Campaign JSON document to export")
    parser.add_argument("--config", help="Export visibility config (YAML or JSON)")
    parser.add_argument(
        "--format",
        choices=["json", "html", "markdown"],
        default=config.PLAYER_EXPORT_FORMAT,
        help="Output format",
    )
    parser.add_argument("--output", help="Output file path")
    parser.add_argument(
        "--group-by-type", action="store_true", help="Group entities by type"
    )
    parser.add_argument(
        "--no-timestamps", action="store_true", help="Leave out created/updated dates"
    )
    parser.add_argument("--no-images", action="store_true", help="Leave out images")
    parser.add_argument(
        "--preview", action="store_true", help="Print entity counts instead of exporting"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.debug)

    try:
        if args.preview:
            print(format_preview(run_preview(args.campaign, args.config)))
            return 0

        options = PlayerExportOptions(
            format=args.format,
            include_timestamps=not args.no_timestamps,
            include_images=not args.no_images,
            group_by_type=args.group_by_type,
        )
        output_path = run_export(args.campaign, options, args.config, args.output)
        print(f"Player export written to {output_path}")
        return 0

    except (
        OSError,
        json.JSONDecodeError,
        yaml.YAMLError,
        ValidationError,
        PlayerExportError,
    ) as e:
        logger.error(f"Player export failed: {e}")
        if args.debug:
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
