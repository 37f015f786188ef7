"""
Output formatters for player exports.

``format_player_export`` routes an export to the JSON, HTML or Markdown
formatter named by ``options.format``.
"""

from typing import Callable, Dict

from models.player_export import PlayerExport, PlayerExportOptions
from ..errors import UnknownExportFormat
from .html_formatter import format_as_html
from .json_formatter import format_as_json
from .markdown_formatter import format_as_markdown


Formatter = Callable[[PlayerExport, PlayerExportOptions], str]

FORMATTERS: Dict[str, Formatter] = {
    "json": format_as_json,
    "html": format_as_html,
    "markdown": format_as_markdown,
}


def format_player_export(player_export: PlayerExport, options: PlayerExportOptions) -> str:
    formatter = FORMATTERS.get(options.format)
    if formatter is None:
        raise UnknownExportFormat(f"Unknown export format: {options.format}")
    return formatter(player_export, options)


__all__ = [
    "FORMATTERS",
    "format_as_html",
    "format_as_json",
    "format_as_markdown",
    "format_player_export",
]
