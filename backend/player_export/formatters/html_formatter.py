"""
HTML formatter for player exports.

Produces a standalone, printable HTML document with embedded CSS, campaign
metadata and one article per entity, optionally grouped into type sections.
"""

from html import escape
from typing import List

from models.player_export import (
    PlayerEntity,
    PlayerEntityLink,
    PlayerExport,
    PlayerExportOptions,
)
from .common import (
    capitalize_type,
    format_date,
    format_field_value,
    group_by_type,
    safe_image_url,
)


STYLES = """<style>
body {
	font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
	line-height: 1.6;
	max-width: 1200px;
	margin: 0 auto;
	padding: 20px;
	background: #f5f5f5;
	color: #333;
}
header, main {
	background: white;
	padding: 30px;
	border-radius: 8px;
	box-shadow: 0 2px 4px rgba(0,0,0,0.1);
}
header { margin-bottom: 30px; }
h1 { margin: 0 0 15px 0; color: #2c3e50; font-size: 2.5em; }
h2 { color: #34495e; border-bottom: 2px solid #3498db; padding-bottom: 10px; margin-top: 30px; }
h3 { color: #2c3e50; margin: 0 0 10px 0; }
h4 { color: #34495e; margin: 15px 0 10px 0; }
.campaign-description { font-size: 1.2em; color: #555; margin: 10px 0; }
.export-metadata { margin-top: 15px; padding-top: 15px; border-top: 1px solid #ddd; color: #777; font-size: 0.9em; }
.entity { margin-bottom: 40px; padding-bottom: 30px; border-bottom: 1px solid #eee; }
.entity:last-child { border-bottom: none; }
.entity-type-badge { color: #777; font-size: 0.9em; margin: 5px 0 15px 0; }
.entity-image { max-width: 400px; height: auto; margin: 15px 0; border-radius: 4px; }
.entity-summary { margin: 10px 0; color: #555; }
.tag { background: #e3f2fd; color: #1976d2; padding: 3px 10px; border-radius: 12px; font-size: 0.9em; }
.entity-fields { margin: 20px 0; background: #f9f9f9; padding: 15px; border-radius: 4px; }
.entity-fields dt { font-weight: bold; color: #555; margin-top: 10px; }
.entity-fields dd { margin: 5px 0 0 20px; }
.entity-links ul { list-style: none; padding: 0; }
.entity-links li { margin: 8px 0; padding: 8px 8px 8px 12px; background: #f0f7ff; border-left: 3px solid #3498db; }
.entity-timestamps { margin-top: 15px; color: #999; }
.empty-message { text-align: center; color: #999; font-style: italic; padding: 40px; }
.entity-type-section { margin-bottom: 40px; }
@media print {
	body { background: white; }
	header, main { box-shadow: none; }
	.entity { page-break-inside: avoid; }
	h2 { page-break-after: avoid; }
}
</style>"""


def format_as_html(player_export: PlayerExport, options: PlayerExportOptions) -> str:
    campaign_name = escape(player_export.campaign_name)
    parts: List[str] = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="utf-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"<title>{campaign_name}</title>",
        STYLES,
        "</head>",
        "<body>",
        "<header>",
        f"<h1>{campaign_name}</h1>",
        f'<p class="campaign-description">'
        f"{escape(player_export.campaign_description)}</p>",
        '<div class="export-metadata">',
        f"<p>Export Version: {escape(player_export.version)}</p>",
        f"<p>Exported: {format_date(player_export.exported_at)}</p>",
        "</div>",
        "</header>",
        "<main>",
    ]

    if not player_export.entities:
        parts.append('<p class="empty-message">No entities to display.</p>')
    elif options.group_by_type:
        for entity_type, typed_entities in group_by_type(player_export.entities).items():
            parts.append('<section class="entity-type-section">')
            parts.append(f"<h2>{escape(capitalize_type(entity_type))}</h2>")
            parts.extend(_render_entity(entity, options) for entity in typed_entities)
            parts.append("</section>")
    else:
        parts.extend(_render_entity(entity, options) for entity in player_export.entities)

    parts.extend(["</main>", "</body>", "</html>"])
    return "\n".join(parts)


def _render_entity(entity: PlayerEntity, options: PlayerExportOptions) -> str:
    name = escape(entity.name)
    parts: List[str] = [
        '<article class="entity">',
        f'<h3 class="entity-name">{name}</h3>',
        f'<p class="entity-type-badge">Type: {escape(entity.type)} | '
        f"ID: {escape(entity.id)}</p>",
    ]

    image_url = safe_image_url(entity.image_url) if options.include_images else None
    if image_url:
        parts.append(f'<img src="{escape(image_url)}" alt="{name}" class="entity-image">')

    if entity.description:
        parts.append(f'<p class="entity-description">{escape(entity.description)}</p>')

    if entity.summary:
        parts.append(f'<p class="entity-summary"><em>{escape(entity.summary)}</em></p>')

    if entity.tags:
        tags = ", ".join(f'<span class="tag">{escape(tag)}</span>' for tag in entity.tags)
        parts.append(f'<div class="entity-tags"><strong>Tags:</strong> {tags}</div>')

    if entity.fields:
        parts.extend(['<div class="entity-fields">', "<h4>Fields</h4>", "<dl>"])
        for key, value in entity.fields.items():
            parts.append(f"<dt>{escape(key)}</dt>")
            parts.append(f"<dd>{escape(format_field_value(value))}</dd>")
        parts.extend(["</dl>", "</div>"])

    if entity.links:
        parts.extend(['<div class="entity-links">', "<h4>Relationships</h4>", "<ul>"])
        for link in entity.links:
            parts.append(f"<li>{_render_link(link)}</li>")
        parts.extend(["</ul>", "</div>"])

    if options.include_timestamps and entity.created_at and entity.updated_at:
        parts.append(
            '<div class="entity-timestamps"><p><small>'
            f"Created: {format_date(entity.created_at)} | "
            f"Updated: {format_date(entity.updated_at)}"
            "</small></p></div>"
        )

    parts.append("</article>")
    return "\n".join(parts)


def _render_link(link: PlayerEntityLink) -> str:
    text = (
        f"<strong>{escape(link.relationship)}</strong>"
        f" → {escape(link.target_type)}: {escape(link.target_id)}"
    )
    if link.bidirectional and link.reverse_relationship:
        text += f" (↔ {escape(link.reverse_relationship)})"
    if link.strength:
        text += f" [{escape(link.strength)}]"
    return text
