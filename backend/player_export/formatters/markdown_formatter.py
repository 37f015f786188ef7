"""
Markdown formatter for player exports.

Produces Markdown suited to wikis (Notion, Obsidian ...), note-taking apps
and version control.
"""

import re
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


# Underscores only need escaping where they could open or close emphasis
_MD_ESCAPES = [
    (re.compile(r"\\"), r"\\\\"),
    (re.compile(r"\*"), r"\\*"),
    (re.compile(r"\b_"), r"\\_"),
    (re.compile(r"_\b"), r"\\_"),
    (re.compile(r"\["), r"\\["),
    (re.compile(r"\]"), r"\\]"),
    (re.compile(r"#"), r"\\#"),
    (re.compile(r"<"), r"\\<"),
    (re.compile(r">"), r"\\>"),
    (re.compile(r"\|"), r"\\|"),
]

# Characters that would end or split a Markdown link target
_MD_URL_ESCAPES = [
    (" ", "%20"),
    ("(", "%28"),
    (")", "%29"),
    ("<", "%3C"),
    (">", "%3E"),
]


def escape_md(text: str) -> str:
    for pattern, replacement in _MD_ESCAPES:
        text = pattern.sub(replacement, text)
    return text


def escape_md_url(url: str) -> str:
    """Percent-encode characters that would end or split a Markdown link target."""
    for char, encoded in _MD_URL_ESCAPES:
        url = url.replace(char, encoded)
    return url


def create_anchor(text: str) -> str:
    anchor = text.lower()
    anchor = re.sub(r"[^\w\s-]", "", anchor)
    anchor = re.sub(r"\s+", "-", anchor)
    anchor = re.sub(r"-+", "-", anchor)
    return anchor.strip()


def format_as_markdown(player_export: PlayerExport, options: PlayerExportOptions) -> str:
    parts: List[str] = [
        f"# {escape_md(player_export.campaign_name)}",
        "",
        escape_md(player_export.campaign_description),
        "",
        "---",
        "",
        "**Export Information**",
        "",
        f"- Version: {escape_md(player_export.version)}",
        f"- Exported: {format_date(player_export.exported_at)}",
        "",
    ]

    if player_export.entities:
        parts.extend(
            [
                "---",
                "",
                "## Table of Contents",
                "",
                _render_table_of_contents(player_export.entities, options),
                "",
            ]
        )

    parts.extend(["---", ""])

    if not player_export.entities:
        parts.append("*No entities to display.*")
    elif options.group_by_type:
        parts.append(_render_entities_grouped(player_export.entities, options))
    else:
        parts.append(
            "\n\n".join(
                _render_entity(entity, options) for entity in player_export.entities
            )
        )

    return "\n".join(parts)


def _render_table_of_contents(
    entities: List[PlayerEntity], options: PlayerExportOptions
) -> str:
    lines: List[str] = []
    if options.group_by_type:
        for entity_type, typed_entities in group_by_type(entities).items():
            heading = capitalize_type(entity_type)
            lines.append(f"- [{heading}](#{create_anchor(heading)})")
            for entity in typed_entities:
                lines.append(
                    f"  - [{escape_md(entity.name)}](#{create_anchor(entity.name)})"
                )
    else:
        for entity in entities:
            lines.append(f"- [{escape_md(entity.name)}](#{create_anchor(entity.name)})")
    return "\n".join(lines)


def _render_entities_grouped(
    entities: List[PlayerEntity], options: PlayerExportOptions
) -> str:
    parts: List[str] = []
    for entity_type, typed_entities in group_by_type(entities).items():
        parts.extend([f"## {capitalize_type(entity_type)}", ""])
        for entity in typed_entities:
            parts.extend([_render_entity(entity, options), ""])
    return "\n".join(parts)


def _render_entity(entity: PlayerEntity, options: PlayerExportOptions) -> str:
    parts: List[str] = [
        f"### {escape_md(entity.name)}",
        "",
        f"**Type:** {escape_md(entity.type)} | **ID:** {escape_md(entity.id)}",
        "",
    ]

    image_url = safe_image_url(entity.image_url) if options.include_images else None
    if image_url:
        parts.extend([f"![{escape_md(entity.name)}]({escape_md_url(image_url)})", ""])

    if entity.description:
        parts.extend([escape_md(entity.description), ""])

    if entity.summary:
        parts.extend([f"*{escape_md(entity.summary)}*", ""])

    if entity.tags:
        tags = ", ".join(f"`{escape_md(tag)}`" for tag in entity.tags)
        parts.extend([f"**Tags:** {tags}", ""])

    if entity.fields:
        parts.extend(["**Fields:**", ""])
        for key, value in entity.fields.items():
            parts.append(f"- **{escape_md(key)}:** {escape_md(format_field_value(value))}")
        parts.append("")

    if entity.links:
        parts.extend(["**Relationships:**", ""])
        for link in entity.links:
            parts.append(f"- {_render_link(link)}")
        parts.append("")

    if options.include_timestamps and entity.created_at and entity.updated_at:
        parts.extend(
            [
                f"*Created: {format_date(entity.created_at)} | "
                f"Updated: {format_date(entity.updated_at)}*",
                "",
            ]
        )

    parts.append("---")
    return "\n".join(parts)


def _render_link(link: PlayerEntityLink) -> str:
    text = (
        f"**{escape_md(link.relationship)}**"
        f" → {escape_md(link.target_type)}: `{escape_md(link.target_id)}`"
    )
    if link.bidirectional and link.reverse_relationship:
        text += f" ↔ {escape_md(link.reverse_relationship)}"
    if link.strength:
        text += f" [{escape_md(link.strength)}]"
    return text
