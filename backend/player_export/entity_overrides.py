"""
Per-entity player export overrides.

Overrides live in ``entity.metadata[PLAYER_EXPORT_FIELD_OVERRIDES_KEY]`` as a
``{field_key: bool}`` map:

- True: force the field into the player export
- False: force the field out of the player export
- absent: inherit from the category config or the hardcoded rules

The editor cycles a field through inherit -> include -> exclude -> inherit.
Every helper returns new structures and leaves the given metadata untouched.
"""

from typing import Any, Dict, Mapping, NamedTuple, Optional

from models.field_visibility import PLAYER_EXPORT_FIELD_OVERRIDES_KEY


class ResolvedFieldVisibility(NamedTuple):
    visible: bool
    is_overridden: bool


def get_entity_overrides(
    entity_metadata: Optional[Mapping[str, Any]],
) -> Optional[Mapping[str, Any]]:
    """Return the override map stored in entity metadata, if any."""
    if not entity_metadata:
        return None
    overrides = entity_metadata.get(PLAYER_EXPORT_FIELD_OVERRIDES_KEY)
    if not isinstance(overrides, Mapping):
        return None
    return overrides


def get_field_override_state(
    entity_metadata: Optional[Mapping[str, Any]], field_key: str
) -> Optional[bool]:
    """
    Get the override for one field.

    Returns:
        True (force include), False (force exclude), or None (inherit)
    """
    overrides = get_entity_overrides(entity_metadata)
    if overrides is None:
        return None
    value = overrides.get(field_key)
    return value if isinstance(value, bool) else None


def cycle_field_override_state(current: Optional[bool]) -> Optional[bool]:
    """Next state in the inherit -> include -> exclude -> inherit cycle."""
    if current is None:
        return True
    if current is True:
        return False
    return None


def set_field_override(
    entity_metadata: Mapping[str, Any], field_key: str, value: Optional[bool]
) -> Dict[str, Any]:
    """
    Apply an override and return new metadata.

    A value of None removes the override for the field. Removing the last
    override drops the overrides key from the metadata entirely.
    """
    metadata = dict(entity_metadata)
    existing = get_entity_overrides(entity_metadata)
    overrides = dict(existing) if existing is not None else {}

    if value is None:
        overrides.pop(field_key, None)
    else:
        overrides[field_key] = value

    if overrides:
        metadata[PLAYER_EXPORT_FIELD_OVERRIDES_KEY] = overrides
    else:
        metadata.pop(PLAYER_EXPORT_FIELD_OVERRIDES_KEY, None)
    return metadata


def get_resolved_field_visibility(
    entity_metadata: Optional[Mapping[str, Any]],
    field_key: str,
    category_default: bool,
) -> ResolvedFieldVisibility:
    """Resolve a field against its category default, reporting whether an override applied."""
    override = get_field_override_state(entity_metadata, field_key)
    if override is not None:
        return ResolvedFieldVisibility(visible=override, is_overridden=True)
    return ResolvedFieldVisibility(visible=category_default, is_overridden=False)
