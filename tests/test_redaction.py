"""
Test suite for player export redaction.

Covers custom field filtering, link stripping, core attribute redaction and
the entity/collection filters that compose them.
"""

import pytest
from copy import deepcopy
from datetime import datetime, timezone
from typing import List

from models.entity import (
    BaseEntity,
    EntityLink,
    EntityTypeDefinition,
    FieldDefinition,
)
from models.field_visibility import (
    PLAYER_EXPORT_FIELD_OVERRIDES_KEY,
    PlayerExportFieldConfig,
)
from backend.player_export import (
    filter_entities_for_player,
    filter_entity_for_player,
    filter_fields_for_player,
    filter_links_for_player,
)


CREATED = datetime(2025, 1, 1, tzinfo=timezone.utc)
UPDATED = datetime(2025, 1, 10, tzinfo=timezone.utc)


def make_entity(**overrides) -> BaseEntity:
    data = {
        "id": "npc-1",
        "type": "npc",
        "name": "Test NPC",
        "description": "A test NPC",
        "summary": "Shopkeeper with a secret",
        "image_url": "https://example.com/npc.png",
        "tags": ["merchant", "friendly"],
        "notes": "DM notes",
        "created_at": CREATED,
        "updated_at": UPDATED,
    }
    data.update(overrides)
    return BaseEntity(**data)


def make_link(**overrides) -> EntityLink:
    data = {
        "id": "link-1",
        "source_id": "npc-1",
        "target_id": "loc-1",
        "target_type": "location",
        "relationship": "located_at",
        "bidirectional": False,
    }
    data.update(overrides)
    return EntityLink(**data)


@pytest.fixture
def npc_type() -> EntityTypeDefinition:
    return EntityTypeDefinition(
        type="npc",
        label="NPC",
        label_plural="NPCs",
        field_definitions=[
            FieldDefinition(key="alignment", label="Alignment", section="public", order=1),
            FieldDefinition(key="occupation", label="Occupation", section="public", order=2),
            FieldDefinition(
                key="secret_motivation",
                label="Secret Motivation",
                type="textarea",
                section="hidden",
                order=3,
            ),
        ],
    )


@pytest.fixture
def npc_fields():
    return {
        "alignment": "neutral good",
        "occupation": "shopkeeper",
        "secret_motivation": "Actually a spy",
        "notes": "DM only notes field",
    }


class TestFilterFieldsLegacyForm:
    """Test the hardcoded rules with only fields, hidden keys and session flag."""

    def test_notes_removed(self):
        result = filter_fields_for_player({"notes": "x", "occupation": "smith"}, [], False)
        assert result == {"occupation": "smith"}

    def test_hidden_keys_removed(self):
        fields = {"alignment": "good", "secret": "spy", "plot": "twist"}
        result = filter_fields_for_player(fields, ["secret", "plot"], False)
        assert result == {"alignment": "good"}

    def test_hidden_keys_not_in_fields(self):
        result = filter_fields_for_player({"a": 1}, ["missing"], False)
        assert result == {"a": 1}

    def test_preparation_removed_only_for_sessions(self):
        fields = {"date": "2025-01-15", "preparation": "prep", "summary": "recap"}
        assert "preparation" not in filter_fields_for_player(fields, [], True)
        assert "preparation" in filter_fields_for_player(fields, [], False)

    def test_combined_rules(self):
        fields = {"notes": "n", "preparation": "p", "secret": "s", "date": "d"}
        assert filter_fields_for_player(fields, ["secret"], True) == {"date": "d"}

    def test_value_types_preserved(self):
        fields = {
            "level": 12,
            "ratio": 1.5,
            "active": True,
            "equipment": ["Holy Avenger", "Plate Armor +2"],
            "hp": {"current": 20, "max": 30},
            "missing": None,
            "blank": "",
        }
        result = filter_fields_for_player(fields, [], False)
        assert result == fields
        assert result["active"] is True
        assert result["missing"] is None

    def test_empty_and_fully_filtered(self):
        assert filter_fields_for_player({}, [], False) == {}
        assert filter_fields_for_player({"notes": "x", "s": 1}, ["s"], False) == {}

    def test_unusual_keys(self):
        fields = {"123": "numeric", "field-with-dash": 1, "field.with.dot": 2}
        assert filter_fields_for_player(fields, [], False) == fields

    def test_does_not_mutate_input(self):
        fields = {"notes": "x", "tags": ["a", "b"], "secret": "s"}
        snapshot = deepcopy(fields)
        result = filter_fields_for_player(fields, ["secret"], False)
        result["tags"].append("c")

        assert fields == snapshot
        assert result is not fields

    def test_legacy_form_matches_full_form_without_config(self, npc_fields):
        legacy = filter_fields_for_player(npc_fields, ["secret_motivation"], False)
        full = filter_fields_for_player(
            npc_fields, ["secret_motivation"], False, None, None, None, None
        )
        assert legacy == full == {"alignment": "neutral good", "occupation": "shopkeeper"}


class TestFilterFieldsWithConfig:
    """Test category configuration and per-entity overrides on custom fields."""

    def test_category_hides_field(self, npc_fields, npc_type):
        config = PlayerExportFieldConfig(field_visibility={"npc": {"occupation": False}})
        result = filter_fields_for_player(
            npc_fields,
            ["secret_motivation"],
            False,
            "npc",
            make_entity(fields=npc_fields),
            npc_type.field_definitions,
            config,
        )
        assert result == {"alignment": "neutral good"}

    def test_category_reveals_hidden_section_field(self, npc_fields, npc_type):
        config = PlayerExportFieldConfig(
            field_visibility={"npc": {"secret_motivation": True}}
        )
        result = filter_fields_for_player(
            npc_fields,
            ["secret_motivation"],
            False,
            "npc",
            make_entity(fields=npc_fields),
            npc_type.field_definitions,
            config,
        )
        assert result["secret_motivation"] == "Actually a spy"
        assert "notes" not in result

    def test_category_reveals_notes(self, npc_fields):
        config = PlayerExportFieldConfig(field_visibility={"npc": {"notes": True}})
        result = filter_fields_for_player(npc_fields, [], False, "npc", None, None, config)
        assert result["notes"] == "DM only notes field"

    def test_category_reveals_session_preparation(self):
        fields = {"date": "2025-01-15", "preparation": "DM prep notes"}
        config = PlayerExportFieldConfig(
            field_visibility={"session": {"preparation": True}}
        )
        result = filter_fields_for_player(fields, [], True, "session", None, None, config)
        assert result["preparation"] == "DM prep notes"

    def test_config_for_other_type_has_no_effect(self, npc_fields):
        config = PlayerExportFieldConfig(
            field_visibility={"location": {"occupation": False}}
        )
        result = filter_fields_for_player(
            npc_fields, ["secret_motivation"], False, "npc", None, None, config
        )
        assert "occupation" in result

    def test_empty_config_behaves_like_no_config(self, npc_fields):
        config = PlayerExportFieldConfig()
        with_config = filter_fields_for_player(
            npc_fields, ["secret_motivation"], False, "npc", None, None, config
        )
        without = filter_fields_for_player(npc_fields, ["secret_motivation"], False)
        assert with_config == without

    def test_field_defs_mark_hidden_fields(self, npc_fields, npc_type):
        """A hidden-section definition hides the field even if hidden_keys omits it."""
        result = filter_fields_for_player(
            npc_fields, [], False, "npc", None, npc_type.field_definitions, None
        )
        assert "secret_motivation" not in result

    def test_entity_override_beats_category(self, npc_fields):
        entity = make_entity(
            fields=npc_fields,
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"occupation": True}},
        )
        config = PlayerExportFieldConfig(field_visibility={"npc": {"occupation": False}})
        result = filter_fields_for_player(
            npc_fields, [], False, "npc", entity, None, config
        )
        assert result["occupation"] == "shopkeeper"

    def test_malformed_overrides_fall_through(self, npc_fields):
        entity = make_entity(
            fields=npc_fields,
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"notes": "yes"}},
        )
        result = filter_fields_for_player(npc_fields, [], False, "npc", entity)
        assert "notes" not in result

        entity = make_entity(metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: "garbage"})
        result = filter_fields_for_player(npc_fields, [], False, "npc", entity)
        assert "notes" not in result


class TestFilterLinks:
    """Test link filtering and stripping."""

    def test_removes_dm_only_links(self):
        links = [
            make_link(id="a", player_visible=False),
            make_link(id="b", player_visible=True),
            make_link(id="c"),
        ]
        assert [link.id for link in filter_links_for_player(links)] == ["b", "c"]

    def test_strips_dm_attributes(self):
        link = make_link(
            notes="x",
            player_visible=True,
            relationship="knows",
            metadata={"tags": ["secret"]},
            created_at=CREATED,
            updated_at=UPDATED,
        )
        (result,) = filter_links_for_player([link])
        dumped = result.model_dump(by_alias=True, exclude_unset=True)

        assert dumped == {
            "id": "link-1",
            "targetId": "loc-1",
            "targetType": "location",
            "relationship": "knows",
            "bidirectional": False,
        }

    def test_keeps_optional_attributes_when_present(self):
        link = make_link(
            bidirectional=True, reverse_relationship="employs", strength="strong"
        )
        (result,) = filter_links_for_player([link])
        assert result.reverse_relationship == "employs"
        assert result.strength == "strong"

    def test_absent_optional_attributes_stay_absent(self):
        (result,) = filter_links_for_player([make_link()])
        assert "reverse_relationship" not in result.model_fields_set
        assert "strength" not in result.model_fields_set

    def test_explicit_none_is_carried_over(self):
        (result,) = filter_links_for_player([make_link(reverse_relationship=None)])
        assert "reverse_relationship" in result.model_fields_set
        assert result.reverse_relationship is None

    @pytest.mark.parametrize("strength", ["strong", "moderate", "weak"])
    def test_all_strengths(self, strength):
        (result,) = filter_links_for_player([make_link(strength=strength)])
        assert result.strength == strength

    def test_empty_and_fully_filtered(self):
        assert filter_links_for_player([]) == []
        assert filter_links_for_player([make_link(player_visible=False)]) == []

    def test_does_not_mutate_input(self):
        links = [make_link(notes="x", player_visible=False), make_link(id="b", notes="y")]
        snapshot = [link.model_dump() for link in links]
        filter_links_for_player(links)
        assert [link.model_dump() for link in links] == snapshot
        assert len(links) == 2


class TestFilterEntity:
    """Test the per-entity orchestrator."""

    def test_scenario_hidden_section_and_notes(self, npc_type):
        entity = make_entity(
            player_visible=True,
            notes="secret",
            fields={"alignment": "good", "secret_motivation": "spy"},
        )
        result = filter_entity_for_player(entity, npc_type)

        assert result is not None
        assert result.fields == {"alignment": "good"}
        assert "notes" not in result.model_dump()

    def test_scenario_entity_override_reveals_hidden_field(self, npc_type):
        entity = make_entity(
            player_visible=True,
            notes="secret",
            fields={"alignment": "good", "secret_motivation": "spy"},
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"secret_motivation": True}},
        )
        result = filter_entity_for_player(entity, npc_type)
        assert result.fields == {"alignment": "good", "secret_motivation": "spy"}

    def test_scenario_category_and_entity_flag(self):
        config = PlayerExportFieldConfig(category_visibility={"npc": False})
        assert filter_entity_for_player(make_entity(), None, config) is None
        assert (
            filter_entity_for_player(make_entity(player_visible=True), None, config)
            is not None
        )

    def test_scenario_link_redaction(self):
        entity = make_entity(
            links=[
                make_link(id="hidden", player_visible=False, notes="x"),
                make_link(id="shown", player_visible=True, notes="x", relationship="knows"),
            ]
        )
        result = filter_entity_for_player(entity)
        assert [link.id for link in result.links] == ["shown"]
        assert result.links[0].relationship == "knows"
        assert "notes" not in result.links[0].model_dump()

    def test_invisible_entities_return_none(self):
        assert filter_entity_for_player(make_entity(player_visible=False)) is None
        assert filter_entity_for_player(make_entity(type="player_profile")) is None
        secret = make_entity(type="timeline_event", fields={"knownBy": "secret"})
        assert filter_entity_for_player(secret) is None

    def test_session_preparation_removed(self):
        session = make_entity(
            type="session", fields={"preparation": "prep", "summary": "recap"}
        )
        assert filter_entity_for_player(session).fields == {"summary": "recap"}

    def test_identity_and_core_attributes_preserved(self):
        result = filter_entity_for_player(make_entity())
        assert result.id == "npc-1"
        assert result.type == "npc"
        assert result.name == "Test NPC"
        assert result.description == "A test NPC"
        assert result.summary == "Shopkeeper with a secret"
        assert result.image_url == "https://example.com/npc.png"
        assert result.tags == ["merchant", "friendly"]
        assert result.created_at == CREATED
        assert result.updated_at == UPDATED

    def test_dm_attributes_dropped(self):
        entity = make_entity(metadata={"secret": True}, player_visible=True)
        dumped = filter_entity_for_player(entity).model_dump()
        for key in ("notes", "metadata", "player_visible"):
            assert key not in dumped

    def test_missing_optional_attributes_stay_absent(self):
        entity = make_entity(summary=None, image_url=None)
        result = filter_entity_for_player(entity)
        exported = result.model_dump_json_safe()
        assert "summary" not in exported
        assert "imageUrl" not in exported

    def test_no_type_definition_keeps_schema_hidden_fields(self):
        entity = make_entity(fields={"secret_motivation": "spy", "notes": "n"})
        result = filter_entity_for_player(entity, None)
        assert result.fields == {"secret_motivation": "spy"}

    def test_does_not_mutate_entity(self, npc_type):
        entity = make_entity(
            fields={"alignment": "good", "secret_motivation": "spy", "gear": ["rope"]},
            links=[make_link(player_visible=False), make_link(id="b", notes="n")],
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"__core_tags": False}},
        )
        snapshot = entity.model_dump()
        result = filter_entity_for_player(entity, npc_type)
        result.tags.append("mutated")
        result.fields.setdefault("gear", []).append("mutated")

        assert entity.model_dump() == snapshot

    def test_idempotent(self, npc_type):
        entity = make_entity(
            fields={"alignment": "good", "secret_motivation": "spy"},
            links=[make_link()],
        )
        config = PlayerExportFieldConfig(
            field_visibility={"npc": {"__core_summary": False}}
        )
        first = filter_entity_for_player(entity, npc_type, config)
        second = filter_entity_for_player(entity, npc_type, config)
        assert first.model_dump_json_safe() == second.model_dump_json_safe()


class TestCoreAttributeRedaction:
    """Test redaction of built-in attributes via __core_* keys."""

    def hide(self, *core_keys: str) -> PlayerExportFieldConfig:
        return PlayerExportFieldConfig(
            field_visibility={"npc": {key: False for key in core_keys}}
        )

    def test_hidden_description_is_empty_string(self):
        result = filter_entity_for_player(make_entity(), None, self.hide("__core_description"))
        assert result.description == ""

    def test_hidden_tags_are_empty_list(self):
        result = filter_entity_for_player(make_entity(), None, self.hide("__core_tags"))
        assert result.tags == []

    def test_hidden_relationships_are_empty_list(self):
        entity = make_entity(links=[make_link(), make_link(id="b")])
        result = filter_entity_for_player(entity, None, self.hide("__core_relationships"))
        assert result.links == []

    @pytest.mark.parametrize(
        "core_key,attribute,export_key",
        [
            ("__core_summary", "summary", "summary"),
            ("__core_imageUrl", "image_url", "imageUrl"),
            ("__core_createdAt", "created_at", "createdAt"),
            ("__core_updatedAt", "updated_at", "updatedAt"),
        ],
    )
    def test_hidden_optional_attributes_are_absent(self, core_key, attribute, export_key):
        result = filter_entity_for_player(make_entity(), None, self.hide(core_key))
        assert getattr(result, attribute) is None
        assert attribute not in result.model_fields_set
        assert export_key not in result.model_dump_json_safe()

    def test_all_core_attributes_visible_without_config(self):
        exported = filter_entity_for_player(make_entity()).model_dump_json_safe()
        for key in ("description", "summary", "imageUrl", "tags", "links", "createdAt", "updatedAt"):
            assert key in exported

    def test_multiple_core_attributes_hidden(self):
        config = self.hide("__core_description", "__core_tags", "__core_summary")
        result = filter_entity_for_player(make_entity(), None, config)
        assert result.description == ""
        assert result.tags == []
        assert result.summary is None
        assert result.image_url == "https://example.com/npc.png"

    def test_entity_override_hides_description(self):
        entity = make_entity(
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"__core_description": False}}
        )
        assert filter_entity_for_player(entity).description == ""

    def test_entity_override_shows_description_hidden_by_category(self):
        entity = make_entity(
            metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"__core_description": True}}
        )
        result = filter_entity_for_player(entity, None, self.hide("__core_description"))
        assert result.description == "A test NPC"

    def test_hidden_relationships_do_not_affect_custom_fields(self, npc_type):
        entity = make_entity(
            fields={
                "alignment": "neutral good",
                "occupation": "shopkeeper",
                "secret_motivation": "Actually a spy",
            },
            links=[make_link()],
        )
        result = filter_entity_for_player(entity, npc_type, self.hide("__core_relationships"))
        assert result.links == []
        assert set(result.fields) == {"alignment", "occupation"}

    def test_core_keys_never_appear_in_fields(self):
        result = filter_entity_for_player(make_entity(fields={"a": 1}), None, self.hide("__core_tags"))
        assert result.fields == {"a": 1}


class TestFilterEntities:
    """Test bulk collection filtering."""

    @pytest.fixture
    def campaign_entities(self) -> List[BaseEntity]:
        return [
            make_entity(id="npc-1", fields={"alignment": "good", "secret_motivation": "spy"}),
            make_entity(id="npc-2", player_visible=False),
            make_entity(id="pp-1", type="player_profile"),
            make_entity(id="loc-1", type="location", fields={"notes": "n", "climate": "cold"}),
            make_entity(id="te-1", type="timeline_event", fields={"knownBy": "lost"}),
            make_entity(id="te-2", type="timeline_event", fields={"knownBy": "common_knowledge"}),
            make_entity(id="custom-1", type="spell_ritual", fields={"cost": 3}),
        ]

    def test_filters_and_preserves_order(self, campaign_entities, npc_type):
        result = filter_entities_for_player(campaign_entities, [npc_type])
        assert [e.id for e in result] == ["npc-1", "loc-1", "te-2", "custom-1"]

    def test_applies_field_rules_per_type(self, campaign_entities, npc_type):
        result = {e.id: e for e in filter_entities_for_player(campaign_entities, [npc_type])}
        assert result["npc-1"].fields == {"alignment": "good"}
        assert result["loc-1"].fields == {"climate": "cold"}
        assert result["custom-1"].fields == {"cost": 3}

    def test_empty_inputs(self, npc_type):
        assert filter_entities_for_player([], [npc_type]) == []
        assert [e.id for e in filter_entities_for_player([make_entity()], [])] == ["npc-1"]

    def test_category_config_applies_to_all_entities(self, campaign_entities, npc_type):
        config = PlayerExportFieldConfig(
            category_visibility={"location": False, "timeline_event": True},
            field_visibility={"npc": {"alignment": False}},
        )
        result = filter_entities_for_player(campaign_entities, [npc_type], config)
        assert [e.id for e in result] == ["npc-1", "te-2", "custom-1"]
        assert result[0].fields == {}

    def test_per_entity_overrides_in_bulk(self, npc_type):
        entities = [
            make_entity(id="a", fields={"secret_motivation": "spy"}),
            make_entity(
                id="b",
                fields={"secret_motivation": "thief"},
                metadata={PLAYER_EXPORT_FIELD_OVERRIDES_KEY: {"secret_motivation": True}},
            ),
        ]
        result = filter_entities_for_player(entities, [npc_type])
        assert result[0].fields == {}
        assert result[1].fields == {"secret_motivation": "thief"}

    def test_does_not_mutate_inputs(self, campaign_entities, npc_type):
        snapshot = [e.model_dump() for e in campaign_entities]
        type_snapshot = npc_type.model_dump()
        filter_entities_for_player(campaign_entities, [npc_type])
        assert [e.model_dump() for e in campaign_entities] == snapshot
        assert npc_type.model_dump() == type_snapshot

    def test_does_not_mutate_config(self, campaign_entities, npc_type):
        """The category config comes back unchanged after filtering."""
        config = PlayerExportFieldConfig(
            field_visibility={
                "npc": {"secret_motivation": True, "__core_tags": False, "notes": True},
                "location": {"climate": False},
            },
            category_visibility={"location": False, "timeline_event": True, "npc": True},
        )
        snapshot = config.model_dump()
        field_maps = {k: id(v) for k, v in config.field_visibility.items()}

        result = filter_entities_for_player(campaign_entities, [npc_type], config)
        for player_entity in result:
            player_entity.fields["injected"] = True
            player_entity.tags.append("injected")
        filter_entity_for_player(campaign_entities[0], npc_type, config)
        filter_fields_for_player(
            {"secret_motivation": "spy", "extra": 1},
            [],
            False,
            "npc",
            campaign_entities[0],
            npc_type.field_definitions,
            config,
        )

        assert config.model_dump() == snapshot
        assert {k: id(v) for k, v in config.field_visibility.items()} == field_maps
