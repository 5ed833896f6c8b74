"""Tests for the natural-language prompt parser.

Covers:
- Intent detection (leading keyword, whole-word search, unknown)
- Entity extraction (after keyword, before keyword, fallback, rejection)
- Modifiers and references
- Confidence scoring and ambiguities, including the negative control
- File path suggestions, template matching and variable extraction
- Custom rule tables
"""

from __future__ import annotations

import pytest

from smart_scaffolder.models import (
    EntityType,
    IntentType,
    ModifierType,
    ReferenceType,
    Relationship,
)
from smart_scaffolder.parser import DEFAULT_RULES, KeywordRule, PromptParser, RuleTable


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Intent
# ---------------------------------------------------------------------------


class TestIntent:
    @pytest.mark.parametrize(
        "prompt,expected",
        [
            ("create a component called Header", IntentType.CREATE),
            ("generate a route called users", IntentType.GENERATE),
            ("add a utility called slugify", IntentType.ADD),
            ("scaffold a module called orders", IntentType.SCAFFOLD),
            ("update the Button component", IntentType.UPDATE),
            ("extend the Button component", IntentType.EXTEND),
            ("clone the Button component", IntentType.DUPLICATE),
        ],
    )
    def test_leading_keyword(self, parser, prompt, expected):
        assert parser.parse(prompt).intent == expected

    @pytest.mark.parametrize(
        "prompt",
        [
            "add a new route called users",
            "add a component to create users",
            "update the form then create a Button component",
        ],
    )
    def test_rule_order_beats_position(self, parser, prompt):
        # create is listed before add and update.
        assert parser.parse(prompt).intent == IntentType.CREATE

    def test_keyword_as_prompt_prefix(self, parser):
        assert parser.parse("scaffolding for orders").intent == IntentType.SCAFFOLD

    def test_keyword_found_later_in_prompt(self, parser):
        assert parser.parse("please update the Button component").intent == IntentType.UPDATE

    def test_keyword_must_be_a_whole_word(self, parser):
        assert parser.parse("recreated things").intent == IntentType.UNKNOWN

    def test_unknown_intent(self, parser):
        assert parser.parse("/fix").intent == IntentType.UNKNOWN


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


class TestEntities:
    def test_name_before_keyword(self, parser):
        intent = parser.parse("create a UserProfile component with tests")
        assert [(e.type, e.name) for e in intent.entities] == [
            (EntityType.COMPONENT, "UserProfile"),
        ]

    def test_name_after_called(self, parser):
        intent = parser.parse("generate an API route called users with auth")
        assert [(e.type, e.name) for e in intent.entities] == [(EntityType.ROUTE, "users")]

    def test_name_spans_capitalised_words(self, parser):
        intent = parser.parse("create a component named User Profile Card")
        assert intent.primary_entity.name == "UserProfileCard"

    def test_keywords_are_not_names(self, parser):
        # "API route" must not produce entities named "API" or "route".
        intent = parser.parse("generate an API route called users")
        assert {e.name for e in intent.entities} == {"users"}

    @pytest.mark.parametrize(
        "prompt,entity_type,name",
        [
            ("create a component called Settings", EntityType.COMPONENT, "Settings"),
            ("create a component named Provider", EntityType.COMPONENT, "Provider"),
            ("add a service called Config", EntityType.SERVICE, "Config"),
            ("generate a model called Entity", EntityType.MODEL, "Entity"),
            ("create a Settings component", EntityType.COMPONENT, "Settings"),
        ],
    )
    def test_introduced_names_may_be_keywords(self, parser, prompt, entity_type, name):
        intent = parser.parse(prompt)
        assert intent.has_entities
        assert [(e.type, e.name) for e in intent.entities] == [(entity_type, name)]

    def test_bare_keyword_after_keyword_is_not_a_name(self, parser):
        intent = parser.parse("create a settings component called Header")
        assert [(e.type, e.name) for e in intent.entities] == [(EntityType.COMPONENT, "Header")]

    def test_stop_words_are_not_names(self, parser):
        intent = parser.parse("create a Card component similar to UserCard")
        assert [e.name for e in intent.entities] == ["Card"]

    def test_entities_ordered_by_position(self, parser):
        intent = parser.parse("create a component called Header and an api route called health")
        assert [(e.type, e.name) for e in intent.entities] == [
            (EntityType.COMPONENT, "Header"),
            (EntityType.ROUTE, "health"),
        ]
        assert intent.entities[0].position[0] < intent.entities[1].position[0]

    def test_duplicates_dropped(self, parser):
        intent = parser.parse("create a Header component, the component called Header")
        assert len(intent.entities) == 1

    def test_fallback_after_verb(self, parser):
        intent = parser.parse("create a useUserData hook")
        assert intent.primary_entity.name == "useUserData"
        assert intent.primary_entity.type == EntityType.COMPONENT

    def test_fallback_type_from_hint_words(self, parser):
        intent = parser.parse("build healthcheck for the api")
        assert intent.primary_entity.name == "healthcheck"
        assert intent.primary_entity.type == EntityType.ROUTE

    def test_recognisable_prompt_has_entities(self, parser):
        for prompt in (
            "create a component called Header",
            "add a utility called slugify",
            "generate a model called Invoice",
            "create a migration called add_invoices",
        ):
            intent = parser.parse(prompt)
            assert intent.has_entities, prompt
            assert intent.intent != IntentType.UNKNOWN, prompt


# ---------------------------------------------------------------------------
# Modifiers & references
# ---------------------------------------------------------------------------


class TestModifiers:
    def test_with_tests(self, parser):
        intent = parser.parse("create a UserProfile component with tests")
        assert intent.has_modifier(ModifierType.WITH_TESTS)

    def test_several_modifiers_in_rule_order(self, parser):
        intent = parser.parse("create a typed Table component with docs and auth")
        assert [m.type for m in intent.modifiers] == [
            ModifierType.WITH_TYPES,
            ModifierType.WITH_DOCS,
            ModifierType.WITH_AUTH,
        ]

    def test_at_most_one_per_type(self, parser):
        intent = parser.parse("create a Foo component with tests including tests")
        assert [m.type for m in intent.modifiers] == [ModifierType.WITH_TESTS]

    def test_modifier_must_be_whole_words(self, parser):
        intent = parser.parse("create a Contests component")
        assert not intent.has_modifier(ModifierType.TYPESCRIPT)
        assert not intent.modifiers

    def test_class_based(self, parser):
        intent = parser.parse("create a Counter component as a class component")
        assert intent.has_modifier(ModifierType.CLASS_BASED)
        assert [e.name for e in intent.entities] == ["Counter"]


class TestReferences:
    def test_similar_to(self, parser):
        intent = parser.parse("create a Card component similar to UserCard")
        assert len(intent.references) == 1
        reference = intent.references[0]
        assert reference.type == ReferenceType.FILE
        assert reference.target == "UserCard"
        assert reference.relationship == Relationship.SIMILAR

    def test_based_on(self, parser):
        intent = parser.parse("create a Footer component based on Header")
        assert intent.references[0].relationship == Relationship.BASED_ON

    def test_pattern_reference_keeps_path(self, parser):
        intent = parser.parse(
            "create a service called billing following the pattern of src/services/auth.ts"
        )
        reference = intent.references[0]
        assert reference.type == ReferenceType.PATTERN
        assert reference.target == "src/services/auth.ts"

    def test_same_target_reported_once(self, parser):
        intent = parser.parse("create a Card component like UserCard, similar to UserCard")
        assert [r.target for r in intent.references] == ["UserCard"]


# ---------------------------------------------------------------------------
# Confidence & ambiguities
# ---------------------------------------------------------------------------


class TestConfidence:
    def test_clear_prompt(self, parser):
        # 0.5 base + 0.2 intent + 0.1 one entity + 0.1 entity keyword
        assert parser.parse("create a UserProfile component with tests").confidence == 0.9

    def test_entity_bonus_capped(self, parser):
        intent = parser.parse(
            "create a component called A1 and a route called b2 and a model called C3"
        )
        assert len(intent.entities) == 3
        assert intent.confidence == 1.0

    def test_negative_control(self, parser):
        intent = parser.parse("/fix")
        assert intent.confidence <= 0.5
        assert intent.ambiguities
        assert not intent.has_entities

    def test_empty_prompt_never_raises(self, parser):
        intent = parser.parse("   ")
        assert intent.intent == IntentType.UNKNOWN
        assert intent.confidence == 0.5

    def test_multiple_entity_types_reported(self, parser):
        intent = parser.parse("create a component called Header and an api route called health")
        assert any("Multiple entity types" in a for a in intent.ambiguities)

    def test_missing_name_reported(self, parser):
        intent = parser.parse("scaffold something")
        assert any("No entity name" in a for a in intent.ambiguities)


# ---------------------------------------------------------------------------
# Paths, templates & variables
# ---------------------------------------------------------------------------


class TestSuggestFilePaths:
    def test_component_with_tests(self, parser):
        intent = parser.parse("create a UserProfile component with tests")
        assert parser.suggest_file_paths(intent, "/app") == [
            "/app/src/components/UserProfile.tsx",
            "/app/src/components/__tests__/UserProfile.test.tsx",
        ]

    def test_route_and_service(self, parser):
        assert parser.suggest_file_paths(parser.parse("create a route called users"), "") == [
            "src/app/api/users/route.ts",
        ]
        assert parser.suggest_file_paths(parser.parse("create a service called billing"), "") == [
            "src/services/billing.service.ts",
        ]

    def test_migration_uses_clock(self, parser):
        intent = parser.parse("create a migration called add_invoices")
        assert parser.suggest_file_paths(intent, "") == [
            "prisma/migrations/20250102030405_add_invoices/migration.sql",
        ]


class TestMatchTemplates:
    @pytest.mark.parametrize(
        "prompt,expected",
        [
            ("create a UserProfile component", ["react-component"]),
            ("create a useUserData hook", ["react-hook"]),
            ("create a route called users", ["nextjs-api-route"]),
            ("add a utility called slugify", ["utility-function"]),
            ("create a model called Invoice", ["prisma-model"]),
            ("create a migration called add_invoices", ["prisma-migration"]),
            ("create a test called checkout", ["test-suite"]),
            ("create a service called billing", ["generic-file"]),
            ("generate a route called users", ["nextjs-api-route", "nextjs-crud-module"]),
        ],
    )
    def test_template_ids(self, parser, prompt, expected):
        assert parser.match_templates(parser.parse(prompt)) == expected

    def test_deduplicated(self, parser):
        intent = parser.parse("create a component called Header and a component called Footer")
        assert parser.match_templates(intent) == ["react-component"]

    def test_no_entities_no_templates(self, parser):
        assert parser.match_templates(parser.parse("/fix")) == []


class TestExtractVariables:
    def test_names_and_flags(self, parser):
        intent = parser.parse("create a Counter component with tests as a class component")
        variables = parser.extract_variables(intent)
        assert variables["componentName"] == "Counter"
        assert variables["moduleName"] == "Counter"
        assert variables["fileName"] == "Counter"
        assert variables["withTests"] is True
        assert variables["classBased"] is True

    def test_first_entity_wins_aliases(self, parser):
        intent = parser.parse("create a component called Header and an api route called health")
        variables = parser.extract_variables(intent)
        assert variables["componentName"] == "Header"
        assert variables["routeName"] == "health"

    def test_references(self, parser):
        intent = parser.parse("create a Card component similar to UserCard")
        variables = parser.extract_variables(intent)
        assert variables["similarTo"] == "UserCard"
        assert variables["referenceFiles"] == ["UserCard"]


class TestFormatIntent:
    def test_summary_lines(self, parser):
        text = parser.format_intent(parser.parse("create a UserProfile component with tests"))
        assert text.splitlines() == [
            "Intent: create",
            "Entities: UserProfile (component)",
            "Modifiers: with-tests",
            "Confidence: 90%",
        ]


# ---------------------------------------------------------------------------
# Rule tables
# ---------------------------------------------------------------------------


class TestCustomRules:
    def test_parser_follows_its_rule_table(self):
        rules = RuleTable(
            intents=(KeywordRule(IntentType.CREATE.value, ("forge",)),),
            entities=DEFAULT_RULES.entities,
            modifiers=(),
            references=(),
        )
        intent = PromptParser(rules=rules).parse("forge a component called Anvil with tests")
        assert intent.intent == IntentType.CREATE
        assert intent.primary_entity.name == "Anvil"
        assert intent.modifiers == ()

    def test_default_parser_ignores_unknown_verb(self, parser):
        assert parser.parse("forge a component called Anvil").intent == IntentType.UNKNOWN
