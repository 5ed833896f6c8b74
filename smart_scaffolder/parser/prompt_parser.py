"""Natural-language prompt parser.

Turns a free-text request such as ``"create a UserProfile component with
tests"`` into a ``ParsedIntent``. Uses pure regex matching over the keyword
rule table in ``rules.py`` -- no AI calls. Parsing never raises: an
unrecognisable prompt yields a low-confidence intent with ambiguities that
callers are expected to check.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from ..models import (
    Entity,
    EntityType,
    IntentType,
    Modifier,
    ModifierType,
    ParsedIntent,
    Reference,
)
from ..naming import camel_case, pascal_case, snake_case
from .rules import (
    ARTICLES,
    DEFAULT_RULES,
    ENTITY_HINT_RULES,
    FALLBACK_VERBS,
    STOP_WORDS,
    RuleTable,
    all_entity_keywords,
    all_intent_keywords,
    keyword_pattern,
)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_NAME_TOKEN = r"[A-Za-z0-9_-]+"
# Continues a name over following capitalised words ("User Profile").
_NAME_CONTINUATION = r"(?:\s+[A-Z][A-Za-z0-9_-]*)*"
_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_HOOK_NAME = re.compile(r"^use[A-Z0-9]")

_BASE_PATHS: dict[EntityType, str] = {
    EntityType.COMPONENT: "src/components",
    EntityType.ROUTE: "src/app/api",
    EntityType.MODEL: "src/models",
    EntityType.SERVICE: "src/services",
    EntityType.UTILITY: "src/lib",
    EntityType.TEST: "src/__tests__",
    EntityType.MIGRATION: "prisma/migrations",
    EntityType.CONFIG: "src/config",
    EntityType.MODULE: "src/modules",
}

_TEST_PATHS: dict[EntityType, str] = {
    EntityType.COMPONENT: "src/components/__tests__",
    EntityType.ROUTE: "src/app/api/__tests__",
    EntityType.MODEL: "src/models/__tests__",
    EntityType.SERVICE: "src/services/__tests__",
    EntityType.UTILITY: "src/lib/__tests__",
    EntityType.TEST: "src/__tests__",
    EntityType.MIGRATION: "prisma/__tests__",
    EntityType.CONFIG: "src/config/__tests__",
    EntityType.MODULE: "src/modules/__tests__",
}

_TEMPLATE_BY_ENTITY: dict[EntityType, str] = {
    EntityType.COMPONENT: "react-component",
    EntityType.ROUTE: "nextjs-api-route",
    EntityType.MODULE: "nextjs-crud-module",
    EntityType.UTILITY: "utility-function",
    EntityType.TEST: "test-suite",
    EntityType.MODEL: "prisma-model",
    EntityType.MIGRATION: "prisma-migration",
}

FULL_MODULE_TEMPLATE = "nextjs-crud-module"


# ---------------------------------------------------------------------------
# PromptParser
# ---------------------------------------------------------------------------


class PromptParser:
    """Extracts intent, entities, modifiers and references from a prompt.

    Args:
        rules: Keyword rule table. Defaults to the built-in table.
        clock: Returns the current UTC time; used to timestamp migration
            paths. Injected by tests for deterministic output.
    """

    def __init__(
        self,
        rules: RuleTable = DEFAULT_RULES,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.rules = rules
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self._entity_keywords = all_entity_keywords(rules)
        self._filler_names = STOP_WORDS | ARTICLES
        self._prefix_rejected_names = all_intent_keywords(rules) | self._filler_names
        self._rejected_names = self._entity_keywords | self._prefix_rejected_names
        self._entity_patterns = [
            (EntityType(rule.category), keyword, self._entity_pattern(keyword))
            for rule in rules.entities
            for keyword in rule.keywords
        ]
        self._entity_prefix_patterns = [
            (
                EntityType(rule.category),
                frozenset(k.lower() for k in rule.keywords),
                self._entity_prefix_pattern(keyword),
            )
            for rule in rules.entities
            for keyword in rule.keywords
        ]

    # -- Public API --------------------------------------------------------

    def parse(self, prompt: str) -> ParsedIntent:
        """Parse *prompt* into an immutable ``ParsedIntent``."""
        text = prompt.strip()
        normalized = text.lower()

        intent = self._extract_intent(normalized)
        entities = self._extract_entities(text)
        modifiers = self._extract_modifiers(normalized)
        references = self._extract_references(text)

        return ParsedIntent(
            raw=prompt,
            intent=intent,
            entities=tuple(entities),
            modifiers=tuple(modifiers),
            references=tuple(references),
            confidence=self._calculate_confidence(normalized, intent, entities),
            ambiguities=tuple(self._detect_ambiguities(intent, entities)),
        )

    def suggest_file_paths(self, intent: ParsedIntent, project_root: str) -> list[str]:
        """Suggest where each entity's file (and test file) would live."""
        paths: list[str] = []
        with_tests = intent.has_modifier(ModifierType.WITH_TESTS)

        for entity in intent.entities:
            base = _BASE_PATHS.get(entity.type, "src")
            paths.append(_join_path(project_root, base, self._file_name(entity)))
            if with_tests:
                test_dir = _TEST_PATHS.get(entity.type, "src/__tests__")
                paths.append(_join_path(project_root, test_dir, _test_file_name(entity)))

        return paths

    def match_templates(self, intent: ParsedIntent) -> list[str]:
        """Return template ids suited to the intent, de-duplicated, in order."""
        templates: list[str] = []
        for entity in intent.entities:
            if entity.type == EntityType.COMPONENT and _HOOK_NAME.match(entity.name):
                templates.append("react-hook")
            else:
                templates.append(_TEMPLATE_BY_ENTITY.get(entity.type, "generic-file"))

        if intent.intent in (IntentType.SCAFFOLD, IntentType.GENERATE) and intent.entities:
            templates.append(FULL_MODULE_TEMPLATE)

        return list(dict.fromkeys(templates))

    def extract_variables(self, intent: ParsedIntent) -> dict[str, Any]:
        """Flatten the intent into a template variable map.

        Entity names become ``<type>Name`` plus the generic ``componentName``,
        ``moduleName`` and ``fileName`` aliases (first entity wins). Modifiers
        become camelCase boolean flags: ``with-tests`` -> ``withTests``.
        """
        variables: dict[str, Any] = {}

        for entity in intent.entities:
            variables.setdefault(f"{entity.type.value}Name", entity.name)
            for alias in ("componentName", "moduleName", "fileName"):
                variables.setdefault(alias, entity.name)

        for modifier in intent.modifiers:
            variables[camel_case(modifier.type.value)] = True

        if intent.references:
            variables["referenceFiles"] = [ref.target for ref in intent.references]
            variables["similarTo"] = intent.references[0].target

        return variables

    def format_intent(self, intent: ParsedIntent) -> str:
        """Format a parsed intent as a short human-readable summary."""
        lines = [f"Intent: {intent.intent.value}"]
        if intent.entities:
            entities = ", ".join(f"{e.name} ({e.type.value})" for e in intent.entities)
            lines.append(f"Entities: {entities}")
        if intent.modifiers:
            lines.append(f"Modifiers: {', '.join(m.type.value for m in intent.modifiers)}")
        if intent.references:
            lines.append(f"References: {', '.join(r.target for r in intent.references)}")
        lines.append(f"Confidence: {intent.confidence * 100:.0f}%")
        return "\n".join(lines)

    # -- Intent ------------------------------------------------------------

    def _extract_intent(self, normalized: str) -> IntentType:
        # Rule order decides; a keyword may open the prompt or stand as a word.
        for rule in self.rules.intents:
            for keyword in rule.keywords:
                if normalized.startswith(keyword) or keyword_pattern(keyword).search(normalized):
                    return IntentType(rule.category)
        return IntentType.UNKNOWN

    # -- Entities ----------------------------------------------------------

    @staticmethod
    def _entity_pattern(keyword: str) -> re.Pattern[str]:
        return re.compile(
            rf"(?i:\b{re.escape(keyword)}\b)\s+((?i:called|named)\s+)?"
            rf"({_NAME_TOKEN}{_NAME_CONTINUATION})"
        )

    @staticmethod
    def _entity_prefix_pattern(keyword: str) -> re.Pattern[str]:
        return re.compile(rf"\b([A-Z][A-Za-z0-9_]*)\s+(?i:{re.escape(keyword)}\b)")

    def _extract_entities(self, text: str) -> list[Entity]:
        found: list[Entity] = []

        for entity_type, _keyword, pattern in self._entity_patterns:
            for match in pattern.finditer(text):
                # An explicitly introduced name may itself be a keyword.
                rejected = self._filler_names if match.group(1) else self._rejected_names
                name = self._clean_name(match.group(2), rejected)
                if name:
                    found.append(
                        Entity(type=entity_type, name=name, position=(match.start(), match.end()))
                    )

        for entity_type, own_keywords, pattern in self._entity_prefix_patterns:
            for match in pattern.finditer(text):
                # "Settings component" names a component; "API route" is just a route.
                name = self._clean_name(
                    match.group(1), self._prefix_rejected_names | own_keywords
                )
                if name:
                    found.append(
                        Entity(type=entity_type, name=name, position=(match.start(), match.end()))
                    )

        if not found:
            fallback = self._fallback_entity(text)
            if fallback is not None:
                found.append(fallback)

        found.sort(key=lambda entity: entity.position)
        unique: dict[tuple[EntityType, str], Entity] = {}
        for entity in found:
            unique.setdefault((entity.type, entity.name), entity)
        return list(unique.values())

    def _clean_name(self, raw: str, rejected: frozenset[str] | None = None) -> str:
        """Strip trailing stop words and reject names found in *rejected*.

        *rejected* defaults to every keyword, stop word and article.
        """
        if rejected is None:
            rejected = self._rejected_names
        words = raw.split()
        while words and words[-1].lower() in STOP_WORDS:
            words.pop()
        name = _INVALID_NAME_CHARS.sub("", "".join(words))
        if not name or name.lower() in rejected:
            return ""
        return name

    def _fallback_entity(self, text: str) -> Entity | None:
        verbs = "|".join(FALLBACK_VERBS)
        match = re.search(
            rf"\b(?:{verbs})\s+(?:(?:a|an)\s+)?({_NAME_TOKEN})", text, re.IGNORECASE
        )
        if not match:
            return None
        name = self._clean_name(match.group(1))
        if not name:
            return None
        return Entity(
            type=self._infer_entity_type(text.lower()),
            name=name,
            position=(match.start(), match.end()),
        )

    @staticmethod
    def _infer_entity_type(normalized: str) -> EntityType:
        for rule in ENTITY_HINT_RULES:
            if any(keyword in normalized for keyword in rule.keywords):
                return EntityType(rule.category)
        return EntityType.COMPONENT

    # -- Modifiers & references -------------------------------------------

    def _extract_modifiers(self, normalized: str) -> list[Modifier]:
        modifiers: list[Modifier] = []
        for rule in self.rules.modifiers:
            if any(keyword_pattern(kw).search(normalized) for kw in rule.keywords):
                modifiers.append(Modifier(type=ModifierType(rule.category)))
        return modifiers

    def _extract_references(self, text: str) -> list[Reference]:
        references: list[Reference] = []
        seen: set[str] = set()
        for rule in self.rules.references:
            for match in rule.pattern.finditer(text):
                target = match.group(1)
                if target.lower() in seen:
                    continue
                seen.add(target.lower())
                references.append(
                    Reference(type=rule.type, target=target, relationship=rule.relationship)
                )
        return references

    # -- Scoring -----------------------------------------------------------

    def _calculate_confidence(
        self, normalized: str, intent: IntentType, entities: list[Entity]
    ) -> float:
        confidence = 0.5
        if intent != IntentType.UNKNOWN:
            confidence += 0.2
        confidence += min(len(entities) * 0.1, 0.2)
        if any(keyword_pattern(kw).search(normalized) for kw in self._entity_keywords):
            confidence += 0.1
        return round(min(confidence, 1.0), 4)

    @staticmethod
    def _detect_ambiguities(intent: IntentType, entities: list[Entity]) -> list[str]:
        ambiguities: list[str] = []
        if not entities:
            ambiguities.append("No entity name detected. What should it be called?")
        if intent == IntentType.UNKNOWN:
            ambiguities.append("Intent unclear. What do you want to create or generate?")
        types = list(dict.fromkeys(entity.type.value for entity in entities))
        if len(types) > 1:
            ambiguities.append(
                f"Multiple entity types detected: {', '.join(types)}. Which is primary?"
            )
        return ambiguities

    # -- Paths -------------------------------------------------------------

    def _file_name(self, entity: Entity) -> str:
        name = camel_case(entity.name)
        if entity.type == EntityType.COMPONENT:
            return f"{pascal_case(entity.name)}.tsx"
        if entity.type == EntityType.ROUTE:
            return f"{name}/route.ts"
        if entity.type == EntityType.SERVICE:
            return f"{name}.service.ts"
        if entity.type == EntityType.TEST:
            return f"{name}.test.ts"
        if entity.type == EntityType.MIGRATION:
            stamp = self.clock().astimezone(timezone.utc).strftime("%Y%m%d%H%M%S")
            return f"{stamp}_{snake_case(entity.name)}/migration.sql"
        if entity.type == EntityType.CONFIG:
            return f"{name}.config.ts"
        if entity.type == EntityType.MODULE:
            return f"{name}/index.ts"
        return f"{name}.ts"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _test_file_name(entity: Entity) -> str:
    if entity.type == EntityType.COMPONENT:
        return f"{pascal_case(entity.name)}.test.tsx"
    if entity.type == EntityType.SERVICE:
        return f"{camel_case(entity.name)}.service.test.ts"
    return f"{camel_case(entity.name)}.test.ts"


def _join_path(root: str, *parts: str) -> str:
    root = root.rstrip("/")
    return "/".join(part for part in (root, *parts) if part)
