"""Keyword rule table for prompt parsing.

Each rule is plain data: a category and the words or phrases that select it.
``PromptParser`` walks these tables in order, so the first matching rule wins
wherever order matters (intent detection), and every rule is tried
independently where it does not (entities, modifiers, references).
"""

from __future__ import annotations

import re
from typing import NamedTuple

from ..models import EntityType, IntentType, ModifierType, ReferenceType, Relationship


class KeywordRule(NamedTuple):
    """Maps a category to the keywords that trigger it."""
    category: str
    keywords: tuple[str, ...]


class ReferenceRule(NamedTuple):
    """A regex capturing the target of a reference in group 1."""
    type: ReferenceType
    pattern: re.Pattern[str]
    relationship: Relationship


class RuleTable(NamedTuple):
    intents: tuple[KeywordRule, ...]
    entities: tuple[KeywordRule, ...]
    modifiers: tuple[KeywordRule, ...]
    references: tuple[ReferenceRule, ...]


# ---------------------------------------------------------------------------
# Intents (ordered: first match wins)
# ---------------------------------------------------------------------------

INTENT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(IntentType.CREATE.value, ("create", "make", "new", "build")),
    KeywordRule(IntentType.GENERATE.value, ("generate", "gen")),
    KeywordRule(IntentType.ADD.value, ("add", "include", "insert")),
    KeywordRule(IntentType.SCAFFOLD.value, ("scaffold",)),
    KeywordRule(IntentType.UPDATE.value, ("update", "modify", "change", "edit")),
    KeywordRule(IntentType.EXTEND.value, ("extend", "expand", "enhance")),
    KeywordRule(IntentType.DUPLICATE.value, ("duplicate", "copy", "clone")),
)

# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

ENTITY_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(EntityType.MODULE.value, ("module",)),
    KeywordRule(EntityType.COMPONENT.value, ("component", "comp")),
    KeywordRule(EntityType.ROUTE.value, ("route", "endpoint", "api", "handler")),
    KeywordRule(EntityType.MODEL.value, ("model", "schema", "entity")),
    KeywordRule(EntityType.SERVICE.value, ("service", "provider")),
    KeywordRule(EntityType.UTILITY.value, ("utility", "util", "helper", "function")),
    KeywordRule(EntityType.TEST.value, ("test", "spec", "testing")),
    KeywordRule(EntityType.MIGRATION.value, ("migration", "migrate")),
    KeywordRule(EntityType.CONFIG.value, ("config", "configuration", "settings")),
)

# Hint words used to type a fallback entity, checked in order.
ENTITY_HINT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(EntityType.ROUTE.value, ("api", "route", "endpoint")),
    KeywordRule(EntityType.TEST.value, ("test", "spec")),
    KeywordRule(EntityType.MODEL.value, ("model", "schema")),
    KeywordRule(EntityType.COMPONENT.value, ("component", "page")),
    KeywordRule(EntityType.SERVICE.value, ("service", "provider")),
    KeywordRule(EntityType.UTILITY.value, ("util", "helper")),
)

# Words that end an entity name and are never names themselves.
STOP_WORDS: frozenset[str] = frozenset({
    "with", "that", "for", "using", "including", "having", "containing", "and", "or",
    "as", "in", "to", "of", "on", "from", "which", "similar", "like", "based", "following",
})

ARTICLES: frozenset[str] = frozenset({"a", "an", "the"})

# Verbs after which the fallback entity name is captured.
FALLBACK_VERBS: tuple[str, ...] = ("create", "generate", "add", "make", "build")

# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

MODIFIER_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ModifierType.WITH_TESTS.value,
        ("with tests", "with testing", "with unit tests", "including tests", "and tests"),
    ),
    KeywordRule(ModifierType.WITH_TYPES.value, ("with types", "typed", "with typescript")),
    KeywordRule(
        ModifierType.WITH_DOCS.value,
        ("with docs", "documented", "with documentation", "and docs"),
    ),
    KeywordRule(
        ModifierType.WITH_AUTH.value,
        ("with auth", "authenticated", "with authentication", "and auth"),
    ),
    KeywordRule(
        ModifierType.WITH_VALIDATION.value,
        ("with validation", "validated", "and validation"),
    ),
    KeywordRule(ModifierType.TYPESCRIPT.value, ("typescript", "ts")),
    KeywordRule(ModifierType.JAVASCRIPT.value, ("javascript", "js")),
    KeywordRule(ModifierType.FUNCTIONAL.value, ("functional", "function component")),
    KeywordRule(ModifierType.CLASS_BASED.value, ("class", "class component", "class-based")),
)

# ---------------------------------------------------------------------------
# References
# ---------------------------------------------------------------------------

_TARGET = r"([A-Za-z0-9_./@-]*[A-Za-z0-9_])"

REFERENCE_RULES: tuple[ReferenceRule, ...] = (
    ReferenceRule(
        ReferenceType.FILE,
        re.compile(rf"\bsimilar\s+to\s+{_TARGET}", re.IGNORECASE),
        Relationship.SIMILAR,
    ),
    ReferenceRule(
        ReferenceType.FILE,
        re.compile(rf"\blike\s+{_TARGET}", re.IGNORECASE),
        Relationship.SIMILAR,
    ),
    ReferenceRule(
        ReferenceType.FILE,
        re.compile(rf"\bbased\s+on\s+{_TARGET}", re.IGNORECASE),
        Relationship.BASED_ON,
    ),
    ReferenceRule(
        ReferenceType.PATTERN,
        re.compile(rf"\bfollowing\s+(?:the\s+)?pattern\s+of\s+{_TARGET}", re.IGNORECASE),
        Relationship.SIMILAR,
    ),
    ReferenceRule(
        ReferenceType.PATTERN,
        re.compile(rf"\busing\s+(?:the\s+)?pattern\s+from\s+{_TARGET}", re.IGNORECASE),
        Relationship.USES,
    ),
    ReferenceRule(
        ReferenceType.MODULE,
        re.compile(rf"\bthat\s+extends\s+{_TARGET}", re.IGNORECASE),
        Relationship.EXTENDS,
    ),
)


DEFAULT_RULES = RuleTable(
    intents=INTENT_RULES,
    entities=ENTITY_RULES,
    modifiers=MODIFIER_RULES,
    references=REFERENCE_RULES,
)


def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Compile a case-insensitive whole-word pattern for *keyword*.

    Multi-word phrases match across any run of whitespace.
    """
    words = [re.escape(word) for word in keyword.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def all_entity_keywords(rules: RuleTable = DEFAULT_RULES) -> frozenset[str]:
    return frozenset(kw for rule in rules.entities for kw in rule.keywords)


def all_intent_keywords(rules: RuleTable = DEFAULT_RULES) -> frozenset[str]:
    return frozenset(kw for rule in rules.intents for kw in rule.keywords)
