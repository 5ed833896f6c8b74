"""Smart Scaffolder prompt parser.

Parses free-text scaffold requests into structured intents using a keyword
rule table.

Usage::

    from smart_scaffolder.parser import PromptParser

    parser = PromptParser()
    intent = parser.parse("create a UserProfile component with tests")
    print(intent.intent, intent.entities, intent.confidence)
    print(parser.match_templates(intent))
"""

from .prompt_parser import PromptParser
from .rules import DEFAULT_RULES, KeywordRule, ReferenceRule, RuleTable

__all__ = [
    "PromptParser",
    "DEFAULT_RULES",
    "KeywordRule",
    "ReferenceRule",
    "RuleTable",
]
