"""Case conversion helpers and naming-style classification.

The converters split an identifier into lowercase words first and then
re-join them, so every style can be reached from every other one:

    pascal_case("user-profile")   -> "UserProfile"
    kebab_case("UserProfile")     -> "user-profile"
    snake_case("fetchHTTPData")   -> "fetch_http_data"

All functions are pure and total: any string, including an empty one, maps
to a string.
"""

from __future__ import annotations

import re

from .models import NamingStyle


# ---------------------------------------------------------------------------
# Word splitting
# ---------------------------------------------------------------------------

_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_WORD = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATORS = re.compile(r"[^A-Za-z0-9]+")


def split_words(value: str) -> list[str]:
    """Split *value* into lowercase words on case changes and separators."""
    spaced = _ACRONYM_WORD.sub(r"\1 \2", value)
    spaced = _LOWER_UPPER.sub(r"\1 \2", spaced)
    return [word.lower() for word in _SEPARATORS.split(spaced) if word]


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------

def _join_capitalized(words: list[str]) -> str:
    return "".join(word[0].upper() + word[1:] for word in words)


def pascal_case(value: str) -> str:
    """``user-profile`` / ``user_profile`` / ``userProfile`` -> ``UserProfile``.

    Single-letter and digit-led words merge with their neighbours once
    joined (``x-a`` -> ``XA`` re-splits as ``xa``), so the join is repeated
    until it stops changing. The result is therefore stable under another
    split/join pass.
    """
    result = _join_capitalized(split_words(value))
    while True:
        again = _join_capitalized(split_words(result))
        if again == result:
            return result
        result = again


def camel_case(value: str) -> str:
    """``user-profile`` -> ``userProfile``."""
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def kebab_case(value: str) -> str:
    """``UserProfile`` -> ``user-profile``."""
    return "-".join(split_words(value))


def snake_case(value: str) -> str:
    """``UserProfile`` -> ``user_profile``."""
    return "_".join(split_words(value))


def screaming_snake_case(value: str) -> str:
    return snake_case(value).upper()


def capitalize(value: str) -> str:
    """Upper-case the first character only, leaving the rest untouched."""
    return value[:1].upper() + value[1:]


def apply_style(value: str, style: NamingStyle) -> str:
    """Render *value* in the given naming style (``mixed`` keeps it as is)."""
    converters = {
        NamingStyle.CAMEL_CASE: camel_case,
        NamingStyle.PASCAL_CASE: pascal_case,
        NamingStyle.SNAKE_CASE: snake_case,
        NamingStyle.KEBAB_CASE: kebab_case,
        NamingStyle.SCREAMING_SNAKE_CASE: screaming_snake_case,
    }
    converter = converters.get(style)
    return converter(value) if converter else value


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

KEBAB_PATTERN = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
CAMEL_PATTERN = re.compile(r"^[a-z][a-z0-9]*([A-Z][a-z0-9]*)*$")
PASCAL_PATTERN = re.compile(r"^[A-Z][a-z0-9]*([A-Z][a-z0-9]*)*$")
SNAKE_PATTERN = re.compile(r"^[a-z][a-z0-9]*(_[a-z0-9]+)*$")
SCREAMING_PATTERN = re.compile(r"^[A-Z][A-Z0-9]*(_[A-Z0-9]+)*$")

# Checked in order: a single lowercase word is reported as kebab-case.
_STYLE_PATTERNS: tuple[tuple[NamingStyle, re.Pattern[str]], ...] = (
    (NamingStyle.KEBAB_CASE, KEBAB_PATTERN),
    (NamingStyle.CAMEL_CASE, CAMEL_PATTERN),
    (NamingStyle.PASCAL_CASE, PASCAL_PATTERN),
    (NamingStyle.SNAKE_CASE, SNAKE_PATTERN),
)


def matches_style(name: str, style: NamingStyle) -> bool:
    """Return ``True`` if *name* is a valid spelling in *style*."""
    for candidate, pattern in _STYLE_PATTERNS:
        if candidate == style:
            return bool(pattern.match(name))
    if style == NamingStyle.SCREAMING_SNAKE_CASE:
        return bool(SCREAMING_PATTERN.match(name))
    return False


def classify_naming_style(name: str) -> NamingStyle:
    """Return the first style whose pattern matches *name*, else ``mixed``."""
    for style, pattern in _STYLE_PATTERNS:
        if pattern.match(name):
            return style
    return NamingStyle.MIXED


def majority_style(
    samples: list[str],
    styles: tuple[NamingStyle, ...],
    default: NamingStyle,
) -> NamingStyle:
    """Pick the style matched by more than half of *samples*.

    Styles are tried in the given order. An empty sample list returns
    *default*; a sample set without a clear majority returns ``mixed``.
    """
    if not samples:
        return default
    for style in styles:
        hits = sum(1 for sample in samples if matches_style(sample, style))
        if hits / len(samples) > 0.5:
            return style
    return NamingStyle.MIXED
