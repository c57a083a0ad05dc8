"""
Utility functions for markers_to_schema.
"""

import re

# Regex pattern to split text into words, handling camelCase boundaries
_WORD_PATTERN = re.compile(r"[a-z]+|[A-Z][a-z]*|[0-9]+")

# Irregular plurals that the suffix rules below get wrong
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "index": "indices",
}

_ES_SUFFIXES = ("s", "x", "z", "ch", "sh")


def _normalize_separators(text: str) -> str:
    """Normalize separators (underscores, hyphens) to spaces."""
    return text.replace("_", " ").replace("-", " ")


def _split_into_words(text: str) -> list[str]:
    """Split text into words, handling camelCase boundaries."""
    return _WORD_PATTERN.findall(text)


def snake_to_camel_case(text: str) -> str:
    """Convert snake_case text to camelCase.

    Examples:
        "short_names" -> "shortNames"
        "scope" -> "scope"
        "max_desc_len" -> "maxDescLen"

    Args:
        text: The text to convert

    Returns:
        camelCase string
    """
    if not text:
        return ""
    words = _split_into_words(_normalize_separators(text))
    if not words:
        return ""
    return words[0].lower() + "".join(word.capitalize() for word in words[1:])


def pluralize(word: str) -> str:
    """Return the English plural of a lowercase kind name.

    Examples:
        "cronjob" -> "cronjobs"
        "policy" -> "policies"
        "ingress" -> "ingresses"
    """
    if not word:
        return ""
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(_ES_SUFFIXES):
        return word + "es"
    return word + "s"
