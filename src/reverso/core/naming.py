import re

from reverso.constants import REPEATER_PLACEHOLDER

_CASE_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s_\-]+")


def split_words(value: str) -> list[str]:
    """Split camelCase, PascalCase, snake_case and kebab-case identifiers into words."""
    words: list[str] = []
    for chunk in _SEPARATORS.split(value):
        if not chunk or chunk == REPEATER_PLACEHOLDER:
            continue
        words.extend(part for part in _CASE_BOUNDARY.split(chunk) if part)
    return words


def format_label(value: str) -> str:
    """``heroTitle`` / ``hero_title`` / ``hero-title`` -> ``Hero Title``."""
    return " ".join(word[:1].upper() + word[1:] for word in split_words(value))
