"""Identifier helpers: sanitizing, casing and plural/singular variations."""

import keyword
import re
from typing import Iterable, Set

# Irregular forms that the suffix rules get wrong.
_IRREGULAR = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
    "goose": "geese",
    "foot": "feet",
    "tooth": "teeth",
}
_IRREGULAR_PLURALS = {plural: singular for singular, plural in _IRREGULAR.items()}

# Words that are the same in both forms.
_UNCOUNTABLE = {"data", "metadata", "information", "equipment", "news", "series", "species", "status"}

_WORD_BOUNDARY = re.compile(r'[^0-9a-zA-Z]+|(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])')


def sanitize_identifier(name: str) -> str:
    """Make ``name`` a valid Python identifier."""
    sanitized = re.sub(r'[^a-zA-Z0-9_]', '_', name)
    if not sanitized:
        return "_"
    if sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    if keyword.iskeyword(sanitized):
        sanitized = f"{sanitized}_"
    return sanitized


def split_words(name: str) -> list:
    return [w for w in _WORD_BOUNDARY.split(name) if w]


def to_pascal_case(name: str) -> str:
    """``order_items`` -> ``OrderItems``; ``OrderItems`` stays as is."""
    words = split_words(name)
    if not words:
        return sanitize_identifier(name)
    return sanitize_identifier("".join(w[:1].upper() + w[1:].lower() if w.isupper() or w.islower()
                                       else w[:1].upper() + w[1:] for w in words))


def to_snake_case(name: str) -> str:
    """``OrderItems`` -> ``order_items``."""
    words = split_words(name)
    if not words:
        return sanitize_identifier(name)
    return sanitize_identifier("_".join(w.lower() for w in words))


def _match_case(original: str, replacement: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def _last_word(name: str):
    """Split ``name`` into (prefix, last word) so only the last word is inflected."""
    match = re.search(r'([A-Z]?[a-z]+|[A-Z]+|[a-z]+)$', name)
    if not match:
        return name, ""
    return name[:match.start()], match.group(1)


def pluralize(name: str) -> str:
    """Plural form of the last word of ``name``."""
    prefix, word = _last_word(name)
    if not word:
        return name
    lower = word.lower()

    if lower in _UNCOUNTABLE or lower in _IRREGULAR_PLURALS:
        return name
    if lower in _IRREGULAR:
        return prefix + _match_case(word, _IRREGULAR[lower])
    if lower.endswith('s') and not lower.endswith(('ss', 'us', 'is')):
        # Already plural.
        return name

    if re.search(r'[^aeiou]y$', lower):
        plural = word[:-1] + 'ies'
    elif lower.endswith(('s', 'x', 'z', 'ch', 'sh')):
        plural = word + 'es'
    else:
        plural = word + 's'
    return prefix + (plural.upper() if word.isupper() and len(word) > 1 else plural)


def singularize(name: str) -> str:
    """Singular form of the last word of ``name``."""
    prefix, word = _last_word(name)
    if not word:
        return name
    lower = word.lower()

    if lower in _UNCOUNTABLE or lower in _IRREGULAR:
        return name
    if lower in _IRREGULAR_PLURALS:
        return prefix + _match_case(word, _IRREGULAR_PLURALS[lower])

    if lower.endswith('ies') and len(lower) > 3:
        singular = word[:-3] + ('Y' if word.isupper() else 'y')
    elif lower.endswith(('sses', 'xes', 'zes', 'ches', 'shes')):
        singular = word[:-2]
    elif lower.endswith('s') and not lower.endswith(('ss', 'us', 'is')) and len(lower) > 1:
        singular = word[:-1]
    else:
        return name
    return prefix + singular


class UniqueNamer:
    """Hands out names, appending a counter when a name is already taken."""

    def __init__(self, reserved: Iterable[str] = ()):
        self.used: Set[str] = set(reserved)

    def get_name(self, candidate: str) -> str:
        name = candidate
        counter = 1
        while name in self.used:
            name = f"{candidate}{counter}"
            counter += 1
        self.used.add(name)
        return name
