"""
Noun inflection for relationship names.

Relationship accessors read as English: a has-many accessor is the plural
of the referencing table, a belongs-to accessor the singular of the
referencing column. Callers can override single words through a mapping or
a function; a function that returns a false value falls through to the
default inflection.
"""

import logging
from typing import Callable, Dict, Optional, Union

import inflect


logger = logging.getLogger(__name__)

InflectOverride = Union[Dict[str, str], Callable[[str], Optional[str]], None]

_INFLECT_ENGINE_ = inflect.engine()


def _plural_to_singular(word: str) -> Optional[str]:
    """
    Return the singular of ``word`` when it is a plural, else None.

    ``singular_noun`` also strips the ``s`` off singular nouns such as
    "address" or "status", so its answer is only trusted when that
    singular pluralizes back to the word.
    """
    singular = _INFLECT_ENGINE_.singular_noun(word)
    if not singular:
        return None
    # inflect pluralizes the singular nouns it knows to end in s with "es"
    if _INFLECT_ENGINE_.plural_noun(word) == f"{word}es":
        return None
    if _INFLECT_ENGINE_.plural_noun(singular) != word:
        return None
    return singular


def to_plural(word: str) -> str:
    """Default pluralization. Words that are already plural are returned as-is."""
    if not word:
        return word
    if _plural_to_singular(word):
        return word
    return _INFLECT_ENGINE_.plural_noun(word) or word


def to_singular(word: str) -> str:
    """Default singularization. Words that are already singular are returned as-is."""
    if not word:
        return word
    return _plural_to_singular(word) or word


def _apply_override(override: InflectOverride, word: str) -> Optional[str]:
    if isinstance(override, dict):
        return override.get(word)
    if callable(override):
        return override(word) or None
    return None


class Inflector:
    """
    Pluralizer/singularizer with per-word override hooks.

    Example:
        >>> inflector = Inflector(plural_overrides={'person': 'persons'})
        >>> inflector.pluralize('person')
        'persons'
        >>> inflector.singularize('customers')
        'customer'
    """

    def __init__(
        self,
        plural_overrides: InflectOverride = None,
        singular_overrides: InflectOverride = None,
    ):
        self.plural_overrides = plural_overrides
        self.singular_overrides = singular_overrides

    def pluralize(self, word: str) -> str:
        inflected = _apply_override(self.plural_overrides, word)
        if inflected:
            return inflected
        return to_plural(word)

    def singularize(self, word: str) -> str:
        inflected = _apply_override(self.singular_overrides, word)
        if inflected:
            return inflected
        return to_singular(word)
