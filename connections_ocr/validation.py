"""
Tile word validation.

OCR on a puzzle screenshot picks up a lot more than the 16 tiles: the app's
buttons, the status bar clock, the "mistakes remaining" counter and stray
glyph noise. Each candidate is checked against a static ruleset of shape and
vocabulary rules; a token survives only if every rule passes.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List


CLOCK_PATTERN = re.compile(r'^\d{1,2}:\d{2}$')
DIGITS_PATTERN = re.compile(r'^\d+$')
LETTER_PATTERN = re.compile(r'[A-Za-z]')


# Words from the Connections screen chrome, collected from real screenshots.
INTERFACE_WORDS = frozenset({
    'CONNECTIONS', 'CONNECTION', 'CREATE', 'SHUFFLE', 'DESELECT', 'SUBMIT',
    'TODAY', 'ARCHIVE', 'PLAY', 'NYT', 'GAMES', 'MENU', 'GAME',
    'MISTAKES', 'REMAINING', 'ONE', 'TWO', 'THREE', 'FOUR', 'FIVE',
    'NEXT', 'BACK', 'SHARE', 'RESULTS', 'VIEW', 'ALL', 'OF',
    'GROUPS', 'GROUP', 'CORRECT', 'INCORRECT', 'GUESS', 'GUESSES',
    'SETTINGS', 'HELP', 'HOW', 'TO', 'THE', 'AND', 'FOR', 'WITH',
    'YOUR', 'YOU', 'ARE', 'WAS', 'WERE', 'BEEN', 'BEING',
    'AM', 'PM', 'JAN', 'FEB', 'MAR', 'APR', 'MAY', 'JUN',
    'JUL', 'AUG', 'SEP', 'OCT', 'NOV', 'DEC',
})

# Short filler words that show up in hints and banners but never as tiles.
SHORT_COMMON_WORDS = frozenset({
    'A', 'I', 'AN', 'AS', 'AT', 'BE', 'BY', 'DO', 'GO', 'HE', 'IF', 'IN',
    'IS', 'IT', 'ME', 'MY', 'NO', 'ON', 'OR', 'SO', 'UP', 'US', 'WE',
})


@dataclass(frozen=True)
class ValidationRuleset:
    """Static filter configuration, constant for the lifetime of a pipeline."""
    banned_words: FrozenSet[str] = INTERFACE_WORDS
    short_words: FrozenSet[str] = SHORT_COMMON_WORDS
    min_length: int = 2
    max_length: int = 20

    def with_banned(self, extra: Iterable[str]) -> 'ValidationRuleset':
        """Return a copy whose interface vocabulary also bans `extra`."""
        words = frozenset(w.upper() for w in extra)
        return ValidationRuleset(
            banned_words=self.banned_words | words,
            short_words=self.short_words,
            min_length=self.min_length,
            max_length=self.max_length,
        )


DEFAULT_RULESET = ValidationRuleset()


def is_repeated_character(text: str) -> bool:
    """True for degenerate tokens such as 'EEEE' or 'LL'."""
    return len(text) >= 2 and len(set(text)) == 1


def is_valid_tile_word(text: str, ruleset: ValidationRuleset = DEFAULT_RULESET) -> bool:
    """
    Decide whether a candidate token can be a puzzle tile.

    Args:
        text: Candidate token (expected upper-case)
        ruleset: Vocabulary and length bounds to apply

    Returns:
        bool: True only if every rule accepts the token
    """
    if not text:
        return False
    if len(text) < ruleset.min_length or len(text) > ruleset.max_length:
        return False

    if text in ruleset.banned_words or text in ruleset.short_words:
        return False

    if CLOCK_PATTERN.match(text):
        return False
    if DIGITS_PATTERN.match(text):
        return False

    if is_repeated_character(text):
        return False

    # Must have at least one letter
    if not LETTER_PATTERN.search(text):
        return False

    return True


def filter_valid(tokens: Iterable[str], ruleset: ValidationRuleset = DEFAULT_RULESET) -> List[str]:
    """Keep the tokens that pass validation, in their original order."""
    return [t for t in tokens if is_valid_tile_word(t, ruleset)]
