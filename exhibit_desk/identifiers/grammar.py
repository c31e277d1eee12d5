"""Exhibit identifier grammar: ``<number><letter>`` such as ``12B``.

Parsing never raises. Anything that does not match the grammar comes back as
an ``InvalidIdentifier`` holding the raw text, so legacy or hand-typed values
can still be displayed and sorted (after every valid identifier).
"""

import re
from dataclasses import dataclass
from typing import Union

from ..exceptions import InvalidIdentifierError


IDENTIFIER_PATTERN = re.compile(r"([0-9]+)([A-Za-z])")

ASCII_LETTERS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


@dataclass(frozen=True)
class Identifier:
    """A valid exhibit identifier."""

    number: int
    letter: str

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def sort_key(self) -> tuple:
        return (0, self.number, self.letter, "")

    def __str__(self) -> str:
        return format_identifier(self.number, self.letter)


@dataclass(frozen=True)
class InvalidIdentifier:
    """Text that failed to parse as an identifier, kept verbatim."""

    raw: str

    @property
    def is_valid(self) -> bool:
        return False

    @property
    def sort_key(self) -> tuple:
        return (1, 0, "", self.raw)

    def __str__(self) -> str:
        return self.raw


ParsedIdentifier = Union[Identifier, InvalidIdentifier]


def parse(raw: str) -> ParsedIdentifier:
    """
    Parse an exhibit identifier.

    Input is case-insensitive and surrounding whitespace is ignored. Leading
    zeros are accepted and dropped ("007b" -> 7B). The number must be at
    least 1.

    Args:
        raw: Text to parse

    Returns:
        Identifier, or InvalidIdentifier carrying the original text
    """
    if not isinstance(raw, str):
        return InvalidIdentifier(str(raw))

    match = IDENTIFIER_PATTERN.fullmatch(raw.strip())
    if not match:
        return InvalidIdentifier(raw)

    number = int(match.group(1))
    if number < 1:
        return InvalidIdentifier(raw)

    return Identifier(number=number, letter=match.group(2).upper())


def parse_strict(raw: str) -> Identifier:
    """Parse an identifier, raising InvalidIdentifierError on failure."""
    parsed = parse(raw)
    if not isinstance(parsed, Identifier):
        raise InvalidIdentifierError(str(raw))
    return parsed


def format_identifier(number: int, letter: str) -> str:
    """
    Format a number and letter as an identifier string.

    Args:
        number: Positive exhibit number
        letter: Single ASCII letter (either case)

    Returns:
        Normalized identifier such as "12B"
    """
    if isinstance(number, bool) or not isinstance(number, int) or number < 1:
        raise InvalidIdentifierError(f"{number}{letter}")
    if not isinstance(letter, str) or len(letter) != 1 or letter.upper() not in ASCII_LETTERS:
        raise InvalidIdentifierError(f"{number}{letter}")
    return f"{number}{letter.upper()}"


def make_identifier(number: int, letter: str) -> Identifier:
    """Build a validated Identifier from its parts."""
    format_identifier(number, letter)
    return Identifier(number=number, letter=letter.upper())


def sort_key(value: Union[ParsedIdentifier, str]) -> tuple:
    """Total ordering key: valid identifiers by (number, letter), then raw text."""
    if isinstance(value, str):
        value = parse(value)
    return value.sort_key


def next_letter(letter: str) -> str:
    """Return the letter after ``letter``, or an empty string after Z."""
    index = ASCII_LETTERS.index(letter.upper())
    if index + 1 >= len(ASCII_LETTERS):
        return ""
    return ASCII_LETTERS[index + 1]
