"""Proposes the next unused exhibit identifier for a case."""

from typing import Iterable, Optional

from ..exceptions import SequencerExhaustedError
from .grammar import Identifier, next_letter


def next_identifier(
    existing: Iterable[Identifier],
    max_number: Optional[int] = None,
) -> Identifier:
    """
    Propose the next identifier after the highest one in use.

    Continues the letter run of the highest exhibit number (1A, 1B, 2A -> 2B).
    After Z the number advances (3Z -> 4A). An empty case starts at 1A.

    Args:
        existing: Identifiers already assigned in the case
        max_number: Optional ceiling on exhibit numbers

    Returns:
        An identifier not present in ``existing``

    Raises:
        SequencerExhaustedError: If the proposal would exceed ``max_number``
    """
    taken = set(existing)

    if not taken:
        candidate = Identifier(1, "A")
    else:
        highest = max(ident.number for ident in taken)
        last_letter = max(ident.letter for ident in taken if ident.number == highest)
        letter = next_letter(last_letter)
        candidate = Identifier(highest, letter) if letter else Identifier(highest + 1, "A")

    # Never hand out an identifier that is already taken
    while candidate in taken:
        candidate = _advance(candidate)

    if max_number is not None and candidate.number > max_number:
        raise SequencerExhaustedError(max_number)

    return candidate


def _advance(identifier: Identifier) -> Identifier:
    letter = next_letter(identifier.letter)
    if letter:
        return Identifier(identifier.number, letter)
    return Identifier(identifier.number + 1, "A")
