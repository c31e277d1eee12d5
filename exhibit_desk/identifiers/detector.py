"""Exhibit identifier detection from filenames.

Detection is purely syntactic: the filename (without its extension) is
scanned for the first ``<digits><letter>`` token, optionally introduced by an
"Exhibit" prefix and optionally split by a space, hyphen or underscore.
File content is never read.
"""

import re
from pathlib import PurePath
from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from .grammar import Identifier

if TYPE_CHECKING:
    from ..models import FileRecord


# Separators tolerated between the parts of an identifier
SEPARATORS = r"[\s_\-]"

CANDIDATE_PATTERN = re.compile(
    r"(?<![A-Za-z0-9])"  # Start of a token
    rf"(?:exhibit{SEPARATORS}*)?"
    rf"([0-9]+){SEPARATORS}*([A-Za-z])"
    r"(?![A-Za-z])",  # Exactly one letter
    re.IGNORECASE | re.ASCII,  # ASCII letters only, no Unicode case folding
)


def strip_extension(filename: str) -> str:
    """Return the filename without directory or final extension."""
    name = PurePath(filename).name
    stem, dot, suffix = name.rpartition(".")
    # Dotfiles and names without a dot keep their whole text
    if not dot or not stem or " " in suffix:
        return name
    return stem


def detect(filename: str) -> Optional[Identifier]:
    """
    Detect an exhibit identifier embedded in a filename.

    Examples:
        "Exhibit 12-B_contract.pdf" -> 12B
        "3c photo.jpg"              -> 3C
        "scan_2023_report.pdf"      -> None

    Args:
        filename: Filename (a path is accepted; only the name is scanned)

    Returns:
        First identifier by position, or None
    """
    if not filename:
        return None

    for match in CANDIDATE_PATTERN.finditer(strip_extension(filename)):
        number = int(match.group(1))
        if number < 1:
            continue
        return Identifier(number=number, letter=match.group(2).upper())

    return None


class ExhibitDetector:
    """Applies filename detection to batches of file records."""

    def detect(self, filename: str) -> Optional[Identifier]:
        return detect(filename)

    def detect_many(
        self, files: Iterable["FileRecord"]
    ) -> Iterator[tuple["FileRecord", Optional[Identifier]]]:
        """Yield each file with its detected identifier, in input order."""
        for file_record in files:
            yield file_record, self.detect(file_record.name)
