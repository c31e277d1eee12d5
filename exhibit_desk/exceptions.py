"""Exceptions for Exhibit Desk."""

from typing import Optional


class ExhibitError(Exception):
    """Base exception for exhibit operations."""

    pass


class InvalidIdentifierError(ExhibitError):
    """Raised when an exhibit identifier does not match <number><letter>."""

    def __init__(self, raw: str = ""):
        self.raw = raw
        message = (
            f"Invalid exhibit identifier: {raw!r}. Expected a number followed by one letter (e.g. 12B)."
            if raw
            else "Invalid exhibit identifier."
        )
        super().__init__(message)


class DuplicateIdentifierError(ExhibitError):
    """Raised when an exhibit number is already taken in the case."""

    def __init__(self, exhibit_number: str = ""):
        self.exhibit_number = exhibit_number
        message = (
            f"Exhibit {exhibit_number} already exists in this case."
            if exhibit_number
            else "Exhibit already exists in this case."
        )
        super().__init__(message)


class SequencerExhaustedError(ExhibitError):
    """Raised when no identifier is left under the configured ceiling."""

    def __init__(self, max_number: Optional[int] = None):
        self.max_number = max_number
        message = (
            f"No unused exhibit identifier at or below number {max_number}."
            if max_number is not None
            else "No unused exhibit identifier available."
        )
        super().__init__(message)


class InvalidExhibitTypeError(ExhibitError):
    """Raised when an exhibit type is not one of ExhibitType's values."""

    def __init__(self, exhibit_type: str = ""):
        self.exhibit_type = exhibit_type
        message = (
            f"Unknown exhibit type: {exhibit_type!r}"
            if exhibit_type
            else "Unknown exhibit type."
        )
        super().__init__(message)


class ExhibitNotFoundError(ExhibitError):
    """Raised when a caller insists on an exhibit that does not exist."""

    def __init__(self, reference: str = ""):
        message = f"Exhibit not found: {reference}" if reference else "Exhibit not found."
        super().__init__(message)


class ExhibitStorageError(ExhibitError):
    """Raised when a stored exhibit snapshot cannot be read."""

    def __init__(self, message: str = "Exhibit snapshot is corrupted."):
        super().__init__(message)
