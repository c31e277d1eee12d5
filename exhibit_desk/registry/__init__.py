"""Exhibit registry for a case."""

from .registry import (
    AttachResult,
    AutoAssignSummary,
    CreateResult,
    ExhibitRegistry,
    RegistryEvent,
    RegistryEventKind,
)

__all__ = [
    "AttachResult",
    "AutoAssignSummary",
    "CreateResult",
    "ExhibitRegistry",
    "RegistryEvent",
    "RegistryEventKind",
]
