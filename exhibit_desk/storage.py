"""Snapshot storage for a case's exhibits and citation history.

State is kept as YAML files in the case's exhibits/ directory:
    case_dir/exhibits/_registry.yaml   - Exhibits and their file links
    case_dir/exhibits/_citations.yaml  - Citation history rows
"""

from pathlib import Path
from typing import Optional

import yaml

from .citations.resolver import CitationResolver
from .config.settings import Settings
from .exceptions import ExhibitStorageError
from .registry.registry import ExhibitRegistry
from .utils.logging import get_logger

logger = get_logger(__name__)


# YAML file names
REGISTRY_FILE = "_registry.yaml"
CITATIONS_FILE = "_citations.yaml"


class ExhibitStorage:
    """Loads and saves exhibit state for one case directory."""

    def __init__(self, case_dir: Path, settings: Optional[Settings] = None):
        """Initialize storage for a case directory.

        Args:
            case_dir: Path to the case directory
            settings: Settings passed to loaded registries
        """
        self.case_dir = Path(case_dir)
        self.exhibits_dir = self.case_dir / "exhibits"
        self.settings = settings

    def ensure_exhibits_dir(self) -> None:
        """Create exhibits directory if it doesn't exist."""
        self.exhibits_dir.mkdir(parents=True, exist_ok=True)

    @property
    def registry_path(self) -> Path:
        """Path to the registry file."""
        return self.exhibits_dir / REGISTRY_FILE

    @property
    def citations_path(self) -> Path:
        """Path to the citation history file."""
        return self.exhibits_dir / CITATIONS_FILE

    @property
    def is_initialized(self) -> bool:
        return self.registry_path.exists()

    def load_registry(self, case_id: str = "") -> ExhibitRegistry:
        """Load the registry, or create an empty one.

        Args:
            case_id: Case ID for a new registry (defaults to the directory name)

        Returns:
            ExhibitRegistry
        """
        data = self._read(self.registry_path)
        if data is None:
            return ExhibitRegistry(case_id=case_id or self.case_dir.name, settings=self.settings)
        return ExhibitRegistry.from_dict(data, settings=self.settings)

    def save_registry(self, registry: ExhibitRegistry) -> None:
        """Save the registry to disk."""
        self._write(self.registry_path, registry.to_dict())

    def load_resolver(self, registry: ExhibitRegistry) -> CitationResolver:
        """Load citation history into a resolver bound to ``registry``."""
        data = self._read(self.citations_path) or {}
        return CitationResolver.from_dict(data, registry, settings=self.settings)

    def save_resolver(self, resolver: CitationResolver) -> None:
        """Save citation history to disk."""
        self._write(self.citations_path, resolver.to_dict())

    def _read(self, path: Path) -> Optional[dict]:
        if not path.exists():
            return None

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ExhibitStorageError(f"Could not read {path}: {e}") from e

        if not isinstance(data, dict):
            raise ExhibitStorageError(f"Unexpected content in {path}")
        return data

    def _write(self, path: Path, data: dict) -> None:
        self.ensure_exhibits_dir()
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        logger.debug(f"Saved {path}")


def init_exhibit_storage(case_dir: Path, case_id: str = "", settings: Optional[Settings] = None) -> ExhibitStorage:
    """Initialize exhibit storage for a case.

    Creates the exhibits/ directory and an empty registry file if missing.

    Args:
        case_dir: Path to case directory
        case_id: Case ID for a new registry
        settings: Settings for loaded registries

    Returns:
        Initialized ExhibitStorage
    """
    storage = ExhibitStorage(case_dir, settings=settings)
    storage.ensure_exhibits_dir()

    if not storage.is_initialized:
        storage.save_registry(storage.load_registry(case_id))

    return storage
