"""Persistence of the filter configuration as a small YAML file.

Sets are written as sorted lists. A file that cannot be read or does not
validate raises FilterStoreError from ``load()``; callers treat that as
"no configuration" and clear it.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

import yaml
from pydantic import ValidationError

from gitreviewit.models import FilterConfiguration
from gitreviewit.models.filters import FILTER_CONFIGURATION_VERSION

DEFAULT_STORE_PATH = Path(".gitreviewit/filters.yaml")

LOG = logging.getLogger("gitreviewit.services.filter_store")


class FilterStoreError(Exception):
    """Persisted filter configuration is unreadable or invalid."""

    pass


class FilterStore(ABC):
    """Key-value blob store for one FilterConfiguration."""

    @abstractmethod
    def save(self, configuration: FilterConfiguration) -> None: ...

    @abstractmethod
    def load(self) -> FilterConfiguration | None:
        """Return the stored configuration, None if nothing is stored."""
        ...

    @abstractmethod
    def clear(self) -> None: ...


class YamlFilterStore(FilterStore):
    """Stores the configuration in a YAML file (default .gitreviewit/filters.yaml)."""

    def __init__(self, path: Path | str = DEFAULT_STORE_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def save(self, configuration: FilterConfiguration) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": configuration.version,
            "organizations": sorted(configuration.organizations),
            "repositories": sorted(configuration.repositories),
            "teams": sorted(configuration.teams),
        }
        raw = yaml.dump(payload, default_flow_style=False, allow_unicode=True, sort_keys=False)
        self._path.write_text(raw, encoding="utf-8")
        LOG.debug("Saved filter configuration to %s", self._path)

    def load(self) -> FilterConfiguration | None:
        if not self._path.is_file():
            return None
        try:
            data = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
            raise FilterStoreError(f"Cannot read {self._path}: {e}") from e
        if data is None:
            return None
        if not isinstance(data, dict):
            raise FilterStoreError(f"Expected a mapping in {self._path}")
        if data.get("version", FILTER_CONFIGURATION_VERSION) != FILTER_CONFIGURATION_VERSION:
            raise FilterStoreError(f"Unsupported filter configuration version {data.get('version')!r}")
        try:
            return FilterConfiguration.model_validate(data)
        except ValidationError as e:
            raise FilterStoreError(f"Invalid filter configuration in {self._path}: {e}") from e

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            LOG.info("Cleared filter configuration %s", self._path)
