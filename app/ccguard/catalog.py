"""Static catalog of downloadable legacy releases.

The catalog ships with the package as data/archive.toml. It is read-only
reference data with no behavior beyond validation.
"""

import logging
import tomllib
from functools import lru_cache
from importlib import resources

from pydantic import ValidationError

from ccguard.models.catalog import ArchiveCatalogEntry

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _load_catalog() -> tuple[ArchiveCatalogEntry, ...]:
    raw = resources.files("ccguard.data").joinpath("archive.toml").read_text(encoding="utf-8")
    data = tomllib.loads(raw)
    entries: list[ArchiveCatalogEntry] = []
    for index, item in enumerate(data.get("versions", [])):
        try:
            entries.append(ArchiveCatalogEntry.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping invalid catalog entry %d: %s", index, e)
    return tuple(entries)


def get_archive_versions() -> list[ArchiveCatalogEntry]:
    """Return the legacy release catalog in its bundled order."""
    return list(_load_catalog())
