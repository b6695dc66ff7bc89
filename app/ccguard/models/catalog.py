"""Archive catalog models.

Catalog entries describe downloadable legacy releases. They are static
data and unrelated to the locally installed copies.
"""

from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class RiskLevel(str, Enum):
    """How likely a legacy release is to be forced onto an update path."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class ArchiveCatalogEntry(BaseModel):
    """A downloadable legacy release.

    Attributes:
        persona: Short audience label (e.g., "Classic").
        version: Release version string.
        description: One-line summary of the release.
        download_url: Installer URL; opened externally, never fetched here.
        risk_level: Risk classification of the release.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    persona: Annotated[str, Field(min_length=1)]
    version: Annotated[str, Field(min_length=1)]
    description: str = ""
    download_url: HttpUrl
    risk_level: RiskLevel = RiskLevel.LOW

    def to_dict(self) -> dict[str, str]:
        """Serialize to the boundary dictionary shape."""
        return {
            "persona": self.persona,
            "version": self.version,
            "description": self.description,
            "download_url": str(self.download_url),
            "risk_level": self.risk_level.value,
        }
