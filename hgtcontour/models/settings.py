"""Contour tracing and tagging settings."""

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class MagnitudeBand(str, Enum):
    """Contour classification by elevation."""

    MAJOR = "major"  # multiple of 500
    MEDIUM = "medium"  # multiple of 100
    MINOR = "minor"  # everything else


def classify_elevation(elevation: int) -> MagnitudeBand:
    """Pick the magnitude band for a contour elevation."""
    if elevation % 500 == 0:
        return MagnitudeBand.MAJOR
    elif elevation % 100 == 0:
        return MagnitudeBand.MEDIUM
    else:
        return MagnitudeBand.MINOR


class TagSettings(BaseModel):
    """Tag keys and values written on contour ways."""

    elev_key: str = Field(default="ele", min_length=1, description="Key holding the elevation value")
    contour_key: str = Field(default="contour", min_length=1, description="Contour classification key")
    contour_val: str = Field(default="elevation", min_length=1, description="Contour classification value")
    contour_ext_key: str = Field(default="contour_ext", min_length=1, description="Magnitude band key")
    contour_ext_major: str = Field(default="elevation_major", min_length=1, description="Value for major lines")
    contour_ext_medium: str = Field(default="elevation_medium", min_length=1, description="Value for medium lines")
    contour_ext_minor: str = Field(default="elevation_minor", min_length=1, description="Value for minor lines")

    def band_value(self, band: MagnitudeBand) -> str:
        """Tag value configured for a magnitude band."""
        return {
            MagnitudeBand.MAJOR: self.contour_ext_major,
            MagnitudeBand.MEDIUM: self.contour_ext_medium,
            MagnitudeBand.MINOR: self.contour_ext_minor,
        }[band]


class ContourSettings(BaseModel):
    """Settings for one tile conversion run."""

    interval: int = Field(default=25, gt=0, description="Elevation step between contour levels (m)")
    nodata_values: list[int] = Field(
        default_factory=lambda: [-32768],
        description="Sample values meaning 'no data'",
    )
    simplify_tolerance: float = Field(
        default=0.01,
        ge=0,
        description="Douglas-Peucker tolerance in grid cells (0 disables simplification)",
    )
    tags: TagSettings = Field(default_factory=TagSettings)

    @classmethod
    def from_yaml(cls, path: Path) -> "ContourSettings":
        """Load settings from a YAML file. Missing keys keep their defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        """Save settings to a YAML file."""
        data = self.model_dump(mode="json")
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
