"""Configuration management for the contour generator."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class AppConfig(BaseModel):
    """Application-level configuration."""

    output_dir: Path = Field(
        default=Path.cwd(),
        description="Default directory for .osm output",
    )
    settings_path: Optional[Path] = Field(
        default=None,
        description="YAML file with contour settings used when --config is not given",
    )
    log_level: str = Field(default="WARNING", description="Logging level name")

    @classmethod
    def load(cls) -> "AppConfig":
        """Load configuration from environment and defaults."""
        settings_path = os.environ.get("HGTCONTOUR_SETTINGS")
        return cls(
            output_dir=Path(os.environ.get("HGTCONTOUR_OUTPUT_DIR", str(cls.model_fields["output_dir"].default))),
            settings_path=Path(settings_path) if settings_path else None,
            log_level=os.environ.get("HGTCONTOUR_LOG_LEVEL", cls.model_fields["log_level"].default).upper(),
        )

    def ensure_directories(self) -> None:
        """Create necessary directories."""
        self.output_dir.mkdir(parents=True, exist_ok=True)


# Global config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create global configuration."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config
