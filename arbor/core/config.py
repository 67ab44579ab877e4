"""Configuration management for Arbor.

Two layers:
- Settings: process-level settings from the environment / .env (pydantic-settings)
- ArborConfig: per-project settings persisted at <project_root>/.arbor/config.yaml
"""

import logging
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from arbor import __version__

logger = logging.getLogger(__name__)

ARBOR_DIR = ".arbor"
CONFIG_FILE = "config.yaml"
DEFAULT_DB_PATH = f"{ARBOR_DIR}/graph.db"
DEFAULT_SOLUTIONS_DIR = "docs/solutions"


class Settings(BaseSettings):
    """Process settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    project_root: Path = Field(default_factory=Path.cwd, alias="ARBOR_PROJECT_ROOT")
    # Override .arbor/config.yaml when set
    db_path: Optional[str] = Field(default=None, alias="ARBOR_DB_PATH")
    solutions_dir: Optional[str] = Field(default=None, alias="ARBOR_SOLUTIONS_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_to_file: bool = Field(default=False, alias="ARBOR_LOG_TO_FILE")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass
class ArborConfig:
    """Per-project configuration stored in .arbor/config.yaml."""

    db_path: str = DEFAULT_DB_PATH
    """Database path, relative to the project root unless absolute."""

    solutions_dir: str = DEFAULT_SOLUTIONS_DIR
    """Where knowledge documents are written, relative to the project root."""

    version: str = __version__
    """Arbor version that wrote the config."""

    def resolve_db_path(self, project_root: Path) -> Path:
        path = Path(self.db_path)
        return path if path.is_absolute() else Path(project_root) / path

    @classmethod
    def load(cls, project_root: Path) -> "ArborConfig":
        """Load configuration from YAML, falling back to defaults."""
        config_path = Path(project_root) / ARBOR_DIR / CONFIG_FILE

        if not config_path.exists():
            return cls()

        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls(
            db_path=data.get("db_path", DEFAULT_DB_PATH),
            solutions_dir=data.get("solutions_dir", DEFAULT_SOLUTIONS_DIR),
            version=str(data.get("version", __version__)),
        )

    def save(self, project_root: Path) -> Path:
        """Write configuration to <project_root>/.arbor/config.yaml."""
        arbor_dir = ensure_arbor_dir(project_root)
        config_path = arbor_dir / CONFIG_FILE
        config_path.write_text(
            yaml.safe_dump(asdict(self), default_flow_style=False, sort_keys=False),
            encoding="utf-8",
        )
        logger.debug(f"[ArborConfig] Saved {config_path}")
        return config_path


def ensure_arbor_dir(project_root: Path) -> Path:
    """Create the .arbor directory if needed and return it."""
    arbor_dir = Path(project_root).resolve() / ARBOR_DIR
    arbor_dir.mkdir(parents=True, exist_ok=True)
    return arbor_dir


def load_project_config(project_root: Path, settings: Optional[Settings] = None) -> ArborConfig:
    """
    Load the project config with environment overrides applied.

    ARBOR_DB_PATH and ARBOR_SOLUTIONS_DIR take precedence over
    .arbor/config.yaml. The returned config is not meant to be saved.
    """
    settings = settings or get_settings()
    config = ArborConfig.load(project_root)
    if settings.db_path:
        config.db_path = settings.db_path
    if settings.solutions_dir:
        config.solutions_dir = settings.solutions_dir
    return config
