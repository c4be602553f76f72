"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
Environment variables (PRAETOR_*) and a YAML file both feed one typed Settings
object. The timesheet rules live in ``general`` (a GeneralSettings), which the
YAML file may hold either flat or under a ``general:`` key.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from praetor.domain.models import GeneralSettings

logger = logging.getLogger(__name__)

WORKSPACE_CONFIG = Path("config/settings.yaml")


def _platform_dir(app_name: str, kind: str) -> Path:
    """Per-user directory for 'config' or 'data' files"""
    if os.name == 'nt':
        return Path(os.getenv('APPDATA')) / app_name
    if kind == "config":
        return Path.home() / '.config' / app_name.lower()
    return Path.home() / '.local' / 'share' / app_name.lower()


class Settings(BaseSettings):
    """
    Application settings, lowest to highest priority:
    1. Defaults
    2. YAML file (``config/settings.yaml`` in the working directory, else
       ``<config_dir>/settings.yaml``) for the general timesheet rules
    3. Environment variables
    """
    model_config = SettingsConfigDict(
        env_prefix='PRAETOR_',
        env_file='.env',
        env_file_encoding='utf-8'
    )

    app_name: str = "Praetor"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None

    # Command line runs
    default_user: str = "local"
    log_level: str = "INFO"

    general: GeneralSettings = GeneralSettings()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.config_dir is None:
            self.config_dir = _platform_dir(self.app_name, "config")
        if self.data_dir is None:
            self.data_dir = _platform_dir(self.app_name, "data")
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        if "general" not in kwargs:
            self._load_yaml_config()

    @property
    def config_file(self) -> Path:
        return self.config_dir / "settings.yaml"

    def _candidate_files(self) -> List[Path]:
        return [WORKSPACE_CONFIG, self.config_file]

    def _load_yaml_config(self):
        config_file = next((p for p in self._candidate_files() if p.exists()), None)
        if config_file is None:
            return

        with open(config_file, 'r', encoding='utf-8') as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        if "general" in data:
            data = data["general"] or {}

        try:
            self.general = GeneralSettings(**data)
        except ValidationError as e:
            logger.error(f"Ignoring invalid settings in {config_file}: {e}")
            return
        logger.debug(f"Loaded general settings from {config_file}")

    def save_general(self):
        """Write the general settings to the user's settings.yaml"""
        with open(self.config_file, 'w', encoding='utf-8') as f:
            yaml.safe_dump({"general": self.general.model_dump(mode="json")}, f, default_flow_style=False)

    def get_db_url(self) -> str:
        """Database URL, defaulting to praetor.db in the data directory"""
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.data_dir / 'praetor.db'}"

    def configure_logging(self):
        logging.basicConfig(
            level=getattr(logging, self.log_level.upper(), logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment and file"""
    global _settings
    _settings = Settings()
    return _settings
