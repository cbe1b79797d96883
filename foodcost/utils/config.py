"""
Where FoodCost keeps its data.

Production stores the SQLite file in ~/Documents/FoodCost; development keeps
it in the repository's data/ folder. The environment comes from the
FOODCOST_ENV variable unless get_config() is given one explicitly.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

from .constants import APP_NAME, DATABASE_FILENAME

logger = logging.getLogger(__name__)

ENVIRONMENT_VARIABLE = "FOODCOST_ENV"
DEFAULT_ENVIRONMENT = "production"


class Config:
    """Resolved data locations for one environment."""

    def __init__(self, environment: str = DEFAULT_ENVIRONMENT):
        self.environment = environment
        self.data_dir = self._resolve_data_dir(environment)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _resolve_data_dir(environment: str) -> Path:
        if environment == "development":
            return Path(__file__).resolve().parents[2] / "data"
        return Path.home() / "Documents" / APP_NAME

    @property
    def database_path(self) -> Path:
        return self.data_dir / DATABASE_FILENAME

    @property
    def database_url(self) -> str:
        """SQLite URL for the database file (forward slashes on every platform)."""
        return "sqlite:///" + self.database_path.as_posix()

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_backup_path(self, backup_name: Optional[str] = None) -> Path:
        """
        Location for a copy of the database, next to the live file.

        Without a name, a timestamped foodcost_backup_YYYYmmdd_HHMMSS.db is used.
        """
        if not backup_name:
            backup_name = "foodcost_backup_{:%Y%m%d_%H%M%S}.db".format(datetime.now())
        return self.data_dir / backup_name

    def database_exists(self) -> bool:
        return self.database_path.is_file()

    def __repr__(self) -> str:
        return f"Config({self.environment!r}, {str(self.database_path)!r})"


_active_config: Optional[Config] = None


def get_config(environment: Optional[str] = None) -> Config:
    """
    Return the process-wide Config, building it on first call.

    The first call fixes the environment. Asking for another one afterwards
    logs a warning and returns the existing instance, so a running process
    never changes database underneath open sessions.
    """
    global _active_config

    if _active_config is None:
        chosen = environment or os.environ.get(ENVIRONMENT_VARIABLE, DEFAULT_ENVIRONMENT)
        _active_config = Config(chosen)
        logger.debug(f"Configuration loaded: {_active_config!r}")
        return _active_config

    if environment and environment != _active_config.environment:
        logger.warning(
            f"Ignoring environment '{environment}': config singleton already exists "
            f"for '{_active_config.environment}'"
        )
    return _active_config


def reset_config():
    """Forget the cached Config (tests)."""
    global _active_config
    _active_config = None
