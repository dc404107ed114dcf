"""Global configuration storage for unitask.

Stores user settings in ~/.unitask/config.json. The directory can be moved
with the UNITASK_HOME environment variable.
"""

import logging
import os
from pathlib import Path

from pydantic import BaseModel, ValidationError

from unitask.domain.dependency import DependencyType
from unitask.domain.shared import Err, Ok, Result
from unitask.domain.task import TaskPriority
from unitask.infrastructure.storage import JsonStorage

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.json"
STORE_FILENAME = "store.json"


class Settings(BaseModel):
    """User-level settings.

    Attributes:
        store_path: JSON store file; defaults to store.json in the config dir.
        log_level: Root log level for the CLI.
        default_priority: Priority for blueprints that do not set one.
        default_dependency_type: Edge type used by the CLI when none is given.
    """

    store_path: Path | None = None
    log_level: str = "WARNING"
    default_priority: TaskPriority = TaskPriority.MEDIUM
    default_dependency_type: DependencyType = DependencyType.BLOCKS

    def resolved_store_path(self) -> Path:
        return self.store_path or get_config_dir() / STORE_FILENAME


def get_config_dir() -> Path:
    """Get the unitask config directory."""
    override = os.environ.get("UNITASK_HOME")
    return Path(override) if override else Path.home() / ".unitask"


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings, falling back to defaults on a missing or invalid file."""
    config_file = (config_dir or get_config_dir()) / CONFIG_FILENAME
    if not config_file.exists():
        return Settings()

    result = JsonStorage().load_json(config_file)
    if isinstance(result, Err):
        logger.warning(f"Ignoring config: {result.error}")
        return Settings()
    try:
        return Settings.model_validate(result.value)
    except ValidationError as e:
        logger.warning(f"Ignoring invalid config {config_file}: {e}")
        return Settings()


def save_settings(settings: Settings, config_dir: Path | None = None) -> Result[Path, str]:
    """Save settings as JSON."""
    config_file = (config_dir or get_config_dir()) / CONFIG_FILENAME
    result = JsonStorage().save_json(config_file, settings.model_dump(mode="json"))
    if isinstance(result, Err):
        return result
    return Ok(config_file)
