# promptfiles/config/loader.py
"""
Handles locating and merging configuration from TOML files.

Two sources are consulted: a per-user file under ``~/.config/prompt`` and a
project file ``.prompt/config.toml`` found by walking up from the starting
directory. Project values override user values; command-line flags override
both (that last layer is applied by the CLI).
"""
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import toml

from promptfiles.exceptions import ConfigError

log = structlog.get_logger(__name__)

PROJECT_CONFIG_RELATIVE_PATH = Path(".prompt") / "config.toml"
USER_CONFIG_DIR = Path.home() / ".config" / "prompt"
USER_CONFIG_FILE = USER_CONFIG_DIR / "config.toml"

# maps keys used in the toml file to their PromptConfig attribute names.
CONFIG_KEY_TO_PROMPTCONFIG_ATTR_MAP: Dict[str, str] = {
    "exclude": "exclude_patterns",
    "no_gitignore": "include_vcs_ignored",
    "line_numbers": "line_numbers",
    "format": "output_format",
    "encoding": "encoding",
    "copy": "copy",
}

def find_config_path(start: Path) -> Optional[Path]:
    # returns the nearest .prompt/config.toml at or above `start`.
    current: Optional[Path] = start.resolve()
    while current is not None:
        candidate = current / PROJECT_CONFIG_RELATIVE_PATH
        if candidate.is_file():
            return candidate
        parent = current.parent
        current = parent if parent != current else None
    return None

def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    if not file_path.is_file():
        return {}
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"could not parse config file '{file_path}': {e}") from e
    except OSError as e:
        raise ConfigError(f"could not read config file '{file_path}': {e}") from e

    settings: Dict[str, Any] = {}
    for key, value in data.items():
        attr = CONFIG_KEY_TO_PROMPTCONFIG_ATTR_MAP.get(key)
        if attr is None:
            log.warning("unknown_config_key_ignored", key=key, path=str(file_path))
            continue
        settings[attr] = value
    return settings

def load_and_merge_configs(start: Optional[Path] = None, user_config_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Returns PromptConfig keyword arguments merged from the user and project
    config files. Missing files contribute nothing.
    """
    merged: Dict[str, Any] = {}

    user_file = user_config_file if user_config_file is not None else USER_CONFIG_FILE
    if user_file.is_file():
        log.info("loading_user_global_config", path=str(user_file))
        merged.update(_load_toml_file_data(user_file))

    project_file = find_config_path(start if start is not None else Path.cwd())
    if project_file is not None:
        log.info("loading_project_local_config", path=str(project_file))
        merged.update(_load_toml_file_data(project_file))

    if not merged:
        log.debug("no_configuration_files_loaded")
    return merged
