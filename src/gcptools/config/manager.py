"""Two-tier configuration manager (defaults + user + project override)."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from .paths import get_defaults_path, get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load full config tree.
    
    Order (later wins): bundled defaults, user config, project config,
    explicit config path.
    
    Args:
        config_path: Optional explicit config file (must exist)
        
    Returns:
        Merged configuration dictionary
        
    Raises:
        ConfigError: If the defaults or the explicit config cannot be read
    """
    config = _read_yaml(get_defaults_path(), required=True)
    
    user_config_path = get_user_config_path()
    if user_config_path.exists():
        try:
            _deep_merge(config, _read_yaml(user_config_path))
            logger.debug(f"Loaded user config from {user_config_path}")
        except ConfigError as e:
            logger.warning(f"Could not load user config from {user_config_path}: {e}")
    
    project_config_path = get_project_config_path()
    if project_config_path:
        try:
            _deep_merge(config, _read_yaml(project_config_path))
            logger.info(f"Loaded project config from {project_config_path}")
        except ConfigError as e:
            logger.warning(f"Could not load project config from {project_config_path}: {e}")
    
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
        _deep_merge(config, _read_yaml(path, required=True))
        logger.info(f"Loaded config from {config_path}")
    
    return config


def _read_yaml(path: Path, required: bool = False) -> Dict[str, Any]:
    """Read a YAML mapping from path."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    
    if data is None:
        if required:
            raise ConfigError(f"Config file is empty: {path}")
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file must contain a dictionary: {path}")
    return data


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
