"""Config path resolution for two-tier config system."""

from pathlib import Path
from typing import Optional


def get_defaults_path() -> Path:
    """Get bundled defaults path."""
    return Path(__file__).parent / "defaults.yaml"


def get_user_config_path() -> Path:
    """Get user config path: ~/.gcptools/config.yaml"""
    home = Path.home()
    return home / ".gcptools" / "config.yaml"


def get_project_config_path() -> Optional[Path]:
    """Get project config path: .gcptools/config.yaml (from current working directory)"""
    cwd = Path.cwd()
    project_config = cwd / ".gcptools" / "config.yaml"
    if project_config.exists():
        return project_config
    return None
