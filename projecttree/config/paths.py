# projecttree/config/paths.py
import os
import sys
from pathlib import Path

HOME_ENV_VAR = "PROJECTTREE_HOME"


def _get_app_name() -> str:
    return "ProjectTree"


def get_user_data_dir() -> Path:
    """
    Per-user application directory.
    PROJECTTREE_HOME wins; otherwise %APPDATA% on Windows and the XDG config dir elsewhere.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        path = Path(override)
    elif sys.platform == "win32":
        appdata_path = os.environ.get("APPDATA")
        base = Path(appdata_path) if appdata_path else Path.home() / "AppData/Roaming"
        path = base / _get_app_name()
    else:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        base = Path(xdg) if xdg else Path.home() / ".config"
        path = base / _get_app_name().lower()

    path.mkdir(parents=True, exist_ok=True)
    return path


def get_user_config_file() -> Path:
    """Get the path to the user's config.json file."""
    return get_user_data_dir() / "config.json"


def get_user_log_dir() -> Path:
    """Get the path to the user's log directory."""
    path = get_user_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path
