# gptcoder/config/paths.py
import os
from pathlib import Path


def _get_app_name() -> str:
    return "GPTCoder"


def get_user_data_dir() -> Path:
    """
    Get the user application data directory.

    GPTCODER_HOME wins if set, then %APPDATA% on Windows, then ~/.config.
    """
    app_name = _get_app_name()
    override = os.environ.get("GPTCODER_HOME")
    appdata_path = os.environ.get("APPDATA")
    if override:
        path = Path(override)
    elif appdata_path:
        path = Path(appdata_path) / app_name
    else:
        path = Path.home() / ".config" / app_name

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
