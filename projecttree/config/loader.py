# projecttree/config/loader.py
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import ValidationError
from loguru import logger

from .schema import AppConfig
from .paths import get_user_config_file

_cached_config: Optional[AppConfig] = None


def _set_aside(config_path: Path):
    """Moves an unreadable config out of the way so the next save starts clean."""
    backup_path = config_path.with_suffix(".json.corrupted")
    try:
        backup_path.unlink(missing_ok=True)
        config_path.rename(backup_path)
        logger.info(f"Unreadable config moved to: {backup_path}")
    except OSError as move_err:
        logger.error(f"Could not move unreadable config {config_path} aside: {move_err}")


def _read_raw(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        logger.info("No project tree config on disk yet; defaults apply.")
        return {}
    logger.info(f"Reading project tree config: {config_path}")
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"top level is {type(raw).__name__}, expected an object")
        return raw
    except (ValueError, OSError) as e: # JSONDecodeError is a ValueError
        logger.error(f"Config file {config_path} is unreadable: {e}")
        _set_aside(config_path)
        return {}


def _write_atomic(target: Path, text: str):
    """Writes `text` next to `target` first, then swaps it in with os.replace."""
    handle = tempfile.NamedTemporaryFile(
        mode="w", encoding="utf-8", dir=target.parent,
        prefix=f".{target.name}_tmp", suffix=".json", delete=False)
    temp_path = Path(handle.name)
    try:
        with handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, target)
    except BaseException:
        try: temp_path.unlink(missing_ok=True)
        except OSError as unlink_err: logger.error(f"Temporary config {temp_path} left behind: {unlink_err}")
        raise


def load_config() -> AppConfig:
    """Returns the application configuration, reading it from disk on first use."""
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    raw = _read_raw(get_user_config_file())
    try:
        _cached_config = AppConfig(**raw)
        logger.debug("Project tree config parsed.")
    except ValidationError as e:
        logger.error(f"Config does not match the expected schema: {e}")
        logger.warning("Using the default project tree config instead.")
        _cached_config = AppConfig()
    return _cached_config


def reload_config() -> AppConfig:
    """Drops the cached configuration and reads it again from disk."""
    global _cached_config
    _cached_config = None
    return load_config()


def save_config(config: AppConfig) -> None:
    """Persists `config` and makes it the cached one. OSError/TypeError propagate after logging."""
    global _cached_config
    config_path = get_user_config_file()
    try:
        _write_atomic(config_path, config.model_dump_json(indent=4))
    except (OSError, TypeError) as e:
        logger.error(f"Could not write project tree config to {config_path}: {e}")
        raise
    _cached_config = config
    logger.info(f"Project tree config saved: {config_path}")


def get_config() -> AppConfig:
    """The current configuration (loaded lazily)."""
    return _cached_config if _cached_config is not None else load_config()
