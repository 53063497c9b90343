"""Configuration loading from config.toml."""
import copy
import os
import sys
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

APP_NAME = "whisperwire"
CONFIG_FILENAME = "config.toml"
OUTPUT_FORMATS = ("text", "srt", "none")

DEFAULT_CONFIG: Dict[str, Any] = {
    "model": {
        "backend": "faster-whisper",
        "path": "",
        "device": "auto",
        "compute_type": "default",
        "threads": 0,
    },
    "recognizer": {
        "language": "auto",
        "translate": False,
        "offset": 0.0,
        "duration": 0.0,
        "max_tokens": 0,
        "beam_size": 5,
    },
    "output": {
        "format": "text",
        "tokens": False,
        "colorize": False,
        "destination": "-",
    },
    "server": {
        "listen": "",
        "max_message_mb": 10,
        "ping_interval": 20.0,
    },
    "paths": {
        "storage_root": "",
        "model_cache": "",
    },
}


def get_platform_config_dir() -> Path:
    """Per-user config directory for the current platform."""
    if os.name == "nt":
        appdata = os.environ.get("APPDATA")
        if appdata:
            return Path(appdata) / APP_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / APP_NAME


def _config_dirs() -> List[Path]:
    """Directories searched for config.toml, in priority order."""
    return [Path.cwd(), get_platform_config_dir()]


def _find_config_path() -> Optional[Path]:
    for directory in _config_dirs():
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _merge_configs(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in overrides.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = _merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    path: Optional[Path] = None,
    quiet: bool = False,
    raise_on_error: bool = False,
) -> Dict[str, Any]:
    """Load config.toml merged over defaults.

    Args:
        path: Explicit config file; searched for when None
        quiet: Suppress informational output
        raise_on_error: Re-raise read/parse errors instead of using defaults

    Returns:
        Full configuration dictionary
    """
    if path is None:
        path = _find_config_path()
        if path is None:
            if not quiet:
                print("[INFO] No config.toml found, using defaults")
            return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(path)
    try:
        with open(path, "rb") as f:
            user_config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        if raise_on_error:
            raise
        if not quiet:
            print(f"[WARN] Failed to read {path}: {e}")
            print("[INFO] Using default configuration")
        return copy.deepcopy(DEFAULT_CONFIG)

    if not quiet:
        print(f"[OK] Loaded config from {path}")
    return _merge_configs(DEFAULT_CONFIG, user_config)


def parse_listen_address(value: str) -> tuple:
    """Split "host:port" into (host, port); an empty host binds all interfaces."""
    host, sep, port = value.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address: {value!r} (expected host:port)")
    port_num = int(port)
    if not 0 < port_num < 65536:
        raise ValueError(f"Invalid listen port: {port_num}")
    return (host.strip("[]") or None), port_num
