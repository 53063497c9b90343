"""Model path and cache directory resolution."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional


def _expanded_path(value: str) -> Path:
    return Path(value).expanduser()


def resolve_storage_root(config: Dict[str, Any]) -> Optional[Path]:
    raw = config.get("paths", {}).get("storage_root", "")
    if isinstance(raw, str) and raw.strip():
        return _expanded_path(raw.strip())
    return None


def _default_hf_hub_cache_path() -> Path:
    try:
        from huggingface_hub.constants import HF_HUB_CACHE

        return Path(HF_HUB_CACHE).expanduser()
    except Exception:
        return Path.home() / ".cache" / "huggingface" / "hub"


def _normalize_model_cache_root(path: Path) -> Path:
    return path.parent if path.name.lower() == "hub" else path


def resolve_model_cache_root(config: Dict[str, Any]) -> Path:
    configured = config.get("paths", {}).get("model_cache", "")
    if isinstance(configured, str) and configured.strip():
        return _normalize_model_cache_root(_expanded_path(configured.strip()))

    storage_root = resolve_storage_root(config)
    if storage_root is not None:
        return storage_root / "models"

    # Keep compatibility with default Hugging Face cache behavior.
    return _default_hf_hub_cache_path().parent


def resolve_model_path(config: Dict[str, Any]) -> str:
    """Return a local model directory, or the size/repo name for a download.

    Values such as "base" or "Systran/faster-whisper-small" are not paths and
    are passed through so the backend can fetch them into the model cache.
    """
    raw = str(config.get("model", {}).get("path", "")).strip()
    if not raw:
        return ""
    candidate = _expanded_path(raw)
    if candidate.exists():
        return str(candidate.resolve())
    return raw
