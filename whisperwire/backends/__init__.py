"""Backend factory and shared model pool."""
import threading
from typing import Any, Dict, Tuple

from .base import (
    RecognizerContext,
    RecognizerModel,
    RecognizerParams,
    Segment,
    SegmentCallback,
    Token,
    TokenKind,
)
from ..hardware import detect_hardware, recommend_model_config
from ..storage import resolve_model_cache_root, resolve_model_path

VALID_BACKENDS = ("faster-whisper",)


def _resolve_device(model_config: Dict[str, Any]) -> Tuple[str, str]:
    """Fill in 'auto' device and 'default' compute type from detected hardware."""
    device = model_config.get("device", "auto")
    compute_type = model_config.get("compute_type", "default")
    if device != "auto" and compute_type != "default":
        return device, compute_type

    recommendation = recommend_model_config(detect_hardware())
    if device == "auto":
        device = recommendation["device"]
        print(f"[INFO] Auto-detected device: {device} ({recommendation['reason']})")
    if compute_type == "default":
        compute_type = recommendation["compute_type"]
    return device, compute_type


def model_key(config: Dict[str, Any]) -> Tuple[str, str, str, str, int]:
    """Identity of a loaded model: settings that change the loaded weights."""
    model_config = config["model"]
    return (
        model_config.get("backend", "faster-whisper"),
        str(resolve_model_path(config)),
        model_config.get("device", "auto"),
        model_config.get("compute_type", "default"),
        int(model_config.get("threads", 0)),
    )


def create_model(config: Dict[str, Any]) -> RecognizerModel:
    """Factory function to load the configured recognizer model.

    Args:
        config: Configuration dictionary with model settings

    Returns:
        RecognizerModel instance

    Raises:
        ValueError: If backend is invalid or dependencies missing
    """
    backend = config["model"].get("backend", "faster-whisper")
    model_name = str(resolve_model_path(config))
    threads = int(config["model"].get("threads", 0))
    model_cache = str(resolve_model_cache_root(config))

    if backend == "faster-whisper":
        device, compute_type = _resolve_device(config["model"])
        try:
            from .faster_whisper import FasterWhisperModel
            return FasterWhisperModel(
                model_name=model_name,
                device=device,
                compute_type=compute_type,
                threads=threads,
                model_cache=model_cache
            )
        except ImportError as e:
            raise ValueError(
                f"faster-whisper backend requires faster-whisper package. "
                f"Install with: pip install faster-whisper\n"
                f"Error: {e}"
            )

    raise ValueError(
        f"Unknown backend: {backend}. "
        f"Valid options: {', '.join(repr(name) for name in VALID_BACKENDS)}"
    )


class ModelPool:
    """Loads each distinct model once and shares it across sessions.

    Models are read-only after load; callers still create their own context
    per session. Loading is serialized so concurrent connections asking for
    the same model wait for a single load.
    """

    def __init__(self, factory=create_model):
        self._factory = factory
        self._models: Dict[tuple, RecognizerModel] = {}
        self._lock = threading.Lock()

    def get(self, config: Dict[str, Any]) -> RecognizerModel:
        key = model_key(config)
        with self._lock:
            model = self._models.get(key)
            if model is None:
                model = self._factory(config)
                self._models[key] = model
            return model

    def close_all(self) -> None:
        with self._lock:
            models = list(self._models.values())
            self._models.clear()
        for model in models:
            model.close()


__all__ = [
    "ModelPool",
    "RecognizerContext",
    "RecognizerModel",
    "RecognizerParams",
    "Segment",
    "SegmentCallback",
    "Token",
    "TokenKind",
    "create_model",
    "model_key",
]
