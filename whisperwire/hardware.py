"""Hardware detection for GPU-aware device selection."""
from typing import Dict, Any


def detect_hardware() -> Dict[str, Any]:
    """Detect GPU capabilities and VRAM."""
    info = {
        "gpu_available": False,
        "gpu_vendor": "none",
        "gpu_name": "No GPU detected",
        "gpu_vram_gb": 0,
        "cuda_version": None,
    }
    try:
        import torch
    except ImportError:
        info["gpu_name"] = "PyTorch not installed"
        return info

    if not torch.cuda.is_available():
        return info

    info.update(
        gpu_available=True,
        gpu_vendor="nvidia",
        gpu_name=torch.cuda.get_device_name(0),
        cuda_version=torch.version.cuda,
    )
    try:
        info["gpu_vram_gb"] = torch.cuda.get_device_properties(0).total_memory / (1024 ** 3)
    except Exception:
        pass  # VRAM is informational only
    return info


def recommend_model_config(hw: Dict[str, Any]) -> Dict[str, Any]:
    """Pick device and compute type for faster-whisper from detected hardware."""
    if hw["gpu_available"] and hw["gpu_vendor"] == "nvidia":
        vram_gb = hw["gpu_vram_gb"]
        # int8 weights below 2 GB of VRAM.
        compute_type = "float16" if vram_gb == 0 or vram_gb >= 2 else "int8_float16"
        return {
            "device": "cuda",
            "compute_type": compute_type,
            "reason": f"{hw['gpu_name']} ({vram_gb:.1f}GB)",
        }

    return {
        "device": "cpu",
        "compute_type": "int8",
        "reason": "no GPU detected, CPU int8",
    }
