"""
Hardware precision capability detection.

Finds a CUDA GPU and decides whether a scan should run in FP32 or FP64.
Normal equations square the condition number of X, so FP64 is preferred
wherever it runs at full speed.
"""

import logging
import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class PrecisionSupport(Enum):
    NO_GPU = "no_gpu"
    GIMPED_FP64 = "gimped_fp64"  # consumer NVIDIA, FP64 at 1/32 or 1/64 rate
    FULL_FP64 = "full_fp64"      # data center NVIDIA, FP64 at half rate


@dataclass
class GPUCapabilities:
    """What the first CUDA device offers (or `CPU_ONLY`)."""
    has_gpu: bool
    gpu_name: str
    gpu_type: str                 # 'nvidia' or 'none'
    fp64_support: PrecisionSupport
    fp64_throughput_ratio: float  # FP64 / FP32 throughput
    recommended_fp64: bool


CPU_ONLY = GPUCapabilities(
    has_gpu=False,
    gpu_name="CPU only",
    gpu_type="none",
    fp64_support=PrecisionSupport.NO_GPU,
    fp64_throughput_ratio=1.0,
    recommended_fp64=True,
)

_FULL_FP64_MODELS = ('A100', 'A800', 'H100', 'H800', 'V100', 'P100')

# Checked in order, first match wins.
_GIMPED_FP64_RATIOS = (
    ('RTX 50', 1 / 64),
    ('RTX 40', 1 / 64),
    ('RTX 30', 1 / 64),
    ('RTX 20', 1 / 32),
    ('GTX', 1 / 32),
)


def detect_gpu_capabilities() -> GPUCapabilities:
    """
    Inspect CUDA device 0.

    Returns `CPU_ONLY` when torch is missing or CUDA is unavailable.
    """
    try:
        import torch
    except ImportError:
        return CPU_ONLY

    if not torch.cuda.is_available():
        return CPU_ONLY

    name = torch.cuda.get_device_name(0)
    support, ratio = classify_nvidia_gpu(name)
    logger.debug("Detected %s (%s)", name, support.value)

    return GPUCapabilities(
        has_gpu=True,
        gpu_name=name,
        gpu_type="nvidia",
        fp64_support=support,
        fp64_throughput_ratio=ratio,
        recommended_fp64=support is PrecisionSupport.FULL_FP64,
    )


def classify_nvidia_gpu(gpu_name: str) -> tuple[PrecisionSupport, float]:
    """
    Look up a device name from torch.cuda.get_device_name().

    Returns
    -------
    (support_level, fp64_throughput_ratio)
    """
    key = gpu_name.upper()

    for model in _FULL_FP64_MODELS:
        if model in key:
            return PrecisionSupport.FULL_FP64, 0.5

    for series, ratio in _GIMPED_FP64_RATIOS:
        if series in key:
            return PrecisionSupport.GIMPED_FP64, ratio

    warnings.warn(f"Unknown NVIDIA GPU '{gpu_name}', assuming gimped FP64.")
    return PrecisionSupport.GIMPED_FP64, 1 / 32


def recommend_precision(capabilities: GPUCapabilities,
                        use_fp64: Optional[bool]) -> bool:
    """
    True for FP64, False for FP32.

    `use_fp64=None` follows the hardware. An explicit choice is returned
    as given; asking for FP64 on a consumer card only warns.
    """
    if use_fp64 is None:
        return capabilities.recommended_fp64

    if use_fp64 and capabilities.fp64_support is PrecisionSupport.GIMPED_FP64:
        warnings.warn(
            f"FP64 requested on {capabilities.gpu_name}, which runs FP64 at "
            f"{capabilities.fp64_throughput_ratio:.3f}x the FP32 rate. "
            f"--fp32 is faster.",
            UserWarning
        )
    return use_fp64
