"""
Backend selection and management.

Provides a unified interface for the CPU (NumPy/SciPy LAPACK) and
NVIDIA GPU (PyTorch) backends.
"""

from typing import Optional

from .base import BackendBase, OLSResult, METHODS
from .cpu_backend import CPUBackend
from .precision_detector import (
    detect_gpu_capabilities,
    recommend_precision,
    GPUCapabilities
)

# PyTorch backends are optional
try:
    from .gpu_fp32_backend import PyTorchBackendFP32
    from .gpu_fp64_backend import PyTorchBackendFP64
    import torch  # noqa: F401
    PYTORCH_AVAILABLE = True
except ImportError:
    PYTORCH_AVAILABLE = False

BACKENDS = ('auto', 'cpu', 'gpu', 'pytorch')


def _pytorch_backend(use_fp64: Optional[bool], caps: GPUCapabilities) -> BackendBase:
    if not PYTORCH_AVAILABLE:
        raise RuntimeError(
            "PyTorch backend unavailable.\n"
            "Install: pip install torch"
        )
    if recommend_precision(caps, use_fp64):
        return PyTorchBackendFP64()
    return PyTorchBackendFP32()


def get_backend(backend: str = 'auto', use_fp64: Optional[bool] = None) -> BackendBase:
    """
    Get computational backend.

    Parameters
    ----------
    backend : str
        Backend selection:
        - 'auto': GPU when a CUDA device is present, CPU otherwise
        - 'cpu': CPU with NumPy + LAPACK
        - 'gpu': CUDA GPU (fails without one)
        - 'pytorch': Force PyTorch (falls back to its CPU device in FP64)

    use_fp64 : bool or None
        Precision preference:
        - None: Auto-detect (always FP64 on CPU)
        - True: Force FP64
        - False: Allow FP32

    Returns
    -------
    BackendBase
        Backend instance

    Examples
    --------
    >>> backend = get_backend('auto')
    >>> backend = get_backend('cpu', use_fp64=False)  # single precision LAPACK
    """
    if backend == 'auto':
        caps = detect_gpu_capabilities()
        if caps.has_gpu and PYTORCH_AVAILABLE:
            return _pytorch_backend(use_fp64, caps)
        return CPUBackend(use_fp64=use_fp64 is not False)

    elif backend == 'cpu':
        return CPUBackend(use_fp64=use_fp64 is not False)

    elif backend == 'gpu':
        caps = detect_gpu_capabilities()
        if not caps.has_gpu:
            raise ValueError(
                "No GPU detected.\n"
                "Options:\n"
                "  - Use backend='cpu'\n"
                "  - Install PyTorch with CUDA for NVIDIA"
            )
        return _pytorch_backend(use_fp64, caps)

    elif backend == 'pytorch':
        return _pytorch_backend(use_fp64, detect_gpu_capabilities())

    else:
        raise ValueError(
            f"Unknown backend: '{backend}'\n"
            f"Valid options: {', '.join(repr(b) for b in BACKENDS)}"
        )


def list_available_backends() -> list:
    """List names of available backends."""
    backends = ['cpu']
    if PYTORCH_AVAILABLE:
        backends.append('pytorch')
    return backends


def print_backend_info():
    """Print detailed backend information (diagnostic)."""
    caps = detect_gpu_capabilities()

    print("PySEMS Backend Status")
    print("=" * 50)
    print("\nAvailable Backends:")
    print("  CPU (FP32/FP64):     ✓ - LAPACK getrf/getri/gesv")
    print(f"  PyTorch (FP32/FP64): {'✓' if PYTORCH_AVAILABLE else '✗'} - torch.linalg LU")

    print("\nHardware Detection:")
    if caps.has_gpu:
        print(f"  GPU Name: {caps.gpu_name}")
        print(f"  FP64 Support: {caps.fp64_support.value}")
    else:
        print("  No GPU detected")

    print("\nRecommended Backend:")
    try:
        print(f"  {get_backend('auto').name}")
    except (ImportError, RuntimeError, ValueError) as e:
        print(f"  Error: {e}")


__all__ = [
    'get_backend',
    'list_available_backends',
    'print_backend_info',
    'BackendBase',
    'OLSResult',
    'METHODS',
    'CPUBackend',
    'detect_gpu_capabilities',
    'PYTORCH_AVAILABLE',
]


if __name__ == "__main__":
    print_backend_info()
