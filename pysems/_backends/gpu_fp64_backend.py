"""
GPU backend using PyTorch with FP64 precision.

For data center GPUs: A100, H100, V100. Without CUDA it runs on the
PyTorch CPU device, which still gives double precision LU.
"""

import logging
import warnings
from typing import Any, Optional

from .gpu_fp32_backend import PyTorchBackendFP32
from .precision_detector import detect_gpu_capabilities, PrecisionSupport

logger = logging.getLogger(__name__)


class PyTorchBackendFP64(PyTorchBackendFP32):
    """
    PyTorch backend with FP64 precision.

    Same normal equations as the FP32 backend, run through the double
    precision LU (reported as dgetrf/dgesv).
    """

    name = "pytorch_fp64"
    precision = "fp64"
    lapack_prefix = "d"
    torch_dtype = "float64"

    def __init__(self, device: Optional[str] = None):
        super().__init__(device=device)
        if self.device.type == 'cuda':
            self._check_fp64_throughput()

    def _no_cuda_device(self) -> Any:
        warnings.warn("No CUDA GPU available, using CPU")
        return self.torch.device('cpu')

    def _check_fp64_throughput(self) -> None:
        caps = detect_gpu_capabilities()
        logger.debug("FP64 on %s: %s", caps.gpu_name, caps.fp64_support.value)
        if caps.fp64_support == PrecisionSupport.GIMPED_FP64:
            warnings.warn(
                f"Using FP64 on {caps.gpu_name} with gimped FP64 support. "
                f"Fits will run ~{int(1 / caps.fp64_throughput_ratio)}x slower than FP32.",
                UserWarning
            )
