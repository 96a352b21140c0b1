"""
GPU backend using PyTorch with FP32 precision.

NVIDIA CUDA GPUs.
"""

import numpy as np
from typing import Optional, Any

from .base import BackendBase, OLSResult
from .._core.linalg import check_info


class PyTorchBackendFP32(BackendBase):
    """
    PyTorch GPU backend with FP32 precision.

    Keeps all computation on the device using torch tensors.
    Only converts at entry (numpy → torch) and exit (torch → numpy).

    Requirements:
    - NVIDIA GPU with CUDA support (or an explicit `device`)
    - PyTorch with CUDA enabled
    """

    name = "pytorch_fp32"
    precision = "fp32"
    lapack_prefix = "s"
    torch_dtype = "float32"

    def __init__(self, device: Optional[str] = None):
        try:
            import torch
        except ImportError as e:
            raise ImportError(
                "PyTorch required for GPU backend. "
                "Install: pip install torch"
            ) from e

        self.torch = torch
        self.dtype = getattr(torch, self.torch_dtype)
        self.device = self._select_device(device)

    def _select_device(self, requested: Optional[str]) -> Any:
        """Explicit device, else the first CUDA GPU."""
        torch = self.torch

        if requested:
            device = torch.device(requested)
            if device.type == 'mps':
                raise ValueError(
                    "PyTorch backend does not support Apple MPS (Metal). "
                    "Use get_backend('cpu') instead."
                )
            return device

        if torch.cuda.is_available():
            return torch.device('cuda')
        return self._no_cuda_device()

    def _no_cuda_device(self) -> Any:
        """Called when no device is requested and CUDA is unavailable."""
        raise RuntimeError(
            "PyTorch backend requires NVIDIA CUDA GPU.\n"
            "Options:\n"
            "  1. Use get_backend('cpu') for CPU\n"
            "  2. Pass device='cpu' to run PyTorch on the CPU\n"
            "  3. Install CUDA-enabled PyTorch"
        )

    def fit_ols(
        self,
        x: np.ndarray,
        y: np.ndarray,
        method: str = 'inverse'
    ) -> OLSResult:
        """
        Fit on the device.

        ALL computation happens on the device with torch tensors.
        Only convert at boundaries (entry/exit).
        """
        torch = self.torch
        X, Y = self.prepare(x, y, method)
        n = X.shape[0]

        # Convert ONCE at entry
        Y_dev = torch.from_numpy(Y).to(device=self.device, dtype=self.dtype)
        X_dev = torch.cat([
            torch.ones(n, 1, dtype=self.dtype, device=self.device),
            torch.from_numpy(X).to(device=self.device, dtype=self.dtype)
        ], dim=1)
        p = X_dev.shape[1]

        xtx = X_dev.T @ X_dev
        xty = X_dev.T @ Y_dev
        identity = torch.eye(p, dtype=self.dtype, device=self.device)

        if method == 'inverse':
            LU, pivots, info = torch.linalg.lu_factor_ex(xtx)
            check_info(f"{self.lapack_prefix}getrf", int(info.item()))
            xtx_inv = torch.linalg.lu_solve(LU, pivots, identity)
            coef = xtx_inv @ xty
        else:
            rhs = torch.cat([xty, identity], dim=1)
            solution, info = torch.linalg.solve_ex(xtx, rhs)
            check_info(f"{self.lapack_prefix}gesv", int(info.item()))
            coef = solution[:, :xty.shape[1]]
            xtx_inv = solution[:, xty.shape[1]:]

        fitted = X_dev @ coef
        residuals = Y_dev - fitted

        # Convert ONCE at exit
        return OLSResult(
            coef=coef.cpu().numpy(),
            xtx_inv=xtx_inv.cpu().numpy(),
            residuals=residuals.cpu().numpy(),
            fitted_values=fitted.cpu().numpy(),
            n_obs=n,
            df_residual=n - p,
            method=method,
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'gpu',
            'precision': self.precision,
            'device': str(self.device),
            'library': f'PyTorch {self.torch.__version__}',
        }
