"""
CPU backend using NumPy + SciPy LAPACK.

This is the reference implementation.
"""

import numpy as np

from .base import BackendBase, OLSResult
from .._core.linalg import inverse_matrix, solve_linear_system


class CPUBackend(BackendBase):
    """
    CPU backend using NumPy matmul and SciPy's LAPACK wrappers.

    Double precision by default; `use_fp64=False` runs the single precision
    routines (sgetrf/sgetri/sgesv) instead.
    """

    def __init__(self, use_fp64: bool = True):
        self.precision = "fp64" if use_fp64 else "fp32"
        self.name = f"cpu_{self.precision}"
        self.dtype = np.float64 if use_fp64 else np.float32

    def fit_ols(
        self,
        x: np.ndarray,
        y: np.ndarray,
        method: str = 'inverse'
    ) -> OLSResult:
        """Fit via NumPy/LAPACK."""
        X, Y = self.prepare(x, y, method)
        n = X.shape[0]

        # Add column of 1's
        X_work = np.column_stack([np.ones(n), X]).astype(self.dtype)
        Y_work = Y.astype(self.dtype)
        p = X_work.shape[1]

        # (X'X) and (X'Y)
        xtx = X_work.T @ X_work
        xty = X_work.T @ Y_work

        if method == 'inverse':
            xtx_inv = inverse_matrix(xtx)
            coef = xtx_inv @ xty
        else:
            coef = solve_linear_system(xtx, xty)
            xtx_inv = solve_linear_system(xtx, np.eye(p, dtype=self.dtype))

        fitted = X_work @ coef
        residuals = Y_work - fitted

        return OLSResult(
            coef=coef,
            xtx_inv=xtx_inv,
            residuals=residuals,
            fitted_values=fitted,
            n_obs=n,
            df_residual=n - p,
            method=method,
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'cpu',
            'precision': self.precision,
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
