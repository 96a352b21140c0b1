"""
Abstract base classes for backends.

Defines the interface all backends must implement.
"""

from abc import ABC, abstractmethod
import numpy as np
from dataclasses import dataclass

from ..exceptions import DimensionError, SingularMatrixError, ValidationError
from .._utils import check_matrix


METHODS = ('inverse', 'solve')


@dataclass
class OLSResult:
    """Normal-equation regression results (all numpy arrays)."""
    coef: np.ndarray           # (p + 1, T): row 0 intercept, row j marker j
    xtx_inv: np.ndarray        # (p + 1, p + 1): (X'X)^-1
    residuals: np.ndarray      # (n, T)
    fitted_values: np.ndarray  # (n, T)
    n_obs: int
    df_residual: int
    method: str


class BackendBase(ABC):
    """Abstract base class for all backends."""

    name = None
    precision = None

    def prepare(self, x, y, method):
        """Validate inputs shared by every backend; returns 2-D float64 blocks."""
        if method not in METHODS:
            raise ValidationError(f"Unknown method: '{method}'. Valid options: {METHODS}")
        X = check_matrix(x, name='x')
        Y = check_matrix(y, name='y')
        if X.shape[0] != Y.shape[0]:
            raise DimensionError(
                f"x has {X.shape[0]} individuals but y has {Y.shape[0]}"
            )
        if X.shape[0] == 0:
            raise DimensionError("x and y contain no individuals")
        constant = np.flatnonzero(np.ptp(X, axis=0) == 0)
        if constant.size:
            # column j of x is column j + 1 of [1 | x], pivot j + 2 in LAPACK numbering
            j = int(constant[0])
            raise SingularMatrixError(
                f"getrf: marker column {j} is constant across individuals, "
                f"X'X is singular (info = {j + 2})",
                routine="getrf", info=j + 2
            )
        return X, Y

    @abstractmethod
    def fit_ols(
        self,
        x: np.ndarray,
        y: np.ndarray,
        method: str = 'inverse'
    ) -> OLSResult:
        """
        Fit Z = (X'X)^-1 X'Y with an intercept column prepended to x.

        Backends implement ALL computation internally using their
        native types, only converting at entry/exit.

        Parameters
        ----------
        x : ndarray, shape (n,) or (n, p)
            Predictors, one column per marker (WITHOUT intercept)
        y : ndarray, shape (n,) or (n, T)
            Responses, one column per trait
        method : str
            'inverse' forms (X'X)^-1 from its LU factors,
            'solve' solves the normal equations directly

        Returns
        -------
        OLSResult
        """
        pass

    @abstractmethod
    def get_device_info(self) -> dict:
        """Get backend information."""
        pass
