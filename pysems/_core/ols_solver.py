"""
Ordinary least squares solver.

Delegates to backend for actual computation.
"""

import numpy as np


def fit_ols(
    x: np.ndarray,
    y: np.ndarray,
    method: str = 'inverse',
    backend=None,
):
    """
    Fit Z = (X'X)^-1 X'Y via backend.

    This is just a thin wrapper - backends do all the work.

    Parameters
    ----------
    x : ndarray, shape (n,) or (n, p)
        Predictors (WITHOUT intercept), one column per marker
    y : ndarray, shape (n,) or (n, T)
        Responses, one column per trait
    method : str
        'inverse' or 'solve'
    backend : Backend, optional
        Computational backend (CPU when omitted)

    Returns
    -------
    result : OLSResult (from backend)
    """
    if backend is None:
        from .._backends import get_backend
        backend = get_backend('cpu')

    return backend.fit_ols(x, y, method=method)


def ols_regression_analysis(
    x: np.ndarray,
    y: np.ndarray,
    method: str = 'inverse',
    backend=None,
) -> np.ndarray:
    """
    Least squares estimates in the form (X'X)^-1 (X'Y).

    Parameters
    ----------
    x : ndarray, shape (n,) or (n, p)
        n individuals x p markers
    y : ndarray, shape (n,) or (n, T)
        n individuals x T traits

    Returns
    -------
    z : ndarray, shape (p + 1, T)
        Row 0 holds the intercepts, row j the coefficients of marker j.
        For one marker and one trait, z[1, 0] is the slope and z[0, 0]
        the intercept.
    """
    return fit_ols(x, y, method=method, backend=backend).coef
