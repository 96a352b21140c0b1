"""
Thin wrappers around LAPACK.

The routine prefix follows the array dtype: float32 arrays go through the
single precision routines (sgetrf, sgetri, sgesv), everything else through
the double precision ones.
"""

import logging

import numpy as np
from scipy.linalg import lapack

from ..exceptions import DimensionError, LinAlgLibraryError, SingularMatrixError

logger = logging.getLogger(__name__)


def _as_float(a):
    a = np.asarray(a)
    if not np.issubdtype(a.dtype, np.floating):
        a = a.astype(np.float64)
    elif a.dtype not in (np.float32, np.float64):
        a = a.astype(np.float64)
    return a


def _as_square(a, name='a'):
    a = _as_float(a)
    if a.ndim != 2 or a.shape[0] != a.shape[1]:
        raise DimensionError(f"{name} must be a square matrix, got shape {a.shape}")
    return a


def check_info(routine: str, info: int) -> None:
    """
    Turn a LAPACK status code into an exception.

    info < 0: argument number -info had an illegal value.
    info > 0: U[info, info] is exactly zero, the matrix is singular.
    """
    if info == 0:
        return
    logger.debug("%s: info = %d", routine, info)
    if info < 0:
        raise LinAlgLibraryError(
            f"{routine}: illegal value in argument {-info} (info = {info})",
            routine=routine, info=info
        )
    raise SingularMatrixError(
        f"{routine}: U({info},{info}) is exactly zero, the matrix is singular (info = {info})",
        routine=routine, info=info
    )


def inverse_matrix(a: np.ndarray) -> np.ndarray:
    """
    Invert a square matrix through its LU factorization.

    Parameters
    ----------
    a : ndarray, shape (n, n)
        Matrix to invert (not modified)

    Returns
    -------
    ndarray, shape (n, n)
        Inverse of `a`, same precision as the input

    Raises
    ------
    SingularMatrixError
        If the factorization finds a zero pivot
    LinAlgLibraryError
        For any other non-zero LAPACK status
    """
    a = _as_square(a)
    getrf, getri = lapack.get_lapack_funcs(('getrf', 'getri'), (a,))

    # Computes the LU factorization of a general n-by-n matrix.
    lu, piv, info = getrf(a)
    check_info(f"{getrf.typecode}getrf", info)

    # Computes the inverse of an LU-factored general matrix.
    inv, info = getri(lu, piv)
    check_info(f"{getri.typecode}getri", info)
    return inv


def solve_linear_system(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Solve A X = B for X.

    Parameters
    ----------
    a : ndarray, shape (n, n)
        Coefficient matrix
    b : ndarray, shape (n,) or (n, k)
        Right-hand side(s)

    Returns
    -------
    ndarray
        Solution with the same shape as `b`
    """
    a = _as_square(a)
    b = _as_float(b)
    if b.shape[0] != a.shape[0]:
        raise DimensionError(
            f"b has {b.shape[0]} rows but a is {a.shape[0]} x {a.shape[1]}"
        )
    dtype = np.result_type(a, b)
    a = a.astype(dtype, copy=False)
    b = b.astype(dtype, copy=False)

    vector = b.ndim == 1
    if vector:
        b = b[:, np.newaxis]

    gesv, = lapack.get_lapack_funcs(('gesv',), (a, b))
    _, _, x, info = gesv(a, b)
    check_info(f"{gesv.typecode}gesv", info)
    return x[:, 0] if vector else x


def format_matrix(desc: str, matrix) -> str:
    """Description line followed by every entry, one per line."""
    values = np.ravel(np.asarray(matrix), order='F')
    lines = ["", desc]
    lines += [f"{v:f}" for v in values]
    lines.append("")
    return "\n".join(lines) + "\n"
