"""
Core algorithms (backend-agnostic).
"""

from .linalg import inverse_matrix, solve_linear_system, format_matrix
from .ols_solver import fit_ols, ols_regression_analysis

__all__ = [
    "inverse_matrix",
    "solve_linear_system",
    "format_matrix",
    "fit_ols",
    "ols_regression_analysis",
]
