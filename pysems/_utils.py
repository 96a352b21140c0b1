"""
Utility functions.
"""

import logging

import numpy as np

from .exceptions import ValidationError


LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(level=logging.INFO) -> None:
    """Configure basic logging format."""
    if isinstance(level, str):
        name = level
        level = getattr(logging, name.upper(), None)
        if not isinstance(level, int):
            raise ValidationError(f"Unknown log level: {name!r}")
    logging.basicConfig(level=level, format=LOG_FORMAT)


def check_matrix(X, name='X', dtype=np.float64):
    """
    Validate a predictor or response block.

    A 1-dimensional input is treated as a single column.
    """
    X = np.asarray(X, dtype=dtype)
    if X.ndim == 1:
        X = X[:, np.newaxis]
    if X.ndim != 2:
        raise ValidationError(f"{name} must be 1- or 2-dimensional, got {X.ndim} dimensions")
    if not np.all(np.isfinite(X)):
        raise ValidationError(f"{name} contains NaN or Inf")
    return X

