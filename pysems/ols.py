"""
Least squares regression of traits on markers with summary statistics.

This is the user-facing API for a single fit: one or more markers against
one or more traits, sharing the same individuals.
"""

import numpy as np
import pandas as pd
from typing import Optional, Sequence, Union
from scipy import stats

from ._backends import get_backend, BackendBase


class OLSModel:
    """
    Fit trait = intercept + marker effects by ordinary least squares.

    Estimates are computed as Z = (X'X)^-1 X'Y, then the usual inference
    quantities are derived from Z and (X'X)^-1.

    Examples
    --------
    >>> from pysems import ols
    >>>
    >>> model = ols(genotype.matrix[0], phenotype.matrix[0])
    >>> model.a, model.b        # slope, intercept
    >>> model.pvalues           # per coefficient and trait
    >>> model.summary()
    """

    def __init__(
        self,
        x: np.ndarray,
        y: np.ndarray,
        marker_names: Optional[Sequence[str]] = None,
        trait_names: Optional[Sequence[str]] = None,
        backend: Union[str, BackendBase] = 'auto',
        use_fp64: Optional[bool] = None,
        method: str = 'inverse',
    ):
        """
        Fit the model.

        Parameters
        ----------
        x : array, shape (n,) or (n, p)
            Marker values, one column per marker
        y : array, shape (n,) or (n, T)
            Trait values, one column per trait
        marker_names, trait_names : sequence of str, optional
            Labels for the output tables
        backend : str or BackendBase
            Computational backend: 'auto', 'cpu', 'gpu', 'pytorch', or an
            already constructed backend (reused across fits in a scan)
        use_fp64 : bool, optional
            Precision preference passed to get_backend
        method : str
            'inverse' (default) or 'solve'
        """
        if isinstance(backend, BackendBase):
            self.backend = backend
        else:
            self.backend = get_backend(backend, use_fp64=use_fp64)

        self._result = self.backend.fit_ols(x, y, method=method)
        self.method = method

        n_markers = self._result.coef.shape[0] - 1
        n_traits = self._result.coef.shape[1]
        self.marker_names = list(marker_names) if marker_names is not None else [
            f'x{j}' for j in range(n_markers)
        ]
        self.trait_names = list(trait_names) if trait_names is not None else [
            f'y{k}' for k in range(n_traits)
        ]
        self.var_names = ['Intercept'] + self.marker_names

        self._compute_statistics()

    def _compute_statistics(self):
        """Compute standard errors, t-stats, p-values, R²."""
        result = self._result

        self.coefficients = np.asarray(result.coef, dtype=np.float64)
        self.residuals = np.asarray(result.residuals, dtype=np.float64)
        self.fitted_values = np.asarray(result.fitted_values, dtype=np.float64)
        self.n_obs = result.n_obs
        self.df_residual = result.df_residual

        rss = np.sum(self.residuals ** 2, axis=0)
        y = self.fitted_values + self.residuals
        tss = np.sum((y - y.mean(axis=0)) ** 2, axis=0)

        with np.errstate(divide='ignore', invalid='ignore'):
            # Residual standard error, one per trait
            if self.df_residual > 0:
                self.sigma = np.sqrt(rss / self.df_residual)
            else:
                self.sigma = np.full(rss.shape, np.nan)

            # Var(β) = σ² (X'X)⁻¹
            xtx_inv_diag = np.diag(np.asarray(result.xtx_inv, dtype=np.float64))
            self.std_errors = np.sqrt(np.outer(xtx_inv_diag, self.sigma ** 2))

            self.t_values = self.coefficients / self.std_errors

            if self.df_residual > 0:
                self.pvalues = 2 * stats.t.sf(np.abs(self.t_values), self.df_residual)
            else:
                self.pvalues = np.full(self.t_values.shape, np.nan)

            self.r_squared = np.where(tss > 0, 1 - rss / tss, 0.0)

    def vcov(self, trait: int = 0) -> np.ndarray:
        """Variance-covariance matrix of the coefficients for one trait."""
        return np.asarray(self._result.xtx_inv, dtype=np.float64) * self.sigma[trait] ** 2

    @property
    def coef(self) -> pd.DataFrame:
        """Named coefficients (rows: Intercept + markers, columns: traits)."""
        return pd.DataFrame(self.coefficients, index=self.var_names, columns=self.trait_names)

    @property
    def a(self):
        """Slope of the first marker (one value per trait)."""
        row = self.coefficients[1]
        return float(row[0]) if row.size == 1 else row

    @property
    def b(self):
        """Intercept (one value per trait)."""
        row = self.coefficients[0]
        return float(row[0]) if row.size == 1 else row

    def conf_int(self, alpha: float = 0.05, trait: int = 0) -> pd.DataFrame:
        """
        Confidence intervals for coefficients of one trait.

        Parameters
        ----------
        alpha : float
            Significance level (default: 0.05 for 95% CI)
        trait : int
            Trait column

        Returns
        -------
        DataFrame
            Confidence intervals with columns 'lower' and 'upper'
        """
        t_crit = stats.t.ppf(1 - alpha / 2, self.df_residual)
        coef = self.coefficients[:, trait]
        se = self.std_errors[:, trait]
        return pd.DataFrame({
            'lower': coef - t_crit * se,
            'upper': coef + t_crit * se,
        }, index=self.var_names)

    def summary(self):
        """Print a coefficient table per trait."""
        print()
        print("=" * 80)
        print("LEAST SQUARES REGRESSION RESULTS")
        print("=" * 80)
        print(f"Number of individuals: {self.n_obs}")
        print(f"Residual degrees of freedom: {self.df_residual}")
        print(f"Method: {self.method}    Backend: {self.backend.name}")

        for k, trait in enumerate(self.trait_names):
            print()
            print(f"Trait: {trait}")
            print("-" * 80)
            print(f"{'Variable':<20} {'Estimate':>12} {'Std. Error':>12} {'t value':>10} {'Pr(>|t|)':>12}")
            print("-" * 80)
            for j, name in enumerate(self.var_names):
                p = self.pvalues[j, k]
                if np.isnan(p):
                    p_str = 'NA'
                else:
                    p_str = f"{p:.4f}" if p >= 0.0001 else "<.0001"
                print(f"{name:<20} {self.coefficients[j, k]:>12.4f} {self.std_errors[j, k]:>12.4f} "
                      f"{self.t_values[j, k]:>10.3f} {p_str:>12}")
            print("-" * 80)
            print(f"Residual standard error: {self.sigma[k]:.4f} on {self.df_residual} degrees of freedom")
            print(f"Multiple R-squared:      {self.r_squared[k]:.4f}")
        print("=" * 80)
        print()

    def predict(self, newx: np.ndarray) -> np.ndarray:
        """
        Predict traits for new marker values.

        Parameters
        ----------
        newx : array, shape (m,) or (m, p)

        Returns
        -------
        array, shape (m, T)
        """
        X_new = np.asarray(newx, dtype=np.float64)
        if X_new.ndim == 1:
            X_new = X_new[:, np.newaxis]
        X_new_full = np.column_stack([np.ones(len(X_new)), X_new])
        return X_new_full @ self.coefficients

    def __repr__(self):
        return (f"OLSModel(n={self.n_obs}, markers={len(self.marker_names)}, "
                f"traits={len(self.trait_names)})")


def ols(x, y, **kwargs):
    """
    Fit a least squares model (convenience function).

    Parameters
    ----------
    x : array
        Marker values, individuals along the first axis
    y : array
        Trait values, individuals along the first axis
    **kwargs
        Additional arguments passed to OLSModel

    Returns
    -------
    OLSModel
        Fitted model object

    Examples
    --------
    >>> model = ols(x, y, backend='cpu')
    >>> model.a, model.b
    """
    return OLSModel(x, y, **kwargs)
