"""
Marker-by-marker association scan.

Every selected marker is regressed on its own against every selected
trait: trait = b + a * marker. One backend instance is shared by all fits.
"""

import logging
import warnings
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from ._backends import get_backend, BackendBase
from .data import Genotype, Phenotype
from .exceptions import DimensionError, SingularMatrixError, ValidationError
from .ols import OLSModel

logger = logging.getLogger(__name__)

Selection = Optional[Union[int, Sequence[Union[int, str]]]]

RESULT_COLUMNS = [
    'marker_index', 'marker', 'trait_index', 'trait',
    'slope', 'intercept', 'std_error', 't_value', 'p_value', 'r_squared', 'n',
]


def _select(selection: Selection, labels: Sequence[str], kind: str) -> np.ndarray:
    """Resolve None / a count / indices or names into row indices."""
    if selection is None:
        return np.arange(len(labels))
    if isinstance(selection, (int, np.integer)) and not isinstance(selection, bool):
        if selection < 1:
            raise ValidationError(f"number of {kind}s must be positive, got {selection}")
        if selection > len(labels):
            logger.warning("Requested %d %ss but only %d are available",
                           selection, kind, len(labels))
        return np.arange(min(selection, len(labels)))

    lookup = {label: j for j, label in enumerate(labels)}
    indices = []
    for item in selection:
        if isinstance(item, str):
            if item not in lookup:
                raise ValidationError(f"unknown {kind} {item!r}")
            indices.append(lookup[item])
        else:
            if isinstance(item, bool) or not isinstance(item, (int, np.integer)):
                raise ValidationError(
                    f"{kind} selection must be names or integer indices, got {item!r}"
                )
            if not 0 <= item < len(labels):
                raise ValidationError(
                    f"{kind} index {item} out of range (0..{len(labels) - 1})"
                )
            indices.append(int(item))
    if not indices:
        raise ValidationError(f"no {kind}s selected")
    return np.asarray(indices, dtype=np.int64)


def align_individuals(genotype: Genotype, phenotype: Phenotype):
    """
    Match genotype and phenotype columns by individual ID.

    Returns
    -------
    (genotype_columns, phenotype_columns, individuals)
        Column indices into each matrix and the shared IDs, in genotype order
    """
    if genotype.individuals == phenotype.individuals:
        columns = np.arange(genotype.n_individual)
        return columns, columns, list(genotype.individuals)

    for table, name in ((genotype, 'genotype'), (phenotype, 'phenotype')):
        if len(set(table.individuals)) != table.n_individual:
            raise ValidationError(
                f"{name} lists duplicate individual IDs, cannot match individuals"
            )

    pheno_lookup = {ind: i for i, ind in enumerate(phenotype.individuals)}
    shared = [ind for ind in genotype.individuals if ind in pheno_lookup]
    if not shared:
        raise DimensionError("genotype and phenotype share no individuals")

    dropped = genotype.n_individual + phenotype.n_individual - 2 * len(shared)
    if dropped:
        message = (f"{dropped} individuals appear in only one of the genotype and "
                   f"phenotype files and are left out of the scan")
        logger.warning(message)
        warnings.warn(message, UserWarning)

    geno_lookup = {ind: i for i, ind in enumerate(genotype.individuals)}
    geno_cols = np.asarray([geno_lookup[ind] for ind in shared], dtype=np.int64)
    pheno_cols = np.asarray([pheno_lookup[ind] for ind in shared], dtype=np.int64)
    return geno_cols, pheno_cols, shared


class GenomeScan:
    """
    Single-marker least squares scan.

    Examples
    --------
    >>> from pysems import load_genotype, load_phenotype, scan
    >>> result = scan(load_genotype('geno.txt'), load_phenotype('pheno.txt'),
    ...               markers=100, traits=[0])
    >>> print(result.report())
    >>> result.results.sort_values('p_value').head()
    """

    def __init__(
        self,
        genotype: Genotype,
        phenotype: Phenotype,
        markers: Selection = None,
        traits: Selection = None,
        backend: Union[str, BackendBase] = 'auto',
        use_fp64: Optional[bool] = None,
        method: str = 'inverse',
        n_individual: Optional[int] = None,
    ):
        self.genotype = genotype
        self.phenotype = phenotype
        self.method = method
        if isinstance(backend, BackendBase):
            self.backend = backend
        else:
            self.backend = get_backend(backend, use_fp64=use_fp64)

        self.marker_indices = _select(markers, genotype.markers, 'marker')
        self.trait_indices = _select(traits, phenotype.traits, 'trait')
        geno_cols, pheno_cols, self.individuals = align_individuals(genotype, phenotype)
        if n_individual is not None:
            keep = _select(n_individual, self.individuals, 'individual')
            geno_cols, pheno_cols = geno_cols[keep], pheno_cols[keep]
            self.individuals = [self.individuals[i] for i in keep]

        self.results = self._run(geno_cols, pheno_cols)

    def _run(self, geno_cols, pheno_cols) -> pd.DataFrame:
        traits = [self.phenotype.traits[k] for k in self.trait_indices]
        Y = self.phenotype.matrix[np.ix_(self.trait_indices, pheno_cols)].T
        n = len(pheno_cols)

        logger.info("Scanning %d markers x %d traits over %d individuals (%s)",
                    len(self.marker_indices), len(traits), n, self.backend.name)

        blocks = []
        for count, j in enumerate(self.marker_indices, start=1):
            x = self.genotype.matrix[j, geno_cols]
            marker = self.genotype.markers[j]
            block = pd.DataFrame({
                'marker_index': int(j),
                'marker': marker,
                'trait_index': self.trait_indices,
                'trait': traits,
                'n': n,
            })

            if np.ptp(x) == 0:
                logger.warning("Marker %s is constant across individuals, skipped", marker)
                fitted = None
            else:
                try:
                    fitted = OLSModel(x, Y, marker_names=[marker], trait_names=traits,
                                      backend=self.backend, method=self.method)
                except SingularMatrixError as e:
                    logger.warning("Marker %s: %s", marker, e)
                    fitted = None

            if fitted is None:
                for column in ('slope', 'intercept', 'std_error', 't_value', 'p_value', 'r_squared'):
                    block[column] = np.nan
            else:
                block['slope'] = fitted.coefficients[1]
                block['intercept'] = fitted.coefficients[0]
                block['std_error'] = fitted.std_errors[1]
                block['t_value'] = fitted.t_values[1]
                block['p_value'] = fitted.pvalues[1]
                block['r_squared'] = fitted.r_squared
            blocks.append(block)

            if count % 1000 == 0:
                logger.debug("%d / %d markers done", count, len(self.marker_indices))

        results = pd.concat(blocks, ignore_index=True)[RESULT_COLUMNS]
        return results.sort_values(['trait_index', 'marker_index'], kind='stable').reset_index(drop=True)

    def report(self, float_format: str = "%f") -> str:
        """
        Plain text listing of every fit.

        For each marker/trait pair: a header line, then `a` (slope) and
        `b` (intercept).
        """
        lines = ["", "Least Squares Regression Analysis:", ""]
        for row in self.results.itertuples(index=False):
            lines.append(f"Marker {row.marker_index}, Trait {row.trait_index}")
            lines.append("a: " + float_format % row.slope)
            lines.append("b: " + float_format % row.intercept)
            lines.append("")
        return "\n".join(lines) + "\n"

    def top_hits(self, n: int = 10) -> pd.DataFrame:
        """The `n` smallest p-values."""
        return self.results.dropna(subset=['p_value']).nsmallest(n, 'p_value')

    def summary(self, n: int = 10):
        """Print the strongest associations."""
        hits = self.top_hits(n)
        n_failed = int(self.results['slope'].isna().sum())
        print()
        print("=" * 80)
        print("ASSOCIATION SCAN")
        print("=" * 80)
        print(f"Markers: {len(self.marker_indices)}    Traits: {len(self.trait_indices)}    "
              f"Individuals: {len(self.individuals)}")
        print(f"Backend: {self.backend.name}    Method: {self.method}")
        if n_failed:
            print(f"Fits without estimates: {n_failed}")
        print("-" * 80)
        print(f"{'Marker':<20} {'Trait':<16} {'Slope':>12} {'Intercept':>12} {'Pr(>|t|)':>12}")
        print("-" * 80)
        for row in hits.itertuples(index=False):
            p_str = f"{row.p_value:.4f}" if row.p_value >= 0.0001 else f"{row.p_value:.2e}"
            print(f"{row.marker:<20} {row.trait:<16} {row.slope:>12.4f} "
                  f"{row.intercept:>12.4f} {p_str:>12}")
        print("=" * 80)
        print()

    def to_csv(self, path) -> None:
        """Write the results table as tab-separated text."""
        self.results.to_csv(path, sep='\t', index=False, na_rep='NA')

    def __repr__(self):
        return (f"GenomeScan(markers={len(self.marker_indices)}, "
                f"traits={len(self.trait_indices)}, individuals={len(self.individuals)})")


def scan(genotype, phenotype, **kwargs) -> GenomeScan:
    """
    Run a single-marker scan (convenience function).

    Parameters
    ----------
    genotype : Genotype
    phenotype : Phenotype
    **kwargs
        Additional arguments passed to GenomeScan
    """
    return GenomeScan(genotype, phenotype, **kwargs)
