"""
PySEMS: least squares regression of genetic markers against traits.

Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from .data import (
    Genotype,
    Phenotype,
    load_genotype,
    load_phenotype,
    store_genotype,
    store_phenotype,
)
from .ols import ols, OLSModel
from .scan import scan, GenomeScan
from ._core import ols_regression_analysis

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends

__all__ = [
    'Genotype',
    'Phenotype',
    'load_genotype',
    'load_phenotype',
    'store_genotype',
    'store_phenotype',
    'ols',
    'OLSModel',
    'scan',
    'GenomeScan',
    'ols_regression_analysis',
    'get_backend',
    'list_available_backends',
]
