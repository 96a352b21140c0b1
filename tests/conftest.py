"""
Shared fixtures: small genotype/phenotype files with known answers.

height = 1 + 2 * snp1 exactly, weight = -1 + 0.5 * snp3 exactly,
snp2 is constant across individuals.
"""

import numpy as np
import pytest


GENOTYPE_TEXT = """\
Individual Marker snp1 snp2 snp3
ind1 0 2 1
ind2 1 2 0
ind3 2 2 1
ind4 0 2 2
ind5 1 2 0
ind6 2 2 1
"""

PHENOTYPE_TEXT = """\
Individual height weight
ind1 1.0 -0.5
ind2 3.0 -1.0
ind3 5.0 -0.5
ind4 1.0 0.0
ind5 3.0 -1.0
ind6 5.0 -0.5
"""

SNP1 = np.array([0, 1, 2, 0, 1, 2], dtype=float)
SNP3 = np.array([1, 0, 1, 2, 0, 1], dtype=float)


@pytest.fixture
def genotype_file(tmp_path):
    path = tmp_path / "genotype.txt"
    path.write_text(GENOTYPE_TEXT)
    return path


@pytest.fixture
def phenotype_file(tmp_path):
    path = tmp_path / "phenotype.txt"
    path.write_text(PHENOTYPE_TEXT)
    return path


@pytest.fixture
def noisy_data():
    """One marker, one trait, with noise."""
    np.random.seed(42)
    n = 200
    x = np.random.binomial(2, 0.3, n).astype(float)
    y = 0.5 + 1.5 * x + np.random.randn(n)
    return x, y
