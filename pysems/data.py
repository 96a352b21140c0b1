"""
Genotype and phenotype tables.

Both files are whitespace separated token streams; line breaks carry no
meaning. A genotype file starts with two header tokens followed by the
marker names, then lists every individual as its ID followed by one value
per marker. A phenotype file has a single header token followed by the
trait names, then every individual as its ID followed by one value per
trait.

Files are read in two passes: the first pass counts markers (or traits)
and individuals, the second rewinds and fills a preallocated matrix whose
rows are markers (or traits) and whose columns are individuals.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .exceptions import DataFileError, DataFormatError, DimensionError, ValidationError

logger = logging.getLogger(__name__)

GENOTYPE_HEADER = ("Individual", "Marker")
PHENOTYPE_HEADER = ("Individual",)


def _genotype_value(token: str) -> bool:
    """Genotype values are non-negative allele dosages."""
    return token[0].isdigit()


def _phenotype_value(token: str) -> bool:
    """Phenotype values may be negative."""
    return token[0].isdigit() or token[0] == '-'


def _tokens(handle) -> Iterator[str]:
    for line in handle:
        yield from line.split()


class _LabelledMatrix:
    """Behaviour shared by Genotype and Phenotype."""

    _row_attr = None
    _row_kind = None

    def __post_init__(self):
        rows = list(getattr(self, self._row_attr))
        setattr(self, self._row_attr, rows)
        self.individuals = list(self.individuals)
        self.header = tuple(self.header)
        self.matrix = np.asarray(self.matrix)
        if self.matrix.ndim != 2:
            raise DimensionError(
                f"{self._row_kind} matrix must be 2-dimensional, got {self.matrix.ndim}"
            )
        expected = (len(rows), len(self.individuals))
        if self.matrix.shape != expected:
            raise DimensionError(
                f"{self._row_kind} matrix has shape {self.matrix.shape}, "
                f"expected {expected} ({self._row_kind}s x individuals)"
            )

    @property
    def row_labels(self) -> List[str]:
        return getattr(self, self._row_attr)

    @property
    def n_individual(self) -> int:
        return len(self.individuals)

    def to_frame(self) -> pd.DataFrame:
        """Matrix as a DataFrame: one row per marker/trait, one column per individual."""
        return pd.DataFrame(
            self.matrix,
            index=pd.Index(self.row_labels, name=self._row_kind),
            columns=pd.Index(self.individuals, name='individual'),
        )

    @classmethod
    def from_frame(cls, frame: pd.DataFrame, **kwargs):
        """Build from a DataFrame laid out like `to_frame()` returns."""
        return cls(
            [str(label) for label in frame.index],
            [str(ind) for ind in frame.columns],
            frame.to_numpy(dtype=np.float64),
            **kwargs
        )

    def subset(self, n_rows: Optional[int] = None, n_individual: Optional[int] = None):
        """Keep only the first `n_rows` rows and/or the first `n_individual` columns."""
        rows = self.row_labels
        n_rows = len(rows) if n_rows is None else n_rows
        n_individual = self.n_individual if n_individual is None else n_individual
        if n_rows < 1 or n_individual < 1:
            raise ValidationError(
                f"subset sizes must be positive, got {n_rows} {self._row_kind}s "
                f"and {n_individual} individuals"
            )
        if n_rows > len(rows) or n_individual > self.n_individual:
            logger.warning(
                "Requested %d %ss x %d individuals but only %d x %d are available",
                n_rows, self._row_kind, n_individual, len(rows), self.n_individual
            )
        return replace(
            self,
            **{self._row_attr: rows[:n_rows]},
            individuals=self.individuals[:n_individual],
            matrix=self.matrix[:n_rows, :n_individual],
        )


@dataclass
class Genotype(_LabelledMatrix):
    """Genotype table: `matrix[j, i]` is the value of marker j for individual i."""
    markers: List[str]
    individuals: List[str]
    matrix: np.ndarray
    header: Tuple[str, ...] = field(default=GENOTYPE_HEADER)

    _row_attr = 'markers'
    _row_kind = 'marker'

    @property
    def n_marker(self) -> int:
        return len(self.markers)


@dataclass
class Phenotype(_LabelledMatrix):
    """Phenotype table: `matrix[j, i]` is the value of trait j for individual i."""
    traits: List[str]
    individuals: List[str]
    matrix: np.ndarray
    header: Tuple[str, ...] = field(default=PHENOTYPE_HEADER)

    _row_attr = 'traits'
    _row_kind = 'trait'

    @property
    def n_trait(self) -> int:
        return len(self.traits)


def _open(path):
    try:
        return open(path, 'r', encoding='utf-8')
    except FileNotFoundError as e:
        raise DataFileError(f'file "{path}" does not exist', path=str(path)) from e
    except OSError as e:
        raise DataFileError(f'cannot open file "{path}": {e}', path=str(path)) from e


def _count(handle, path, n_header: int, is_value: Callable[[str], bool], kind: str):
    """
    First pass: count row names and individuals.

    Every token up to the first value is a name, except the last one which
    is the ID of the first individual. Every later non-value token starts
    a new individual.
    """
    tokens = _tokens(handle)
    for position in range(n_header):
        if next(tokens, None) is None:
            raise DataFormatError(
                f"{path}: expected {n_header} header tokens, file ends after {position}",
                path=str(path), position=position
            )

    n_names = 0
    for token in tokens:
        if is_value(token):
            break
        n_names += 1
    else:
        raise DataFormatError(f"{path}: no {kind} values found", path=str(path))

    # The last name-like token belongs to the first individual.
    n_rows = n_names - 1
    if n_rows < 1:
        raise DataFormatError(
            f"{path}: header lists no {kind} names", path=str(path), position=n_header
        )

    n_individual = 1
    for token in tokens:
        if not is_value(token):
            n_individual += 1
    return n_rows, n_individual


def _fill(handle, path, n_header: int, n_rows: int, n_individual: int,
          is_value: Callable[[str], bool], kind: str, dtype):
    """Second pass: read names, IDs and values into a preallocated matrix."""
    tokens = _tokens(handle)
    position = -1

    def take(what):
        nonlocal position
        token = next(tokens, None)
        position += 1
        if token is None:
            raise DataFormatError(
                f"{path}: file ends while reading {what}", path=str(path), position=position
            )
        return token

    header = tuple(take("header") for _ in range(n_header))
    names = [take(f"{kind} names") for _ in range(n_rows)]
    individuals = []
    matrix = np.empty((n_rows, n_individual), dtype=dtype)

    for i in range(n_individual):
        individual = take("individual ID")
        if is_value(individual):
            raise DataFormatError(
                f"{path}: expected an individual ID, found {individual!r} "
                f"(row of individual {individuals[-1]!r} has too many values?)",
                path=str(path), position=position, token=individual
            )
        individuals.append(individual)
        for j in range(n_rows):
            token = take(f"values of individual {individuals[-1]!r}")
            if not is_value(token):
                raise DataFormatError(
                    f"{path}: expected a value for {kind} {names[j]!r} of individual "
                    f"{individuals[-1]!r}, found {token!r}",
                    path=str(path), position=position, token=token
                )
            try:
                matrix[j, i] = float(token)
            except ValueError as e:
                raise DataFormatError(
                    f"{path}: cannot parse {token!r} as a number",
                    path=str(path), position=position, token=token
                ) from e

    leftover = next(tokens, None)
    if leftover is not None:
        raise DataFormatError(
            f"{path}: unexpected token {leftover!r} after the last individual",
            path=str(path), position=position + 1, token=leftover
        )
    return header, names, individuals, matrix


def _load(path, n_header, is_value, kind, dtype):
    with _open(path) as handle:
        try:
            n_rows, n_individual = _count(handle, path, n_header, is_value, kind)
            logger.info("%ss: %d", kind.capitalize(), n_rows)
            logger.info("Individuals: %d", n_individual)
            handle.seek(0)
            return _fill(handle, path, n_header, n_rows, n_individual, is_value, kind, dtype)
        except UnicodeDecodeError as e:
            raise DataFormatError(f"{path}: not a UTF-8 text file ({e})", path=str(path)) from e


def load_genotype(path, dtype=np.float64) -> Genotype:
    """
    Read a genotype file.

    Parameters
    ----------
    path : str or Path
        Genotype file
    dtype : numpy dtype
        Storage precision of the matrix

    Returns
    -------
    Genotype
        Markers x individuals table
    """
    header, markers, individuals, matrix = _load(
        path, len(GENOTYPE_HEADER), _genotype_value, 'marker', dtype
    )
    return Genotype(markers, individuals, matrix, header=header)


def load_phenotype(path, dtype=np.float64) -> Phenotype:
    """
    Read a phenotype file.

    Parameters
    ----------
    path : str or Path
        Phenotype file
    dtype : numpy dtype
        Storage precision of the matrix

    Returns
    -------
    Phenotype
        Traits x individuals table
    """
    header, traits, individuals, matrix = _load(
        path, len(PHENOTYPE_HEADER), _phenotype_value, 'trait', dtype
    )
    return Phenotype(traits, individuals, matrix, header=header)


def _check_labels(labels: Sequence[str], what: str, is_value):
    for label in labels:
        if not label or any(c.isspace() for c in label):
            raise ValidationError(f"{what} {label!r} is empty or contains whitespace")
        if is_value(label):
            raise ValidationError(f"{what} {label!r} would be read back as a value")


def _store(path, table, n_header, is_value, kind):
    if len(table.header) != n_header:
        raise ValidationError(f"{kind} files need {n_header} header tokens, got {table.header}")
    _check_labels(table.header, "header token", is_value)
    _check_labels(table.row_labels, f"{kind} name", is_value)
    _check_labels(table.individuals, "individual ID", is_value)
    if not np.all(np.isfinite(table.matrix)):
        raise ValidationError(f"{kind} matrix contains NaN or Inf")

    # -0.0 -> 0.0, a leading "-" reads back as an individual ID
    values = np.asarray(table.matrix, dtype=np.float64) + 0.0
    with open(Path(path), 'w', encoding='utf-8') as handle:
        handle.write('\t'.join(list(table.header) + table.row_labels) + '\n')
        for i, individual in enumerate(table.individuals):
            row = [repr(float(v)) for v in values[:, i]]
            handle.write('\t'.join([individual] + row) + '\n')


def store_genotype(path, genotype: Genotype) -> None:
    """Write a genotype table in the layout `load_genotype` reads."""
    if np.any(np.asarray(genotype.matrix) < 0):
        raise ValidationError("genotype values must be non-negative")
    _store(path, genotype, len(GENOTYPE_HEADER), _genotype_value, 'marker')


def store_phenotype(path, phenotype: Phenotype) -> None:
    """Write a phenotype table in the layout `load_phenotype` reads."""
    _store(path, phenotype, len(PHENOTYPE_HEADER), _phenotype_value, 'trait')
