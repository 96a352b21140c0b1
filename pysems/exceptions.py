"""
Exception hierarchy for PySEMS.

Every error raised by the library inherits from PySemsError, so callers
(the command line entry point in particular) can catch them all at once.
"""


class PySemsError(Exception):
    """Base exception for all PySEMS errors."""
    pass


class ValidationError(PySemsError, ValueError):
    """
    Input validation failed.

    Raised when arrays or options passed by the user fail validation.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised e.g. when genotype and phenotype disagree on the number of
    individuals.
    """
    pass


class DataFileError(PySemsError, OSError):
    """A genotype or phenotype file could not be opened."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class DataFormatError(ValidationError):
    """
    A genotype or phenotype file does not follow the expected layout.

    Attributes:
        path: File being read
        position: Zero-based index of the offending token, if known
        token: The offending token, if known
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        position: int | None = None,
        token: str | None = None
    ):
        super().__init__(message)
        self.path = path
        self.position = position
        self.token = token


class NumericalError(PySemsError):
    """Numerical computation failed."""
    pass


class LinAlgLibraryError(NumericalError):
    """
    A linear algebra library routine returned a non-zero status.

    Attributes:
        routine: Name of the routine (e.g. 'dgetrf')
        info: Status code returned by the routine. Negative values flag an
            illegal argument, positive values a zero pivot.
    """

    def __init__(self, message: str, routine: str, info: int):
        super().__init__(message)
        self.routine = routine
        self.info = info


class SingularMatrixError(LinAlgLibraryError):
    """
    Matrix is exactly singular.

    Raised when the LU factorization hits a zero pivot, which for OLS
    usually means a marker with no variation across individuals.
    """
    pass
