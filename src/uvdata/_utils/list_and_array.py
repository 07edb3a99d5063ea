"""Tolerant comparisons shared by the data model equality checks."""

import numpy as np

DEFAULT_ATOL = 1e-6


def arrays_close(test, true, atol: float = DEFAULT_ATOL) -> bool:
    """
    Whether two numeric arrays have the same shape and all elements within atol.

    Complex arrays are compared on the magnitude of the difference.
    """
    test = np.asarray(test)
    true = np.asarray(true)
    if test.shape != true.shape:
        return False
    if test.size == 0:
        return True
    return bool(np.all(np.abs(test - true) <= atol))


def arrays_equal(test, true) -> bool:
    """Exact comparison for integer, boolean and string arrays."""
    test = np.asarray(test)
    true = np.asarray(true)
    if test.shape != true.shape:
        return False
    return bool(np.array_equal(test, true))


def optional_close(test, true, atol: float = DEFAULT_ATOL) -> bool:
    """
    Tolerant comparison of optional scalars or arrays.

    Both unset is equal, exactly one unset is not.
    """
    if test is None or true is None:
        return test is None and true is None
    return arrays_close(test, true, atol=atol)
