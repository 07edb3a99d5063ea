import numpy as np
import toolviper.utils.logger as logger

BL_OFFSET_2048 = 2**16
"""Offset marking baselines packed with the 2048 convention."""
MAX_ANT_256 = 254
MAX_ANT_2048 = 2046


def antnums_to_baseline(ant1, ant2, attempt256: bool = False) -> np.ndarray:
    """
    Pack pairs of antenna numbers into baseline numbers.

    The 256 convention is ``256 * (ant1 + 1) + (ant2 + 1)``, the 2048
    convention is ``2048 * (ant1 + 1) + (ant2 + 1) + 2**16``.

    Parameters
    ----------
    ant1 : array_like of int
        First antenna numbers.
    ant2 : array_like of int
        Second antenna numbers, same length as ``ant1``.
    attempt256 : bool
        Use the 256 convention when every antenna number fits in it,
        otherwise fall back to 2048. Default is False.

    Returns
    -------
    np.ndarray
        Baseline numbers (int64).
    """
    ant1 = np.asarray(ant1, dtype=np.int64)
    ant2 = np.asarray(ant2, dtype=np.int64)
    if ant1.shape != ant2.shape:
        raise ValueError(
            f"ant1 and ant2 must have the same shape, got {ant1.shape} and {ant2.shape}"
        )
    if ant1.size == 0:
        return np.zeros(ant1.shape, dtype=np.int64)

    max_ant = max(ant1.max(), ant2.max())
    if min(ant1.min(), ant2.min()) < 0:
        raise ValueError(
            "cannot convert ant1, ant2 to a baseline number with negative antenna numbers."
        )
    if max_ant > MAX_ANT_2048:
        raise ValueError(
            "cannot convert ant1, ant2 to a baseline number with antenna numbers "
            f"greater than {MAX_ANT_2048}."
        )

    if attempt256:
        if max_ant <= MAX_ANT_256:
            return 256 * (ant1 + 1) + (ant2 + 1)
        logger.warning(
            f"Antenna numbers up to {max_ant} do not fit the 256 baseline convention, "
            "using the 2048 convention instead."
        )

    return 2048 * (ant1 + 1) + (ant2 + 1) + BL_OFFSET_2048


def baseline_to_antnums(baseline, use256: bool = False) -> tuple:
    """
    Unpack baseline numbers into pairs of antenna numbers.

    Parameters
    ----------
    baseline : array_like of int
        Baseline numbers.
    use256 : bool
        Whether the baselines were packed with the 256 convention.

    Returns
    -------
    tuple of np.ndarray
        ``(ant1, ant2)`` antenna numbers.
    """
    baseline = np.asarray(baseline, dtype=np.int64)
    if use256:
        modulus = 256
    else:
        modulus = 2048
        baseline = baseline - BL_OFFSET_2048

    ant2 = baseline % modulus - 1
    ant1 = (baseline - (ant2 + 1)) // modulus - 1
    return ant1, ant2
