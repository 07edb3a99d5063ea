from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from uvdata._utils.list_and_array import (
    arrays_close,
    arrays_equal,
    optional_close,
)
from uvdata.enums import (
    BaselineTimeOrder,
    EqualizationConvention,
    FeedOrientation,
    PhaseType,
    VisibilityUnit,
)
from uvdata.phase_center_catalog import PhaseCenterCatalog, zenith_catalog

# placeholder for names a dataset does not carry
UNKNOWN_NAME = "Unknown"


@dataclass(eq=False)
class UVMeta:
    """
    Scalar description of a UV dataset: axis lengths, instrument identity and
    auxiliary time-system values.
    """

    nbls: int = 0
    """Number of distinct baselines."""
    nblts: int = 0
    """Length of the combined baseline-time axis."""
    nspws: int = 0
    npols: int = 0
    ntimes: int = 0
    nfreqs: int = 0
    nphases: int = 1
    """Number of phase centers in the catalog, at least 1."""
    nants_data: int = 0
    nants_telescope: int = 0
    blt_order: BaselineTimeOrder = field(default_factory=BaselineTimeOrder.unknown)
    vis_units: VisibilityUnit = VisibilityUnit.UNCALIBRATED
    phase_type: PhaseType = PhaseType.DRIFT
    x_orientation: FeedOrientation = FeedOrientation.UNKNOWN
    instrument: str = UNKNOWN_NAME
    telescope_name: str = UNKNOWN_NAME
    telescope_location: np.ndarray = field(default_factory=lambda: np.zeros(3))
    """Earth-centered Earth-fixed position in meters."""
    object_name: str = UNKNOWN_NAME
    eq_coeffs_convention: EqualizationConvention = EqualizationConvention.UNKNOWN
    dut1: Optional[float] = None
    gst0: Optional[float] = None
    rdate: Optional[str] = None
    earth_omega: Optional[float] = None
    timesys: Optional[str] = None
    uvplane_reference_time: Optional[int] = None
    history: str = ""

    def __post_init__(self):
        self.telescope_location = np.asarray(self.telescope_location, dtype=float)
        if self.telescope_location.shape != (3,):
            raise ValueError(
                "telescope_location must hold 3 cartesian coordinates, got shape "
                f"{self.telescope_location.shape}"
            )

    def __eq__(self, other) -> bool:
        if not isinstance(other, UVMeta):
            return NotImplemented
        exact = (
            "nbls",
            "nblts",
            "nspws",
            "npols",
            "ntimes",
            "nfreqs",
            "nphases",
            "nants_data",
            "nants_telescope",
            "blt_order",
            "vis_units",
            "phase_type",
            "x_orientation",
            "instrument",
            "telescope_name",
            "object_name",
            "eq_coeffs_convention",
            "rdate",
            "timesys",
            "uvplane_reference_time",
            "history",
        )
        if any(getattr(self, name) != getattr(other, name) for name in exact):
            return False
        return (
            arrays_close(self.telescope_location, other.telescope_location)
            and optional_close(self.dut1, other.dut1)
            and optional_close(self.gst0, other.gst0)
            and optional_close(self.earth_omega, other.earth_omega)
        )

    def copy(self) -> UVMeta:
        return copy.deepcopy(self)


@dataclass(eq=False)
class ArrayMetaData:
    """
    Per-axis arrays of a UV dataset. Lengths follow the counts of the
    matching :class:`UVMeta`.
    """

    spw_array: np.ndarray
    """Spectral window numbers, shape (nspws,)."""
    uvw_array: np.ndarray
    """Baseline coordinates in meters, shape (nblts, 3)."""
    time_array: np.ndarray
    """Julian date of each baseline-time sample, shape (nblts,)."""
    lst_array: np.ndarray
    """Local sidereal time in radians, shape (nblts,)."""
    ant_1_array: np.ndarray
    ant_2_array: np.ndarray
    baseline_array: np.ndarray
    """Baseline numbers packed from ant_1_array and ant_2_array."""
    freq_array: np.ndarray
    """Channel frequencies in Hz, shape (nfreqs,)."""
    spw_id_array: np.ndarray
    """Spectral window of each channel, shape (nfreqs,)."""
    polarization_array: np.ndarray
    integration_time: np.ndarray
    """Integration time in seconds, shape (nblts,)."""
    channel_width: np.ndarray
    """Channel width in Hz, shape (nfreqs,)."""
    antenna_numbers: np.ndarray
    antenna_names: np.ndarray
    antenna_positions: np.ndarray
    """Antenna positions relative to the telescope location, ECEF meters,
    shape (nants_telescope, 3)."""
    phase_center_catalog: PhaseCenterCatalog
    phase_center_id_array: np.ndarray
    """Catalog id of each baseline-time sample, shape (nblts,)."""
    eq_coeffs: Optional[np.ndarray] = None
    """Equalization coefficients, shape (nants_telescope, nfreqs)."""
    antenna_diameters: Optional[np.ndarray] = None

    @classmethod
    def new(cls, meta: UVMeta) -> ArrayMetaData:
        """
        Zero-filled arrays sized from the counts in ``meta``, with a catalog
        holding one unphased ``zenith_<i>`` entry per phase.
        """
        return cls(
            spw_array=np.zeros(meta.nspws, dtype=np.int64),
            uvw_array=np.zeros((meta.nblts, 3), dtype=np.float64),
            time_array=np.zeros(meta.nblts, dtype=np.float64),
            lst_array=np.zeros(meta.nblts, dtype=np.float64),
            ant_1_array=np.zeros(meta.nblts, dtype=np.int64),
            ant_2_array=np.zeros(meta.nblts, dtype=np.int64),
            baseline_array=np.zeros(meta.nblts, dtype=np.int64),
            freq_array=np.zeros(meta.nfreqs, dtype=np.float64),
            spw_id_array=np.zeros(meta.nfreqs, dtype=np.int64),
            polarization_array=np.zeros(meta.npols, dtype=np.int64),
            integration_time=np.zeros(meta.nblts, dtype=np.float64),
            channel_width=np.zeros(meta.nfreqs, dtype=np.float64),
            antenna_numbers=np.zeros(meta.nants_telescope, dtype=np.int64),
            antenna_names=np.zeros(meta.nants_telescope, dtype=np.str_),
            antenna_positions=np.zeros((meta.nants_telescope, 3), dtype=np.float64),
            phase_center_catalog=zenith_catalog(meta.nphases),
            phase_center_id_array=np.zeros(meta.nblts, dtype=np.int64),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, ArrayMetaData):
            return NotImplemented
        exact = (
            "spw_array",
            "ant_1_array",
            "ant_2_array",
            "baseline_array",
            "spw_id_array",
            "polarization_array",
            "antenna_numbers",
            "antenna_names",
            "phase_center_id_array",
        )
        close = (
            "uvw_array",
            "time_array",
            "lst_array",
            "freq_array",
            "integration_time",
            "channel_width",
            "antenna_positions",
        )
        return (
            all(arrays_equal(getattr(self, n), getattr(other, n)) for n in exact)
            and all(arrays_close(getattr(self, n), getattr(other, n)) for n in close)
            and optional_close(self.eq_coeffs, other.eq_coeffs)
            and optional_close(self.antenna_diameters, other.antenna_diameters)
            and self.phase_center_catalog == other.phase_center_catalog
        )

    def copy(self) -> ArrayMetaData:
        return copy.deepcopy(self)
