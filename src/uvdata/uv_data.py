from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from uvdata._utils.coord_math import enu_from_ecef, latlonalt_from_xyz
from uvdata._utils.list_and_array import arrays_close, arrays_equal
from uvdata.uv_meta import ArrayMetaData, UVMeta


def _optional_cube_equal(test, true, compare) -> bool:
    if test is None or true is None:
        return test is None and true is None
    return compare(test, true)


@dataclass(eq=False)
class UVData:
    """
    A UV (visibility) dataset.

    The visibility, sample count and flag cubes all have shape
    ``(nblts, ntimes, npols)`` and are either all present or all unset
    (metadata only).
    """

    meta: UVMeta
    meta_arrays: ArrayMetaData
    data_array: Optional[np.ndarray] = None
    nsample_array: Optional[np.ndarray] = None
    flag_array: Optional[np.ndarray] = None

    def __post_init__(self):
        present = [
            cube is not None
            for cube in (self.data_array, self.nsample_array, self.flag_array)
        ]
        if any(present) and not all(present):
            raise ValueError(
                "data_array, nsample_array and flag_array must be all set or all unset"
            )

    @classmethod
    def new(
        cls,
        meta: UVMeta,
        metadata_only: bool = True,
        data_dtype=np.complex128,
        nsample_dtype=np.float32,
    ) -> UVData:
        """
        Create a zero-initialized UVData from its scalar metadata.

        Parameters
        ----------
        meta : UVMeta
            Scalar metadata; the arrays are sized from its counts.
        metadata_only : bool
            If True the data cubes are left unset, otherwise they are
            allocated zero (False for flags) with shape (nblts, ntimes, npols).
        data_dtype : numpy dtype
            Complex precision of data_array. Default is complex128.
        nsample_dtype : numpy dtype
            Floating precision of nsample_array. Default is float32.

        Returns
        -------
        UVData
        """
        meta_arrays = ArrayMetaData.new(meta)
        if metadata_only:
            return cls(meta=meta, meta_arrays=meta_arrays)

        shape = (meta.nblts, meta.ntimes, meta.npols)
        return cls(
            meta=meta,
            meta_arrays=meta_arrays,
            data_array=np.zeros(shape, dtype=data_dtype),
            nsample_array=np.zeros(shape, dtype=nsample_dtype),
            flag_array=np.zeros(shape, dtype=bool),
        )

    @classmethod
    def from_meta(cls, meta: UVMeta, metadata_only: bool = True) -> UVData:
        """Same as :meth:`new`; metadata only unless asked otherwise."""
        return cls.new(meta, metadata_only)

    @property
    def metadata_only(self) -> bool:
        return self.data_array is None

    def telescope_location_latlonalt(self) -> Tuple[float, float, float]:
        """Telescope latitude, longitude (radians) and altitude (meters)."""
        return latlonalt_from_xyz(self.meta.telescope_location)

    def telescope_location_latlonalt_degrees(self) -> Tuple[float, float, float]:
        """Telescope latitude, longitude (degrees) and altitude (meters)."""
        lat, lon, alt = self.telescope_location_latlonalt()
        return float(np.degrees(lat)), float(np.degrees(lon)), alt

    def get_enu_antpos(self) -> np.ndarray:
        """
        Antenna positions in the East-North-Up frame of the telescope.

        Returns
        -------
        np.ndarray
            Shape (nants_telescope, 3), meters.
        """
        lat, lon, alt = self.telescope_location_latlonalt()
        antpos = self.meta_arrays.antenna_positions + self.meta.telescope_location
        return enu_from_ecef(antpos.reshape(-1, 3), lat, lon, alt)

    def copy(self) -> UVData:
        return copy.deepcopy(self)

    def __eq__(self, other) -> bool:
        if not isinstance(other, UVData):
            return NotImplemented
        return (
            self.meta == other.meta
            and self.meta_arrays == other.meta_arrays
            and _optional_cube_equal(self.data_array, other.data_array, arrays_close)
            and _optional_cube_equal(
                self.nsample_array, other.nsample_array, arrays_close
            )
            and _optional_cube_equal(self.flag_array, other.flag_array, arrays_equal)
        )

    @classmethod
    def read_uvh5(
        cls,
        filename,
        read_data: bool = True,
        data_dtype=np.complex128,
        nsample_dtype=np.float32,
    ) -> UVData:
        """Read a UVH5 file, see :func:`uvdata.uvh5.read_uvh5`."""
        from uvdata.uvh5 import read_uvh5

        return read_uvh5(
            filename,
            read_data=read_data,
            data_dtype=data_dtype,
            nsample_dtype=nsample_dtype,
        )

    def write_uvh5(self, filename, overwrite: bool = False, **kwargs):
        """Write to a UVH5 file, see :func:`uvdata.uvh5.write_uvh5`."""
        from uvdata.uvh5 import write_uvh5

        write_uvh5(self, filename, overwrite=overwrite, **kwargs)

    def to_xds(self):
        """View of this dataset as an xarray.Dataset, see :func:`uvdata.uv_xds.to_xds`."""
        from uvdata.uv_xds import to_xds

        return to_xds(self)
