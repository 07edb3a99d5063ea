import os
from typing import Optional, Tuple

import h5py
import numpy as np
import toolviper.utils.logger as logger

from uvdata._utils.baseline import antnums_to_baseline
from uvdata._utils.coord_math import xyz_from_latlonalt
from uvdata._utils.history import stamp_history
from uvdata.enums import (
    BaselineTimeOrder,
    EqualizationConvention,
    FeedOrientation,
    PhaseType,
    VisibilityUnit,
)
from uvdata.phase_center_catalog import (
    PhaseCenterCatalog,
    PhaseCenterEntry,
    SiderealEntry,
    UnphasedEntry,
    check_catalog_ids,
    decode_entry,
    entry_from_dict,
)
from uvdata.uv_data import UVData
from uvdata.uv_meta import UNKNOWN_NAME, ArrayMetaData, UVMeta
from uvdata.uvh5._utils.config import (
    LEGACY_INFO_SOURCE,
    LEGACY_PHASE_CENTER_FRAME,
    LEGACY_ZENITH_NAME,
    UNKNOWN_SENTINEL,
)
from uvdata.uvh5._utils.store import (
    FormatError,
    decode_str,
    get_dataset,
    get_group,
    group_exists,
    link_exists,
    list_members,
    open_uvh5_ro,
    read_array,
    read_dataset,
    read_scalar,
    read_string,
)


def read_uvh5(
    filename,
    read_data: bool = True,
    data_dtype=np.complex128,
    nsample_dtype=np.float32,
) -> UVData:
    """
    Read a UVH5 file into a UVData.

    Parameters
    ----------
    filename : str or os.PathLike
        Path of the UVH5 file.
    read_data : bool
        Read the visibility, flag and sample-count cubes. If False a
        metadata-only UVData is returned. Default is True.
    data_dtype : numpy dtype
        Complex precision of data_array. Default is complex128.
    nsample_dtype : numpy dtype
        Floating precision of nsample_array. Default is float32.

    Returns
    -------
    UVData

    Raises
    ------
    FormatError
        If the file does not follow the UVH5 layout: missing required
        fields, invalid enum strings, unsupported array dimensions or an
        undecodable phase center catalog entry.
    StoreError
        If HDF5 fails to open or read the file.
    """
    data_dtype = np.dtype(data_dtype)
    nsample_dtype = np.dtype(nsample_dtype)
    if data_dtype.kind != "c":
        raise ValueError(f"data_dtype must be a complex type, got {data_dtype}")
    if nsample_dtype.kind != "f":
        raise ValueError(f"nsample_dtype must be a floating type, got {nsample_dtype}")

    logger.info(f"Reading UVH5 file {os.fspath(filename)}")
    with open_uvh5_ro(filename) as h5file:
        header = get_group(h5file, "Header")
        meta = _read_meta(header)
        meta_arrays = _read_meta_arrays(header, meta)

        if read_data:
            data_array, nsample_array, flag_array = _read_data_cubes(
                get_group(h5file, "Data"), meta, data_dtype, nsample_dtype
            )
        else:
            data_array = nsample_array = flag_array = None

    logger.debug(
        f"Read {meta.nblts} baseline-times, {meta.nfreqs} channels, "
        f"{meta.npols} polarizations and {meta.nphases} phase centers"
    )
    return UVData(
        meta=meta,
        meta_arrays=meta_arrays,
        data_array=data_array,
        nsample_array=nsample_array,
        flag_array=flag_array,
    )


def _read_count(header: h5py.Group, name: str) -> int:
    value = read_scalar(header, name, required=True)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise FormatError(f"Header field '{name}' is not an integer: {value!r}") from exc


def _read_optional_float(header: h5py.Group, name: str) -> Optional[float]:
    value = read_scalar(header, name)
    return None if value is None else float(value)


def _read_enum(header: h5py.Group, name: str, parser, default: str = UNKNOWN_SENTINEL):
    text = read_string(header, name)
    if text is None:
        text = default
    try:
        return parser(text)
    except ValueError as exc:
        raise FormatError(f"Invalid '{name}' in header: {exc}") from exc


def _read_meta(header: h5py.Group) -> UVMeta:
    latitude = float(read_scalar(header, "latitude", required=True))
    longitude = float(read_scalar(header, "longitude", required=True))
    altitude = float(read_scalar(header, "altitude", required=True))
    # stored geodetic in degrees, held as ECEF
    telescope_location = xyz_from_latlonalt(
        np.radians(latitude), np.radians(longitude), altitude
    )

    history = read_string(header, "history", required=True)
    stamped = stamp_history(history)
    if stamped != history:
        logger.debug("Appending the uvdata version stamp to the history")

    uvplane_reference_time = read_scalar(header, "uvplane_reference_time")
    if uvplane_reference_time is not None:
        uvplane_reference_time = int(uvplane_reference_time)

    meta = UVMeta(
        nbls=0,
        nblts=_read_count(header, "Nblts"),
        nspws=_read_count(header, "Nspws"),
        npols=_read_count(header, "Npols"),
        ntimes=_read_count(header, "Ntimes"),
        nfreqs=_read_count(header, "Nfreqs"),
        nphases=1,
        nants_data=_read_count(header, "Nants_data"),
        nants_telescope=_read_count(header, "Nants_telescope"),
        blt_order=_read_enum(header, "blt_order", BaselineTimeOrder.from_str),
        vis_units=_read_enum(
            header,
            "vis_units",
            VisibilityUnit.from_str,
            default=VisibilityUnit.UNCALIBRATED.value,
        ),
        phase_type=_read_enum(header, "phase_type", PhaseType.from_str),
        x_orientation=_read_enum(header, "x_orientation", FeedOrientation.from_str),
        instrument=read_string(header, "instrument", required=True),
        telescope_name=read_string(header, "telescope_name", required=True),
        telescope_location=telescope_location,
        object_name=read_string(header, "object_name") or UNKNOWN_NAME,
        eq_coeffs_convention=_read_enum(
            header, "eq_coeffs_convention", EqualizationConvention.from_str
        ),
        dut1=_read_optional_float(header, "dut1"),
        gst0=_read_optional_float(header, "gst0"),
        rdate=read_string(header, "rdate"),
        earth_omega=_read_optional_float(header, "earth_omega"),
        timesys=read_string(header, "timesys"),
        uvplane_reference_time=uvplane_reference_time,
        history=stamped,
    )
    return meta


def _read_freq_axis(header: h5py.Group, name: str, nfreqs: int) -> np.ndarray:
    """
    Read freq_array or channel_width as a flat (nfreqs,) array.

    Older files carry a leading spectral window axis of length 1, and
    channel_width may be a single scalar shared by every channel.
    """
    ndim = get_dataset(header, name).ndim
    values = np.asarray(read_dataset(header, name), dtype=np.float64)
    if ndim == 0:
        logger.debug(f"Broadcasting scalar '{name}' to {nfreqs} channels")
        return np.full(nfreqs, float(values))
    if ndim == 1:
        return values
    if ndim == 2:
        if values.shape[0] != 1:
            raise FormatError(
                f"Incompatible shape of {name}: {values.shape}, the leading "
                "spectral window axis must have length 1"
            )
        logger.debug(f"Removing the legacy spectral window axis of '{name}'")
        return values[0]
    raise FormatError(f"Incompatible dimensions of {name}: {ndim}")


def _read_antenna_names(header: h5py.Group) -> np.ndarray:
    raw = read_array(header, "antenna_names")
    names = [decode_str(name) for name in raw.ravel()]
    if not names:
        return np.zeros(0, dtype=np.str_)
    return np.array(names, dtype=np.str_)


def _read_meta_arrays(header: h5py.Group, meta: UVMeta) -> ArrayMetaData:
    ant_1_array = read_array(header, "ant_1_array", np.int64)
    ant_2_array = read_array(header, "ant_2_array", np.int64)
    try:
        baseline_array = antnums_to_baseline(ant_1_array, ant_2_array)
    except ValueError as exc:
        raise FormatError(f"Invalid antenna numbers in ant_1_array/ant_2_array: {exc}") from exc

    nbls = int(np.unique(baseline_array).size)
    stored_nbls = read_scalar(header, "Nbls")
    if stored_nbls is not None and int(stored_nbls) != nbls:
        logger.debug(
            f"Nbls in the header ({int(stored_nbls)}) does not match the "
            f"{nbls} distinct baselines in the file, using {nbls}"
        )
    meta.nbls = nbls

    spw_id_array = read_array(header, "flex_spw_id_array", np.int64, required=False)
    if spw_id_array is None:
        spw_id_array = np.zeros(meta.nfreqs, dtype=np.int64)

    antenna_diameters = read_array(
        header, "antenna_diameters", np.float64, required=False
    )
    eq_coeffs = read_array(header, "eq_coeffs", np.float64, required=False)

    catalog, phase_center_id_array, nphases = _read_phase_center_catalog(header, meta)
    meta.nphases = nphases

    return ArrayMetaData(
        spw_array=read_array(header, "spw_array", np.int64),
        uvw_array=read_array(header, "uvw_array", np.float64),
        time_array=read_array(header, "time_array", np.float64),
        lst_array=read_array(header, "lst_array", np.float64),
        ant_1_array=ant_1_array,
        ant_2_array=ant_2_array,
        baseline_array=baseline_array,
        freq_array=_read_freq_axis(header, "freq_array", meta.nfreqs),
        spw_id_array=spw_id_array,
        polarization_array=read_array(header, "polarization_array", np.int64),
        integration_time=read_array(header, "integration_time", np.float64),
        channel_width=_read_freq_axis(header, "channel_width", meta.nfreqs),
        antenna_numbers=read_array(header, "antenna_numbers", np.int64),
        antenna_names=_read_antenna_names(header),
        antenna_positions=read_array(header, "antenna_positions", np.float64),
        phase_center_catalog=catalog,
        phase_center_id_array=phase_center_id_array,
        eq_coeffs=eq_coeffs,
        antenna_diameters=antenna_diameters,
    )


def _read_nphase(header: h5py.Group) -> Optional[int]:
    for name in ("Nphase", "Nphases"):
        if link_exists(header, name):
            return _read_count(header, name)
    return None


def _h5_value_to_json(value):
    if isinstance(value, h5py.Empty):
        return None
    if isinstance(value, (bytes, np.bytes_)):
        return decode_str(value)
    if isinstance(value, np.ndarray):
        if value.ndim == 0:
            return value.item()
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _entry_from_group(name: str, group: h5py.Group) -> Tuple[str, PhaseCenterEntry]:
    """
    Decode a catalog entry stored as one dataset per ``cat_*`` field, with
    the group named after the phase center id.
    """
    obj = {key: _h5_value_to_json(group[key][()]) for key in list_members(group)}
    if "cat_id" not in obj:
        try:
            obj["cat_id"] = int(name)
        except ValueError as exc:
            raise FormatError(
                f"Phase center group '{name}' has no cat_id and is not named by one"
            ) from exc
    if obj.get("cat_type") == "unprojected":
        obj["cat_type"] = "unphased"
    entry_name = obj.get("cat_name") or name
    try:
        return entry_name, entry_from_dict(obj)
    except ValueError as exc:
        raise FormatError(f"Invalid phase center '{entry_name}': {exc}") from exc


def _read_catalog_group(header: h5py.Group) -> PhaseCenterCatalog:
    group = get_group(header, "phase_center_catalog")
    catalog = {}
    for name in list_members(group):
        member = group[name]
        if isinstance(member, h5py.Group):
            entry_name, entry = _entry_from_group(name, member)
        else:
            entry_name = name
            try:
                entry = decode_entry(read_string(group, name, required=True))
            except ValueError as exc:
                # json.JSONDecodeError is a ValueError
                raise FormatError(f"Json Err {exc}") from exc
        catalog[entry_name] = entry

    try:
        check_catalog_ids(catalog)
    except ValueError as exc:
        raise FormatError(str(exc)) from exc
    return catalog


def _read_legacy_catalog(header: h5py.Group, meta: UVMeta) -> PhaseCenterCatalog:
    if meta.phase_type is PhaseType.DRIFT:
        return {LEGACY_ZENITH_NAME: UnphasedEntry(cat_id=0)}

    if meta.phase_type is PhaseType.PHASED:
        frame = read_string(header, "phase_center_frame") or LEGACY_PHASE_CENTER_FRAME
        entry = SiderealEntry(
            cat_id=0,
            cat_lon=float(read_scalar(header, "phase_center_ra", required=True)),
            cat_lat=float(read_scalar(header, "phase_center_dec", required=True)),
            cat_frame=frame,
            cat_epoch=float(read_scalar(header, "phase_center_epoch", required=True)),
            info_source=LEGACY_INFO_SOURCE,
        )
        return {meta.object_name: entry}

    logger.warning(
        f"phase_type is {meta.phase_type} but the file has no phase center "
        "catalog, leaving the catalog empty"
    )
    return {}


def _read_phase_center_catalog(
    header: h5py.Group, meta: UVMeta
) -> Tuple[PhaseCenterCatalog, np.ndarray, int]:
    nphases = _read_nphase(header)

    if group_exists(header, "phase_center_catalog"):
        catalog = _read_catalog_group(header)
        phase_center_id_array = read_array(header, "phase_center_id_array", np.int64)
        if nphases is None:
            nphases = len(catalog)
        elif nphases != len(catalog):
            raise FormatError(
                f"Nphase is {nphases} but the phase center catalog holds "
                f"{len(catalog)} entries"
            )
        if phase_center_id_array.shape != (meta.nblts,):
            raise FormatError(
                f"phase_center_id_array has shape {phase_center_id_array.shape}, "
                f"expected (Nblts,) = ({meta.nblts},)"
            )
        return catalog, phase_center_id_array, nphases

    logger.debug(f"No phase center catalog, building one from phase_type {meta.phase_type}")
    catalog = _read_legacy_catalog(header, meta)
    return catalog, np.zeros(meta.nblts, dtype=np.int64), nphases or 1


def _squeeze_cube(dset: h5py.Dataset, name: str) -> np.ndarray:
    if dset.ndim == 3:
        return dset[()]
    if dset.ndim == 4:
        if dset.shape[1] != 1:
            raise FormatError(
                f"Incompatible shape of {name}: {dset.shape}, the spectral window "
                "axis must have length 1"
            )
        logger.debug(f"Removing the legacy spectral window axis of '{name}'")
        return dset[:, 0]
    raise FormatError(f"Incompatible dimensions of {name} array: {dset.ndim}")


def _to_complex(raw: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if raw.dtype.names is not None:
        if "r" not in raw.dtype.names or "i" not in raw.dtype.names:
            raise FormatError(
                "visdata must be a compound type with 'r' and 'i' fields, got "
                f"{raw.dtype}"
            )
        data = np.empty(raw.shape, dtype=dtype)
        data.real = raw["r"]
        data.imag = raw["i"]
        return data
    if raw.dtype.kind in "cfi":
        return raw.astype(dtype)
    raise FormatError(f"Unsupported visdata type {raw.dtype}")


def _read_data_cubes(
    data_group: h5py.Group,
    meta: UVMeta,
    data_dtype: np.dtype,
    nsample_dtype: np.dtype,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    data_array = _to_complex(
        _squeeze_cube(get_dataset(data_group, "visdata"), "visdata"), data_dtype
    )
    flag_array = _squeeze_cube(get_dataset(data_group, "flags"), "flags").astype(bool)
    nsample_array = _squeeze_cube(
        get_dataset(data_group, "nsamples"), "nsamples"
    ).astype(nsample_dtype)

    if not data_array.shape == flag_array.shape == nsample_array.shape:
        raise FormatError(
            f"visdata {data_array.shape}, flags {flag_array.shape} and nsamples "
            f"{nsample_array.shape} must have the same shape"
        )
    expected = (meta.nblts, meta.ntimes, meta.npols)
    if data_array.shape != expected:
        logger.debug(
            f"Data cube shape {data_array.shape} differs from "
            f"(Nblts, Ntimes, Npols) = {expected}"
        )
    return data_array, nsample_array, flag_array
