import os

import h5py
import numpy as np
import toolviper.utils.logger as logger

from uvdata._utils.baseline import antnums_to_baseline
from uvdata._utils.coord_math import latlonalt_from_xyz
from uvdata._utils.history import stamp_history
from uvdata.enums import EqualizationConvention, FeedOrientation, PhaseType
from uvdata.phase_center_catalog import (
    EphemEntry,
    PhaseCenterCatalog,
    SiderealEntry,
    UnphasedEntry,
    check_catalog_ids,
    encode_entry,
)
from uvdata.uv_data import UVData
from uvdata.uvh5._utils.config import (
    FLAGS_COMPRESSION,
    LEGACY_INFO_SOURCE,
    LEGACY_ZENITH_NAME,
    MAX_HIST_LENGTH,
    MAX_JSON_LENGTH,
    MAX_STR_LENGTH,
    NSAMPLE_COMPRESSION,
)
from uvdata.uvh5._utils.store import (
    FormatError,
    create_group,
    encode_ascii,
    open_uvh5_rw,
    write_dataset,
    write_scalar,
    write_string,
)

# how the phase center catalog is laid out in the header
_DRIFT = "drift"
_LEGACY_SIDEREAL = "legacy_sidereal"
_CATALOG_GROUP = "catalog_group"


def write_uvh5(
    uvd: UVData,
    filename,
    overwrite: bool = False,
    flags_compression: str = FLAGS_COMPRESSION,
    nsample_compression: str = NSAMPLE_COMPRESSION,
    chunks=True,
):
    """
    Write a UVData with its data cubes to a new UVH5 file.

    Parameters
    ----------
    uvd : UVData
        Dataset to write. Metadata-only objects are rejected.
    filename : str or os.PathLike
        Path of the file to create.
    overwrite : bool
        Replace an existing file. Default is False.
    flags_compression : str
        HDF5 filter for the flag cube. Default is LZF.
    nsample_compression : str
        HDF5 filter for the sample-count cube. Default is LZF.
    chunks : tuple or bool
        h5py chunking of the data cubes. True for auto-chunking.

    Raises
    ------
    FormatError
        If ``uvd`` is metadata only, its phase center catalog does not fit
        ``nphases``, or a string field is not ASCII or too long.
    FileExistsError
        If ``filename`` exists and ``overwrite`` is False.
    StoreError
        If HDF5 fails to create or write the file.
    """
    if uvd.metadata_only:
        raise FormatError(
            "Cannot write a metadata only UVData, data_array, nsample_array "
            "and flag_array are required"
        )

    # everything that can be rejected is checked before the file is created
    layout = _catalog_layout(uvd)
    nbls = _count_baselines(uvd)
    history = stamp_history(uvd.meta.history)
    encode_ascii("history", history, MAX_HIST_LENGTH)

    logger.info(f"Writing UVH5 file {os.fspath(filename)}")
    with open_uvh5_rw(filename, overwrite=overwrite) as h5file:
        header = create_group(h5file, "Header")
        _write_header(header, uvd, history, nbls)
        _write_phase_center_catalog(header, uvd, layout)

        data_group = create_group(h5file, "Data")
        # complex data is stored by h5py as an (r, i) compound
        write_dataset(data_group, "visdata", uvd.data_array, chunks=chunks)
        write_dataset(
            data_group,
            "flags",
            np.asarray(uvd.flag_array, dtype=bool),
            chunks=chunks,
            compression=flags_compression,
        )
        write_dataset(
            data_group,
            "nsamples",
            uvd.nsample_array,
            chunks=chunks,
            compression=nsample_compression,
        )

    logger.debug(
        f"Wrote {uvd.meta.nblts} baseline-times and {uvd.meta.nphases} phase "
        f"centers to {os.fspath(filename)}"
    )


def _count_baselines(uvd: UVData) -> int:
    arrays = uvd.meta_arrays
    try:
        baseline_array = antnums_to_baseline(arrays.ant_1_array, arrays.ant_2_array)
    except ValueError as exc:
        raise FormatError(f"Invalid antenna numbers: {exc}") from exc
    nbls = int(np.unique(baseline_array).size)
    if nbls != uvd.meta.nbls:
        logger.debug(
            f"Writing Nbls={nbls} from the baselines instead of {uvd.meta.nbls}"
        )
    return nbls


def _catalog_layout(uvd: UVData) -> str:
    """
    Pick the on-disk encoding of the phase center catalog.

    A single unphased or sidereal entry is written with the legacy header
    fields, anything else goes to the ``phase_center_catalog`` group.
    """
    catalog = uvd.meta_arrays.phase_center_catalog
    nphases = uvd.meta.nphases

    try:
        check_catalog_ids(catalog)
    except ValueError as exc:
        raise FormatError(str(exc)) from exc
    _check_catalog_names(catalog)

    if nphases == 1:
        if len(catalog) != 1:
            raise FormatError(
                "Invalid phase center catalog for nphases=1: expected exactly one "
                f"entry, got {len(catalog)} ({list(catalog)})"
            )
        entry = next(iter(catalog.values()))
        if isinstance(entry, UnphasedEntry):
            return _DRIFT
        if isinstance(entry, SiderealEntry):
            return _LEGACY_SIDEREAL
        if isinstance(entry, EphemEntry):
            return _CATALOG_GROUP
        raise FormatError(f"Invalid phase center catalog entry: {entry!r}")

    if nphases > 1:
        if len(catalog) != nphases:
            raise FormatError(
                f"Invalid phase center catalog for nphases={nphases}: got "
                f"{len(catalog)} entries"
            )
        return _CATALOG_GROUP

    raise FormatError(f"nphases must be at least 1, got {nphases}")


def _check_catalog_names(catalog: PhaseCenterCatalog):
    # names become HDF5 link names in the catalog group
    for name in catalog:
        if not isinstance(name, str) or name in ("", ".") or "/" in name:
            raise FormatError(
                f"Invalid phase center name {name!r}: must be a non-empty string "
                "without '/' and other than '.'"
            )


def _write_header(header: h5py.Group, uvd: UVData, history: str, nbls: int):
    meta = uvd.meta
    arrays = uvd.meta_arrays

    latitude, longitude, altitude = latlonalt_from_xyz(meta.telescope_location)
    write_scalar(header, "latitude", np.degrees(latitude), np.float64)
    write_scalar(header, "longitude", np.degrees(longitude), np.float64)
    write_scalar(header, "altitude", altitude, np.float64)
    write_string(header, "instrument", meta.instrument, MAX_STR_LENGTH)
    write_string(header, "telescope_name", meta.telescope_name, MAX_STR_LENGTH)
    write_string(header, "object_name", meta.object_name, MAX_STR_LENGTH)

    write_scalar(header, "Nbls", nbls, np.uint32)
    write_scalar(header, "Nblts", meta.nblts, np.uint32)
    write_scalar(header, "Nspws", meta.nspws, np.uint32)
    write_scalar(header, "Npols", meta.npols, np.uint32)
    write_scalar(header, "Ntimes", meta.ntimes, np.uint32)
    write_scalar(header, "Nfreqs", meta.nfreqs, np.uint32)
    write_scalar(header, "Nants_data", meta.nants_data, np.uint32)
    write_scalar(header, "Nants_telescope", meta.nants_telescope, np.uint32)

    write_string(header, "vis_units", str(meta.vis_units), MAX_STR_LENGTH)
    if not meta.blt_order.is_unknown:
        write_string(header, "blt_order", str(meta.blt_order), MAX_STR_LENGTH)
    if meta.x_orientation is not FeedOrientation.UNKNOWN:
        write_string(header, "x_orientation", str(meta.x_orientation), MAX_STR_LENGTH)
    if meta.eq_coeffs_convention is not EqualizationConvention.UNKNOWN:
        write_string(
            header,
            "eq_coeffs_convention",
            str(meta.eq_coeffs_convention),
            MAX_STR_LENGTH,
        )

    # optional auxiliary scalars
    for name in ("dut1", "gst0", "earth_omega"):
        value = getattr(meta, name)
        if value is not None:
            write_scalar(header, name, value, np.float64)
    for name in ("rdate", "timesys"):
        value = getattr(meta, name)
        if value is not None:
            write_string(header, name, value, MAX_STR_LENGTH)
    if meta.uvplane_reference_time is not None:
        write_scalar(
            header, "uvplane_reference_time", meta.uvplane_reference_time, np.int32
        )

    write_dataset(header, "spw_array", np.asarray(arrays.spw_array))
    write_dataset(header, "uvw_array", np.asarray(arrays.uvw_array, dtype=np.float64))
    write_dataset(header, "time_array", np.asarray(arrays.time_array, dtype=np.float64))
    write_dataset(header, "lst_array", np.asarray(arrays.lst_array, dtype=np.float64))
    write_dataset(header, "ant_1_array", np.asarray(arrays.ant_1_array))
    write_dataset(header, "ant_2_array", np.asarray(arrays.ant_2_array))
    write_dataset(header, "freq_array", np.asarray(arrays.freq_array, dtype=np.float64))
    write_dataset(header, "flex_spw_id_array", np.asarray(arrays.spw_id_array))
    write_dataset(header, "polarization_array", np.asarray(arrays.polarization_array))
    write_dataset(
        header,
        "integration_time",
        np.asarray(arrays.integration_time, dtype=np.float64),
    )
    write_dataset(
        header, "channel_width", np.asarray(arrays.channel_width, dtype=np.float64)
    )
    write_dataset(header, "antenna_numbers", np.asarray(arrays.antenna_numbers))
    write_dataset(
        header,
        "antenna_names",
        np.array(
            [
                encode_ascii("antenna_names", str(name), MAX_STR_LENGTH)
                for name in arrays.antenna_names
            ],
            dtype=f"S{MAX_STR_LENGTH}",
        ),
    )
    write_dataset(
        header,
        "antenna_positions",
        np.asarray(arrays.antenna_positions, dtype=np.float64),
    )
    if arrays.eq_coeffs is not None:
        write_dataset(header, "eq_coeffs", np.asarray(arrays.eq_coeffs))
    if arrays.antenna_diameters is not None:
        write_dataset(header, "antenna_diameters", np.asarray(arrays.antenna_diameters))

    write_string(header, "history", history, MAX_HIST_LENGTH)


def _warn_lossy_legacy(name: str, entry, object_name: str, zenith: bool):
    """Log what the legacy single phase center fields cannot carry."""
    lost = []
    if entry.cat_id != 0:
        lost.append(f"cat_id={entry.cat_id}")
    if zenith:
        if name != LEGACY_ZENITH_NAME:
            lost.append(f"name {name!r}")
    else:
        if name != object_name:
            lost.append(f"name {name!r} (read back as object_name {object_name!r})")
        for field in ("cat_pm_ra", "cat_pm_dec", "cat_dist", "cat_vrad"):
            if getattr(entry, field) is not None:
                lost.append(field)
        if entry.info_source not in (None, LEGACY_INFO_SOURCE):
            lost.append(f"info_source={entry.info_source!r}")
    if lost:
        logger.warning(
            "The single phase center header fields cannot hold "
            + ", ".join(lost)
            + "; they will not be read back"
        )


def _write_catalog_group(header: h5py.Group, catalog: PhaseCenterCatalog):
    group = create_group(header, "phase_center_catalog", track_order=True)
    for name, entry in catalog.items():
        write_string(group, name, encode_entry(entry), MAX_JSON_LENGTH)


def _write_phase_center_catalog(header: h5py.Group, uvd: UVData, layout: str):
    meta = uvd.meta
    catalog = uvd.meta_arrays.phase_center_catalog

    if layout == _DRIFT:
        name, entry = next(iter(catalog.items()))
        _warn_lossy_legacy(name, entry, meta.object_name, zenith=True)
        write_string(header, "phase_type", str(PhaseType.DRIFT), MAX_STR_LENGTH)
        return

    write_string(header, "phase_type", str(meta.phase_type), MAX_STR_LENGTH)

    if layout == _LEGACY_SIDEREAL:
        name, entry = next(iter(catalog.items()))
        _warn_lossy_legacy(name, entry, meta.object_name, zenith=False)
        if meta.phase_type is not PhaseType.PHASED:
            logger.warning(
                f"phase_type is {meta.phase_type} but the only phase center is "
                f"sidereal, {name!r} will not be read back"
            )
        write_string(header, "phase_center_frame", entry.cat_frame, MAX_STR_LENGTH)
        write_scalar(header, "phase_center_ra", entry.cat_lon, np.float64)
        write_scalar(header, "phase_center_dec", entry.cat_lat, np.float64)
        write_scalar(header, "phase_center_epoch", entry.cat_epoch, np.float64)
        return

    _write_catalog_group(header, catalog)
    write_dataset(
        header,
        "phase_center_id_array",
        np.asarray(uvd.meta_arrays.phase_center_id_array),
    )
    write_scalar(header, "Nphase", meta.nphases, np.uint32)
