import numpy as np
import xarray as xr

from uvdata.phase_center_catalog import entry_to_dict


def to_xds(uvd) -> xr.Dataset:
    """
    Create an Xarray Dataset view of a UVData.

    Parameters
    ----------
    uvd : UVData
        Dataset to convert. The visibility, flag and sample-count cubes are
        only included when present.

    Returns
    -------
    xr.Dataset
        Per baseline-time variables on the ``blt`` dimension, channel
        variables on ``frequency``, antenna variables on ``antenna_name``,
        the scalar metadata and the phase center catalog in ``attrs``.
    """
    meta = uvd.meta
    arrays = uvd.meta_arrays

    coords = {
        "antenna1": ("blt", np.asarray(arrays.ant_1_array)),
        "antenna2": ("blt", np.asarray(arrays.ant_2_array)),
        "baseline": ("blt", np.asarray(arrays.baseline_array)),
        "polarization": ("polarization", np.asarray(arrays.polarization_array)),
        "frequency": ("frequency", np.asarray(arrays.freq_array)),
        "spw_id": ("frequency", np.asarray(arrays.spw_id_array)),
        "uvw_label": ("uvw_label", ["u", "v", "w"]),
        "antenna_name": ("antenna_name", np.asarray(arrays.antenna_names)),
        "antenna_number": ("antenna_name", np.asarray(arrays.antenna_numbers)),
        "cartesian_pos_label": ("cartesian_pos_label", ["x", "y", "z"]),
    }

    data_vars = {
        "UVW": (("blt", "uvw_label"), np.asarray(arrays.uvw_array)),
        "TIME": ("blt", np.asarray(arrays.time_array), {"units": "jd"}),
        "LST": ("blt", np.asarray(arrays.lst_array), {"units": "rad"}),
        "INTEGRATION_TIME": ("blt", np.asarray(arrays.integration_time), {"units": "s"}),
        "PHASE_CENTER_ID": ("blt", np.asarray(arrays.phase_center_id_array)),
        "CHANNEL_WIDTH": ("frequency", np.asarray(arrays.channel_width), {"units": "Hz"}),
        "ANTENNA_POSITION": (
            ("antenna_name", "cartesian_pos_label"),
            np.asarray(arrays.antenna_positions),
            {"units": "m", "frame": "ECEF relative to telescope_location"},
        ),
    }
    if arrays.antenna_diameters is not None:
        data_vars["ANTENNA_DIAMETER"] = (
            "antenna_name",
            np.asarray(arrays.antenna_diameters),
            {"units": "m"},
        )
    if arrays.eq_coeffs is not None:
        data_vars["EQ_COEFFS"] = (
            ("antenna_name", "frequency"),
            np.asarray(arrays.eq_coeffs),
        )

    if not uvd.metadata_only:
        cube_dims = ("blt", "time", "polarization")
        data_vars["VISIBILITY"] = (
            cube_dims,
            uvd.data_array,
            {"units": str(meta.vis_units)},
        )
        data_vars["FLAG"] = (cube_dims, uvd.flag_array)
        data_vars["NSAMPLE"] = (cube_dims, uvd.nsample_array)

    xds = xr.Dataset(data_vars=data_vars, coords=coords, attrs=_meta_attrs(uvd))
    return xds


def _meta_attrs(uvd) -> dict:
    meta = uvd.meta
    attrs = {
        "type": "uv_data",
        "nbls": meta.nbls,
        "nblts": meta.nblts,
        "nspws": meta.nspws,
        "npols": meta.npols,
        "ntimes": meta.ntimes,
        "nfreqs": meta.nfreqs,
        "nphases": meta.nphases,
        "nants_data": meta.nants_data,
        "nants_telescope": meta.nants_telescope,
        "blt_order": str(meta.blt_order),
        "vis_units": str(meta.vis_units),
        "phase_type": str(meta.phase_type),
        "x_orientation": str(meta.x_orientation),
        "instrument": meta.instrument,
        "telescope_name": meta.telescope_name,
        "telescope_location": meta.telescope_location.tolist(),
        "object_name": meta.object_name,
        "eq_coeffs_convention": str(meta.eq_coeffs_convention),
        "spw_array": np.asarray(uvd.meta_arrays.spw_array).tolist(),
        "history": meta.history,
        "phase_center_catalog": {
            name: entry_to_dict(entry)
            for name, entry in uvd.meta_arrays.phase_center_catalog.items()
        },
    }
    # unset auxiliary values are left out
    for name in ("dut1", "gst0", "rdate", "earth_omega", "timesys", "uvplane_reference_time"):
        value = getattr(meta, name)
        if value is not None:
            attrs[name] = value
    return attrs
