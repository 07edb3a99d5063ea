import h5py
import numpy as np
import pytest

from uvdata.enums import FeedOrientation, PhaseType, VisibilityUnit
from uvdata.phase_center_catalog import SiderealEntry, UnphasedEntry
from uvdata.testing.assertions import assert_uvdata_equal
from uvdata.uv_meta import UVMeta
from uvdata.uvh5 import FormatError, StoreError, read_uvh5

from tests.unit.uv_test_utils.gen_test_uvdata import gen_test_uvdata
from tests.unit.uvh5.uvh5_test_utils.gen_test_uvh5 import gen_test_uvh5


@pytest.mark.parametrize(
    "fixture_name, catalog",
    [
        ("uvh5_drift", "drift"),
        ("uvh5_phased", "phased"),
        ("uvh5_multi", "multi"),
        ("uvh5_entry_groups", "multi"),
        ("uvh5_legacy_shapes", "drift"),
        ("uvh5_int_visdata", "drift"),
    ],
)
def test_read_uvh5(fixture_name, catalog, request):
    uvh5 = request.getfixturevalue(fixture_name)
    uvd = read_uvh5(uvh5.fname)
    assert_uvdata_equal(uvd, gen_test_uvdata(catalog, with_eq_coeffs=False))


def test_read_uvh5_shapes(uvh5_drift):
    uvd = read_uvh5(uvh5_drift.fname)
    meta = uvd.meta
    assert (meta.nbls, meta.nblts, meta.ntimes, meta.nfreqs) == (3, 6, 2, 4)
    assert uvd.data_array.shape == (6, 2, 2)
    assert uvd.data_array.dtype == np.complex128
    assert uvd.nsample_array.dtype == np.float32
    assert uvd.flag_array.dtype == bool
    assert uvd.meta_arrays.freq_array.shape == (4,)
    assert uvd.meta_arrays.antenna_names.tolist() == ["ant0", "ant1", "ant2", "ant3"]


def test_read_uvh5_legacy_shapes_match_current(uvh5_drift, uvh5_legacy_shapes):
    assert read_uvh5(uvh5_legacy_shapes.fname) == read_uvh5(uvh5_drift.fname)


def test_read_uvh5_minimal_legacy(uvh5_minimal_legacy):
    uvd = read_uvh5(uvh5_minimal_legacy.fname)
    meta = uvd.meta
    assert meta.vis_units is VisibilityUnit.UNCALIBRATED
    assert meta.phase_type is PhaseType.DRIFT
    assert meta.x_orientation is FeedOrientation.UNKNOWN
    assert meta.blt_order.is_unknown
    assert meta.object_name == UVMeta().object_name == "Unknown"
    assert meta.nbls == 3
    assert meta.nphases == 1
    for name in ("dut1", "gst0", "earth_omega", "rdate", "timesys"):
        assert getattr(meta, name) is None
    assert meta.uvplane_reference_time is None

    arrays = uvd.meta_arrays
    np.testing.assert_array_equal(arrays.spw_id_array, np.zeros(4))
    assert arrays.antenna_diameters is None
    assert arrays.eq_coeffs is None
    assert arrays.phase_center_catalog == {"zenith": UnphasedEntry(cat_id=0)}
    np.testing.assert_array_equal(arrays.phase_center_id_array, np.zeros(6))


def test_read_uvh5_phased_catalog(uvh5_phased):
    catalog = read_uvh5(uvh5_phased.fname).meta_arrays.phase_center_catalog
    assert catalog == {
        "source": SiderealEntry(
            cat_id=0,
            cat_lon=1.25,
            cat_lat=-0.5,
            cat_frame="fk5",
            cat_epoch=2000.0,
            info_source="UVData",
        )
    }


def test_read_uvh5_entry_groups(uvh5_entry_groups):
    uvd = read_uvh5(uvh5_entry_groups.fname)
    catalog = uvd.meta_arrays.phase_center_catalog
    assert sorted(catalog) == ["source", "zenith"]
    assert catalog["zenith"] == UnphasedEntry(cat_id=0)
    assert catalog["source"].cat_id == 1
    assert catalog["source"].cat_pm_ra is None
    assert uvd.meta.nphases == 2


def test_read_uvh5_nphases_alias(tmp_path):
    fname = gen_test_uvh5(tmp_path / "alias.uvh5", catalog="multi_nphases_alias")
    uvd = read_uvh5(fname)
    assert uvd.meta.nphases == 2
    assert len(uvd.meta_arrays.phase_center_catalog) == 2
    np.testing.assert_array_equal(
        uvd.meta_arrays.phase_center_id_array, [0, 1, 0, 1, 0, 1]
    )


def test_read_uvh5_multi_without_catalog(tmp_path):
    fname = gen_test_uvh5(
        tmp_path / "multi_no_catalog.uvh5",
        catalog="none",
        overrides={"phase_type": np.bytes_("multi")},
    )
    uvd = read_uvh5(fname)
    assert uvd.meta.phase_type is PhaseType.MULTI
    assert uvd.meta_arrays.phase_center_catalog == {}


def test_read_uvh5_stale_nbls(tmp_path):
    fname = gen_test_uvh5(tmp_path / "stale.uvh5", overrides={"Nbls": np.uint32(7)})
    assert read_uvh5(fname).meta.nbls == 3


def test_read_uvh5_history_stamped(uvh5_drift):
    from uvdata._utils.history import check_history_version

    history = read_uvh5(uvh5_drift.fname).meta.history
    assert history.startswith("Generated by gen_test_uvh5.")
    assert check_history_version(history)


def test_read_uvh5_metadata_only(uvh5_multi):
    uvd = read_uvh5(uvh5_multi.fname, read_data=False)
    assert uvd.metadata_only
    full = read_uvh5(uvh5_multi.fname)
    assert uvd.meta == full.meta
    assert uvd.meta_arrays == full.meta_arrays


def test_read_uvh5_metadata_only_without_data_group(tmp_path, uvh5_drift):
    fname = tmp_path / "no_data.uvh5"
    with h5py.File(uvh5_drift.fname, "r") as src, h5py.File(fname, "w") as dst:
        src.copy("Header", dst)
    assert read_uvh5(fname, read_data=False).metadata_only
    with pytest.raises(FormatError, match="Missing required group 'Data'"):
        read_uvh5(fname)


def test_read_uvh5_dtypes(uvh5_drift):
    uvd = read_uvh5(
        uvh5_drift.fname, data_dtype=np.complex64, nsample_dtype=np.float64
    )
    assert uvd.data_array.dtype == np.complex64
    assert uvd.nsample_array.dtype == np.float64


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"data_dtype": np.float64}, "data_dtype must be a complex type"),
        ({"nsample_dtype": np.int32}, "nsample_dtype must be a floating type"),
    ],
)
def test_read_uvh5_bad_dtype(uvh5_drift, kwargs, match):
    with pytest.raises(ValueError, match=match):
        read_uvh5(uvh5_drift.fname, **kwargs)


def test_read_uvh5_classmethod(uvh5_drift):
    from uvdata import UVData

    assert UVData.read_uvh5(uvh5_drift.fname) == read_uvh5(uvh5_drift.fname)


def test_read_uvh5_missing_file(tmp_path):
    with pytest.raises(StoreError):
        read_uvh5(tmp_path / "missing.uvh5")


@pytest.mark.parametrize(
    "gen_kwargs, match",
    [
        ({"omit": ("Nblts",)}, "Missing required header field 'Nblts'"),
        ({"omit": ("history",)}, "Missing required header field 'history'"),
        ({"omit": ("latitude",)}, "Missing required header field 'latitude'"),
        ({"omit": ("freq_array",)}, "Missing required header field 'freq_array'"),
        (
            {"overrides": {"vis_units": np.bytes_("volts")}},
            "Invalid 'vis_units' in header",
        ),
        (
            {"overrides": {"blt_order": np.bytes_("time, time")}},
            "Invalid 'blt_order' in header",
        ),
        (
            {"overrides": {"freq_array": np.zeros((1, 1, 4))}},
            "Incompatible dimensions of freq_array: 3",
        ),
        (
            {"overrides": {"channel_width": np.zeros((2, 4))}},
            "Incompatible shape of channel_width",
        ),
        (
            {"overrides": {"ant_1_array": np.full(6, -1)}},
            "Invalid antenna numbers",
        ),
        ({"catalog": "bad_json"}, "Json Err"),
    ],
)
def test_read_uvh5_format_errors(tmp_path, gen_kwargs, match):
    fname = gen_test_uvh5(tmp_path / "bad.uvh5", **gen_kwargs)
    with pytest.raises(FormatError, match=match):
        read_uvh5(fname)


def _replace_dataset(fname, path, value):
    with h5py.File(fname, "a") as h5file:
        del h5file[path]
        h5file[path] = value


@pytest.mark.parametrize(
    "path, value, match",
    [
        (
            "Data/visdata",
            np.zeros((6, 2, 2, 2), dtype=np.complex128),
            "Incompatible shape of visdata",
        ),
        ("Data/flags", np.zeros((6, 2), dtype=bool), "Incompatible dimensions of flags"),
        ("Data/nsamples", np.zeros((6, 2, 3), dtype=np.float32), "same shape"),
        ("Data/visdata", np.zeros((6, 2, 2), dtype="S4"), "Unsupported visdata type"),
        (
            "Data/visdata",
            np.zeros((6, 2, 2), dtype=[("re", "<f8"), ("im", "<f8")]),
            "'r' and 'i' fields",
        ),
    ],
)
def test_read_uvh5_bad_data_cubes(tmp_path, path, value, match):
    fname = gen_test_uvh5(tmp_path / "bad_data.uvh5")
    _replace_dataset(fname, path, value)
    with pytest.raises(FormatError, match=match):
        read_uvh5(fname)


def test_read_uvh5_phased_missing_ra(tmp_path):
    fname = gen_test_uvh5(tmp_path / "phased_no_ra.uvh5", catalog="phased")
    with h5py.File(fname, "a") as h5file:
        del h5file["Header/phase_center_ra"]
    with pytest.raises(FormatError, match="phase_center_ra"):
        read_uvh5(fname)


def test_read_uvh5_phased_default_frame(tmp_path):
    fname = gen_test_uvh5(tmp_path / "phased_no_frame.uvh5", catalog="phased")
    with h5py.File(fname, "a") as h5file:
        del h5file["Header/phase_center_frame"]
    catalog = read_uvh5(fname).meta_arrays.phase_center_catalog
    assert catalog["source"].cat_frame == "icrs"


def test_read_uvh5_duplicate_catalog_ids(tmp_path):
    fname = gen_test_uvh5(tmp_path / "dup_ids.uvh5", catalog="multi")
    _replace_dataset(
        fname,
        "Header/phase_center_catalog/source",
        np.bytes_('{"cat_id": 0, "cat_type": "unphased"}'),
    )
    with pytest.raises(FormatError, match="share cat_id 0"):
        read_uvh5(fname)


def test_read_uvh5_missing_catalog_ids(tmp_path):
    fname = gen_test_uvh5(tmp_path / "no_ids.uvh5", catalog="multi")
    with h5py.File(fname, "a") as h5file:
        del h5file["Header/phase_center_id_array"]
    with pytest.raises(FormatError, match="phase_center_id_array"):
        read_uvh5(fname)


def test_read_uvh5_undecodable_entry(tmp_path):
    fname = gen_test_uvh5(tmp_path / "bad_entry.uvh5", catalog="multi")
    _replace_dataset(
        fname,
        "Header/phase_center_catalog/source",
        np.bytes_('{"cat_id": 1, "cat_type": "sidereal", "cat_lon": "x"}'),
    )
    with pytest.raises(FormatError, match="Json Err"):
        read_uvh5(fname)


def test_read_uvh5_missing_visdata(tmp_path):
    fname = gen_test_uvh5(tmp_path / "no_visdata.uvh5")
    with h5py.File(fname, "a") as h5file:
        del h5file["Data/visdata"]
    with pytest.raises(FormatError, match="dataset 'visdata' in group '/Data'"):
        read_uvh5(fname)


def test_read_uvh5_nphase_mismatch(tmp_path):
    fname = gen_test_uvh5(
        tmp_path / "nphase_mismatch.uvh5", catalog="multi_nphases_alias"
    )
    _replace_dataset(fname, "Header/Nphases", 3)
    with pytest.raises(
        FormatError, match="Nphase is 3 but the phase center catalog holds 2"
    ):
        read_uvh5(fname)


def test_read_uvh5_catalog_ids_length(tmp_path):
    fname = gen_test_uvh5(tmp_path / "short_ids.uvh5", catalog="multi")
    _replace_dataset(fname, "Header/phase_center_id_array", np.zeros(4, dtype=int))
    with pytest.raises(FormatError, match="phase_center_id_array has shape \\(4,\\)"):
        read_uvh5(fname)
