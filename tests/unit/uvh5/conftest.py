from collections import namedtuple

import pytest

from tests.unit.uvh5.uvh5_test_utils.gen_test_uvh5 import gen_test_uvh5

"""
A tuple with a UVH5 filename (as Path) and the generator options used to
produce it (as a dict).
"""
UVH5WithSpec = namedtuple("UVH5WithSpec", "fname descr")


def _gen_fixture_file(tmp_path_factory, name: str, **kwargs) -> UVH5WithSpec:
    fname = tmp_path_factory.mktemp("uvh5") / name
    gen_test_uvh5(fname, **kwargs)
    return UVH5WithSpec(fname, kwargs)


# Generated test UVH5 fixtures


@pytest.fixture(scope="session")
def uvh5_drift(tmp_path_factory):
    """Current layout, drift scan with no phase center catalog group"""
    return _gen_fixture_file(tmp_path_factory, "test_drift.uvh5", catalog="drift")


@pytest.fixture(scope="session")
def uvh5_phased(tmp_path_factory):
    """Single phase center given by the legacy phase_center_* header fields"""
    return _gen_fixture_file(tmp_path_factory, "test_phased.uvh5", catalog="phased")


@pytest.fixture(scope="session")
def uvh5_multi(tmp_path_factory):
    """Two phase centers in a JSON phase center catalog group"""
    return _gen_fixture_file(tmp_path_factory, "test_multi.uvh5", catalog="multi")


@pytest.fixture(scope="session")
def uvh5_entry_groups(tmp_path_factory):
    """Two phase centers stored as one subgroup per catalog entry"""
    return _gen_fixture_file(
        tmp_path_factory, "test_entry_groups.uvh5", catalog="entry_groups"
    )


@pytest.fixture(scope="session")
def uvh5_legacy_shapes(tmp_path_factory):
    """
    Drift scan with the older array shapes: 2-D freq_array, scalar
    channel_width and 4-D data cubes
    """
    return _gen_fixture_file(
        tmp_path_factory,
        "test_legacy_shapes.uvh5",
        catalog="drift",
        freq_ndim=2,
        channel_width_ndim=0,
        data_ndim=4,
    )


@pytest.fixture(scope="session")
def uvh5_minimal_legacy(tmp_path_factory):
    """
    Oldest layout: none of the optional header fields, no phase_type and no
    vis_units
    """
    return _gen_fixture_file(
        tmp_path_factory,
        "test_minimal_legacy.uvh5",
        catalog="none",
        omit=(
            "vis_units",
            "x_orientation",
            "blt_order",
            "object_name",
            "flex_spw_id_array",
            "dut1",
            "gst0",
            "earth_omega",
            "rdate",
            "timesys",
            "uvplane_reference_time",
            "antenna_diameters",
            "Nbls",
        ),
    )


@pytest.fixture(scope="session")
def uvh5_int_visdata(tmp_path_factory):
    """visdata stored as an integer (r, i) compound, as correlators write it"""
    return _gen_fixture_file(
        tmp_path_factory, "test_int_visdata.uvh5", catalog="drift", int_visdata=True
    )
