import h5py
import numpy as np
import pytest

from uvdata.uvh5._utils.store import (
    FormatError,
    StoreError,
    get_dataset,
    get_group,
    group_exists,
    open_uvh5_ro,
    open_uvh5_rw,
    read_array,
    read_scalar,
    read_string,
    write_string,
)


@pytest.fixture
def h5_header(tmp_path):
    fname = tmp_path / "store.h5"
    with h5py.File(fname, "w") as h5file:
        header = h5file.create_group("Header")
        header["count"] = np.uint32(5)
        header["one_element"] = np.array([2.5])
        header["name"] = np.bytes_("HERA")
        header["values"] = np.arange(4, dtype=np.int32)
        header.create_group("sub")
    return fname


def test_error_types():
    assert issubclass(FormatError, ValueError)
    assert issubclass(StoreError, OSError)


def test_open_ro_missing_file(tmp_path):
    with pytest.raises(StoreError, match="Unable to open"):
        with open_uvh5_ro(tmp_path / "missing.uvh5"):
            pass


def test_open_ro_not_hdf5(tmp_path):
    fname = tmp_path / "not_hdf5.uvh5"
    fname.write_text("plain text")
    with pytest.raises(StoreError):
        with open_uvh5_ro(fname):
            pass


def test_open_rw_existing(tmp_path):
    fname = tmp_path / "exists.uvh5"
    fname.write_text("")
    with pytest.raises(FileExistsError, match="overwrite=True"):
        with open_uvh5_rw(fname):
            pass

    with open_uvh5_rw(fname, overwrite=True) as h5file:
        h5file.create_group("Header")
    with h5py.File(fname, "r") as h5file:
        assert "Header" in h5file


def test_open_ro_closes_file(h5_header):
    with open_uvh5_ro(h5_header) as h5file:
        pass
    assert not h5file.id.valid


def test_get_group(h5_header):
    with open_uvh5_ro(h5_header) as h5file:
        header = get_group(h5file, "Header")
        assert group_exists(header, "sub")
        assert not group_exists(header, "count")
        with pytest.raises(FormatError, match="Missing required group 'Data'"):
            get_group(h5file, "Data")
        with pytest.raises(FormatError, match="is not a group"):
            get_group(header, "count")


def test_read_scalar(h5_header):
    with open_uvh5_ro(h5_header) as h5file:
        header = h5file["Header"]
        assert read_scalar(header, "count") == 5
        assert read_scalar(header, "one_element") == 2.5
        assert read_scalar(header, "absent") is None
        with pytest.raises(FormatError, match="Missing required header field 'absent'"):
            read_scalar(header, "absent", required=True)
        with pytest.raises(FormatError, match="should be a scalar"):
            read_scalar(header, "values")
        with pytest.raises(FormatError, match="is not a dataset"):
            read_scalar(header, "sub")


def test_read_string(h5_header):
    with open_uvh5_ro(h5_header) as h5file:
        header = h5file["Header"]
        assert read_string(header, "name") == "HERA"
        assert read_string(header, "absent") is None


def test_read_array(h5_header):
    with open_uvh5_ro(h5_header) as h5file:
        header = h5file["Header"]
        values = read_array(header, "values", np.float64)
        assert values.dtype == np.float64
        np.testing.assert_array_equal(values, [0.0, 1.0, 2.0, 3.0])
        assert read_array(header, "absent", required=False) is None
        with pytest.raises(FormatError, match="Missing required header field"):
            read_array(header, "absent")


def test_write_string(tmp_path):
    with open_uvh5_rw(tmp_path / "strings.h5") as h5file:
        write_string(h5file, "ok", "HERA", 10)
        assert h5file["ok"][()] == b"HERA"
        with pytest.raises(FormatError, match="must be ASCII"):
            write_string(h5file, "accent", "café", 10)
        with pytest.raises(FormatError, match="the limit is 3"):
            write_string(h5file, "long", "HERA", 3)
        assert "accent" not in h5file
        assert "long" not in h5file


def test_missing_dataset_names_group(tmp_path):
    fname = tmp_path / "data_group.h5"
    with h5py.File(fname, "w") as h5file:
        h5file.create_group("Data")
    with open_uvh5_ro(fname) as h5file:
        data = get_group(h5file, "Data")
        with pytest.raises(
            FormatError, match="Missing required dataset 'visdata' in group '/Data'"
        ):
            get_dataset(data, "visdata")
