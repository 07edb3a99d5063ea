"""
Thin layer over h5py used by the UVH5 reader and writer: scoped file
handles, optional-field lookups and error wrapping.
"""

from contextlib import contextmanager
import os
from typing import Generator, List, Optional

import h5py
import numpy as np


class FormatError(ValueError):
    """
    Raised when the content of a UVH5 file (or of a UVData about to be
    written) does not follow the UVH5 layout.
    """

    pass


class StoreError(OSError):
    """
    Raised when the underlying HDF5 library fails to open, read or write an
    object. The message names the object path.
    """

    pass


_H5_ERRORS = (OSError, KeyError, TypeError, RuntimeError)


def _object_path(group: h5py.Group, name: str) -> str:
    return f"{group.file.filename}:{group.name.rstrip('/')}/{name}"


def _field_label(group: h5py.Group, name: str) -> str:
    if group.name == "/Header":
        return f"header field '{name}'"
    return f"dataset '{name}' in group '{group.name}'"


@contextmanager
def open_uvh5_ro(filename) -> Generator[h5py.File, None, None]:
    try:
        h5file = h5py.File(filename, "r")
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to open {os.fspath(filename)} for reading: {exc}") from exc
    try:
        yield h5file
    finally:
        h5file.close()


@contextmanager
def open_uvh5_rw(filename, overwrite: bool = False) -> Generator[h5py.File, None, None]:
    if os.path.exists(filename) and not overwrite:
        raise FileExistsError(
            f"{os.fspath(filename)} already exists, use overwrite=True to replace it"
        )
    try:
        h5file = h5py.File(filename, "w")
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to open {os.fspath(filename)} for writing: {exc}") from exc
    try:
        yield h5file
    finally:
        h5file.close()


def get_group(parent: h5py.Group, name: str) -> h5py.Group:
    if name not in parent:
        raise FormatError(f"Missing required group '{name}' in {parent.file.filename}")
    obj = parent[name]
    if not isinstance(obj, h5py.Group):
        raise FormatError(f"'{name}' in {parent.file.filename} is not a group")
    return obj


def link_exists(group: h5py.Group, name: str) -> bool:
    return name in group


def group_exists(group: h5py.Group, name: str) -> bool:
    return name in group and isinstance(group[name], h5py.Group)


def list_members(group: h5py.Group) -> List[str]:
    return list(group.keys())


def get_dataset(group: h5py.Group, name: str) -> h5py.Dataset:
    if name not in group:
        raise FormatError(f"Missing required {_field_label(group, name)}")
    try:
        dset = group[name]
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to access {_object_path(group, name)}: {exc}") from exc
    if not isinstance(dset, h5py.Dataset):
        raise FormatError(f"The {_field_label(group, name)} is not a dataset")
    return dset


def dimension_count(group: h5py.Group, name: str) -> int:
    return get_dataset(group, name).ndim


def read_dataset(group: h5py.Group, name: str) -> np.ndarray:
    """Read a whole dataset (any dimensionality) into memory."""
    dset = get_dataset(group, name)
    try:
        return dset[()]
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to read {_object_path(group, name)}: {exc}") from exc


def read_scalar(group: h5py.Group, name: str, required: bool = False):
    """
    Read a scalar dataset.

    Parameters
    ----------
    group : h5py.Group
        Group holding the dataset.
    name : str
        Dataset name.
    required : bool
        Raise FormatError when the dataset is absent. Otherwise an absent
        dataset reads as None.

    Returns
    -------
    numpy scalar or None
    """
    if not link_exists(group, name):
        if required:
            raise FormatError(f"Missing required {_field_label(group, name)}")
        return None
    value = read_dataset(group, name)
    if isinstance(value, np.ndarray):
        if value.size != 1:
            raise FormatError(
                f"The {_field_label(group, name)} should be a scalar, got shape {value.shape}"
            )
        value = value.reshape(()).item() if value.dtype.kind != "S" else value.reshape(())[()]
    return value


def read_string(group: h5py.Group, name: str, required: bool = False) -> Optional[str]:
    """Read a fixed-length ASCII (or variable-length) string scalar."""
    value = read_scalar(group, name, required=required)
    if value is None:
        return None
    return decode_str(value)


def decode_str(value) -> str:
    if isinstance(value, (bytes, np.bytes_)):
        return bytes(value).decode("utf8")
    return str(value)


def read_array(
    group: h5py.Group, name: str, dtype=None, required: bool = True
) -> Optional[np.ndarray]:
    """
    Read an array dataset, optionally casting it.

    An absent optional array reads as None.
    """
    if not link_exists(group, name):
        if required:
            raise FormatError(f"Missing required {_field_label(group, name)}")
        return None
    array = np.asarray(read_dataset(group, name))
    if dtype is not None:
        array = array.astype(dtype, copy=False)
    return array


def encode_ascii(name: str, value: str, max_length: int) -> np.bytes_:
    try:
        encoded = value.encode("ascii")
    except UnicodeEncodeError as exc:
        raise FormatError(f"Header field '{name}' must be ASCII: {exc}") from exc
    if len(encoded) > max_length:
        raise FormatError(
            f"Header field '{name}' is {len(encoded)} bytes long, "
            f"the limit is {max_length}"
        )
    return np.bytes_(encoded)


def write_string(group: h5py.Group, name: str, value: str, max_length: int):
    write_dataset(group, name, encode_ascii(name, value, max_length))


def write_scalar(group: h5py.Group, name: str, value, dtype=None):
    if dtype is not None:
        value = np.asarray(value, dtype=dtype)
    write_dataset(group, name, value)


def write_dataset(group: h5py.Group, name: str, value, **kwargs):
    try:
        if kwargs:
            group.create_dataset(name, data=value, **kwargs)
        else:
            group[name] = value
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to write {_object_path(group, name)}: {exc}") from exc


def create_group(
    parent: h5py.Group, name: str, track_order: bool = False
) -> h5py.Group:
    try:
        return parent.create_group(name, track_order=track_order)
    except _H5_ERRORS as exc:
        raise StoreError(f"Unable to create {_object_path(parent, name)}: {exc}") from exc
