"""
Phase center catalog entries and their JSON encoding.

A catalog maps a phase center name to one of three entry types: an
unphased (zenith) entry, a fixed sidereal position, or a tabulated
ephemeris. The JSON encoding carries no explicit discriminator; decoding
tries the unphased, sidereal and ephemeris shapes in that order and keeps
the first one that fits.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, fields
from numbers import Integral, Real
from typing import Dict, Optional, Union

import numpy as np

from uvdata._utils.list_and_array import arrays_close, optional_close

UNPHASED = "unphased"
SIDEREAL = "sidereal"
EPHEM = "ephem"


def _check_cat_type(entry, expected: str):
    if entry.cat_type != expected:
        raise ValueError(
            f"{type(entry).__name__} must have cat_type {expected!r}, "
            f"got {entry.cat_type!r}"
        )


@dataclass(eq=False)
class UnphasedEntry:
    """Unphased (zenith pointing) phase center."""

    cat_id: int
    cat_type: str = UNPHASED

    def __post_init__(self):
        _check_cat_type(self, UNPHASED)

    def __eq__(self, other) -> bool:
        if not isinstance(other, UnphasedEntry):
            return NotImplemented
        return self.cat_id == other.cat_id and self.cat_type == other.cat_type


@dataclass(eq=False)
class SiderealEntry:
    """Phase center fixed on the sky."""

    cat_id: int
    cat_lon: float
    """Longitudinal coordinate (e.g. RA) in radians."""
    cat_lat: float
    """Latitudinal coordinate (e.g. Dec) in radians."""
    cat_frame: str
    """Coordinate frame, e.g. ``icrs`` or ``fk5``."""
    cat_epoch: float
    """Epoch of the coordinates as a Julian year."""
    cat_pm_ra: Optional[float] = None
    cat_pm_dec: Optional[float] = None
    cat_dist: Optional[float] = None
    cat_vrad: Optional[float] = None
    info_source: Optional[str] = None
    cat_type: str = SIDEREAL

    def __post_init__(self):
        _check_cat_type(self, SIDEREAL)

    def __eq__(self, other) -> bool:
        if not isinstance(other, SiderealEntry):
            return NotImplemented
        return (
            self.cat_id == other.cat_id
            and self.cat_type == other.cat_type
            and arrays_close(self.cat_lon, other.cat_lon)
            and arrays_close(self.cat_lat, other.cat_lat)
            and self.cat_frame == other.cat_frame
            and arrays_close(self.cat_epoch, other.cat_epoch)
            and optional_close(self.cat_pm_ra, other.cat_pm_ra)
            and optional_close(self.cat_pm_dec, other.cat_pm_dec)
            and optional_close(self.cat_dist, other.cat_dist)
            and optional_close(self.cat_vrad, other.cat_vrad)
            and self.info_source == other.info_source
        )


@dataclass(eq=False)
class EphemEntry:
    """Moving phase center tabulated at a list of times."""

    cat_id: int
    cat_lon: np.ndarray
    cat_lat: np.ndarray
    cat_frame: str
    cat_epoch: float
    cat_times: Optional[np.ndarray] = None
    """Julian dates of the tabulated positions."""
    cat_dist: Optional[np.ndarray] = None
    cat_vrad: Optional[np.ndarray] = None
    info_source: Optional[str] = None
    cat_type: str = EPHEM

    def __post_init__(self):
        _check_cat_type(self, EPHEM)
        self.cat_lon = np.asarray(self.cat_lon, dtype=float)
        self.cat_lat = np.asarray(self.cat_lat, dtype=float)
        if self.cat_lon.shape != self.cat_lat.shape:
            raise ValueError(
                "cat_lon and cat_lat must have the same length, got "
                f"{self.cat_lon.size} and {self.cat_lat.size}"
            )
        for name in ("cat_times", "cat_dist", "cat_vrad"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, np.asarray(value, dtype=float))

    def __eq__(self, other) -> bool:
        if not isinstance(other, EphemEntry):
            return NotImplemented
        return (
            self.cat_id == other.cat_id
            and self.cat_type == other.cat_type
            and arrays_close(self.cat_lon, other.cat_lon)
            and arrays_close(self.cat_lat, other.cat_lat)
            and self.cat_frame == other.cat_frame
            and arrays_close(self.cat_epoch, other.cat_epoch)
            and optional_close(self.cat_times, other.cat_times)
            and optional_close(self.cat_dist, other.cat_dist)
            and optional_close(self.cat_vrad, other.cat_vrad)
            and self.info_source == other.info_source
        )


PhaseCenterEntry = Union[UnphasedEntry, SiderealEntry, EphemEntry]
PhaseCenterCatalog = Dict[str, PhaseCenterEntry]

# Ignored when matching a JSON object against an entry shape.
_IGNORED_KEYS = {"cat_name"}


def _is_int(value) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def _is_real(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_str(value) -> bool:
    return isinstance(value, str)


def _is_real_list(value) -> bool:
    return isinstance(value, (list, tuple)) and all(_is_real(v) for v in value)


# Required and optional fields of each shape with their type checks.
# Order matters: the first shape that fits wins.
_ENTRY_SHAPES = (
    (
        UnphasedEntry,
        {"cat_id": _is_int, "cat_type": _is_str},
        {},
    ),
    (
        SiderealEntry,
        {
            "cat_id": _is_int,
            "cat_type": _is_str,
            "cat_lon": _is_real,
            "cat_lat": _is_real,
            "cat_frame": _is_str,
            "cat_epoch": _is_real,
        },
        {
            "cat_pm_ra": _is_real,
            "cat_pm_dec": _is_real,
            "cat_dist": _is_real,
            "cat_vrad": _is_real,
            "info_source": _is_str,
        },
    ),
    (
        EphemEntry,
        {
            "cat_id": _is_int,
            "cat_type": _is_str,
            "cat_lon": _is_real_list,
            "cat_lat": _is_real_list,
            "cat_frame": _is_str,
            "cat_epoch": _is_real,
        },
        {
            "cat_times": _is_real_list,
            "cat_dist": _is_real_list,
            "cat_vrad": _is_real_list,
            "info_source": _is_str,
        },
    ),
)


def _fits_shape(obj: dict, required: dict, optional: dict) -> bool:
    for key, check in required.items():
        if key not in obj or not check(obj[key]):
            return False
    for key, value in obj.items():
        if key in required or key in _IGNORED_KEYS or value is None:
            continue
        if key not in optional or not optional[key](value):
            return False
    return True


def entry_from_dict(obj: dict) -> PhaseCenterEntry:
    """
    Build a catalog entry from a plain dictionary by structural matching.

    Parameters
    ----------
    obj : dict
        Mapping of ``cat_*`` keys to values. Keys whose value is None are
        treated as absent.

    Returns
    -------
    PhaseCenterEntry

    Raises
    ------
    ValueError
        If no entry shape fits, or the shape that fits carries a
        ``cat_type`` that does not match it.
    """
    if not isinstance(obj, dict):
        raise ValueError(f"Expected a JSON object for a catalog entry, got {obj!r}")

    for entry_cls, required, optional in _ENTRY_SHAPES:
        if _fits_shape(obj, required, optional):
            kwargs = {
                key: value
                for key, value in obj.items()
                if key not in _IGNORED_KEYS and value is not None
            }
            return entry_cls(**kwargs)

    raise ValueError(
        f"Catalog entry does not match any phase center shape: {sorted(obj)}"
    )


def entry_to_dict(entry: PhaseCenterEntry) -> dict:
    """JSON-ready dictionary of a catalog entry; arrays become lists."""
    result = {}
    for field in fields(entry):
        value = getattr(entry, field.name)
        if isinstance(value, np.ndarray):
            value = value.tolist()
        elif isinstance(value, np.generic):
            value = value.item()
        result[field.name] = value
    return result


def encode_entry(entry: PhaseCenterEntry) -> str:
    """Encode a catalog entry as a JSON string."""
    return json.dumps(entry_to_dict(entry))


def decode_entry(text: Union[str, bytes]) -> PhaseCenterEntry:
    """
    Decode a JSON string into a catalog entry.

    Raises
    ------
    json.JSONDecodeError
        If the text is not valid JSON.
    ValueError
        If the JSON object fits no entry shape.
    """
    if isinstance(text, bytes):
        text = text.decode("utf8")
    return entry_from_dict(json.loads(text))


def zenith_catalog(nphases: int) -> PhaseCenterCatalog:
    """Catalog holding one unphased ``zenith_<i>`` entry per phase index."""
    return {f"zenith_{phase}": UnphasedEntry(cat_id=phase) for phase in range(nphases)}


def check_catalog_ids(catalog: PhaseCenterCatalog):
    """Raise ValueError if two catalog entries share a ``cat_id``."""
    seen = {}
    for name, entry in catalog.items():
        if entry.cat_id in seen:
            raise ValueError(
                f"Phase centers {seen[entry.cat_id]!r} and {name!r} share cat_id "
                f"{entry.cat_id}"
            )
        seen[entry.cat_id] = name
