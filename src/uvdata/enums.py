"""
Closed sets of values used in UVData metadata. Every member's value is its
canonical on-disk string; ``from_str`` is a tolerant (whitespace and case
insensitive) parser and ``str()`` gives back the canonical string.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


def _normalize(text) -> str:
    if isinstance(text, bytes):
        text = text.decode("utf8")
    return str(text).strip().lower()


def _parse(enum_cls, text, label: str, aliases: dict = None):
    normalized = _normalize(text)
    for member in enum_cls:
        if member.value.lower() == normalized:
            return member
    if aliases and normalized in aliases:
        return aliases[normalized]
    raise ValueError(f"Unknown {label}: {text!r}.")


class VisibilityUnit(Enum):
    """Units of the visibility data."""

    UNCALIBRATED = "uncalib"
    """Uncalibrated correlator units."""

    JANSKY = "Jy"

    KELVIN_STERADIAN = "K str"

    @classmethod
    def from_str(cls, text: str) -> VisibilityUnit:
        return _parse(cls, text, "Visibility Unit")

    def __str__(self) -> str:
        return self.value


class PhaseType(Enum):
    """How the visibilities are phased."""

    DRIFT = "drift"
    """Unphased, pointed at zenith."""

    PHASED = "phased"
    """Phased to a single fixed sky position."""

    MULTI = "multi"
    """Per-sample phase centers governed by the phase center catalog."""

    @classmethod
    def from_str(cls, text: str) -> PhaseType:
        # files that predate phase_type were all drift scans
        return _parse(cls, text, "phase type", aliases={"unknown": cls.DRIFT})

    def __str__(self) -> str:
        return self.value


class EqualizationConvention(Enum):
    """Convention used to apply the equalization coefficients."""

    DIVIDE = "divide"
    MULTIPLY = "multiply"
    UNKNOWN = "unknown"

    @classmethod
    def from_str(cls, text: str) -> EqualizationConvention:
        return _parse(cls, text, "Equalization Convention")

    def __str__(self) -> str:
        return self.value


class FeedOrientation(Enum):
    """Direction the x feed of the antennas points to."""

    EAST = "east"
    NORTH = "north"
    UNKNOWN = "unknown"

    @classmethod
    def from_str(cls, text: str) -> FeedOrientation:
        return _parse(
            cls,
            text,
            "x orientation",
            aliases={"e": cls.EAST, "n": cls.NORTH},
        )

    def __str__(self) -> str:
        return self.value


class BaselineTimeOrderKey(Enum):
    """Sort keys of the baseline-time axis."""

    ANT1 = "ant1"
    ANT2 = "ant2"
    TIME = "time"
    BASELINE = "baseline"
    BDA = "bda"
    """Baseline dependent averaging, has no minor key."""
    UNKNOWN = "unknown"

    @classmethod
    def from_str(cls, text: str) -> BaselineTimeOrderKey:
        return _parse(cls, text, "Blt Ordering key")

    def __str__(self) -> str:
        return self.value


_K = BaselineTimeOrderKey

_LEGAL_BLT_ORDERS = {
    (_K.BASELINE, _K.TIME),
    (_K.BASELINE, _K.ANT1),
    (_K.BASELINE, _K.ANT2),
    (_K.TIME, _K.BASELINE),
    (_K.TIME, _K.ANT1),
    (_K.TIME, _K.ANT2),
    (_K.ANT1, _K.ANT2),
    (_K.ANT1, _K.TIME),
    (_K.ANT1, _K.BASELINE),
    (_K.ANT2, _K.ANT1),
    (_K.ANT2, _K.TIME),
    (_K.ANT2, _K.BASELINE),
}


@dataclass(frozen=True)
class BaselineTimeOrder:
    """
    Ordering of the baseline-time axis as a (major, minor) pair of keys.

    Serialized as ``"major, minor"``, except for ``"bda,"`` (baseline
    dependent averaging, no minor key) and ``"unknown"``.
    """

    major: BaselineTimeOrderKey = BaselineTimeOrderKey.UNKNOWN
    minor: BaselineTimeOrderKey = BaselineTimeOrderKey.UNKNOWN

    @classmethod
    def unknown(cls) -> BaselineTimeOrder:
        return cls(_K.UNKNOWN, _K.UNKNOWN)

    @classmethod
    def bda(cls) -> BaselineTimeOrder:
        return cls(_K.BDA, _K.BDA)

    @property
    def is_unknown(self) -> bool:
        return self.major is _K.UNKNOWN

    @classmethod
    def from_str(cls, text: str) -> BaselineTimeOrder:
        normalized = _normalize(text)
        if normalized == "unknown":
            return cls.unknown()

        parts = [part.strip() for part in normalized.split(",")]
        if parts == ["bda", ""]:
            return cls.bda()

        if len(parts) == 2:
            try:
                pair = (_K.from_str(parts[0]), _K.from_str(parts[1]))
            except ValueError:
                pair = None
            if pair in _LEGAL_BLT_ORDERS:
                return cls(*pair)

        raise ValueError(f"Unknown Blt Ordering: {text!r}.")

    def __post_init__(self):
        pair = (self.major, self.minor)
        if (
            pair not in _LEGAL_BLT_ORDERS
            and pair != (_K.UNKNOWN, _K.UNKNOWN)
            and pair != (_K.BDA, _K.BDA)
        ):
            raise ValueError(
                f"Invalid Blt Ordering: ({self.major.value}, {self.minor.value})."
            )

    def __str__(self) -> str:
        if self.major is _K.UNKNOWN:
            return "unknown"
        if self.major is _K.BDA:
            return "bda,"
        return f"{self.major.value}, {self.minor.value}"
