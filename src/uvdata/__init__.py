import os
from toolviper.utils.logger import setup_logger

if not os.getenv("VIPER_LOGGER_NAME"):
    os.environ["VIPER_LOGGER_NAME"] = "uvdata"
    setup_logger(
        logger_name="uvdata",
        log_to_term=True,
        log_to_file=False,
        log_file="uvdata-logfile",
        log_level="INFO",
    )

from uvdata._utils.history import __version__
from uvdata._utils.baseline import antnums_to_baseline, baseline_to_antnums
from uvdata._utils.coord_math import (
    ecef_from_enu,
    enu_from_ecef,
    latlonalt_from_xyz,
    xyz_from_latlonalt,
)
from uvdata.enums import (
    BaselineTimeOrder,
    BaselineTimeOrderKey,
    EqualizationConvention,
    FeedOrientation,
    PhaseType,
    VisibilityUnit,
)
from uvdata.phase_center_catalog import (
    EphemEntry,
    PhaseCenterCatalog,
    PhaseCenterEntry,
    SiderealEntry,
    UnphasedEntry,
)
from uvdata.uv_meta import ArrayMetaData, UVMeta
from uvdata.uv_data import UVData
from uvdata.uvh5 import FormatError, StoreError, read_uvh5, write_uvh5

__all__ = [
    "__version__",
    "antnums_to_baseline",
    "baseline_to_antnums",
    "ecef_from_enu",
    "enu_from_ecef",
    "latlonalt_from_xyz",
    "xyz_from_latlonalt",
    "BaselineTimeOrder",
    "BaselineTimeOrderKey",
    "EqualizationConvention",
    "FeedOrientation",
    "PhaseType",
    "VisibilityUnit",
    "EphemEntry",
    "PhaseCenterCatalog",
    "PhaseCenterEntry",
    "SiderealEntry",
    "UnphasedEntry",
    "ArrayMetaData",
    "UVMeta",
    "UVData",
    "FormatError",
    "StoreError",
    "read_uvh5",
    "write_uvh5",
]
