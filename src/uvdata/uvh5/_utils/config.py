# Limits of the fixed-length ASCII fields of the UVH5 header.
MAX_STR_LENGTH = 200
MAX_HIST_LENGTH = 20_000
MAX_JSON_LENGTH = 20_000

# HDF5 filters used for the flag and sample-count cubes. LZF is lossless and
# ships with h5py.
FLAGS_COMPRESSION = "lzf"
NSAMPLE_COMPRESSION = "lzf"

# Value standing in for enum fields that are absent from older files.
UNKNOWN_SENTINEL = "unknown"

# Legacy single phase center files.
LEGACY_INFO_SOURCE = "UVData"
LEGACY_PHASE_CENTER_FRAME = "icrs"
LEGACY_ZENITH_NAME = "zenith"
