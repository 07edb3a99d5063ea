from uvdata.uvh5._utils.read import read_uvh5
from uvdata.uvh5._utils.store import FormatError, StoreError
from uvdata.uvh5._utils.write import write_uvh5

__all__ = ["read_uvh5", "write_uvh5", "FormatError", "StoreError"]
