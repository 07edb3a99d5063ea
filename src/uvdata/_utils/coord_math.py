import numpy as np

# WGS84 ellipsoid
GPS_A = 6378137.0
"""Semi-major axis, meters."""
GPS_B = 6356752.31424518
"""Semi-minor axis, meters."""
E2 = 6.69437999014e-3
"""First eccentricity squared."""
EP2 = 6.73949674228e-3
"""Second eccentricity squared."""

_LATLONALT_ITERATIONS = 3


def xyz_from_latlonalt(latitude, longitude, altitude) -> np.ndarray:
    """
    Calculate ECEF x,y,z from geodetic latitude, longitude and altitude.

    Parameters
    ----------
    latitude : float or array_like
        Latitude in radians.
    longitude : float or array_like
        Longitude in radians.
    altitude : float or array_like
        Altitude above the ellipsoid in meters.

    Returns
    -------
    np.ndarray
        ECEF positions in meters, shape (3,) for scalar input or (Npts, 3).
    """
    latitude = np.asarray(latitude, dtype=float)
    longitude = np.asarray(longitude, dtype=float)
    altitude = np.asarray(altitude, dtype=float)

    sin_lat = np.sin(latitude)
    cos_lat = np.cos(latitude)
    sin_lon = np.sin(longitude)
    cos_lon = np.cos(longitude)

    b_div_a2 = (GPS_B / GPS_A) ** 2
    gps_n = GPS_A / np.sqrt(1.0 - E2 * sin_lat**2)

    xyz = np.stack(
        [
            (gps_n + altitude) * cos_lat * cos_lon,
            (gps_n + altitude) * cos_lat * sin_lon,
            (b_div_a2 * gps_n + altitude) * sin_lat,
        ],
        axis=-1,
    )
    return xyz


def latlonalt_from_xyz(xyz) -> tuple:
    """
    Calculate geodetic latitude, longitude and altitude from ECEF x,y,z.

    Starts from Bowring's closed form and refines the parametric latitude a
    few times so that xyz -> lat/lon/alt -> xyz is exact to well below a
    micrometer near the Earth's surface.

    Parameters
    ----------
    xyz : array_like
        ECEF positions in meters, shape (3,) or (Npts, 3).

    Returns
    -------
    tuple of (latitude, longitude, altitude)
        Latitude and longitude in radians, altitude in meters. Scalars for a
        single position, arrays otherwise.
    """
    xyz = np.asarray(xyz, dtype=float)
    if xyz.shape[-1] != 3:
        raise ValueError(f"The last dimension of xyz must be 3, got {xyz.shape}")

    x = xyz[..., 0]
    y = xyz[..., 1]
    z = xyz[..., 2]

    gps_p = np.sqrt(x**2 + y**2)
    theta = np.arctan2(z * GPS_A, gps_p * GPS_B)
    for _ in range(_LATLONALT_ITERATIONS):
        latitude = np.arctan2(
            z + EP2 * GPS_B * np.sin(theta) ** 3,
            gps_p - E2 * GPS_A * np.cos(theta) ** 3,
        )
        theta = np.arctan2(GPS_B * np.sin(latitude), GPS_A * np.cos(latitude))

    longitude = np.arctan2(y, x)

    sin_lat = np.sin(latitude)
    altitude = (
        gps_p * np.cos(latitude)
        + z * sin_lat
        - GPS_A * np.sqrt(1.0 - E2 * sin_lat**2)
    )

    if xyz.ndim == 1:
        return float(latitude), float(longitude), float(altitude)
    return latitude, longitude, altitude


def _enu_rotation(latitude: float, longitude: float) -> np.ndarray:
    sin_lat = np.sin(latitude)
    cos_lat = np.cos(latitude)
    sin_lon = np.sin(longitude)
    cos_lon = np.cos(longitude)

    # rows: east, north, up
    return np.array(
        [
            [-sin_lon, cos_lon, 0.0],
            [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
            [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat],
        ]
    )


def enu_from_ecef(xyz, latitude: float, longitude: float, altitude: float):
    """
    Rotate ECEF positions into the East-North-Up frame of a reference point.

    Parameters
    ----------
    xyz : array_like
        ECEF positions in meters, shape (Npts, 3).
    latitude, longitude : float
        Geodetic position of the ENU origin, radians.
    altitude : float
        Altitude of the ENU origin, meters.

    Returns
    -------
    np.ndarray
        ENU positions in meters, shape (Npts, 3).
    """
    xyz = np.atleast_2d(np.asarray(xyz, dtype=float))
    if xyz.shape[-1] != 3:
        raise ValueError(f"The last dimension of xyz must be 3, got {xyz.shape}")

    xyz_center = xyz_from_latlonalt(latitude, longitude, altitude)
    rotation = _enu_rotation(latitude, longitude)
    return (xyz - xyz_center) @ rotation.T


def ecef_from_enu(enu, latitude: float, longitude: float, altitude: float):
    """
    Inverse of :func:`enu_from_ecef`.

    Parameters
    ----------
    enu : array_like
        ENU positions in meters, shape (Npts, 3).
    latitude, longitude : float
        Geodetic position of the ENU origin, radians.
    altitude : float
        Altitude of the ENU origin, meters.

    Returns
    -------
    np.ndarray
        ECEF positions in meters, shape (Npts, 3).
    """
    enu = np.atleast_2d(np.asarray(enu, dtype=float))
    if enu.shape[-1] != 3:
        raise ValueError(f"The last dimension of enu must be 3, got {enu.shape}")

    xyz_center = xyz_from_latlonalt(latitude, longitude, altitude)
    rotation = _enu_rotation(latitude, longitude)
    return enu @ rotation + xyz_center
