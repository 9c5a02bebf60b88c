#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General tools that complement the API: GPS unit conversion, route
envelopes and great-circle distances.

"""
import numpy as np


EARTH_RADIUS = 6371e3   # metres

SEMICIRCLE_DEGREES = 180.0 / 2**31


def semicircles_to_degrees(semicircles):
    """Positional data conversion for *.fit files.

    A half-turn is 2**31 semicircles, so ``2**31 - 1`` is just shy of 180
    degrees and ``-2**31`` is exactly -180. Works on scalars and numpy arrays.

        >>> semicircles_to_degrees(-2**31)
        -180.0
    """
    if isinstance(semicircles, (list, tuple)):
        semicircles = np.asarray(semicircles, dtype=np.float64)
    return semicircles * SEMICIRCLE_DEGREES


def haversine(lon, lat, *, fill=0):
    """Great-circle distances between two points on a sphere.

    This is an approximation: the earth is taken to be a sphere of mean
    radius `EARTH_RADIUS` and altitude is ignored.

    Parameters
    ----------
    lon, lat: numpy arrays or lists
        Positional coordinates in *radians*.
    fill: scalar
        An appropriate missing value for the start.

    Returns
    -------
    numpy array
        Distance(s) between adjacent points in metres.

    Examples
    --------
        >>> dist = haversine(np.radians([-77.037852, -77.043934]),
        ...                  np.radians([38.898556, 38.897147]))
        >>> '{:.1f} metres'.format(dist[-1])  # ignoring the leading zero
        '549.2 metres'

    References
    ----------
    https://rosettacode.org/wiki/Haversine_formula#Python
    http://www.movable-type.co.uk/scripts/latlong.html
    """
    lon, lat = np.asarray(lon, dtype=np.float64), np.asarray(lat, dtype=np.float64)
    if lon.size == 0:
        return np.array([], dtype=np.float64)
    dlon, dlat = np.diff(lon), np.diff(lat)

    a = (np.sin(dlat / 2)**2
         + np.cos(lat[:-1])
         * np.cos(lat[1:])
         * np.sin(dlon / 2)**2)

    c = 2 * np.arcsin(np.sqrt(a)) * EARTH_RADIUS

    return np.concatenate(([fill], c))


def bearing(lon, lat, *, final=False, fill=np.nan):
    """Get bearing from positional coordinates.

    Parameters
    ----------
    lon, lat: numpy arrays or lists
        Positional coordinates in *radians*.
    final : bool, optional
        The initial bearing (also known as the forward azimuth) is returned by
        default, but if ``final=True`` the final bearing is returned instead.
    fill: scalar
        An appropriate missing value for the start.

    Returns
    -------
    numpy array
        Direction of travel between adjacent points in decimal degrees.

    References
    ----------
    http://www.movable-type.co.uk/scripts/latlong.html
    """
    lon, lat = np.asarray(lon, dtype=np.float64), np.asarray(lat, dtype=np.float64)

    if final:
        lon, lat = lon[::-1], lat[::-1]

    raw_bearing = np.arctan2(
        np.sin(np.diff(lon)) * np.cos(lat[1:]),
        np.cos(lat[:-1]) * np.sin(lat[1:]) -
        np.sin(lat[:-1]) * np.cos(lat[1:]) * np.cos(np.diff(lon)))

    bearing = (np.degrees(raw_bearing) + 360) % 360  # degrees

    if final:
        bearing = (bearing + 180) % 360
        bearing = bearing[::-1]

    return np.concatenate(([fill], bearing))


def great_circle_distance(lat1, lon1, lat2, lon2):
    """Scalar haversine distance in metres between two points in degrees."""
    lon = np.radians([lon1, lon2])
    lat = np.radians([lat1, lat2])
    return float(haversine(lon, lat)[-1])


def cumulative_distance(points):
    """Running great-circle distance (metres) over positioned points.

    Points without a position carry the previous total forward.

    Returns
    -------
    list of float
        One entry per point, starting at zero.
    """
    totals = []
    total, previous = 0.0, None
    for point in points:
        if point.has_position:
            if previous is not None:
                total += great_circle_distance(
                    previous.latitude, previous.longitude,
                    point.latitude, point.longitude)
            previous = point
        totals.append(total)
    return totals


class BoundingBox:
    """Route envelope, grown one point at a time."""
    __slots__ = ('min_lat', 'min_lon', 'max_lat', 'max_lon')

    def __init__(self):
        self.min_lat = self.min_lon = self.max_lat = self.max_lon = None

    @property
    def is_empty(self):
        return self.min_lat is None

    def extend(self, lat, lon):
        if lat is None or lon is None:
            return
        if self.is_empty:
            self.min_lat = self.max_lat = lat
            self.min_lon = self.max_lon = lon
            return
        self.min_lat = min(self.min_lat, lat)
        self.max_lat = max(self.max_lat, lat)
        self.min_lon = min(self.min_lon, lon)
        self.max_lon = max(self.max_lon, lon)

    def merge(self, other):
        if other.is_empty:
            return
        self.extend(other.min_lat, other.min_lon)
        self.extend(other.max_lat, other.max_lon)

    @property
    def southwest(self):
        return (self.min_lat, self.min_lon)

    @property
    def northeast(self):
        return (self.max_lat, self.max_lon)

    def __repr__(self):
        if self.is_empty:
            return 'BoundingBox()'
        return 'BoundingBox(sw=%r, ne=%r)' % (self.southwest, self.northeast)
