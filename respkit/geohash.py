"""Geohash encoding, decoding and neighbour search on 64-bit codes."""

from __future__ import annotations

import base64
import math
from itertools import cycle

DEFAULT_BIT_SIZE = 64  # 32 bits for latitude, 32 for longitude

EARTH_RADIUS = 6372797.560856
MERCATOR_MAX = 20037726.37
MERCATOR_MIN = -20037726.37

_U64 = 1 << 64
_BASE32_STD = b"ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
_BASE32_GEO = b"0123456789bcdefghjkmnpqrstuvwxyz"
_TO_GEO = bytes.maketrans(_BASE32_STD, _BASE32_GEO)

Box = tuple[tuple[float, float], tuple[float, float]]


def encode_bits(latitude: float, longitude: float, bit_size: int) -> tuple[bytes, Box]:
    """Encode a coordinate to ``bit_size`` interleaved bits.

    Returns the hash bytes and the final box ``((lng_min, lng_max), (lat_min, lat_max))``.
    """
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    pos = (longitude, latitude)
    code = bytearray((bit_size + 7) // 8)
    for precision, (direction, val) in zip(range(bit_size), cycle(enumerate(pos))):
        bounds = box[direction]
        mid = (bounds[0] + bounds[1]) / 2
        if val < mid:
            bounds[1] = mid
        else:
            bounds[0] = mid
            code[precision >> 3] |= 1 << (7 - (precision & 7))
    return bytes(code), ((box[0][0], box[0][1]), (box[1][0], box[1][1]))


def encode(latitude: float, longitude: float) -> int:
    """Encode a coordinate to a 64-bit geohash code."""
    code, _ = encode_bits(latitude, longitude, DEFAULT_BIT_SIZE)
    return int.from_bytes(code, "big")


def _decode_box(code: bytes) -> list[list[float]]:
    box = [[-180.0, 180.0], [-90.0, 90.0]]
    directions = cycle((0, 1))
    for byte in code:
        for shift in range(7, -1, -1):
            bounds = box[next(directions)]
            mid = (bounds[0] + bounds[1]) / 2
            if byte >> shift & 1:
                bounds[0] = mid
            else:
                bounds[1] = mid
    return box


def decode(code: int) -> tuple[float, float]:
    """Decode a 64-bit geohash code to ``(latitude, longitude)``."""
    box = _decode_box(from_int(code))
    lng = (box[0][0] + box[0][1]) / 2
    lat = (box[1][0] + box[1][1]) / 2
    return lat, lng


def to_string(buf: bytes) -> str:
    """Render geohash bytes as an unpadded geohash base32 string."""
    return base64.b32encode(buf).translate(_TO_GEO).rstrip(b"=").decode("ascii")


def to_int(buf: bytes) -> int:
    """Read geohash bytes as a big-endian 64-bit code, zero-padding on the right."""
    return int.from_bytes(bytes(buf[:8]).ljust(8, b"\x00"), "big")


def from_int(code: int) -> bytes:
    """Convert a 64-bit code to 8 big-endian bytes."""
    return code.to_bytes(8, "big")


def distance(latitude1: float, longitude1: float, latitude2: float, longitude2: float) -> float:
    """Return the great-circle distance in metres between two coordinates."""
    rad_lat1 = math.radians(latitude1)
    rad_lat2 = math.radians(latitude2)
    a = rad_lat1 - rad_lat2
    b = math.radians(longitude1) - math.radians(longitude2)
    return 2 * EARTH_RADIUS * math.asin(
        math.sqrt(
            math.sin(a / 2) ** 2
            + math.cos(rad_lat1) * math.cos(rad_lat2) * math.sin(b / 2) ** 2
        )
    )


def estimate_precision_by_radius(radius_meters: float, latitude: float) -> int:
    """Return the bit size of the geohash cells to search for a given radius."""
    if radius_meters < 0:
        raise ValueError("radius must not be negative")
    if radius_meters == 0:
        return DEFAULT_BIT_SIZE - 1
    precision = 1
    while radius_meters < MERCATOR_MAX:
        radius_meters *= 2
        precision += 1
    # Unsigned arithmetic: an underflow wraps and is then clamped to the maximum.
    precision = (precision - 2) % _U64
    if latitude > 66 or latitude < -66:
        precision = (precision - 1) % _U64
        if latitude > 80 or latitude < -80:
            precision = (precision - 1) % _U64
    precision = min(max(precision, 1), 32)
    return precision * 2 - 1


def to_range(scope: bytes, precision: int) -> tuple[int, int]:
    """Convert a geohash prefix to the half-open range of 64-bit codes it covers."""
    lower = to_int(scope)
    width = (1 << (64 - precision)) % _U64
    return lower, (lower + width) % _U64


def _valid_lat(lat: float) -> float:
    return max(-90.0, min(90.0, lat))


def _valid_lng(lng: float) -> float:
    if lng > 180:
        return lng - 360
    if lng < -180:
        return lng + 360
    return lng


def get_neighbours(latitude: float, longitude: float, radius_meters: float) -> list[tuple[int, int]]:
    """Return the code ranges of the 9 cells around a coordinate for a search radius."""
    precision = estimate_precision_by_radius(radius_meters, latitude)
    center, box = encode_bits(latitude, longitude, precision)
    height = box[0][1] - box[0][0]
    width = box[1][1] - box[1][0]
    center_lng = (box[0][1] + box[0][0]) / 2
    center_lat = (box[1][1] + box[1][0]) / 2
    max_lat = _valid_lat(center_lat + height)
    min_lat = _valid_lat(center_lat - height)
    max_lng = _valid_lng(center_lng + width)
    min_lng = _valid_lng(center_lng - width)

    def cell(lat: float, lng: float) -> tuple[int, int]:
        code, _ = encode_bits(lat, lng, precision)
        return to_range(code, precision)

    return [
        cell(max_lat, min_lng),
        cell(max_lat, center_lng),
        cell(max_lat, max_lng),
        cell(center_lat, min_lng),
        to_range(center, precision),
        cell(center_lat, max_lng),
        cell(min_lat, min_lng),
        cell(min_lat, center_lng),
        cell(min_lat, max_lng),
    ]