"""
Encoded polyline codec.

Standard signed-varint delta encoding: each coordinate delta is scaled by
1e5, zig-zag encoded, split into 5-bit groups (low group first), each group
OR'd with 0x20 when another follows, and offset by 63 into printable ASCII.
"""

from typing import Iterable, Optional

import structlog

from saferoute.errors import DecodeError

logger = structlog.get_logger(__name__)

LatLng = tuple[float, float]

PRECISION: float = 1e5
_CHUNK_BITS = 5
_CHUNK_MASK = 0x1F
_CONTINUATION = 0x20
_OFFSET = 63


def _read_varint(encoded: str, index: int) -> tuple[int, int]:
    """Read one zig-zag varint starting at index. Returns (value, next_index)."""
    result = 0
    shift = 0
    start = index
    while True:
        if index >= len(encoded):
            raise DecodeError(
                f"Truncated polyline: value starting at {start} has no terminator",
                position=start,
            )
        b = ord(encoded[index]) - _OFFSET
        if b < 0 or b > 0x3F:
            raise DecodeError(
                f"Invalid polyline character {encoded[index]!r} at {index}",
                position=index,
            )
        index += 1
        result |= (b & _CHUNK_MASK) << shift
        shift += _CHUNK_BITS
        if b < _CONTINUATION:
            break
    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def decode_polyline_partial(encoded: str) -> tuple[list[LatLng], Optional[DecodeError]]:
    """
    Decode as many complete points as possible.

    Returns the decoded prefix and the error that stopped decoding, if any.
    A point whose latitude decoded but whose longitude did not is dropped.
    """
    points: list[LatLng] = []
    index = 0
    lat = 0
    lng = 0
    while index < len(encoded):
        try:
            dlat, index = _read_varint(encoded, index)
            dlng, index = _read_varint(encoded, index)
        except DecodeError as exc:
            exc.decoded_points = len(points)
            exc.details["decoded_points"] = len(points)
            return points, exc
        lat += dlat
        lng += dlng
        point = (lat / PRECISION, lng / PRECISION)
        if not (-90.0 <= point[0] <= 90.0 and -180.0 <= point[1] <= 180.0):
            return points, DecodeError(
                f"Decoded coordinate {point} out of range before {index}",
                position=index,
                decoded_points=len(points),
            )
        points.append(point)
    return points, None


def decode_polyline(encoded: str, strict: bool = False) -> list[LatLng]:
    """
    Decode an encoded polyline into (lat, lng) pairs.

    With strict=True a truncated or corrupt string raises DecodeError.
    Otherwise the decoded prefix is returned and the problem is logged.
    """
    points, error = decode_polyline_partial(encoded)
    if error is not None:
        if strict:
            raise error
        logger.warning(
            "polyline_decode_partial",
            position=error.position,
            decoded_points=len(points),
            error=error.message,
        )
    return points


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    chunks = []
    while value >= _CONTINUATION:
        chunks.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= _CHUNK_BITS
    chunks.append(chr(value + _OFFSET))
    return "".join(chunks)


def encode_polyline(points: Iterable[LatLng]) -> str:
    """Encode (lat, lng) pairs. Inverse of decode_polyline within 1e-5."""
    out: list[str] = []
    prev_lat = 0
    prev_lng = 0
    for lat, lng in points:
        ilat = round(lat * PRECISION)
        ilng = round(lng * PRECISION)
        out.append(_encode_value(ilat - prev_lat))
        out.append(_encode_value(ilng - prev_lng))
        prev_lat, prev_lng = ilat, ilng
    return "".join(out)
