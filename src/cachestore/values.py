"""Scalar scan types and value coercion

Drivers that keep Python objects (memory, database) coerce with
``scan_native``: the stored type must already match. Drivers that keep text
on the wire (redis) coerce with ``scan_wire``, which parses the reply the way
the server client would.
"""

import math
import re
from datetime import datetime
from enum import Enum
from typing import Any

from cachestore.errors import ScanTypeMismatch


class ScanType(str, Enum):
    """Scalar types a cached value can be scanned into"""

    STRING = "string"
    BYTES = "bytes"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    BOOL = "bool"
    TIMESTAMP = "timestamp"


_INT_RANGES: dict[ScanType, tuple[int, int]] = {
    ScanType.INT8: (-(2**7), 2**7 - 1),
    ScanType.INT16: (-(2**15), 2**15 - 1),
    ScanType.INT32: (-(2**31), 2**31 - 1),
    ScanType.INT64: (-(2**63), 2**63 - 1),
    ScanType.UINT8: (0, 2**8 - 1),
    ScanType.UINT16: (0, 2**16 - 1),
    ScanType.UINT32: (0, 2**32 - 1),
    ScanType.UINT64: (0, 2**64 - 1),
}

_FLOAT_TYPES = (ScanType.FLOAT32, ScanType.FLOAT64)

FLOAT32_MAX = 3.4028234663852886e38

_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


def _mismatch(value: Any, scan_type: ScanType) -> ScanTypeMismatch:
    return ScanTypeMismatch(
        f"cannot scan {type(value).__name__} value {value!r} into {scan_type.value}"
    )


def _check_int(value: int, scan_type: ScanType) -> int:
    low, high = _INT_RANGES[scan_type]
    if not low <= value <= high:
        msg = f"value {value} out of range for {scan_type.value}"
        raise ScanTypeMismatch(msg)
    return value


def _check_float(value: float, scan_type: ScanType) -> float:
    if (
        scan_type is ScanType.FLOAT32
        and math.isfinite(value)
        and abs(value) > FLOAT32_MAX
    ):
        msg = f"value {value} out of range for float32"
        raise ScanTypeMismatch(msg)
    return value


def scan_native(value: Any, scan_type: ScanType) -> Any:
    """Coerce a stored Python object into scan_type

    The dynamic type must match the requested type; nothing is converted.

    Args:
        value: Stored value
        scan_type: Requested type

    Returns:
        The value, unchanged

    Raises:
        ScanTypeMismatch: If the stored type does not match or the value
            does not fit the requested width
    """
    if scan_type is ScanType.STRING:
        if isinstance(value, str):
            return value
    elif scan_type is ScanType.BYTES:
        if isinstance(value, (bytes, bytearray)):
            return bytes(value)
    elif scan_type in _INT_RANGES:
        # bool is an int subclass but never scans as one
        if isinstance(value, int) and not isinstance(value, bool):
            return _check_int(value, scan_type)
    elif scan_type in _FLOAT_TYPES:
        if isinstance(value, float):
            return _check_float(value, scan_type)
    elif scan_type is ScanType.BOOL:
        if isinstance(value, bool):
            return value
    elif scan_type is ScanType.TIMESTAMP:
        if isinstance(value, datetime):
            return value
    raise _mismatch(value, scan_type)


def scan_wire(raw: bytes | str, scan_type: ScanType) -> Any:
    """Parse a raw wire reply into scan_type

    Args:
        raw: Reply bytes (or text, if the client decodes responses)
        scan_type: Requested type

    Returns:
        The parsed value

    Raises:
        ScanTypeMismatch: If the reply cannot be parsed as scan_type
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")

    if scan_type is ScanType.BYTES:
        return raw

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise _mismatch(raw, scan_type) from e

    if scan_type is ScanType.STRING:
        return text

    if scan_type in _INT_RANGES:
        if not _INT_PATTERN.fullmatch(text):
            raise _mismatch(text, scan_type)
        return _check_int(int(text), scan_type)

    if scan_type in _FLOAT_TYPES:
        if "_" in text or text != text.strip():
            raise _mismatch(text, scan_type)
        try:
            return _check_float(float(text), scan_type)
        except ValueError as e:
            raise _mismatch(text, scan_type) from e

    if scan_type is ScanType.BOOL:
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise _mismatch(text, scan_type)

    if scan_type is ScanType.TIMESTAMP:
        try:
            return datetime.fromisoformat(text)
        except ValueError as e:
            raise _mismatch(text, scan_type) from e

    raise _mismatch(text, scan_type)


def encode_wire(value: Any) -> bytes | str | int | float:
    """Convert a typed payload into a form the redis client can send

    Raises:
        TypeError: If the value is not one of the supported scalar types
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytearray):
        return bytes(value)
    if isinstance(value, (str, bytes, int, float)):
        return value
    msg = f"Unsupported value type: {type(value).__name__}"
    raise TypeError(msg)


# Order matters: bool before int
_TAGS: tuple[tuple[type | tuple[type, ...], str], ...] = (
    (bool, "bool"),
    (int, "int"),
    (float, "float"),
    (str, "str"),
    ((bytes, bytearray), "bytes"),
    (datetime, "datetime"),
)


def is_supported(value: Any) -> bool:
    """Check that value is one of the scalar types every driver can store"""
    return any(isinstance(value, types) for types, _ in _TAGS)


def encode_tagged(value: Any) -> tuple[str, bytes]:
    """Encode a value as a (kind, payload) pair for persistence

    Raises:
        TypeError: If the value is not one of the supported scalar types
    """
    for types, kind in _TAGS:
        if isinstance(value, types):
            break
    else:
        msg = f"Unsupported value type: {type(value).__name__}"
        raise TypeError(msg)

    payload = encode_wire(value)
    if isinstance(payload, bytes):
        return kind, payload
    if isinstance(payload, str):
        return kind, payload.encode("utf-8")
    return kind, repr(payload).encode("ascii")


def decode_tagged(kind: str, payload: bytes) -> Any:
    """Decode a (kind, payload) pair written by encode_tagged"""
    if kind == "bytes":
        return bytes(payload)
    text = payload.decode("utf-8")
    if kind == "str":
        return text
    if kind == "int":
        return int(text)
    if kind == "float":
        return float(text)
    if kind == "bool":
        return text == "1"
    if kind == "datetime":
        return datetime.fromisoformat(text)
    msg = f"Unknown value kind: {kind}"
    raise ValueError(msg)
