"""Length-prefixed JSON framing and the record machinery shared by message types."""

from __future__ import annotations

import dataclasses
import json
import struct
from typing import Any, Callable, ClassVar, Mapping

PROTOCOL_VERSION = 1
"""Version of the host/guest protocol."""

MAX_FRAME_SIZE = 16 * 1024 * 1024
"""Largest payload a frame may carry (16 MiB)."""

WORKLOAD_CONTROL_PORT = 5000
WORKLOAD_LOGS_PORT = 5001
AGENT_CONTROL_PORT = 6000

CID_HOST = 2
CID_GUEST = 3
CID_ANY = 0xFFFFFFFF

_HEADER = struct.Struct(">I")

Converter = Callable[[Any], Any]


class DecodeError(ValueError):
    """A frame could not be decoded."""


class TooShortError(DecodeError):
    """The data is too short to hold the length header."""

    def __init__(self) -> None:
        super().__init__("data too short for length header")


class TooLargeError(DecodeError):
    """The length header announces a frame above MAX_FRAME_SIZE."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(f"frame too large: {size} bytes")


class IncompleteError(DecodeError):
    """Fewer payload bytes are present than the header announces."""

    def __init__(self, expected: int, got: int) -> None:
        self.expected = expected
        self.got = got
        super().__init__(f"incomplete frame: expected {expected} bytes, got {got}")


class JsonDecodeError(DecodeError):
    """The payload is not valid JSON or not a valid message."""

    def __init__(self, reason: object) -> None:
        self.reason = reason
        super().__init__(f"JSON decode error: {reason}")


def encode_message(message: Any) -> bytes:
    """Encode a message (or plain JSON value) as a length-prefixed JSON frame."""
    to_dict = getattr(message, "to_dict", None)
    payload = to_dict() if callable(to_dict) else message
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    return _HEADER.pack(len(body)) + body


def decode_message(data: bytes, factory: Callable[[Any], Any] | None = None) -> Any:
    """Decode one frame; ``factory`` turns the parsed JSON into a message."""
    if len(data) < _HEADER.size:
        raise TooShortError()
    (length,) = _HEADER.unpack_from(data)
    if length > MAX_FRAME_SIZE:
        raise TooLargeError(length)
    available = len(data) - _HEADER.size
    if available < length:
        raise IncompleteError(length, available)
    body = bytes(data[_HEADER.size : _HEADER.size + length])
    try:
        value = json.loads(body)
    except ValueError as exc:
        raise JsonDecodeError(exc) from exc
    if factory is None:
        return value
    try:
        return factory(value)
    except (ValueError, TypeError) as exc:
        raise JsonDecodeError(exc) from exc


# ---------------------------------------------------------------------------
# Field converters: validate decoded JSON values the way the wire types demand.
# ---------------------------------------------------------------------------


def _expect_str(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"invalid type: expected a string, got {value!r}")
    return value


def _expect_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"invalid type: expected a boolean, got {value!r}")
    return value


def _unsigned(bits: int) -> Converter:
    limit = 1 << bits

    def convert(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"invalid type: expected an integer, got {value!r}")
        if not 0 <= value < limit:
            raise ValueError(f"invalid value: {value} is out of range for u{bits}")
        return value

    return convert


def _signed(bits: int) -> Converter:
    bound = 1 << (bits - 1)

    def convert(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"invalid type: expected an integer, got {value!r}")
        if not -bound <= value < bound:
            raise ValueError(f"invalid value: {value} is out of range for i{bits}")
        return value

    return convert


def _list_of(convert: Converter) -> Converter:
    def convert_list(value: Any) -> list:
        if not isinstance(value, list):
            raise ValueError(f"invalid type: expected a sequence, got {value!r}")
        return [convert(item) for item in value]

    return convert_list


def _tuple_of(*converters: Converter) -> Converter:
    def convert_tuple(value: Any) -> tuple:
        if not isinstance(value, list) or len(value) != len(converters):
            raise ValueError(
                f"invalid value: expected a tuple of {len(converters)} elements, got {value!r}"
            )
        return tuple(convert(item) for convert, item in zip(converters, value))

    return convert_tuple


def _optional(convert: Converter) -> Converter:
    def convert_optional(value: Any) -> Any:
        return None if value is None else convert(value)

    return convert_optional


def _byte_string(value: Any) -> bytes:
    return bytes(_list_of(_unsigned(8))(value))


def _json_value(value: Any) -> Any:
    return value


_ENV = _list_of(_tuple_of(_expect_str, _expect_str))
_MOUNTS = _list_of(_tuple_of(_expect_str, _expect_str, _expect_bool))
_STRINGS = _list_of(_expect_str)


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return list(value)
    if isinstance(value, (list, tuple)):
        return [_encode_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode_value(item) for key, item in value.items()}
    return value


class _Record:
    """Dataclass mixin mapping fields to and from JSON objects via ``_SCHEMA``."""

    _SCHEMA: ClassVar[Mapping[str, Converter]] = {}
    _SKIP_NONE: ClassVar[frozenset] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON object for this record."""
        out: dict[str, Any] = {}
        for name in self._SCHEMA:
            value = getattr(self, name)
            if value is None and name in self._SKIP_NONE:
                continue
            out[name] = _encode_value(value)
        return out

    @classmethod
    def from_dict(cls, data: Any):
        """Build the record from a JSON object, validating every field."""
        if not isinstance(data, dict):
            raise ValueError(f"invalid type: expected an object, got {data!r}")
        defaulted = {
            field.name
            for field in dataclasses.fields(cls)
            if field.default is not dataclasses.MISSING
            or field.default_factory is not dataclasses.MISSING
        }
        kwargs: dict[str, Any] = {}
        for name, convert in cls._SCHEMA.items():
            if name in data:
                try:
                    kwargs[name] = convert(data[name])
                except ValueError as exc:
                    raise ValueError(f"field `{name}`: {exc}") from None
            elif name not in defaulted:
                raise ValueError(f"missing field `{name}`")
        return cls(**kwargs)


class _Tagged(_Record):
    """A record that is one variant of a family, told apart by a tag field."""

    TAG_KEY: ClassVar[str] = ""
    TAG: ClassVar[str] = ""
    _VARIANTS: ClassVar[dict] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "TAG" in cls.__dict__:
            cls._VARIANTS[cls.TAG] = cls

    def to_dict(self) -> dict[str, Any]:
        return {self.TAG_KEY: self.TAG, **super().to_dict()}

    @classmethod
    def from_dict(cls, data: Any):
        if not isinstance(data, dict):
            raise ValueError(f"invalid type: expected an object, got {data!r}")
        if "TAG" in cls.__dict__:
            if cls.TAG_KEY in data and data[cls.TAG_KEY] != cls.TAG:
                raise ValueError(f"expected `{cls.TAG_KEY}` to be `{cls.TAG}`")
            return super().from_dict(data)
        if cls.TAG_KEY not in data:
            raise ValueError(f"missing field `{cls.TAG_KEY}`")
        tag = data[cls.TAG_KEY]
        variant = cls._VARIANTS.get(tag) if isinstance(tag, str) else None
        if variant is None or not issubclass(variant, cls):
            raise ValueError(f"unknown variant `{tag}`")
        return variant.from_dict(data)