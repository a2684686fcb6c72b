"""Value encoders for scalars, byte strings, optional values and sequences."""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from jsonwriter.stream import Stream

__all__ = [
    "EncodeError",
    "ValueEncoder",
    "StringEncoder",
    "IntEncoder",
    "Float32Encoder",
    "Float64Encoder",
    "BoolEncoder",
    "Base64Encoder",
    "OptionalEncoder",
    "DereferenceEncoder",
    "SliceEncoder",
    "encoder_of_native",
]


class EncodeError(ValueError):
    """Raised when a nested value cannot be encoded; the message carries its path."""


class ValueEncoder(ABC):
    """Writes one kind of value to a stream."""

    @abstractmethod
    def encode(self, value: Any, stream: Stream) -> None:
        """Write ``value`` as JSON to ``stream``."""

    def is_empty(self, value: Any) -> bool:
        """Whether ``value`` counts as empty for ``omitempty`` fields."""
        return value is None


class StringEncoder(ValueEncoder):
    """Encodes text as a JSON string."""

    def encode(self, value: str, stream: Stream) -> None:
        stream.write_string(value)

    def is_empty(self, value: str) -> bool:
        return value == ""


_INT_WRITERS = {
    (8, True): Stream.write_int8,
    (16, True): Stream.write_int16,
    (32, True): Stream.write_int32,
    (64, True): Stream.write_int64,
    (8, False): Stream.write_uint8,
    (16, False): Stream.write_uint16,
    (32, False): Stream.write_uint32,
    (64, False): Stream.write_uint64,
}


class IntEncoder(ValueEncoder):
    """Encodes an integer of a fixed width, rejecting values out of range."""

    def __init__(self, bits: int = 64, signed: bool = True) -> None:
        key = (bits, bool(signed))
        if key not in _INT_WRITERS:
            raise ValueError(f"unsupported integer width: {bits}")
        self.bits = bits
        self.signed = bool(signed)
        self._writer = _INT_WRITERS[key]

    def encode(self, value: int, stream: Stream) -> None:
        self._writer(stream, value)

    def is_empty(self, value: int) -> bool:
        return value == 0


class Float32Encoder(ValueEncoder):
    """Encodes a number at single precision."""

    def encode(self, value: float, stream: Stream) -> None:
        stream.write_float32(value)

    def is_empty(self, value: float) -> bool:
        return value == 0


class Float64Encoder(ValueEncoder):
    """Encodes a number at double precision."""

    def encode(self, value: float, stream: Stream) -> None:
        stream.write_float64(value)

    def is_empty(self, value: float) -> bool:
        return value == 0


class BoolEncoder(ValueEncoder):
    """Encodes ``true`` or ``false``."""

    def encode(self, value: bool, stream: Stream) -> None:
        stream.write_bool(value)

    def is_empty(self, value: bool) -> bool:
        return not value


class Base64Encoder(ValueEncoder):
    """Encodes bytes as a standard base64 JSON string; ``None`` becomes null."""

    def encode(self, value: Optional[bytes], stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        stream.write_raw(b'"' + base64.b64encode(bytes(value)) + b'"')

    def is_empty(self, value: Optional[bytes]) -> bool:
        return not value


class OptionalEncoder(ValueEncoder):
    """Encodes ``None`` as null and anything else with the wrapped encoder."""

    def __init__(self, value_encoder: ValueEncoder) -> None:
        self.value_encoder = value_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
        else:
            self.value_encoder.encode(value, stream)

    def is_empty(self, value: Any) -> bool:
        return value is None


class DereferenceEncoder(ValueEncoder):
    """Like ``OptionalEncoder``, but emptiness is decided by the wrapped value."""

    def __init__(self, value_encoder: ValueEncoder) -> None:
        self.value_encoder = value_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        if value is None:
            stream.write_nil()
        else:
            self.value_encoder.encode(value, stream)

    def is_empty(self, value: Any) -> bool:
        if value is None:
            return True
        return self.value_encoder.is_empty(value)

    def is_embedded_ptr_nil(self, value: Any) -> bool:
        """Whether this value, or a reference nested inside it, is missing."""
        if value is None:
            return True
        check = getattr(self.value_encoder, "is_embedded_ptr_nil", None)
        if check is None:
            return False
        return check(value)


class SliceEncoder(ValueEncoder):
    """Encodes a sequence as a JSON array; ``None`` becomes null."""

    def __init__(self, type_name: str, elem_encoder: ValueEncoder) -> None:
        self.type_name = type_name
        self.elem_encoder = elem_encoder

    def encode(self, value: Optional[Sequence[Any]], stream: Stream) -> None:
        if value is None:
            stream.write_nil()
            return
        if len(value) == 0:
            stream.write_empty_array()
            return
        try:
            stream.write_array_start()
            for position, item in enumerate(value):
                if position:
                    stream.write_more()
                self.elem_encoder.encode(item, stream)
            stream.write_array_end()
        except ValueError as exc:
            raise EncodeError(f"{self.type_name}: {exc}") from exc

    def is_empty(self, value: Optional[Sequence[Any]]) -> bool:
        return not value


def encoder_of_native(type_name: str) -> Optional[ValueEncoder]:
    """Encoder for a built-in scalar type name, or ``None`` if it is not one."""
    if type_name in ("[]byte", "[]uint8", "bytes"):
        return Base64Encoder()
    factories = {
        "string": StringEncoder,
        "int": lambda: IntEncoder(64, True),
        "int8": lambda: IntEncoder(8, True),
        "int16": lambda: IntEncoder(16, True),
        "int32": lambda: IntEncoder(32, True),
        "int64": lambda: IntEncoder(64, True),
        "uint": lambda: IntEncoder(64, False),
        "uintptr": lambda: IntEncoder(64, False),
        "uint8": lambda: IntEncoder(8, False),
        "uint16": lambda: IntEncoder(16, False),
        "uint32": lambda: IntEncoder(32, False),
        "uint64": lambda: IntEncoder(64, False),
        "float32": Float32Encoder,
        "float64": Float64Encoder,
        "bool": BoolEncoder,
    }
    factory = factories.get(type_name)
    return factory() if factory is not None else None