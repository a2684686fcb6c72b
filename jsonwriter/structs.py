"""Encoding of records (objects with named fields) as JSON objects."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, Tuple

from jsonwriter.encoders import EncodeError, ValueEncoder
from jsonwriter.stream import Stream

__all__ = [
    "Binding",
    "StructFieldEncoder",
    "StructEncoder",
    "EmptyStructEncoder",
    "StringModeNumberEncoder",
    "StringModeStringEncoder",
    "resolve_conflict_binding",
    "encoder_of_struct",
]


def _field_value(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj[name]
    return getattr(obj, name)


class StructFieldEncoder(ValueEncoder):
    """Reads one named field from a record and encodes it."""

    def __init__(self, name: str, field_encoder: ValueEncoder, omitempty: bool = False) -> None:
        self.name = name
        self.field_encoder = field_encoder
        self.omitempty = omitempty

    def encode(self, obj: Any, stream: Stream) -> None:
        try:
            self.field_encoder.encode(_field_value(obj, self.name), stream)
        except ValueError as exc:
            raise EncodeError(f"{self.name}: {exc}") from exc

    def is_empty(self, obj: Any) -> bool:
        return self.field_encoder.is_empty(_field_value(obj, self.name))

    def is_embedded_ptr_nil(self, obj: Any) -> bool:
        check = getattr(self.field_encoder, "is_embedded_ptr_nil", None)
        if check is None:
            return False
        return check(_field_value(obj, self.name))


@dataclass
class Binding:
    """A record field together with the JSON names it is written under."""

    encoder: StructFieldEncoder
    to_names: Sequence[str]
    tagged: bool = False
    levels: Tuple[int, ...] = field(default_factory=tuple)


def resolve_conflict_binding(old: Binding, new: Binding) -> tuple[bool, bool]:
    """Decide which of two bindings sharing a name to drop: (ignore_old, ignore_new)."""
    if new.tagged and not old.tagged:
        return True, False
    if old.tagged and not new.tagged:
        return True, False
    if len(old.levels) > len(new.levels):
        return True, False
    if len(new.levels) > len(old.levels):
        return False, True
    return True, True


class StructEncoder(ValueEncoder):
    """Writes a record as a JSON object, field by field in order."""

    def __init__(self, type_name: str, fields: Iterable[tuple[str, StructFieldEncoder]]) -> None:
        self.type_name = type_name
        self.fields = list(fields)

    def encode(self, obj: Any, stream: Stream) -> None:
        try:
            stream.write_object_start()
            first = True
            for to_name, encoder in self.fields:
                if encoder.omitempty and encoder.is_empty(obj):
                    continue
                if encoder.is_embedded_ptr_nil(obj):
                    continue
                if not first:
                    stream.write_more()
                stream.write_object_field(to_name)
                encoder.encode(obj, stream)
                first = False
            stream.write_object_end()
        except ValueError as exc:
            raise EncodeError(f"{self.type_name}.{exc}") from exc

    def is_empty(self, obj: Any) -> bool:
        return False


class EmptyStructEncoder(ValueEncoder):
    """Writes ``{}`` for records with no encodable fields."""

    def encode(self, obj: Any, stream: Stream) -> None:
        stream.write_empty_object()

    def is_empty(self, obj: Any) -> bool:
        return False


class StringModeNumberEncoder(ValueEncoder):
    """Writes a number wrapped in quotes."""

    def __init__(self, elem_encoder: ValueEncoder) -> None:
        self.elem_encoder = elem_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        stream.write_raw('"')
        self.elem_encoder.encode(value, stream)
        stream.write_raw('"')

    def is_empty(self, value: Any) -> bool:
        return self.elem_encoder.is_empty(value)


class StringModeStringEncoder(ValueEncoder):
    """Encodes a value, then writes that JSON text as a JSON string."""

    def __init__(self, elem_encoder: ValueEncoder) -> None:
        self.elem_encoder = elem_encoder

    def encode(self, value: Any, stream: Stream) -> None:
        inner = Stream(indention_step=stream.indention_step)
        inner.attachment = stream.attachment
        self.elem_encoder.encode(value, inner)
        stream.write_string(inner.buffer.decode("utf-8", "surrogatepass"))

    def is_empty(self, value: Any) -> bool:
        return self.elem_encoder.is_empty(value)


def encoder_of_struct(type_name: str, bindings: Iterable[Binding]) -> ValueEncoder:
    """Build an encoder for a record from its field bindings, resolving name clashes."""
    ordered: list[list[Any]] = []  # [binding, to_name, ignored]
    for binding in bindings:
        for to_name in binding.to_names:
            entry = [binding, to_name, False]
            for old in ordered:
                if old[1] != to_name:
                    continue
                old[2], entry[2] = resolve_conflict_binding(old[0], binding)
            ordered.append(entry)
    if not ordered:
        return EmptyStructEncoder()
    return StructEncoder(
        type_name,
        [(to_name, binding.encoder) for binding, to_name, ignored in ordered if not ignored],
    )