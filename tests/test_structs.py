from dataclasses import dataclass
from typing import List, Optional

import pytest

from jsonwriter.encoders import (
    DereferenceEncoder,
    EncodeError,
    Float64Encoder,
    IntEncoder,
    SliceEncoder,
    StringEncoder,
)
from jsonwriter.stream import Stream
from jsonwriter.structs import (
    Binding,
    EmptyStructEncoder,
    StringModeNumberEncoder,
    StringModeStringEncoder,
    StructEncoder,
    StructFieldEncoder,
    encoder_of_struct,
    resolve_conflict_binding,
)


@dataclass
class ColorGroup:
    ID: int
    Name: str
    Colors: List[str]


def render(encoder, value, **kwargs):
    stream = Stream(**kwargs)
    encoder.encode(value, stream)
    return stream.buffer.decode()


def field_binding(name, encoder, tagged=False, levels=(), omitempty=False, to_name=None):
    return Binding(
        StructFieldEncoder(name, encoder, omitempty),
        [to_name or name],
        tagged=tagged,
        levels=tuple(levels),
    )


def color_group_encoder():
    return encoder_of_struct(
        "ColorGroup",
        [
            field_binding("ID", IntEncoder()),
            field_binding("Name", StringEncoder()),
            field_binding("Colors", SliceEncoder("[]string", StringEncoder())),
        ],
    )


def test_marshal_example():
    group = ColorGroup(1, "Reds", ["Crimson", "Red", "Ruby", "Maroon"])
    assert (
        render(color_group_encoder(), group)
        == '{"ID":1,"Name":"Reds","Colors":["Crimson","Red","Ruby","Maroon"]}'
    )


def test_array_of_interface_in_struct_from_mapping():
    encoder = encoder_of_struct(
        "TestObject",
        [
            field_binding("Field", SliceEncoder("[]interface {}", IntEncoder())),
            field_binding("Field2", StringEncoder()),
        ],
    )
    out = render(encoder, {"Field": [1, 2], "Field2": ""})
    assert '"Field":[1,2]' in out
    assert '"Field2":""' in out


def test_no_bindings_gives_empty_object():
    encoder = encoder_of_struct("Empty", [])
    assert isinstance(encoder, EmptyStructEncoder)
    assert render(encoder, object()) == "{}"
    assert not encoder.is_empty(object())


def test_indented_struct():
    encoder = encoder_of_struct(
        "T", [field_binding("hello", IntEncoder()), field_binding("world", IntEncoder())]
    )
    out = render(encoder, {"hello": 1, "world": 2}, indention_step=2)
    assert out == '{\n  "hello": 1,\n  "world": 2\n}'


def test_omitempty_skips_empty_field():
    encoder = encoder_of_struct(
        "T",
        [
            field_binding("A", StringEncoder(), omitempty=True),
            field_binding("B", IntEncoder()),
        ],
    )
    assert render(encoder, {"A": "", "B": 0}) == '{"B":0}'
    assert render(encoder, {"A": "x", "B": 0}) == '{"A":"x","B":0}'


def test_embedded_nil_pointer_skipped():
    inner = DereferenceEncoder(StringEncoder())
    encoder = encoder_of_struct(
        "T", [field_binding("Inner", inner), field_binding("B", IntEncoder())]
    )
    assert render(encoder, {"Inner": None, "B": 3}) == '{"B":3}'
    assert render(encoder, {"Inner": "v", "B": 3}) == '{"Inner":"v","B":3}'


def test_resolve_conflict_binding_rules():
    def b(tagged=False, levels=()):
        return field_binding("X", IntEncoder(), tagged=tagged, levels=levels)

    assert resolve_conflict_binding(b(), b(tagged=True)) == (True, False)
    assert resolve_conflict_binding(b(tagged=True), b()) == (True, False)
    assert resolve_conflict_binding(b(levels=(0, 1)), b(levels=(0,))) == (True, False)
    assert resolve_conflict_binding(b(levels=(0,)), b(levels=(0, 1))) == (False, True)
    assert resolve_conflict_binding(b(), b()) == (True, True)
    assert resolve_conflict_binding(b(tagged=True), b(tagged=True)) == (True, True)


def test_conflicting_names_at_same_level_are_dropped():
    encoder = encoder_of_struct(
        "T",
        [
            field_binding("A", IntEncoder(), to_name="x"),
            field_binding("B", IntEncoder(), to_name="x"),
            field_binding("C", IntEncoder()),
        ],
    )
    assert render(encoder, {"A": 1, "B": 2, "C": 3}) == '{"C":3}'


def test_tagged_binding_wins_conflict():
    encoder = encoder_of_struct(
        "T",
        [
            field_binding("A", IntEncoder(), to_name="x"),
            field_binding("B", IntEncoder(), to_name="x", tagged=True),
        ],
    )
    assert render(encoder, {"A": 1, "B": 2}) == '{"x":2}'


def test_struct_error_carries_path():
    @dataclass
    class Point:
        Price: float

    encoder = StructEncoder("Point", [("Price", StructFieldEncoder("Price", Float64Encoder()))])
    with pytest.raises(EncodeError, match=r"^Point\.Price: unsupported value"):
        render(encoder, Point(float("inf")))


def test_struct_is_never_empty():
    encoder = color_group_encoder()
    assert encoder.is_empty(ColorGroup(0, "", [])) is False


def test_field_encoder_is_empty():
    field = StructFieldEncoder("Name", StringEncoder(), omitempty=True)
    assert field.is_empty({"Name": ""})
    assert not field.is_empty({"Name": "n"})
    assert not field.is_embedded_ptr_nil({"Name": ""})


def test_string_mode_number():
    encoder = StringModeNumberEncoder(IntEncoder())
    assert render(encoder, 12) == '"12"'
    assert encoder.is_empty(0)
    assert not encoder.is_empty(5)


def test_string_mode_string():
    encoder = StringModeStringEncoder(StringEncoder())
    assert render(encoder, "hi") == '"\\"hi\\""'
    assert encoder.is_empty("")


def test_optional_field_in_struct():
    @dataclass
    class Holder:
        Value: Optional[int]

    encoder = encoder_of_struct(
        "Holder", [field_binding("Value", DereferenceEncoder(IntEncoder()))]
    )
    assert render(encoder, Holder(7)) == '{"Value":7}'
    assert render(encoder, Holder(None)) == "{}"