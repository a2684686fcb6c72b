# jsonwriter

A buffered JSON output stream, and a set of typed value encoders that
write through it. It has no dependencies outside the standard library.

## Streams

`jsonwriter.stream.Stream` writes JSON tokens into an internal byte buffer.
Its arguments are `out`, `buffer_size` and `indention_step`.

- `out` is an optional writable binary file.
- `indention_step` sets the indentation. A step of `0` gives compact output.

```python
import io
from jsonwriter.stream import Stream

out = io.BytesIO()
stream = Stream(out, 4096, 2)
stream.write_object_start()
stream.write_object_field("hello")
stream.write_int(1)
stream.write_more()
stream.write_object_field("world")
stream.write_int(2)
stream.write_object_end()
stream.flush()
print(out.getvalue().decode())
# {
#   "hello": 1,
#   "world": 2
# }
```

### Reading and moving the buffer

- `stream.buffer` holds the bytes written and not yet flushed. The property can also be assigned.
- `buffered()` gives the number of bytes held in the buffer.
- `available()` gives the spare room in the buffer.
- `flush()` hands the buffered bytes to `out` and empties the buffer. It does nothing when there is no `out`.
- `write(data)` appends raw bytes. When `out` is set, it passes the buffer on straight away.
- `reset(out)` swaps the writer and discards anything buffered.

### Writers

- Structure: `write_object_start`, `write_object_field`, `write_object_end`,
  `write_empty_object`, `write_array_start`, `write_array_end`,
  `write_empty_array`, `write_more`.
- Literals: `write_nil`, `write_true`, `write_false`, `write_bool`, and
  `write_raw`, which writes text or bytes unchanged.
- Integers: `write_int8`, `write_int16`, `write_int32`, `write_int64`,
  `write_uint8`, `write_uint16`, `write_uint32`, `write_uint64`, `write_int`
  (64-bit signed) and `write_uint` (64-bit unsigned). A value outside the
  range of the width raises `ValueError`.
- Floats:
  - `write_float32` and `write_float64` write the shortest decimal that reads back as the same value.
  - Exponent notation is used below `1e-6` and from `1e21` up, for example `1e-7`.
  - `write_float32_lossy` and `write_float64_lossy` round to six fractional digits, so `0.1234567` is written as `0.123457`.
  - Infinity and NaN raise `UnsupportedValueError`, a subclass of `ValueError`.
- Strings:
  - `write_string` escapes `"`, `\` and control characters.
  - `write_string_with_html_escaped` also escapes `<`, `>`, `&`, U+2028 and U+2029.

## Value encoders

`jsonwriter.encoders` provides encoders that share the `ValueEncoder`
interface. Each one has `encode(value, stream)` and `is_empty(value)`.

- Native types: `StringEncoder`, `IntEncoder(bits, signed)`, `Float32Encoder`, `Float64Encoder` and `BoolEncoder`.
- `Base64Encoder` writes bytes as a standard base64 string, and writes `None` as `null`.
- `SliceEncoder(type_name, elem_encoder)` writes a sequence as an array. It writes `None` as `null` and an empty sequence as `[]`.
- `OptionalEncoder` and `DereferenceEncoder` write `None` as `null`. For `is_empty`, `DereferenceEncoder` also asks the wrapped encoder.
- `encoder_of_native(type_name)` returns the encoder for a type name such as `"int64"`, `"float32"`, `"string"`, `"bool"` or `"bytes"`. For any other name it returns `None`.

Errors raised while encoding nested values come back as `EncodeError`. The
message carries the path to the value.

```python
from jsonwriter.encoders import SliceEncoder, encoder_of_native
from jsonwriter.stream import Stream

stream = Stream()
SliceEncoder("[]int", encoder_of_native("int")).encode([1, 2, 3], stream)
print(stream.buffer.decode())  # [1,2,3]
```

## Records

`jsonwriter.structs` writes records as JSON objects. A record is a mapping,
or an object with attributes.

- A `StructFieldEncoder(name, field_encoder, omitempty)` reads one field.
- A `Binding` gives that field the JSON names in `to_names`. It also carries `tagged` and `levels`, which are used to settle name clashes.
- `encoder_of_struct(type_name, bindings)` builds the encoder. With no names at all it gives an `EmptyStructEncoder`, which writes `{}`.

```python
from jsonwriter.encoders import SliceEncoder, encoder_of_native
from jsonwriter.stream import Stream
from jsonwriter.structs import Binding, StructFieldEncoder, encoder_of_struct

encoder = encoder_of_struct("ColorGroup", [
    Binding(StructFieldEncoder("id", encoder_of_native("int")), ["ID"]),
    Binding(StructFieldEncoder("name", encoder_of_native("string")), ["Name"]),
    Binding(
        StructFieldEncoder("colors", SliceEncoder("[]string", encoder_of_native("string"))),
        ["Colors"],
    ),
])
stream = Stream()
encoder.encode({"id": 1, "name": "Reds", "colors": ["Crimson", "Red"]}, stream)
print(stream.buffer.decode())  # {"ID":1,"Name":"Reds","Colors":["Crimson","Red"]}
```

Fields are written in binding order. A field with `omitempty` is skipped when
its value is empty.

When two bindings share a name, `resolve_conflict_binding(old, new)` decides
which to keep:

- If only one of them is tagged, the later binding is kept.
- Otherwise the one with fewer `levels` is kept.
- At equal depth, both are dropped.

Two wrappers change how a value is written:

- `StringModeNumberEncoder` writes a value inside quotes.
- `StringModeStringEncoder` encodes a value, then writes the resulting JSON text as a JSON string.

## What it does not do

This package only writes JSON. It has no parser or decoder. It does not look
at Python types to build encoders by itself: encoders and bindings are put
together by hand, as shown above.

## Tests

```
pip install -e ".[test]"
pytest
```