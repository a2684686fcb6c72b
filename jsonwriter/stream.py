"""A buffered JSON token writer with optional pretty-printing indentation."""

from __future__ import annotations

import math
import re
import struct
from decimal import Decimal
from typing import BinaryIO, Optional, Union

__all__ = ["UnsupportedValueError", "Stream"]

_FLOAT32_1E_6 = struct.unpack("<f", struct.pack("<f", 1e-6))[0]
_FLOAT32_1E21 = struct.unpack("<f", struct.pack("<f", 1e21))[0]
_LOSSY_LIMIT = 0x4FFFFFF
_LOSSY_PRECISION = 6
_LOSSY_SCALE = 10**_LOSSY_PRECISION

_INT_RANGES = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
    "uint8": (0, 2**8 - 1),
    "uint16": (0, 2**16 - 1),
    "uint32": (0, 2**32 - 1),
    "uint64": (0, 2**64 - 1),
}

_SIMPLE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}

_PLAIN_UNSAFE = re.compile(r'["\\\x00-\x1f]')
_HTML_UNSAFE = re.compile('["\\\\\x00-\x1f<>&\u2028\u2029\ud800-\udfff]')


class UnsupportedValueError(ValueError):
    """Raised when a value has no JSON representation (infinity, NaN)."""


def _to_float32(val: float) -> float:
    return struct.unpack("<f", struct.pack("<f", val))[0]


def _check_range(kind: str, val: int) -> int:
    low, high = _INT_RANGES[kind]
    val = int(val)
    if not low <= val <= high:
        raise ValueError(f"{val} is out of range for {kind}")
    return val


def _escape_plain(match: re.Match) -> str:
    ch = match.group(0)
    escaped = _SIMPLE_ESCAPES.get(ch)
    if escaped is not None:
        return escaped
    return f"\\u00{ord(ch):02x}"


def _escape_html(match: re.Match) -> str:
    ch = match.group(0)
    escaped = _SIMPLE_ESCAPES.get(ch)
    if escaped is not None:
        return escaped
    code = ord(ch)
    if code < 0x80:
        return f"\\u00{code:02x}"
    if code in (0x2028, 0x2029):
        return f"\\u202{code & 0xF:x}"
    # lone surrogate: not valid text, replaced like an invalid byte sequence
    return "\\ufffd"


def _shortest_digits(val: float, bits: int) -> tuple[str, int]:
    """Shortest round-tripping decimal digits of a positive finite value.

    Returns the digit string and the exponent such that
    ``int(digits) * 10 ** exponent`` equals the decimal form.
    """
    if bits == 64:
        text = repr(val)
    else:
        text = f"{val:.8e}"
        for precision in range(9):
            candidate = f"{val:.{precision}e}"
            if _to_float32(float(candidate)) == val:
                text = candidate
                break
    _, digit_tuple, exponent = Decimal(text).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    return "".join(map(str, digits)), exponent


def _format_fixed(digits: str, exponent: int) -> str:
    if exponent >= 0:
        return digits + "0" * exponent
    point = len(digits) + exponent
    if point > 0:
        return f"{digits[:point]}.{digits[point:]}"
    return "0." + "0" * (-point) + digits


def _format_exponent(digits: str, exponent: int) -> str:
    mantissa = digits[0]
    if len(digits) > 1:
        mantissa += "." + digits[1:]
    decimal_exponent = len(digits) - 1 + exponent
    return f"{mantissa}e{decimal_exponent:+03d}"


def _format_float(val: float, bits: int, scientific: bool) -> str:
    sign = "-" if math.copysign(1.0, val) < 0 else ""
    magnitude = abs(val)
    if magnitude == 0:
        return sign + ("0e+00" if scientific else "0")
    digits, exponent = _shortest_digits(magnitude, bits)
    if scientific:
        return sign + _format_exponent(digits, exponent)
    return sign + _format_fixed(digits, exponent)


def _clean_exponent(text: str) -> str:
    # e-09 becomes e-9
    if len(text) >= 4 and text[-4] == "e" and text[-3] == "-" and text[-2] == "0":
        return text[:-2] + text[-1]
    return text


class Stream:
    """Accumulates JSON output in a buffer, optionally flushing to a writer."""

    def __init__(
        self,
        out: Optional[BinaryIO] = None,
        buffer_size: int = 512,
        indention_step: int = 0,
    ) -> None:
        self.out = out
        self.indention_step = indention_step
        self.indention = 0
        self.attachment = None
        self._buf = bytearray()
        self._capacity = max(buffer_size, 0)

    @property
    def buffer(self) -> bytes:
        """The bytes written so far and not yet flushed."""
        return bytes(self._buf)

    @buffer.setter
    def buffer(self, data: bytes) -> None:
        self._buf = bytearray(data)

    def reset(self, out: Optional[BinaryIO]) -> None:
        """Reuse this stream with a new writer, discarding buffered output."""
        self.out = out
        self._buf.clear()

    def available(self) -> int:
        """Number of unused bytes in the current buffer allocation."""
        self._capacity = max(self._capacity, len(self._buf))
        return self._capacity - len(self._buf)

    def buffered(self) -> int:
        """Number of bytes currently held in the buffer."""
        return len(self._buf)

    def write(self, data: bytes) -> int:
        """Append raw bytes; with a writer attached, pass the buffer on at once."""
        self._buf += data
        if self.out is not None:
            written = self.out.write(bytes(self._buf))
            if written is None:
                written = len(self._buf)
            del self._buf[:written]
            return written
        return len(data)

    def flush(self) -> None:
        """Write buffered data to the attached writer, if any."""
        if self.out is None:
            return
        self.out.write(bytes(self._buf))
        self._buf.clear()

    def _append(self, text: str) -> None:
        self._buf += text.encode("utf-8", "surrogatepass")

    def write_raw(self, s: Union[str, bytes]) -> None:
        """Write text as-is, without quoting or escaping."""
        if isinstance(s, (bytes, bytearray)):
            self._buf += s
        else:
            self._append(s)

    def write_nil(self) -> None:
        self._buf += b"null"

    def write_true(self) -> None:
        self._buf += b"true"

    def write_false(self) -> None:
        self._buf += b"false"

    def write_bool(self, val: bool) -> None:
        if val:
            self.write_true()
        else:
            self.write_false()

    def _write_indention(self, delta: int) -> None:
        if self.indention == 0:
            return
        self._buf += b"\n"
        self._buf += b" " * max(self.indention - delta, 0)

    def write_object_start(self) -> None:
        self.indention += self.indention_step
        self._buf += b"{"
        self._write_indention(0)

    def write_object_field(self, field: str) -> None:
        self.write_string(field)
        self._buf += b": " if self.indention > 0 else b":"

    def write_object_end(self) -> None:
        self._write_indention(self.indention_step)
        self.indention -= self.indention_step
        self._buf += b"}"

    def write_empty_object(self) -> None:
        self._buf += b"{}"

    def write_more(self) -> None:
        self._buf += b","
        self._write_indention(0)

    def write_array_start(self) -> None:
        self.indention += self.indention_step
        self._buf += b"["
        self._write_indention(0)

    def write_empty_array(self) -> None:
        self._buf += b"[]"

    def write_array_end(self) -> None:
        self._write_indention(self.indention_step)
        self.indention -= self.indention_step
        self._buf += b"]"

    @staticmethod
    def _check_finite(val: float) -> None:
        if math.isinf(val) or math.isnan(val):
            raise UnsupportedValueError(f"unsupported value: {val}")

    def write_float32(self, val: float) -> None:
        """Write the shortest decimal that reads back as the same float32."""
        val = _to_float32(float(val))
        self._check_finite(val)
        magnitude = abs(val)
        scientific = magnitude != 0 and (
            magnitude < _FLOAT32_1E_6 or magnitude >= _FLOAT32_1E21
        )
        text = _format_float(val, 32, scientific)
        self._append(_clean_exponent(text) if scientific else text)

    def write_float64(self, val: float) -> None:
        """Write the shortest decimal that reads back as the same float64."""
        val = float(val)
        self._check_finite(val)
        magnitude = abs(val)
        scientific = magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21)
        text = _format_float(val, 64, scientific)
        self._append(_clean_exponent(text) if scientific else text)

    def _write_lossy(self, val: float, exact_writer) -> None:
        if val < 0:
            self._buf += b"-"
            val = -val
        if val > _LOSSY_LIMIT:
            exact_writer(val)
            return
        scaled = int(val * _LOSSY_SCALE + 0.5)
        whole, fraction = divmod(scaled, _LOSSY_SCALE)
        self._append(str(whole))
        if fraction == 0:
            return
        self._append("." + f"{fraction:0{_LOSSY_PRECISION}d}".rstrip("0"))

    def write_float32_lossy(self, val: float) -> None:
        """Write a float32 rounded to six fractional digits."""
        val = _to_float32(float(val))
        self._check_finite(val)
        self._write_lossy(val, self.write_float32)

    def write_float64_lossy(self, val: float) -> None:
        """Write a float64 rounded to six fractional digits."""
        val = float(val)
        self._check_finite(val)
        self._write_lossy(val, self.write_float64)

    def _write_int(self, kind: str, val: int) -> None:
        self._append(str(_check_range(kind, val)))

    def write_uint8(self, val: int) -> None:
        self._write_int("uint8", val)

    def write_int8(self, val: int) -> None:
        self._write_int("int8", val)

    def write_uint16(self, val: int) -> None:
        self._write_int("uint16", val)

    def write_int16(self, val: int) -> None:
        self._write_int("int16", val)

    def write_uint32(self, val: int) -> None:
        self._write_int("uint32", val)

    def write_int32(self, val: int) -> None:
        self._write_int("int32", val)

    def write_uint64(self, val: int) -> None:
        self._write_int("uint64", val)

    def write_int64(self, val: int) -> None:
        self._write_int("int64", val)

    def write_int(self, val: int) -> None:
        self._write_int("int64", val)

    def write_uint(self, val: int) -> None:
        self._write_int("uint64", val)

    def write_string(self, s: str) -> None:
        """Write a quoted JSON string, escaping quotes, backslashes and controls."""
        self._append('"' + _PLAIN_UNSAFE.sub(_escape_plain, s) + '"')

    def write_string_with_html_escaped(self, s: str) -> None:
        """Write a quoted JSON string that is also safe inside HTML script tags."""
        self._append('"' + _HTML_UNSAFE.sub(_escape_html, s) + '"')