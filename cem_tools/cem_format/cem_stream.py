"""Little-endian primitive codec for CEM streams.

CEMStreamReader / CEMStreamWriter wrap a binary file-like object and
read or write the scalar, vector, matrix and string primitives every CEM
revision is built from.

String wire format:
    4 bytes: length (character count + 1, includes the terminator)
    N bytes: Latin-1 characters, then a zero byte

Matrix wire format:
    16 consecutive f32 values in column-major order. Matrices are kept in
    memory as the 16-tuple in that same order so they round-trip bit for
    bit; use matrix_rows() / matrix_from_rows() to work with rows.
"""

import io
import os
import struct

from .cem_constants import MATRIX_FLOATS, MAX_U32
from .cem_errors import StructuralError, TransportError


IDENTITY_MATRIX = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_I32 = struct.Struct("<i")
_F32 = struct.Struct("<f")
_VEC2 = struct.Struct("<2f")
_VEC3 = struct.Struct("<3f")
_MAT4 = struct.Struct("<16f")


def matrix_is_identity(matrix):
    """True if the 16-float matrix is exactly the identity."""
    return tuple(matrix) == IDENTITY_MATRIX


def matrix_rows(matrix):
    """Convert a wire-order (column-major) matrix to a list of 4 rows."""
    return [
        [matrix[col * 4 + row] for col in range(4)]
        for row in range(4)
    ]


def matrix_from_rows(rows):
    """Convert 4 rows of 4 floats to a wire-order (column-major) 16-tuple."""
    return tuple(rows[row][col] for col in range(4) for row in range(4))


def string_wire_length(char_count):
    """Length prefix for a string of char_count characters (terminator included).

    Raises:
        StructuralError: if the length does not fit in a u32
    """
    length = char_count + 1
    if length > MAX_U32:
        raise StructuralError("Cannot write a string more than 4GB long")
    return length


def encode_string(text):
    """Encode a string to its CEM wire bytes (length prefix included).

    Trailing NUL characters are trimmed. Characters above U+00FF are
    written as '?'.

    Raises:
        StructuralError: if the encoded length does not fit in a u32
    """
    text = text.rstrip("\0")
    length = string_wire_length(len(text))
    body = bytes(ord(ch) if ord(ch) <= 0xFF else 0x3F for ch in text)
    return _U32.pack(length) + body + b"\0"


class CEMStreamReader:
    """Reads little-endian primitives from a binary stream.

    Every read either returns a complete value or raises TransportError;
    errors from the stream itself propagate unchanged.

    Args:
        stream: binary file-like object, or bytes
        check_counts: bound element counts by the bytes left in the stream
    """

    def __init__(self, stream, check_counts=True):
        if isinstance(stream, (bytes, bytearray, memoryview)):
            stream = io.BytesIO(bytes(stream))
        self.stream = stream
        self.check_counts = check_counts
        self._size = self._probe_size()

    def _probe_size(self):
        try:
            if not self.stream.seekable():
                return None
            pos = self.stream.tell()
            end = self.stream.seek(0, os.SEEK_END)
            self.stream.seek(pos)
            return end
        except (AttributeError, OSError):
            return None

    def remaining(self):
        """Bytes left in the stream, or None if the stream is not seekable."""
        if self._size is None:
            return None
        return self._size - self.stream.tell()

    def tell(self):
        return self.stream.tell()

    def read_bytes(self, size, what=None):
        """Read exactly size bytes.

        Raises:
            TransportError: if the stream ends first
        """
        if size == 0:
            return b""
        data = self.stream.read(size)
        if data is None:
            data = b""
        while len(data) < size:
            chunk = self.stream.read(size - len(data))
            if not chunk:
                raise TransportError(size, len(data), what)
            data += chunk
        return data

    def _unpack(self, st, what):
        return st.unpack(self.read_bytes(st.size, what))

    def read_u8(self):
        return self._unpack(_U8, "u8")[0]

    def read_u16(self):
        return self._unpack(_U16, "u16")[0]

    def read_u32(self):
        return self._unpack(_U32, "u32")[0]

    def read_i32(self):
        return self._unpack(_I32, "i32")[0]

    def read_f32(self):
        return self._unpack(_F32, "f32")[0]

    def read_vec2(self):
        return self._unpack(_VEC2, "vec2")

    def read_vec3(self):
        return self._unpack(_VEC3, "vec3")

    def read_matrix(self):
        return self._unpack(_MAT4, "matrix")

    def read_array(self, code, count, what=None):
        """Read count values of one struct type code (no length prefix).

        Returns a flat tuple of values.
        """
        st = struct.Struct(f"<{count}{code}")
        return st.unpack(self.read_bytes(st.size, what or code))

    def read_string(self):
        """Read a length-prefixed Latin-1 string.

        Exactly `length` bytes are consumed; the logical string stops at
        the first zero byte.
        """
        length = self.read_u32()
        raw = self.read_bytes(length, "string")
        end = raw.find(b"\0")
        if end != -1:
            raw = raw[:end]
        return raw.decode("latin-1")

    def check_count(self, count, min_size, what):
        """Reject a count whose elements cannot fit in the rest of the stream.

        Only possible on seekable streams; otherwise the check is skipped.

        Raises:
            StructuralError: if count * min_size exceeds the remaining bytes
        """
        if not self.check_counts:
            return count
        left = self.remaining()
        if left is not None and count * min_size > left:
            raise StructuralError(
                f"{what} count {count} needs at least {count * min_size} bytes, "
                f"only {left} left in stream"
            )
        return count


class CEMStreamWriter:
    """Writes little-endian primitives to a binary stream.

    Args:
        stream: binary file-like object (defaults to an in-memory buffer)
    """

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else io.BytesIO()

    def getvalue(self):
        """Return the written bytes (in-memory buffers only)."""
        return self.stream.getvalue()

    def write_bytes(self, data):
        self.stream.write(data)

    def _pack(self, st, what, *values):
        try:
            data = st.pack(*values)
        except struct.error as e:
            raise StructuralError(f"Cannot encode {what} {values!r}: {e}") from e
        self.stream.write(data)

    def write_u8(self, value):
        self._pack(_U8, "u8", value)

    def write_u16(self, value):
        self._pack(_U16, "u16", value)

    def write_u32(self, value):
        self._pack(_U32, "u32", value)

    def write_i32(self, value):
        self._pack(_I32, "i32", value)

    def write_f32(self, value):
        self._pack(_F32, "f32", value)

    def write_vec2(self, value):
        self._pack(_VEC2, "vec2", *value)

    def write_vec3(self, value):
        self._pack(_VEC3, "vec3", *value)

    def write_matrix(self, matrix):
        if len(matrix) != MATRIX_FLOATS:
            raise StructuralError(f"Matrix must have {MATRIX_FLOATS} values, got {len(matrix)}")
        self._pack(_MAT4, "matrix", *matrix)

    def write_array(self, code, values):
        """Write a flat sequence of values of one struct type code."""
        values = list(values)
        self._pack(struct.Struct(f"<{len(values)}{code}"), code, *values)

    def write_string(self, text):
        self.stream.write(encode_string(text))
