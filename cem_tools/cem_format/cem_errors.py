"""Exception types raised by the CEM codec.

CEMError
    TransportError          short read (stream ended mid-structure)
    FormatMismatchError     header does not match the expected revision
    StructuralError         layout or invariant violation
    UnsupportedFormatError  region of the format that is not understood

OSError raised by the underlying stream is never wrapped.
"""


class CEMError(Exception):
    """Base class for every CEM codec failure."""


class TransportError(CEMError, EOFError):
    """The stream ended before a complete structure could be read."""

    def __init__(self, wanted, got, what=None):
        self.wanted = wanted
        self.got = got
        self.what = what
        where = f" while reading {what}" if what else ""
        super().__init__(f"Unexpected end of stream{where}: wanted {wanted} bytes, got {got}")


class FormatMismatchError(CEMError, ValueError):
    """The header read from the stream is not the one that was expected.

    Attributes:
        expected: the expected ModelHeader, or a tuple of acceptable headers
        actual: the ModelHeader that was read
    """

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        if isinstance(expected, (tuple, list)):
            exp_str = " or ".join(repr(h) for h in expected)
        else:
            exp_str = repr(expected)
        super().__init__(f"Wrong model header: expected {exp_str}, got {actual!r}")


class StructuralError(CEMError, ValueError):
    """The data violates the format layout or a model invariant."""


class UnsupportedFormatError(CEMError, NotImplementedError):
    """The data uses a region of the format whose layout is not understood."""
