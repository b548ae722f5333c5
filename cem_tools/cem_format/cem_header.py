"""CEM model header parser and writer."""

import struct

from .cem_constants import (
    HEADER_SIZE, SSMF_MAGIC,
    HEADER_LAYOUT_SPLIT, HEADER_LAYOUT_PACKED,
)
from .cem_errors import StructuralError


class ModelHeader:
    """Represents the 8-byte CEM model header.

    The header is a magic FourCC followed by a (major, minor) revision. The
    oldest files describe the same 4 revision bytes as one u32 version; the
    `version` property and `from_version()` give that view.
    """

    __slots__ = ('magic', 'major', 'minor')

    def __init__(self, magic, major, minor):
        self.magic = magic
        self.major = major
        self.minor = minor

    @classmethod
    def from_version(cls, magic, version):
        """Build a header from the packed single-u32 version form."""
        return cls(magic, version & 0xFFFF, (version >> 16) & 0xFFFF)

    @property
    def version(self):
        return self.major | (self.minor << 16)

    @property
    def revision(self):
        return (self.major, self.minor)

    @property
    def has_valid_magic(self):
        return self.magic == SSMF_MAGIC

    @property
    def fourcc(self):
        return struct.pack("<I", self.magic).decode("latin-1")

    @classmethod
    def read(cls, reader, layout=HEADER_LAYOUT_SPLIT):
        """Read a header from a CEMStreamReader.

        Args:
            reader: CEMStreamReader positioned at the header
            layout: HEADER_LAYOUT_SPLIT (u32 magic, u16 major, u16 minor)
                or HEADER_LAYOUT_PACKED (u32 magic, u32 version)

        Returns:
            ModelHeader instance
        """
        magic = reader.read_u32()
        if layout == HEADER_LAYOUT_PACKED:
            return cls.from_version(magic, reader.read_u32())
        if layout != HEADER_LAYOUT_SPLIT:
            raise ValueError(f"Unknown header layout: {layout!r}")
        major = reader.read_u16()
        minor = reader.read_u16()
        return cls(magic, major, minor)

    @classmethod
    def parse(cls, data, layout=HEADER_LAYOUT_SPLIT):
        """Parse a header from the first HEADER_SIZE bytes of raw data."""
        if len(data) < HEADER_SIZE:
            raise StructuralError(f"Data too small for CEM header: {len(data)} < {HEADER_SIZE}")
        if layout == HEADER_LAYOUT_PACKED:
            magic, version = struct.unpack_from("<II", data, 0)
            return cls.from_version(magic, version)
        return cls(*struct.unpack_from("<IHH", data, 0))

    def write(self, writer):
        """Serialize the header through a CEMStreamWriter."""
        writer.write_u32(self.magic)
        writer.write_u16(self.major)
        writer.write_u16(self.minor)

    def pack(self):
        """Serialize the header to HEADER_SIZE bytes."""
        return struct.pack("<IHH", self.magic, self.major, self.minor)

    def __eq__(self, other):
        if not isinstance(other, ModelHeader):
            return NotImplemented
        return (self.magic, self.major, self.minor) == (other.magic, other.major, other.minor)

    def __hash__(self):
        return hash((self.magic, self.major, self.minor))

    def __repr__(self):
        return (
            f"ModelHeader(magic=0x{self.magic:08X} ({self.fourcc!r}), "
            f"major={self.major}, minor={self.minor})"
        )


def make_header(revision):
    """Header with the SSMF magic for a (major, minor) revision."""
    return ModelHeader(SSMF_MAGIC, revision[0], revision[1])
