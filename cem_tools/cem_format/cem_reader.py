"""CEM file reader and header dispatcher.

Reads the 8-byte header, selects the revision codec registered for it in
format_profiles, then decodes the complete scene tree. A header that
matches no known revision is reported with the expected and actual values;
no other revision is tried.
"""

import logging

from .cem_constants import HEADER_SIZE
from .cem_errors import FormatMismatchError
from .cem_header import ModelHeader
from .cem_stream import CEMStreamReader
from ..format_profiles import DEFAULT_CONFIG, profile_for_header, get_profile
from ..scene_graph.sg_scene import Scene


_log = logging.getLogger("cem_codec")


def detect_header(filepath, config=DEFAULT_CONFIG):
    """Read only the header of a file.

    Returns:
        ModelHeader
    """
    with open(filepath, "rb") as f:
        reader = CEMStreamReader(f, check_counts=False)
        return ModelHeader.read(reader, config.header_layout)


def read_scene(stream, expected=None, config=DEFAULT_CONFIG):
    """Decode a complete scene tree from a binary stream.

    Args:
        stream: binary file-like object or bytes, positioned at a header
        expected: profile name ("v1", "v2", "v5") to require, or None to
            dispatch on the header
        config: CodecConfig

    Returns:
        (FormatProfile, Scene)

    Raises:
        FormatMismatchError: if the header is unknown, or is not the
            `expected` revision
    """
    reader = stream if isinstance(stream, CEMStreamReader) else CEMStreamReader(
        stream, check_counts=config.check_counts)
    header = ModelHeader.read(reader, config.header_layout)

    if expected is not None:
        profile = get_profile(expected)
        if profile is None:
            raise ValueError(f"Unknown CEM revision: {expected!r}")
        if header != profile.header:
            raise FormatMismatchError(profile.header, header)
    else:
        profile = profile_for_header(header)

    _log.debug("Dispatching %r to %s codec", header, profile.name)
    scene = Scene.read_without_header(
        reader, profile.model_class, config.max_scene_depth, config.header_layout)
    return profile, scene


class CEMReader:
    """Reads and decodes a complete CEM file.

    Usage:
        reader = CEMReader("path/to/model.cem")
        reader.read()
        # reader.header  - ModelHeader
        # reader.profile - FormatProfile of the detected revision
        # reader.scene   - Scene tree
    """

    def __init__(self, filepath, expected=None, config=DEFAULT_CONFIG):
        self.filepath = filepath
        self.expected = expected
        self.config = config
        self.header = None
        self.profile = None
        self.scene = None
        self.file_size = 0

    def read(self):
        """Read and decode the entire file."""
        with open(self.filepath, "rb") as f:
            data = f.read()
        self.file_size = len(data)
        self.profile, self.scene = read_scene(data, self.expected, self.config)
        self.header = ModelHeader.parse(data[:HEADER_SIZE], self.config.header_layout)
        _log.info("Read %s: %s, %d nodes", self.filepath, self.profile.name,
                  self.scene.node_count())
        return self

    def dump(self):
        """Print a summary of the decoded file."""
        print(f"=== CEM File: {self.filepath} ===")
        print(f"Header: {self.header}")
        print(f"Revision: {self.profile.name} ({self.profile.description})")
        print(f"Size: {self.file_size} bytes")
        print()
        for depth, node in self.scene.walk():
            print(f"{'  ' * depth}{node.name!r}: {type(node.model).__name__}")
