"""CEM file serializer.

Encodes a scene tree into an in-memory buffer first and only then writes
the file, so an encode that fails part way (an invariant violation deep in
the tree, an unwritable revision) leaves no output behind.
"""

import logging

from .cem_stream import CEMStreamWriter


_log = logging.getLogger("cem_codec")


def encode_scene(scene):
    """Encode a scene tree to bytes.

    Raises:
        StructuralError: if a model breaks a write invariant
        UnsupportedFormatError: if a model revision cannot be written
    """
    writer = CEMStreamWriter()
    scene.write(writer)
    return writer.getvalue()


def write_scene(stream, scene):
    """Encode a scene tree and write it to a binary stream in one piece."""
    data = encode_scene(scene)
    stream.write(data)
    return len(data)


class CEMWriter:
    """Writes a complete CEM file from a scene tree.

    Usage:
        writer = CEMWriter(scene)
        writer.write("output.cem")
    """

    def __init__(self, scene):
        self.scene = scene

    def write(self, filepath):
        """Serialize the scene and write it to disk.

        Args:
            filepath: output file path

        Returns:
            number of bytes written
        """
        data = encode_scene(self.scene)
        with open(filepath, "wb") as f:
            f.write(data)
        _log.info("Wrote %s: %d bytes, %d nodes", filepath, len(data), self.scene.node_count())
        return len(data)
