"""CEM revision 5.0 model codec (SSMF v5.0). Partially understood, read only.

File layout after the header:
    Quantities      8 x u32: the seven v2 counts followed by points
    Node name       string
    Center          3 x f32
    Common verts    vertices x (16 x f32, i32), meaning unknown
    LOD levels      lod_levels x (count:u32, count x 3 x u16 indices)
    Materials       materials x Material (v2 layout)
    Tag points      tag_points x string
    Frames          frames x ?      layout not known
    Points          points x ?      layout not known
    Shadow edges    count:u32, count x (u32, 4 x u16)

Decoding stops with UnsupportedFormatError as soon as it reaches a frame
body or a points entry; nothing is guessed. Common vertices and shadow
edges are kept as raw records.
"""

import logging
from dataclasses import dataclass
from typing import List, Tuple

from .cem_constants import (
    VERSION_V5,
    SIZE_U32, SIZE_STRING_MIN, SIZE_SELECTION,
    SIZE_V5_COMMON_VERTEX, SIZE_V5_SHADOW_EDGE,
)
from .cem_errors import UnsupportedFormatError
from .cem_header import make_header
from .cem_model import NodeData, read_counted, read_triangles
from .cem_v2 import Material


_log = logging.getLogger("cem_codec")


@dataclass
class V5Quantities:
    triangles: int
    vertices: int
    tag_points: int
    materials: int
    frames: int
    additional_models: int
    lod_levels: int
    points: int

    @classmethod
    def read(cls, reader):
        return cls(*reader.read_array("I", 8, "quantities"))


@dataclass
class CommonVertex:
    """Raw common vertex record: 16 floats and a signed int."""
    values: Tuple[float, ...]
    index: int

    @classmethod
    def read(cls, reader):
        values = reader.read_array("f", 16, "common vertex")
        return cls(values, reader.read_i32())


@dataclass
class ShadowEdge:
    """Raw shadow edge record; the fields are not interpreted."""
    unknown0: int
    unknown1: Tuple[int, int, int, int]

    @classmethod
    def read(cls, reader):
        unknown0 = reader.read_u32()
        return cls(unknown0, reader.read_array("H", 4, "shadow edge"))


@dataclass
class V5Model:
    """The understood part of a revision 5.0 model."""
    HEADER = make_header(VERSION_V5)
    WRITABLE = False

    center: Tuple[float, float, float]
    common_vertices: List[CommonVertex]
    lod_levels: List[List[Tuple[int, int, int]]]
    materials: List[Material]
    tag_points: List[str]
    shadow_edges: List[ShadowEdge]

    @classmethod
    def read(cls, reader):
        """Decode a model body (everything after the header).

        Returns:
            (V5Model, NodeData)

        Raises:
            UnsupportedFormatError: if the model has frames or points
        """
        q = V5Quantities.read(reader)
        _log.debug("V5 quantities: %s", q)

        node = NodeData(reader.read_string(), q.additional_models)
        center = reader.read_vec3()

        common_vertices = read_counted(reader, q.vertices, SIZE_V5_COMMON_VERTEX,
                                       "common vertex", lambda: CommonVertex.read(reader))

        reader.check_count(q.lod_levels, SIZE_U32, "LOD level")
        lod_levels = []
        for _ in range(q.lod_levels):
            count = reader.read_u32()
            lod_levels.append(read_triangles(reader, count, "H"))

        material_size = 2 * SIZE_STRING_MIN + 3 * SIZE_U32 + q.lod_levels * SIZE_SELECTION
        materials = read_counted(reader, q.materials, material_size, "material",
                                 lambda: Material.read(reader, len(lod_levels)))

        tag_points = read_counted(reader, q.tag_points, SIZE_STRING_MIN, "tag point name",
                                  reader.read_string)

        if q.frames:
            raise UnsupportedFormatError(
                f"CEM v5.0 frame body layout is not understood ({q.frames} frames "
                f"in {node.name!r})"
            )
        if q.points:
            raise UnsupportedFormatError(
                f"CEM v5.0 points layout is not understood ({q.points} points "
                f"in {node.name!r})"
            )

        edge_count = reader.read_u32()
        shadow_edges = read_counted(reader, edge_count, SIZE_V5_SHADOW_EDGE, "shadow edge",
                                    lambda: ShadowEdge.read(reader))

        model = cls(center, common_vertices, lod_levels, materials, tag_points, shadow_edges)
        return model, node

    def write(self, writer, node):
        raise UnsupportedFormatError(
            "Writing CEM v5.0 models is not supported: the frame layout is not understood"
        )
