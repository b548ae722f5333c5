"""CEM revision 1.3 model codec (SSMF v1.3). Read only.

Revision history of the 1.x line:
    1.1  adds the tag point names and the tag_points count
    1.2  adds the additional_models count
    1.3  adds the vertex point array

File layout after the header:
    Quantities      8 x u32: frames, materials, vertex_points, triangles,
                    triangle_groups, vertices, tag_points, additional_models
    Node name       string
    Center          3 x f32
    Unknown         u8
    Vertex points   vertex_points x u32
    Triangles       triangles x 3 x V1Vertex (40 bytes each)
    Groups          triangle_groups x (name, count:u32, count x u32)
    Materials       materials x (count:u32, count x u32, has_texture:u8,
                    [texture name, u32])
    Vertices        vertices x (point index:u32, f32)
    Tag points      tag_points x string
    Frames          frames x V1Frame

Frame layout:
    radius:f32, vertex_points x 3f positions, vertices x u16 quantized
    normal index, tag_points x 3f, transform (16 f32), AABB

Positions are deduplicated: frames only carry one position per vertex
point, and every full vertex refers back to its point by index.

The write layout of this revision has not been verified against game
files, so there is no write path.
"""

import logging
import struct
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .cem_bounds import Aabb
from .cem_constants import (
    VERSION_V1,
    SIZE_U8, SIZE_U16, SIZE_U32, SIZE_VEC3, SIZE_STRING_MIN,
    SIZE_V1_VERTEX, SIZE_MATRIX, SIZE_AABB, SIZE_F32,
)
from .cem_errors import StructuralError, UnsupportedFormatError
from .cem_header import make_header
from .cem_model import NodeData, read_counted


_log = logging.getLogger("cem_codec")

Vec3 = Tuple[float, float, float]


@dataclass
class V1Quantities:
    frames: int
    materials: int
    vertex_points: int      # unique positions
    triangles: int
    triangle_groups: int
    vertices: int           # unique position + UV + color combinations
    tag_points: int
    additional_models: int

    @classmethod
    def read(cls, reader):
        return cls(*reader.read_array("I", 8, "quantities"))


@dataclass
class V1Vertex:
    """A full vertex of a triangle corner.

    Attributes:
        point_index: index of the vertex point holding its position
        uv: texture coordinate
        rgb: vertex color
        unknown: 4 floats, usually constant across a file
    """
    point_index: int
    uv: Tuple[float, float]
    rgb: Vec3
    unknown: Tuple[float, float, float, float]

    @classmethod
    def read(cls, reader):
        point_index = reader.read_u32()
        values = reader.read_array("f", 9, "vertex")
        return cls(point_index, values[0:2], values[2:5], values[5:9])


@dataclass
class TriangleGroup:
    name: str
    indices: List[int]

    @classmethod
    def read(cls, reader):
        name = reader.read_string()
        count = reader.read_u32()
        reader.check_count(count, SIZE_U32, "triangle group index")
        return cls(name, list(reader.read_array("I", count, "triangle group")))


@dataclass
class V1Material:
    """Material with its triangle indices and optional texture binding.

    Attributes:
        indices: triangle indices using this material
        texture: (texture name, value of unknown meaning), or None
    """
    indices: List[int]
    texture: Optional[Tuple[str, int]]

    @classmethod
    def read(cls, reader):
        count = reader.read_u32()
        reader.check_count(count, SIZE_U32, "material index")
        indices = list(reader.read_array("I", count, "material"))

        flag = reader.read_u8()
        if flag == 0:
            texture = None
        elif flag == 1:
            texture = (reader.read_string(), reader.read_u32())
        else:
            raise StructuralError(f"A boolean must be 0 or 1, got {flag}")
        return cls(indices, texture)


@dataclass
class V1Frame:
    """One animation key of a revision 1 model.

    Attributes:
        radius: bounding sphere radius
        points: one position per vertex point
        normals: one quantized normal index per vertex
        tag_points: one position per tag point name
        transform: 16 floats in wire order
        bound: bounding box
    """
    radius: float
    points: List[Vec3]
    normals: List[int]
    tag_points: List[Vec3]
    transform: Tuple[float, ...]
    bound: Aabb

    @classmethod
    def read(cls, reader, quantities):
        radius = reader.read_f32()
        points = read_counted(reader, quantities.vertex_points, SIZE_VEC3, "vertex point",
                              reader.read_vec3)
        reader.check_count(quantities.vertices, SIZE_U16, "normal")
        normals = list(reader.read_array("H", quantities.vertices, "normals"))
        tag_points = read_counted(reader, quantities.tag_points, SIZE_VEC3, "tag point",
                                  reader.read_vec3)
        transform = reader.read_matrix()
        bound = Aabb.read(reader)
        return cls(radius, points, normals, tag_points, transform, bound)


@dataclass
class V1Model:
    """A revision 1.3 model, as decoded. Not writable."""
    HEADER = make_header(VERSION_V1)
    WRITABLE = False

    center: Vec3
    unknown: int
    points: List[int]
    triangles: List[Tuple[V1Vertex, V1Vertex, V1Vertex]]
    triangle_groups: List[TriangleGroup]
    materials: List[V1Material]
    vertices: List[Tuple[int, float]]
    tag_points: List[str]
    frames: List[V1Frame]

    @classmethod
    def read(cls, reader):
        """Decode a model body (everything after the header).

        Returns:
            (V1Model, NodeData)
        """
        q = V1Quantities.read(reader)
        _log.debug("V1 quantities: %s", q)

        node = NodeData(reader.read_string(), q.additional_models)
        center = reader.read_vec3()
        unknown = reader.read_u8()

        reader.check_count(q.vertex_points, SIZE_U32, "vertex point")
        points = list(reader.read_array("I", q.vertex_points, "vertex points"))

        triangles = read_counted(
            reader, q.triangles, 3 * SIZE_V1_VERTEX, "triangle",
            lambda: (V1Vertex.read(reader), V1Vertex.read(reader), V1Vertex.read(reader)),
        )
        triangle_groups = read_counted(reader, q.triangle_groups, SIZE_STRING_MIN + SIZE_U32,
                                       "triangle group", lambda: TriangleGroup.read(reader))
        materials = read_counted(reader, q.materials, SIZE_U32 + SIZE_U8, "material",
                                 lambda: V1Material.read(reader))

        reader.check_count(q.vertices, SIZE_U32 + SIZE_F32, "vertex")
        raw = reader.read_bytes(q.vertices * (SIZE_U32 + SIZE_F32), "vertices")
        vertices = list(struct.iter_unpack("<If", raw))

        tag_points = read_counted(reader, q.tag_points, SIZE_STRING_MIN, "tag point name",
                                  reader.read_string)

        frame_size = (SIZE_F32 + q.vertex_points * SIZE_VEC3 + q.vertices * SIZE_U16
                      + q.tag_points * SIZE_VEC3 + SIZE_MATRIX + SIZE_AABB)
        frames = read_counted(reader, q.frames, frame_size, "frame",
                              lambda: V1Frame.read(reader, q))

        model = cls(center, unknown, points, triangles, triangle_groups, materials,
                    vertices, tag_points, frames)
        return model, node

    def write(self, writer, node):
        raise UnsupportedFormatError(
            "Writing CEM v1.3 models is not supported: the revision 1 write "
            "layout has not been verified"
        )
