"""CEM revision 2.0 model codec (SSMF v2.0), the complete read/write path.

File layout after the header:
    Quantities      7 x u32: triangles, vertices, tag_points, materials,
                    frames, additional_models, lod_levels
    Node name       string (handed to the scene, not stored in the model)
    Center          3 x f32
    LOD levels      lod_levels x (count:u32, count x 3 x u32 indices)
    Materials       materials x Material (one Selection per LOD level)
    Tag points      tag_points x string
    Frames          frames x Frame

Frame layout:
    radius:f32, vertices x Vertex(32 bytes), tag_points x 3f,
    transform (16 f32), AABB (lower 3f, upper 3f)

The quantities written are derived from the model: triangles from
lod_levels[0] and vertices from frames[0]. The first LOD level and the
first frame are authoritative for sizing.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Tuple

from .cem_bounds import Aabb, Collider, ColliderBuilder
from .cem_constants import (
    VERSION_V2,
    SIZE_U32, SIZE_VEC3, SIZE_STRING_MIN, SIZE_SELECTION,
    SIZE_V2_VERTEX, SIZE_MATRIX, SIZE_AABB, SIZE_F32,
)
from .cem_errors import StructuralError
from .cem_header import make_header
from .cem_model import NodeData, read_counted, read_triangles, write_triangles
from .cem_stream import IDENTITY_MATRIX


_log = logging.getLogger("cem_codec")

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]
Triangle = Tuple[int, int, int]


@dataclass
class Quantities:
    """Element counts that size every variable-length section."""
    triangles: int
    vertices: int
    tag_points: int
    materials: int
    frames: int
    additional_models: int
    lod_levels: int

    @classmethod
    def read(cls, reader):
        return cls(*reader.read_array("I", 7, "quantities"))

    def write(self, writer):
        writer.write_array("I", (
            self.triangles, self.vertices, self.tag_points, self.materials,
            self.frames, self.additional_models, self.lod_levels,
        ))


@dataclass
class Selection:
    """A contiguous range of triangles or vertices (not range-checked)."""
    offset: int
    length: int

    @classmethod
    def read(cls, reader):
        return cls(reader.read_u32(), reader.read_u32())

    def write(self, writer):
        writer.write_u32(self.offset)
        writer.write_u32(self.length)

    @property
    def end(self):
        return self.offset + self.length


@dataclass
class Material:
    """A material applied to a range of triangles and vertices.

    Attributes:
        name: material name; some names have a special meaning to the game
            (e.g. the player color material)
        texture: texture id, resolved externally by the game's graphics
            tables
        triangles: one triangle Selection per LOD level
        vertex_offset: first vertex used by this material
        vertex_count: number of vertices used by this material
        texture_name: name of the texture file
    """
    name: str
    texture: int
    triangles: List[Selection]
    vertex_offset: int
    vertex_count: int
    texture_name: str

    @classmethod
    def read(cls, reader, lod_levels):
        name = reader.read_string()
        texture = reader.read_u32()
        triangles = [Selection.read(reader) for _ in range(lod_levels)]
        vertex_offset = reader.read_u32()
        vertex_count = reader.read_u32()
        texture_name = reader.read_string()
        return cls(name, texture, triangles, vertex_offset, vertex_count, texture_name)

    def write(self, writer):
        writer.write_string(self.name)
        writer.write_u32(self.texture)
        for selection in self.triangles:
            selection.write(writer)
        writer.write_u32(self.vertex_offset)
        writer.write_u32(self.vertex_count)
        writer.write_string(self.texture_name)

    @property
    def vertices(self):
        return Selection(self.vertex_offset, self.vertex_count)


@dataclass
class Vertex:
    """Position, normal and texture coordinate of one vertex."""
    position: Vec3
    normal: Vec3
    texture: Vec2

    @classmethod
    def read(cls, reader):
        values = reader.read_array("f", 8, "vertex")
        return cls(values[0:3], values[3:6], values[6:8])

    def write(self, writer):
        writer.write_vec3(self.position)
        writer.write_vec3(self.normal)
        writer.write_vec2(self.texture)


@dataclass
class Frame:
    """One animation key: the full geometry of the model at that key.

    Attributes:
        vertices: one Vertex per model vertex
        tag_points: one position per tag point name
        transform: 16 floats in wire order (see cem_stream)
        collider: bounding box and radius around the model center
    """
    vertices: List[Vertex]
    tag_points: List[Vec3]
    transform: Tuple[float, ...] = IDENTITY_MATRIX
    collider: Collider = field(default_factory=Collider)

    @classmethod
    def from_vertices(cls, vertices, tag_points, center):
        """Build a frame with an identity transform and a computed collider."""
        builder = ColliderBuilder(center)
        builder.update_many([v.position for v in vertices])
        return cls(list(vertices), list(tag_points), IDENTITY_MATRIX, builder.build())

    @classmethod
    def read(cls, reader, vertex_count, tag_point_count):
        radius = reader.read_f32()
        vertices = read_counted(reader, vertex_count, SIZE_V2_VERTEX, "vertex",
                                lambda: Vertex.read(reader))
        tag_points = read_counted(reader, tag_point_count, SIZE_VEC3, "tag point",
                                  reader.read_vec3)
        transform = reader.read_matrix()
        aabb = Aabb.read(reader)
        return cls(vertices, tag_points, transform, Collider(aabb, radius))

    def write(self, writer):
        writer.write_f32(self.collider.radius)
        for vertex in self.vertices:
            vertex.write(writer)
        for point in self.tag_points:
            writer.write_vec3(point)
        writer.write_matrix(self.transform)
        self.collider.aabb.write(writer)

    @property
    def radius(self):
        return self.collider.radius

    @property
    def aabb(self):
        return self.collider.aabb


@dataclass
class V2Model:
    """A revision 2.0 model: geometry, materials, tag points and frames.

    Attributes:
        center: reference center the frame radii are measured from
        lod_levels: one triangle list per level of detail, finest first
        materials: materials, each with one triangle range per LOD level
        tag_points: tag point names
        frames: animation frames
    """
    HEADER = make_header(VERSION_V2)
    WRITABLE = True

    center: Vec3
    lod_levels: List[List[Triangle]]
    materials: List[Material]
    tag_points: List[str]
    frames: List[Frame]

    def quantities(self, additional_models):
        """Derive the quantities block for writing.

        Raises:
            StructuralError: if the model breaks a write invariant
        """
        if not self.materials:
            raise StructuralError("A model must have at least 1 material")
        if not self.lod_levels:
            raise StructuralError("A model must have at least 1 LOD level")
        if not self.frames:
            raise StructuralError("A model must have at least 1 frame")

        vertex_count = len(self.frames[0].vertices)
        for i, frame in enumerate(self.frames):
            if len(frame.vertices) != vertex_count:
                raise StructuralError(
                    f"Frame {i} has {len(frame.vertices)} vertices, "
                    f"frame 0 has {vertex_count}"
                )
            if len(frame.tag_points) != len(self.tag_points):
                raise StructuralError(
                    f"Frame {i} has {len(frame.tag_points)} tag point positions, "
                    f"model has {len(self.tag_points)} tag points"
                )
        for i, material in enumerate(self.materials):
            if len(material.triangles) != len(self.lod_levels):
                raise StructuralError(
                    f"Material {i} ({material.name!r}) has {len(material.triangles)} "
                    f"triangle selections, model has {len(self.lod_levels)} LOD levels"
                )

        return Quantities(
            triangles=len(self.lod_levels[0]),
            vertices=vertex_count,
            tag_points=len(self.tag_points),
            materials=len(self.materials),
            frames=len(self.frames),
            additional_models=additional_models,
            lod_levels=len(self.lod_levels),
        )

    @classmethod
    def read(cls, reader):
        """Decode a model body (everything after the header).

        Returns:
            (V2Model, NodeData)
        """
        q = Quantities.read(reader)
        _log.debug("V2 quantities: %s", q)

        node = NodeData(reader.read_string(), q.additional_models)
        center = reader.read_vec3()

        reader.check_count(q.lod_levels, SIZE_U32, "LOD level")
        lod_levels = []
        for _ in range(q.lod_levels):
            count = reader.read_u32()
            lod_levels.append(read_triangles(reader, count, "I"))

        material_size = 2 * SIZE_STRING_MIN + 3 * SIZE_U32 + q.lod_levels * SIZE_SELECTION
        materials = read_counted(reader, q.materials, material_size, "material",
                                 lambda: Material.read(reader, len(lod_levels)))

        tag_points = read_counted(reader, q.tag_points, SIZE_STRING_MIN, "tag point name",
                                  reader.read_string)

        frame_size = (SIZE_F32 + q.vertices * SIZE_V2_VERTEX + q.tag_points * SIZE_VEC3
                      + SIZE_MATRIX + SIZE_AABB)
        frames = read_counted(reader, q.frames, frame_size, "frame",
                              lambda: Frame.read(reader, q.vertices, len(tag_points)))

        return cls(center, lod_levels, materials, tag_points, frames), node

    def write(self, writer, node):
        """Encode the model body with the scene metadata in `node`.

        Nothing is written if the model breaks a write invariant.
        """
        quantities = self.quantities(node.additional_models)
        quantities.write(writer)

        writer.write_string(node.name)
        writer.write_vec3(self.center)

        for triangles in self.lod_levels:
            writer.write_u32(len(triangles))
            write_triangles(writer, triangles, "I")

        for material in self.materials:
            material.write(writer)

        for name in self.tag_points:
            writer.write_string(name)

        for frame in self.frames:
            frame.write(writer)

    @property
    def vertex_count(self):
        return len(self.frames[0].vertices) if self.frames else 0

    @property
    def triangle_count(self):
        return len(self.lod_levels[0]) if self.lod_levels else 0

    def validate_ranges(self):
        """Check selections and indices against the actual arrays.

        The codec never does this on its own; existing files are trusted.

        Returns:
            list of problem descriptions (empty when everything is in range)
        """
        problems = []
        vertex_count = self.vertex_count
        for lod, triangles in enumerate(self.lod_levels):
            for t, tri in enumerate(triangles):
                if any(index >= vertex_count for index in tri):
                    problems.append(
                        f"LOD {lod} triangle {t} {tuple(tri)} indexes past "
                        f"{vertex_count} vertices"
                    )
        for m, material in enumerate(self.materials):
            for lod, selection in enumerate(material.triangles):
                if lod < len(self.lod_levels) and selection.end > len(self.lod_levels[lod]):
                    problems.append(
                        f"Material {m} ({material.name!r}) LOD {lod} selection "
                        f"{selection.offset}+{selection.length} exceeds "
                        f"{len(self.lod_levels[lod])} triangles"
                    )
            if material.vertex_offset + material.vertex_count > vertex_count:
                problems.append(
                    f"Material {m} ({material.name!r}) vertex range "
                    f"{material.vertex_offset}+{material.vertex_count} exceeds "
                    f"{vertex_count} vertices"
                )
        return problems
