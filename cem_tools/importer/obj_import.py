"""Import Wavefront OBJ text as revision 2.0 CEM scenes.

This is the inverse of exporter/obj_export.py.

    o / g       start a new scene node (the first one is the root, every
                later one becomes a child of the root)
    v, vt, vn   positions, texture coordinates, normals (Y/Z swapped back)
    f           polygons, fan-triangulated; negative indices are relative
    usemtl      material of the following faces

Vertices are split per (position, texcoord, normal) triple and allocated
material by material, so each material covers one contiguous triangle
range and one contiguous vertex range. Each node gets one LOD level and one
frame whose collider is computed around the node's bounding box center.
"""

import logging

from ..cem_format.cem_bounds import CenterBuilder
from ..cem_format.cem_constants import SCENE_ROOT_NAME
from ..cem_format.cem_errors import StructuralError
from ..cem_format.cem_v2 import Frame, Material, Selection, V2Model, Vertex
from ..exporter.obj_export import swap_axes
from ..scene_graph.sg_scene import Scene


_log = logging.getLogger("cem_obj")

DEFAULT_MATERIAL = "default"


class _ObjObject:
    """Faces collected for one `o` block, grouped by material."""

    def __init__(self, name):
        self.name = name
        self.faces = {}     # material name -> list of corner triples
        self.order = []     # material names in first-use order

    def add_face(self, material, corners):
        if material not in self.faces:
            self.faces[material] = []
            self.order.append(material)
        self.faces[material].append(corners)

    @property
    def face_count(self):
        return sum(len(f) for f in self.faces.values())


def _resolve(index, count, line_no):
    try:
        i = int(index)
    except ValueError:
        raise StructuralError(f"Line {line_no}: bad index {index!r}") from None
    if i < 0:
        i = count + i
    else:
        i -= 1
    if not 0 <= i < count:
        raise StructuralError(f"Line {line_no}: index {index} out of range (have {count})")
    return i


def _parse_floats(args, size, line_no, keyword):
    """Parse the first `size` components of a v, vt or vn line."""
    if len(args) < size:
        raise StructuralError(
            f"Line {line_no}: {keyword} needs {size} components, got {len(args)}")
    try:
        return tuple(float(a) for a in args[:size])
    except ValueError:
        raise StructuralError(f"Line {line_no}: bad number in {keyword} line") from None


def _parse_corner(token, counts, line_no):
    parts = token.split("/")
    vi = _resolve(parts[0], counts[0], line_no)
    ti = _resolve(parts[1], counts[1], line_no) if len(parts) > 1 and parts[1] else None
    ni = _resolve(parts[2], counts[2], line_no) if len(parts) > 2 and parts[2] else None
    return (vi, ti, ni)


def parse_obj(text):
    """Parse OBJ text into raw attribute lists and per-object faces.

    Returns:
        (positions, texcoords, normals, objects)
    """
    positions, texcoords, normals = [], [], []
    objects = []
    current = None
    material = None

    for line_no, raw in enumerate(text.splitlines(), 1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        keyword, *tail = line.split(None, 1)
        rest = tail[0] if tail else ""
        args = rest.split()

        if keyword == "v":
            positions.append(swap_axes(_parse_floats(args, 3, line_no, keyword)))
        elif keyword == "vt":
            uv = _parse_floats(args, max(1, min(len(args), 2)), line_no, keyword)
            texcoords.append(uv + (0.0,) * (2 - len(uv)))
        elif keyword == "vn":
            normals.append(swap_axes(_parse_floats(args, 3, line_no, keyword)))
        elif keyword in ("o", "g"):
            name = rest.strip() or SCENE_ROOT_NAME
            if current is not None and current.face_count == 0:
                current.name = name
            else:
                current = _ObjObject(name)
                objects.append(current)
        elif keyword == "usemtl":
            material = rest.strip() or DEFAULT_MATERIAL
        elif keyword == "f":
            if len(args) < 3:
                raise StructuralError(f"Line {line_no}: face needs at least 3 corners")
            counts = (len(positions), len(texcoords), len(normals))
            corners = [_parse_corner(a, counts, line_no) for a in args]
            if current is None:
                current = _ObjObject(SCENE_ROOT_NAME)
                objects.append(current)
            for k in range(1, len(corners) - 1):
                current.add_face(material or DEFAULT_MATERIAL,
                                 (corners[0], corners[k], corners[k + 1]))
        else:
            _log.debug("Line %d: ignoring %r", line_no, keyword)

    return positions, texcoords, normals, [o for o in objects if o.face_count]


def _build_model(obj, positions, texcoords, normals):
    vertices = []
    triangles = []
    materials = []

    for material_name in obj.order:
        vertex_offset = len(vertices)
        triangle_offset = len(triangles)
        lookup = {}
        for face in obj.faces[material_name]:
            tri = []
            for corner in face:
                index = lookup.get(corner)
                if index is None:
                    vi, ti, ni = corner
                    index = len(vertices)
                    lookup[corner] = index
                    vertices.append(Vertex(
                        positions[vi],
                        normals[ni] if ni is not None else (0.0, 0.0, 0.0),
                        texcoords[ti] if ti is not None else (0.0, 0.0),
                    ))
                tri.append(index)
            triangles.append(tuple(tri))
        materials.append(Material(
            name=material_name,
            texture=0,
            triangles=[Selection(triangle_offset, len(triangles) - triangle_offset)],
            vertex_offset=vertex_offset,
            vertex_count=len(vertices) - vertex_offset,
            texture_name=material_name,
        ))

    center_builder = CenterBuilder()
    center_builder.update_many([v.position for v in vertices])
    center = center_builder.build()

    frame = Frame.from_vertices(vertices, [], center)
    return V2Model(center, [triangles], materials, [], [frame])


def import_obj(text):
    """Build a V2 scene tree from OBJ text.

    Raises:
        StructuralError: if the text has no faces or a bad index
    """
    positions, texcoords, normals, objects = parse_obj(text)
    if not objects:
        raise StructuralError("OBJ data contains no faces")

    nodes = [
        Scene(obj.name, _build_model(obj, positions, texcoords, normals))
        for obj in objects
    ]
    root = nodes[0]
    root.children.extend(nodes[1:])
    _log.debug("Imported %d objects from %d positions", len(nodes), len(positions))
    return root


def import_obj_stream(stream):
    """Import OBJ from a text or binary stream; binary data must be UTF-8."""
    data = stream.read()
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise StructuralError(f"OBJ data is not valid UTF-8: {e}") from None
    return import_obj(data)


def import_obj_file(filepath):
    with open(filepath, "rb") as f:
        return import_obj_stream(f)
