"""Shared model factories and hand-built byte streams for the CEM tests."""

import pytest

from cem_tools.cem_format.cem_bounds import Aabb, Collider
from cem_tools.cem_format.cem_constants import SSMF_MAGIC
from cem_tools.cem_format.cem_stream import CEMStreamWriter, IDENTITY_MATRIX
from cem_tools.cem_format.cem_v2 import Frame, Material, Selection, V2Model, Vertex
from cem_tools.scene_graph.sg_scene import Scene


def make_vertices():
    up = (0.0, 0.0, 1.0)
    return [
        Vertex((0.0, 0.0, 0.0), up, (0.0, 0.0)),
        Vertex((1.0, 0.0, 0.0), up, (1.0, 0.0)),
        Vertex((0.0, 1.0, 0.0), up, (0.0, 1.0)),
        Vertex((1.0, 1.0, 0.5), up, (1.0, 1.0)),
    ]


def make_v2_model(tag_points=("hardpoint",)):
    """Two triangles, two materials, one frame with an exact collider.

    Every value is exactly representable in float32.
    """
    vertices = make_vertices()
    frame = Frame(
        vertices,
        [(0.5, 0.5, 1.25)] * len(tag_points),
        IDENTITY_MATRIX,
        Collider(Aabb((0.0, 0.0, 0.0), (1.0, 1.0, 0.5)), 0.75),
    )
    materials = [
        Material("hull", 3, [Selection(0, 1)], 0, 3, "hull.tga"),
        Material("glass", 4, [Selection(1, 1)], 1, 3, "glass.tga"),
    ]
    return V2Model(
        center=(0.5, 0.5, 0.25),
        lod_levels=[[(0, 1, 2), (1, 3, 2)]],
        materials=materials,
        tag_points=list(tag_points),
        frames=[frame],
    )


def header_bytes(major, minor, magic=SSMF_MAGIC):
    w = CEMStreamWriter()
    w.write_u32(magic)
    w.write_u16(major)
    w.write_u16(minor)
    return w.getvalue()


def build_v1_body(flag=1, name="Scene Root", additional_models=0):
    """Revision 1.3 body: 1 frame, 1 material, 1 point, 1 triangle, 1 group,
    2 vertices, 1 tag point."""
    w = CEMStreamWriter()
    w.write_array("I", (1, 1, 1, 1, 1, 2, 1, additional_models))
    w.write_string(name)
    w.write_vec3((0.5, 0.0, 0.0))
    w.write_u8(7)
    w.write_array("I", (0,))                    # vertex points
    for corner in range(3):                     # one triangle, 3 V1 vertices
        w.write_u32(0)
        w.write_array("f", (0.25 * corner, 0.5, 1.0, 1.0, 1.0, 0.0, 0.0, 0.0, 1.0))
    w.write_string("group")                     # triangle group
    w.write_u32(1)
    w.write_array("I", (0,))
    w.write_u32(1)                              # material indices
    w.write_array("I", (0,))
    w.write_u8(flag)
    if flag == 1:
        w.write_string("skin.tga")
        w.write_u32(9)
    w.write_u32(0)                              # vertices (u32, f32) pairs
    w.write_f32(1.5)
    w.write_u32(0)
    w.write_f32(2.5)
    w.write_string("tag")
    w.write_f32(0.5)                            # frame: radius
    w.write_vec3((1.0, 2.0, 3.0))               # points
    w.write_array("H", (4, 5))                  # normals
    w.write_vec3((0.0, 0.0, 1.0))               # tag point
    w.write_matrix(IDENTITY_MATRIX)
    w.write_vec3((1.0, 2.0, 3.0))
    w.write_vec3((1.0, 2.0, 3.0))
    return w.getvalue()


def build_v5_body(frames=0, points=0, name="Scene Root"):
    """Revision 5.0 body: 1 common vertex, 1 LOD with 1 triangle,
    1 material, 1 tag point, 2 shadow edges."""
    w = CEMStreamWriter()
    w.write_array("I", (1, 1, 1, 1, frames, 0, 1, points))
    w.write_string(name)
    w.write_vec3((0.0, 0.0, 0.0))
    w.write_array("f", [float(i) for i in range(16)])
    w.write_i32(-1)
    w.write_u32(1)
    w.write_array("H", (0, 0, 0))
    Material("mat", 2, [Selection(0, 1)], 0, 1, "mat.dds").write(w)
    w.write_string("tag")
    w.write_u32(2)
    w.write_u32(10)
    w.write_array("H", (1, 2, 3, 4))
    w.write_u32(11)
    w.write_array("H", (5, 6, 7, 8))
    return w.getvalue()


@pytest.fixture
def v2_model():
    return make_v2_model()


@pytest.fixture
def v2_scene():
    root = Scene.root(make_v2_model())
    root.children.append(Scene("turret", make_v2_model()))
    root.children.append(Scene("engine", make_v2_model(tag_points=())))
    return root
