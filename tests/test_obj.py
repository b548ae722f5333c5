import io

import pytest

from cem_tools.cem_format.cem_errors import StructuralError, UnsupportedFormatError
from cem_tools.cem_format.cem_reader import read_scene
from cem_tools.cem_format.cem_v2 import Selection
from cem_tools.cem_format.cem_writer import encode_scene
from cem_tools.exporter.obj_export import export_obj_file, export_obj_string, swap_axes
from cem_tools.importer.obj_import import import_obj, import_obj_file, import_obj_stream
from cem_tools.scene_graph.sg_scene import Scene

from conftest import build_v1_body, header_bytes, make_v2_model


QUAD = """\
# a unit quad
o panel
v 0 0 0
v 1 0 0
v 1 0 1
v 0 0 1
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 1 0
usemtl steel
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def _corner_positions(model):
    vertices = model.frames[0].vertices
    return [tuple(vertices[i].position for i in tri) for tri in model.lod_levels[0]]


def test_swap_axes_is_its_own_inverse():
    assert swap_axes((1.0, 2.0, 3.0)) == (1.0, 3.0, 2.0)
    assert swap_axes(swap_axes((1.0, 2.0, 3.0))) == (1.0, 2.0, 3.0)


def test_export_text(v2_model):
    text = export_obj_string(Scene.root(v2_model))
    lines = text.splitlines()
    assert "o Scene Root" in lines
    assert "v 1 0.5 1" in lines            # (1, 1, 0.5) with Y and Z swapped
    assert "vn 0 1 0" in lines
    assert lines.index("usemtl hull") < lines.index("f 1/1/1 2/2/2 3/3/3")
    assert lines.index("usemtl glass") < lines.index("f 2/2/2 4/4/4 3/3/3")


def test_unowned_triangles_come_first(v2_model):
    v2_model.materials[1].triangles = [Selection(0, 0)]
    lines = export_obj_string(Scene.root(v2_model)).splitlines()
    faces = [i for i, line in enumerate(lines) if line.startswith("f ")]
    assert lines[faces[0]] == "f 2/2/2 4/4/4 3/3/3"
    assert lines[faces[0] - 1].startswith("vn ")
    assert "usemtl glass" not in lines


def test_child_indices_are_offset(v2_scene):
    lines = export_obj_string(v2_scene).splitlines()
    assert lines.count("o turret") == 1
    assert "f 5/5/5 6/6/6 7/7/7" in lines


def test_round_trip_through_obj(v2_model):
    scene = import_obj(export_obj_string(Scene.root(v2_model)))
    model = scene.model
    assert scene.name == "Scene Root"
    assert _corner_positions(model) == _corner_positions(v2_model)
    assert [m.name for m in model.materials] == ["hull", "glass"]
    assert [m.triangles for m in model.materials] == [[Selection(0, 1)], [Selection(1, 1)]]
    assert [(m.vertex_offset, m.vertex_count) for m in model.materials] == [(0, 3), (3, 3)]
    vertices = model.frames[0].vertices
    assert vertices[4].texture == (1.0, 1.0)
    assert vertices[4].normal == (0.0, 0.0, 1.0)
    assert model.validate_ranges() == []


def test_round_trip_keeps_children(v2_scene):
    scene = import_obj(export_obj_string(v2_scene))
    assert [c.name for c in scene.children] == ["turret", "engine"]
    for original, imported in zip(v2_scene.children, scene.children):
        assert _corner_positions(imported.model) == _corner_positions(original.model)


def test_import_polygon_is_fan_triangulated():
    scene = import_obj(QUAD)
    model = scene.model
    assert scene.name == "panel"
    assert model.lod_levels == [[(0, 1, 2), (0, 2, 3)]]
    assert model.materials[0].name == "steel"
    assert model.materials[0].texture_name == "steel"
    assert model.frames[0].vertices[2].position == (1.0, 1.0, 0.0)
    assert model.center == (0.5, 0.5, 0.0)


def test_imported_collider_is_computed():
    model = import_obj(QUAD).model
    collider = model.frames[0].collider
    assert collider.aabb.lower == (0.0, 0.0, 0.0)
    assert collider.aabb.upper == (1.0, 1.0, 0.0)
    assert collider.radius == pytest.approx(0.5 ** 0.5, abs=1e-6)


def test_negative_indices_and_default_material():
    text = "v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n"
    model = import_obj(text).model
    assert model.lod_levels == [[(0, 1, 2)]]
    assert model.materials[0].name == "default"
    assert model.frames[0].vertices[0].normal == (0.0, 0.0, 0.0)


def test_imported_scene_encodes():
    scene = import_obj(QUAD)
    _, decoded = read_scene(encode_scene(scene))
    assert decoded == scene


def test_no_faces_is_an_error():
    with pytest.raises(StructuralError):
        import_obj("v 0 0 0\n")


def test_bad_index_is_an_error():
    with pytest.raises(StructuralError, match="out of range"):
        import_obj("v 0 0 0\nf 1 2 3\n")


def test_files(tmp_path, v2_scene):
    path = tmp_path / "ship.obj"
    assert export_obj_file(str(path), v2_scene) == 3
    scene = import_obj_file(str(path))
    assert scene.node_count() == 3


@pytest.mark.parametrize("text, message", [
    ("v 0 0 zero\n", "bad number in v line"),
    ("v 0 0\n", "v needs 3 components"),
    ("v 0 0 0\nvn 0 1\n", "vn needs 3 components"),
    ("v 0 0 0\nvt\n", "vt needs 1 components"),
    ("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 x\n", "bad index 'x'"),
])
def test_malformed_lines_are_structural(text, message):
    with pytest.raises(StructuralError, match=message):
        import_obj(text)


def test_malformed_line_reports_line_number():
    with pytest.raises(StructuralError, match="Line 3:"):
        import_obj("v 0 0 0\nv 1 0 0\nv 0 1 nan?\n")


def test_tab_separated_keywords():
    model = import_obj("v\t0 0 0\nv\t1 0 0\nv\t0 1 0\nf\t1 2 3\n").model
    assert model.lod_levels == [[(0, 1, 2)]]
    assert model.frames[0].vertices[1].position == (1.0, 0.0, 0.0)


def test_single_component_texcoord():
    model = import_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nvt 0.5\nf 1/1 2/1 3/1\n").model
    assert model.frames[0].vertices[0].texture == (0.5, 0.0)


def test_non_utf8_stream_is_structural():
    with pytest.raises(StructuralError, match="UTF-8"):
        import_obj_stream(io.BytesIO(b"o caf\xe9\nv 0 0 0\n"))


def test_export_refuses_other_revisions():
    _, scene = read_scene(header_bytes(1, 3) + build_v1_body())
    with pytest.raises(UnsupportedFormatError, match="V1Model"):
        export_obj_string(scene)
