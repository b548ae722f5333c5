import io

import pytest

from cem_tools.cem_format.cem_bounds import Collider
from cem_tools.cem_format.cem_writer import CEMWriter, encode_scene
from cem_tools.scene_graph.sg_scene import Scene
from cem_tools.utils.collider_check import check_model_colliders, check_scene_colliders
from cem_tools.utils.report import (
    STATUS_ERROR, STATUS_NOT_CEM, STATUS_OK, STATUS_UNKNOWN_REVISION, STATUS_UNSUPPORTED,
    main, report_file, run_report,
)

from conftest import build_v1_body, build_v5_body, header_bytes, make_v2_model


@pytest.fixture
def model_dir(tmp_path, v2_scene):
    CEMWriter(v2_scene).write(str(tmp_path / "a_ship.cem"))
    (tmp_path / "b_readme.txt").write_text("hello, not a model")
    (tmp_path / "c_future.cem").write_bytes(header_bytes(7, 1) + b"\0" * 32)
    (tmp_path / "d_late.cem").write_bytes(header_bytes(5, 0) + build_v5_body(frames=2))
    (tmp_path / "e_old.cem").write_bytes(header_bytes(1, 3) + build_v1_body())
    sub = tmp_path / "sub"
    sub.mkdir()
    CEMWriter(Scene.root(make_v2_model())).write(str(sub / "f_nested.cem"))
    return tmp_path


def test_collider_check_clean(v2_model):
    assert check_model_colliders(v2_model) == []


def test_collider_check_flags_stored_radius(v2_scene):
    frame = v2_scene.children[0].model.frames[0]
    frame.collider = Collider(frame.collider.aabb, 2.0)
    mismatches = check_scene_colliders(v2_scene)
    assert len(mismatches) == 1
    name, mismatch = mismatches[0]
    assert name == "turret"
    assert mismatch.frame_index == 0
    assert mismatch.computed.radius == 0.75
    assert mismatch.radius_delta == 1.25
    assert "stored radius 2" in str(mismatch)


def test_collider_check_needs_v2():
    with pytest.raises(TypeError):
        check_model_colliders(object())


def test_report_statuses(model_dir):
    assert report_file(str(model_dir / "a_ship.cem")).status == STATUS_OK
    assert report_file(str(model_dir / "b_readme.txt")).status == STATUS_NOT_CEM
    assert report_file(str(model_dir / "c_future.cem")).status == STATUS_UNKNOWN_REVISION
    late = report_file(str(model_dir / "d_late.cem"))
    assert late.status == STATUS_UNSUPPORTED
    assert late.revision == "v5"
    old = report_file(str(model_dir / "e_old.cem"))
    assert (old.status, old.revision, old.node_count) == (STATUS_OK, "v1", 1)


def test_report_ok_details(model_dir):
    report = report_file(str(model_dir / "a_ship.cem"))
    assert report.node_count == 3
    assert report.collider_mismatches == []
    assert report.range_problems == []
    assert report.summary().endswith(
        "a_ship.cem: v2 ok, 3 nodes, 0 collider mismatches, 0 range problems")


def test_report_truncated_file(tmp_path, v2_model):
    data = encode_scene(Scene.root(v2_model))
    path = tmp_path / "cut.cem"
    path.write_bytes(data[:40])
    report = report_file(str(path))
    assert report.status == STATUS_ERROR
    assert "v2 error" in report.summary()


def test_report_tiny_file(tmp_path):
    path = tmp_path / "tiny.cem"
    path.write_bytes(b"SS")
    report = report_file(str(path))
    assert report.status == STATUS_NOT_CEM
    assert "unreadable" in report.summary()


def test_run_report_lines(model_dir):
    out = io.StringIO()
    reports = run_report(str(model_dir), out=out)
    lines = out.getvalue().splitlines()
    assert len(reports) == len(lines) == 5
    assert "not a CEM model" in lines[1]
    assert "unknown revision 7.1" in lines[2]
    assert "v5 unsupported" in lines[3]


def test_run_report_recursive_and_pattern(model_dir):
    out = io.StringIO()
    reports = run_report(str(model_dir), recursive=True, pattern="*.cem", out=out)
    assert [r.path.rsplit("/", 1)[-1] for r in reports] == [
        "a_ship.cem", "c_future.cem", "d_late.cem", "e_old.cem", "f_nested.cem",
    ]


def test_main_exit_status(model_dir, tmp_path_factory, capsys):
    assert main([str(model_dir)]) == 0
    broken = tmp_path_factory.mktemp("broken")
    (broken / "cut.cem").write_bytes(encode_scene(Scene.root(make_v2_model()))[:40])
    assert main([str(broken)]) == 1
    assert main([str(broken / "nothing-here")]) == 1
    assert "cut.cem: v2 error" in capsys.readouterr().out
