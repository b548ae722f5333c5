import pytest

from cem_tools.cem_format.cem_reader import CEMReader
from cem_tools.cem_format.cem_writer import CEMWriter
from cem_tools.cli import guess_format, main
from cem_tools.exporter.obj_export import export_obj_string

from conftest import build_v1_body, build_v5_body, header_bytes


def test_guess_format():
    assert guess_format("ship.OBJ") == "obj"
    assert guess_format("ship.cem") == "cem"
    assert guess_format("ship") == "cem"


def test_cem_to_obj_file(tmp_path, v2_scene):
    source = tmp_path / "ship.cem"
    CEMWriter(v2_scene).write(str(source))
    target = tmp_path / "ship.obj"
    assert main(["-i", str(source), str(target)]) == 0
    text = target.read_text()
    assert "o turret" in text
    assert "usemtl hull" in text


def test_obj_cem_obj_round_trip(tmp_path, v2_scene, capsysbinary):
    source = tmp_path / "ship.cem"
    CEMWriter(v2_scene).write(str(source))
    obj = tmp_path / "ship.obj"
    assert main(["-i", str(source), str(obj)]) == 0

    cem = tmp_path / "rebuilt.cem"
    assert main(["-i", str(obj), str(cem), "--to", "cem"]) == 0
    scene = CEMReader(str(cem)).read().scene
    assert [c.name for c in scene.children] == ["turret", "engine"]

    assert main(["-i", str(cem)]) == 0
    out = capsysbinary.readouterr().out
    assert out.decode("utf-8") == export_obj_string(scene)


def test_cem_to_stdout(tmp_path, v2_scene, capsysbinary):
    source = tmp_path / "ship.cem"
    size = CEMWriter(v2_scene).write(str(source))
    assert main(["-i", str(source), "-t", "cem"]) == 0
    assert len(capsysbinary.readouterr().out) == size


def test_explicit_source_format(tmp_path):
    source = tmp_path / "mesh.txt"
    source.write_text("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    target = tmp_path / "mesh.cem"
    assert main(["-i", str(source), "-s", "obj", "-t", "cem", str(target)]) == 0
    assert CEMReader(str(target)).read().profile.name == "v2"


def test_v1_cannot_be_reencoded(tmp_path):
    source = tmp_path / "old.cem"
    source.write_bytes(header_bytes(1, 3) + build_v1_body())
    assert main(["-i", str(source), "-t", "cem", str(tmp_path / "new.cem")]) == 1
    assert not (tmp_path / "new.cem").exists()


def test_bad_input_returns_1(tmp_path):
    source = tmp_path / "junk.cem"
    source.write_bytes(b"not a model at all")
    assert main(["-i", str(source)]) == 1
    assert main(["-i", str(tmp_path / "missing.cem")]) == 1


def test_negative_depth_is_rejected(tmp_path):
    with pytest.raises(SystemExit):
        main(["-i", str(tmp_path / "x.cem"), "--max-depth", "-1"])


@pytest.mark.parametrize("header, body", [
    ((1, 3), build_v1_body()),
    ((5, 0), build_v5_body()),
])
def test_only_v2_converts_to_obj(tmp_path, header, body):
    source = tmp_path / "model.cem"
    source.write_bytes(header_bytes(*header) + body)
    target = tmp_path / "model.obj"
    assert main(["-i", str(source), str(target)]) == 1
    assert not target.exists()


@pytest.mark.parametrize("data", [
    b"v 0 0 zero\n",
    b"v 0 0\nf 1 1 1\n",
    b"o caf\xe9\nv 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n",
])
def test_malformed_obj_returns_1(tmp_path, data):
    source = tmp_path / "broken.obj"
    source.write_bytes(data)
    assert main(["-i", str(source), "-t", "cem", str(tmp_path / "out.cem")]) == 1
