"""Export revision 2.0 CEM scenes to Wavefront OBJ text.

Every node of the scene tree becomes an `o` block. Only the first frame
and the first (finest) LOD level are exported:

    v   frame 0 vertex positions
    vt  texture coordinates
    vn  normals
    f   LOD 0 triangles, grouped by `usemtl` through each material's LOD 0
        triangle selection; triangles no material covers come first

Axis convention: Y and Z are swapped on the way out (x, z, y). A single
swap mirrors the model, so exported meshes appear mirrored in most viewers.
The intended orientation has not been confirmed, so the swap is left as is;
obj_import undoes the same swap.

Triangle indices are absolute into the node's vertex list.
"""

import io
import logging

from ..cem_format.cem_errors import UnsupportedFormatError
from ..cem_format.cem_v2 import V2Model


_log = logging.getLogger("cem_obj")


def swap_axes(vec):
    """(x, y, z) -> (x, z, y). Its own inverse."""
    return (vec[0], vec[2], vec[1])


def _fmt(value):
    return f"{value:.6g}"


def _material_runs(model):
    """Split LOD 0 triangle indices into (material name or None, indices) runs."""
    triangles = model.lod_levels[0]
    owner = [None] * len(triangles)
    for m, material in enumerate(model.materials):
        if not material.triangles:
            continue
        sel = material.triangles[0]
        for t in range(sel.offset, min(sel.end, len(triangles))):
            if owner[t] is None:
                owner[t] = m

    runs = []
    unowned = [t for t, m in enumerate(owner) if m is None]
    if unowned:
        runs.append((None, unowned))
    for m, material in enumerate(model.materials):
        indices = [t for t, owner_m in enumerate(owner) if owner_m == m]
        if indices:
            runs.append((material.name, indices))
    return runs


def export_model(out, name, model, vertex_base=0):
    """Write one V2 model as an OBJ object block.

    Args:
        out: text stream
        name: object name
        model: V2Model
        vertex_base: number of vertices written before this block

    Returns:
        number of vertices written

    Raises:
        UnsupportedFormatError: if the model is not a V2Model
    """
    if not isinstance(model, V2Model):
        raise UnsupportedFormatError(
            f"OBJ export needs a v2 model, got {type(model).__name__} for {name!r}")
    if not model.frames or not model.lod_levels:
        _log.warning("Skipping %r: no frames or LOD levels", name)
        out.write(f"o {name}\n")
        return 0

    vertices = model.frames[0].vertices
    out.write(f"o {name}\n")
    for v in vertices:
        x, y, z = swap_axes(v.position)
        out.write(f"v {_fmt(x)} {_fmt(y)} {_fmt(z)}\n")
    for v in vertices:
        out.write(f"vt {_fmt(v.texture[0])} {_fmt(v.texture[1])}\n")
    for v in vertices:
        x, y, z = swap_axes(v.normal)
        out.write(f"vn {_fmt(x)} {_fmt(y)} {_fmt(z)}\n")

    triangles = model.lod_levels[0]
    for material_name, indices in _material_runs(model):
        if material_name is not None:
            out.write(f"usemtl {material_name}\n")
        for t in indices:
            corners = " ".join(
                f"{i + 1 + vertex_base}/{i + 1 + vertex_base}/{i + 1 + vertex_base}"
                for i in triangles[t]
            )
            out.write(f"f {corners}\n")

    return len(vertices)


def export_obj(out, scene):
    """Write a whole V2 scene tree as OBJ text to stream `out`.

    Returns:
        number of objects written
    """
    out.write("# Exported from CEM\n")
    vertex_base = 0
    count = 0
    for _, node in scene.walk():
        vertex_base += export_model(out, node.name, node.model, vertex_base)
        count += 1
    _log.debug("Exported %d objects, %d vertices", count, vertex_base)
    return count


def export_obj_string(scene):
    out = io.StringIO()
    export_obj(out, scene)
    return out.getvalue()


def export_obj_file(filepath, scene):
    with open(filepath, "w", encoding="utf-8", newline="\n") as f:
        return export_obj(f, scene)
