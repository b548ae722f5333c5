"""Shared pieces of the per-revision model codecs.

Every revision codec is a model class exposing:

    HEADER      ModelHeader this revision is stored under
    WRITABLE    False for revisions whose write layout is not known
    read(reader)            -> (model, NodeData)
    write(writer, node)     -> None

The scene assembler (scene_graph.sg_scene) works with any class of that
shape; it never needs to know which revision it is handling.
"""

from dataclasses import dataclass
from typing import ClassVar, Protocol, Tuple, runtime_checkable

from .cem_constants import SIZE_V2_TRIANGLE, SIZE_V5_TRIANGLE
from .cem_errors import StructuralError
from .cem_header import ModelHeader


# Encoded size of one index triangle per index type code
_TRIANGLE_SIZES = {"I": SIZE_V2_TRIANGLE, "H": SIZE_V5_TRIANGLE}


@dataclass
class NodeData:
    """Scene metadata stored inside a model body.

    Attributes:
        name: display name of the scene node
        additional_models: number of child scenes following in the stream
    """
    name: str
    additional_models: int


@runtime_checkable
class CEMModel(Protocol):
    HEADER: ClassVar[ModelHeader]
    WRITABLE: ClassVar[bool]

    @classmethod
    def read(cls, reader) -> Tuple["CEMModel", NodeData]:
        ...

    def write(self, writer, node: NodeData) -> None:
        ...


def read_counted(reader, count, min_size, what, read_one):
    """Read `count` elements with read_one(), after bounding the count.

    Args:
        reader: CEMStreamReader
        count: number of elements announced by the stream
        min_size: smallest encoded size of one element in bytes
        what: element description for error messages
        read_one: callable returning one decoded element
    """
    reader.check_count(count, min_size, what)
    return [read_one() for _ in range(count)]


def read_triangles(reader, count, code, what="triangle"):
    """Read count index triangles of struct type `code` as 3-tuples."""
    reader.check_count(count, _TRIANGLE_SIZES[code], what)
    flat = reader.read_array(code, count * 3, what)
    return [tuple(flat[i:i + 3]) for i in range(0, len(flat), 3)]


def write_triangles(writer, triangles, code):
    for tri in triangles:
        if len(tri) != 3:
            raise StructuralError(f"Triangle must have 3 indices, got {len(tri)}")
    writer.write_array(code, [index for tri in triangles for index in tri])
