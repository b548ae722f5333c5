"""Scene tree assembly for CEM files.

A CEM file is a tree of named sub-models. Each node is stored as:

    header, model body (with node name and child count), child nodes...

and the children follow their parent immediately, depth first, each a
complete node of the same revision. The model classes of every revision
(cem_v1, cem_v2, cem_v5) plug into the same Scene code.
"""

import logging
from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

from ..cem_format.cem_constants import (
    DEFAULT_MAX_SCENE_DEPTH, HEADER_LAYOUT_SPLIT, SCENE_ROOT_NAME, SIZE_SCENE_MIN,
)
from ..cem_format.cem_errors import (
    FormatMismatchError, StructuralError, UnsupportedFormatError,
)
from ..cem_format.cem_header import ModelHeader
from ..cem_format.cem_model import CEMModel, NodeData


_log = logging.getLogger("cem_scene")

M = TypeVar("M", bound=CEMModel)


@dataclass
class Scene(Generic[M]):
    """A scene node: a named model owning its child scenes.

    Attributes:
        name: node name ("Scene Root" for the root of most files)
        model: model of one revision (V1Model, V2Model or V5Model)
        children: child scenes, in file order
    """
    name: str
    model: M
    children: List["Scene[M]"] = field(default_factory=list)

    @classmethod
    def root(cls, model):
        """Root node named "Scene Root" with no children."""
        return cls(SCENE_ROOT_NAME, model)

    @classmethod
    def single(cls, name, model):
        """Named node with no children."""
        return cls(name, model)

    @classmethod
    def read(cls, reader, model_cls, max_depth=DEFAULT_MAX_SCENE_DEPTH,
             header_layout=HEADER_LAYOUT_SPLIT, _depth=0):
        """Read a header, check it against model_cls, then read the node.

        Args:
            reader: CEMStreamReader positioned at a node header
            model_cls: model class of the expected revision
            max_depth: deepest nesting accepted before giving up
            header_layout: header shape to read (see cem_header)

        Raises:
            FormatMismatchError: if the header is not model_cls.HEADER
            StructuralError: if nesting exceeds max_depth or a count cannot
                fit in the remaining stream
        """
        header = ModelHeader.read(reader, header_layout)
        if header != model_cls.HEADER:
            raise FormatMismatchError(model_cls.HEADER, header)
        return cls.read_without_header(reader, model_cls, max_depth, header_layout, _depth)

    @classmethod
    def read_without_header(cls, reader, model_cls, max_depth=DEFAULT_MAX_SCENE_DEPTH,
                            header_layout=HEADER_LAYOUT_SPLIT, _depth=0):
        """Read a node whose header has already been consumed and checked."""
        if _depth > max_depth:
            raise StructuralError(f"Scene nesting deeper than {max_depth} levels")

        model, node = model_cls.read(reader)
        _log.debug("Read node %r (depth %d, %d children)",
                   node.name, _depth, node.additional_models)

        scene = cls(node.name, model)
        reader.check_count(node.additional_models, SIZE_SCENE_MIN, "child scene")
        for _ in range(node.additional_models):
            scene.children.append(
                cls.read(reader, model_cls, max_depth, header_layout, _depth + 1)
            )
        return scene

    def write(self, writer):
        """Write this node and all of its children.

        Raises:
            UnsupportedFormatError: if the model revision cannot be written
            StructuralError: if a model breaks a write invariant
        """
        model_cls = type(self.model)
        if not getattr(model_cls, "WRITABLE", False):
            raise UnsupportedFormatError(
                f"{model_cls.__name__} models cannot be written"
            )

        node = NodeData(self.name, len(self.children))
        model_cls.HEADER.write(writer)
        self.model.write(writer, node)

        for child in self.children:
            child.write(writer)

    def walk(self, depth=0):
        """Yield (depth, scene) for this node and every descendant, depth first."""
        yield depth, self
        for child in self.children:
            yield from child.walk(depth + 1)

    def node_count(self):
        return sum(1 for _ in self.walk())

    def find(self, name):
        """First node named `name`, depth first, or None."""
        for _, scene in self.walk():
            if scene.name == name:
                return scene
        return None
