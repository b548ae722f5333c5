"""Cross-check stored frame colliders against recomputed ones.

Revision 2.0 files carry a precomputed radius and AABB per frame. These
were produced with higher precision arithmetic than the float32 used here,
so radii within RADIUS_TOLERANCE are treated as equal.
"""

from dataclasses import dataclass
from typing import List

from ..cem_format.cem_bounds import Collider, ColliderBuilder, colliders_match
from ..cem_format.cem_constants import RADIUS_TOLERANCE
from ..cem_format.cem_v2 import V2Model


@dataclass
class ColliderMismatch:
    """A frame whose stored collider differs from the recomputed one."""
    frame_index: int
    stored: Collider
    computed: Collider

    @property
    def radius_delta(self) -> float:
        return abs(self.stored.radius - self.computed.radius)

    def __str__(self):
        return (
            f"frame {self.frame_index}: stored radius {self.stored.radius:.9g}, "
            f"computed {self.computed.radius:.9g} (delta {self.radius_delta:.3g}); "
            f"stored box {self.stored.aabb.lower}..{self.stored.aabb.upper}, "
            f"computed {self.computed.aabb.lower}..{self.computed.aabb.upper}"
        )


def recompute_collider(model, frame):
    """Collider of one frame's vertex positions around the model center."""
    builder = ColliderBuilder(model.center)
    builder.update_many([v.position for v in frame.vertices])
    return builder.build()


def check_model_colliders(model, tolerance=RADIUS_TOLERANCE) -> List[ColliderMismatch]:
    """Compare every stored frame collider of a V2 model with a recomputed one.

    Returns:
        list of ColliderMismatch, empty when all frames agree
    """
    if not isinstance(model, V2Model):
        raise TypeError(f"Collider check needs a V2Model, got {type(model).__name__}")
    mismatches = []
    for i, frame in enumerate(model.frames):
        computed = recompute_collider(model, frame)
        if not colliders_match(frame.collider, computed, tolerance):
            mismatches.append(ColliderMismatch(i, frame.collider, computed))
    return mismatches


def check_scene_colliders(scene, tolerance=RADIUS_TOLERANCE):
    """Run check_model_colliders over every V2 node of a scene tree.

    Returns:
        list of (node name, ColliderMismatch)
    """
    results = []
    for _, node in scene.walk():
        if isinstance(node.model, V2Model):
            for mismatch in check_model_colliders(node.model, tolerance):
                results.append((node.name, mismatch))
    return results
