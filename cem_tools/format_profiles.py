"""Registry of the CEM format revisions and codec configuration.

Each supported revision has a FormatProfile naming its header, the model
class that decodes it, and whether it can be read and written. The header
dispatcher looks revisions up here; there is no fallback between them.

Adding a revision:
    1. Write a model class with HEADER, WRITABLE, read() and write()
       (see cem_format.cem_model)
    2. Call register_profile() with a FormatProfile for it
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .cem_format.cem_constants import (
    DEFAULT_MAX_SCENE_DEPTH, HEADER_LAYOUT_SPLIT, HEADER_LAYOUT_PACKED,
)
from .cem_format.cem_errors import FormatMismatchError
from .cem_format.cem_header import ModelHeader
from .cem_format.cem_v1 import V1Model
from .cem_format.cem_v2 import V2Model
from .cem_format.cem_v5 import V5Model


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class CodecConfig:
    """Settings applied to every decode call.

    max_scene_depth bounds the nesting of child scenes; check_counts makes
    the reader reject element counts that cannot fit in the remaining
    stream before allocating for them (seekable streams only).
    """

    max_scene_depth: int = DEFAULT_MAX_SCENE_DEPTH
    check_counts: bool = True

    # Header shape: "split" (u16 major, u16 minor) or "packed" (u32 version)
    header_layout: str = HEADER_LAYOUT_SPLIT

    def __post_init__(self):
        if self.header_layout not in (HEADER_LAYOUT_SPLIT, HEADER_LAYOUT_PACKED):
            raise ValueError(f"Unknown header layout: {self.header_layout!r}")
        if self.max_scene_depth < 0:
            raise ValueError("max_scene_depth must not be negative")

    @classmethod
    def from_env(cls, environ=None):
        """Build a config from CEM_MAX_SCENE_DEPTH / CEM_CHECK_COUNTS."""
        environ = os.environ if environ is None else environ
        config = cls()
        if environ.get("CEM_MAX_SCENE_DEPTH"):
            config.max_scene_depth = int(environ["CEM_MAX_SCENE_DEPTH"])
        if environ.get("CEM_CHECK_COUNTS", "") == "0":
            config.check_counts = False
        return config


DEFAULT_CONFIG = CodecConfig()


# ---------------------------------------------------------------------------
# Format profiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FormatProfile:
    """One on-disk revision of the CEM format."""

    name: str
    header: ModelHeader
    model_class: type
    readable: bool = True
    writable: bool = False
    description: str = ""

    @property
    def revision(self) -> Tuple[int, int]:
        return self.header.revision


FORMAT_PROFILES: Dict[str, FormatProfile] = {}


def register_profile(profile: FormatProfile) -> None:
    """Register a format profile in the global registry."""
    FORMAT_PROFILES[profile.name] = profile


def get_profile(name: str) -> Optional[FormatProfile]:
    """Look up a profile by its name ("v1", "v2", "v5")."""
    return FORMAT_PROFILES.get(name)


def get_profile_items() -> List[Tuple[str, str, str]]:
    """Return (identifier, label, description) tuples, e.g. for CLI help."""
    return [
        (name, f"SSMF v{prof.header.major}.{prof.header.minor}", prof.description)
        for name, prof in FORMAT_PROFILES.items()
    ]


def known_headers() -> Tuple[ModelHeader, ...]:
    return tuple(prof.header for prof in FORMAT_PROFILES.values())


def profile_for_header(header: ModelHeader) -> FormatProfile:
    """Select the profile whose header matches exactly.

    Raises:
        FormatMismatchError: if no registered revision has this header
    """
    for profile in FORMAT_PROFILES.values():
        if profile.header == header:
            return profile
    raise FormatMismatchError(known_headers(), header)


def profile_for_model(model) -> FormatProfile:
    """Profile of an in-memory model instance."""
    for profile in FORMAT_PROFILES.values():
        if isinstance(model, profile.model_class):
            return profile
    raise TypeError(f"Not a CEM model: {type(model).__name__}")


# ---------------------------------------------------------------------------
# Built-in revisions
# ---------------------------------------------------------------------------

register_profile(FormatProfile(
    name="v1",
    header=V1Model.HEADER,
    model_class=V1Model,
    readable=True,
    writable=False,
    description="Legacy revision with deduplicated vertex points (read only)",
))

register_profile(FormatProfile(
    name="v2",
    header=V2Model.HEADER,
    model_class=V2Model,
    readable=True,
    writable=True,
    description="Native revision with LOD levels and per-frame colliders",
))

register_profile(FormatProfile(
    name="v5",
    header=V5Model.HEADER,
    model_class=V5Model,
    readable=True,
    writable=False,
    description="Late revision; frame layout not understood (partial read)",
))
