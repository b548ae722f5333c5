"""Reader and writer for CEM (SSMF) game model files.

Supports revisions 1.3 (read only), 2.0 (read and write) and 5.0 (partial
read), assembles the nested sub-models of a file into a Scene tree, and
converts revision 2.0 models to and from OBJ.
"""

__version__ = "0.3.0"

from .cem_format.cem_errors import (
    CEMError, TransportError, FormatMismatchError, StructuralError, UnsupportedFormatError,
)
from .cem_format.cem_reader import CEMReader, read_scene, detect_header
from .cem_format.cem_writer import CEMWriter, encode_scene, write_scene
from .format_profiles import CodecConfig, get_profile
from .scene_graph.sg_scene import Scene
