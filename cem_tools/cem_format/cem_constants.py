"""Constants for the CEM (SSMF) binary model format."""

# Magic FourCC "SSMF" read as a little-endian uint32
SSMF_MAGIC = 0x464D5353

# Header: magic(u32) + major(u16) + minor(u16)
HEADER_SIZE = 8

# Header shapes. Revision 1 files store a single u32 version in place of
# major/minor; the bytes are identical, only the interpretation differs.
HEADER_LAYOUT_SPLIT = "split"
HEADER_LAYOUT_PACKED = "packed"

# Known revisions as (major, minor)
VERSION_V1 = (1, 3)
VERSION_V2 = (2, 0)
VERSION_V5 = (5, 0)

# Largest value a u32 length prefix can carry
MAX_U32 = 0xFFFFFFFF

# Matrix44f: 16 floats
MATRIX_FLOATS = 16

# Minimum on-disk sizes, used to reject counts that cannot fit in the
# remaining stream before anything is allocated.
SIZE_U8 = 1
SIZE_U16 = 2
SIZE_U32 = 4
SIZE_F32 = 4
SIZE_VEC3 = 12
SIZE_MATRIX = MATRIX_FLOATS * 4
SIZE_AABB = 2 * SIZE_VEC3
SIZE_STRING_MIN = 4             # empty string: only the length prefix
SIZE_SELECTION = 8              # offset(u32) + length(u32)

SIZE_V2_VERTEX = 32             # position(3f) + normal(3f) + texcoord(2f)
SIZE_V2_TRIANGLE = 12           # 3 x u32
SIZE_V5_TRIANGLE = 6            # 3 x u16
SIZE_V1_VERTEX = 40             # u32 + uv(2f) + rgb(3f) + 4f
SIZE_V5_COMMON_VERTEX = 68      # 16f + i32
SIZE_V5_SHADOW_EDGE = 12        # u32 + 4 x u16

# Smallest possible child scene: header + quantities + empty name + center
SIZE_SCENE_MIN = HEADER_SIZE + 7 * SIZE_U32 + SIZE_STRING_MIN + SIZE_VEC3

# Default recursion bound for nested scenes
DEFAULT_MAX_SCENE_DEPTH = 64

# Name given to the root node of single-model scenes
SCENE_ROOT_NAME = "Scene Root"

# Radius drift tolerated when cross-checking stored colliders against
# colliders recomputed in single precision
RADIUS_TOLERANCE = 5e-7
