"""cemconv: convert between CEM and OBJ.

Usage:
    cemconv -i model.cem                    # CEM -> OBJ on stdout
    cemconv -i model.cem out.obj
    cemconv -i mesh.obj out.cem --to cem
    cemconv -i model.cem copy.cem --to cem  # re-encode (v2 only)

The source format comes from the input extension unless --from is given.
Set CEM_DEBUG=1 (or pass -v) for debug logging.
"""

import argparse
import dataclasses
import logging
import os
import sys

from .cem_format.cem_errors import CEMError
from .cem_format.cem_reader import read_scene
from .cem_format.cem_writer import encode_scene
from .exporter.obj_export import export_obj_string
from .format_profiles import CodecConfig, get_profile_items
from .importer.obj_import import import_obj_stream


_log = logging.getLogger("cem_cli")

FORMAT_CEM = "cem"
FORMAT_OBJ = "obj"
FORMATS = (FORMAT_CEM, FORMAT_OBJ)


def configure_logging(verbose=False):
    """Log to stderr; debug level with verbose or CEM_DEBUG=1."""
    debug = verbose or os.environ.get("CEM_DEBUG", "") == "1"
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def guess_format(path):
    ext = os.path.splitext(path)[1].lower()
    if ext == ".obj":
        return FORMAT_OBJ
    return FORMAT_CEM


def load_scene(path, source_format, config):
    """Read a scene tree from a CEM or OBJ file."""
    with open(path, "rb") as f:
        if source_format == FORMAT_OBJ:
            return import_obj_stream(f)
        profile, scene = read_scene(f, config=config)
        _log.debug("Read %s as %s", path, profile.name)
        return scene


def convert(scene, target_format):
    """Encode a scene tree in the target format; returns bytes."""
    if target_format == FORMAT_CEM:
        return encode_scene(scene)
    return export_obj_string(scene).encode("utf-8")


def build_parser():
    revisions = ", ".join(f"{name}: {label}" for name, label, _ in get_profile_items())
    parser = argparse.ArgumentParser(
        prog="cemconv",
        description="Convert CEM model files to and from OBJ.",
        epilog=f"CEM revisions: {revisions}. Only v2 can be written.",
    )
    parser.add_argument("-i", "--input", required=True, help="Input file to convert")
    parser.add_argument("output", nargs="?", default=None,
                        help="Output file, default is stdout")
    parser.add_argument("-t", "--to", dest="target", choices=FORMATS, default=FORMAT_OBJ,
                        help="Target format (default: obj)")
    parser.add_argument("-s", "--from", dest="source", choices=FORMATS, default=None,
                        help="Source format (default: from the input extension)")
    parser.add_argument("--max-depth", type=int, default=None,
                        help="Deepest sub-model nesting to accept")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    config = CodecConfig.from_env()
    if args.max_depth is not None:
        try:
            config = dataclasses.replace(config, max_scene_depth=args.max_depth)
        except ValueError as e:
            parser.error(str(e))
    source = args.source or guess_format(args.input)

    try:
        scene = load_scene(args.input, source, config)
        data = convert(scene, args.target)
    except (CEMError, OSError) as e:
        _log.error("%s: %s", args.input, e)
        return 1

    if args.output is None:
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
    else:
        with open(args.output, "wb") as f:
            f.write(data)
        _log.info("Wrote %s (%d bytes)", args.output, len(data))
    return 0


if __name__ == "__main__":
    sys.exit(main())
