"""Directory report: per-file CEM revision and decode diagnostics.

Walks a directory, dispatches every file on its header and prints one line
per file:

    path: not a CEM model (magic 0x...)
    path: unknown revision 3.1
    path: v2 ok, 4 nodes, 2 collider mismatches, 1 range problems
    path: v5 unsupported (CEM v5.0 frame body layout is not understood ...)
    path: v2 error (Unexpected end of stream ...)

Usage:
    cem-report path/to/models [--recursive] [--pattern *.cem]
"""

import argparse
import fnmatch
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from ..cem_format.cem_errors import CEMError, UnsupportedFormatError
from ..cem_format.cem_header import ModelHeader
from ..cem_format.cem_reader import read_scene
from ..cem_format.cem_v2 import V2Model
from ..cli import configure_logging
from ..format_profiles import CodecConfig, FORMAT_PROFILES, profile_for_header
from .collider_check import check_scene_colliders


_log = logging.getLogger("cem_report")

STATUS_OK = "ok"
STATUS_NOT_CEM = "not-cem"
STATUS_UNKNOWN_REVISION = "unknown-revision"
STATUS_UNSUPPORTED = "unsupported"
STATUS_ERROR = "error"


@dataclass
class FileReport:
    path: str
    status: str
    header: Optional[ModelHeader] = None
    revision: Optional[str] = None
    node_count: int = 0
    collider_mismatches: List[str] = field(default_factory=list)
    range_problems: List[str] = field(default_factory=list)
    message: str = ""

    def summary(self):
        if self.status == STATUS_NOT_CEM:
            magic = f"0x{self.header.magic:08X}" if self.header else "unreadable"
            return f"{self.path}: not a CEM model (magic {magic})"
        if self.status == STATUS_UNKNOWN_REVISION:
            return f"{self.path}: unknown revision {self.header.major}.{self.header.minor}"
        if self.status == STATUS_OK:
            return (
                f"{self.path}: {self.revision} ok, {self.node_count} nodes, "
                f"{len(self.collider_mismatches)} collider mismatches, "
                f"{len(self.range_problems)} range problems"
            )
        return f"{self.path}: {self.revision or '?'} {self.status} ({self.message})"


def report_file(path, config=None):
    """Diagnose a single file.

    Never raises for bad file contents; I/O errors opening the file
    propagate.
    """
    config = config or CodecConfig()
    with open(path, "rb") as f:
        data = f.read()

    if len(data) < 8:
        return FileReport(path, STATUS_NOT_CEM, message="file shorter than a header")

    header = ModelHeader.parse(data, config.header_layout)
    if not header.has_valid_magic:
        return FileReport(path, STATUS_NOT_CEM, header=header)

    try:
        profile = profile_for_header(header)
    except CEMError:
        return FileReport(path, STATUS_UNKNOWN_REVISION, header=header)

    report = FileReport(path, STATUS_OK, header=header, revision=profile.name)
    try:
        _, scene = read_scene(data, profile.name, config)
    except UnsupportedFormatError as e:
        report.status = STATUS_UNSUPPORTED
        report.message = str(e)
        return report
    except CEMError as e:
        report.status = STATUS_ERROR
        report.message = str(e)
        return report

    report.node_count = scene.node_count()
    for name, mismatch in check_scene_colliders(scene):
        report.collider_mismatches.append(f"{name}: {mismatch}")
    for _, node in scene.walk():
        if isinstance(node.model, V2Model):
            report.range_problems.extend(
                f"{node.name}: {problem}" for problem in node.model.validate_ranges()
            )
    return report


def iter_files(root, recursive=False, pattern="*"):
    """Yield file paths under root in sorted order."""
    if os.path.isfile(root):
        yield root
        return
    if recursive:
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for name in sorted(filenames):
                if fnmatch.fnmatch(name, pattern):
                    yield os.path.join(dirpath, name)
    else:
        for name in sorted(os.listdir(root)):
            path = os.path.join(root, name)
            if os.path.isfile(path) and fnmatch.fnmatch(name, pattern):
                yield path


def run_report(root, recursive=False, pattern="*", config=None, verbose=False, out=None):
    """Report every file under root; returns the list of FileReport."""
    out = out or sys.stdout
    reports = []
    for path in iter_files(root, recursive, pattern):
        report = report_file(path, config)
        reports.append(report)
        print(report.summary(), file=out)
        if verbose:
            for line in report.collider_mismatches + report.range_problems:
                print(f"    {line}", file=out)

    counts = {}
    for report in reports:
        counts[report.status] = counts.get(report.status, 0) + 1
    _log.info("Scanned %d files: %s", len(reports), counts)
    return reports


def build_parser():
    parser = argparse.ArgumentParser(
        prog="cem-report",
        description="Print per-file CEM revision and decode diagnostics.",
        epilog="Known revisions: " + ", ".join(
            f"{name} ({prof.header.major}.{prof.header.minor})"
            for name, prof in FORMAT_PROFILES.items()
        ),
    )
    parser.add_argument("directory", help="Directory (or single file) to scan")
    parser.add_argument("-r", "--recursive", action="store_true",
                        help="Descend into subdirectories")
    parser.add_argument("-p", "--pattern", default="*",
                        help="Only report file names matching this glob (default: all)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="List every collider mismatch and range problem")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    if not os.path.exists(args.directory):
        _log.error("No such file or directory: %s", args.directory)
        return 1
    reports = run_report(args.directory, args.recursive, args.pattern,
                         CodecConfig.from_env(), args.verbose)
    failed = sum(1 for r in reports if r.status == STATUS_ERROR)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
