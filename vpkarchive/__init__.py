"""
vpkarchive: reader and writer for VPK packed-asset archives.

Features:

- Version 1 and version 2 directory headers (``*_dir.vpk``).
- Tree decoding into a flat path -> entry map, including inline preload data.
- Payload resolution across the directory file and numbered segment files
  (``*_000.vpk``, ``*_001.vpk``, ...), with CRC-32 verification of every file read.
- Building version 1 single-file archives from a directory tree.

The command-line front end lives in vpkarchive.cli (``vpkarchive`` console script).
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "errors",
    "header",
    "tree",
    "locator",
    "reader",
    "writer",
]
