"""Default configuration values and paths."""

from __future__ import annotations

from pathlib import Path

CONFIG_FILE_NAMES = [
    "cfgoracle.yaml",
    "cfgoracle.yml",
    ".cfgoracle.yaml",
    ".cfgoracle.yml",
]

CONFIG_SEARCH_PATHS = [
    Path.cwd(),
    Path.home() / ".config" / "cfgoracle",
    Path.home(),
]

# Position-independent fixtures link near address zero, where small stack
# offsets look like code pointers to the engine's abstract interpreter.
# Loading the image this far up keeps the two ranges apart.
DEFAULT_LOAD_OFFSET = 0x400000

DEFAULT_ARCHITECTURE = "x86_64-linux"
DEFAULT_EXPECTED_SUFFIX = ".expected"
DEFAULT_BINARY_SUFFIX = ".exe"
DEFAULT_REGION_INDEX = 0
