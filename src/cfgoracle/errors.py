"""Exception hierarchy for fixture-level (fatal) problems."""

from __future__ import annotations


class OracleError(Exception):
    """Base class for all cfgoracle errors."""


class ConfigError(OracleError):
    """Configuration could not be loaded or validated."""


class FixtureError(OracleError):
    """A broken fixture; aborts the fixture's test unit immediately."""


class InvalidExpectedResult(FixtureError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"invalid expected result: {detail}")
        self.detail = detail


class ElfFormatError(FixtureError):
    """Malformed ELF header or container-level parse errors."""


class UnsupportedBinaryError(FixtureError):
    """Well-formed ELF this oracle does not handle (32-bit, non-x86-64)."""


class MemoryLoadError(FixtureError):
    def __init__(self, cause: str) -> None:
        super().__init__(f"memory load failed: {cause}")
        self.cause = cause


class EntryPointUnmappedError(FixtureError):
    def __init__(self, address: int) -> None:
        super().__init__(f"entry point 0x{address:x} is not in any mapped segment")
        self.address = address
