"""Conversion between raw (as-linked) and runtime (as-loaded) addresses."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from cfgoracle.arch import ADDR64, AddressWidth
from cfgoracle.config.defaults import DEFAULT_LOAD_OFFSET
from cfgoracle.verification.golden import ExpectedResult


@dataclass(frozen=True)
class AddressNormalizer:
    """Adds or removes the load offset, wrapping at the address width."""

    load_offset: int = DEFAULT_LOAD_OFFSET
    width: AddressWidth = ADDR64

    def __post_init__(self) -> None:
        if not self.width.fits(self.load_offset):
            raise ValueError(
                f"load offset 0x{self.load_offset:x} exceeds {self.width.bits}-bit addresses"
            )

    def to_runtime(self, raw: int) -> int:
        return (raw + self.load_offset) & self.width.mask

    def to_raw(self, runtime: int) -> int:
        return (runtime - self.load_offset) & self.width.mask

    def normalize(self, expected: ExpectedResult) -> NormalizedExpectations:
        """Move every golden address into runtime space, exactly once."""
        entries = {
            self.to_runtime(func.entry): frozenset(
                (self.to_runtime(start), size) for start, size in func.blocks
            )
            for func in expected.functions()
        }
        return NormalizedExpectations(
            entries=MappingProxyType(entries),
            ignored=frozenset(self.to_runtime(addr) for addr in expected.ignore_blocks),
            normalizer=self,
        )


@dataclass(frozen=True)
class NormalizedExpectations:
    """Golden results in runtime address space.

    Only :meth:`AddressNormalizer.normalize` builds these, and it only takes
    an :class:`ExpectedResult`, so an address cannot be offset twice.
    """

    entries: Mapping[int, frozenset[tuple[int, int]]]
    ignored: frozenset[int]
    normalizer: AddressNormalizer

    def expected_entry_set(self) -> frozenset[int]:
        return frozenset(self.entries) - self.ignored

    def raw(self, runtime: int) -> int:
        return self.normalizer.to_raw(runtime)
