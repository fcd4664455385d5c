"""Memory mapper: build an addressable image from a validated ELF container.

All loaded bytes live in a single region.  Every segment (or section) is
rebased by ``base_offset`` so the image sits where the recovery engine
expects it; the same offset is what the address normalizer adds to golden
addresses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Literal, Union

from cfgoracle.arch import AddressWidth
from cfgoracle.binary.container import (
    PF_R,
    PF_W,
    PF_X,
    SHF_EXECINSTR,
    SHF_WRITE,
    ElfContainer,
)
from cfgoracle.errors import MemoryLoadError
from cfgoracle.utils.logging import get_logger

log = get_logger(__name__)

LoadStyle = Literal["segment", "section"]


@dataclass(frozen=True)
class LoadOptions:
    region_index: int = 0
    base_offset: int = 0
    load_style: LoadStyle = "segment"
    include_bss: bool = False


@dataclass(frozen=True)
class MemorySegment:
    base: int
    data: bytes
    flags: int
    file_offset: int
    name: str = ""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.base + len(self.data)

    @property
    def executable(self) -> bool:
        return bool(self.flags & PF_X)

    def contains(self, address: int) -> bool:
        return self.base <= address < self.end


@dataclass(frozen=True)
class SegmentOffset:
    """A location inside a mapped segment."""

    segment: MemorySegment
    offset: int

    @property
    def address(self) -> int:
        return self.segment.base + self.offset


@dataclass(frozen=True)
class MemoryImage:
    width: AddressWidth
    base_offset: int
    region_index: int
    segments: tuple[MemorySegment, ...]

    def resolve(self, address: int) -> SegmentOffset | None:
        for seg in self.segments:
            if seg.contains(address):
                return SegmentOffset(segment=seg, offset=address - seg.base)
        return None

    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes at ``address``; the range must lie in one segment."""
        loc = self.resolve(address)
        if loc is None or loc.offset + size > loc.segment.size:
            raise ValueError(f"0x{address:x}+{size} is not mapped")
        return loc.segment.data[loc.offset : loc.offset + size]

    def executable_ranges(self) -> list[tuple[int, int]]:
        return [(seg.base, seg.end) for seg in self.segments if seg.executable]

    def region_bounds(self) -> tuple[int, int]:
        return self.segments[0].base, max(seg.end for seg in self.segments)

    def __iter__(self) -> Iterator[MemorySegment]:
        return iter(self.segments)


@dataclass(frozen=True)
class MemoryLoaded:
    image: MemoryImage


@dataclass(frozen=True)
class MemoryLoadFailed:
    cause: str


MemoryLoadResult = Union[MemoryLoaded, MemoryLoadFailed]


def memory_for_elf(
    container: ElfContainer, width: AddressWidth, options: LoadOptions
) -> MemoryLoadResult:
    """Map ``container`` into memory; failures are returned, not raised."""
    if options.load_style == "segment":
        pieces = _segment_pieces(container, options)
    else:
        pieces = _section_pieces(container, options)

    if not pieces:
        return MemoryLoadFailed(f"no loadable {options.load_style}s in binary")

    pieces.sort(key=lambda seg: seg.base)
    for seg in pieces:
        if seg.size and not width.fits(seg.end - 1):
            return MemoryLoadFailed(
                f"{seg.name} at 0x{seg.base:x} overflows a {width.bits}-bit address space"
            )
    for prev, cur in zip(pieces, pieces[1:]):
        if cur.base < prev.end:
            return MemoryLoadFailed(
                f"{cur.name} at 0x{cur.base:x} overlaps {prev.name} ending at 0x{prev.end:x}"
            )

    image = MemoryImage(
        width=width,
        base_offset=options.base_offset,
        region_index=options.region_index,
        segments=tuple(pieces),
    )
    log.debug(
        "memory_mapped",
        style=options.load_style,
        segments=len(pieces),
        low=hex(image.region_bounds()[0]),
        high=hex(image.region_bounds()[1]),
    )
    return MemoryLoaded(image)


def _segment_pieces(
    container: ElfContainer, options: LoadOptions
) -> list[MemorySegment]:
    pieces: list[MemorySegment] = []
    for seg in container.load_segments:
        data = seg.data
        if options.include_bss and seg.memsz > seg.filesz:
            data = data + bytes(seg.memsz - seg.filesz)
        if not data:
            continue
        pieces.append(
            MemorySegment(
                base=seg.vaddr + options.base_offset,
                data=data,
                flags=seg.flags,
                file_offset=seg.offset,
                name=f"segment{seg.index}",
            )
        )
    return pieces


def _section_pieces(
    container: ElfContainer, options: LoadOptions
) -> list[MemorySegment]:
    pieces: list[MemorySegment] = []
    for sec in container.sections:
        if not sec.allocated or sec.size == 0:
            continue
        if sec.nobits:
            if not options.include_bss:
                continue
            data = bytes(sec.size)
        else:
            data = sec.data
        flags = PF_R
        if sec.flags & SHF_WRITE:
            flags |= PF_W
        if sec.flags & SHF_EXECINSTR:
            flags |= PF_X
        pieces.append(
            MemorySegment(
                base=sec.addr + options.base_offset,
                data=data,
                flags=flags,
                file_offset=sec.offset,
                name=sec.name or f"section{sec.index}",
            )
        )
    return pieces


def require_memory(
    container: ElfContainer, width: AddressWidth, options: LoadOptions
) -> MemoryImage:
    """Like :func:`memory_for_elf` but raises :class:`MemoryLoadError` on failure."""
    result = memory_for_elf(container, width, options)
    if isinstance(result, MemoryLoadFailed):
        raise MemoryLoadError(result.cause)
    return result.image
