"""Frozen dataclasses describing a parsed ELF container."""

from __future__ import annotations

from dataclasses import dataclass

PF_X = 0x1
PF_W = 0x2
PF_R = 0x4

SHF_WRITE = 0x1
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4


@dataclass(frozen=True)
class ElfSegment:
    index: int
    p_type: str
    vaddr: int
    offset: int
    filesz: int
    memsz: int
    flags: int
    data: bytes = b""

    @property
    def is_load(self) -> bool:
        return self.p_type == "PT_LOAD"

    @property
    def executable(self) -> bool:
        return bool(self.flags & PF_X)


@dataclass(frozen=True)
class ElfSection:
    index: int
    name: str
    sh_type: str
    addr: int
    offset: int
    size: int
    flags: int
    data: bytes = b""

    @property
    def allocated(self) -> bool:
        return bool(self.flags & SHF_ALLOC)

    @property
    def nobits(self) -> bool:
        return self.sh_type == "SHT_NOBITS"


@dataclass(frozen=True)
class ElfContainer:
    """A validated ELF image, copied out of the parser so no stream stays open."""

    elfclass: int
    machine: str
    file_type: str
    entry: int
    little_endian: bool = True
    segments: tuple[ElfSegment, ...] = ()
    sections: tuple[ElfSection, ...] = ()

    @property
    def load_segments(self) -> tuple[ElfSegment, ...]:
        return tuple(seg for seg in self.segments if seg.is_load)
