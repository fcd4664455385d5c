"""Binary loader: pyelftools parsing with fatal rejection of unusable fixtures."""

from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from cfgoracle.arch import X86_64_LINUX, ArchitectureInfo
from cfgoracle.binary.container import ElfContainer, ElfSection, ElfSegment
from cfgoracle.errors import ElfFormatError, FixtureError, UnsupportedBinaryError
from cfgoracle.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ElfHeaderFailure:
    offset: int
    message: str


@dataclass(frozen=True)
class Elf32Result:
    errors: tuple[str, ...]
    container: ElfContainer


@dataclass(frozen=True)
class Elf64Result:
    errors: tuple[str, ...]
    container: ElfContainer


ParseResult = Union[ElfHeaderFailure, Elf32Result, Elf64Result]


def parse_elf(data: bytes) -> ParseResult:
    """Parse raw bytes into one of the three parse outcomes.

    Header problems short-circuit.  Problems found while walking program and
    section headers are collected so the caller sees all of them at once.
    """
    try:
        elf = ELFFile(io.BytesIO(data))
        header = elf.header
        elfclass = elf.elfclass
    except ELFError as exc:
        return ElfHeaderFailure(offset=0, message=str(exc))

    errors: list[str] = []
    segments = _read_segments(elf, data, errors)
    sections = _read_sections(elf, data, errors)

    container = ElfContainer(
        elfclass=elfclass,
        machine=str(header["e_machine"]),
        file_type=str(header["e_type"]),
        entry=header["e_entry"],
        little_endian=elf.little_endian,
        segments=tuple(segments),
        sections=tuple(sections),
    )
    if elfclass == 32:
        return Elf32Result(errors=tuple(errors), container=container)
    return Elf64Result(errors=tuple(errors), container=container)


def _read_segments(elf: ELFFile, data: bytes, errors: list[str]) -> list[ElfSegment]:
    segments: list[ElfSegment] = []
    try:
        for index, seg in enumerate(elf.iter_segments()):
            offset, filesz, memsz = seg["p_offset"], seg["p_filesz"], seg["p_memsz"]
            if offset + filesz > len(data):
                errors.append(
                    f"segment {index}: file range 0x{offset:x}+0x{filesz:x} "
                    f"exceeds file size 0x{len(data):x}"
                )
                continue
            if seg["p_type"] == "PT_LOAD" and filesz > memsz:
                errors.append(f"segment {index}: p_filesz 0x{filesz:x} > p_memsz 0x{memsz:x}")
                continue
            segments.append(
                ElfSegment(
                    index=index,
                    p_type=str(seg["p_type"]),
                    vaddr=seg["p_vaddr"],
                    offset=offset,
                    filesz=filesz,
                    memsz=memsz,
                    flags=seg["p_flags"],
                    data=data[offset : offset + filesz],
                )
            )
    except ELFError as exc:
        errors.append(f"program headers: {exc}")
    return segments


def _read_sections(elf: ELFFile, data: bytes, errors: list[str]) -> list[ElfSection]:
    sections: list[ElfSection] = []
    try:
        for index, sec in enumerate(elf.iter_sections()):
            nobits = sec["sh_type"] == "SHT_NOBITS"
            offset, size = sec["sh_offset"], sec["sh_size"]
            if not nobits and offset + size > len(data):
                errors.append(f"section {index} ({sec.name}): data exceeds file size")
                continue
            sections.append(
                ElfSection(
                    index=index,
                    name=sec.name,
                    sh_type=str(sec["sh_type"]),
                    addr=sec["sh_addr"],
                    offset=offset,
                    size=size,
                    flags=sec["sh_flags"],
                    data=b"" if nobits else data[offset : offset + size],
                )
            )
    except ELFError as exc:
        errors.append(f"section headers: {exc}")
    return sections


def load_binary(path: str | Path, arch: ArchitectureInfo = X86_64_LINUX) -> ElfContainer:
    """Read and validate a 64-bit fixture binary, raising on anything unusable."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise FixtureError(f"cannot read binary {path}: {exc}") from exc

    result = parse_elf(data)
    if isinstance(result, ElfHeaderFailure):
        raise ElfFormatError(
            f"Error parsing ELF header at offset {result.offset}: {result.message}"
        )
    if result.errors:
        raise ElfFormatError(f"Errors while parsing ELF file: {list(result.errors)}")
    if isinstance(result, Elf32Result):
        raise UnsupportedBinaryError("ELF32 is unsupported in the test suite")

    container = result.container
    if container.machine != arch.elf_machine:
        raise UnsupportedBinaryError(
            f"{path}: machine {container.machine} is not supported (expected {arch.elf_machine})"
        )

    log.debug(
        "elf_loaded",
        path=str(path),
        entry=hex(container.entry),
        segments=len(container.segments),
        sections=len(container.sections),
    )
    return container
