"""Shared test fixtures: a tiny ELF writer and a scripted recovery engine."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Mapping, Sequence

import pytest

from cfgoracle.binary.container import PF_R, PF_W, PF_X
from cfgoracle.config.models import OracleConfig
from cfgoracle.discovery.model import DiscoveredFunction, ParsedBlock, TerminatorKind

EM_386 = 3
EM_X86_64 = 62
EM_AARCH64 = 183
ET_DYN = 3

# xor edi, edi ; ret
RET_CODE = bytes.fromhex("31ff" "c3") + bytes(13)  # padded to 16 bytes


@dataclass(frozen=True)
class SegmentSpec:
    vaddr: int
    data: bytes
    flags: int = PF_R | PF_X
    bss: int = 0
    name: str = ".text"


def _pad(buf: bytearray, align: int) -> None:
    buf += bytes(-len(buf) % align)


def build_elf64(
    segments: Sequence[SegmentSpec],
    entry: int,
    machine: int = EM_X86_64,
    with_sections: bool = True,
) -> bytes:
    """Assemble a little-endian ELF64 image with one PT_LOAD per segment."""
    phnum = len(segments)
    data_start = 64 + 56 * phnum
    data_start += -data_start % 0x10

    body = bytearray()
    placed: list[tuple[SegmentSpec, int]] = []
    for seg in segments:
        placed.append((seg, data_start + len(body)))
        body += seg.data
        _pad(body, 0x10)

    shoff = shnum = shstrndx = 0
    shdrs = b""
    if with_sections:
        names = bytearray(b"\0")
        entries = []
        for seg, offset in placed:
            flags = 0x2 | (0x4 if seg.flags & PF_X else 0) | (0x1 if seg.flags & PF_W else 0)
            entries.append((len(names), 1, flags, seg.vaddr, offset, len(seg.data)))
            names += seg.name.encode() + b"\0"
            if seg.bss:
                bss_addr = seg.vaddr + len(seg.data)
                entries.append((len(names), 8, 0x3, bss_addr, offset + len(seg.data), seg.bss))
                names += b".bss\0"
        shstrtab_name = len(names)
        names += b".shstrtab\0"
        entries.append((shstrtab_name, 3, 0, 0, data_start + len(body), len(names)))
        body += names
        _pad(body, 8)
        shoff = data_start + len(body)
        shnum = len(entries) + 1
        shstrndx = shnum - 1
        shdrs = bytes(64) + b"".join(
            struct.pack("<IIQQQQIIQQ", name, sh_type, flags, addr, offset, size, 0, 0, 1, 0)
            for name, sh_type, flags, addr, offset, size in entries
        )

    ident = b"\x7fELF" + bytes([2, 1, 1, 0]) + bytes(8)
    ehdr = ident + struct.pack(
        "<HHIQQQIHHHHHH",
        ET_DYN, machine, 1, entry, 64, shoff, 0, 64, 56, phnum, 64, shnum, shstrndx,
    )
    phdrs = b"".join(
        struct.pack(
            "<IIQQQQQQ",
            1, seg.flags, offset, seg.vaddr, seg.vaddr,
            len(seg.data), len(seg.data) + seg.bss, 0x1000,
        )
        for seg, offset in placed
    )
    header = ehdr + phdrs
    header += bytes(data_start - len(header))
    return bytes(header) + bytes(body) + shdrs


def build_elf32(entry: int = 0x1000) -> bytes:
    """A header-only i386 ELF32 image."""
    ident = b"\x7fELF" + bytes([1, 1, 1, 0]) + bytes(8)
    ehdr = ident + struct.pack(
        "<HHIIIIIHHHHHH", ET_DYN, EM_386, 1, entry, 0, 0, 0, 52, 32, 0, 40, 0, 0
    )
    return ehdr + bytes(64)


def block(address: int, size: int, kind: TerminatorKind = TerminatorKind.RETURN) -> ParsedBlock:
    return ParsedBlock(address=address, size=size, terminator=kind)


def function(address: int, *blocks: ParsedBlock) -> DiscoveredFunction:
    return DiscoveredFunction(address=address, blocks={b.address: b for b in blocks})


def functions(*funcs: DiscoveredFunction) -> dict[int, DiscoveredFunction]:
    return {f.address: f for f in funcs}


class ScriptedEngine:
    """Recovery engine stand-in that returns a fixed result and records calls."""

    def __init__(self, result: Mapping[int, DiscoveredFunction] | None = None) -> None:
        self.result = result if result is not None else {}
        self.calls: list[dict] = []

    def discover(self, arch, memory, seed_functions, seed_addresses, hints):
        self.calls.append(
            {
                "arch": arch,
                "memory": memory,
                "seed_functions": dict(seed_functions),
                "seed_addresses": list(seed_addresses),
                "hints": list(hints),
            }
        )
        return self.result


@pytest.fixture
def config() -> OracleConfig:
    return OracleConfig()


@pytest.fixture
def simple_elf() -> bytes:
    """One executable segment at 0x1000 holding a 16-byte function."""
    return build_elf64([SegmentSpec(vaddr=0x1000, data=RET_CODE)], entry=0x1000)


@pytest.fixture
def fixture_pair(tmp_path, simple_elf):
    """Write ``name.expected`` / ``name.exe`` and return the golden path."""

    def _write(golden_text: str, name: str = "simple", binary: bytes | None = None):
        expected = tmp_path / f"{name}.expected"
        expected.write_text(golden_text)
        (tmp_path / f"{name}.exe").write_bytes(simple_elf if binary is None else binary)
        return expected

    return _write


SIMPLE_GOLDEN = "funcs:\n  - [0x1000, [[0x1000, 16]]]\nignoreBlocks: []\n"


# Markers
def pytest_configure(config):
    config.addinivalue_line("markers", "integration: runs the angr recovery engine end to end")
