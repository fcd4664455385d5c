"""Tests for ELF parsing and fixture-binary validation."""

import pytest
from conftest import EM_AARCH64, RET_CODE, SegmentSpec, build_elf32, build_elf64

from cfgoracle.binary.container import PF_R, PF_W
from cfgoracle.binary.elf_loader import (
    Elf32Result,
    Elf64Result,
    ElfHeaderFailure,
    load_binary,
    parse_elf,
)
from cfgoracle.errors import ElfFormatError, FixtureError, UnsupportedBinaryError


def test_parse_64_bit(simple_elf):
    result = parse_elf(simple_elf)
    assert isinstance(result, Elf64Result)
    assert result.errors == ()

    container = result.container
    assert container.elfclass == 64
    assert container.machine == "EM_X86_64"
    assert container.file_type == "ET_DYN"
    assert container.entry == 0x1000
    (seg,) = container.load_segments
    assert seg.vaddr == 0x1000
    assert seg.data == RET_CODE
    assert seg.executable
    assert ".text" in [s.name for s in container.sections]


def test_parse_bad_magic():
    result = parse_elf(b"MZ\x90\x00" + bytes(60))
    assert isinstance(result, ElfHeaderFailure)
    assert "Magic" in result.message


def test_parse_32_bit():
    result = parse_elf(build_elf32())
    assert isinstance(result, Elf32Result)
    assert result.container.elfclass == 32


def test_truncated_segment_collected_as_error():
    data = build_elf64([SegmentSpec(0x1000, RET_CODE)], entry=0x1000, with_sections=False)
    result = parse_elf(data[:-8])
    assert isinstance(result, Elf64Result)
    assert len(result.errors) == 1
    assert "exceeds file size" in result.errors[0]


def test_bss_sections_have_no_data():
    data = build_elf64(
        [SegmentSpec(0x1000, RET_CODE), SegmentSpec(0x2000, b"\x01" * 8, PF_R | PF_W, bss=0x20, name=".data")],
        entry=0x1000,
    )
    container = parse_elf(data).container
    bss = next(s for s in container.sections if s.name == ".bss")
    assert bss.nobits
    assert bss.size == 0x20
    assert bss.data == b""
    data_seg = container.load_segments[1]
    assert (data_seg.filesz, data_seg.memsz) == (8, 0x28)


def test_load_binary(tmp_path, simple_elf):
    path = tmp_path / "simple.exe"
    path.write_bytes(simple_elf)
    container = load_binary(path)
    assert container.entry == 0x1000


def test_load_binary_rejects_header_error(tmp_path):
    path = tmp_path / "junk.exe"
    path.write_bytes(b"not an elf at all")
    with pytest.raises(ElfFormatError, match="Error parsing ELF header at offset 0"):
        load_binary(path)


def test_load_binary_rejects_elf32(tmp_path):
    path = tmp_path / "x86.exe"
    path.write_bytes(build_elf32())
    with pytest.raises(UnsupportedBinaryError, match="ELF32 is unsupported"):
        load_binary(path)


def test_load_binary_rejects_other_machines(tmp_path):
    path = tmp_path / "arm.exe"
    path.write_bytes(build_elf64([SegmentSpec(0x1000, RET_CODE)], entry=0x1000, machine=EM_AARCH64))
    with pytest.raises(UnsupportedBinaryError, match="EM_AARCH64"):
        load_binary(path)


def test_load_binary_rejects_parse_errors(tmp_path):
    data = build_elf64([SegmentSpec(0x1000, RET_CODE)], entry=0x1000, with_sections=False)
    path = tmp_path / "short.exe"
    path.write_bytes(data[:-8])
    with pytest.raises(ElfFormatError, match="Errors while parsing ELF file"):
        load_binary(path)


def test_load_binary_missing_file(tmp_path):
    with pytest.raises(FixtureError, match="cannot read binary"):
        load_binary(tmp_path / "missing.exe")
