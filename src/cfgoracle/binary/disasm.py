"""Capstone listing of mapped blocks, for diagnostics."""

from __future__ import annotations

from capstone import CS_ARCH_X86, CS_MODE_32, CS_MODE_64, Cs

from cfgoracle.binary.memory import MemoryImage


def disassemble(memory: MemoryImage, address: int, size: int) -> list[str]:
    """Return ``"0x<addr>: <mnemonic> <operands>"`` lines for a block."""
    md = Cs(CS_ARCH_X86, CS_MODE_64 if memory.width.bits == 64 else CS_MODE_32)
    data = memory.read(address, size)
    insns = list(md.disasm(data, address))
    lines = [f"0x{insn.address:x}: {insn.mnemonic} {insn.op_str}".rstrip() for insn in insns]
    decoded = sum(insn.size for insn in insns)
    if decoded < size:
        lines.append(f"0x{address + decoded:x}: (bad)")
    return lines
