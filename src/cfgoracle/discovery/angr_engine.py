"""Recovery engine backed by angr's CFGFast."""

from __future__ import annotations

import io
from typing import Mapping, Sequence

import angr

from cfgoracle.arch import ArchitectureInfo
from cfgoracle.binary.memory import MemoryImage, SegmentOffset
from cfgoracle.discovery.model import DiscoveredFunction, ParsedBlock, TerminatorKind
from cfgoracle.discovery.vex import classify_block_bytes
from cfgoracle.utils.logging import get_logger

log = get_logger(__name__)


def flatten_image(memory: MemoryImage) -> tuple[int, bytes]:
    """Lay the image's single load region out as one zero-padded blob."""
    low, high = memory.region_bounds()
    blob = bytearray(high - low)
    for seg in memory:
        blob[seg.base - low : seg.end - low] = seg.data
    return low, bytes(blob)


class AngrRecoveryEngine:
    """Runs CFGFast over a mapped image, seeded only with the given addresses.

    No complete scan, prologue matching or symbol seeding is done, so every
    function reported was reached from a seed.
    """

    def __init__(self, resolve_indirect_jumps: bool = True, normalize: bool = True) -> None:
        self.resolve_indirect_jumps = resolve_indirect_jumps
        self.normalize = normalize

    def discover(
        self,
        arch: ArchitectureInfo,
        memory: MemoryImage,
        seed_functions: Mapping[int, str],
        seed_addresses: Sequence[SegmentOffset],
        hints: Sequence[int],
    ) -> dict[int, DiscoveredFunction]:
        starts = [loc.address for loc in seed_addresses]
        starts += [addr for addr in seed_functions if addr not in starts]
        starts += [addr for addr in hints if addr not in starts]

        project = self._project(arch, memory, starts[0] if starts else memory.region_bounds()[0])
        cfg = project.analyses.CFGFast(
            regions=memory.executable_ranges() or None,
            start_at_entry=False,
            function_starts=starts,
            force_complete_scan=False,
            function_prologues=False,
            symbols=False,
            data_references=False,
            resolve_indirect_jumps=self.resolve_indirect_jumps,
            normalize=self.normalize,
        )

        unresolved = {
            jump.addr for jump in cfg.indirect_jumps.values() if not jump.resolved_targets
        }
        function_addrs = set(cfg.kb.functions)

        discovered: dict[int, DiscoveredFunction] = {}
        for func in cfg.kb.functions.values():
            if func.is_syscall or func.is_simprocedure or memory.resolve(func.addr) is None:
                continue
            blocks: dict[int, ParsedBlock] = {}
            others = function_addrs - {func.addr}
            for block in sorted((b for b in func.blocks if b is not None), key=lambda b: b.addr):
                blocks[block.addr] = self._parse_block(
                    arch, memory, cfg, block.addr, block.size, unresolved, others
                )
            name = seed_functions.get(func.addr, func.name)
            discovered[func.addr] = DiscoveredFunction(address=func.addr, blocks=blocks, name=name)

        log.debug(
            "angr_cfg_finished",
            functions=len(discovered),
            blocks=sum(len(f.blocks) for f in discovered.values()),
            unresolved_jumps=len(unresolved),
        )
        return discovered

    def _project(self, arch: ArchitectureInfo, memory: MemoryImage, entry: int) -> angr.Project:
        base, blob = flatten_image(memory)
        return angr.Project(
            io.BytesIO(blob),
            auto_load_libs=False,
            main_opts={
                "backend": "blob",
                "arch": arch.angr_arch,
                "base_addr": base,
                "entry_point": entry,
            },
        )

    @staticmethod
    def _parse_block(
        arch: ArchitectureInfo,
        memory: MemoryImage,
        cfg,
        addr: int,
        size: int,
        unresolved: set[int],
        other_functions: set[int],
    ) -> ParsedBlock:
        try:
            data = memory.read(addr, size)
        except ValueError as exc:
            return ParsedBlock(addr, size, TerminatorKind.TRANSLATE_ERROR, str(exc))

        kind, reason = classify_block_bytes(data, addr, arch.angr_arch, addr in unresolved)
        if kind is TerminatorKind.JUMP:
            node = cfg.model.get_any_node(addr)
            targets = {succ.addr for succ in node.successors} if node is not None else set()
            if targets and targets <= other_functions:
                kind = TerminatorKind.TAIL_CALL
        return ParsedBlock(addr, size, kind, reason)
