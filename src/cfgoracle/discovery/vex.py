"""Block terminator classification from VEX IR (pyvex/archinfo)."""

from __future__ import annotations

import archinfo
import pyvex

from cfgoracle.discovery.model import TerminatorKind
from cfgoracle.utils.logging import get_logger

log = get_logger(__name__)


def terminator_from_jumpkind(
    jumpkind: str, constant_targets: int, unresolved_indirect: bool = False
) -> TerminatorKind:
    """Map a VEX jumpkind onto a terminator classification.

    ``constant_targets`` is the number of statically known successors and
    ``unresolved_indirect`` says the engine could not resolve the block's
    indirect transfer.
    """
    if jumpkind == "Ijk_NoDecode":
        return TerminatorKind.TRANSLATE_ERROR
    if unresolved_indirect:
        return TerminatorKind.CLASSIFY_FAILURE
    if jumpkind == "Ijk_Call":
        return TerminatorKind.CALL
    if jumpkind == "Ijk_Ret":
        return TerminatorKind.RETURN
    if jumpkind.startswith("Ijk_Sys"):
        return TerminatorKind.SYSCALL
    if jumpkind == "Ijk_Boring" and constant_targets >= 2:
        return TerminatorKind.BRANCH
    return TerminatorKind.JUMP


def lift_block(data: bytes, address: int, arch_name: str = "AMD64") -> pyvex.IRSB:
    """Lift a full basic block to VEX IR."""
    arch_cls = getattr(archinfo, f"Arch{arch_name}")
    return pyvex.lift(data, address, arch_cls(), max_bytes=len(data))


def classify_block_bytes(
    data: bytes, address: int, arch_name: str = "AMD64", unresolved_indirect: bool = False
) -> tuple[TerminatorKind, str]:
    """Lift ``data`` and classify how it ends. Returns ``(kind, reason)``."""
    if not data:
        return TerminatorKind.TRANSLATE_ERROR, "empty block"
    try:
        irsb = lift_block(data, address, arch_name)
    except pyvex.PyVEXError as exc:
        log.debug("vex_lift_failed", address=hex(address), error=str(exc))
        return TerminatorKind.TRANSLATE_ERROR, str(exc)

    kind = terminator_from_jumpkind(
        irsb.jumpkind, len(irsb.constant_jump_targets), unresolved_indirect
    )
    reason = ""
    if kind is TerminatorKind.TRANSLATE_ERROR:
        reason = "undecodable instruction"
    elif kind is TerminatorKind.CLASSIFY_FAILURE:
        reason = "unresolved indirect transfer"
    return kind, reason
