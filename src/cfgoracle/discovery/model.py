"""Recovered functions and blocks, and the recovery engine interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from cfgoracle.arch import ArchitectureInfo
    from cfgoracle.binary.memory import MemoryImage, SegmentOffset


class TerminatorKind(str, Enum):
    JUMP = "jump"
    BRANCH = "branch"
    CALL = "call"
    RETURN = "return"
    TAIL_CALL = "tail_call"
    SYSCALL = "syscall"
    CLASSIFY_FAILURE = "classify_failure"
    TRANSLATE_ERROR = "translate_error"


def is_classify_failure(kind: TerminatorKind) -> bool:
    return kind is TerminatorKind.CLASSIFY_FAILURE


def is_translate_error(kind: TerminatorKind) -> bool:
    return kind is TerminatorKind.TRANSLATE_ERROR


def is_failure(kind: TerminatorKind) -> bool:
    return is_classify_failure(kind) or is_translate_error(kind)


@dataclass(frozen=True)
class ParsedBlock:
    address: int
    size: int
    terminator: TerminatorKind
    reason: str = ""  # engine diagnostic for failure terminators


@dataclass(frozen=True)
class DiscoveredFunction:
    address: int
    blocks: Mapping[int, ParsedBlock] = field(default_factory=dict)
    name: str = ""


class RecoveryEngine(Protocol):
    """Control-flow recovery engine consumed by the discovery invoker.

    ``seed_functions`` maps already-known function addresses to names,
    ``seed_addresses`` are the locations exploration starts from and
    ``hints`` are further addresses known to hold code.  The result maps
    each discovered function's runtime entry address to the function.
    """

    def discover(
        self,
        arch: ArchitectureInfo,
        memory: MemoryImage,
        seed_functions: Mapping[int, str],
        seed_addresses: Sequence[SegmentOffset],
        hints: Sequence[int],
    ) -> Mapping[int, DiscoveredFunction]: ...
