"""Reconcile discovered functions and blocks against golden expectations.

Every mismatch becomes an independent :class:`Failure`; nothing here raises,
so a single run surfaces every defect the engine produced.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import AbstractSet, Iterable, Mapping

from cfgoracle.discovery.model import (
    DiscoveredFunction,
    is_classify_failure,
    is_translate_error,
)
from cfgoracle.utils.logging import get_logger
from cfgoracle.verification.addresses import NormalizedExpectations

log = get_logger(__name__)

BlockSet = AbstractSet[tuple[int, int]]


class FailureKind(str, Enum):
    ENTRY_SET_MISMATCH = "entry_set_mismatch"
    CLASSIFY_FAILURE = "classify_failure"
    TRANSLATE_ERROR = "translate_error"
    UNEXPECTED_ENTRY = "unexpected_entry"
    BLOCK_SET_MISMATCH = "block_set_mismatch"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    address: int | None = None
    raw_address: int | None = None
    expected: frozenset = frozenset()
    actual: frozenset = frozenset()


@dataclass
class VerificationReport:
    failures: list[Failure] = field(default_factory=list)
    functions_checked: int = 0
    functions_ignored: int = 0

    @property
    def passed(self) -> bool:
        return not self.failures

    def of_kind(self, kind: FailureKind) -> list[Failure]:
        return [f for f in self.failures if f.kind is kind]


def format_addresses(addrs: Iterable[int]) -> str:
    return "{" + ", ".join(f"0x{a:x}" for a in sorted(addrs)) + "}"


def format_blocks(blocks: Iterable[tuple[int, int]]) -> str:
    return "{" + ", ".join(f"(0x{a:x}, {s})" for a, s in sorted(blocks)) + "}"


def block_sets_match(expected: BlockSet, actual: BlockSet) -> bool:
    """Set equality over ``(start, size)`` pairs; discovery order is irrelevant."""
    return frozenset(expected) == frozenset(actual)


def check_entry_points(
    discovered: Mapping[int, DiscoveredFunction], expected: NormalizedExpectations
) -> Failure | None:
    want = expected.expected_entry_set()
    got = frozenset(f.address for f in discovered.values()) - expected.ignored
    if want == got:
        return None
    return Failure(
        kind=FailureKind.ENTRY_SET_MISMATCH,
        message=(
            "Collection of discovered function starting points: "
            f"expected {format_addresses(want)}, got {format_addresses(got)} "
            f"(missing {format_addresses(want - got)}, unexpected {format_addresses(got - want)})"
        ),
        expected=want,
        actual=got,
    )


def check_terminators(
    func: DiscoveredFunction, expected: NormalizedExpectations
) -> list[Failure]:
    failures: list[Failure] = []
    for block in sorted(func.blocks.values(), key=lambda b: b.address):
        if block.address in expected.ignored:
            continue
        detail = f" ({block.reason})" if block.reason else ""
        if is_classify_failure(block.terminator):
            failures.append(
                Failure(
                    kind=FailureKind.CLASSIFY_FAILURE,
                    message=f"Unclassified block at 0x{block.address:x}{detail}",
                    address=block.address,
                    raw_address=expected.raw(block.address),
                )
            )
        if is_translate_error(block.terminator):
            failures.append(
                Failure(
                    kind=FailureKind.TRANSLATE_ERROR,
                    message=f"Translate error at 0x{block.address:x}{detail}",
                    address=block.address,
                    raw_address=expected.raw(block.address),
                )
            )
    return failures


def actual_block_set(func: DiscoveredFunction, ignored: AbstractSet[int]) -> frozenset[tuple[int, int]]:
    return frozenset(
        (block.address, block.size)
        for block in func.blocks.values()
        if block.address not in ignored
    )


def verify_discovery(
    discovered: Mapping[int, DiscoveredFunction], expected: NormalizedExpectations
) -> VerificationReport:
    report = VerificationReport()
    ignored = expected.ignored

    entry_failure = check_entry_points(discovered, expected)
    if entry_failure is not None:
        report.failures.append(entry_failure)

    for func in sorted(discovered.values(), key=lambda f: f.address):
        entry = func.address
        report.failures.extend(check_terminators(func, expected))
        if entry in ignored:
            report.functions_ignored += 1
            continue

        report.functions_checked += 1
        actual = actual_block_set(func, ignored)
        want = expected.entries.get(entry)
        if want is None:
            report.failures.append(
                Failure(
                    kind=FailureKind.UNEXPECTED_ENTRY,
                    message=f"unexpected entry point at 0x{entry:x}",
                    address=entry,
                    raw_address=expected.raw(entry),
                    actual=actual,
                )
            )
        elif not block_sets_match(want, actual):
            report.failures.append(
                Failure(
                    kind=FailureKind.BLOCK_SET_MISMATCH,
                    message=(
                        f"Block starts for 0x{entry:x}: expected {format_blocks(want)}, "
                        f"got {format_blocks(actual)}"
                    ),
                    address=entry,
                    raw_address=expected.raw(entry),
                    expected=frozenset(want),
                    actual=actual,
                )
            )

    if report.passed:
        log.debug("verification_passed", functions=report.functions_checked)
    else:
        log.info(
            "verification_failed",
            failures=len(report.failures),
            kinds=sorted({f.kind.value for f in report.failures}),
        )
    return report
