"""Fixture driver: pair golden files with binaries and run each one independently."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping

from cfgoracle.arch import ArchitectureInfo, get_architecture
from cfgoracle.binary.container import ElfContainer
from cfgoracle.binary.elf_loader import load_binary
from cfgoracle.binary.memory import LoadOptions, MemoryImage, require_memory
from cfgoracle.config.models import OracleConfig
from cfgoracle.discovery.invoker import discover_from_entry
from cfgoracle.discovery.model import DiscoveredFunction, RecoveryEngine
from cfgoracle.errors import FixtureError
from cfgoracle.utils.logging import fixture_context, get_logger
from cfgoracle.verification.addresses import AddressNormalizer
from cfgoracle.verification.comparator import VerificationReport, verify_discovery
from cfgoracle.verification.golden import load_expected

log = get_logger(__name__)


def binary_for_fixture(expected_path: str | Path, binary_suffix: str = ".exe") -> Path:
    """``dir/foo.expected`` -> ``dir/foo.exe``; ``dir/foo.exe.expected`` -> ``dir/foo.exe``."""
    return Path(expected_path).with_suffix("").with_suffix(binary_suffix)


@dataclass(frozen=True)
class FixtureCase:
    expected_path: Path
    binary_path: Path

    @property
    def name(self) -> str:
        return str(self.expected_path)

    @classmethod
    def from_expected(cls, expected_path: str | Path, binary_suffix: str = ".exe") -> FixtureCase:
        return cls(Path(expected_path), binary_for_fixture(expected_path, binary_suffix))


class OutcomeStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"


@dataclass(frozen=True)
class FixtureOutcome:
    case: FixtureCase
    status: OutcomeStatus
    report: VerificationReport | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.PASSED

    def describe(self) -> str:
        """Multi-line description, suitable for an assertion message."""
        if self.status is OutcomeStatus.ERROR:
            return f"{self.case.name}: {self.error}"
        lines = [f"{self.case.name}: {self.status.value}"]
        if self.report is not None:
            lines.extend(f"  - {failure.message}" for failure in self.report.failures)
        return "\n".join(lines)


def collect_fixtures(
    paths: Iterable[str | Path],
    expected_suffix: str = ".expected",
    binary_suffix: str = ".exe",
    recursive: bool = False,
) -> list[FixtureCase]:
    """Expand files and directories into fixture cases, sorted by golden path."""
    found: set[Path] = set()
    for entry in paths:
        path = Path(entry)
        if path.is_dir():
            pattern = f"*{expected_suffix}"
            matches = path.rglob(pattern) if recursive else path.glob(pattern)
            found.update(p for p in matches if p.is_file())
        else:
            found.add(path)
    return [FixtureCase.from_expected(p, binary_suffix) for p in sorted(found)]


class FixtureRunner:
    """Runs load, map, discover and compare for one fixture at a time.

    Nothing is cached between fixtures; each run builds its own image.
    """

    def __init__(self, config: OracleConfig, engine: RecoveryEngine) -> None:
        self.config = config
        self.engine = engine
        self.arch: ArchitectureInfo = get_architecture(config.architecture)
        self.normalizer = AddressNormalizer(config.load_offset, self.arch.address_width)
        self.load_options = LoadOptions(
            region_index=config.memory.region_index,
            base_offset=config.load_offset,
            load_style=config.memory.load_style,
            include_bss=config.memory.include_bss,
        )

    def map_binary(self, binary_path: str | Path) -> tuple[ElfContainer, MemoryImage]:
        container = load_binary(binary_path, self.arch)
        memory = require_memory(container, self.arch.address_width, self.load_options)
        return container, memory

    def discover(self, binary_path: str | Path) -> Mapping[int, DiscoveredFunction]:
        container, memory = self.map_binary(binary_path)
        return discover_from_entry(container, memory, self.normalizer, self.arch, self.engine)

    def run(self, case: FixtureCase) -> FixtureOutcome:
        with fixture_context(case.name):
            log.debug("fixture_started", binary=str(case.binary_path))
            try:
                # The golden file is parsed first so a bad one never reaches the loader.
                expected = self.normalizer.normalize(load_expected(case.expected_path))
                discovered = self.discover(case.binary_path)
            except FixtureError as exc:
                log.warning("fixture_error", error=str(exc), error_type=type(exc).__name__)
                return FixtureOutcome(case, OutcomeStatus.ERROR, error=str(exc))

            report = verify_discovery(discovered, expected)
            status = OutcomeStatus.PASSED if report.passed else OutcomeStatus.FAILED
            log.info("fixture_finished", status=status.value, failures=len(report.failures))
            return FixtureOutcome(case, status, report=report)

    def run_all(self, cases: Iterable[FixtureCase]) -> list[FixtureOutcome]:
        return [self.run(case) for case in cases]
