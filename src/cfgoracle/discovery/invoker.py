"""Discovery invoker: seed the recovery engine with the binary's entry point."""

from __future__ import annotations

from typing import Mapping

from cfgoracle.arch import ArchitectureInfo
from cfgoracle.binary.container import ElfContainer
from cfgoracle.binary.memory import MemoryImage
from cfgoracle.discovery.model import DiscoveredFunction, RecoveryEngine
from cfgoracle.errors import EntryPointUnmappedError
from cfgoracle.utils.logging import get_logger
from cfgoracle.verification.addresses import AddressNormalizer

log = get_logger(__name__)


def discover_from_entry(
    container: ElfContainer,
    memory: MemoryImage,
    normalizer: AddressNormalizer,
    arch: ArchitectureInfo,
    engine: RecoveryEngine,
) -> Mapping[int, DiscoveredFunction]:
    """Run the engine from the ELF entry point and return its result as-is."""
    runtime_entry = normalizer.to_runtime(container.entry)
    entry = memory.resolve(runtime_entry)
    if entry is None:
        raise EntryPointUnmappedError(runtime_entry)

    log.debug("discovery_started", entry=hex(runtime_entry), segment=entry.segment.name)
    functions = engine.discover(arch, memory, {}, [entry], [])
    log.info(
        "discovery_finished",
        entry=hex(runtime_entry),
        functions=len(functions),
        blocks=sum(len(f.blocks) for f in functions.values()),
    )
    return functions
