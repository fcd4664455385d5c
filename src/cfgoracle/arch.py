"""Address-width and architecture descriptors.

Only the 64-bit x86 Linux instantiation exists; everything downstream is
written against :class:`ArchitectureInfo` so another variant can be added
here without touching the comparator.
"""

from __future__ import annotations

from dataclasses import dataclass

from cfgoracle.errors import ConfigError


@dataclass(frozen=True)
class AddressWidth:
    bits: int

    @property
    def byte_size(self) -> int:
        return self.bits // 8

    @property
    def mask(self) -> int:
        return (1 << self.bits) - 1

    def fits(self, value: int) -> bool:
        return 0 <= value <= self.mask


ADDR64 = AddressWidth(bits=64)


@dataclass(frozen=True)
class ArchitectureInfo:
    name: str
    address_width: AddressWidth
    elf_machine: str  # pyelftools e_machine name
    angr_arch: str


X86_64_LINUX = ArchitectureInfo(
    name="x86_64-linux",
    address_width=ADDR64,
    elf_machine="EM_X86_64",
    angr_arch="AMD64",
)

_ARCHITECTURES: dict[str, ArchitectureInfo] = {X86_64_LINUX.name: X86_64_LINUX}


def get_architecture(name: str) -> ArchitectureInfo:
    try:
        return _ARCHITECTURES[name]
    except KeyError:
        known = ", ".join(sorted(_ARCHITECTURES))
        raise ConfigError(f"Unknown architecture {name!r} (known: {known})") from None
