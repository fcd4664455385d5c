"""Golden (expected) results: parsing and validation.

A golden file is YAML with two keys::

    funcs:
      - [0x1000, [[0x1000, 16], [0x1010, 5]]]
    ignoreBlocks: [0x1015]

``funcs`` pairs each function entry with its ``(block start, block size)``
list; ``ignoreBlocks`` lists blocks to leave out of the comparison.  All
addresses are raw, i.e. as linked, before the load offset is applied.
The whole file parses or the fixture fails; there is no partial result.
"""

from __future__ import annotations

import re
from collections.abc import Hashable
from pathlib import Path
from typing import Annotated, Iterator

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError, model_validator

from cfgoracle.errors import FixtureError, InvalidExpectedResult

Address = Annotated[StrictInt, Field(ge=0, le=(1 << 64) - 1)]
BlockSize = Annotated[StrictInt, Field(ge=0)]
BlockSpec = tuple[Address, BlockSize]

_INT_TAG = "tag:yaml.org,2002:int"
# Decimal without leading zeros, or 0x hex.  Octal, binary and sexagesimal
# forms stay strings and fail the strict integer check.
_STRICT_INT = re.compile(r"^(?:[-+]?(?:0|[1-9][0-9]*)|0x[0-9a-fA-F]+)$")


class GoldenLoader(yaml.SafeLoader):
    """SafeLoader that refuses duplicate keys and YAML 1.1 integer forms."""

    def construct_mapping(self, node, deep=False):
        if isinstance(node, yaml.MappingNode):
            self.flatten_mapping(node)
            seen = set()
            for key_node, _ in node.value:
                key = self.construct_object(key_node, deep=deep)
                if isinstance(key, Hashable):
                    if key in seen:
                        raise yaml.constructor.ConstructorError(
                            "while constructing a mapping",
                            node.start_mark,
                            f"found duplicate key {key!r}",
                            key_node.start_mark,
                        )
                    seen.add(key)
        return super().construct_mapping(node, deep=deep)


GoldenLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _INT_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
GoldenLoader.add_implicit_resolver(_INT_TAG, _STRICT_INT, list("-+0123456789"))


class ExpectedFunction(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: Address
    blocks: frozenset[BlockSpec]

    @property
    def block_starts(self) -> frozenset[int]:
        return frozenset(start for start, _ in self.blocks)


class ExpectedResult(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    funcs: tuple[tuple[Address, tuple[BlockSpec, ...]], ...]
    ignore_blocks: tuple[Address, ...] = Field(alias="ignoreBlocks")

    @model_validator(mode="after")
    def _check_functions(self) -> ExpectedResult:
        seen: set[int] = set()
        for entry, blocks in self.funcs:
            if entry in seen:
                raise ValueError(f"function 0x{entry:x} is listed twice")
            seen.add(entry)
            starts = [start for start, _ in blocks]
            if entry not in starts:
                raise ValueError(f"function 0x{entry:x} does not list its entry block")
            if len(set(starts)) != len(starts):
                raise ValueError(f"function 0x{entry:x} lists a block start twice")
        return self

    def functions(self) -> Iterator[ExpectedFunction]:
        for entry, blocks in self.funcs:
            yield ExpectedFunction(entry=entry, blocks=frozenset(blocks))

    @property
    def ignored(self) -> frozenset[int]:
        return frozenset(self.ignore_blocks)


def parse_expected(text: str) -> ExpectedResult:
    """Parse golden-file text, raising :class:`InvalidExpectedResult` on any defect."""
    try:
        raw = yaml.load(text, Loader=GoldenLoader)
    except yaml.YAMLError as exc:
        raise InvalidExpectedResult(str(exc)) from exc
    if not isinstance(raw, dict):
        raise InvalidExpectedResult(f"expected a mapping with funcs/ignoreBlocks, got {raw!r:.80}")
    try:
        return ExpectedResult.model_validate(raw)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidExpectedResult(errors) from exc


def load_expected(path: str | Path) -> ExpectedResult:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise FixtureError(f"cannot read expected result {path}: {exc}") from exc
    return parse_expected(text)


def dump_expected(result: ExpectedResult) -> str:
    """Render a result in the golden-file layout, addresses in hex."""
    lines = ["funcs:"] if result.funcs else ["funcs: []"]
    for entry, blocks in result.funcs:
        specs = ", ".join(f"[0x{start:x}, {size}]" for start, size in blocks)
        lines.append(f"  - [0x{entry:x}, [{specs}]]")
    ignored = ", ".join(f"0x{addr:x}" for addr in result.ignore_blocks)
    lines.append(f"ignoreBlocks: [{ignored}]")
    return "\n".join(lines) + "\n"
