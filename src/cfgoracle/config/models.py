"""Pydantic configuration models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from cfgoracle.config.defaults import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_BINARY_SUFFIX,
    DEFAULT_EXPECTED_SUFFIX,
    DEFAULT_LOAD_OFFSET,
    DEFAULT_REGION_INDEX,
)


class FixturesConfig(BaseModel):
    expected_suffix: str = DEFAULT_EXPECTED_SUFFIX
    binary_suffix: str = DEFAULT_BINARY_SUFFIX
    recursive: bool = False

    @field_validator("expected_suffix", "binary_suffix")
    @classmethod
    def _dotted(cls, value: str) -> str:
        if not value.startswith(".") or len(value) < 2 or "/" in value:
            raise ValueError(f"suffix must look like '.ext', got {value!r}")
        return value


class MemoryConfig(BaseModel):
    # The whole image is one region; no other index exists.
    region_index: Literal[0] = DEFAULT_REGION_INDEX
    load_style: Literal["segment", "section"] = "segment"
    include_bss: bool = False


class EngineConfig(BaseModel):
    resolve_indirect_jumps: bool = True
    normalize: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class OracleConfig(BaseModel):
    load_offset: int = Field(default=DEFAULT_LOAD_OFFSET, ge=0)
    architecture: str = DEFAULT_ARCHITECTURE
    fixtures: FixturesConfig = Field(default_factory=FixturesConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("load_offset", mode="before")
    @classmethod
    def _parse_int_literal(cls, value: object) -> object:
        # Interpolated env vars and CLI flags arrive as strings like "0x400000".
        if isinstance(value, str):
            try:
                return int(value.strip(), 0)
            except ValueError:
                raise ValueError(f"not an integer literal: {value!r}") from None
        return value

    @model_validator(mode="after")
    def _offset_fits_width(self) -> OracleConfig:
        from cfgoracle.arch import get_architecture
        from cfgoracle.errors import ConfigError

        try:
            arch = get_architecture(self.architecture)
        except ConfigError as exc:
            raise ValueError(str(exc)) from None
        if not arch.address_width.fits(self.load_offset):
            raise ValueError(
                f"load_offset 0x{self.load_offset:x} does not fit a "
                f"{arch.address_width.bits}-bit address"
            )
        return self
