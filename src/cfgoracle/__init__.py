"""cfgoracle: golden-result oracle for binary control-flow recovery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cfgoracle.version import __version__

if TYPE_CHECKING:
    from cfgoracle.config.models import OracleConfig
    from cfgoracle.discovery.model import RecoveryEngine
    from cfgoracle.driver import FixtureRunner


@dataclass
class OracleContext:
    """Dependency-injection container shared across CLI commands."""

    config: OracleConfig | None = None
    engine: RecoveryEngine | None = None

    def ensure_config(self) -> OracleConfig:
        if self.config is None:
            from cfgoracle.config.loader import load_config

            self.config = load_config()
        return self.config

    def ensure_engine(self) -> RecoveryEngine:
        if self.engine is None:
            from cfgoracle.discovery.angr_engine import AngrRecoveryEngine

            cfg = self.ensure_config()
            self.engine = AngrRecoveryEngine(
                resolve_indirect_jumps=cfg.engine.resolve_indirect_jumps,
                normalize=cfg.engine.normalize,
            )
        return self.engine

    def runner(self) -> FixtureRunner:
        from cfgoracle.driver import FixtureRunner

        return FixtureRunner(self.ensure_config(), self.ensure_engine())


__all__ = ["OracleContext", "__version__"]
