"""cfgoracle Quickstart: verify a directory of golden fixtures from Python."""

import sys
from pathlib import Path

from cfgoracle import OracleContext
from cfgoracle.config.loader import load_config
from cfgoracle.driver import collect_fixtures
from cfgoracle.utils.logging import setup_logging


def main():
    # 1. Load configuration (cfgoracle.yaml if present, defaults otherwise)
    ctx = OracleContext()
    ctx.config = load_config()
    setup_logging(ctx.config.logging.level)

    # 2. Pair every *.expected file with its *.exe binary
    fixture_dir = Path(sys.argv[1] if len(sys.argv) > 1 else "tests/fixtures")
    cases = collect_fixtures(
        [fixture_dir],
        expected_suffix=ctx.config.fixtures.expected_suffix,
        binary_suffix=ctx.config.fixtures.binary_suffix,
    )
    if not cases:
        print(f"No fixtures under {fixture_dir}.")
        return

    # 3. Load, map, discover and compare each fixture independently
    runner = ctx.runner()
    outcomes = runner.run_all(cases)

    # 4. Report
    for outcome in outcomes:
        print(outcome.describe())
    failed = [o for o in outcomes if not o.ok]
    print(f"\n{len(outcomes) - len(failed)}/{len(outcomes)} fixture(s) passed")


if __name__ == "__main__":
    main()
