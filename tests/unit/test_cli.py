"""Tests for CLI commands and flags."""

import pytest
from conftest import SIMPLE_GOLDEN, ScriptedEngine, block, function, functions
from typer.testing import CliRunner

from cfgoracle.cli.app import app, get_context

runner = CliRunner()


@pytest.fixture
def scripted_engine():
    ctx = get_context()
    engine = ScriptedEngine(functions(function(0x401000, block(0x401000, 16))))
    ctx.engine = engine
    yield engine
    ctx.engine = None


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "cfgoracle" in result.output


def test_help_shows_all_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for cmd in ["verify", "discover", "show"]:
        assert cmd in result.output
    assert "--load-offset" in result.output


def test_verify_passing_fixture(fixture_pair, scripted_engine):
    expected = fixture_pair(SIMPLE_GOLDEN)
    result = runner.invoke(app, ["verify", str(expected)])
    assert result.exit_code == 0, result.output
    assert "passed" in result.output


def test_verify_directory_with_failure(fixture_pair, scripted_engine):
    expected = fixture_pair("funcs: [[0x1000, [[0x1000, 12]]]]\nignoreBlocks: []\n")
    result = runner.invoke(app, ["verify", str(expected.parent)])
    assert result.exit_code == 1
    assert "block_set_mismatch" in result.output


def test_verify_missing_path(tmp_path):
    result = runner.invoke(app, ["verify", str(tmp_path / "nope")])
    assert result.exit_code == 1


def test_verify_empty_directory(tmp_path):
    result = runner.invoke(app, ["verify", str(tmp_path)])
    assert result.exit_code == 1


def test_show(tmp_path):
    path = tmp_path / "a.expected"
    path.write_text("funcs: [[0x1000, [[0x1000, 16]]]]\nignoreBlocks: [0x1010]\n")
    result = runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 0, result.output
    assert "0x401000" in result.output
    assert "0x1010 -> 0x401010" in result.output


def test_show_invalid(tmp_path):
    path = tmp_path / "a.expected"
    path.write_text("funcs: {")
    result = runner.invoke(app, ["show", str(path)])
    assert result.exit_code == 1


def test_discover_emits_expected(fixture_pair, scripted_engine, tmp_path):
    binary = fixture_pair(SIMPLE_GOLDEN).with_suffix(".exe")
    out = tmp_path / "emitted.expected"
    result = runner.invoke(app, ["discover", str(binary), "--emit-expected", str(out)])
    assert result.exit_code == 0, result.output
    assert out.read_text() == SIMPLE_GOLDEN


def test_bad_load_offset_flag():
    result = runner.invoke(app, ["--load-offset", "banana", "show", "x"])
    assert result.exit_code == 2


def test_discover_disasm(fixture_pair, scripted_engine):
    binary = fixture_pair(SIMPLE_GOLDEN).with_suffix(".exe")
    result = runner.invoke(app, ["discover", str(binary), "--disasm"])
    assert result.exit_code == 0, result.output
    assert "xor edi, edi" in result.output
    assert "return" in result.output


def test_discover_disasm_block_past_segment_end(fixture_pair):
    ctx = get_context()
    ctx.engine = ScriptedEngine(
        functions(function(0x401000, block(0x401000, 2), block(0x401008, 16)))
    )
    try:
        binary = fixture_pair(SIMPLE_GOLDEN).with_suffix(".exe")
        result = runner.invoke(app, ["discover", str(binary), "--disasm"])
    finally:
        ctx.engine = None
    assert result.exit_code == 0, result.output
    assert "xor edi, edi" in result.output
    assert "0x401008: (unmapped)" in result.output
