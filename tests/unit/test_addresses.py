"""Tests for raw/runtime address conversion."""

import pytest

from cfgoracle.arch import ADDR64, AddressWidth
from cfgoracle.verification.addresses import AddressNormalizer
from cfgoracle.verification.golden import parse_expected


def test_default_offset():
    normalizer = AddressNormalizer()
    assert normalizer.load_offset == 0x400000
    assert normalizer.to_runtime(0x1000) == 0x401000
    assert normalizer.to_raw(0x401000) == 0x1000


@pytest.mark.parametrize("raw", [0, 1, 0x1000, 0x3FFFFF, 0xFFFF_FFFF, ADDR64.mask - 0x10, ADDR64.mask])
def test_round_trip_is_identity(raw):
    normalizer = AddressNormalizer()
    assert normalizer.to_raw(normalizer.to_runtime(raw)) == raw


def test_wraps_at_address_width():
    normalizer = AddressNormalizer(load_offset=0x10)
    assert normalizer.to_runtime(ADDR64.mask) == 0xF
    assert normalizer.to_raw(0x5) == ADDR64.mask - 0xA


def test_narrow_width_wraps():
    normalizer = AddressNormalizer(load_offset=0x10, width=AddressWidth(bits=32))
    assert normalizer.to_runtime(0xFFFF_FFF8) == 0x8


def test_offset_must_fit_width():
    with pytest.raises(ValueError):
        AddressNormalizer(load_offset=1 << 64)


def test_normalize_offsets_every_address_once():
    expected = parse_expected(
        "funcs:\n"
        "  - [0x1000, [[0x1000, 16], [0x1010, 4]]]\n"
        "  - [0x2000, [[0x2000, 1]]]\n"
        "ignoreBlocks: [0x1014]\n"
    )
    normalized = AddressNormalizer().normalize(expected)

    assert dict(normalized.entries) == {
        0x401000: frozenset({(0x401000, 16), (0x401010, 4)}),
        0x402000: frozenset({(0x402000, 1)}),
    }
    assert normalized.ignored == frozenset({0x401014})
    assert normalized.raw(0x401014) == 0x1014


def test_normalize_is_pure():
    expected = parse_expected("funcs: [[0x1000, [[0x1000, 16]]]]\nignoreBlocks: []\n")
    normalizer = AddressNormalizer()
    first = normalizer.normalize(expected)
    second = normalizer.normalize(expected)
    # The source model is untouched, so normalizing again must not shift further.
    assert dict(first.entries) == dict(second.entries) == {0x401000: frozenset({(0x401000, 16)})}
    assert expected.funcs[0][0] == 0x1000


def test_custom_offset():
    expected = parse_expected("funcs: [[0x10, [[0x10, 2]]]]\nignoreBlocks: [0x12]\n")
    normalized = AddressNormalizer(load_offset=0x1000000).normalize(expected)
    assert set(normalized.entries) == {0x1000010}
    assert normalized.ignored == {0x1000012}


def test_expected_entry_set_excludes_ignored():
    expected = parse_expected(
        "funcs: [[0x1000, [[0x1000, 1]]], [0x1010, [[0x1010, 1]]]]\nignoreBlocks: [0x1010]\n"
    )
    normalized = AddressNormalizer().normalize(expected)
    assert normalized.expected_entry_set() == {0x401000}
