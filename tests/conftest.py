import base64
import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class BitWriter:
    """MSB-first bit packer used to build synthetic consent payloads."""

    def __init__(self):
        """Start with no bits written."""
        self.bits = []

    def write_bits(self, value: int, nbits: int):
        """Append the low ``nbits`` bits of ``value``, most significant first."""
        for i in range(nbits - 1, -1, -1):
            self.bits.append((value >> i) & 1)
        return self

    def write_flags(self, ids, length: int):
        """Append ``length`` flags, bit ``i`` set when ``i + 1`` is in ``ids``."""
        for position in range(1, length + 1):
            self.bits.append(1 if position in ids else 0)
        return self

    def write_letters(self, text: str):
        """Append each uppercase letter as a 6-bit offset from ``A``."""
        for char in text:
            self.write_bits(ord(char) - ord("A"), 6)
        return self

    def write_range_set(self, entries):
        """Write a 12-bit count then ``int`` singles or ``(lo, hi)`` ranges."""
        self.write_bits(len(entries), 12)
        for entry in entries:
            if isinstance(entry, tuple):
                self.write_bits(1, 1).write_bits(entry[0], 16)
                self.write_bits(entry[1], 16)
            else:
                self.write_bits(0, 1).write_bits(entry, 16)
        return self

    def __len__(self):
        """Number of bits written so far."""
        return len(self.bits)

    def flush(self) -> bytes:
        """Pack the bits into bytes, zero padding the last one."""
        padded = self.bits + [0] * (-len(self.bits) % 8)
        out = bytearray()
        for i in range(0, len(padded), 8):
            byte = 0
            for bit in padded[i:i + 8]:
                byte = (byte << 1) | bit
            out.append(byte)
        return bytes(out)

    def to_base64(self) -> str:
        """Unpadded base64url form of :meth:`flush`."""
        return base64.urlsafe_b64encode(self.flush()).decode("ascii").rstrip("=")


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("tcstring.main")


@pytest.fixture()
def bit_writer():
    """Provide the bit writer class for building payloads."""
    return BitWriter


def build_v2_core(
    vendor_ids=(2, 6, 8),
    li_ids=(2, 6, 8),
    restrictions=(),
    created=15822430593,
):
    """Build a V2 core segment with bitfield vendor sections.

    ``restrictions`` holds ``(purpose_id, type_code, entries)`` tuples.
    """
    w = BitWriter()
    w.write_bits(2, 6)
    w.write_bits(created, 36).write_bits(created, 36)
    w.write_bits(27, 12).write_bits(3, 12).write_bits(1, 6)
    w.write_letters("EN")
    w.write_bits(15, 12).write_bits(2, 6)
    w.write_bits(1, 1).write_bits(0, 1)
    w.write_flags({1}, 12)
    w.write_flags({1, 2, 3}, 24)
    w.write_flags({2}, 24)
    w.write_bits(1, 1)
    w.write_letters("DE")
    assert len(w) == 213
    for ids in (vendor_ids, li_ids):
        max_id = max(ids) if ids else 0
        w.write_bits(max_id, 16).write_bits(0, 1).write_flags(set(ids), max_id)
    w.write_bits(len(restrictions), 12)
    for purpose_id, type_code, entries in restrictions:
        w.write_bits(purpose_id, 6).write_bits(type_code, 2)
        w.write_range_set(entries)
    return w


@pytest.fixture()
def v2_core_builder():
    """Fixture that provides the V2 core builder without importing conftest."""
    return build_v2_core
