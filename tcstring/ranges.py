from typing import Tuple, Type

from tcstring.bitops import BitReader
from tcstring.errors import DecodeError, InvalidSectionDefinitionError
from tcstring.model import RangeSection, SectionKind

ENTRY_COUNT_BITS = 12  #: Width of the range entry counter
VENDOR_ID_BITS = 16  #: Width of a vendor id (and of ``max_vendor_id``)
SINGLE_ENTRY_BITS = 1 + VENDOR_ID_BITS
RANGE_ENTRY_BITS = 1 + 2 * VENDOR_ID_BITS

BITFIELD_ENCODING = 0
RANGE_ENCODING = 1


def decode_range_set(
    reader: BitReader, start_bit: int, kind: SectionKind = SectionKind.VENDOR
) -> RangeSection:
    """Decode a range-encoded list of vendor ids.

    Layout: a 12-bit entry count followed by that many entries. Each entry
    starts with a flag bit: ``0`` is a single 16-bit id, ``1`` is an
    inclusive ``(start, end)`` pair of 16-bit ids. Overlapping entries
    collapse into one ascending set.

    :param reader: Reader over the segment buffer.
    :type reader: BitReader
    :param start_bit: Absolute bit offset of the entry count.
    :type start_bit: int
    :param kind: Tag attached to the returned section.
    :type kind: SectionKind
    :returns: The id set and the bit offset right after the last entry.
    :rtype: RangeSection
    :raises InsufficientLengthError: If any entry runs past the buffer.
    """
    num_entries = reader.read_int(start_bit, ENTRY_COUNT_BITS)
    bit_index = start_bit + ENTRY_COUNT_BITS
    intervals = []

    for _ in range(num_entries):
        if reader.read_bool(bit_index):
            reader.require(bit_index + RANGE_ENTRY_BITS)
            first = reader.read_int(bit_index + 1, VENDOR_ID_BITS)
            last = reader.read_int(bit_index + 1 + VENDOR_ID_BITS, VENDOR_ID_BITS)
            if first <= last:
                intervals.append((first, last))
            bit_index += RANGE_ENTRY_BITS
        else:
            vendor_id = reader.read_int(bit_index + 1, VENDOR_ID_BITS)
            intervals.append((vendor_id, vendor_id))
            bit_index += SINGLE_ENTRY_BITS

    return RangeSection(bit_index, kind, _merge_intervals(intervals))


def _merge_intervals(intervals) -> Tuple[int, ...]:
    """Expand inclusive (first, last) pairs into ascending unique ids.

    Each id is emitted once no matter how many entries cover it.
    """
    ids = []
    covered = -1
    for first, last in sorted(intervals):
        if last <= covered:
            continue
        ids.extend(range(max(first, covered + 1), last + 1))
        covered = last
    return tuple(ids)


def decode_vendor_section(
    reader: BitReader, start_bit: int, kind: SectionKind = SectionKind.VENDOR
) -> RangeSection:
    """Decode a vendor section that is either a bitfield or a range list.

    A 16-bit ``max_vendor_id`` is followed by an encoding bit. With the
    bitfield encoding the next ``max_vendor_id`` bits flag vendor ids
    ``1..max_vendor_id``; with the range encoding a range list follows the
    encoding bit and ``max_vendor_id`` does not size anything.

    :param reader: Reader over the segment buffer.
    :type reader: BitReader
    :param start_bit: Absolute bit offset of ``max_vendor_id``.
    :type start_bit: int
    :param kind: Tag attached to the returned section.
    :type kind: SectionKind
    :returns: The vendor ids and the bit offset right after the section.
    :rtype: RangeSection
    """
    max_vendor_id = reader.read_int(start_bit, VENDOR_ID_BITS)
    payload_start = start_bit + VENDOR_ID_BITS + 1

    if reader.read_int(start_bit + VENDOR_ID_BITS, 1) == RANGE_ENCODING:
        return decode_range_set(reader, payload_start, kind)
    vendors = reader.read_flags(payload_start, max_vendor_id)
    return RangeSection(payload_start + max_vendor_id, kind, vendors)


def section_value(
    section: RangeSection,
    kind: SectionKind,
    error: Type[DecodeError] = InvalidSectionDefinitionError,
) -> tuple:
    """Return the payload of ``section``, insisting it is of ``kind``.

    :raises DecodeError: ``error`` if the section has another kind.
    """
    if section.kind is not kind:
        raise error()
    return section.value
