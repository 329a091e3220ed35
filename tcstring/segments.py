import base64
import binascii
from typing import Iterable, List

from tcstring.bitops import BitReader
from tcstring.errors import (
    InsufficientLengthError,
    InvalidSegmentDefinitionError,
    InvalidUrlSafeBase64Error,
    UnexpectedRangeSectionError,
)
from tcstring.model import PublisherTC, SectionKind, TCSegment
from tcstring.ranges import decode_vendor_section, section_value

SEGMENT_SEPARATOR = "."
SEGMENT_TYPE_BITS = 3

DISCLOSED_VENDORS = 1
ALLOWED_VENDORS = 2
PUBLISHER_TC = 3

PURPOSE_BITS = 24
CUSTOM_PURPOSE_COUNT_BITS = 6

_TO_STANDARD_ALPHABET = str.maketrans("-_+/=", "+/!!!")


def bytes_from_base64(text: str) -> bytes:
    """Decode unpadded URL-safe base64 text.

    The standard alphabet's ``+`` and ``/`` and any caller supplied ``=``
    are mapped to a symbol the strict decoder rejects.

    :param text: Base64url text without ``=`` padding.
    :type text: str
    :returns: Decoded bytes.
    :rtype: bytes
    :raises InvalidUrlSafeBase64Error: If ``text`` is not valid base64url.
    """
    standard = text.translate(_TO_STANDARD_ALPHABET)
    try:
        return base64.b64decode(standard + "=" * (-len(text) % 4), validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidUrlSafeBase64Error(err) from err


def split_segments(text: str) -> List[bytes]:
    """Split a V2 string on ``.`` and decode every part independently.

    The first buffer is the core segment, the rest are optional segments.

    :param text: Full V2 consent string.
    :type text: str
    :returns: One byte buffer per segment, in input order.
    :rtype: List[bytes]
    :raises InsufficientLengthError: If any segment is empty.
    :raises InvalidUrlSafeBase64Error: If any segment is not base64url.
    """
    buffers = []
    for part in text.split(SEGMENT_SEPARATOR):
        if not part:
            raise InsufficientLengthError()
        buffers.append(bytes_from_base64(part))
    return buffers


def decode_vendor_segment(reader: BitReader, start_bit: int):
    """Decode a disclosed/allowed vendors payload into a vendor id tuple."""
    section = decode_vendor_section(reader, start_bit, SectionKind.VENDOR)
    return section_value(section, SectionKind.VENDOR, UnexpectedRangeSectionError)


def decode_publisher_tc(reader: BitReader, start_bit: int) -> PublisherTC:
    """Decode the publisher purposes segment.

    Two 24-bit purpose bitmaps are followed by a 6-bit custom purpose count
    and, when that count is non-zero, two bitmaps of that many bits.

    :param reader: Reader over the segment buffer.
    :type reader: BitReader
    :param start_bit: Absolute bit offset right after the segment type.
    :type start_bit: int
    :returns: The publisher purpose sets.
    :rtype: PublisherTC
    """
    consent = reader.read_flags(start_bit, PURPOSE_BITS)
    li_transparency = reader.read_flags(start_bit + PURPOSE_BITS, PURPOSE_BITS)
    count_start = start_bit + 2 * PURPOSE_BITS
    custom_count = reader.read_int(count_start, CUSTOM_PURPOSE_COUNT_BITS)
    if custom_count == 0:
        return PublisherTC(consent, li_transparency)

    custom_start = count_start + CUSTOM_PURPOSE_COUNT_BITS
    return PublisherTC(
        publisher_purposes_consent=consent,
        publisher_purposes_li_transparency=li_transparency,
        custom_purposes_consent=reader.read_flags(custom_start, custom_count),
        custom_purposes_li_transparency=reader.read_flags(
            custom_start + custom_count, custom_count
        ),
    )


def decode_segments(buffers: Iterable[bytes]) -> TCSegment:
    """Classify optional segments by their type tag and decode them.

    A later segment of the same type replaces an earlier one.

    :param buffers: Optional segment buffers (everything after the core).
    :type buffers: Iterable[bytes]
    :returns: The collected optional payloads.
    :rtype: TCSegment
    :raises InvalidSegmentDefinitionError: On an unknown segment type.
    """
    result = TCSegment()
    for data in buffers:
        reader = BitReader(data)
        segment_type = reader.read_int(0, SEGMENT_TYPE_BITS)
        if segment_type == DISCLOSED_VENDORS:
            result.disclosed_vendors = decode_vendor_segment(
                reader, SEGMENT_TYPE_BITS
            )
        elif segment_type == ALLOWED_VENDORS:
            result.allowed_vendors = decode_vendor_segment(
                reader, SEGMENT_TYPE_BITS
            )
        elif segment_type == PUBLISHER_TC:
            result.publisher_tc = decode_publisher_tc(reader, SEGMENT_TYPE_BITS)
        else:
            raise InvalidSegmentDefinitionError()
    return result
