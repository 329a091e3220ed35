from typing import List, Tuple

from tcstring.bitops import BitReader
from tcstring.errors import UnsupportedVersionError
from tcstring.model import (
    ConsentV2,
    PublisherRestriction,
    PublisherRestrictionType,
    PublisherTC,
    RangeSection,
    SectionKind,
)
from tcstring.ranges import decode_range_set, decode_vendor_section, section_value
from tcstring.segments import decode_segments, split_segments

VERSION_PREFIX = "C"
CORE_HEADER_BITS = 213  #: Fixed core fields, the first section starts here
TIMESTAMP_SCALE = 100  #: Deciseconds to milliseconds

RESTRICTION_COUNT_BITS = 12
RESTRICTION_PURPOSE_BITS = 6
RESTRICTION_TYPE_BITS = 2


def decode_publisher_restrictions(
    reader: BitReader, start_bit: int
) -> RangeSection:
    """Decode the publisher restrictions section of the core segment.

    A 12-bit count is followed by that many entries, each a 6-bit purpose
    id, a 2-bit restriction type and a range-encoded vendor list.

    :param reader: Reader over the core segment.
    :type reader: BitReader
    :param start_bit: Absolute bit offset of the restriction count.
    :type start_bit: int
    :returns: The restrictions and the bit offset right after them.
    :rtype: RangeSection
    """
    count = reader.read_int(start_bit, RESTRICTION_COUNT_BITS)
    bit_index = start_bit + RESTRICTION_COUNT_BITS
    restrictions: List[PublisherRestriction] = []

    for _ in range(count):
        purpose_id = reader.read_int(bit_index, RESTRICTION_PURPOSE_BITS)
        type_code = reader.read_int(
            bit_index + RESTRICTION_PURPOSE_BITS, RESTRICTION_TYPE_BITS
        )
        section = decode_range_set(
            reader,
            bit_index + RESTRICTION_PURPOSE_BITS + RESTRICTION_TYPE_BITS,
        )
        bit_index = section.last_bit
        restrictions.append(
            PublisherRestriction(
                purpose_id=purpose_id,
                restriction_type=PublisherRestrictionType.from_code(type_code),
                vendor_list=section_value(section, SectionKind.VENDOR),
            )
        )

    return RangeSection(
        bit_index, SectionKind.PUBLISHER_RESTRICTION, tuple(restrictions)
    )


def decode_core_sections(
    reader: BitReader, start_bit: int
) -> Tuple[RangeSection, RangeSection, RangeSection]:
    """Decode vendor consents, vendor LI consents and publisher restrictions.

    Each section starts where the previous one ended.

    :returns: The three sections in wire order.
    :rtype: Tuple[RangeSection, RangeSection, RangeSection]
    """
    vendors = decode_vendor_section(reader, start_bit, SectionKind.VENDOR)
    vendors_li = decode_vendor_section(
        reader, vendors.last_bit, SectionKind.VENDOR_LEGITIMATE_INTEREST
    )
    restrictions = decode_publisher_restrictions(reader, vendors_li.last_bit)
    return vendors, vendors_li, restrictions


def decode_v2(text: str) -> ConsentV2:
    """Decode a TCF v2 consent string, including its optional segments.

    :param text: ``.``-separated base64url consent string (``"CO..."``).
    :type text: str
    :returns: The decoded record.
    :rtype: ConsentV2
    :raises UnsupportedVersionError: If ``text`` does not start with ``C``.
    :raises InvalidUrlSafeBase64Error: If a segment is not base64url.
    :raises InsufficientLengthError: If a segment is empty or truncated.
    :raises InvalidSegmentDefinitionError: On an unknown segment type.
    """
    if not text.startswith(VERSION_PREFIX):
        raise UnsupportedVersionError()
    return decode_v2_segments(split_segments(text))


def decode_v2_segments(buffers: List[bytes]) -> ConsentV2:
    """Assemble a V2 record from the core buffer and optional segment buffers.

    :param buffers: Decoded segments, core segment first.
    :type buffers: List[bytes]
    :returns: The decoded record.
    :rtype: ConsentV2
    """
    core = BitReader(buffers[0])
    core.require(CORE_HEADER_BITS)

    vendors, vendors_li, restrictions = decode_core_sections(
        core, CORE_HEADER_BITS
    )
    segments = decode_segments(buffers[1:])
    publisher_tc = segments.publisher_tc or PublisherTC()

    return ConsentV2(
        created_at=core.read_int(6, 36) * TIMESTAMP_SCALE,
        updated_at=core.read_int(42, 36) * TIMESTAMP_SCALE,
        cmp_id=core.read_int(78, 12),
        cmp_version=core.read_int(90, 12),
        consent_screen=core.read_int(102, 6),
        consent_language=core.read_string(108, 6, 2),
        vendor_list_version=core.read_int(120, 12),
        tcf_policy_version=core.read_int(132, 6),
        is_service_specific=core.read_bool(138),
        use_non_standard_stacks=core.read_bool(139),
        special_feature_opt_ins=core.read_flags(140, 12),
        purposes_consent=core.read_flags(152, 24),
        purposes_li_transparency=core.read_flags(176, 24),
        purpose_one_treatment=core.read_bool(200),
        publisher_country_code=core.read_string(201, 6, 2),
        vendor_consents=section_value(vendors, SectionKind.VENDOR),
        vendor_li_consents=section_value(
            vendors_li, SectionKind.VENDOR_LEGITIMATE_INTEREST
        ),
        publisher_restrictions=section_value(
            restrictions, SectionKind.PUBLISHER_RESTRICTION
        ),
        disclosed_vendors=segments.disclosed_vendors or (),
        allowed_vendors=segments.allowed_vendors or (),
        publisher_purposes_consent=publisher_tc.publisher_purposes_consent,
        publisher_purposes_li_transparency=(
            publisher_tc.publisher_purposes_li_transparency
        ),
        custom_purposes_consent=publisher_tc.custom_purposes_consent,
        custom_purposes_li_transparency=(
            publisher_tc.custom_purposes_li_transparency
        ),
    )
