from tcstring.bitops import BitReader
from tcstring.errors import UnsupportedVersionError
from tcstring.model import ConsentV1, SectionKind, VendorSet
from tcstring.ranges import BITFIELD_ENCODING, decode_range_set, section_value
from tcstring.segments import bytes_from_base64

VERSION = 1  #: Value of the 6-bit version field
VERSION_BITS = 6
HEADER_BITS = 173  #: Fixed fields up to and including the encoding type
MAX_VENDOR_ID_BIT = 156
ENCODING_TYPE_BIT = 172
BITFIELD_START_BIT = 173
DEFAULT_CONSENT_BIT = 173
RANGE_START_BIT = 174


def decode_v1(text: str) -> ConsentV1:
    """Decode a TCF v1.1 consent string.

    :param text: Base64url consent string (``"BO..."``).
    :type text: str
    :returns: The decoded record.
    :rtype: ConsentV1
    :raises InvalidUrlSafeBase64Error: If ``text`` is not base64url.
    :raises UnsupportedVersionError: If the version field is not ``1``.
    :raises InsufficientLengthError: If the string is truncated.
    """
    reader = BitReader(bytes_from_base64(text))
    if reader.read_int(0, VERSION_BITS) != VERSION:
        raise UnsupportedVersionError()
    return decode_v1_bytes(reader)


def decode_v1_bytes(reader: BitReader) -> ConsentV1:
    """Assemble a V1 record from an already decoded buffer.

    :param reader: Reader over the decoded consent string.
    :type reader: BitReader
    :returns: The decoded record.
    :rtype: ConsentV1
    """
    reader.require(HEADER_BITS)

    return ConsentV1(
        created_at=reader.read_int(6, 36),
        updated_at=reader.read_int(42, 36),
        cmp_id=reader.read_int(78, 12),
        cmp_version=reader.read_int(90, 12),
        consent_screen=reader.read_int(102, 6),
        consent_language=reader.read_string(108, 6, 2),
        vendor_list_version=reader.read_int(120, 12),
        purposes_consent=reader.read_flags(132, 24),
        vendors=_decode_vendors(reader, reader.read_int(MAX_VENDOR_ID_BIT, 16)),
    )


def _decode_vendors(reader: BitReader, max_vendor_id: int) -> VendorSet:
    if reader.read_int(ENCODING_TYPE_BIT, 1) == BITFIELD_ENCODING:
        return VendorSet(
            is_blocklist=False,
            list=reader.read_flags(BITFIELD_START_BIT, max_vendor_id),
        )
    section = decode_range_set(reader, RANGE_START_BIT)
    return VendorSet(
        is_blocklist=reader.read_bool(DEFAULT_CONSENT_BIT),
        list=section_value(section, SectionKind.VENDOR),
    )
