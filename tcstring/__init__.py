"""Decoding of IAB TCF consent strings.

``decode`` picks the format from the first character of the string:
``B`` is TCF v1.1 and ``C`` is TCF v2. ``decode_v1`` and ``decode_v2`` skip
that dispatch.
"""
from tcstring.errors import (
    DecodeError,
    InsufficientLengthError,
    InvalidAlphabetOffsetError,
    InvalidSectionDefinitionError,
    InvalidSegmentDefinitionError,
    InvalidUrlSafeBase64Error,
    UnexpectedRangeSectionError,
    UnsupportedVersionError,
)
from tcstring.model import (
    ConsentRecord,
    ConsentV1,
    ConsentV2,
    PublisherRestriction,
    PublisherRestrictionType,
    VendorSet,
)
from tcstring.tcf_v1 import decode_v1
from tcstring.tcf_v2 import decode_v2

__all__ = [
    "decode",
    "decode_v1",
    "decode_v2",
    "ConsentRecord",
    "ConsentV1",
    "ConsentV2",
    "PublisherRestriction",
    "PublisherRestrictionType",
    "VendorSet",
    "DecodeError",
    "InsufficientLengthError",
    "InvalidAlphabetOffsetError",
    "InvalidSectionDefinitionError",
    "InvalidSegmentDefinitionError",
    "InvalidUrlSafeBase64Error",
    "UnexpectedRangeSectionError",
    "UnsupportedVersionError",
]

_DECODERS = {
    "B": decode_v1,
    "C": decode_v2,
}


def decode(text: str) -> ConsentRecord:
    """Decode a TCF consent string of either version.

    :param text: The consent string.
    :type text: str
    :returns: A :class:`ConsentV1` or :class:`ConsentV2` record.
    :rtype: ConsentRecord
    :raises TypeError: If ``text`` is not a string.
    :raises UnsupportedVersionError: If the first character is not ``B``/``C``.
    :raises DecodeError: For any other malformed input.
    """
    if not isinstance(text, str):
        raise TypeError(f"consent string must be str, not {type(text).__name__}")
    decoder = _DECODERS.get(text[:1])
    if decoder is None:
        raise UnsupportedVersionError()
    return decoder(text)
