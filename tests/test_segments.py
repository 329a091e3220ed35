import binascii

import pytest

from tcstring.bitops import BitReader
from tcstring.errors import (
    InsufficientLengthError,
    InvalidSegmentDefinitionError,
    InvalidUrlSafeBase64Error,
)
from tcstring.model import PublisherTC
from tcstring.segments import (
    bytes_from_base64,
    decode_publisher_tc,
    decode_segments,
    split_segments,
)

DISCLOSED = "IAPPwAPrwA"
ALLOWED = "QAPPwAPrwA"
PUBLISHER_TC = "cAEAPAAAC7gAHw4AAA"
VENDORS = (1, 2, 3, 4, 5, 6, 19, 20, 21, 22, 23, 25, 27, 28, 29, 30)


def test_bytes_from_base64_unpadded():
    assert bytes_from_base64("AQID") == b"\x01\x02\x03"
    assert bytes_from_base64("AQI") == b"\x01\x02"
    assert bytes_from_base64("_-8") == b"\xff\xef"
    assert bytes_from_base64("") == b""


@pytest.mark.parametrize("text", ["AQ+D", "AQ/D", "AQI=", "AQ ID", "AQéD"])
def test_bytes_from_base64_rejects_foreign_symbols(text):
    with pytest.raises(InvalidUrlSafeBase64Error) as exc:
        bytes_from_base64(text)
    assert isinstance(exc.value.cause, ValueError)
    assert exc.value.__cause__ is exc.value.cause
    assert str(exc.value).startswith("ERR_INVALID_URL_SAFE_BASE64: ")


def test_bytes_from_base64_bad_length_wraps_cause():
    with pytest.raises(InvalidUrlSafeBase64Error) as exc:
        bytes_from_base64("AQIDB")
    assert exc.value.__cause__ is exc.value.cause
    assert isinstance(exc.value.cause, binascii.Error)


def test_split_segments_decodes_each_part():
    buffers = split_segments("AQID.AQI")
    assert buffers == [b"\x01\x02\x03", b"\x01\x02"]


@pytest.mark.parametrize("text", ["AQID.", ".AQID", "AQID..AQI", ""])
def test_split_segments_rejects_empty_parts(text):
    with pytest.raises(InsufficientLengthError):
        split_segments(text)


def test_decode_segments_classifies_by_type():
    segment = decode_segments(split_segments(".".join([DISCLOSED, ALLOWED])))
    assert segment.disclosed_vendors == VENDORS
    assert segment.allowed_vendors == VENDORS
    assert segment.publisher_tc is None


def test_decode_segments_empty():
    segment = decode_segments([])
    assert segment.disclosed_vendors is None
    assert segment.allowed_vendors is None
    assert segment.publisher_tc is None


def test_decode_segments_last_write_wins(bit_writer):
    later = bit_writer().write_bits(1, 3).write_bits(4, 16).write_bits(0, 1)
    later.write_flags({4}, 4)
    segment = decode_segments(
        [bytes_from_base64(DISCLOSED), later.flush()]
    )
    assert segment.disclosed_vendors == (4,)


@pytest.mark.parametrize("tag", [0, 4, 5, 6, 7])
def test_decode_segments_unknown_type(bit_writer, tag):
    data = bit_writer().write_bits(tag, 3).write_bits(0, 29).flush()
    with pytest.raises(InvalidSegmentDefinitionError):
        decode_segments([data])


def test_publisher_tc_segment():
    tc = decode_publisher_tc(BitReader(bytes_from_base64(PUBLISHER_TC)), 3)
    assert tc == PublisherTC(
        publisher_purposes_consent=(1, 13, 24),
        publisher_purposes_li_transparency=(1, 2, 3),
        custom_purposes_consent=(2, 3, 4, 19, 20, 21, 22, 23),
        custom_purposes_li_transparency=(5, 6, 7),
    )


def test_publisher_tc_without_custom_purposes(bit_writer):
    w = bit_writer().write_bits(3, 3)
    w.write_flags({2}, 24).write_flags({24}, 24).write_bits(0, 6)
    tc = decode_publisher_tc(BitReader(w.flush()), 3)
    assert tc == PublisherTC((2,), (24,))


def test_publisher_tc_truncated_custom_bitmap(bit_writer):
    w = bit_writer().write_bits(3, 3)
    w.write_flags(set(), 48).write_bits(40, 6).write_flags({1}, 40)
    with pytest.raises(InsufficientLengthError):
        decode_publisher_tc(BitReader(w.flush()), 3)
