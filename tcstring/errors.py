from typing import Optional

INSUFFICIENT_LENGTH = "ERR_INSUFFICIENT_LENGTH"
UNSUPPORTED_VERSION = "ERR_UNSUPPORTED_VERSION"
INVALID_URL_SAFE_BASE64 = "ERR_INVALID_URL_SAFE_BASE64"
INVALID_ALPHABET_OFFSET = "ERR_INVALID_ALPHABET_OFFSET"
INVALID_SECTION_DEFINITION = "ERR_INVALID_SECTION_DEFINITION"
INVALID_SEGMENT_DEFINITION = "ERR_INVALID_SEGMENT_DEFINITION"
UNEXPECTED_RANGE_SECTION = "ERR_UNEXPECTED_RANGE_SECTION"


class DecodeError(ValueError):
    """Base class for every consent string decoding failure.

    A decode call either returns a complete record or raises one of the
    subclasses below; no partial record is ever produced.

    :ivar code: Stable machine-readable error code.
    :type code: str
    """

    code = "ERR_DECODE"

    def __init__(self, message: Optional[str] = None):
        """Create the error, defaulting the message to the error code.

        :param message: Optional human-readable message.
        :type message: Optional[str]
        :returns: None
        :rtype: None
        """
        super().__init__(message or self.code)


class InsufficientLengthError(DecodeError):
    """Fewer bits are available than a field or section needs."""

    code = INSUFFICIENT_LENGTH


class UnsupportedVersionError(DecodeError):
    """The version discriminator does not match a known format."""

    code = UNSUPPORTED_VERSION


class InvalidUrlSafeBase64Error(DecodeError):
    """The text is not valid URL-safe base64.

    :ivar cause: The underlying decode failure.
    :type cause: Exception
    """

    code = INVALID_URL_SAFE_BASE64

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(f"{self.code}: {cause}")


class InvalidAlphabetOffsetError(DecodeError):
    """A 6-bit character code decoded to something outside ``A``-``Z``."""

    code = INVALID_ALPHABET_OFFSET


class InvalidSectionDefinitionError(DecodeError):
    """A core section resolved to an unexpected shape."""

    code = INVALID_SECTION_DEFINITION


class InvalidSegmentDefinitionError(DecodeError):
    """An optional V2 segment carries an unknown type tag."""

    code = INVALID_SEGMENT_DEFINITION


class UnexpectedRangeSectionError(DecodeError):
    """A vendor segment decoded to something other than a vendor set."""

    code = UNEXPECTED_RANGE_SECTION
