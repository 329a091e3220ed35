from typing import Tuple

from tcstring.errors import InsufficientLengthError, InvalidAlphabetOffsetError

ALPHABET_SIZE = 26  #: Letters representable by a 6-bit character code


def require_bits(data: bytes, bit_count: int) -> None:
    """Ensure ``data`` holds at least ``bit_count`` bits.

    :param data: Buffer about to be read.
    :type data: bytes
    :param bit_count: Absolute bit index the next read will reach.
    :type bit_count: int
    :returns: None
    :rtype: None
    :raises InsufficientLengthError: If the buffer is too short.
    """
    if len(data) * 8 < bit_count:
        raise InsufficientLengthError()


def read_bits(data: bytes, start_bit: int, length: int) -> int:
    """Extract an unsigned integer of ``length`` bits starting at ``start_bit``.

    Bit 0 is the most significant bit of byte 0. The first byte is masked
    down to its remaining bits, interior bytes are shifted in whole and the
    last byte contributes only its leading bits.

    No bounds checking is done here, callers go through
    :func:`require_bits` first.

    :param data: Source buffer.
    :type data: bytes
    :param start_bit: Absolute bit offset of the most significant bit.
    :type start_bit: int
    :param length: Number of bits to read.
    :type length: int
    :returns: The decoded value.
    :rtype: int
    """
    if length <= 0:
        return 0
    end_bit = start_bit + length - 1
    first_byte = start_bit // 8
    last_byte = end_bit // 8
    value = data[first_byte] & (0xFF >> (start_bit % 8))
    if first_byte == last_byte:
        return value >> (7 - end_bit % 8)
    for index in range(first_byte + 1, last_byte):
        value = (value << 8) | data[index]
    tail_bits = end_bit % 8 + 1
    return (value << tail_bits) | (data[last_byte] >> (8 - tail_bits))


class BitReader:
    """Checked, random-access field reader over a decoded byte buffer.

    The reader keeps no cursor: every method takes an absolute bit offset so
    callers thread offsets explicitly from one section to the next.

    :ivar data: Buffer the fields are read from.
    :type data: bytes
    """

    def __init__(self, data: bytes):
        """Wrap ``data`` for reading.

        :param data: Source buffer.
        :type data: bytes
        :returns: None
        :rtype: None
        """
        self.data = bytes(data)

    def require(self, bit_count: int) -> None:
        """Raise :class:`InsufficientLengthError` unless ``bit_count`` bits exist."""
        require_bits(self.data, bit_count)

    def read_int(self, start_bit: int, length: int) -> int:
        """Read a fixed-width unsigned integer field.

        :param start_bit: Absolute bit offset of the field.
        :type start_bit: int
        :param length: Width of the field in bits.
        :type length: int
        :returns: The field value.
        :rtype: int
        :raises InsufficientLengthError: If the field runs past the buffer.
        """
        self.require(start_bit + length)
        return read_bits(self.data, start_bit, length)

    def read_bool(self, start_bit: int) -> bool:
        """Read a single flag bit."""
        return self.read_int(start_bit, 1) == 1

    def read_string(
        self, start_bit: int, bit_width: int = 6, char_count: int = 2
    ) -> str:
        """Read ``char_count`` letters encoded as offsets from ``'A'``.

        :param start_bit: Absolute bit offset of the first character.
        :type start_bit: int
        :param bit_width: Bits per character.
        :type bit_width: int
        :param char_count: Number of characters.
        :type char_count: int
        :returns: Uppercase string such as ``"EN"``.
        :rtype: str
        :raises InsufficientLengthError: If the characters run past the buffer.
        :raises InvalidAlphabetOffsetError: If a code is not in ``A``-``Z``.
        """
        self.require(start_bit + bit_width * char_count)
        chars = []
        for i in range(char_count):
            offset = read_bits(self.data, start_bit + i * bit_width, bit_width)
            if offset >= ALPHABET_SIZE:
                raise InvalidAlphabetOffsetError()
            chars.append(chr(ord("A") + offset))
        return "".join(chars)

    def read_flags(self, start_bit: int, length: int) -> Tuple[int, ...]:
        """Decode a run of flag bits into the 1-based positions that are set.

        :param start_bit: Absolute bit offset of the first flag.
        :type start_bit: int
        :param length: Number of flags.
        :type length: int
        :returns: Ascending identifiers whose flag is ``1``.
        :rtype: Tuple[int, ...]
        :raises InsufficientLengthError: If the bitmap runs past the buffer.
        """
        self.require(start_bit + length)
        data = self.data
        result = []
        for i in range(length):
            pos = start_bit + i
            if (data[pos >> 3] >> (7 - (pos & 7))) & 1:
                result.append(i + 1)
        return tuple(result)
