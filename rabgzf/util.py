import mmap
import os
import stat

MAGIC = b'\x1F\x8B'
"""bytes: Magic bytes identifying BGZF block"""

MAX_BLOCK_SIZE = 2 ** 16
"""int: Largest total block size that the two byte block size subfield (total size - 1) can describe."""

MAX_DATA_SIZE = 2 ** 16
"""int: Largest uncompressed payload a compliant block may hold."""

DEFAULT_BLOCK_DATA_SIZE = 0xff00
"""int: Payload bytes per block used when splitting data. Leaves room for incompressible data to fit MAX_BLOCK_SIZE."""

EMPTY_BLOCK = b'\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00\x1b\x00\x03\x00\x00\x00\x00\x00\x00\x00\x00\x00'
"""bytes: This is the byte data representing an empty block. This is used as an EOF marker at the end of BGZF compressed files."""

SIZEOF_EMPTY_BLOCK = len(EMPTY_BLOCK)
"""int: Number of bytes that the empty block occupies."""


class InvalidBGZF(ValueError):
    """
    Exception to indicate invalid or unexpected data was read while trying to parse BGZF data.
    """
    pass


FormatError = InvalidBGZF


class InvalidArgument(ValueError):
    """
    Exception to indicate a call was made with arguments that can not be acted on.
    """
    pass


class ReadError(IOError):
    """
    Exception to indicate a byte range could not be read from a source.
    """
    pass


class ReadTimeout(ReadError):
    """
    Exception to indicate a read did not complete within the allowed time.
    """
    pass


class TruncatedFileWarning(UserWarning):
    """
    Warning to indicate the empty BGZF block marking EOF is missing, the data is possibly truncated.
    """
    pass


def is_bgzf(buffer, offset=0):
    """
    Helper to determine if passed buffer contains a BGZF block.
    :param buffer: Buffer containing unknown data.
    :param offset: Offset into buffer to being reading.
    :return: True if offset points to beginning of a BGZF block, False otherwise.
    """
    return bytes(buffer[offset:offset + 2]) == MAGIC


def has_eof_marker(buffer):
    """
    Helper to determine if a buffer of BGZF data is terminated with the empty block.
    :param buffer: Buffer containing BGZF data.
    :return: True if the last bytes of buffer are EMPTY_BLOCK.
    """
    return len(buffer) >= SIZEOF_EMPTY_BLOCK and bytes(buffer[-SIZEOF_EMPTY_BLOCK:]) == EMPTY_BLOCK


def concat(a, b) -> bytes:
    """
    Concatenate two buffers.
    :param a: First buffer.
    :param b: Buffer appended to a.
    :return: New bytes object containing a followed by b.
    """
    return b''.join((a, b))


def concat_all(buffers):
    """
    Concatenate an ordered sequence of buffers.
    A single buffer is returned as is without copying.
    :param buffers: Sequence of buffers.
    :return: Buffer containing every buffer in order.
    """
    buffers = list(buffers)
    if not buffers:
        raise InvalidArgument("No buffers to concatenate.")
    if len(buffers) == 1:
        return buffers[0]
    return b''.join(buffers)


def to_text(buffer) -> str:
    """
    Map each byte of buffer to the character with the same code point.
    Only suitable for single byte encodings (ASCII, latin-1).
    :param buffer: Buffer to convert.
    :return: String with one character per byte.
    """
    return bytes(buffer).decode('latin-1')


def open_buffer(path) -> mmap.mmap:
    """
    Open a file as a read only memory mapped buffer.
    :param path: String containing path to file.
    :return: mmap instance mapped to the specified file.
    """
    fh = os.open(path, os.O_RDONLY)
    try:
        stat_result = os.stat(fh)
        if stat.S_ISFIFO(stat_result.st_mode):
            raise ReadError("Can not open pipe as buffer: {}".format(path))
        if not stat_result.st_size:
            raise ReadError("Can not map empty file: {}".format(path))
        return mmap.mmap(fh, 0, access=mmap.ACCESS_READ)
    finally:
        os.close(fh)
