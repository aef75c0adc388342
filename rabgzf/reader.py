"""
Provides random access decoding of BGZF data.

Every function takes a source (see rabgzf.source.Source) and offsets into the compressed data.
Headers are re-read from the source on every call, nothing is cached between calls.
Reads are sequential: the location of a block is only known after the header of the block preceding it is decoded.
"""

import logging
import warnings

from .block import Block, SIZEOF_HEADER, decode_header
from .source import Source
from .util import InvalidArgument, InvalidBGZF, SIZEOF_EMPTY_BLOCK, TruncatedFileWarning, concat_all, has_eof_marker, to_text

log = logging.getLogger(__name__)


def block_size(source, offset: int) -> int:
    """
    Size of the compressed block starting at offset.
    :param source: Source containing BGZF data.
    :param offset: Offset of the first byte of a block.
    :return: Total size of the block in bytes, header and trailer included.
    """
    source = Source(source)
    return decode_header(source.read(offset, offset + SIZEOF_HEADER)).subhead.bsize + 1


def next_block_offset(source, offset: int) -> int:
    """
    Offset of the block following the block starting at offset.
    The returned offset is not checked against the length of the source.
    :param source: Source containing BGZF data.
    :param offset: Offset of the first byte of a block.
    :return: Offset one past the last byte of the block at offset.
    """
    return offset + block_size(source, offset)


def count_blocks(source) -> int:
    """
    Count every block in source, including the empty EOF block.
    This walks every block header in the source, for large files this will take a long time.
    :param source: Source containing BGZF data.
    :return: Number of blocks.
    """
    source = Source(source)
    length = len(source)
    offset = 0
    count = 0
    while offset < length:
        offset = next_block_offset(source, offset)
        count += 1
    if offset > length:
        raise InvalidBGZF("Last block ends at {}, past the end of the source at {}.".format(offset, length))
    _check_eof_marker(source)
    log.debug("Counted %d blocks in %d bytes", count, length)
    return count


def _check_eof_marker(source):
    length = len(source)
    if not has_eof_marker(source.read(max(length - SIZEOF_EMPTY_BLOCK, 0), length)):
        warnings.warn("Missing EOF marker, data is possibly truncated.", TruncatedFileWarning)


def _inflate_block(source, offset) -> (bytes, int):
    size = block_size(source, offset)
    block, cdata = Block.from_buffer(source.read(offset, offset + size))
    log.debug("Inflating block at %d: %d bytes -> %d bytes", offset, size, block.uncompressed_size)
    return block.inflate(cdata), size


def inflate_block(source, block_offset: int) -> bytes:
    """
    Decompress a single block.
    :param source: Source containing BGZF data.
    :param block_offset: Offset of the first byte of a block.
    :return: The uncompressed block payload.
    """
    return _inflate_block(Source(source), block_offset)[0]


def inflate_block_to_text(source, block_offset: int) -> str:
    """
    Decompress a single block and map each byte to a character.
    Only valid for single byte encoded text.
    """
    return to_text(inflate_block(source, block_offset))


def inflate_region(source, beg_offset: int, end_offset: int) -> (bytes, int):
    """
    Decompress every block starting in the region [beg_offset, end_offset].
    The block starting at beg_offset is always decompressed. Each following block is included if its offset is
    less than or equal to end_offset, even if the block extends past end_offset.
    :param source: Source containing BGZF data.
    :param beg_offset: Offset of the first byte of a block.
    :param end_offset: Last offset of the region. Need not be a block offset.
    :return: Tuple containing: (concatenated payloads, size of the payload of the last block).
    """
    if end_offset < beg_offset:
        raise InvalidArgument("Region end {} is before region start {}.".format(end_offset, beg_offset))
    source = Source(source)
    payloads = []
    offset = beg_offset
    while True:
        data, size = _inflate_block(source, offset)
        payloads.append(data)
        offset += size
        if offset > end_offset:
            break
    log.debug("Inflated %d blocks in region [%d, %d]", len(payloads), beg_offset, end_offset)
    return concat_all(payloads), len(payloads[-1])


def inflate_all_blocks(source) -> (bytes, int):
    """
    Decompress an entire source.
    The whole uncompressed content is held in memory, this is unsuitable for large data files.
    :param source: Source containing BGZF data.
    :return: Tuple containing: (concatenated payloads, size of the payload of the last block).
    """
    source = Source(source)
    _check_eof_marker(source)
    return inflate_region(source, 0, len(source) - 1)


def inflate_region_to_text(source, beg_offset: int, end_offset: int) -> (str, int):
    data, last_size = inflate_region(source, beg_offset, end_offset)
    return to_text(data), last_size


def inflate_all_to_text(source) -> (str, int):
    data, last_size = inflate_all_blocks(source)
    return to_text(data), last_size


class Reader:
    """
    Iterates the blocks of a source, emitting (block offset, payload) tuples.
    """

    def __init__(self, source, offset: int = 0):
        """
        Constructor.
        :param source: Source containing BGZF data.
        :param offset: The offset of the block to begin reading from.
        """
        self._source = Source(source)
        self._len = len(self._source)
        self.offset = offset
        self.total_in = 0
        self.total_out = 0

    def __iter__(self):
        return self

    def __next__(self) -> (int, bytes):
        if self.offset >= self._len:
            raise StopIteration()
        offset = self.offset
        data, size = _inflate_block(self._source, offset)
        self.offset += size
        self.total_in += size
        self.total_out += len(data)
        return offset, data
