"""
Provides BGZF block compression and a convenience interface to write data to BGZF blocks.
"""

import io
import logging
import os

from . import zlib
from .block import BSIZE_OFFSET, SIZEOF_UINT16, Trailer, encode_header
from .util import DEFAULT_BLOCK_DATA_SIZE, EMPTY_BLOCK, InvalidArgument, MAX_BLOCK_SIZE, concat

log = logging.getLogger(__name__)

DEFAULT_COMPRESSION_LEVEL = int(os.getenv('RABGZF_COMPRESSION_LEVEL', '6'))


def deflate_block(data, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """
    Compress data into a single BGZF block.
    The caller is responsible for keeping data small enough to fit a block, see DEFAULT_BLOCK_DATA_SIZE.
    :param data: Uncompressed payload.
    :param level: zlib compression level from 0-9.
    :return: The complete block, header and trailer included.
    """
    cdata = zlib.raw_compress(data, level)
    trailer = Trailer(zlib.crc32(data), len(data))
    block = bytearray(encode_header(0))
    block += cdata
    block += bytes(trailer)
    if len(block) > MAX_BLOCK_SIZE:
        raise InvalidArgument("Compressed block of {} bytes exceeds the maximum block size of {}.".format(len(block), MAX_BLOCK_SIZE))
    block[BSIZE_OFFSET:BSIZE_OFFSET + SIZEOF_UINT16] = (len(block) - 1).to_bytes(SIZEOF_UINT16, byteorder='little')
    return bytes(block)


def append_eof_block(buffer) -> bytes:
    """
    Append the empty EOF marker block.
    An existing marker is not detected, calling this twice appends two markers.
    :param buffer: Buffer containing BGZF blocks.
    :return: New bytes object with EMPTY_BLOCK appended.
    """
    return concat(buffer, EMPTY_BLOCK)


def compress(data, level: int = DEFAULT_COMPRESSION_LEVEL) -> bytes:
    """
    Compress a whole buffer to BGZF, terminated with the EOF marker block.
    """
    output = bytearray()
    with Writer(output, level) as writer:
        writer(data)
    return bytes(output)


class _Writer:
    """
    Base class for buffer and stream writers.
    Provides Callable interface to compress data into blocks.
    Data is accumulated until a full block of payload is available, then compressed and written.
    """

    def __init__(self, output, level=DEFAULT_COMPRESSION_LEVEL, block_data_size=DEFAULT_BLOCK_DATA_SIZE):
        """
        Constructor.
        :param output: The buffer or stream to output compressed data.
        :param level: zlib compression level from 0-9.
        :param block_data_size: Uncompressed bytes per block.
        """
        self._output = output
        self._pending = bytearray()
        self.level = level
        self.block_data_size = block_data_size
        self.total_in = 0
        self.total_out = 0
        self.offsets = []
        self.finalized = False

    def _write(self, block):
        raise NotImplementedError()

    def finish_block(self):
        """
        Compresses any pending data into a block and writes it to the output.
        :return: None
        """
        if not self._pending:
            return
        block = deflate_block(self._pending, self.level)
        self.offsets.append(self.total_out)
        self._write(block)
        log.debug("Wrote block at %d: %d bytes -> %d bytes", self.total_out, len(self._pending), len(block))
        self.total_in += len(self._pending)
        self.total_out += len(block)
        self._pending = bytearray()

    def __call__(self, data):
        """
        Pass data to the compressor.
        Passing data larger than the block data size will result in the data being split between blocks.
        :param data: Data to add to compression stream.
        :return: None
        """
        if self.finalized:
            raise InvalidArgument("Writer has been finalized.")
        data = memoryview(data).cast('B')
        offset = 0
        while offset < len(data):
            take = min(self.block_data_size - len(self._pending), len(data) - offset)
            self._pending += data[offset:offset + take]
            offset += take
            if len(self._pending) >= self.block_data_size:
                self.finish_block()

    def finalize(self):
        """
        Writes any pending data and the EOF marker block.
        :return: None
        """
        if self.finalized:
            return
        self.finish_block()
        self._write(EMPTY_BLOCK)
        self.total_out += len(EMPTY_BLOCK)
        self.finalized = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.finalize()


def Writer(output, level=DEFAULT_COMPRESSION_LEVEL, block_data_size=DEFAULT_BLOCK_DATA_SIZE) -> _Writer:
    """
    Factory to provide a unified writer interface.
    Resolves if output is a stream and provides the appropriate _Writer implementation.
    :param output: A stream or bytearray object.
    :param level: zlib compression level from 0-9.
    :param block_data_size: Uncompressed bytes per block.
    :return: An instance of StreamWriter or BufferWriter.
    """
    if isinstance(output, (io.RawIOBase, io.BufferedIOBase)):
        return StreamWriter(output, level, block_data_size)
    else:
        return BufferWriter(output, level, block_data_size)


class BufferWriter(_Writer):
    """
    Implements _Writer to append to a bytearray.
    """

    def _write(self, block):
        self._output += block


class StreamWriter(_Writer):
    """
    Implements _Writer to output to a stream.
    """

    def _write(self, block):
        self._output.write(block)
