"""
Python implementation of random access BGZF compression and decompression.

Classes:
    Block: Represents a BGZF/GZIP block.
    BlockHeader: The fixed 18 byte BGZF block header including the block size subfield.
    Reader: Iterates the blocks of a source emitting (offset, payload) tuples.
    Writer: Convenience interface to write compressed data.

Functions:
    Source: Wraps a path, stream or buffer as a random access byte source.
    decode_header, encode_header: Parse and build BGZF block headers.
    block_size, next_block_offset, count_blocks: Navigate the blocks of a source.
    inflate_block, inflate_region, inflate_all_blocks: Decompress one block, a region of blocks or a whole source.
    inflate_block_to_text, inflate_region_to_text, inflate_all_to_text: As above, mapping each byte to a character.
    deflate_block, append_eof_block, compress: Build BGZF blocks.
    concat, concat_all, to_text: Buffer utilities.

Constants:
    EMPTY_BLOCK bytes: This is the byte data representing an empty block. This is used as an EOF marker at the end of BGZF compressed files.
    MAX_BLOCK_SIZE int: This is the maximum BGZF block size imposed by the domain of the two byte block size subfield value.

Example:
    from rabgzf import Source, inflate_region, next_block_offset

    with Source("data.gz") as source:
        data, last_size = inflate_region(source, 0, next_block_offset(source, 0))

For more:
    >> help(rabgzf.block) for more information on the Block object and header codec.
    >> help(rabgzf.reader) for more information on decoding.
    >> help(rabgzf.writer) for more information on encoding.
    >> help(rabgzf.source) for more information on byte sources.
    >> help(rabgzf.mt) for more information on the asynchronous interface.
    >> help(rabgzf.zlib) for more information on the zlib wrapper.
"""

from .__version import __version__
from .block import Block, BlockHeader, decode_header, encode_header, SIZEOF_HEADER, SIZEOF_TRAILER
from .reader import Reader, block_size, next_block_offset, count_blocks, inflate_block, inflate_block_to_text, \
    inflate_region, inflate_region_to_text, inflate_all_blocks, inflate_all_to_text
from .source import Source
from .util import EMPTY_BLOCK, SIZEOF_EMPTY_BLOCK, MAX_BLOCK_SIZE, MAX_DATA_SIZE, DEFAULT_BLOCK_DATA_SIZE, \
    FormatError, InvalidArgument, InvalidBGZF, ReadError, ReadTimeout, TruncatedFileWarning, \
    concat, concat_all, has_eof_marker, is_bgzf, to_text
from .writer import Writer, append_eof_block, compress, deflate_block
