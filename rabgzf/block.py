import ctypes as C
from enum import IntFlag

from . import zlib
from .util import InvalidArgument, InvalidBGZF, MAX_BLOCK_SIZE, MAX_DATA_SIZE

SIZEOF_UINT16 = C.sizeof(C.c_uint16)
FIXED_XLEN_HEADER = b'\x1f\x8b\x08\x04\x00\x00\x00\x00\x00\xff\x06\x00\x42\x43\x02\x00'

ID1 = 31
ID2 = 139
CM_DEFLATE = 8
BGZF_XLEN = 6
BGZF_SI1 = 66  # 'B'
BGZF_SI2 = 67  # 'C'


# Taken from RFC 1952
class BlockFlags(IntFlag):
    FTEXT = 1 << 0
    FHCRC = 1 << 1
    FEXTRA = 1 << 2
    FNAME = 1 << 3
    FCOMMENT = 1 << 4
    reserved1 = 1 << 5
    reserved2 = 1 << 6
    reserved3 = 1 << 7


class Header(C.LittleEndianStructure):
    """
    Represents BGZF/GZIP block header.
    """
    _pack_ = 1
    _fields_ = [
        ("id1", C.c_uint8),  # ID1   gzip IDentifier1            uint8 31
        ("id2", C.c_uint8),  # ID2   gzip IDentifier2            uint8 139
        ("cm", C.c_uint8),  # CM    gzip Compression Method     uint8 8
        ("flg", C.c_uint8),  # FLG   gzip FLaGs                  uint8 4
        ("mtime", C.c_uint32),  # MTIME gzip Modification TIME      uint32
        ("xfl", C.c_uint8),  # XFL   gzip eXtra FLags            uint8
        ("os", C.c_uint8),  # OS    gzip Operating System       uint8
        ("xlen", C.c_uint16)  # XLEN  gzip eXtra LENgth           uint16 6
    ]


class BSIZE(C.LittleEndianStructure):
    """
    Represents the BGZF block size subfield, the only extra field permitted in a BGZF header.
    """
    _pack_ = 1
    _fields_ = [
        ("si1", C.c_uint8),  # SI1   Subfield Identifier1        uint8 66
        ("si2", C.c_uint8),  # SI2   Subfield Identifier2        uint8 67
        ("slen", C.c_uint16),  # SLEN  Subfield LENgth           uint16 2
        ("bsize", C.c_uint16)  # BSIZE total Block SIZE minus 1  uint16
    ]


class BlockHeader(C.LittleEndianStructure):
    """
    Represents the complete fixed size header at the start of every BGZF block.
    """
    _pack_ = 1
    _fields_ = [
        ("head", Header),
        ("subhead", BSIZE)
    ]


class Trailer(C.LittleEndianStructure):
    """
    Represents BGZF/GZIP block trailer.
    """
    _pack_ = 1
    _fields_ = [
        ("crc32", C.c_uint32),  # CRC32 CRC-32                      uint32
        ("uncompressed_size", C.c_uint32)  # ISIZE Input SIZE (length of uncompressed data) uint32
    ]


SIZEOF_HEADER = C.sizeof(BlockHeader)
SIZEOF_TRAILER = C.sizeof(Trailer)
SIZEOF_BLOCK_OVERHEAD = SIZEOF_HEADER + SIZEOF_TRAILER
BSIZE_OFFSET = SIZEOF_HEADER - SIZEOF_UINT16


def decode_header(buffer, offset=0) -> BlockHeader:
    """
    Parse and validate a BGZF block header.
    :param buffer: Buffer containing at least SIZEOF_HEADER bytes from offset.
    :param offset: Offset into buffer pointing to first block byte.
    :return: BlockHeader instance. The header is a copy and does not reference buffer.
    """
    available = len(buffer) - offset
    if available < SIZEOF_HEADER:
        raise InvalidBGZF("Block header requires {} bytes, {} available.".format(SIZEOF_HEADER, max(available, 0)))
    header = BlockHeader.from_buffer_copy(bytes(buffer[offset:offset + SIZEOF_HEADER]))
    head, subhead = header.head, header.subhead
    if head.id1 != ID1 or head.id2 != ID2:
        raise InvalidBGZF("Invalid block header found: ID1: {} ID2: {}".format(head.id1, head.id2))
    if head.cm != CM_DEFLATE:
        raise InvalidBGZF("Unsupported compression method: {}".format(head.cm))
    if not head.flg & BlockFlags.FEXTRA:
        raise InvalidBGZF("Block header is missing the extra field flag.")
    if head.xlen != BGZF_XLEN:
        raise InvalidBGZF("Invalid extra field length: {}".format(head.xlen))
    if subhead.si1 != BGZF_SI1 or subhead.si2 != BGZF_SI2 or subhead.slen != SIZEOF_UINT16:
        raise InvalidBGZF("Missing block size field.")
    return header


def encode_header(bsize: int) -> bytes:
    """
    Build a canonical BGZF block header.
    :param bsize: Total block size minus 1.
    :return: SIZEOF_HEADER bytes.
    """
    if not 0 <= bsize < MAX_BLOCK_SIZE:
        raise InvalidArgument("Block size field out of range: {}".format(bsize))
    return FIXED_XLEN_HEADER + bsize.to_bytes(SIZEOF_UINT16, byteorder='little', signed=False)


class Block:
    """
    Represents BGZF/GZIP block.
    """
    __slots__ = '_header', '_trailer'

    def __init__(self, header: BlockHeader, trailer: Trailer):
        """
        Constructor.
        :param header: BlockHeader object instance.
        :param trailer: Trailer object instance.
        """
        self._header = header
        self._trailer = trailer

    @property
    def header(self):
        return self._header

    @property
    def flags(self):
        return BlockFlags(self._header.head.flg)

    @property
    def modification_time(self):
        return self._header.head.mtime

    @property
    def os(self):
        return self._header.head.os

    @property
    def bsize(self):
        return self._header.subhead.bsize

    @property
    def size(self):
        return self._header.subhead.bsize + 1

    @property
    def cdata_size(self):
        return self.size - SIZEOF_BLOCK_OVERHEAD

    @property
    def crc32(self):
        return self._trailer.crc32

    @property
    def uncompressed_size(self):
        return self._trailer.uncompressed_size

    def __len__(self):
        return self.size

    def inflate(self, cdata) -> bytes:
        """
        Decompress the data of this block and check it against the trailer.
        :param cdata: Compressed data as returned by from_buffer().
        :return: Decompressed block payload.
        """
        if self.uncompressed_size > MAX_DATA_SIZE:
            raise InvalidBGZF("Uncompressed size {} exceeds the maximum block data size of {}.".format(self.uncompressed_size, MAX_DATA_SIZE))
        data = zlib.raw_decompress(cdata, self.uncompressed_size)
        crc = zlib.crc32(data)
        if crc != self.crc32:
            raise InvalidBGZF("CRC32 mismatch: expected {:#010x}, found {:#010x}".format(self.crc32, crc))
        return data

    @staticmethod
    def from_buffer(buffer, offset=0) -> ('Block', memoryview):
        """
        Load a block from a buffer.
        This references the buffer data and does not copy the compressed data in memory.
        :param buffer: Buffer to read from.
        :param offset: Offset into buffer pointing to first block byte.
        :return: Tuple containing: (Block instance, memoryview containing compressed block data).
        """
        buffer = memoryview(buffer)
        header = decode_header(buffer, offset)
        block_size = header.subhead.bsize + 1
        if block_size < SIZEOF_BLOCK_OVERHEAD:
            raise InvalidBGZF("Block size {} is smaller than the block overhead.".format(block_size))
        if len(buffer) - offset < block_size:
            raise InvalidBGZF("Block requires {} bytes, {} available.".format(block_size, len(buffer) - offset))
        trailer_start = offset + block_size - SIZEOF_TRAILER
        trailer = Trailer.from_buffer_copy(buffer[trailer_start:trailer_start + SIZEOF_TRAILER])

        return Block(header, trailer), buffer[offset + SIZEOF_HEADER: trailer_start]
