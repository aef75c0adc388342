"""
Provides a basic wrapper for the zlib library.

This uses ctypes to load the zlib dll from the system.
If this is run on a Windows system and ctypes.util.find() can not find zlibwapi.dll it will look in the folder this
code is stored in.

Only raw deflate streams are produced and consumed here, the gzip framing of a BGZF block is handled by
rabgzf.block and rabgzf.writer.
"""

import ctypes as C
import platform
from ctypes import util

from .util import InvalidBGZF

# Special thanks to Mark Nottingham https://gist.github.com/mnot/242459
# and the zlib example source for reference implementations.

# Constants taken from zlib.h
MAX_WBITS = 15
ZLIB_VERSION = C.c_char_p(b"1.2.3")

# Allowed flush values; see deflate() and inflate()
Z_NO_FLUSH = 0
Z_FINISH = 4

# Return codes for the compression/decompression functions. Negative values
# are errors, positive values are used for special but normal events.
Z_OK = 0
Z_STREAM_END = 1
Z_NEED_DICT = 2
Z_ERRNO = -1
Z_STREAM_ERROR = -2
Z_DATA_ERROR = -3
Z_MEM_ERROR = -4
Z_BUF_ERROR = -5
Z_VERSION_ERROR = -6

# compression levels
Z_NO_COMPRESSION = 0
Z_BEST_SPEED = 1
Z_BEST_COMPRESSION = 9
Z_DEFAULT_COMPRESSION = -1

Z_DEFAULT_STRATEGY = 0

# The deflate compression method (the only one supported in this version)
Z_DEFLATED = 8

Z_NULL = 0  # for initializing zalloc, zfree, opaque

if platform.system() == 'Windows':
    path = util.find_library("zlib1.dll")
    if not path:
        import os

        path = os.path.join(os.path.dirname(os.path.realpath(__file__)), 'zlibwapi.dll')
    _zlib = C.windll.LoadLibrary(path)
elif platform.system() == 'Darwin':
    _zlib = C.cdll.LoadLibrary(util.find_library("z") or "libz.dylib")
else:
    _zlib = C.cdll.LoadLibrary(util.find_library("z") or "libz.so.1")


class zState(C.Structure):
    """
    Represents the zlib internal state object used during inflate and deflate
    :ivar next_in: C._Pointer   next input byte
    :ivar avail_in: C.c_uint    number of bytes available at next_in
    :ivar total_in: C.c_ulong   total number of input bytes read so far
    :ivar next_out: C._Pointer  next output byte will go here
    :ivar avail_out: C.c_uint   remaining free space at next_out
    :ivar total_out: C.c_ulong  total number of bytes output so far
    :ivar msg: C.c_char_p       last error message, NULL if no error
    :ivar state: C.c_void_p     used to allocate the internal state
    :ivar zalloc: C.c_void_p    used to free the internal state
    :ivar zfree: C.c_void_p     private data object passed to zalloc and zfree
    :ivar opaque: C.c_void_p    best guess about the data type: binary or text
    :ivar data_type: C.c_int    for deflate, or the decoding state for inflate
    :ivar adler: C.c_ulong      Adler-32 or CRC-32 value of the uncompressed data
    :ivar reserved: C.c_ulong   reserved for future use
    """
    _fields_ = [
        ("next_in", C.POINTER(C.c_ubyte)),
        ("avail_in", C.c_uint),
        ("total_in", C.c_ulong),
        ("next_out", C.POINTER(C.c_ubyte)),
        ("avail_out", C.c_uint),
        ("total_out", C.c_ulong),
        ("msg", C.c_char_p),
        ("state", C.c_void_p),
        ("zalloc", C.c_void_p),
        ("zfree", C.c_void_p),
        ("opaque", C.c_void_p),
        ("data_type", C.c_int),
        ("adler", C.c_ulong),
        ("reserved", C.c_ulong),
    ]


SIZEOF_ZSTATE = C.sizeof(zState)

_zlib.deflateInit2_.argtypes = [C.POINTER(zState), C.c_int, C.c_int, C.c_int, C.c_int, C.c_int, C.c_char_p, C.c_int]
_zlib.deflateInit2_.restype = C.c_int
_zlib.deflate.argtypes = [C.POINTER(zState), C.c_int]
_zlib.deflate.restype = C.c_int
_zlib.deflateEnd.argtypes = [C.POINTER(zState)]
_zlib.deflateEnd.restype = C.c_int
_zlib.deflateBound.argtypes = [C.POINTER(zState), C.c_ulong]
_zlib.deflateBound.restype = C.c_ulong
_zlib.inflateInit2_.argtypes = [C.POINTER(zState), C.c_int, C.c_char_p, C.c_int]
_zlib.inflateInit2_.restype = C.c_int
_zlib.inflate.argtypes = [C.POINTER(zState), C.c_int]
_zlib.inflate.restype = C.c_int
_zlib.inflateEnd.argtypes = [C.POINTER(zState)]
_zlib.inflateEnd.restype = C.c_int
_zlib.crc32.argtypes = [C.c_ulong, C.c_char_p, C.c_uint]
_zlib.crc32.restype = C.c_ulong


def _as_ubyte_buffer(data) -> C.Array:
    """
    Copy data into a ctypes buffer that zlib can read from.
    A one byte buffer is returned for empty data so that a valid pointer is always available.
    """
    data = bytes(data)
    return C.create_string_buffer(data, len(data) or 1)


def _pointer(buffer) -> C._Pointer:
    return C.cast(buffer, C.POINTER(C.c_ubyte))


def _message(state, err) -> str:
    return state.msg.decode('ascii', 'replace') if state.msg else "zlib error code {}".format(err)


def raw_compress(src, level=Z_DEFAULT_COMPRESSION, wbits=MAX_WBITS, memlevel=8) -> bytes:
    """
    Wraps zlib.deflate().
    Compresses src in a single call into a raw deflate stream without zlib or gzip framing.
    :param src: Data buffer to compress.
    :param level: zlib algorithm compression level from 0-9. Pass -1 for zlib default.
    :param wbits: Compression window bit size. Defaults to MAX_WBITS, do not change unless you REALLY know what you are doing.
    :param memlevel: zlib memory usage level. See zlib documentation for more.
    :return: Compressed data.
    """
    src_len = len(src)
    src = _as_ubyte_buffer(src)
    state = zState()
    err = _zlib.deflateInit2_(C.byref(state), level, Z_DEFLATED, -wbits, memlevel, Z_DEFAULT_STRATEGY, ZLIB_VERSION, SIZEOF_ZSTATE)
    if err != Z_OK:
        raise ValueError("Failed to initialise deflate: {}".format(_message(state, err)))
    try:
        dest_len = _zlib.deflateBound(C.byref(state), src_len)
        dest = C.create_string_buffer(dest_len)
        state.next_in = _pointer(src)
        state.avail_in = src_len
        state.next_out = _pointer(dest)
        state.avail_out = dest_len
        err = _zlib.deflate(C.byref(state), Z_FINISH)
        if err != Z_STREAM_END:
            raise ValueError("Failed to deflate data: {}".format(_message(state, err)))
        return dest.raw[:state.total_out]
    finally:
        _zlib.deflateEnd(C.byref(state))


def raw_decompress(src, size, wbits=MAX_WBITS) -> bytes:
    """
    Wraps zlib.inflate().
    Decompresses a complete raw deflate stream in a single call.
    :param src: Data buffer containing the raw deflate stream.
    :param size: Expected size of the decompressed data. Output larger than this is treated as corrupt.
    :param wbits: Compression window bit size. Defaults to MAX_WBITS, do not change unless you REALLY know what you are doing.
    :return: Decompressed data.
    """
    src_len = len(src)
    src = _as_ubyte_buffer(src)
    # One spare byte so an overlong stream is detected rather than truncated
    dest = C.create_string_buffer(size + 1)
    state = zState()
    state.next_in = _pointer(src)
    state.avail_in = src_len
    err = _zlib.inflateInit2_(C.byref(state), -wbits, ZLIB_VERSION, SIZEOF_ZSTATE)
    if err != Z_OK:
        raise ValueError("Failed to initialise inflate: {}".format(_message(state, err)))
    try:
        state.next_out = _pointer(dest)
        state.avail_out = size + 1
        err = _zlib.inflate(C.byref(state), Z_FINISH)
        if err != Z_STREAM_END:
            raise InvalidBGZF("Invalid zlib data: {}".format(_message(state, err)))
        if state.total_out != size:
            raise InvalidBGZF("Inflated {} bytes, expected {}.".format(state.total_out, size))
        return dest.raw[:size]
    finally:
        _zlib.inflateEnd(C.byref(state))


def crc32(src, crc=0):
    """
    Calculate the CRC32 value of the input data.
    :param src: Buffer containing input data to evaluate.
    :param crc: Existing CRC to add to or 0.
    :return: CRC32 value of src.
    """
    src = bytes(src)
    return _zlib.crc32(crc, src, len(src))
