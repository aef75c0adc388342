"""
Provides random access byte sources that BGZF data is read from.
"""

import io
import logging
import os
import threading

from .util import ReadError, open_buffer

log = logging.getLogger(__name__)


class _Source:
    """
    Base class for buffer and stream sources.
    Provides the length of the source and reads of byte ranges.
    """

    def __len__(self):
        raise NotImplementedError()

    def _read(self, start, end):
        raise NotImplementedError()

    def read(self, start: int, end: int) -> bytes:
        """
        Read the byte range [start, end) from the source.
        :param start: Offset of the first byte to read.
        :param end: Offset one past the last byte to read.
        :return: Bytes object of exactly end - start bytes.
        """
        length = len(self)
        if start < 0 or end < start or end > length:
            raise ReadError("Range [{}, {}) is outside of source of length {}.".format(start, end, length))
        data = self._read(start, end)
        if len(data) != end - start:
            raise ReadError("Short read at {}: expected {} bytes, got {}.".format(start, end - start, len(data)))
        return data

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def Source(input) -> _Source:
    """
    Factory to provide a unified source interface.
    Resolves if input is a path, a stream or a buffer and provides the appropriate _Source implementation.
    Passing a _Source instance returns it unchanged.
    :param input: A path, stream or buffer object.
    :return: An instance of BufferSource or StreamSource.
    """
    if isinstance(input, _Source):
        return input
    if isinstance(input, (str, os.PathLike)):
        return BufferSource(open_buffer(input), owned=True)
    if isinstance(input, (io.RawIOBase, io.BufferedIOBase)):
        return StreamSource(input)
    return BufferSource(input)


class BufferSource(_Source):
    """
    Implements _Source for data accessible through a buffer interface (bytes, bytearray, memoryview, mmap).
    """

    def __init__(self, input, owned=False):
        """
        Constructor.
        :param input: Buffer object to read from.
        :param owned: Close input when the source is closed.
        """
        self._input = input
        # Lengths and offsets are in bytes whatever the item size of input
        self._view = memoryview(input).cast('B')
        self._owned = owned

    def __len__(self):
        return len(self._view)

    def _read(self, start, end):
        return bytes(self._view[start:end])

    def close(self):
        self._view.release()
        if self._owned:
            self._input.close()


class StreamSource(_Source):
    """
    Implements _Source for seekable binary streams.
    Seek and read are done under a lock so the stream can be shared between threads.
    """

    def __init__(self, input):
        """
        Constructor.
        :param input: Seekable stream object to read from.
        """
        if not input.seekable():
            raise ReadError("Stream is not seekable.")
        self._input = input
        self._lock = threading.Lock()
        with self._lock:
            position = input.tell()
            self._len = input.seek(0, io.SEEK_END)
            input.seek(position)

    def __len__(self):
        return self._len

    def _read(self, start, end):
        with self._lock:
            self._input.seek(start)
            chunks = []
            remaining = end - start
            # Raw streams may return fewer bytes than requested before EOF
            while remaining:
                chunk = self._input.read(remaining)
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        log.debug("Read %d bytes at offset %d", end - start - remaining, start)
        return b''.join(chunks)
