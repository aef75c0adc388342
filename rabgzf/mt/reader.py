import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor, TimeoutError

from rabgzf.mt import DEFAULT_THREADS, READ_TIMEOUT, THREAD_NAME
from .. import reader
from ..source import Source, _Source
from ..util import ReadTimeout

log = logging.getLogger(__name__)


class TimeoutSource(_Source):
    """
    Wraps a source so that each read runs on an I/O thread and is abandoned if it does not finish in time.
    A timed out read leaves its thread blocked, so the I/O pool is replaced and later reads do not queue behind it.
    Reads of a StreamSource share one lock, time spent waiting on it counts against the timeout.
    A cancelled source fails every following read with CancelledError.
    """

    def __init__(self, source, timeout=READ_TIMEOUT):
        """
        Constructor.
        :param source: Source to wrap. Anything accepted by rabgzf.source.Source().
        :param timeout: Seconds to wait for each read, None to wait forever.
        """
        self._source = Source(source)
        self.timeout = timeout
        self._cancelled = threading.Event()
        self._lock = threading.Lock()
        self._io = self._new_pool()

    @staticmethod
    def _new_pool():
        return ThreadPoolExecutor(max_workers=DEFAULT_THREADS, thread_name_prefix=THREAD_NAME + '_IO')

    def __len__(self):
        return len(self._source)

    def cancel(self):
        self._cancelled.set()

    @property
    def cancelled(self):
        return self._cancelled.is_set()

    def read(self, start: int, end: int) -> bytes:
        if self.cancelled:
            raise CancelledError()
        with self._lock:
            pool = self._io
            future = pool.submit(self._source.read, start, end)
        try:
            return future.result(self.timeout)
        except TimeoutError:
            future.cancel()
            self._replace_pool(pool)
            log.debug("Read of [%d, %d) timed out after %s seconds", start, end, self.timeout)
            raise ReadTimeout("Read of [{}, {}) did not complete within {} seconds.".format(start, end, self.timeout))

    def _replace_pool(self, pool):
        with self._lock:
            if self._io is pool:
                self._io = self._new_pool()
        pool.shutdown(wait=False)

    def close(self):
        self._io.shutdown(wait=False)
        self._source.close()


class Reader:
    """
    Submits BGZF decoding operations to a thread pool.
    Each method mirrors the function of the same name in rabgzf.reader and returns a Future of its result.
    Reads within an operation remain sequential.
    """

    def __init__(self, source, threadpool: ThreadPoolExecutor = None, timeout=READ_TIMEOUT):
        """
        Constructor.
        :param source: Source containing BGZF data. Anything accepted by rabgzf.source.Source().
        :param threadpool: Executor to run operations on. A private pool is created if None.
        :param timeout: Seconds to wait for each read, None to wait forever.
        """
        self._owns_pool = threadpool is None
        self.pool = threadpool or ThreadPoolExecutor(max_workers=DEFAULT_THREADS, thread_name_prefix=THREAD_NAME)
        self.source = TimeoutSource(source, timeout)

    def _submit(self, fn, *args) -> Future:
        if self.source.cancelled:
            raise CancelledError()
        return self.pool.submit(fn, self.source, *args)

    def cancel(self):
        """
        Abort every operation at its next read. Operations already past their last read still complete.
        """
        self.source.cancel()

    def block_size(self, offset: int) -> Future:
        return self._submit(reader.block_size, offset)

    def next_block_offset(self, offset: int) -> Future:
        return self._submit(reader.next_block_offset, offset)

    def count_blocks(self) -> Future:
        return self._submit(reader.count_blocks)

    def inflate_block(self, block_offset: int) -> Future:
        return self._submit(reader.inflate_block, block_offset)

    def inflate_block_to_text(self, block_offset: int) -> Future:
        return self._submit(reader.inflate_block_to_text, block_offset)

    def inflate_region(self, beg_offset: int, end_offset: int) -> Future:
        return self._submit(reader.inflate_region, beg_offset, end_offset)

    def inflate_region_to_text(self, beg_offset: int, end_offset: int) -> Future:
        return self._submit(reader.inflate_region_to_text, beg_offset, end_offset)

    def inflate_all_blocks(self) -> Future:
        return self._submit(reader.inflate_all_blocks)

    def inflate_all_to_text(self) -> Future:
        return self._submit(reader.inflate_all_to_text)

    def close(self):
        if self._owns_pool:
            self.pool.shutdown(wait=True)
        self.source.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
