"""
Asynchronous interface to the BGZF decoding functions.

Operations are submitted to a thread pool and return concurrent.futures.Future instances.
Every read from the source is waited on with a timeout and checked against a cancellation flag.
A read that times out is abandoned on its thread and later reads run on a fresh I/O pool.

Environment:
    RABGZF_THREADS: Default number of worker threads.
    RABGZF_READ_TIMEOUT: Seconds to wait for a single read, 0 to wait forever. Default=30.
"""

import os

THREAD_NAME = 'RABGZF_WORKER'
DEFAULT_THREADS = int(os.getenv('RABGZF_THREADS', '0')) or (len(os.sched_getaffinity(0)) if hasattr(os, 'sched_getaffinity') else os.cpu_count())
READ_TIMEOUT = float(os.getenv('RABGZF_READ_TIMEOUT', '30')) or None

from .reader import Reader, TimeoutSource
