"""Executors that run remote calls strictly one at a time."""

from concurrent.futures import ThreadPoolExecutor


class SerialExecutor:
    """Runs each call on a single worker thread and waits for its result.

    Only one remote call is ever in flight, which keeps the server's rate
    limits and makes progress reporting deterministic.
    """

    def __init__(self):
        self._pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="worklogger")

    def run(self, fn, *args, **kwargs):
        return self._pool.submit(fn, *args, **kwargs).result()

    def shutdown(self):
        self._pool.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.shutdown()


class InlineExecutor:
    """Runs each call directly in the caller's thread."""

    def run(self, fn, *args, **kwargs):
        return fn(*args, **kwargs)

    def shutdown(self):
        pass
