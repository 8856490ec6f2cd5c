import threading


class ConcurrencyGate:
    """
    Counting permit pool for directory listings.

    Every listing opens a directory handle; the gate keeps the number of
    listings in flight at or below `capacity` so a wide tree cannot run the
    process out of file descriptors. File reads do not go through it.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Concurrency factor must be at least 1, got {capacity}")
        self.capacity = capacity
        self._sema = threading.BoundedSemaphore(capacity)

    def acquire(self):
        self._sema.acquire()

    def release(self):
        self._sema.release()

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
