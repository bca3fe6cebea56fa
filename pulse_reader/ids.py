"""Time-based identifiers."""

import threading
import time

_lock = threading.Lock()
_last_stamp = 0


def next_stamp() -> int:
    """Epoch milliseconds, strictly increasing within the process."""
    global _last_stamp
    with _lock:
        _last_stamp = max(int(time.time() * 1000), _last_stamp + 1)
        return _last_stamp


def new_id() -> str:
    return str(next_stamp())
