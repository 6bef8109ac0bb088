import time


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds, the timestamp format used on the wire."""
    return int(time.time() * 1000)
