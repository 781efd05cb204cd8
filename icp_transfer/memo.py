import time
from typing import Callable, Optional, Union

MAX_MEMO = 2**64 - 1


def default_memo(clock: Callable[[], float] = time.time) -> int:
    """Wall-clock milliseconds; two calls in the same millisecond yield the same memo."""
    return int(clock() * 1000)


def normalize_memo(raw: Optional[Union[str, int]], clock: Callable[[], float] = time.time) -> int:
    """
    Turn an optional user supplied memo into the ledger's u64 memo.

    The memo is advisory, so anything that is not a non-negative integer in
    u64 range (negative, fractional, non-numeric, too large) falls back to the
    time based default instead of failing the transfer.
    """
    if isinstance(raw, bool):
        return default_memo(clock)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        value = int(raw.strip())
    else:
        return default_memo(clock)

    if 0 <= value <= MAX_MEMO:
        return value
    return default_memo(clock)
