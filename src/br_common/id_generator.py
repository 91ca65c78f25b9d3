"""Time-ordered business IDs for bookings and payments.

IDs look like "bk_7d1c0a2f3b4e5000" : a prefix naming the record kind, then
a 64-bit value rendered as 16 hex digits.

Layout of the 64-bit value:
  - 44 bits: milliseconds since 2024-01-01T00:00:00Z
  - 8 bits:  worker id (0-255), one per uvicorn worker
  - 12 bits: per-millisecond sequence (0-4095)

Lexicographic order of IDs with the same prefix follows creation order.
"""

import threading
import time

_EPOCH_MS = 1_704_067_200_000
_WORKER_BITS = 8
_SEQUENCE_BITS = 12
_SEQUENCE_MASK = (1 << _SEQUENCE_BITS) - 1

BOOKING_PREFIX = "bk"
PAYMENT_PREFIX = "pay"


class BusinessIdGenerator:
    def __init__(self, worker_id: int = 0) -> None:
        if not 0 <= worker_id < (1 << _WORKER_BITS):
            raise ValueError(f"worker_id must be in [0, {(1 << _WORKER_BITS) - 1}]")
        self._worker_id = worker_id
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def next_value(self) -> int:
        with self._lock:
            now_ms = int(time.time() * 1000)
            # Clock stepped backwards: keep issuing from the last seen millisecond
            now_ms = max(now_ms, self._last_ms)
            if now_ms == self._last_ms:
                self._sequence = (self._sequence + 1) & _SEQUENCE_MASK
                if self._sequence == 0:
                    while now_ms <= self._last_ms:
                        now_ms = int(time.time() * 1000)
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return (
                ((now_ms - _EPOCH_MS) << (_WORKER_BITS + _SEQUENCE_BITS))
                | (self._worker_id << _SEQUENCE_BITS)
                | self._sequence
            )

    def next_id(self, prefix: str) -> str:
        return f"{prefix}_{self.next_value():016x}"


_generator = BusinessIdGenerator()


def new_booking_id() -> str:
    return _generator.next_id(BOOKING_PREFIX)


def new_payment_id() -> str:
    return _generator.next_id(PAYMENT_PREFIX)
