"""
In-memory transport used by the laser tests.
"""

from typing import List, Optional

from ezburn.errors import WriteError
from ezburn.laser.transport import Transport


class FakeTransport(Transport):
    """
    Records every write.

    Args:
        short_write_on: Index of the write that only accepts part of its data
        fail_on: Index of the write that raises WriteError
        drain_result: Value returned by await_drained
        drain_fail_on: Index of the drain that raises WriteError
    """

    def __init__(self, short_write_on: Optional[int] = None,
                 fail_on: Optional[int] = None, drain_result: bool = True,
                 drain_fail_on: Optional[int] = None):
        self.writes: List[bytes] = []
        self.drain_calls: List[int] = []
        self.short_write_on = short_write_on
        self.fail_on = fail_on
        self.drain_result = drain_result
        self.drain_fail_on = drain_fail_on
        self.close_count = 0

    @property
    def is_open(self) -> bool:
        return self.close_count == 0

    @property
    def data(self) -> bytes:
        return b''.join(self.writes)

    def write(self, data: bytes) -> int:
        index = len(self.writes)
        if index == self.fail_on:
            raise WriteError("simulated write failure")
        if index == self.short_write_on:
            self.writes.append(data[:-1])
            return len(data) - 1
        self.writes.append(bytes(data))
        return len(data)

    def await_drained(self, timeout_ms: int = -1) -> bool:
        index = len(self.drain_calls)
        self.drain_calls.append(timeout_ms)
        if index == self.drain_fail_on:
            raise WriteError("simulated drain failure")
        return self.drain_result

    def close(self):
        self.close_count += 1
