"""
Chunked transmission to the engraver.

The device has a small receive buffer, so large payloads go out in
bounded chunks and each chunk has to leave the host before the next one
is written.
"""

import logging
from typing import List, Tuple

from .transport import Transport
from ..errors import TransmissionFailure, WriteError

logger = logging.getLogger(__name__)

ChunkPlan = List[Tuple[int, int]]


def plan_chunks(length: int, chunk_size: int) -> ChunkPlan:
    """
    Split a buffer length into (start, end) ranges.

    Every range holds at most chunk_size bytes; the last one may be shorter.
    """
    if chunk_size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {chunk_size}")
    return [(start, min(start + chunk_size, length))
            for start in range(0, length, chunk_size)]


class TransmissionScheduler:
    """Write buffers through a transport chunk by chunk."""

    def __init__(self, transport: Transport, drain_timeout_ms: int = -1):
        self.transport = transport
        self.drain_timeout_ms = drain_timeout_ms
        self.chunks_sent = 0

    def send(self, data: bytes, chunk_size: int) -> int:
        """
        Send a buffer in chunks of at most chunk_size bytes.

        Args:
            data: Bytes to transmit
            chunk_size: Maximum bytes per write

        Returns:
            Total number of bytes handed to the transport

        Raises:
            TransmissionFailure: On a short write, a rejected write or a
                drain that did not finish in time. Nothing is retried.
        """
        plan = plan_chunks(len(data), chunk_size)
        view = memoryview(data)
        sent = 0
        self.chunks_sent = 0

        for index, (start, end) in enumerate(plan):
            chunk = view[start:end]
            try:
                written = self.transport.write(bytes(chunk))
            except WriteError as e:
                logger.error("Chunk %d/%d rejected after %d bytes", index + 1, len(plan), sent)
                raise TransmissionFailure(f"Chunk {index + 1} rejected: {e}", sent) from e

            sent += written
            self.chunks_sent += 1
            if written != len(chunk):
                logger.error("Short write on chunk %d/%d: %d of %d bytes",
                             index + 1, len(plan), written, len(chunk))
                raise TransmissionFailure(
                    f"Short write on chunk {index + 1}: {written} of {len(chunk)} bytes", sent
                )

            if not self._drain(sent):
                logger.error("Transport did not drain after chunk %d/%d", index + 1, len(plan))
                raise TransmissionFailure(f"Timed out draining chunk {index + 1}", sent)
            logger.debug("Sent chunk %d/%d (%d bytes)", index + 1, len(plan), written)

        return sent

    def await_completion(self, timeout_ms: int = -1) -> bool:
        """
        Block until the transport's output queue is empty.

        Returns:
            True if drained, False if timeout_ms elapsed first. A negative
            timeout waits indefinitely.
        """
        return self.transport.await_drained(timeout_ms)

    def _drain(self, sent: int) -> bool:
        try:
            return self.transport.await_drained(self.drain_timeout_ms)
        except WriteError as e:
            logger.error("Drain failed after %d bytes", sent)
            raise TransmissionFailure(f"Drain failed: {e}", sent) from e
