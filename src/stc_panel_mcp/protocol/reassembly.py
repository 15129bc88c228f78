"""Reassembly of an arbitrarily-chunked byte stream into aligned frames.

The serial line delivers bytes in whatever chunks the OS hands back, with
no alignment to frame boundaries and the occasional burst of line noise.
:class:`FrameReassembler` buffers the stream, resynchronizes on the
``AA 55`` header and cuts complete 6-byte frames out of it.
"""

from __future__ import annotations

import logging

from .framing import FRAME_HEAD, FRAME_LEN, Frame

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER = 4096


class FrameReassembler:
    """Stateful accumulator that extracts header-aligned frames.

    Not reentrant: feed it from a single consumer only.

    Usage::

        reassembler = FrameReassembler()
        for frame in reassembler.feed(chunk):
            handle(frame)
    """

    def __init__(self, max_buffer: int = DEFAULT_MAX_BUFFER) -> None:
        if max_buffer < FRAME_LEN:
            raise ValueError(
                f"max_buffer must be at least {FRAME_LEN}, got {max_buffer}"
            )
        self._buf = bytearray()
        self._max_buffer = max_buffer
        self.discarded = 0
        self.frames_emitted = 0

    @property
    def pending(self) -> bytes:
        """Bytes buffered but not yet part of an emitted frame."""
        return bytes(self._buf)

    def feed(self, chunk: bytes) -> list[Frame]:
        """Append a chunk and return every frame that became complete.

        Bytes ahead of a header are noise and are dropped. A trailing
        partial frame stays buffered until more data arrives.
        """
        self._buf += chunk
        frames: list[Frame] = []

        while True:
            start = self._buf.find(FRAME_HEAD)
            if start < 0:
                break
            if start > 0:
                logger.debug("Dropping %d noise byte(s) before header", start)
                del self._buf[:start]
                self.discarded += start
            if len(self._buf) < FRAME_LEN:
                break
            frames.append(Frame(bytes(self._buf[:FRAME_LEN])))
            del self._buf[:FRAME_LEN]

        if len(self._buf) > self._max_buffer:
            self._reset_overflow()

        self.frames_emitted += len(frames)
        return frames

    def _reset_overflow(self) -> None:
        # Keep a trailing 0xAA, it may be the first half of a split header
        keep = 1 if self._buf[-1:] == FRAME_HEAD[:1] else 0
        dropped = len(self._buf) - keep
        logger.warning(
            "Reassembly buffer overflow (%d bytes without a header), resetting",
            len(self._buf),
        )
        del self._buf[: len(self._buf) - keep]
        self.discarded += dropped
