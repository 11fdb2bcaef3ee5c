"""Stdout wrapper that fires a callback when the tool prints a password prompt."""

import io
import threading
from typing import Callable, Iterable


class PromptInterceptingStream(io.TextIOBase):
    """
    Forwards everything written to ``target`` and watches for a prompt marker.

    The first time any marker appears in the output, ``on_prompt`` is called
    once, before the chunk containing the marker is forwarded. Scanning stops
    after that, so repeated prompt text never triggers a second call.

    Markers are matched as exact substrings, including ones split across
    several writes. Only a trailing window as long as the longest marker
    (minus one character) is kept between writes.
    """

    def __init__(self, target, markers: Iterable[str], on_prompt: Callable[[], None]):
        super().__init__()
        self._target = target
        self._markers = tuple(m for m in markers if m)
        if not self._markers:
            raise ValueError("At least one non-empty prompt marker is required")
        self._on_prompt = on_prompt
        self._keep = max(len(m) for m in self._markers) - 1
        self._window = ""
        self._triggered = False
        self._lock = threading.Lock()

    @property
    def triggered(self) -> bool:
        return self._triggered

    @property
    def encoding(self):
        return getattr(self._target, "encoding", None)

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def write(self, s):
        if isinstance(s, (bytes, bytearray)):
            text = bytes(s).decode(self.encoding or "utf-8", errors="replace")
            self._scan(text)
            buffer = getattr(self._target, "buffer", None)
            if buffer is not None:
                buffer.write(s)
            else:
                self._target.write(text)
        else:
            self._scan(s)
            self._target.write(s)
        return len(s)

    def flush(self):
        self._target.flush()

    def _scan(self, text: str):
        with self._lock:
            if self._triggered:
                return
            window = self._window + text
            if not any(marker in window for marker in self._markers):
                self._window = window[-self._keep:] if self._keep else ""
                return
            self._triggered = True
            self._window = ""
        # Runs on the writing thread, before the tool gets to read stdin
        self._on_prompt()
