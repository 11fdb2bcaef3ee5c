"""
Supervised execution of the appcfg entry point.

The tool runs on its own thread. When stored credentials have to be entered,
``sys.stdin`` is replaced by the read end of an OS pipe and ``sys.stdout`` by a
PromptInterceptingStream. When the tool prints its password prompt, the
password is written into the pipe, so the tool reads it as if an operator had
typed it.

Swapping the process-wide streams is only safe for one invocation at a time.
SupervisedInvoker does not serialize callers itself (run_appcfg does).
There is also no way to cancel the tool: an interrupted wait reports a
failure and leaves the tool thread running.
"""

import logging
import os
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional

from appcfg_runner.errors import ExternalToolFault, StreamSetupError, SupervisionInterrupted
from appcfg_runner.models import DEFAULT_PROMPT_MARKERS, ResolvedCredentials
from appcfg_runner.prompt_stream import PromptInterceptingStream

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Interrupted waiting for the appcfg supervisor thread to finish"

EntryPoint = Callable[[List[str]], Any]


class ExitStatus(Enum):
    SUCCESS = "success"
    FAILURE = "failure"


class InvokerState(Enum):
    """Lifecycle of a single invoke() call."""
    IDLE = "idle"
    STREAMS_SWAPPED = "streams_swapped"
    RUNNING = "running"
    STREAMS_RESTORED = "streams_restored"
    DONE = "done"


@dataclass(frozen=True)
class InvocationResult:
    status: ExitStatus
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is ExitStatus.SUCCESS

    @classmethod
    def success(cls) -> "InvocationResult":
        return cls(status=ExitStatus.SUCCESS)

    @classmethod
    def failure(cls, error: BaseException) -> "InvocationResult":
        return cls(status=ExitStatus.FAILURE, error=error)


class _PasswordPipe:
    """OS pipe standing in for stdin; holds the password until its one write."""

    def __init__(self, password: str):
        try:
            read_fd, write_fd = os.pipe()
        except OSError as e:
            raise StreamSetupError(f"Unable to redirect input: {e}") from e
        self.reader = os.fdopen(read_fd, "r", encoding="utf-8")
        self._writer = os.fdopen(write_fd, "w", encoding="utf-8")
        self._password = password

    def enter_password(self):
        password, self._password = self._password, None
        if password is None:
            return
        try:
            self._writer.write(password + "\n")
            self._writer.flush()
        except (OSError, ValueError) as e:
            logger.error("Unable to enter password: %s", type(e).__name__)

    def close(self, reader_done: bool = True):
        self._password = None
        # Closing the writer gives a still-blocked reader EOF
        self._writer.close()
        if reader_done:
            self.reader.close()


@contextmanager
def _swapped_streams(stdout=None, stdin=None):
    """Install replacement sys.stdout/sys.stdin, restoring the originals on exit."""
    original_out, original_in = sys.stdout, sys.stdin
    if stdout is not None:
        sys.stdout = stdout
    if stdin is not None:
        sys.stdin = stdin
    try:
        yield
    finally:
        sys.stdout = original_out
        sys.stdin = original_in


class SupervisedInvoker:
    """Runs an appcfg-style ``main(argv)`` entry point on a dedicated thread."""

    def __init__(self, entry_point: EntryPoint,
                 prompt_markers: Iterable[str] = DEFAULT_PROMPT_MARKERS,
                 thread_name: str = "AppCfgMainThread"):
        self.entry_point = entry_point
        self.prompt_markers = tuple(prompt_markers)
        self.thread_name = thread_name
        self.state = InvokerState.IDLE

    def invoke(self, args: Iterable[str],
               credentials: Optional[ResolvedCredentials] = None) -> InvocationResult:
        """
        Run the entry point with ``args`` and wait for it to finish.

        Raises:
            StreamSetupError: the stdin pipe could not be created. Nothing
                has been swapped or started at that point.

        Tool failures and interruptions are returned as a FAILURE result,
        never raised.
        """
        args = list(args)
        self.state = InvokerState.IDLE
        pipe = None
        stdout = stdin = None
        try:
            if credentials is not None and credentials.requires_injection:
                pipe = _PasswordPipe(credentials.password)
                try:
                    stdout = PromptInterceptingStream(sys.stdout, self.prompt_markers, pipe.enter_password)
                except ValueError:
                    pipe.close()
                    raise
                stdin = pipe.reader
        finally:
            if credentials is not None:
                credentials.discard()

        outcome: dict = {}
        thread = threading.Thread(
            target=self._run_entry_point, args=(args, outcome),
            name=self.thread_name, daemon=True,
        )
        error = None
        try:
            with _swapped_streams(stdout=stdout, stdin=stdin):
                self.state = InvokerState.STREAMS_SWAPPED
                try:
                    thread.start()
                    self.state = InvokerState.RUNNING
                    self._wait(thread)
                except KeyboardInterrupt as e:
                    logger.error(INTERRUPTED_MESSAGE)
                    error = SupervisionInterrupted(INTERRUPTED_MESSAGE)
                    error.__cause__ = e
            self.state = InvokerState.STREAMS_RESTORED
        finally:
            if pipe is not None:
                pipe.close(reader_done=not thread.is_alive())

        if error is None:
            error = outcome.get("error")
        self.state = InvokerState.DONE
        if error is not None:
            return InvocationResult.failure(error)
        return InvocationResult.success()

    def _wait(self, thread: threading.Thread):
        # No timeout: appcfg decides when it is done
        thread.join()

    def _run_entry_point(self, args: List[str], outcome: dict):
        try:
            self.entry_point(args)
        except SystemExit as e:
            if e.code not in (None, 0):
                logger.error("appcfg exited with status %s", e.code)
                fault = ExternalToolFault(f"appcfg exited with status {e.code}")
                fault.__cause__ = e
                outcome["error"] = fault
        except Exception as e:
            logger.error("Unable to execute appcfg: %s", e, exc_info=True)
            fault = ExternalToolFault(f"Unable to execute appcfg: {e}")
            fault.__cause__ = e
            outcome["error"] = fault
