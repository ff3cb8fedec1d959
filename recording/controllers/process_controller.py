"""
Process Controller

Owns one recording tool process from spawn to exit.

Readiness is detected from the tool's output (or from a successful spawn
when no matcher is given) and raced against the process exiting. Stopping
sends SIGINT so the tool can finalize the video file, escalating to SIGKILL
only after a grace period.

Concurrency model:
- Everything runs on one asyncio event loop
- A single background task spawns the process, drains its output and
  records the terminal state exactly once
- started() and stop() only ever wait on events set by that task, so the
  recorded exit is the one source of truth for both
"""

import asyncio
import codecs
import copy
import logging
import signal
from pathlib import Path
from typing import Callable, Dict, Optional, Sequence

from config.settings import (
    MAX_OUTPUT_TAIL,
    OUTPUT_CHUNK_SIZE,
    OUTPUT_DRAIN_TIMEOUT,
    STOP_GRACE_PERIOD,
)
from recording.constants import PROCESS_TRANSITIONS, TERMINAL_STATES, ProcessState
from recording.utils.cancellation import AbortError, CancellationSignal

ReadyMatcher = Callable[[str], bool]


class ProcessExitError(Exception):
    """
    Recording tool exited unsuccessfully.

    The message is the tool's trailing stderr when it wrote any, so the
    error classifier can see messages like "device offline".
    """

    def __init__(self, message: str, exit_code: Optional[int] = None, output: str = ""):
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output


class ProcessController:
    """
    Lifecycle controller for a single recording tool process.

    Must be created inside a running event loop; the process is spawned
    in the background straight away.

    Usage:
        controller = ProcessController(
            command="/usr/bin/xcrun",
            args=["simctl", "io", "booted", "recordVideo", "out.mp4"],
            ready_matcher=lambda text: "Recording started" in text,
        )
        await controller.started()  # Tool is recording
        # ... later ...
        await controller.stop()  # SIGINT, wait for a clean exit
    """

    def __init__(
        self,
        command: str,
        args: Sequence[str],
        env: Optional[Dict[str, str]] = None,
        cancellation: Optional[CancellationSignal] = None,
        ready_matcher: Optional[ReadyMatcher] = None,
        startup_delay: float = 0.0,
        stop_delay: float = 0.0,
        grace_period: Optional[float] = STOP_GRACE_PERIOD,
    ):
        """
        Initialize and spawn the process.

        Args:
            command: Executable to run
            args: Arguments, passed through in order
            env: Full environment for the child (None = inherit ours)
            cancellation: Signal that requests a graceful interrupt
            ready_matcher: Predicate over decoded output chunks; None means
                           the process is ready as soon as it has spawned
            startup_delay: Seconds to wait after readiness in started()
            stop_delay: Seconds to wait before interrupting in stop()
            grace_period: Seconds between SIGINT and SIGKILL (None = never kill)
        """
        self.logger = logging.getLogger(__name__)

        # Configuration
        self.command = str(command)
        self.args = [str(arg) for arg in args]
        self.env = dict(env) if env is not None else None
        self.cancellation = cancellation
        self.ready_matcher = ready_matcher
        self.startup_delay = startup_delay
        self.stop_delay = stop_delay
        self.grace_period = grace_period

        # State tracking
        self.state = ProcessState.STARTING
        self.exit_code: Optional[int] = None
        self.error: Optional[BaseException] = None
        self._output_tail = ""
        self._process: Optional[asyncio.subprocess.Process] = None

        # Latched events - set once, never cleared
        self._ready = asyncio.Event()
        self._exited = asyncio.Event()

        # Interrupt bookkeeping
        self._interrupt_requested = False
        self._interrupt_pending = False
        self._killed = False
        self._kill_timer: Optional[asyncio.TimerHandle] = None

        self._name = Path(self.command).name or self.command

        if cancellation is not None:
            cancellation.add_listener(self._on_cancel)

        self._task = asyncio.get_running_loop().create_task(self._run())

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def started(self) -> None:
        """
        Wait until the tool is ready, then for the startup delay.

        Raises:
            AbortError: If cancellation was requested before readiness
            OSError: If the tool could not be spawned
            ProcessExitError: If the tool exited before becoming ready
        """
        if self.cancellation is not None and self.cancellation.is_set:
            raise AbortError(self.cancellation.reason)

        if not self._ready.is_set():
            ready_waiter = asyncio.ensure_future(self._ready.wait())
            exit_waiter = asyncio.ensure_future(self._exited.wait())
            try:
                await asyncio.wait(
                    {ready_waiter, exit_waiter},
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                ready_waiter.cancel()
                exit_waiter.cancel()

            # Readiness is latched before the exit is recorded, so checking
            # it first picks the event that really happened first
            if not self._ready.is_set():
                raise self._exit_error()

        if self.startup_delay > 0:
            await asyncio.sleep(self.startup_delay)

    async def stop(self) -> None:
        """
        Wait for the stop delay, then stop the tool gracefully.

        Safe to call after the process already exited: nothing is signalled
        and the recorded outcome is reported straight away.

        Raises:
            OSError: If the tool could not be spawned
            AbortError: If the tool was cancelled before it became ready
            ProcessExitError: If the tool exited unsuccessfully
        """
        if self.stop_delay > 0:
            await asyncio.sleep(self.stop_delay)

        if not self._exited.is_set():
            self.logger.info(f"Stopping {self._name}...")
            self._request_interrupt()
            await self._exited.wait()

        self._raise_for_outcome()

    async def close(self) -> None:
        """
        Interrupt the tool if needed and wait for it to exit.

        Unlike stop(), never raises on the exit outcome. Used when a start
        attempt is abandoned.
        """
        if not self._exited.is_set():
            self._request_interrupt()
            await self._exited.wait()

    async def wait(self) -> None:
        """Wait until the process has exited (or failed to spawn)"""
        await self._exited.wait()

    @property
    def pid(self) -> Optional[int]:
        """PID of the tool, None until spawned"""
        return self._process.pid if self._process is not None else None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    @property
    def is_running(self) -> bool:
        """True while the process is alive"""
        return self._process is not None and not self._exited.is_set()

    @property
    def is_terminal(self) -> bool:
        """True once the exit (or spawn failure) has been recorded"""
        return self.state in TERMINAL_STATES

    @property
    def output(self) -> str:
        """Trailing stderr text (bounded)"""
        return self._output_tail

    # =========================================================================
    # BACKGROUND TASK
    # =========================================================================

    async def _run(self) -> None:
        """
        Spawn the process, drain its output and record how it ended.

        This is the only place the terminal state is recorded.
        """
        if self.cancellation is not None and self.cancellation.is_set:
            self.logger.info(f"Not starting {self._name}: already cancelled")
            self._finish(error=AbortError(self.cancellation.reason))
            return

        self.logger.debug(f"Executing: {self.command} {' '.join(self.args)}")

        try:
            self._process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
                # Terminal Ctrl+C reaches only us; the tool gets exactly one SIGINT
                start_new_session=True,
            )
        except asyncio.CancelledError:
            self._finish(error=AbortError("Process controller was shut down"))
            raise
        except Exception as e:
            self.logger.error(f"Failed to spawn {self._name}: {e}")
            self._finish(error=e)
            return

        self.logger.info(f"Spawned {self._name} (PID: {self._process.pid})")

        if self.ready_matcher is None:
            self._mark_ready()

        # stop() or a cancellation arrived while we were spawning
        if self._interrupt_pending:
            self._request_interrupt()

        readers = asyncio.gather(
            self._read_stream(self._process.stdout, self._stream_matcher(), capture=False),
            self._read_stream(self._process.stderr, self._stream_matcher(), capture=True),
        )

        try:
            returncode = await self._process.wait()
        except asyncio.CancelledError:
            readers.cancel()
            self._kill()
            self._finish(error=AbortError("Process controller was shut down"))
            raise

        try:
            await asyncio.wait_for(readers, timeout=OUTPUT_DRAIN_TIMEOUT)
        except asyncio.TimeoutError:
            self.logger.debug(f"{self._name} output still open after exit, not draining further")
        except Exception as e:
            self.logger.error(f"Error reading {self._name} output: {e}")

        self._finish(exit_code=returncode)

    def _stream_matcher(self) -> Optional[ReadyMatcher]:
        """
        Matcher for one output stream.

        Each stream gets its own shallow copy, so a stateful matcher never
        joins text from stdout onto text from stderr. Plain functions copy
        to themselves.
        """
        if self.ready_matcher is None:
            return None
        return copy.copy(self.ready_matcher)

    async def _read_stream(
        self,
        stream: Optional[asyncio.StreamReader],
        matcher: Optional[ReadyMatcher],
        capture: bool,
    ) -> None:
        """Read a stream chunk by chunk, checking readiness on each chunk"""
        if stream is None:
            return

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

        while True:
            chunk = await stream.read(OUTPUT_CHUNK_SIZE)
            if not chunk:
                break

            text = decoder.decode(chunk)
            if not text:
                continue

            if capture:
                self._append_output(text)

            self.logger.debug(f"[{self._name}] {text.rstrip()}")

            if matcher is not None and not self._ready.is_set():
                try:
                    matched = matcher(text)
                except Exception as e:
                    self.logger.error(f"Error in ready matcher: {e}")
                    matched = False

                if matched:
                    self._mark_ready()

    def _append_output(self, text: str) -> None:
        self._output_tail = (self._output_tail + text)[-MAX_OUTPUT_TAIL:]

    # =========================================================================
    # STATE TRANSITIONS
    # =========================================================================

    def _transition(self, new_state: ProcessState) -> None:
        """Move to a new state, refusing backward or repeated moves"""
        if new_state not in PROCESS_TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Invalid process state transition: "
                f"{self.state.value} -> {new_state.value}",
            )

        self.logger.debug(f"{self._name}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _mark_ready(self) -> None:
        if self._ready.is_set() or self.is_terminal:
            return

        self._ready.set()
        self._transition(ProcessState.RUNNING)
        self.logger.info(f"{self._name} is ready")

    def _finish(
        self,
        exit_code: Optional[int] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        """Record the terminal outcome and release timers and listeners"""
        if self._exited.is_set():
            return

        if self._kill_timer is not None:
            self._kill_timer.cancel()
            self._kill_timer = None

        if self.cancellation is not None:
            self.cancellation.remove_listener(self._on_cancel)

        cancelled_before_ready = (
            self.cancellation is not None
            and self.cancellation.is_set
            and not self._ready.is_set()
        )

        if error is not None:
            self.error = error
            self._transition(ProcessState.FAILED)
            self.logger.error(f"{self._name} failed: {error}")
        else:
            self.exit_code = exit_code
            if not self._is_clean_exit(exit_code) or not self._ready.is_set():
                self._transition(ProcessState.FAILED)
                if cancelled_before_ready:
                    self.logger.info(f"{self._name} cancelled before it was ready")
                else:
                    self.logger.warning(f"{self._name} exited with code {exit_code}")
            else:
                self._transition(ProcessState.STOPPED)
                self.logger.info(f"{self._name} stopped (exit code {exit_code})")

        self._exited.set()

    # =========================================================================
    # INTERRUPTS
    # =========================================================================

    def _on_cancel(self, reason: str) -> None:
        """Cancellation listener - asks the tool to stop, nothing more"""
        if self.is_terminal:
            return

        self.logger.info(f"Cancellation requested ({reason}), interrupting {self._name}")
        self._request_interrupt()

    def _request_interrupt(self) -> None:
        if self._process is None:
            # Still spawning; _run() interrupts once the process exists
            self._interrupt_pending = True
            return

        self._interrupt()

    def _interrupt(self) -> None:
        """Send SIGINT once and arm the SIGKILL escalation timer"""
        if self._interrupt_requested:
            return
        if self._process is None or self._process.returncode is not None:
            return

        self._interrupt_requested = True

        try:
            self._process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            self.logger.debug(f"{self._name} already exited, nothing to interrupt")
            return

        if self.grace_period is not None:
            self._kill_timer = asyncio.get_running_loop().call_later(
                self.grace_period,
                self._kill,
            )

    def _kill(self) -> None:
        """Force kill - last resort, the video file will likely be unusable"""
        self._kill_timer = None

        if self._process is None or self._process.returncode is not None:
            return

        self.logger.warning(f"{self._name} didn't stop gracefully, force killing")
        self._killed = True

        try:
            self._process.kill()
        except ProcessLookupError:
            pass

    # =========================================================================
    # OUTCOME
    # =========================================================================

    def _is_clean_exit(self, exit_code: Optional[int]) -> bool:
        if exit_code == 0:
            return True

        # Dying from the SIGINT we sent counts as stopping on request
        return self._interrupt_requested and exit_code == -signal.SIGINT

    def _raise_for_outcome(self) -> None:
        if self.error is not None:
            raise self.error

        if not self._is_clean_exit(self.exit_code):
            raise self._exit_error()

    def _exit_error(self) -> BaseException:
        """Build the error describing why the process is not usable"""
        if self.error is not None:
            return self.error

        if self.cancellation is not None and self.cancellation.is_set:
            return AbortError(self.cancellation.reason)

        output = self._output_tail.strip()

        if self._killed:
            message = (
                f"{self._name} did not exit within {self.grace_period}s "
                f"of SIGINT and was killed"
            )
        elif output:
            message = output
        else:
            code = self.exit_code if self.exit_code is not None else "unknown"
            message = f"Process exited with code {code}"

        return ProcessExitError(message, exit_code=self.exit_code, output=output)

    def __repr__(self) -> str:
        return (
            f"ProcessController(command={self._name!r}, "
            f"state={self.state.value}, pid={self.pid})"
        )
