"""
Cancellation Signals

One-shot cancellation flags and a combinator that merges a caller's signal
with a timeout into one effective signal.

Everything here runs on the event loop thread. Triggering a signal only
notifies listeners - it never stops anything by itself. Whoever listens
(the process controller) decides what "cancel" means.
"""

import asyncio
import logging
from typing import Callable, List, Optional, cast

DEFAULT_ABORT_REASON = "Operation was aborted"

Listener = Callable[[str], None]


class AbortError(Exception):
    """
    Raised when an operation is cut short by a triggered CancellationSignal.

    The message always contains "aborted" so the error classifier
    recognizes it even after it has been wrapped.
    """

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason or DEFAULT_ABORT_REASON
        if "aborted" in self.reason.lower():
            message = self.reason
        else:
            message = f"Operation was aborted: {self.reason}"
        super().__init__(message)


class CancellationSignal:
    """
    Write-once cancellation flag carrying a reason.

    Usage:
        signal = CancellationSignal()
        session = await recorder.start_recording(cancellation=signal)

        # Later, from any coroutine on the same loop
        signal.trigger("User pressed stop")
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._reason: Optional[str] = None
        self._listeners: List[Listener] = []
        self._event = asyncio.Event()

    @property
    def is_set(self) -> bool:
        """True once trigger() has been called"""
        return self._reason is not None

    @property
    def reason(self) -> Optional[str]:
        """Reason given by the first trigger, None while not triggered"""
        return self._reason

    def trigger(self, reason: str = DEFAULT_ABORT_REASON) -> bool:
        """
        Trigger the signal and notify listeners.

        Only the first call has any effect.

        Args:
            reason: Human-readable cancellation reason

        Returns:
            True if this call triggered the signal, False if already set
        """
        if self._reason is not None:
            return False

        self._reason = reason or DEFAULT_ABORT_REASON
        self._event.set()

        listeners = self._listeners
        self._listeners = []
        for listener in listeners:
            try:
                listener(self._reason)
            except Exception as e:
                self.logger.error(f"Error in cancellation listener: {e}", exc_info=True)

        return True

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run with the reason when the signal triggers"""
        if self._reason is None:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        """Detach a callback; unknown callbacks are ignored"""
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def listener_count(self) -> int:
        """Number of attached listeners"""
        return len(self._listeners)

    async def wait(self) -> str:
        """Wait until triggered and return the reason"""
        await self._event.wait()
        return cast(str, self._reason)

    def raise_if_set(self) -> None:
        """Raise AbortError if the signal has been triggered"""
        if self._reason is not None:
            raise AbortError(self._reason)

    def __repr__(self) -> str:
        if self._reason is None:
            return "CancellationSignal(pending)"
        return f"CancellationSignal(triggered: {self._reason!r})"


class CombinedCancellation:
    """
    Effective signal produced by combine(), plus the resources behind it.

    cleanup() cancels the timeout timer and detaches from the caller's
    signal. It runs at most once however often it is called.

    Usage:
        with combine(caller_signal, timeout=30) as signal:
            ...

        # or, when the scope spans several calls
        combined = combine(caller_signal, timeout=30)
        try:
            ...
        finally:
            combined.cleanup()
    """

    def __init__(
        self,
        signal: CancellationSignal,
        timer: Optional[asyncio.TimerHandle] = None,
        detach: Optional[Callable[[], None]] = None,
    ):
        self.signal = signal
        self._timer = timer
        self._detach = detach
        self._cleaned_up = False

    @property
    def timer_armed(self) -> bool:
        """True while a timeout timer exists and has not been cancelled"""
        return self._timer is not None and not self._timer.cancelled()

    @property
    def cleaned_up(self) -> bool:
        return self._cleaned_up

    def cleanup(self) -> None:
        if self._cleaned_up:
            return
        self._cleaned_up = True

        if self._timer is not None:
            self._timer.cancel()
        if self._detach is not None:
            self._detach()

    def __enter__(self) -> CancellationSignal:
        return self.signal

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()


def timeout_reason(timeout: float) -> str:
    """Cancellation reason used when a timeout fires (timeout in seconds)"""
    return f"Recording timed out after {round(timeout * 1000)}ms"


def combine(
    caller_signal: Optional[CancellationSignal] = None,
    timeout: Optional[float] = None,
) -> CombinedCancellation:
    """
    Merge a caller's signal and a timeout into one effective signal.

    - Neither: a signal that never triggers
    - Caller only: the caller's signal itself (not ours to clean up)
    - Timeout only: triggers with "Recording timed out after Nms"
    - Both: whichever fires first decides the reason. A caller signal that
      is already set wins outright and no timer is armed.

    Must be called from a running event loop when a timeout is given.

    Args:
        caller_signal: Optional caller-owned signal
        timeout: Optional timeout in seconds (0 or None = no timeout)

    Returns:
        CombinedCancellation holding the effective signal
    """
    if not timeout:
        if caller_signal is None:
            return CombinedCancellation(CancellationSignal())
        return CombinedCancellation(caller_signal)

    loop = asyncio.get_running_loop()
    combined = CancellationSignal()
    reason = timeout_reason(timeout)

    if caller_signal is None:
        timer = loop.call_later(timeout, combined.trigger, reason)
        return CombinedCancellation(combined, timer=timer)

    # Checked before the timer exists, so an early caller reason always wins
    if caller_signal.is_set:
        combined.trigger(caller_signal.reason)
        return CombinedCancellation(combined)

    propagate = combined.trigger
    caller_signal.add_listener(propagate)
    timer = loop.call_later(timeout, combined.trigger, reason)

    def detach() -> None:
        caller_signal.remove_listener(propagate)

    result = CombinedCancellation(combined, timer=timer, detach=detach)

    # Once decided, the losing source is released straight away
    combined.add_listener(lambda _reason: result.cleanup())

    return result
