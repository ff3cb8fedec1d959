"""
Cancellation Tests

Tests for cancellation signals and the combinator:
- Write-once trigger and listeners
- Combining a caller signal with a timeout
- Cleanup releasing timers and listeners exactly once

To run:
    pytest tests/recording/utils/test_cancellation.py -v
"""

import asyncio

import pytest

from recording.utils.cancellation import (
    DEFAULT_ABORT_REASON,
    AbortError,
    CancellationSignal,
    combine,
    timeout_reason,
)

# =============================================================================
# SIGNAL TESTS
# =============================================================================


@pytest.mark.unit
def test_signal_starts_untriggered(cancellation):
    """Test new signal is not set and has no reason."""
    assert not cancellation.is_set
    assert cancellation.reason is None


@pytest.mark.unit
def test_trigger_is_write_once(cancellation):
    """Test only the first trigger counts."""
    assert cancellation.trigger("first") is True
    assert cancellation.trigger("second") is False

    assert cancellation.is_set
    assert cancellation.reason == "first"


@pytest.mark.unit
def test_trigger_default_reason(cancellation):
    """Test triggering without a reason uses the default."""
    cancellation.trigger()
    assert cancellation.reason == DEFAULT_ABORT_REASON


@pytest.mark.unit
def test_listeners_called_once_with_reason(cancellation, error_tracker):
    """Test listeners receive the reason and are released after firing."""
    cancellation.add_listener(error_tracker)

    cancellation.trigger("stop")
    cancellation.trigger("again")

    assert error_tracker.errors == ["stop"]
    assert cancellation.listener_count() == 0


@pytest.mark.unit
def test_removed_listener_not_called(cancellation, error_tracker):
    """Test detaching a listener before the trigger."""
    cancellation.add_listener(error_tracker)
    cancellation.remove_listener(error_tracker)

    cancellation.trigger("stop")

    assert not error_tracker.was_called()


@pytest.mark.unit
def test_remove_unknown_listener_is_ignored(cancellation):
    """Test removing a listener that was never added."""
    cancellation.remove_listener(lambda reason: None)
    assert cancellation.listener_count() == 0


@pytest.mark.unit
def test_failing_listener_does_not_block_others(cancellation, error_tracker):
    """Test a listener raising doesn't stop the remaining listeners."""

    def broken(reason):
        raise RuntimeError("listener bug")

    cancellation.add_listener(broken)
    cancellation.add_listener(error_tracker)

    cancellation.trigger("stop")

    assert error_tracker.errors == ["stop"]


@pytest.mark.unit
def test_raise_if_set(cancellation):
    """Test raise_if_set raises AbortError carrying the reason."""
    cancellation.raise_if_set()

    cancellation.trigger("user cancelled")

    with pytest.raises(AbortError) as exc_info:
        cancellation.raise_if_set()

    assert exc_info.value.reason == "user cancelled"
    assert "aborted" in str(exc_info.value).lower()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_wait_returns_reason(cancellation):
    """Test wait() resolves once triggered."""
    asyncio.get_running_loop().call_later(0.01, cancellation.trigger, "later")

    reason = await asyncio.wait_for(cancellation.wait(), timeout=1.0)

    assert reason == "later"


# =============================================================================
# COMBINATOR TESTS
# =============================================================================


@pytest.mark.unit
def test_combine_without_sources_never_triggers():
    """Test no sources gives a fresh signal and a no-op cleanup."""
    combined = combine()

    assert not combined.signal.is_set
    assert not combined.timer_armed

    combined.cleanup()
    combined.cleanup()


@pytest.mark.unit
def test_combine_caller_only_returns_same_signal(cancellation):
    """Test a lone caller signal is passed through untouched."""
    combined = combine(cancellation)

    assert combined.signal is cancellation

    combined.cleanup()
    assert cancellation.listener_count() == 0


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_timeout_triggers_with_reason():
    """Test a timeout alone triggers with the timed-out reason."""
    combined = combine(timeout=0.05)

    reason = await asyncio.wait_for(combined.signal.wait(), timeout=1.0)

    assert reason == "Recording timed out after 50ms"
    combined.cleanup()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_cleanup_cancels_timer():
    """Test cleanup before expiry means the timer never fires."""
    combined = combine(timeout=0.05)
    assert combined.timer_armed

    combined.cleanup()
    await asyncio.sleep(0.1)

    assert not combined.timer_armed
    assert not combined.signal.is_set


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_already_triggered_caller_wins(cancellation):
    """Test an already-set caller signal wins and no timer is armed."""
    cancellation.trigger("caller gave up")

    combined = combine(cancellation, timeout=0.01)

    assert combined.signal.is_set
    assert combined.signal.reason == "caller gave up"
    assert not combined.timer_armed

    await asyncio.sleep(0.05)
    assert combined.signal.reason == "caller gave up"
    combined.cleanup()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_caller_fires_first(cancellation):
    """Test caller trigger propagates and releases the timer."""
    combined = combine(cancellation, timeout=10)

    cancellation.trigger("user pressed stop")

    assert combined.signal.reason == "user pressed stop"
    assert not combined.timer_armed
    assert combined.cleaned_up


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_timeout_fires_first(cancellation):
    """Test timeout wins and the caller listener is detached."""
    combined = combine(cancellation, timeout=0.02)
    assert cancellation.listener_count() == 1

    await asyncio.wait_for(combined.signal.wait(), timeout=1.0)

    assert combined.signal.reason == timeout_reason(0.02)
    assert cancellation.listener_count() == 0

    # Late caller trigger no longer reaches the combined signal
    cancellation.trigger("too late")
    assert combined.signal.reason == timeout_reason(0.02)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_cleanup_detaches_caller(cancellation):
    """Test cleanup without any trigger releases both sources."""
    combined = combine(cancellation, timeout=10)

    combined.cleanup()

    assert cancellation.listener_count() == 0
    assert not combined.timer_armed

    cancellation.trigger("after cleanup")
    assert not combined.signal.is_set


@pytest.mark.unit
@pytest.mark.asyncio
async def test_combine_context_manager(cancellation):
    """Test the combined cancellation as a scoped resource."""
    combined = combine(cancellation, timeout=10)

    with combined as signal:
        assert signal is combined.signal
        assert combined.timer_armed

    assert combined.cleaned_up
    assert cancellation.listener_count() == 0


@pytest.mark.unit
def test_timeout_reason_in_milliseconds():
    """Test timeout reason converts seconds to milliseconds."""
    assert timeout_reason(1.5) == "Recording timed out after 1500ms"
