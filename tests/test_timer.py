import pytest

from session_engine.timer import TimerMode, TimerPurpose, TimerUnit, format_seconds


def test_countdown_expires_once():
    ticks = []
    expired = []
    timer = TimerUnit(on_tick=ticks.append, on_expire=expired.append)
    timer.start(3, TimerPurpose.REST)

    for _ in range(5):
        timer.tick()

    assert ticks == [2, 1, 0]
    assert expired == [TimerPurpose.REST]
    assert timer.state.mode is TimerMode.IDLE
    assert timer.state.purpose is TimerPurpose.NONE
    assert timer.remaining_seconds == 0


def test_pause_and_resume_keep_remaining():
    timer = TimerUnit()
    timer.start(10)
    timer.tick()
    timer.pause()
    assert timer.mode is TimerMode.PAUSED
    timer.tick()
    timer.tick()
    assert timer.remaining_seconds == 9
    timer.resume()
    timer.tick()
    assert timer.mode is TimerMode.COUNTING_DOWN
    assert timer.remaining_seconds == 8


def test_reset_is_always_safe():
    timer = TimerUnit()
    timer.reset()
    timer.start(5)
    timer.pause()
    timer.reset()
    assert timer.state.mode is TimerMode.IDLE
    assert timer.remaining_seconds == 0
    timer.start(2)
    assert timer.is_running


def test_start_while_running_is_rejected():
    timer = TimerUnit()
    timer.start(5)
    with pytest.raises(RuntimeError):
        timer.start(5)


def test_elapsed_clock_counts_up_and_ignores_pause():
    expired = []
    clock = TimerUnit(on_expire=expired.append)
    clock.start_elapsed()
    for _ in range(4):
        clock.tick()
    clock.pause()
    clock.tick()
    assert clock.elapsed_seconds == 5
    assert expired == []

    clock.stop()
    clock.tick()
    assert clock.elapsed_seconds == 5


def test_format_seconds():
    assert format_seconds(0) == "00:00"
    assert format_seconds(75) == "01:15"
    assert format_seconds(-3) == "00:00"
