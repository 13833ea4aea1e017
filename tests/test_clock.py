import pytest

from session_engine.clock import KivyTickSource, ManualTickSource


def test_manual_source_fires_in_order():
    source = ManualTickSource()
    fired = []
    source.schedule_interval(lambda: fired.append(("tick", source.now())), 1.0)
    source.schedule_once(lambda: fired.append(("once", source.now())), 1.5)
    source.advance(3)
    assert fired == [("tick", 1.0), ("once", 1.5), ("tick", 2.0), ("tick", 3.0)]
    assert source.pending == 1


def test_cancel_stops_callbacks():
    source = ManualTickSource()
    fired = []
    event = source.schedule_interval(lambda: fired.append(source.now()), 1.0)
    source.advance(2)
    event.cancel()
    source.advance(5)
    assert fired == [1.0, 2.0]
    assert source.pending == 0


class RecordingClock:
    """Mimics the parts of ``kivy.clock.Clock`` the adapter uses."""

    class Event:
        def __init__(self, callback, timeout):
            self.callback = callback
            self.timeout = timeout
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.events = []

    def schedule_interval(self, callback, timeout):
        event = self.Event(callback, timeout)
        self.events.append(event)
        return event

    def schedule_once(self, callback, timeout=0):
        return self.schedule_interval(callback, timeout)


def test_kivy_source_passes_through_dt():
    clock = RecordingClock()
    source = KivyTickSource(clock)
    fired = []
    event = source.schedule_interval(lambda: fired.append("tick"), 1.0)
    once = source.schedule_once(lambda: fired.append("once"), 0.8)

    clock.events[0].callback(1.02)
    clock.events[1].callback(0.8)
    assert fired == ["tick", "once"]
    assert [e.timeout for e in clock.events] == [1.0, 0.8]

    event.cancel()
    once.cancel()
    assert all(e.cancelled for e in clock.events)


def test_kivy_source_defaults_to_kivy_clock():
    pytest.importorskip("kivy.clock")
    from kivy.clock import Clock

    source = KivyTickSource()
    event = source.schedule_once(lambda: None, 5)
    event.cancel()
    assert source._clock is Clock
    assert source.now() <= source.now()
