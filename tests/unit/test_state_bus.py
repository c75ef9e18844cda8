"""Unit tests for StateBus and BatchChannel."""

import threading

from mbatch.models.types import Completed, Error, Processed, ProgressSample
from mbatch.services.state_bus import StateBus


class TestSubscribe:
    """Tests for subscription semantics."""

    def test_new_subscriber_gets_current_value(self, state_bus):
        """Test a late subscriber immediately receives the latest state."""
        channel = state_bus.reset_flow()
        channel.emit_state(Processed(("a",)))
        channel.emit_state(Processed(("a", "b")))

        received = []
        state_bus.subscribe_state(received.append)

        assert received == [Processed(("a", "b"))]

    def test_no_value_no_immediate_call(self, state_bus):
        """Test subscribing to an empty slot delivers nothing."""
        received = []
        state_bus.subscribe_progress(received.append)
        assert received == []

    def test_updates_delivered_in_order(self, state_bus):
        """Test subsequent updates reach the subscriber in emission order."""
        received = []
        state_bus.subscribe_progress(received.append)
        channel = state_bus.reset_flow()

        channel.emit_progress(10.0, 0)
        channel.emit_progress(60.0, 0)

        assert received == [None, ProgressSample(10.0, 0), ProgressSample(60.0, 0)]

    def test_unsubscribe(self, state_bus):
        """Test an unsubscribed callback stops receiving updates."""
        received = []
        unsubscribe = state_bus.subscribe_state(received.append)
        channel = state_bus.reset_flow()
        unsubscribe()
        unsubscribe()

        channel.emit_state(Completed(()))

        assert received == [None]

    def test_subscriber_exception_isolated(self, state_bus, caplog):
        """Test a failing subscriber neither reaches the emitter nor blocks others."""
        received = []

        def broken(_state):
            raise RuntimeError("boom")

        state_bus.subscribe_state(broken)
        state_bus.subscribe_state(received.append)
        channel = state_bus.reset_flow()

        assert channel.emit_state(Error("failed")) is True
        assert received[-1] == Error("failed")
        assert "State bus subscriber failed" in caplog.text


class TestResetFlow:
    """Tests for reset_flow and channel epochs."""

    def test_reset_clears_slots(self, state_bus):
        """Test reset_flow clears both slots."""
        channel = state_bus.reset_flow()
        channel.emit_state(Completed(("x",)))
        channel.emit_progress(100.0, 0)

        state_bus.reset_flow()

        assert state_bus.latest_state is None
        assert state_bus.latest_progress is None

    def test_stale_channel_dropped(self, state_bus):
        """Test emissions from a previous batch never reach the new one."""
        old = state_bus.reset_flow()
        new = state_bus.reset_flow()

        assert old.emit_state(Completed(("stale",))) is False
        assert old.emit_progress(100.0, 3) is False
        assert old.is_current is False
        assert state_bus.latest_state is None

        assert new.emit_progress(5.0, 0) is True
        assert state_bus.latest_progress == ProgressSample(5.0, 0)

    def test_first_value_after_reset_is_fresh(self, state_bus):
        """Test a subscriber never observes a stale value after reset."""
        old = state_bus.reset_flow()
        old.emit_state(Processed(("old",)))

        new = state_bus.reset_flow()
        old.emit_state(Completed(("old",)))
        new.emit_state(Processed(("new",)))

        received = []
        state_bus.subscribe_state(received.append)
        assert received == [Processed(("new",))]

    def test_epoch_increments(self):
        """Test every reset starts a new epoch."""
        bus = StateBus()
        epochs = [bus.reset_flow().epoch for _ in range(3)]
        assert epochs == [1, 2, 3]


class TestConcurrency:
    """Tests for concurrent emitters."""

    def test_concurrent_emissions_all_delivered(self, state_bus):
        """Test each emission notifies exactly once under contention."""
        received = []
        state_bus.subscribe_progress(lambda s: s is not None and received.append(s))
        channel = state_bus.reset_flow()

        def emit(index):
            for i in range(100):
                channel.emit_progress(float(i), index)

        threads = [threading.Thread(target=emit, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(received) == 400
        assert state_bus.latest_progress == received[-1]
