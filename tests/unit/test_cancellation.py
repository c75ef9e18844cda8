"""Unit tests for CancellationToken."""

from mbatch.services.cancellation import CancellationToken


class TestCancellationToken:
    """Tests for CancellationToken."""

    def test_initial_state(self):
        """Test a new token is not cancelled."""
        assert CancellationToken().is_cancelled is False

    def test_callbacks_run_once(self):
        """Test callbacks run on the first cancel only."""
        token = CancellationToken()
        calls = []
        token.on_cancel(lambda: calls.append("a"))

        token.cancel()
        token.cancel()

        assert token.is_cancelled is True
        assert calls == ["a"]

    def test_register_after_cancel_runs_immediately(self):
        """Test a late callback runs at registration."""
        token = CancellationToken()
        token.cancel()
        calls = []

        token.on_cancel(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_unregister(self):
        """Test an unregistered callback does not run."""
        token = CancellationToken()
        calls = []
        unregister = token.on_cancel(lambda: calls.append("x"))

        unregister()
        token.cancel()

        assert calls == []

    def test_failing_callback_isolated(self, caplog):
        """Test one failing callback does not stop the others."""
        token = CancellationToken()
        calls = []

        def broken():
            raise RuntimeError("boom")

        token.on_cancel(broken)
        token.on_cancel(lambda: calls.append("ok"))
        token.cancel()

        assert calls == ["ok"]
        assert "Cancellation callback failed" in caplog.text
