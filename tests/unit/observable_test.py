"""Unit tests for signals and observable values."""

from unittest.mock import Mock, call

import pytest

from runbook_studio.core.observable import ObservableValue, Signal


class TestSignal:
    def test_listeners_run_in_subscription_order(self) -> None:
        signal = Signal("test")
        seen: list[str] = []
        signal.subscribe(lambda value: seen.append(f"a{value}"))
        signal.subscribe(lambda value: seen.append(f"b{value}"))

        signal.emit(1)

        assert seen == ["a1", "b1"]

    def test_unsubscribe_handle(self) -> None:
        signal = Signal()
        listener = Mock()
        unsubscribe = signal.subscribe(listener)

        unsubscribe()
        signal.emit()

        listener.assert_not_called()
        assert len(signal) == 0

    def test_unsubscribe_unknown_listener_is_noop(self) -> None:
        signal = Signal()
        signal.unsubscribe(Mock())
        assert len(signal) == 0

    def test_failing_listener_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        signal = Signal("boom-signal")
        signal.subscribe(Mock(side_effect=RuntimeError("boom")))
        after = Mock()
        signal.subscribe(after)

        signal.emit("x")

        after.assert_called_once_with("x")
        assert "boom-signal" in caplog.text

    def test_listener_may_unsubscribe_while_emitting(self) -> None:
        signal = Signal()
        second = Mock()
        unsubscribe_first = None

        def first() -> None:
            assert unsubscribe_first is not None
            unsubscribe_first()

        unsubscribe_first = signal.subscribe(first)
        signal.subscribe(second)

        signal.emit()
        signal.emit()

        assert second.call_count == 2
        assert len(signal) == 1


class TestObservableValue:
    def test_set_new_value_notifies_old_and_new(self) -> None:
        value = ObservableValue(False)
        listener = Mock()
        value.changed.subscribe(listener)

        assert value.set(True) is True

        listener.assert_called_once_with(False, True)
        assert value.get() is True

    def test_set_same_value_is_quiet(self) -> None:
        value = ObservableValue("a")
        listener = Mock()
        value.changed.subscribe(listener)

        assert value.set("a") is False

        listener.assert_not_called()

    def test_property_setter(self) -> None:
        value = ObservableValue(1)
        listener = Mock()
        value.changed.subscribe(listener)

        value.value = 2
        value.value = 3

        assert listener.call_args_list == [call(1, 2), call(2, 3)]
        assert value.value == 3
