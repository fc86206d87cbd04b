"""
Property-Based Tests for Stage Invariants.

These tests verify that the driver's command sequences satisfy the
protocol and backlash invariants for ANY valid input, not just
hand-picked examples.
"""

from hypothesis import given, settings
from hypothesis import strategies as st

from core.dispatch import CommandDispatcher
from core.transport import MockTransport
from core.types import Axis
from hardware.stage import Sms60, StageSettings, clamp_speed, mm_to_steps


# =============================================================================
# Helpers
# =============================================================================


def make_stage() -> tuple:
    """Fresh stage on the simulator with an empty command log."""
    transport = MockTransport()
    stage = Sms60(transport, StageSettings.immediate())
    transport.clear_history()
    return stage, transport


def move_targets(sent: list) -> list:
    """SET parameters of every MOD/SET/GO triple, checking the triple shape."""
    targets = []
    moves = [i for i, line in enumerate(sent) if line.startswith("MOD")]
    for i in moves:
        mod, set_, go = sent[i:i + 3]
        axis = mod[3]
        assert set_.startswith(f"SET{axis}=")
        assert go == f"GO{axis}"
        targets.append(int(set_.split("=")[1]))
    return targets


axes = st.sampled_from([Axis.X, Axis.Y])
steps_strategy = st.integers(min_value=-1_000_000, max_value=1_000_000)


# =============================================================================
# Addressing
# =============================================================================


class TestAxisGuard:
    """Commands outside [0, number_of_axes] never reach the transport."""

    @given(index=st.one_of(st.integers(max_value=-1), st.integers(min_value=3)))
    def test_out_of_range_never_written(self, index: int):
        transport = MockTransport()
        dispatcher = CommandDispatcher(transport, number_of_axes=2, dispatch_delay=0.0)

        assert not dispatcher.dispatch("GO", index, "1")
        assert transport.command_count == 0

    @given(index=st.integers(min_value=0, max_value=2))
    def test_in_range_written_once(self, index: int):
        transport = MockTransport()
        dispatcher = CommandDispatcher(transport, number_of_axes=2, dispatch_delay=0.0)

        assert dispatcher.dispatch("GO", index)
        assert transport.sent_commands == [f"GO{index}"]


# =============================================================================
# Backlash
# =============================================================================


class TestRelativeBacklash:

    @given(axis=axes, steps=steps_strategy)
    @settings(max_examples=200)
    def test_triples(self, axis: Axis, steps: int):
        """One triple forward; two triples with a wait between when negative."""
        stage, transport = make_stage()
        stage.move_relative(axis, steps)

        sent = transport.sent_commands
        if steps >= 0:
            assert move_targets(sent) == [steps]
            assert transport.commands_for("?ST") == []
        else:
            assert move_targets(sent) == [steps - 1000, 1000]
            assert sent[3] == "?ST0"
        assert transport.counters[axis.number] == steps


class TestAbsoluteBacklash:

    @given(axis=axes, start=steps_strategy, target=steps_strategy)
    @settings(max_examples=200)
    def test_pre_move_only_when_reversing(self, axis: Axis, start: int, target: int):
        stage, transport = make_stage()
        transport.counters[axis.number] = start

        stage.move_absolute(axis, target)

        if start > target:
            assert move_targets(transport.sent_commands) == [target - 1000, target]
            assert transport.commands_for("?ST") == ["?ST0"]
        else:
            assert move_targets(transport.sent_commands) == [target]
            assert transport.commands_for("?ST") == []
        assert transport.counters[axis.number] == target


# =============================================================================
# Conversions
# =============================================================================


class TestConversions:

    @given(speed=st.integers(min_value=-100_000, max_value=100_000))
    def test_speed_round_trip(self, speed: int):
        """set_speed then get_speed returns the clamped value."""
        stage, _ = make_stage()
        stage.set_speed(Axis.Y, speed)
        assert stage.get_speed(Axis.Y) == clamp_speed(speed)
        assert 1 <= stage.get_speed(Axis.Y) <= 8191

    @given(micrometers=st.integers(min_value=0, max_value=50_000))
    def test_mm_to_steps_truncates(self, micrometers: int):
        """Whole micrometers at 0.08 um/step: steps = floor(um * 12.5)."""
        mm = micrometers / 1000
        assert mm_to_steps(mm, 0.00008) == micrometers * 25 // 2

    @given(x=st.floats(min_value=0, max_value=50), y=st.floats(min_value=0, max_value=50))
    @settings(max_examples=100)
    def test_go_to_lands_on_converted_steps(self, x: float, y: float):
        stage, transport = make_stage()
        stage.go_to(x, y)
        assert transport.counters[1] == mm_to_steps(x, 0.00008)
        assert transport.counters[2] == mm_to_steps(y, 0.00008)
        assert transport.sent_commands[-1] == "?ST0"
