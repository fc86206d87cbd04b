"""
Unit tests for command building and dispatch.
"""

from datetime import datetime
from unittest.mock import patch

import pytest

from core.commands import CommandBuilder, format_command, parse_integer
from core.dispatch import CommandDispatcher, CommandRecord
from core.transport import MockTransport
from core.types import Axis


class TestFormatCommand:
    """Line format: {verb}{axis}[={parameter}]"""

    def test_without_parameter(self):
        assert format_command("GO", 1) == "GO1"

    def test_with_parameter(self):
        assert format_command("SET", 2, "-1500") == "SET2=-1500"

    def test_global_query(self):
        assert format_command("?ST", 0) == "?ST0"

    def test_terminal_mode_line(self):
        verb, param = CommandBuilder.terminal_mode()
        assert format_command(verb, 0, param) == "TERM0=1"


class TestParseInteger:

    @pytest.mark.parametrize("reply,expected", [
        ("42", 42),
        ("-1000\r\n", -1000),
        (" 7 ", 7),
    ])
    def test_parses(self, reply, expected):
        assert parse_integer(reply) == expected

    @pytest.mark.parametrize("reply", ["", "ERR", "1.5", "MOTION=0"])
    def test_rejects(self, reply):
        assert parse_integer(reply) is None


class TestCommandBuilder:

    def test_absolute_move_triple(self):
        assert CommandBuilder.move(500, absolute=True) == [("MOD", "1"), ("SET", "500"), ("GO", "")]

    def test_relative_move_triple(self):
        assert CommandBuilder.move(-20, absolute=False) == [("MOD", "0"), ("SET", "-20"), ("GO", "")]

    def test_reference(self):
        assert CommandBuilder.reference() == ("REF", "2")


@pytest.fixture
def dispatcher(transport) -> CommandDispatcher:
    return CommandDispatcher(transport, number_of_axes=2, dispatch_delay=0.0)


class TestDispatch:
    """Tests for CommandDispatcher.dispatch."""

    def test_writes_line(self, dispatcher, transport):
        assert dispatcher.dispatch("VEL", 1, "2000")
        assert transport.sent_commands == ["VEL1=2000"]

    @pytest.mark.parametrize("index", [-1, 3, 99])
    def test_out_of_range_sends_nothing(self, dispatcher, transport, index):
        """Commands outside [0, number_of_axes] are suppressed."""
        assert not dispatcher.dispatch("GO", index)
        assert transport.command_count == 0
        assert dispatcher.get_history() == []

    def test_suppression_sets_last_error(self, dispatcher):
        dispatcher.dispatch("GO", 5)
        assert "Suppressed" in dispatcher.last_error

    def test_sleeps_after_dispatch(self, transport):
        """Every sent line is followed by the settle delay."""
        dispatcher = CommandDispatcher(transport, dispatch_delay=0.5)
        with patch("core.dispatch.time.sleep") as sleep:
            dispatcher.dispatch("GO", 1)
        sleep.assert_called_once_with(0.5)

    def test_no_sleep_when_suppressed(self, transport):
        dispatcher = CommandDispatcher(transport, dispatch_delay=0.5)
        with patch("core.dispatch.time.sleep") as sleep:
            dispatcher.dispatch("GO", 7)
        sleep.assert_not_called()


class TestSendAndRead:

    def test_returns_reply(self, dispatcher, transport):
        transport.counters[1] = 1234
        assert dispatcher.send_and_read("?CNT", Axis.X) == "1234"

    def test_defaults_to_global(self, dispatcher, transport):
        dispatcher.send_and_read("?ST")
        assert transport.sent_commands == ["?ST0"]

    def test_all_axes_selector_is_suppressed(self, dispatcher, transport):
        assert dispatcher.send_and_read("GO", Axis.ALL) == ""
        assert transport.command_count == 0

    def test_history_records_reply(self, dispatcher, transport):
        dispatcher.send_and_read("?VEL", Axis.Y)
        record = dispatcher.get_last_result()
        assert record.line == "?VEL2"
        assert record.response == "2000"
        assert record.success
        assert isinstance(record.timestamp, datetime)

    def test_empty_reply_marks_failure(self, dispatcher, transport):
        transport.queue_reply("")
        dispatcher.send_and_read("?CNT", Axis.X)
        assert not dispatcher.get_last_result().success


class TestGetIntegerParameter:
    """Retry-once integer accessor."""

    def test_parses_first_reply(self, dispatcher, transport):
        transport.queue_reply("17")
        assert dispatcher.get_integer_parameter("?CNT", Axis.X) == 17
        assert transport.command_count == 1

    def test_retries_once(self, dispatcher, transport):
        """Garbage then '42' yields 42 with exactly two identical queries."""
        transport.queue_reply("garbage", "42")
        assert dispatcher.get_integer_parameter("?CNT", Axis.X) == 42
        assert transport.sent_commands == ["?CNT1", "?CNT1"]
        assert dispatcher.last_error is None

    def test_gives_up_after_retry(self, dispatcher, transport):
        """Two failures yield 0 and a diagnostic, never a third query."""
        transport.queue_reply("garbage", "", "99")
        assert dispatcher.get_integer_parameter("?VEL", Axis.Y) == 0
        assert transport.command_count == 2
        assert "Parse error" in dispatcher.last_error


class TestHistory:

    def test_limit(self, dispatcher):
        for _ in range(5):
            dispatcher.dispatch("GO", 1)
        assert len(dispatcher.get_history(limit=2)) == 2
        assert len(dispatcher.get_history()) == 5

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_is_empty(self, dispatcher, limit):
        dispatcher.dispatch("GO", 1)
        assert dispatcher.get_history(limit=limit) == []

    def test_bounded(self):
        dispatcher = CommandDispatcher(MockTransport(), dispatch_delay=0.0, history_size=3)
        for i in range(10):
            dispatcher.dispatch("SET", 1, str(i))
        history = dispatcher.get_history()
        assert [r.line for r in history] == ["SET1=7", "SET1=8", "SET1=9"]

    def test_clear(self, dispatcher):
        dispatcher.dispatch("GO", 9)
        dispatcher.dispatch("GO", 1)
        dispatcher.clear_history()
        assert dispatcher.get_history() == []
        assert dispatcher.last_error is None

    def test_record_str(self):
        record = CommandRecord(line="GO1", timestamp=datetime(2024, 1, 1, 12, 0, 0))
        assert "GO1" in str(record)
        assert record.to_dict()["response"] is None
