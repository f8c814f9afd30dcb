import asyncio

import pytest

from reminders_bridge.applescript import (
    create_reminders_script,
    escape_applescript_string,
    quote_applescript_string,
    run_applescript,
)
from reminders_bridge.errors import NotFoundError, ProcessExecutionError

from conftest import FakeRunner, failed, ok


def _unescaped_quote_positions(literal: str):
    """Indexes of double quotes not preceded by an odd run of backslashes."""
    positions = []
    for i, ch in enumerate(literal):
        if ch != '"':
            continue
        run = 0
        j = i - 1
        while j >= 0 and literal[j] == "\\":
            run += 1
            j -= 1
        if run % 2 == 0:
            positions.append(i)
    return positions


class TestEscaping:
    def test_escapes_in_order(self):
        assert escape_applescript_string('a\\b') == 'a\\\\b'
        assert escape_applescript_string('say "hi"') == 'say \\"hi\\"'
        assert escape_applescript_string("it's") == "it\\'s"
        assert escape_applescript_string("a\r\nb\tc") == "a\\r\\nb\\tc"

    def test_backslash_before_quote_is_not_double_escaped(self):
        # Backslash goes first, so the quote's own escape is not escaped again
        assert escape_applescript_string('\\"') == '\\\\\\"'

    @pytest.mark.parametrize(
        "value",
        [
            'Buy milk" & do shell script "rm -rf ~" & "',
            '\\" & (do shell script "id") & "\\',
            'line one\nend tell\ntell application "Finder"',
            "tab\there'quote\r",
            "",
        ],
    )
    def test_quoted_literal_has_exactly_two_delimiters(self, value):
        literal = quote_applescript_string(value)
        assert _unescaped_quote_positions(literal) == [0, len(literal) - 1]
        assert "\n" not in literal and "\r" not in literal and "\t" not in literal

    def test_unicode_is_preserved(self):
        assert quote_applescript_string("买牛奶 café") == '"买牛奶 café"'

    def test_script_is_one_tell_block(self):
        script = create_reminders_script("set x to 1")
        assert script.splitlines() == ['tell application "Reminders"', "set x to 1", "end tell"]


class TestRunApplescript:
    def test_script_goes_to_stdin(self, settings):
        runner = FakeRunner(lambda argv, input_text: ok("done\n"))
        out = asyncio.run(run_applescript("tell application \"Reminders\"\nend tell", settings, runner))
        assert out == "done"
        call = runner.calls[0]
        assert call["argv"] == ["osascript", "-"]
        assert call["input_text"].startswith("tell application")
        assert call["timeout"] == settings.script_timeout

    def test_not_found_guard_becomes_not_found_error(self, settings):
        stderr = "-:120:165: execution error: Reminder not found: Buy milk (-2700)\n"
        runner = FakeRunner(lambda argv, input_text: failed(stderr))
        with pytest.raises(NotFoundError) as exc_info:
            asyncio.run(run_applescript("script", settings, runner))
        assert str(exc_info.value) == "Reminder not found: Buy milk"

    def test_list_not_found_guard(self, settings):
        stderr = "execution error: List not found: Home (-2700)"
        runner = FakeRunner(lambda argv, input_text: failed(stderr))
        with pytest.raises(NotFoundError, match="List not found: Home"):
            asyncio.run(run_applescript("script", settings, runner))

    def test_other_failures_are_execution_errors(self, settings):
        stderr = "execution error: Reminders got an error: AppleEvent timed out. (-1712)"
        runner = FakeRunner(lambda argv, input_text: failed(stderr))
        with pytest.raises(ProcessExecutionError) as exc_info:
            asyncio.run(run_applescript("script", settings, runner))
        assert exc_info.value.returncode == 1
        assert "AppleEvent timed out" in str(exc_info.value)
