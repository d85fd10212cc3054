"""Tests for the command parser."""

import pytest

from stratwire.commands import (
    BUILTIN_COMMANDS,
    Command,
    CommandKind,
    CommandParser,
    build_help_text,
    parse_command,
)
from stratwire.exceptions import MalformedArguments
from stratwire.notifications import NotificationLevel


@pytest.fixture
def parser():
    return CommandParser()


class TestRecognizedCommands:

    @pytest.mark.parametrize("text,kind", [
        ("/start", CommandKind.START),
        ("/help", CommandKind.HELP),
        ("/status", CommandKind.STATUS),
        ("/execute", CommandKind.EXECUTE),
        ("/stop", CommandKind.STOP),
        ("/restart", CommandKind.RESTART),
    ])
    def test_plain_commands(self, parser, text, kind):
        assert parser.parse(text).kind is kind

    def test_surrounding_whitespace_ignored(self, parser):
        command = parser.parse("   /start \n")
        assert command.kind is CommandKind.START
        assert command.raw == "/start"

    def test_extra_arguments_on_plain_command_ignored(self, parser):
        assert parser.parse("/status please").kind is CommandKind.STATUS

    def test_notifications_with_level(self, parser):
        command = parser.parse("/notifications important")
        assert command == Command.set_notifications(
            NotificationLevel.IMPORTANT, raw="/notifications important"
        )

    def test_notifications_level_case_insensitive_and_spacing(self, parser):
        command = parser.parse("  /notifications     ErrorsOnly ")
        assert command.kind is CommandKind.SET_NOTIFICATIONS
        assert command.level is NotificationLevel.ERRORS_ONLY

    def test_every_builtin_token_parses(self, parser):
        for token, kind in BUILTIN_COMMANDS.items():
            text = f"{token} all" if kind is CommandKind.SET_NOTIFICATIONS else token
            assert parser.parse(text).kind is kind


class TestMalformedArguments:

    def test_notifications_without_level(self, parser):
        with pytest.raises(MalformedArguments) as exc_info:
            parser.parse("/notifications")
        assert exc_info.value.command == "/notifications"
        assert "all|important|errorsonly|none" in exc_info.value.usage

    def test_notifications_with_two_levels(self, parser):
        with pytest.raises(MalformedArguments):
            parser.parse("/notifications all none")

    def test_notifications_with_unknown_level(self, parser):
        with pytest.raises(MalformedArguments):
            parser.parse("/notifications loud")


class TestUnknownCommands:

    def test_unknown_slash_command_keeps_text(self, parser):
        command = parser.parse("/foo bar")
        assert command == Command.unknown("/foo bar")

    @pytest.mark.parametrize("text", ["/START", "/Start", "/startx", "start"])
    def test_tokens_are_case_sensitive_and_exact(self, parser, text):
        assert parser.parse(text).kind is CommandKind.UNKNOWN

    @pytest.mark.parametrize("text", ["", "   ", "hello there", "\x00\x01", "/"])
    def test_arbitrary_text_never_raises(self, parser, text):
        assert parser.parse(text).kind is CommandKind.UNKNOWN

    def test_module_shortcut(self):
        assert parse_command("/stop").kind is CommandKind.STOP


class TestCommand:

    def test_help_text_lists_every_command(self):
        text = build_help_text()
        for token in BUILTIN_COMMANDS:
            assert token in text
