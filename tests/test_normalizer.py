"""Tests for role-merge normalization."""

from __future__ import annotations

import logging

import pytest

from pico_agent import (
    BackendTurn,
    ConversationRole,
    FunctionCall,
    Message,
    TextBlock,
    ToolCall,
    ToolResultBlock,
    ToolUseBlock,
    normalize_messages,
)


def _roles(turns: list[BackendTurn]) -> list[ConversationRole]:
    return [turn.role for turn in turns]


class TestSystemPreamble:
    def test_system_turns_never_become_messages(self) -> None:
        result = normalize_messages(
            [
                Message.system("one"),
                Message.user("hi"),
                Message.system("two"),
                Message.assistant("hello"),
            ]
        )
        assert result.system == ["one", "two"]
        assert _roles(result.turns) == [
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
        ]

    def test_empty_system_text_is_kept(self) -> None:
        result = normalize_messages([Message.system(""), Message.user("hi")])
        assert result.system == [""]

    def test_only_system(self) -> None:
        result = normalize_messages([Message.system("be brief")])
        assert result.system == ["be brief"]
        assert result.turns == []

    def test_empty_conversation(self) -> None:
        result = normalize_messages([])
        assert result.system == []
        assert result.turns == []


class TestCoalescing:
    def test_adjacent_user_turns_merge(self) -> None:
        result = normalize_messages([Message.user("a"), Message.user("b")])
        assert result.turns == [
            BackendTurn(ConversationRole.USER, [TextBlock("a"), TextBlock("b")])
        ]

    def test_adjacent_assistant_turns_merge(self) -> None:
        result = normalize_messages(
            [Message.user("q"), Message.assistant("a"), Message.assistant("b")]
        )
        assert result.turns[1] == BackendTurn(
            ConversationRole.ASSISTANT, [TextBlock("a"), TextBlock("b")]
        )

    def test_roles_alternate(self) -> None:
        result = normalize_messages(
            [
                Message.user("1"),
                Message.user("2"),
                Message.assistant("3"),
                Message.tool_result("t", "4"),
                Message.user("5"),
                Message.assistant("6"),
                Message.assistant("7"),
            ]
        )
        roles = _roles(result.turns)
        assert all(a is not b for a, b in zip(roles, roles[1:]))
        assert roles == [
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
        ]

    def test_first_turn_may_be_assistant(self) -> None:
        result = normalize_messages([Message.assistant("hello")])
        assert _roles(result.turns) == [ConversationRole.ASSISTANT]

    def test_block_order_is_preserved(self) -> None:
        messages = [
            Message.user("q"),
            Message.assistant(
                "calling",
                [
                    ToolCall(id="a", name="f", arguments={"n": 1}),
                    ToolCall(id="b", name="g", arguments={"n": 2}),
                ],
            ),
            Message.tool_result("a", "r1"),
            Message.tool_result("b", "r2"),
            Message.user("thanks"),
        ]
        result = normalize_messages(messages)

        flattened = [block for turn in result.turns for block in turn.blocks]
        assert flattened == [
            TextBlock("q"),
            TextBlock("calling"),
            ToolUseBlock("a", "f", {"n": 1}),
            ToolUseBlock("b", "g", {"n": 2}),
            ToolResultBlock("a", "r1"),
            ToolResultBlock("b", "r2"),
            TextBlock("thanks"),
        ]

    def test_tool_results_share_one_user_turn(self) -> None:
        result = normalize_messages(
            [
                Message.user("q"),
                Message.assistant("", [ToolCall(id="a", name="f")]),
                Message.tool_result("a", "r1"),
                Message.user("more"),
            ]
        )
        assert len(result.turns) == 3
        assert result.turns[2].blocks == [
            ToolResultBlock("a", "r1"),
            TextBlock("more"),
        ]

    def test_input_is_not_modified(self) -> None:
        messages = [Message.user("a"), Message.user("b")]
        snapshot = list(messages)
        normalize_messages(messages)
        assert messages == snapshot


class TestConversationShapes:
    def test_user_assistant_user(self) -> None:
        result = normalize_messages(
            [Message.user("a"), Message.assistant("b"), Message.user("c")]
        )
        assert _roles(result.turns) == [
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
            ConversationRole.USER,
        ]

    def test_tool_turn_joins_preceding_user(self) -> None:
        result = normalize_messages(
            [Message.user("run"), Message.tool_result("call_1", "result")]
        )
        assert result.turns == [
            BackendTurn(
                ConversationRole.USER,
                [TextBlock("run"), ToolResultBlock("call_1", "result")],
            )
        ]

    def test_mixed_conversation(self) -> None:
        result = normalize_messages(
            [
                Message.system("s1"),
                Message.system("s2"),
                Message.user("u1"),
                Message.assistant("a1"),
                Message.assistant("a2"),
                Message.user("u2"),
                Message.tool_result("call_a", "ra"),
                Message.tool_result("call_b", "rb"),
            ]
        )
        assert len(result.system) == 2
        assert _roles(result.turns) == [
            ConversationRole.USER,
            ConversationRole.ASSISTANT,
            ConversationRole.USER,
        ]
        assert result.turns[2].blocks == [
            TextBlock("u2"),
            ToolResultBlock("call_a", "ra"),
            ToolResultBlock("call_b", "rb"),
        ]


class TestUnknownRoles:
    def test_unknown_role_is_invisible_to_merging(self) -> None:
        result = normalize_messages(
            [
                Message.user("a"),
                Message(role="developer", content="ignored"),
                Message.user("b"),
            ]
        )
        assert result.turns == [
            BackendTurn(ConversationRole.USER, [TextBlock("a"), TextBlock("b")])
        ]

    def test_unknown_role_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="pico_agent.normalizer"):
            normalize_messages([Message(role="function", content="x")])
        assert "unrecognized role 'function'" in caplog.text


class TestLegacyArguments:
    def test_legacy_arguments_are_hydrated(self) -> None:
        call = ToolCall(
            id="call_1",
            function=FunctionCall(name="search", arguments='{"q": "python"}'),
        )
        result = normalize_messages([Message.assistant("", [call])])
        assert result.turns[0].blocks == [
            ToolUseBlock("call_1", "search", {"q": "python"})
        ]

    def test_unparsable_legacy_arguments_do_not_fail(self) -> None:
        call = ToolCall(id="c", name="f", function=FunctionCall("f", "{not json"))
        result = normalize_messages([Message.assistant("", [call])])
        assert result.turns[0].blocks == [ToolUseBlock("c", "f", {})]
