"""Tests for tool result pairing and message filtering."""

from __future__ import annotations

from agentsync.data.pairing import (
    extract_mcp_servers,
    pair_and_filter,
    pair_tool_results,
    post_filter_counts,
    summarize_session,
)
from agentsync.models.messages import (
    AgentType,
    ParsedMessage,
    ParsedSession,
    ParsedToolCall,
    ParsedToolResult,
    Role,
)


def _call(tool_use_id: str, name: str = "Read") -> ParsedToolCall:
    return ParsedToolCall(tool_use_id=tool_use_id, tool_name=name)


def _result(tool_use_id: str, content: str) -> ParsedToolResult:
    return ParsedToolResult(tool_use_id=tool_use_id, content_length=len(content), content=content)


def _assistant(content: str = "", *calls: ParsedToolCall) -> ParsedMessage:
    return ParsedMessage(role=Role.ASSISTANT, content=content, tool_calls=list(calls))


def _user(content: str = "", *results: ParsedToolResult) -> ParsedMessage:
    return ParsedMessage(role=Role.USER, content=content, tool_results=list(results))


class TestPairToolResults:
    def test_basic_pairing_across_messages(self) -> None:
        messages = [
            _assistant("", _call("t1", "Read"), _call("t2", "Grep")),
            _user("", _result("t1", "file contents"), _result("t2", "grep output")),
        ]
        pair_tool_results(messages)

        first, second = messages[0].tool_calls
        assert (first.result_content, first.result_content_length) == ("file contents", 13)
        assert (second.result_content, second.result_content_length) == ("grep output", 11)
        assert len(messages[1].tool_results) == 2

    def test_unmatched_result_ignored(self) -> None:
        messages = [
            _assistant("", _call("t1")),
            _user("", _result("t1", "data"), _result("t_unknown", "orphan")),
        ]
        pair_tool_results(messages)
        assert messages[0].tool_calls[0].result_content == "data"

    def test_unmatched_call_keeps_zero(self) -> None:
        messages = [
            _assistant("", _call("t1"), _call("t2", "Bash")),
            _user("", _result("t1", "result text")),
        ]
        pair_tool_results(messages)
        assert messages[0].tool_calls[1].result_content_length == 0
        assert messages[0].tool_calls[1].result_content == ""

    def test_first_result_consumes_call(self) -> None:
        messages = [
            _assistant("", _call("t1")),
            _user("", _result("t1", "first")),
            _user("", _result("t1", "second")),
        ]
        pair_tool_results(messages)
        assert messages[0].tool_calls[0].result_content == "first"

    def test_result_before_call_not_paired(self) -> None:
        messages = [_user("", _result("t1", "early")), _assistant("", _call("t1"))]
        pair_tool_results(messages)
        assert messages[1].tool_calls[0].result_content == ""

    def test_empty(self) -> None:
        messages: list[ParsedMessage] = []
        pair_tool_results(messages)
        assert messages == []


class TestPairAndFilter:
    def test_removes_result_only_user_message(self) -> None:
        messages = pair_and_filter(
            [
                _assistant("Let me read the file.", _call("t1")),
                _user("", _result("t1", "file data")),
            ]
        )
        assert len(messages) == 1
        assert messages[0].tool_calls[0].result_content == "file data"

    def test_keeps_user_message_with_real_content(self) -> None:
        messages = pair_and_filter(
            [
                _assistant("Here is the result.", _call("t1", "Bash")),
                _user("", _result("t1", "bash output")),
                _user("Thanks, now do something else."),
            ]
        )
        assert [m.content for m in messages] == [
            "Here is the result.",
            "Thanks, now do something else.",
        ]
        assert [m.ordinal for m in messages] == [0, 1]

    def test_whitespace_only_content_treated_as_empty(self) -> None:
        messages = pair_and_filter(
            [_assistant("Reading...", _call("t1")), _user("   \n\t  ", _result("t1", "read output"))]
        )
        assert len(messages) == 1

    def test_preserves_empty_messages_without_results(self) -> None:
        messages = pair_and_filter([_assistant(""), _user("")])
        assert [m.role for m in messages] == [Role.ASSISTANT, Role.USER]

    def test_empty(self) -> None:
        assert pair_and_filter([]) == []


class TestPostFilterCounts:
    def test_mixed_roles(self) -> None:
        messages = [_user("hello"), _assistant("hi"), _user("thanks")]
        assert post_filter_counts(messages) == (3, 2)

    def test_system_not_counted_as_user(self) -> None:
        messages = [ParsedMessage(role=Role.SYSTEM, content="note"), _assistant("hi")]
        assert post_filter_counts(messages) == (2, 0)

    def test_empty(self) -> None:
        assert post_filter_counts([]) == (0, 0)


class TestSummarizeSession:
    def test_counts_follow_filtered_messages(self) -> None:
        messages = [
            _user("go"),
            _assistant("", _call("t1", "mcp__github__create_issue")),
            _user("", _result("t1", "created")),
        ]
        session = ParsedSession(id="s1", agent=AgentType.CLAUDE)

        summarized = summarize_session(session, pair_and_filter(messages))

        assert (summarized.message_count, summarized.user_message_count) == (2, 1)
        assert summarized.mcp_servers == ["github"]
        assert session.message_count == 0


class TestExtractMcpServers:
    def test_no_mcp_tools(self) -> None:
        assert extract_mcp_servers([_assistant("", _call("a", "Read"), _call("b", "Bash"))]) == []

    def test_deduplicated_and_sorted(self) -> None:
        messages = [
            _assistant(
                "",
                _call("a", "mcp__unblocked__data_retrieval"),
                _call("b", "mcp__slack__send_message"),
            ),
            _assistant("", _call("c", "mcp__unblocked__context_engine"), _call("d", "Read")),
        ]
        assert extract_mcp_servers(messages) == ["slack", "unblocked"]

    def test_malformed_prefix_ignored(self) -> None:
        assert extract_mcp_servers([_assistant("", _call("a", "mcp__"))]) == []
