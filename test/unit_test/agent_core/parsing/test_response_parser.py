from __future__ import annotations

import json

import pytest

from steward_ai.agent_core.parsing.response_parser import (
    CritiqueVerdict,
    ResponseParser,
    SectionKind,
    classify_critique,
    parse_function_arguments,
)
from steward_ai.agent_core.schemas.domain import FunctionCall, ToolCallDescriptor


@pytest.fixture
def parser() -> ResponseParser:
    return ResponseParser()


LEGACY = {
    "type": "tool_call",
    "tool_id": "search",
    "requires_approval": False,
    "input": {"query": "weather", "limit": 3},
    "reason": "need data",
    "next_step_after_tool": "summarize",
}


def test_response_tag_wins(parser: ResponseParser) -> None:
    out = parser.parse('noise <response> 4 </response> {"response": "ignored"}')
    assert out.display_text == "4"
    assert out.tool_proposal is None


def test_sections_are_extracted_and_removed(parser: ResponseParser) -> None:
    text = (
        "<thinking>plan</thinking>\n"
        "<observation>looked it up</observation>\n"
        "<reflection>all correct</reflection>\n"
        "<response>done</response>"
    )
    out = parser.parse(text)

    assert [(s.kind, s.content) for s in out.sections] == [
        (SectionKind.reasoning, "plan"),
        (SectionKind.action, "looked it up"),
        (SectionKind.critique, "all correct"),
    ]
    assert out.display_text == "done"
    assert out.critique == CritiqueVerdict.complete
    assert out.wants_continuation is False


def test_alternative_tag_names(parser: ResponseParser) -> None:
    out = parser.parse("<reasoning>r</reasoning><action>a</action><self_critique>c</self_critique>ok")
    assert [s.kind for s in out.sections] == [SectionKind.reasoning, SectionKind.action, SectionKind.critique]
    assert out.display_text == "ok"


def test_unterminated_section_is_left_in_place(parser: ResponseParser) -> None:
    out = parser.parse("<thinking>still going")
    assert out.sections == ()
    assert any("unterminated <thinking>" in note for note in out.irregularities)
    assert "still going" in out.display_text


def test_stray_end_tag_is_reported(parser: ResponseParser) -> None:
    out = parser.parse("hello</reflection>")
    assert any("unmatched </reflection>" in note for note in out.irregularities)
    assert out.sections == ()


def test_parsing_growing_prefix_never_loses_sections(parser: ResponseParser) -> None:
    text = (
        "<thinking>first</thinking>Some text <observation>saw x</observation>"
        "<reflection>verdict: complete</reflection><response>answer</response>"
    )
    seen = set()
    for end in range(1, len(text) + 1):
        keys = {s.key for s in parser.parse(text[:end]).sections}
        assert seen <= keys
        seen = keys
    assert len(seen) == 3


def test_json_response_field_priority(parser: ResponseParser) -> None:
    assert parser.parse('{"content": "c", "response": "r"}').display_text == "r"
    assert parser.parse('{"message": "m", "content": "c"}').display_text == "c"
    assert parser.parse('{"message": "m"}').display_text == "m"


def test_legacy_envelope_is_detected_and_hidden(parser: ResponseParser) -> None:
    out = parser.parse(json.dumps(LEGACY))

    assert out.display_text == ""
    proposal = out.tool_proposal
    assert proposal is not None
    assert proposal.tool_id == "search"
    assert proposal.requires_approval is False
    assert list(proposal.input) == ["query", "limit"]
    assert proposal.rationale == "need data"
    assert proposal.next_step_hint == "summarize"


def test_fenced_legacy_envelope(parser: ResponseParser) -> None:
    text = "Let me search.\n```json\n" + json.dumps(LEGACY) + "\n```"
    out = parser.parse(text)

    assert out.tool_proposal is not None
    assert out.tool_proposal.tool_id == "search"
    assert out.display_text == "Let me search."


def test_openai_tool_calls_array(parser: ResponseParser) -> None:
    payload = {
        "tool_calls": [
            {"id": "call_1", "type": "function", "function": {"name": "first", "arguments": '{"a": 1}'}},
            {"id": "call_2", "type": "function", "function": {"name": "second", "arguments": "{}"}},
        ]
    }
    out = parser.parse("Calling a tool " + json.dumps(payload))

    assert out.tool_proposal is not None
    assert out.tool_proposal.tool_id == "first"
    assert out.tool_proposal.input == {"a": 1}
    assert out.tool_proposal.call_id == "call_1"
    assert out.display_text == "Calling a tool"


def test_tool_calls_array_beats_legacy_object(parser: ResponseParser) -> None:
    payload = {"tool_calls": [{"id": "c", "function": {"name": "modern", "arguments": {"x": 1}}}]}
    out = parser.parse(json.dumps(LEGACY) + "\n" + json.dumps(payload))
    assert out.tool_proposal is not None
    assert out.tool_proposal.tool_id == "modern"
    assert out.tool_proposal.input == {"x": 1}


def test_out_of_band_signal_takes_precedence(parser: ResponseParser) -> None:
    signal = ToolCallDescriptor(id="sig-1", function=FunctionCall(name="signalled", arguments='{"q": "x"}'))
    out = parser.parse(json.dumps(LEGACY), tool_signal=signal)

    assert out.tool_proposal is not None
    assert out.tool_proposal.tool_id == "signalled"
    assert out.tool_proposal.call_id == "sig-1"
    assert out.tool_proposal.input == {"q": "x"}


def test_text_before_first_brace(parser: ResponseParser) -> None:
    out = parser.parse('The result is below {"unrelated": true}')
    assert out.display_text == "The result is below"
    assert out.tool_proposal is None


def test_unterminated_response_shows_streaming_preview(parser: ResponseParser) -> None:
    assert parser.parse("<response>Partial ans").display_text == "Partial ans"


def test_legacy_cleanup(parser: ResponseParser) -> None:
    text = (
        "```thinking\ninternal\n```\n"
        "<IMPORTANT>do not show</IMPORTANT>\n"
        "When I need to use a tool I emit JSON\n"
        "Visible line\n\n\n\nSecond line"
    )
    assert parser.parse(text).display_text == "Visible line\n\nSecond line"


def test_braces_inside_strings_do_not_break_detection(parser: ResponseParser) -> None:
    envelope = dict(LEGACY, input={"pattern": "a{b}c}"})
    out = parser.parse("text " + json.dumps(envelope))
    assert out.tool_proposal is not None
    assert out.tool_proposal.input == {"pattern": "a{b}c}"}


def test_malformed_json_is_fail_soft(parser: ResponseParser) -> None:
    out = parser.parse('{"type": "tool_call", "tool_id": ')
    assert out.tool_proposal is None
    assert out.display_text == ""


@pytest.mark.parametrize(
    "critique,verdict",
    [
        ("I should have used the search tool.", CritiqueVerdict.continue_),
        ("The wrong tool was chosen.", CritiqueVerdict.continue_),
        ("ツールを使用すべきでした", CritiqueVerdict.continue_),
        ("Everything is correct.", CritiqueVerdict.complete),
        ("問題なし", CritiqueVerdict.complete),
        ("Nothing to add.", CritiqueVerdict.complete),
        ("I forgot to use the tool.\nverdict: complete", CritiqueVerdict.complete),
        ("Looks fine.\nVerdict: continue", CritiqueVerdict.continue_),
        ("I used the search tool incorrectly.", CritiqueVerdict.continue_),
        ("The tool was called incorrectly", CritiqueVerdict.continue_),
        ("The answer looks right, but a tool call is missing.", CritiqueVerdict.continue_),
        ("Tools were used as intended. The result is correct.", CritiqueVerdict.complete),
    ],
)
def test_classify_critique(critique: str, verdict: CritiqueVerdict) -> None:
    assert classify_critique(critique) == verdict


def test_critique_uses_last_section(parser: ResponseParser) -> None:
    out = parser.parse(
        "<reflection>I should have used a tool</reflection>...<reflection>verdict: complete</reflection>"
    )
    assert out.critique == CritiqueVerdict.complete


def test_parse_function_arguments() -> None:
    assert parse_function_arguments('{"a": [1, 2]}') == {"a": [1, 2]}
    assert parse_function_arguments("not json") == {}
    assert parse_function_arguments("[1, 2]") == {}
    assert parse_function_arguments("") == {}
