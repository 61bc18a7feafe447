from __future__ import annotations

"""Structured-response parser.

``ResponseParser`` turns raw (possibly still streaming) model text into:

- tagged sections (reasoning, action taken, self-critique) that the run loop
  shows as their own assistant messages,
- the user-visible answer text,
- at most one tool-call proposal,
- a continue/complete verdict derived from the latest self-critique.

Parsing is a pure function of its input. Sections are reported with the
offset of their start tag in the raw text, and a section matched on a prefix
is matched identically on any longer text, so callers can re-parse on every
streamed chunk and de-duplicate by ``(kind, offset)``.

Malformed markup never raises. Unmatched start or end tags are reported as
irregularities and left in the text.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from ..schemas.domain import ToolCallDescriptor, ToolCallProposal
from .json_blocks import FENCE_RE, iter_json_objects, loads_object

logger = logging.getLogger(__name__)


class SectionKind(str, Enum):
    reasoning = "reasoning"
    action = "action"
    critique = "critique"


class CritiqueVerdict(str, Enum):
    continue_ = "continue"
    complete = "complete"


SECTION_TAGS: Dict[str, SectionKind] = {
    "thinking": SectionKind.reasoning,
    "reasoning": SectionKind.reasoning,
    "observation": SectionKind.action,
    "action": SectionKind.action,
    "reflection": SectionKind.critique,
    "self_critique": SectionKind.critique,
}

_SECTION_RES = {
    tag: re.compile(rf"<{tag}>(.*?)</{tag}>", re.DOTALL) for tag in SECTION_TAGS
}

_VERDICT_RE = re.compile(r"^\s*(?:verdict|status)\s*[:=]\s*(continue|complete)\b", re.IGNORECASE | re.MULTILINE)

CONTINUE_PHRASES: Tuple[str, ...] = (
    "should have used",
    "forgot to use",
    "did not use the tool",
    "didn't use the tool",
    "missed a tool",
    "missed the tool",
    "missed tool usage",
    "wrong tool",
    "incorrect tool",
    "tool usage was incorrect",
    "tool call failed",
    "need to call",
    "needs to call",
    "need to use the",
    "not yet resolved",
    "ツールを使用すべき",
    "ツールを使うべき",
    "ツールの使い忘れ",
    "ツールを使用していない",
    "ツールの使用が不適切",
    "誤ったツール",
    "再度実行",
)

COMPLETE_PHRASES: Tuple[str, ...] = (
    "correct",
    "complete",
    "no issues",
    "resolved",
    "answered",
    "問題なし",
    "問題ありません",
    "正しく",
    "適切",
    "完了",
)

# a sentence mentioning a tool together with a misuse word, in any word order
_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")
_TOOL_WORD_RE = re.compile(r"\btool(?:s|ing)?\b", re.IGNORECASE)
_MISUSE_WORD_RE = re.compile(
    r"\b(?:incorrect(?:ly)?|wrong(?:ly)?|improper(?:ly)?|missed|missing|forgot|failed to|did not|didn't|should have)\b",
    re.IGNORECASE,
)


def _phrase_pattern(phrase: str) -> str:
    # CJK phrases have no word boundaries
    return rf"\b{re.escape(phrase)}\b" if phrase.isascii() else re.escape(phrase)


_COMPLETE_RE = re.compile("|".join(_phrase_pattern(p) for p in COMPLETE_PHRASES), re.IGNORECASE)


def _reports_tool_misuse(text: str) -> bool:
    return any(
        _TOOL_WORD_RE.search(sentence) and _MISUSE_WORD_RE.search(sentence)
        for sentence in _SENTENCE_SPLIT_RE.split(text)
    )


_RESPONSE_OPEN = "<response>"
_RESPONSE_CLOSE = "</response>"

_LEGACY_LINE_PREFIXES = ("<IMPORTANT>", "I'm now in", "When I need to use a tool")
_LEGACY_LINE_MARKERS = ("tool_call JSON", "requires_approval")


@dataclass(frozen=True)
class ParsedSection:
    """A well-formed tagged section.

    ``offset`` is the index of the start tag in the raw text and, together
    with ``kind``, identifies the section across re-parses.
    """

    kind: SectionKind
    content: str
    offset: int
    tag: str

    @property
    def key(self) -> Tuple[str, int]:
        return (self.kind.value, self.offset)


@dataclass(frozen=True)
class ParsedResponse:
    display_text: str
    sections: Tuple[ParsedSection, ...] = ()
    tool_proposal: Optional[ToolCallProposal] = None
    critique: Optional[CritiqueVerdict] = None
    irregularities: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def wants_continuation(self) -> bool:
        return self.critique == CritiqueVerdict.continue_


def classify_critique(text: str) -> CritiqueVerdict:
    """Classify a self-critique as "continue" or "complete".

    An explicit ``verdict: continue|complete`` line wins. Otherwise the
    keyword lists are consulted, "continue" phrases first. No match means
    "complete".
    """
    m = _VERDICT_RE.search(text)
    if m is not None:
        return CritiqueVerdict(m.group(1).lower())
    lowered = text.lower()
    if any(p in lowered for p in CONTINUE_PHRASES) or _reports_tool_misuse(text):
        return CritiqueVerdict.continue_
    if _COMPLETE_RE.search(text):
        return CritiqueVerdict.complete
    return CritiqueVerdict.complete


def parse_function_arguments(arguments: str) -> Dict[str, Any]:
    """Decode a JSON-encoded argument object; anything else decodes to ``{}``."""
    return loads_object(arguments or "") or {}


def _is_tool_envelope(obj: Dict[str, Any]) -> bool:
    return obj.get("type") == "tool_call" or isinstance(obj.get("tool_calls"), list)


class ResponseParser:
    """Parse raw model output into sections, display text and a tool proposal."""

    def parse(self, text: str, tool_signal: Optional[ToolCallDescriptor] = None) -> ParsedResponse:
        """Parse the accumulated model text.

        Args:
            text: Raw text streamed so far.
            tool_signal: Tool call delivered through the model service's
                out-of-band channel, if any. It takes precedence over tool
                calls embedded in the text.

        Returns:
            A ``ParsedResponse``; never raises on malformed input.
        """
        irregularities: List[str] = []
        sections, spans = self._extract_sections(text, irregularities)
        remaining = self._remove_spans(text, spans)

        critique: Optional[CritiqueVerdict] = None
        critiques = [s for s in sections if s.kind == SectionKind.critique]
        if critiques:
            critique = classify_critique(critiques[-1].content)

        proposal = self._proposal_from_signal(tool_signal, irregularities)
        if proposal is None:
            proposal = self._proposal_from_text(remaining, irregularities)

        display = self._display_text(self._strip_fenced_envelopes(remaining))

        for note in irregularities:
            logger.debug(f"response parse irregularity: {note}")

        return ParsedResponse(
            display_text=display,
            sections=tuple(sections),
            tool_proposal=proposal,
            critique=critique,
            irregularities=tuple(irregularities),
        )

    # ------------------------------------------------------------------
    # sections
    # ------------------------------------------------------------------

    def _extract_sections(
        self, text: str, irregularities: List[str]
    ) -> Tuple[List[ParsedSection], List[Tuple[int, int]]]:
        sections: List[ParsedSection] = []
        spans: List[Tuple[int, int]] = []
        for tag, pattern in _SECTION_RES.items():
            matched: List[Tuple[int, int]] = []
            for m in pattern.finditer(text):
                matched.append((m.start(), m.end()))
                content = m.group(1).strip()
                if content:
                    sections.append(ParsedSection(SECTION_TAGS[tag], content, m.start(), tag))
            spans.extend(matched)
            self._note_unmatched(text, tag, matched, irregularities)
        sections.sort(key=lambda s: (s.offset, s.kind.value))
        return sections, spans

    @staticmethod
    def _note_unmatched(text: str, tag: str, matched: List[Tuple[int, int]], irregularities: List[str]) -> None:
        def inside(pos: int) -> bool:
            return any(a <= pos < b for a, b in matched)

        for m in re.finditer(rf"<{tag}>", text):
            if not inside(m.start()):
                irregularities.append(f"unterminated <{tag}> at {m.start()}")
        for m in re.finditer(rf"</{tag}>", text):
            if not inside(m.start()):
                irregularities.append(f"unmatched </{tag}> at {m.start()}")

    @staticmethod
    def _remove_spans(text: str, spans: List[Tuple[int, int]]) -> str:
        if not spans:
            return text
        merged: List[List[int]] = []
        for a, b in sorted(spans):
            if merged and a <= merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], b)
            else:
                merged.append([a, b])
        parts: List[str] = []
        cursor = 0
        for a, b in merged:
            parts.append(text[cursor:a])
            cursor = b
        parts.append(text[cursor:])
        return "".join(parts)

    # ------------------------------------------------------------------
    # tool calls
    # ------------------------------------------------------------------

    def _proposal_from_signal(
        self, signal: Optional[ToolCallDescriptor], irregularities: List[str]
    ) -> Optional[ToolCallProposal]:
        if signal is None:
            return None
        if not signal.function.name:
            irregularities.append("tool-call signal without a function name")
            return None
        return ToolCallProposal(
            tool_id=signal.function.name,
            requires_approval=False,
            input=parse_function_arguments(signal.function.arguments),
            rationale="Tool execution requested by the model",
            next_step_hint="Continue with tool result",
            call_id=signal.id,
        )

    def _proposal_from_text(self, text: str, irregularities: List[str]) -> Optional[ToolCallProposal]:
        if "{" not in text:
            return None
        candidates = list(iter_json_objects(text))

        for obj in candidates:
            calls = obj.get("tool_calls")
            if not isinstance(calls, list) or not calls:
                continue
            first = calls[0] if isinstance(calls[0], dict) else {}
            function = first.get("function") if isinstance(first.get("function"), dict) else {}
            name = function.get("name")
            if not isinstance(name, str) or not name:
                irregularities.append("tool_calls entry without a function name")
                continue
            arguments = function.get("arguments", "{}")
            if isinstance(arguments, dict):
                arguments = json.dumps(arguments)
            call_id = first.get("id")
            return ToolCallProposal(
                tool_id=name,
                requires_approval=True,
                input=parse_function_arguments(str(arguments)),
                rationale="Tool execution requested",
                next_step_hint="Continue with tool result",
                call_id=call_id if isinstance(call_id, str) and call_id else str(uuid4()),
            )

        for obj in candidates:
            if obj.get("type") != "tool_call":
                continue
            tool_id = obj.get("tool_id")
            if not isinstance(tool_id, str) or not tool_id:
                irregularities.append("tool_call object without tool_id")
                continue
            raw_input = obj.get("input")
            requires = obj.get("requires_approval")
            return ToolCallProposal(
                tool_id=tool_id,
                requires_approval=requires if isinstance(requires, bool) else True,
                input=raw_input if isinstance(raw_input, dict) else {},
                rationale=str(obj.get("reason") or ""),
                next_step_hint=str(obj.get("next_step_after_tool") or ""),
            )
        return None

    # ------------------------------------------------------------------
    # display text
    # ------------------------------------------------------------------

    @staticmethod
    def _strip_fenced_envelopes(text: str) -> str:
        def drop(m: re.Match) -> str:
            obj = loads_object(m.group(1))
            return "" if obj is not None and _is_tool_envelope(obj) else m.group(0)

        return FENCE_RE.sub(drop, text)

    def _display_text(self, text: str) -> str:
        start = text.find(_RESPONSE_OPEN)
        if start >= 0:
            inner_start = start + len(_RESPONSE_OPEN)
            end = text.find(_RESPONSE_CLOSE, inner_start)
            if end >= 0:
                return text[inner_start:end].strip()

        obj = loads_object(text) if text.strip().startswith("{") else None
        if obj is not None:
            if _is_tool_envelope(obj):
                return ""
            for key in ("response", "content", "message"):
                value = obj.get(key)
                if isinstance(value, str):
                    return value

        if start >= 0:
            # Streaming preview of an unterminated <response> block.
            preview = text[start + len(_RESPONSE_OPEN) :]
            brace = preview.find("{")
            if brace >= 0:
                preview = preview[:brace]
            return preview.strip()

        brace = text.find("{")
        if brace > 0:
            before = text[:brace].strip()
            if before:
                return before

        return self._legacy_cleanup(text)

    @staticmethod
    def _legacy_cleanup(text: str) -> str:
        cleaned = re.sub(r"```thinking[\s\S]*?```", "", text, count=1)
        cleaned = re.sub(r"<IMPORTANT>[\s\S]*?</IMPORTANT>", "", cleaned, count=1)
        lines = []
        for line in cleaned.splitlines():
            stripped = line.strip()
            if stripped.startswith(_LEGACY_LINE_PREFIXES):
                continue
            if any(marker in stripped for marker in _LEGACY_LINE_MARKERS):
                continue
            lines.append(line)
        cleaned = "\n".join(lines).strip()
        while "\n\n\n" in cleaned:
            cleaned = cleaned.replace("\n\n\n", "\n\n")
        if not cleaned or cleaned.startswith("{") or cleaned.endswith("}"):
            return ""
        return cleaned
