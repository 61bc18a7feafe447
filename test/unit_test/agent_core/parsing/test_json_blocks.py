from __future__ import annotations

import pytest

from steward_ai.agent_core.parsing.json_blocks import (
    balanced_brace_slices,
    first_to_last_brace,
    iter_json_objects,
    loads_object,
)


def test_balanced_slices_skip_unterminated_blocks() -> None:
    text = 'a {"x": {"y": 1}} b {"open": '
    assert list(balanced_brace_slices(text)) == [(2, 16)]


def test_balanced_slices_ignore_braces_in_strings() -> None:
    text = '{"s": "}{"} {"t": "\\"}"}'
    slices = list(balanced_brace_slices(text))
    assert [text[a : b + 1] for a, b in slices] == ['{"s": "}{"}', '{"t": "\\"}"}']


@pytest.mark.parametrize(
    "raw,expected",
    [
        ('{"a": 1}', {"a": 1}),
        ('json\n{"a": 1}', {"a": 1}),
        ("[1, 2]", None),
        ("not json", None),
        ("", None),
    ],
)
def test_loads_object(raw: str, expected) -> None:
    assert loads_object(raw) == expected


def test_iter_json_objects_yields_fenced_blocks_first() -> None:
    text = 'prose {"second": 2}\n```json\n{"first": 1}\n```'
    objects = list(iter_json_objects(text))
    assert objects[0] == {"first": 1}
    assert {"second": 2} in objects


def test_first_to_last_brace() -> None:
    assert first_to_last_brace('Plan:\n{"steps": [{"description": "x"}]}\nThanks') == {
        "steps": [{"description": "x"}]
    }
    assert first_to_last_brace("no braces") is None
    assert first_to_last_brace("} backwards {") is None
