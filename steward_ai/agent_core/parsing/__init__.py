"""Model output parsing.

- ``response_parser``: sections, display text, tool-call proposal and
  self-critique verdict from raw (streaming) model text.
- ``json_blocks``: helpers locating JSON objects inside prose.
"""

from .response_parser import (
    CritiqueVerdict,
    ParsedResponse,
    ParsedSection,
    ResponseParser,
    SectionKind,
    classify_critique,
    parse_function_arguments,
)

__all__ = [
    "CritiqueVerdict",
    "ParsedResponse",
    "ParsedSection",
    "ResponseParser",
    "SectionKind",
    "classify_critique",
    "parse_function_arguments",
]
