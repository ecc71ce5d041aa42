"""Address-space layout descriptors derived from a parsed module.

The container is mapped one-to-one: addresses are buffer offsets.  Each
function record becomes an executable segment; its code and constants become
sections; the string table becomes one read-only data section.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .model import ByteRange, Module


class SectionSemantics(str, Enum):
    READ_ONLY_CODE = "read_only_code"
    READ_ONLY_DATA = "read_only_data"


@dataclass(frozen=True)
class Segment:
    span: ByteRange
    readable: bool = True
    executable: bool = False
    contains_code: bool = False
    contains_data: bool = True


@dataclass(frozen=True)
class Section:
    name: str
    span: ByteRange
    semantics: SectionSemantics


@dataclass(frozen=True)
class Layout:
    segments: Tuple[Segment, ...]
    sections: Tuple[Section, ...]
    entry_point: int
    function_starts: Tuple[int, ...]

    def as_dict(self) -> Dict[str, object]:
        return {
            "entry_point": self.entry_point,
            "function_starts": list(self.function_starts),
            "segments": [
                {
                    "start": segment.span.start,
                    "end": segment.span.end,
                    "executable": segment.executable,
                }
                for segment in self.segments
            ],
            "sections": [
                {
                    "name": section.name,
                    "start": section.span.start,
                    "end": section.span.end,
                    "semantics": section.semantics.value,
                }
                for section in self.sections
            ],
        }


def build_layout(module: Module) -> Layout:
    """Return the segments, sections and entry points for ``module``."""

    segments: List[Segment] = []
    sections: List[Section] = []

    string_span = module.string_span
    if string_span is not None and len(string_span):
        segments.append(Segment(string_span))
        sections.append(Section("string_list", string_span, SectionSemantics.READ_ONLY_DATA))

    for index, function in enumerate(module.functions):
        segments.append(
            Segment(function.position, executable=True, contains_code=True)
        )
        if len(function.code):
            sections.append(
                Section(f"code_{index}", function.code, SectionSemantics.READ_ONLY_CODE)
            )
        constant_span = function.constant_span
        if constant_span is not None:
            sections.append(
                Section(f"data_{index}", constant_span, SectionSemantics.READ_ONLY_DATA)
            )

    return Layout(
        segments=tuple(segments),
        sections=tuple(sections),
        entry_point=module.entry_point,
        function_starts=tuple(function.code.start for function in module.functions),
    )


__all__ = ["SectionSemantics", "Segment", "Section", "Layout", "build_layout"]
