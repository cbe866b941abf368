"""
Source Map v3 support: the JSON document model, the incremental builder fed by
the code emitter, and the base64 VLQ codec used by the `mappings` string.
"""

import base64
import json
from typing import List, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field

from fratm.config.config import DEFAULT_SOURCE_NAME

BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
BASE64_VALUES = {char: index for index, char in enumerate(BASE64_ALPHABET)}

VLQ_BASE_SHIFT = 5
VLQ_BASE_MASK = (1 << VLQ_BASE_SHIFT) - 1
VLQ_CONTINUATION_BIT = 1 << VLQ_BASE_SHIFT

DATA_URL_PREFIX = "//# sourceMappingURL=data:application/json;base64,"


def vlq_encode(value: int) -> str:
    """Encodes one signed integer as base64 VLQ digits; the sign travels in the lowest bit."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    digits = []
    while True:
        digit = vlq & VLQ_BASE_MASK
        vlq >>= VLQ_BASE_SHIFT
        if vlq:
            digit |= VLQ_CONTINUATION_BIT
        digits.append(BASE64_ALPHABET[digit])
        if not vlq:
            return "".join(digits)


def vlq_decode(text: str) -> List[int]:
    """Decodes every signed integer in a run of base64 VLQ digits (one segment)."""
    values = []
    vlq = 0
    shift = 0
    for char in text:
        if char not in BASE64_VALUES:
            raise ValueError(f"Invalid base64 VLQ digit '{char}'")
        digit = BASE64_VALUES[char]
        vlq += (digit & VLQ_BASE_MASK) << shift
        if digit & VLQ_CONTINUATION_BIT:
            shift += VLQ_BASE_SHIFT
            continue
        values.append(-(vlq >> 1) if vlq & 1 else vlq >> 1)
        vlq = 0
        shift = 0
    if shift:
        raise ValueError("Truncated base64 VLQ sequence")
    return values


class SourceMap(BaseModel):
    """A Source Map v3 document. Optional members are left out of the JSON when unset."""

    model_config = ConfigDict(populate_by_name=True)

    version: int = 3
    file: Optional[str] = None
    source_root: Optional[str] = Field(default=None, alias="sourceRoot")
    sources: List[str] = [DEFAULT_SOURCE_NAME]
    sources_content: Optional[List[str]] = Field(default=None, alias="sourcesContent")
    names: List[str] = []
    mappings: str = ""

    def with_source(self, source: str) -> "SourceMap":
        return self.model_copy(update={"sources": [source]})

    def with_content(self, content: str) -> "SourceMap":
        return self.model_copy(update={"sources_content": [content]})

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_json_pretty(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def to_data_url(self) -> str:
        """The inline trailer comment carrying the whole map as base64 JSON."""
        encoded = base64.b64encode(self.to_json().encode("utf-8")).decode("ascii")
        return DATA_URL_PREFIX + encoded


class Segment(NamedTuple):
    gen_col: int
    src_line: int
    src_col: int
    name_index: Optional[int] = None


class SourceMapBuilder:
    """
    Collects mapping segments grouped by generated line. All positions handed
    in are 0-indexed. The builder always holds at least one line group, and
    `new_line` opens the next one, so the finished `mappings` string has one
    `;` per generated newline.
    """

    def __init__(self):
        self.lines: List[List[Segment]] = [[]]
        self.names: List[str] = []

    def new_line(self):
        self.lines.append([])

    def add_mapping(self, gen_line: int, gen_col: int, src_line: int, src_col: int):
        self._line(gen_line).append(Segment(gen_col, src_line, src_col))

    def add_named_mapping(self, gen_line: int, gen_col: int, src_line: int, src_col: int, name: str):
        if name in self.names:
            name_index = self.names.index(name)
        else:
            self.names.append(name)
            name_index = len(self.names) - 1
        self._line(gen_line).append(Segment(gen_col, src_line, src_col, name_index))

    def _line(self, gen_line: int) -> List[Segment]:
        while len(self.lines) <= gen_line:
            self.lines.append([])
        return self.lines[gen_line]

    def encode_mappings(self) -> str:
        """
        Encodes every segment as VLQ deltas. Only the generated column restarts
        at each line; source line, source column and name index deltas carry
        over from the previous segment wherever it was.
        """
        encoded_lines = []
        prev_src_line = 0
        prev_src_col = 0
        prev_name = 0

        for segments in self.lines:
            prev_gen_col = 0
            encoded_segments = []
            for segment in segments:
                fields = [
                    vlq_encode(segment.gen_col - prev_gen_col),
                    # Single source file: the source index never moves from 0.
                    vlq_encode(0),
                    vlq_encode(segment.src_line - prev_src_line),
                    vlq_encode(segment.src_col - prev_src_col),
                ]
                prev_gen_col = segment.gen_col
                prev_src_line = segment.src_line
                prev_src_col = segment.src_col

                if segment.name_index is not None:
                    fields.append(vlq_encode(segment.name_index - prev_name))
                    prev_name = segment.name_index

                encoded_segments.append("".join(fields))
            encoded_lines.append(",".join(encoded_segments))

        return ";".join(encoded_lines)

    def build(self, source_file: Optional[str] = None) -> SourceMap:
        return SourceMap(
            sources=[source_file or DEFAULT_SOURCE_NAME],
            names=list(self.names),
            mappings=self.encode_mappings(),
        )
