from __future__ import annotations

import re
from typing import Iterable, List, Protocol, Sequence

from .models import ChangeOperation, ChangeType, ParsedChunk

LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")
MARKER_TOKEN = "@@"
ADD_PREFIX = "+"
REMOVE_PREFIX = "-"
CONTEXT_PREFIX = " "


class RawChunk(Protocol):
    context_marker: str
    changes: Sequence[str]


def split_into_lines(content: str) -> List[str]:
    """
    Split on any of CRLF, CR or LF. A final newline does not produce a
    trailing empty line; empty content yields no lines.
    """
    if content == "":
        return []
    lines = LINE_SPLIT_RE.split(content)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def clean_context_marker(marker: str) -> str:
    return marker.replace(MARKER_TOKEN, "").strip()


class ChunkParser:
    """
    Turns raw requested edits into ParsedChunk values.
    Unknown line prefixes degrade to context lines; parsing never fails.
    """

    def parse_line(self, raw_line: str) -> ChangeOperation:
        if raw_line == "":
            return ChangeOperation(ChangeType.CONTEXT, "")
        prefix, rest = raw_line[0], raw_line[1:]
        if prefix == ADD_PREFIX:
            return ChangeOperation(ChangeType.ADD, rest)
        if prefix == REMOVE_PREFIX:
            return ChangeOperation(ChangeType.REMOVE, rest)
        if prefix == CONTEXT_PREFIX:
            return ChangeOperation(ChangeType.CONTEXT, rest)
        # Missing prefix: keep the whole line as context
        return ChangeOperation(ChangeType.CONTEXT, raw_line)

    def parse(self, raw: RawChunk) -> ParsedChunk:
        return ParsedChunk(
            context_marker=clean_context_marker(raw.context_marker),
            changes=tuple(self.parse_line(line) for line in raw.changes),
        )

    def parse_many(self, raws: Iterable[RawChunk]) -> List[ParsedChunk]:
        return [self.parse(raw) for raw in raws]
